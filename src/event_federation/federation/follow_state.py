"""Follow-state reconciler.

Keeps the viewer's follow edges for both identity spaces in two sets:

- `followed_local_ids`: ids of local accounts the viewer follows
- `followed_actor_uris`: URIs of remote actors the viewer follows

Both are client-side projections of server state. They are fetched
wholesale on load and whenever the viewer changes, and patched only after
the server confirms a follow or unfollow. Nothing is persisted beyond the
session.

## Remote follows

`POST /federation/follow` answers `{ok, delivered}`. The actor is marked
followed only when `delivered` is true, i.e. the Follow activity actually
reached the remote inbox.

## Busy keys

A mutation holds the item's key in `busy_keys` until it settles. A second
follow/unfollow on the same key is refused while busy; other items stay
independently actionable.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from event_federation.auth.session import ViewerSession
from event_federation.client.base import ClientError
from event_federation.models.actor import RemoteActor
from event_federation.models.profile import LocalProfile, ProfileItem, RemoteProfile
from event_federation.models.user import User

logger = logging.getLogger(__name__)


@dataclass
class FollowResult:
    """Outcome of a follow or unfollow action."""

    key: str
    followed: bool
    delivered: bool | None = None
    imported: int | None = None
    error: str | None = None
    skipped: bool = False

    @property
    def success(self) -> bool:
        return self.error is None and not self.skipped


class FollowStateReconciler:
    """Follow state of the current viewer across local and remote accounts.

    Example:
        ```python
        reconciler = FollowStateReconciler(session)
        await reconciler.load()

        if reconciler.can_follow(item) and not reconciler.is_followed(item):
            result = await reconciler.follow(item)
        ```
    """

    def __init__(self, session: ViewerSession):
        self.session = session
        self.followed_local_ids: set[str] = set()
        self.followed_actor_uris: set[str] = set()
        self.busy_keys: set[str] = set()
        # Viewer id each set was last loaded for
        self._local_owner: str | None = None
        self._remote_owner: str | None = None

    def watch_viewer(self) -> None:
        """Reload automatically whenever the session's viewer changes."""
        self.session.add_listener(self.on_viewer_changed)

    def unwatch_viewer(self) -> None:
        self.session.remove_listener(self.on_viewer_changed)

    async def on_viewer_changed(self, viewer: User | None) -> None:
        await self.load()

    async def load(self) -> None:
        """Fetch both follow lists concurrently and rebuild the sets.

        A failed fetch leaves its set as it was when it belongs to the same
        viewer, and clears it when the viewer changed since it was loaded.
        The other set is still updated. Until both complete, `is_followed`
        may under-report.
        """
        username = self.session.viewer_username
        if username is None:
            self.followed_local_ids = set()
            self.followed_actor_uris = set()
            self._local_owner = self._remote_owner = None
            return

        await asyncio.gather(self.load_local(), self.load_remote())

    async def load_local(self) -> None:
        """Fetch only the local following list."""
        username = self.session.viewer_username
        viewer_id = self.session.viewer_id
        if username is None:
            self.followed_local_ids = set()
            self._local_owner = None
            return
        try:
            users = await self.session.client.users.following(username)
        except ClientError as e:
            logger.warning(f"Could not load local follows for {username}: {e}")
            if self._local_owner != viewer_id:
                self.followed_local_ids = set()
                self._local_owner = None
            return
        self.followed_local_ids = {u.id for u in users}
        self._local_owner = viewer_id

    async def load_remote(self) -> None:
        """Fetch only the followed remote actors."""
        viewer_id = self.session.viewer_id
        if viewer_id is None:
            self.followed_actor_uris = set()
            self._remote_owner = None
            return
        try:
            actors = await self.session.client.federation.followed_actors()
        except ClientError as e:
            logger.warning(f"Could not load followed remote actors: {e}")
            if self._remote_owner != viewer_id:
                self.followed_actor_uris = set()
                self._remote_owner = None
            return
        self.followed_actor_uris = {a.uri for a in actors}
        self._remote_owner = viewer_id

    def is_followed(self, item: ProfileItem) -> bool:
        match item:
            case LocalProfile(user=user):
                return user.id in self.followed_local_ids
            case RemoteProfile(actor=actor):
                return actor.uri in self.followed_actor_uris
        raise TypeError(f"Not a profile item: {item!r}")

    def is_own(self, item: ProfileItem) -> bool:
        """True only for the viewer's own local account."""
        viewer_id = self.session.viewer_id
        return (
            viewer_id is not None
            and isinstance(item, LocalProfile)
            and item.user.id == viewer_id
        )

    def is_busy(self, item: ProfileItem) -> bool:
        return item.key in self.busy_keys

    def can_follow(self, item: ProfileItem) -> bool:
        return self.session.authenticated and not self.is_own(item)

    def _refusal(self, item: ProfileItem) -> FollowResult | None:
        key = item.key
        if not self.session.authenticated:
            return FollowResult(
                key=key,
                followed=self.is_followed(item),
                error="Log in to follow accounts",
                skipped=True,
            )
        if self.is_own(item):
            return FollowResult(
                key=key, followed=False, error="You cannot follow yourself", skipped=True
            )
        if key in self.busy_keys:
            return FollowResult(key=key, followed=self.is_followed(item), skipped=True)
        return None

    async def follow(self, item: ProfileItem, *, import_events: bool = False) -> FollowResult:
        """Follow a local account or remote actor.

        Args:
            item: Profile to follow
            import_events: For remote actors, also import their events once
                the follow was delivered

        Returns:
            FollowResult; `followed` reflects the state after the call
        """
        refusal = self._refusal(item)
        if refusal is not None:
            return refusal

        key = item.key
        self.busy_keys.add(key)
        try:
            match item:
                case LocalProfile(user=user):
                    return await self._follow_local(user)
                case RemoteProfile(actor=actor):
                    return await self._follow_remote(actor, import_events)
            raise TypeError(f"Not a profile item: {item!r}")
        finally:
            self.busy_keys.discard(key)

    async def _follow_local(self, user: User) -> FollowResult:
        try:
            await self.session.client.users.follow(user.username)
        except ClientError as e:
            logger.info(f"Follow of {user.username} failed: {e}")
            return FollowResult(
                key=user.id,
                followed=user.id in self.followed_local_ids,
                error=e.message,
            )

        self.followed_local_ids.add(user.id)
        return FollowResult(key=user.id, followed=True)

    async def _follow_remote(self, actor: RemoteActor, import_events: bool) -> FollowResult:
        uri = actor.uri
        try:
            response = await self.session.client.federation.follow(uri)
        except ClientError as e:
            logger.info(f"Follow of {uri} failed: {e}")
            return FollowResult(
                key=uri,
                followed=uri in self.followed_actor_uris,
                error=e.message,
            )

        if not response.delivered:
            logger.info(f"Follow of {uri} was accepted but not delivered")
            return FollowResult(
                key=uri,
                followed=uri in self.followed_actor_uris,
                delivered=False,
                error="Follow request could not be delivered",
            )

        self.followed_actor_uris.add(uri)
        result = FollowResult(key=uri, followed=True, delivered=True)

        if import_events:
            try:
                imported = await self.session.client.federation.fetch_actor(uri)
            except ClientError as e:
                logger.warning(f"Event import for {uri} failed: {e}")
                result.error = f"Followed, but importing events failed: {e.message}"
            else:
                result.imported = imported.imported

        return result

    async def unfollow(self, item: ProfileItem) -> FollowResult:
        """Unfollow a local account or remote actor."""
        refusal = self._refusal(item)
        if refusal is not None:
            return refusal

        key = item.key
        self.busy_keys.add(key)
        try:
            match item:
                case LocalProfile(user=user):
                    await self.session.client.users.unfollow(user.username)
                    self.followed_local_ids.discard(user.id)
                case RemoteProfile(actor=actor):
                    await self.session.client.federation.unfollow(actor.uri)
                    self.followed_actor_uris.discard(actor.uri)
                case _:
                    raise TypeError(f"Not a profile item: {item!r}")
        except ClientError as e:
            logger.info(f"Unfollow of {key} failed: {e}")
            return FollowResult(key=key, followed=self.is_followed(item), error=e.message)
        finally:
            self.busy_keys.discard(key)

        return FollowResult(key=key, followed=False)

    async def toggle(self, item: ProfileItem) -> FollowResult:
        if self.is_followed(item):
            return await self.unfollow(item)
        return await self.follow(item)
