"""Discover view-model.

Finds and follows accounts from this server and from federated peers.
One search box serves both purposes:

- plain text filters the local account list (server-side `q` plus the
  client-side text match of the listing pipeline);
- a pasted `@user@domain` handle or URL is resolved through the debounced
  resolver, and a successful resolution reloads the lists so the new actor
  also shows up among the known actors.

## Loading

`load()` fetches `/users` and `/federation/actors` concurrently, then the
viewer's follow state. A failed list load degrades to empty lists. When
loads overlap (typing, or a reload after resolution), results of an older
load are dropped.

## Background refresh

When a viewer is logged in, `start()` also asks the server to refresh stale
remote actors. This is best effort: failures are swallowed and the lists are
reloaded only if the server reports changes.
"""

from __future__ import annotations

import asyncio
import logging

from event_federation.auth.session import ViewerSession
from event_federation.client.base import ClientError
from event_federation.config import Settings, get_settings
from event_federation.federation.classifier import looks_like_remote_handle
from event_federation.federation.follow_state import FollowResult, FollowStateReconciler
from event_federation.federation.listing import (
    DiscoverFilters,
    FollowFilter,
    ProfileListing,
    SortOrder,
    SourceFilter,
    assemble_profiles,
    build_listing,
    empty_state_hint,
)
from event_federation.federation.resolver import DebouncedResolver
from event_federation.models.actor import RemoteActor
from event_federation.models.profile import ProfileItem, RemoteProfile
from event_federation.models.user import User

logger = logging.getLogger(__name__)

LOGIN_TO_RESOLVE_HINT = "Log in to resolve remote accounts by handle or URL."


class DiscoverView:
    """State and actions of the Discover page.

    Example:
        ```python
        view = DiscoverView(session)
        await view.start()

        await view.set_query("@alice@mastodon.social")
        await view.resolver.wait()

        for item in view.listing().visible:
            ...
        ```
    """

    def __init__(self, session: ViewerSession, settings: Settings | None = None):
        self.session = session
        self.settings = settings or get_settings()

        self.filters = DiscoverFilters(hide_zero_events=self.settings.hide_zero_event_accounts)
        self.local_users: list[User] = []
        self.remote_actors: list[RemoteActor] = []
        self.loading = False

        self.follow_state = FollowStateReconciler(session)
        self.resolver = DebouncedResolver(
            session,
            delay=self.settings.resolve_debounce_seconds,
            on_resolved=self._on_resolved,
        )
        self._refresh_task: asyncio.Task[None] | None = None
        self._load_generation = 0

    # -- Loading ---------------------------------------------------------

    async def start(self) -> None:
        """Initial load, plus the background actor refresh when logged in."""
        self.session.add_listener(self._on_viewer_changed)
        await self.load()
        self._schedule_refresh()

    async def load(self) -> None:
        """Reload both account lists and the viewer's follow state.

        Overlapping loads are tagged with a generation; only the most recent
        one applies its results.
        """
        self._load_generation += 1
        generation = self._load_generation
        self.loading = True
        try:
            query = self.filters.query.strip()
            local_q = None if looks_like_remote_handle(query) else (query or None)
            limit = self.settings.discover_list_limit

            try:
                users, actors = await asyncio.gather(
                    self.session.client.users.list(q=local_q, limit=limit),
                    self.session.client.federation.actors(limit=limit),
                )
            except ClientError as e:
                logger.warning(f"Could not load Discover lists: {e}")
                users, actors = [], []

            if generation != self._load_generation:
                logger.debug(f"Discarding stale Discover lists (generation {generation})")
                return

            self.local_users = users
            self.remote_actors = actors

            if self.session.authenticated:
                await self.follow_state.load()
        finally:
            if generation == self._load_generation:
                self.loading = False

    async def _on_resolved(self, actor: RemoteActor) -> None:
        await self.load()

    async def _on_viewer_changed(self, viewer: User | None) -> None:
        # Re-evaluate the query: resolution depends on being logged in
        self.resolver.update(self.filters.query)
        await self.load()
        if viewer is None:
            await self.follow_state.load()
        self._schedule_refresh()

    def _schedule_refresh(self) -> None:
        if not self.session.authenticated:
            return
        if self._refresh_task is not None and not self._refresh_task.done():
            return
        self._refresh_task = asyncio.get_running_loop().create_task(
            self.refresh_stale_actors()
        )

    async def refresh_stale_actors(self) -> bool:
        """Ask the server to refresh stale remote actors.

        Returns:
            True if the server reported changes and the lists were reloaded
        """
        if not self.session.authenticated:
            return False
        try:
            response = await self.session.client.federation.refresh_actors(
                limit=self.settings.refresh_actors_limit,
                max_age_hours=self.settings.refresh_actors_max_age_hours,
            )
        except ClientError as e:
            logger.debug(f"Background actor refresh failed: {e}")
            return False

        if not response.changed:
            return False

        logger.debug(
            f"Actor refresh: {response.refreshed} refreshed, "
            f"{response.discovered or 0} discovered"
        )
        await self.load()
        return True

    async def aclose(self) -> None:
        """Stop background work and detach from the session."""
        self.session.remove_listener(self._on_viewer_changed)
        await self.resolver.aclose()
        if self._refresh_task is not None:
            self._refresh_task.cancel()
            await asyncio.gather(self._refresh_task, return_exceptions=True)
            self._refresh_task = None

    # -- Input -----------------------------------------------------------

    async def set_query(self, text: str) -> None:
        """Change the search input: reload the lists and feed the resolver."""
        self.filters.query = text
        self.resolver.update(text)
        await self.load()

    def set_source(self, source: SourceFilter | str) -> None:
        self.filters.source = SourceFilter(source)

    def set_follow_filter(self, follow: FollowFilter | str) -> None:
        self.filters.follow = FollowFilter(follow)

    def set_sort(self, sort: SortOrder | str) -> None:
        self.filters.sort = SortOrder(sort)

    def set_hide_zero_events(self, hide: bool) -> None:
        self.filters.hide_zero_events = hide

    # -- Derived state ---------------------------------------------------

    @property
    def prompt(self) -> str | None:
        """Inline prompt: login hint, resolver error, or None."""
        if self.resolver.needs_login:
            return LOGIN_TO_RESOLVE_HINT
        return self.resolver.error

    def items(self) -> list[ProfileItem]:
        """All known profiles, deduplicated, including the resolved actor."""
        return assemble_profiles(self.local_users, self.remote_actors, self.resolver.result)

    def listing(self) -> ProfileListing:
        """Profiles after the filter pipeline."""
        resolved = self.resolver.result
        return build_listing(
            self.items(),
            self.filters,
            is_followed=self.follow_state.is_followed,
            authenticated=self.session.authenticated,
            resolved_uri=resolved.uri if resolved else None,
        )

    def resolved_card(self) -> RemoteProfile | None:
        """The resolved actor when it is not (yet) among the known actors."""
        actor = self.resolver.result
        if actor is None or any(a.uri == actor.uri for a in self.remote_actors):
            return None
        return RemoteProfile(actor=actor)

    def empty_hint(self) -> str:
        return empty_state_hint(self.filters)

    # -- Actions ---------------------------------------------------------

    async def follow(self, item: ProfileItem, *, import_events: bool = False) -> FollowResult:
        return await self.follow_state.follow(item, import_events=import_events)

    async def unfollow(self, item: ProfileItem) -> FollowResult:
        return await self.follow_state.unfollow(item)
