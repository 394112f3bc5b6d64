"""Event page sidebar: the event's host profile and more events by the host.

Local events are hosted by a local account, which is fetched in full.
Remote events only embed a minimal account (`username`, possibly
`user@domain`, plus display name and icon), so the host is represented by a
minimal `RemoteActor` built from that data.
"""

from __future__ import annotations

import logging

from event_federation.auth.session import ViewerSession
from event_federation.client.base import ClientError
from event_federation.config import Settings, get_settings
from event_federation.federation.follow_state import FollowResult, FollowStateReconciler
from event_federation.models.actor import RemoteActor
from event_federation.models.event import CalEvent, EventAccount
from event_federation.models.profile import LocalProfile, ProfileItem, RemoteProfile

logger = logging.getLogger(__name__)


def split_account_handle(account: EventAccount) -> tuple[str, str]:
    """Split an embedded account into `(username, domain)`.

    The username may carry the domain (`alice@example.org`); an explicit
    `domain` field takes precedence over the one in the username.
    """
    username, sep, domain = account.username.partition("@")
    if not sep:
        domain = ""
    return username, account.domain or domain


def remote_host_actor(event: CalEvent) -> RemoteActor | None:
    """Build a minimal RemoteActor for the host of a remote event."""
    if event.account is None:
        return None
    username, domain = split_account_handle(event.account)
    return RemoteActor(
        uri=event.actor_uri or f"https://{domain}/users/{username}",
        type="Person",
        username=username,
        domain=domain,
        display_name=event.account.display_name or username,
        icon_url=event.account.icon_url,
    )


class EventHostView:
    """Host card and suggested events for one event page."""

    def __init__(
        self,
        session: ViewerSession,
        event: CalEvent,
        settings: Settings | None = None,
    ):
        self.session = session
        self.event = event
        self.settings = settings or get_settings()

        self.host: ProfileItem | None = None
        self.suggested_events: list[CalEvent] = []
        self.follow_state = FollowStateReconciler(session)

    async def load(self) -> None:
        """Load the host profile, suggested events and host follow state."""
        self.host = await self._load_host()
        self.suggested_events = await self._load_suggested()
        await self._load_follow_state()

    async def _load_host(self) -> ProfileItem | None:
        account = self.event.account
        if account is None:
            return None

        if self.event.is_local:
            try:
                user = await self.session.client.users.get(account.username)
            except ClientError as e:
                logger.info(f"Could not load host {account.username}: {e}")
                return None
            return LocalProfile(user=user)

        actor = remote_host_actor(self.event)
        return RemoteProfile(actor=actor) if actor else None

    async def _load_suggested(self) -> list[CalEvent]:
        """Other events from the same host, excluding this one."""
        limit = self.settings.suggested_events_limit
        account = self.event.account
        if account is None or limit == 0:
            return []

        try:
            if self.event.is_local:
                events = await self.session.client.users.events(account.username, limit=limit + 1)
                same_host = [
                    e for e in events
                    if e.id != self.event.id and e.account_id == self.event.account_id
                ]
            elif self.event.actor_uri:
                events = await self.session.client.federation.remote_events(
                    actor=self.event.actor_uri, limit=limit + 1
                )
                same_host = [
                    e for e in events
                    if e.id != self.event.id and e.actor_uri == self.event.actor_uri
                ]
            else:
                return []
        except ClientError as e:
            logger.info(f"Could not load suggested events for {self.event.id}: {e}")
            return []

        return same_host[:limit]

    async def _load_follow_state(self) -> None:
        # Only the list matching the host's kind is needed here
        if not self.session.authenticated or self.host is None:
            return
        if isinstance(self.host, LocalProfile):
            await self.follow_state.load_local()
        else:
            await self.follow_state.load_remote()

    @property
    def is_host_followed(self) -> bool:
        return self.host is not None and self.follow_state.is_followed(self.host)

    @property
    def is_host_own(self) -> bool:
        return self.host is not None and self.follow_state.is_own(self.host)

    @property
    def is_busy(self) -> bool:
        return self.host is not None and self.follow_state.is_busy(self.host)

    async def follow_host(self) -> FollowResult | None:
        if self.host is None:
            return None
        return await self.follow_state.follow(self.host)

    async def unfollow_host(self) -> FollowResult | None:
        if self.host is None:
            return None
        return await self.follow_state.unfollow(self.host)
