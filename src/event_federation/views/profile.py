"""Local profile page view-model."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable

from event_federation.auth.session import ViewerSession
from event_federation.client.base import ApiError, ClientError
from event_federation.config import Settings, get_settings
from event_federation.models.event import CalEvent
from event_federation.models.user import User

logger = logging.getLogger(__name__)


@dataclass
class GroupedEvents:
    """A profile's events split around 'now'."""

    upcoming: list[CalEvent] = field(default_factory=list)
    past: list[CalEvent] = field(default_factory=list)


def _utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def group_events(events: Iterable[CalEvent], now: datetime | None = None) -> GroupedEvents:
    """Group events into upcoming and past.

    Upcoming lists events in progress first, then future events, both by
    start ascending. Past events are most recent first.
    """
    now = _utc(now or datetime.now(timezone.utc))
    current: list[CalEvent] = []
    future: list[CalEvent] = []
    past: list[CalEvent] = []

    for event in events:
        start = _utc(event.start_date)
        end = _utc(event.ends_at)
        if start <= now <= end:
            current.append(event)
        elif start > now:
            future.append(event)
        else:
            past.append(event)

    current.sort(key=lambda e: _utc(e.start_date))
    future.sort(key=lambda e: _utc(e.start_date))
    past.sort(key=lambda e: _utc(e.start_date), reverse=True)

    return GroupedEvents(upcoming=current + future, past=past)


def merge_events(*batches: Iterable[CalEvent]) -> list[CalEvent]:
    """Combine event batches, deduplicated by id (later batches win)."""
    combined: dict[str, CalEvent] = {}
    for batch in batches:
        for event in batch:
            combined[event.id] = event
    return list(combined.values())


USER_NOT_FOUND_MESSAGE = "User not found."


def _load_error_message(error: ClientError) -> str:
    if isinstance(error, ApiError) and error.status_code == 404:
        return USER_NOT_FOUND_MESSAGE
    return error.message


class ProfileView:
    """State and actions of a local user's profile page."""

    def __init__(
        self,
        session: ViewerSession,
        username: str,
        settings: Settings | None = None,
    ):
        self.session = session
        self.username = username
        self.settings = settings or get_settings()

        self.profile: User | None = None
        self.events: list[CalEvent] = []
        self.loading = False
        self.error: str | None = None

    async def load(self, now: datetime | None = None) -> None:
        """Fetch profile, upcoming events and recent past events."""
        now = now or datetime.now(timezone.utc)
        users = self.session.client.users
        self.loading = True
        try:
            profile, upcoming, past = await asyncio.gather(
                users.get(self.username),
                users.events(self.username, from_=now, limit=self.settings.profile_upcoming_limit),
                users.events(
                    self.username,
                    to=now,
                    limit=self.settings.profile_past_limit,
                    sort="desc",
                ),
            )
        except ClientError as e:
            logger.info(f"Could not load profile {self.username}: {e}")
            self.error = _load_error_message(e)
            return
        finally:
            self.loading = False

        self.error = None
        self.profile = profile
        self.events = merge_events(upcoming, past)

    @property
    def is_own(self) -> bool:
        return (
            self.profile is not None
            and self.session.viewer_id is not None
            and self.profile.id == self.session.viewer_id
        )

    @property
    def can_act(self) -> bool:
        """Follow and auto-repost are offered to other logged-in viewers."""
        return self.session.authenticated and self.profile is not None and not self.is_own

    def grouped(self, now: datetime | None = None) -> GroupedEvents:
        return group_events(self.events, now)

    async def toggle_follow(self) -> bool:
        """Follow or unfollow based on the profile's `following` flag, then reload.

        Returns:
            True if the call succeeded
        """
        if not self.can_act:
            return False
        users = self.session.client.users
        try:
            if self.profile.following:
                await users.unfollow(self.username)
            else:
                await users.follow(self.username)
        except ClientError as e:
            logger.info(f"Follow toggle for {self.username} failed: {e}")
            self.error = e.message
            return False
        await self.load()
        return True

    async def toggle_auto_repost(self) -> bool:
        """Turn auto-reposting of this account's events on or off, then reload."""
        if not self.can_act:
            return False
        users = self.session.client.users
        try:
            if self.profile.auto_reposting:
                await users.remove_auto_repost(self.username)
            else:
                await users.auto_repost(self.username)
        except ClientError as e:
            logger.info(f"Auto-repost toggle for {self.username} failed: {e}")
            self.error = e.message
            return False
        await self.load()
        return True
