"""Event models for profile pages and the event host sidebar."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from event_federation.models.base import ApiModel


class EventAccount(ApiModel):
    """The account that hosts an event, as embedded in event payloads.

    For remote events `username` may already be `user@domain`.
    """

    username: str
    display_name: str | None = None
    domain: str | None = None
    icon_url: str | None = None


class CalEvent(ApiModel):
    """A calendar event, local or imported from a federated peer."""

    # Identity
    id: str = Field(..., description="Event id (a URI for remote events)")
    slug: str | None = None
    source: Literal["local", "remote"] | None = None
    account_id: str | None = None
    actor_uri: str | None = None
    account: EventAccount | None = None

    # Content
    title: str
    description: str | None = None
    start_date: datetime
    end_date: datetime | None = None
    all_day: bool = False
    url: str | None = None
    tags: list[str] = Field(default_factory=list)
    visibility: str = "public"
    canceled: bool = False

    # Relative to the viewer
    rsvp_status: Literal["going", "maybe"] | None = None
    reposted: bool | None = None

    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_local(self) -> bool:
        return self.source == "local"

    @property
    def ends_at(self) -> datetime:
        """End of the event, falling back to its start."""
        return self.end_date or self.start_date
