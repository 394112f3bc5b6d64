"""Local account model."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from event_federation.models.base import ApiModel


class User(ApiModel):
    """An account hosted by this instance's own backend.

    Counts are `None` when the server did not report them. `None` means
    "unknown" and is never the same as a known zero.
    """

    id: str = Field(..., description="Instance-local account id")
    username: str = Field(..., min_length=1, description="Unique local username")
    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    website: str | None = None
    is_bot: bool = False
    discoverable: bool | None = None
    city: str | None = None

    followers_count: int | None = Field(default=None, ge=0)
    following_count: int | None = Field(default=None, ge=0)
    events_count: int | None = Field(default=None, ge=0)

    # Relative to the viewer
    following: bool | None = None
    auto_reposting: bool | None = None

    created_at: datetime | None = None
    source: Literal["local", "remote"] | None = None
    domain: str | None = None
