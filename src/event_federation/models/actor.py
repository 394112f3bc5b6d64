"""Remote actor model."""

from __future__ import annotations

from pydantic import Field

from event_federation.models.base import ApiModel


class RemoteActor(ApiModel):
    """A profile discovered on a federated peer server.

    `uri` is the only stable cross-request identity. `username` and `domain`
    form a secondary, human-readable key.
    """

    uri: str = Field(..., min_length=1, description="ActivityPub actor id")
    type: str = "Person"
    username: str = ""
    domain: str = ""
    display_name: str | None = None
    summary: str | None = None
    icon_url: str | None = None
    image_url: str | None = None
    outbox: str | None = None

    events_count: int | None = Field(default=None, ge=0)
    followers_count: int | None = Field(default=None, ge=0)
    following_count: int | None = Field(default=None, ge=0)

    @property
    def handle_key(self) -> tuple[str, str]:
        """Case-insensitive (username, domain) pair."""
        return (self.username.lower(), self.domain.lower())
