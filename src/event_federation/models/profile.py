"""Unified profile model.

A `ProfileItem` is either a local account or a remote actor. It is a
discriminated union on `kind`, so payloads such as
`{"kind": "remote", "actor": {...}}` parse into the right variant and code
can `match` on the two classes exhaustively.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from event_federation.models.actor import RemoteActor
from event_federation.models.user import User


class LocalProfile(BaseModel):
    """Profile backed by a local account."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["local"] = "local"
    user: User

    @property
    def key(self) -> str:
        return self.user.id


class RemoteProfile(BaseModel):
    """Profile backed by a remote actor."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["remote"] = "remote"
    actor: RemoteActor

    @property
    def key(self) -> str:
        return self.actor.uri


ProfileItem = Annotated[LocalProfile | RemoteProfile, Field(discriminator="kind")]

profile_item_adapter: TypeAdapter[LocalProfile | RemoteProfile] = TypeAdapter(ProfileItem)


def local(user: User) -> LocalProfile:
    """Wrap a local user as a profile item."""
    return LocalProfile(user=user)


def remote(actor: RemoteActor) -> RemoteProfile:
    """Wrap a remote actor as a profile item."""
    return RemoteProfile(actor=actor)
