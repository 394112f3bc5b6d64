"""Domain models for the federation view-model."""

from event_federation.models.actor import RemoteActor
from event_federation.models.base import ApiModel
from event_federation.models.event import CalEvent, EventAccount
from event_federation.models.profile import (
    LocalProfile,
    ProfileItem,
    RemoteProfile,
    local,
    profile_item_adapter,
    remote,
)
from event_federation.models.user import User

__all__ = [
    "ApiModel",
    # Accounts
    "User",
    "RemoteActor",
    # Events
    "CalEvent",
    "EventAccount",
    # Profiles
    "LocalProfile",
    "RemoteProfile",
    "ProfileItem",
    "profile_item_adapter",
    "local",
    "remote",
]
