"""Page-level view-models composed from the federation components.

## Views

- DiscoverView: unified local/remote account search with follow actions
- ProfileView: a local account's profile and events
- EventHostView: host card and suggested events of an event page
"""

from event_federation.views.discover import DiscoverView
from event_federation.views.event_host import EventHostView
from event_federation.views.profile import GroupedEvents, ProfileView, group_events

__all__ = [
    "DiscoverView",
    "EventHostView",
    "ProfileView",
    "GroupedEvents",
    "group_events",
]
