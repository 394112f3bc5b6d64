"""Unified Discover listing.

Local users and remote actors arrive from two separately fetched sources.
This module merges them into one ordered, deduplicated sequence of
`ProfileItem` and runs the Discover filter pipeline over it.

## Pipeline

1. Text search: case-insensitive substring over display name, username,
   domain and handle. When the query is handle-like, text search is skipped
   and only the resolved actor is kept.
2. Source filter: all / local / remote
3. Follow filter: all / following / not_following (authenticated viewers only)
4. Zero-events bucket: items with a *known* event count of 0 move to a
   separate `hidden` bucket; unknown counts are never hidden.
5. Sort: insertion order ("recent"), most followers, or most events.
   Unknown counts sort as -1, i.e. last.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable

from pydantic import BaseModel, Field

from event_federation.config import get_settings
from event_federation.federation.classifier import looks_like_remote_handle
from event_federation.federation.normalizer import (
    display_name,
    events_count,
    followers_count,
    handle,
    profile_key,
)
from event_federation.models.actor import RemoteActor
from event_federation.models.profile import (
    LocalProfile,
    ProfileItem,
    RemoteProfile,
)
from event_federation.models.user import User

UNKNOWN_COUNT_RANK = -1


class SourceFilter(str, Enum):
    """Which backing store profiles come from."""

    ALL = "all"
    LOCAL = "local"
    REMOTE = "remote"


class FollowFilter(str, Enum):
    """Filter on the viewer's follow state."""

    ALL = "all"
    FOLLOWING = "following"
    NOT_FOLLOWING = "not_following"


class SortOrder(str, Enum):
    RECENT = "recent"
    FOLLOWERS = "followers"
    EVENTS = "events"


def _default_hide_zero_events() -> bool:
    return get_settings().hide_zero_event_accounts


class DiscoverFilters(BaseModel):
    """User-selected Discover filters."""

    query: str = Field(default="", description="Free-text search or remote handle/URL")
    source: SourceFilter = SourceFilter.ALL
    follow: FollowFilter = FollowFilter.ALL
    sort: SortOrder = SortOrder.RECENT
    hide_zero_events: bool = Field(
        default_factory=_default_hide_zero_events,
        description="Move accounts known to have no events into the hidden bucket",
    )

    @property
    def is_handle_query(self) -> bool:
        return looks_like_remote_handle(self.query)


@dataclass
class ProfileListing:
    """Result of the Discover pipeline."""

    visible: list[ProfileItem] = field(default_factory=list)
    hidden: list[ProfileItem] = field(default_factory=list)

    @property
    def hidden_count(self) -> int:
        return len(self.hidden)

    @property
    def is_empty(self) -> bool:
        return not self.visible and not self.hidden


def assemble_profiles(
    local_users: Iterable[User],
    remote_actors: Iterable[RemoteActor],
    resolved: RemoteActor | None = None,
) -> list[ProfileItem]:
    """Merge both sources into one list.

    Local users keep their order and come first. Remote actors follow,
    deduplicated by URI (first occurrence wins). A freshly resolved actor is
    appended only if its URI is not already present. Local users and remote
    actors are disjoint by construction, so no cross-kind dedup is done.
    """
    items: list[ProfileItem] = [LocalProfile(user=u) for u in local_users]
    seen_remote: set[str] = set()

    actors = list(remote_actors)
    if resolved is not None:
        actors.append(resolved)

    for actor in actors:
        if actor.uri in seen_remote:
            continue
        seen_remote.add(actor.uri)
        items.append(RemoteProfile(actor=actor))

    return items


def matches_query(item: ProfileItem, query: str) -> bool:
    """Case-insensitive substring match on the searchable identity fields."""
    q = query.strip().lower()
    if not q:
        return True

    match item:
        case LocalProfile(user=user):
            username, domain = user.username, ""
        case RemoteProfile(actor=actor):
            username, domain = actor.username, actor.domain
        case _:
            raise TypeError(f"Not a profile item: {item!r}")

    haystack = (display_name(item), username, domain, handle(item))
    return any(q in field_value.lower() for field_value in haystack if field_value)


def _matches_source(item: ProfileItem, source: SourceFilter) -> bool:
    if source == SourceFilter.LOCAL:
        return isinstance(item, LocalProfile)
    if source == SourceFilter.REMOTE:
        return isinstance(item, RemoteProfile)
    return True


def _count_rank(count: int | None) -> int:
    return UNKNOWN_COUNT_RANK if count is None else count


def sort_profiles(items: Iterable[ProfileItem], order: SortOrder) -> list[ProfileItem]:
    """Sort profiles; stable, descending by count, unknown counts last."""
    items = list(items)
    if order == SortOrder.FOLLOWERS:
        return sorted(items, key=lambda i: _count_rank(followers_count(i)), reverse=True)
    if order == SortOrder.EVENTS:
        return sorted(items, key=lambda i: _count_rank(events_count(i)), reverse=True)
    return items


def is_hideable(item: ProfileItem) -> bool:
    """True only for a known event count of exactly zero."""
    return events_count(item) == 0


def build_listing(
    items: Iterable[ProfileItem],
    filters: DiscoverFilters,
    *,
    is_followed: Callable[[ProfileItem], bool] | None = None,
    authenticated: bool = False,
    resolved_uri: str | None = None,
) -> ProfileListing:
    """Run the Discover pipeline over assembled profile items.

    Args:
        items: Output of `assemble_profiles`
        filters: Current filter selection
        is_followed: Follow-state lookup for the viewer
        authenticated: Whether a viewer is logged in; the follow filter is
            ignored otherwise
        resolved_uri: URI of the actor resolved for a handle-like query

    Returns:
        ProfileListing with visible and hidden buckets, both sorted
    """
    selected: list[ProfileItem] = []

    for item in items:
        if filters.is_handle_query:
            if resolved_uri is None or profile_key(item) != resolved_uri:
                continue
        elif not matches_query(item, filters.query):
            continue

        if not _matches_source(item, filters.source):
            continue

        if authenticated and is_followed is not None:
            followed = is_followed(item)
            if filters.follow == FollowFilter.FOLLOWING and not followed:
                continue
            if filters.follow == FollowFilter.NOT_FOLLOWING and followed:
                continue

        selected.append(item)

    listing = ProfileListing()
    for item in selected:
        if filters.hide_zero_events and is_hideable(item):
            listing.hidden.append(item)
        else:
            listing.visible.append(item)

    listing.visible = sort_profiles(listing.visible, filters.sort)
    listing.hidden = sort_profiles(listing.hidden, filters.sort)
    return listing


def empty_state_hint(filters: DiscoverFilters) -> str:
    """Hint shown when the listing has nothing to show."""
    if filters.follow == FollowFilter.FOLLOWING:
        return "You're not following anyone matching this filter yet."
    if filters.follow == FollowFilter.NOT_FOLLOWING:
        return "You're following everyone matching this filter."
    if filters.source == SourceFilter.REMOTE:
        return (
            "Paste a remote handle (e.g. @user@domain) or URL in the search bar "
            "to find accounts."
        )
    if filters.source == SourceFilter.LOCAL:
        return "No local accounts match your search."
    return "Paste a remote handle or URL in the search bar, or try a different search."
