"""Identity normalizer.

Maps a `ProfileItem` (local account or remote actor) onto the canonical
fields every profile surface renders: key, path, display name, handle,
avatar, summary text and counts.

## Counts

Counts are `None` when unknown and are never coerced to 0. The zero-events
filter on the Discover listing hides known zeros only, so the distinction
matters downstream.

## Paths

| Kind | Profile path |
|------|--------------|
| local | `/@{username}` |
| remote | `/@{username}@{domain}` |
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from bs4 import BeautifulSoup

from event_federation.models.event import CalEvent
from event_federation.models.profile import LocalProfile, ProfileItem, RemoteProfile

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class Avatar:
    """Avatar image URL plus a single-character fallback."""

    url: str | None
    fallback: str


@dataclass(frozen=True)
class NormalizedProfile:
    """All canonical fields of one profile item."""

    key: str
    kind: str
    path: str
    display_name: str
    handle: str
    avatar: Avatar
    summary: str | None
    followers_count: int | None
    following_count: int | None
    events_count: int | None

    @property
    def stats_line(self) -> str:
        return format_stats(self.events_count, self.followers_count, self.following_count)


def profile_key(item: ProfileItem) -> str:
    """Stable key: local user id or remote actor URI."""
    match item:
        case LocalProfile(user=user):
            return user.id
        case RemoteProfile(actor=actor):
            return actor.uri
    raise TypeError(f"Not a profile item: {item!r}")


def profile_path(username: str, domain: str | None = None) -> str:
    """Canonical profile path for a local or remote account."""
    if domain:
        return f"/@{username}@{domain}"
    return f"/@{username}"


def item_path(item: ProfileItem) -> str:
    match item:
        case LocalProfile(user=user):
            return profile_path(user.username)
        case RemoteProfile(actor=actor):
            return profile_path(actor.username, actor.domain)
    raise TypeError(f"Not a profile item: {item!r}")


def event_path(event: CalEvent) -> str:
    """Canonical path of an event: `/@user/slug`, else `/events/{id}`."""
    if event.slug and event.account and event.account.username:
        return f"/@{event.account.username}/{event.slug}"
    return f"/events/{event.id}"


def display_name(item: ProfileItem) -> str:
    """Display name if set, else the username."""
    match item:
        case LocalProfile(user=user):
            return user.display_name or user.username
        case RemoteProfile(actor=actor):
            return actor.display_name or actor.username
    raise TypeError(f"Not a profile item: {item!r}")


def handle(item: ProfileItem) -> str:
    match item:
        case LocalProfile(user=user):
            return f"@{user.username}"
        case RemoteProfile(actor=actor):
            return f"@{actor.username}@{actor.domain}"
    raise TypeError(f"Not a profile item: {item!r}")


def avatar(item: ProfileItem) -> Avatar:
    match item:
        case LocalProfile(user=user):
            return Avatar(url=user.avatar_url or None, fallback=_initial(user.username))
        case RemoteProfile(actor=actor):
            return Avatar(url=actor.icon_url or None, fallback=_initial(actor.username))
    raise TypeError(f"Not a profile item: {item!r}")


def _initial(username: str) -> str:
    return username[0].upper() if username else "?"


def strip_html(html: str) -> str:
    """Reduce an HTML fragment to its text content for safe truncation."""
    text = BeautifulSoup(html, "html.parser").get_text(" ")
    return _WHITESPACE.sub(" ", text).strip()


def summary_text(item: ProfileItem) -> str | None:
    """Bio (local) or summary (remote) as plain text; None when empty."""
    match item:
        case LocalProfile(user=user):
            raw = user.bio
        case RemoteProfile(actor=actor):
            raw = actor.summary
        case _:
            raise TypeError(f"Not a profile item: {item!r}")
    if not raw:
        return None
    return strip_html(raw) or None


def followers_count(item: ProfileItem) -> int | None:
    match item:
        case LocalProfile(user=user):
            return user.followers_count
        case RemoteProfile(actor=actor):
            return actor.followers_count
    raise TypeError(f"Not a profile item: {item!r}")


def following_count(item: ProfileItem) -> int | None:
    match item:
        case LocalProfile(user=user):
            return user.following_count
        case RemoteProfile(actor=actor):
            return actor.following_count
    raise TypeError(f"Not a profile item: {item!r}")


def events_count(item: ProfileItem) -> int | None:
    match item:
        case LocalProfile(user=user):
            return user.events_count
        case RemoteProfile(actor=actor):
            return actor.events_count
    raise TypeError(f"Not a profile item: {item!r}")


def format_stats(
    events: int | None,
    followers: int | None,
    following: int | None,
) -> str:
    """Join the known counts, e.g. '1 event · 12 followers'."""
    stats: list[str] = []
    if events is not None:
        stats.append(f"{events} event{'' if events == 1 else 's'}")
    if followers is not None:
        stats.append(f"{followers} followers")
    if following is not None:
        stats.append(f"{following} following")
    return " · ".join(stats)


def normalize(item: ProfileItem) -> NormalizedProfile:
    """Compute every canonical field of `item`. Pure, no side effects."""
    return NormalizedProfile(
        key=profile_key(item),
        kind=item.kind,
        path=item_path(item),
        display_name=display_name(item),
        handle=handle(item),
        avatar=avatar(item),
        summary=summary_text(item),
        followers_count=followers_count(item),
        following_count=following_count(item),
        events_count=events_count(item),
    )
