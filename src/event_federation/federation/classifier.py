"""Classify free-text search input as a remote handle/URL or a local query.

Handle-like input is resolved over the network (`/federation/search`);
anything else filters the local account list.

Examples:
    'https://mastodon.social/@alice' -> handle-like (URL)
    '@alice@mastodon.social'         -> handle-like
    'alice@mastodon.social'          -> handle-like
    'alice'                          -> local query
    'alice smith'                    -> local query

Email-shaped text such as 'me@example.org' is handle-like as well; the
server decides whether a WebFinger account exists for it.
"""

from __future__ import annotations

import re

URL_PREFIXES = ("https://", "http://")

# Optional leading '@', a user segment, '@', a domain segment. Matched from
# the start of the input, so trailing '@...' segments are tolerated.
HANDLE_PATTERN = re.compile(r"@?(?P<username>[^@\s]+)@(?P<domain>[^@\s]+)")


def looks_like_remote_handle(text: str | None) -> bool:
    """Return True if `text` should be resolved as a remote handle or URL."""
    if not text:
        return False
    t = text.strip()
    if not t:
        return False
    if t.startswith(URL_PREFIXES):
        return True
    if any(ch.isspace() for ch in t):
        return False
    return HANDLE_PATTERN.match(t) is not None


def parse_handle(text: str) -> tuple[str, str] | None:
    """Split a handle into `(username, domain)`.

    Returns None for URLs and for text that is not handle-like.
    """
    t = text.strip()
    if not looks_like_remote_handle(t) or t.startswith(URL_PREFIXES):
        return None
    match = HANDLE_PATTERN.match(t)
    if match is None:
        return None
    return match.group("username"), match.group("domain")
