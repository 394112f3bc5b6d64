"""Command-line interface for federated account discovery."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from event_federation import __version__
from event_federation.auth.session import ViewerSession
from event_federation.client import ApiClient, ClientError
from event_federation.config import get_settings
from event_federation.federation.classifier import looks_like_remote_handle
from event_federation.federation.listing import FollowFilter, SortOrder, SourceFilter
from event_federation.federation.follow_state import FollowStateReconciler
from event_federation.federation.normalizer import event_path, normalize
from event_federation.models.profile import LocalProfile, ProfileItem, RemoteProfile
from event_federation.views.discover import DiscoverView
from event_federation.views.profile import ProfileView

logger = logging.getLogger(__name__)


def _print_profile(item: ProfileItem, marker: str = "") -> None:
    profile = normalize(item)
    line = f"{marker}{profile.display_name} ({profile.handle})"
    if profile.stats_line:
        line += f"  [{profile.stats_line}]"
    print(line)
    if profile.summary:
        print(f"    {profile.summary[:200]}")


async def _resolve_target(session: ViewerSession, target: str) -> ProfileItem:
    """A handle/URL resolves to a remote actor, anything else is a local username."""
    if looks_like_remote_handle(target):
        actor = await session.client.federation.search(target.strip())
        return RemoteProfile(actor=actor)
    user = await session.client.users.get(target.strip().lstrip("@"))
    return LocalProfile(user=user)


async def _discover(session: ViewerSession, args: argparse.Namespace) -> int:
    view = DiscoverView(session)
    view.set_source(args.source)
    view.set_follow_filter(args.follow)
    view.set_sort(args.sort)
    view.set_hide_zero_events(not args.show_hidden)
    try:
        await view.start()
        if args.query:
            await view.set_query(args.query)
            await view.resolver.wait()
        if view.prompt:
            print(view.prompt)

        listing = view.listing()
        if listing.is_empty:
            print("No accounts found.")
            print(view.empty_hint())
            return 0

        for item in listing.visible:
            _print_profile(item, "* " if view.follow_state.is_followed(item) else "  ")
        if listing.hidden:
            print(f"({listing.hidden_count} accounts without events hidden)")
        return 0
    finally:
        await view.aclose()


async def _resolve(session: ViewerSession, args: argparse.Namespace) -> int:
    actor = await session.client.federation.search(args.handle.strip())
    _print_profile(RemoteProfile(actor=actor))
    print(f"    {actor.uri}")
    return 0


async def _profile(session: ViewerSession, args: argparse.Namespace) -> int:
    view = ProfileView(session, args.username.lstrip("@"))
    await view.load()
    if view.profile is None:
        print(view.error or "User not found.")
        return 1

    _print_profile(LocalProfile(user=view.profile))
    grouped = view.grouped()
    print("Upcoming events:" if grouped.upcoming else "No upcoming events.")
    for event in grouped.upcoming:
        print(f"  {event.start_date:%Y-%m-%d %H:%M}  {event.title}  {event_path(event)}")
    if grouped.past:
        print("Past events:")
        for event in grouped.past:
            print(f"  {event.start_date:%Y-%m-%d %H:%M}  {event.title}  {event_path(event)}")
    return 0


async def _follow(session: ViewerSession, args: argparse.Namespace) -> int:
    if not session.authenticated:
        print("Log in (API_KEY or SESSION_COOKIE) to follow accounts.")
        return 1

    item = await _resolve_target(session, args.target)
    reconciler = FollowStateReconciler(session)
    await reconciler.load()

    if args.command == "follow":
        result = await reconciler.follow(item, import_events=args.import_events)
    else:
        result = await reconciler.unfollow(item)

    if result.error:
        print(result.error)
    if result.imported is not None:
        print(f"{result.imported} events imported")
    print("Following" if result.followed else "Not following")
    return 0 if result.success else 1


COMMANDS = {
    "discover": _discover,
    "resolve": _resolve,
    "profile": _profile,
    "follow": _follow,
    "unfollow": _follow,
}


async def _run(args: argparse.Namespace) -> int:
    async with ApiClient.from_settings() as client:
        session = await ViewerSession.start(client)
        try:
            return await COMMANDS[args.command](session, args)
        except ClientError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="event-federation",
        description="Discover and follow accounts on a federated event calendar",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Discover command
    discover_parser = subparsers.add_parser(
        "discover", help="List local and remote accounts"
    )
    discover_parser.add_argument(
        "query",
        nargs="?",
        default="",
        help="Search text, or a remote @user@domain handle / URL to resolve",
    )
    discover_parser.add_argument(
        "--source",
        choices=[s.value for s in SourceFilter],
        default=SourceFilter.ALL.value,
    )
    discover_parser.add_argument(
        "--follow",
        choices=[f.value for f in FollowFilter],
        default=FollowFilter.ALL.value,
    )
    discover_parser.add_argument(
        "--sort",
        choices=[s.value for s in SortOrder],
        default=SortOrder.RECENT.value,
    )
    discover_parser.add_argument(
        "--show-hidden",
        action="store_true",
        help="Also list accounts known to have no events",
    )

    # Resolve command
    resolve_parser = subparsers.add_parser(
        "resolve", help="Resolve a remote handle or URL to an actor"
    )
    resolve_parser.add_argument("handle", help="@user@domain or profile URL")

    # Profile command
    profile_parser = subparsers.add_parser(
        "profile", help="Show a local account and its events"
    )
    profile_parser.add_argument("username")

    # Follow / unfollow commands
    for name in ("follow", "unfollow"):
        follow_parser = subparsers.add_parser(
            name, help=f"{name.capitalize()} a local username or remote handle/URL"
        )
        follow_parser.add_argument("target", help="username, @user@domain or URL")
        if name == "follow":
            follow_parser.add_argument(
                "--import-events",
                action="store_true",
                help="Import the remote actor's events after following",
            )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
