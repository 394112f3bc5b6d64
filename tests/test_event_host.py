"""Tests for the event host sidebar."""

from datetime import datetime, timezone

import pytest

from event_federation.models.event import CalEvent, EventAccount
from event_federation.models.profile import LocalProfile, RemoteProfile
from event_federation.views.event_host import (
    EventHostView,
    remote_host_actor,
    split_account_handle,
)

START = datetime(2026, 5, 1, 18, 0, tzinfo=timezone.utc)


def _remote_event(event_id: str, actor_uri: str | None = "https://mastodon.social/users/dave") -> CalEvent:
    return CalEvent(
        id=event_id,
        title=f"Film night {event_id}",
        start_date=START,
        source="remote",
        actor_uri=actor_uri,
        account=EventAccount(
            username="dave@mastodon.social",
            display_name="Dave",
            icon_url="https://mastodon.social/avatars/dave.png",
        ),
    )


def _local_event(event_id: str, account_id: str = "u-bob") -> CalEvent:
    return CalEvent(
        id=event_id,
        title=f"Ride {event_id}",
        start_date=START,
        source="local",
        account_id=account_id,
        account=EventAccount(username="bob", display_name="Bob's Bike Rides"),
    )


class TestSplitAccountHandle:
    def test_username_with_domain(self):
        assert split_account_handle(EventAccount(username="dave@mastodon.social")) == (
            "dave",
            "mastodon.social",
        )

    def test_explicit_domain_wins(self):
        account = EventAccount(username="dave@old.example", domain="new.example")
        assert split_account_handle(account) == ("dave", "new.example")

    def test_bare_username(self):
        assert split_account_handle(EventAccount(username="bob")) == ("bob", "")


class TestRemoteHostActor:
    """Tests for building the minimal remote host."""

    def test_uses_actor_uri(self):
        actor = remote_host_actor(_remote_event("e1"))
        assert actor.uri == "https://mastodon.social/users/dave"
        assert actor.username == "dave"
        assert actor.domain == "mastodon.social"
        assert actor.display_name == "Dave"
        assert actor.icon_url == "https://mastodon.social/avatars/dave.png"

    def test_synthesizes_uri_without_actor_uri(self):
        actor = remote_host_actor(_remote_event("e1", actor_uri=None))
        assert actor.uri == "https://mastodon.social/users/dave"

    def test_no_account(self):
        event = _remote_event("e1").model_copy(update={"account": None})
        assert remote_host_actor(event) is None


class TestEventHostView:
    """Tests for EventHostView."""

    @pytest.mark.asyncio
    async def test_local_host_and_suggestions(self, viewer_session, server, bob, settings):
        current = _local_event("ev-1")
        others = [_local_event(f"ev-{i}") for i in range(1, 8)]
        server.add("GET", "/users/bob", bob.to_payload())
        server.add("GET", "/users/bob/events", {"events": [e.to_payload() for e in others]})
        server.add("GET", "/users/alice/following", {"users": [bob.to_payload()]})

        view = EventHostView(viewer_session, current, settings)
        await view.load()

        assert isinstance(view.host, LocalProfile)
        assert view.host.user.id == "u-bob"
        assert [e.id for e in view.suggested_events] == ["ev-2", "ev-3", "ev-4", "ev-5", "ev-6"]
        request = server.calls("GET", "/users/bob/events")[0]
        assert request.url.params["limit"] == "6"
        assert view.is_host_followed
        assert not view.is_host_own
        # Only the local list is needed for a local host
        assert server.calls("GET", "/federation/following") == []

    @pytest.mark.asyncio
    async def test_remote_host_and_follow(self, viewer_session, server, settings):
        current = _remote_event("https://mastodon.social/events/1")
        server.add(
            "GET",
            "/federation/remote-events",
            {
                "events": [
                    current.to_payload(),
                    _remote_event("https://mastodon.social/events/2").to_payload(),
                    _remote_event(
                        "https://elsewhere.example/events/9",
                        actor_uri="https://elsewhere.example/users/zed",
                    ).to_payload(),
                ]
            },
        )
        server.add("GET", "/federation/following", {"actors": []})
        server.add("POST", "/federation/follow", {"ok": True, "delivered": True})

        view = EventHostView(viewer_session, current, settings)
        await view.load()

        assert isinstance(view.host, RemoteProfile)
        assert [e.id for e in view.suggested_events] == ["https://mastodon.social/events/2"]
        assert not view.is_host_followed

        result = await view.follow_host()

        assert result.success
        assert view.is_host_followed

    @pytest.mark.asyncio
    async def test_failed_suggestions_are_empty(self, anonymous_session, server, settings):
        current = _remote_event("https://mastodon.social/events/1")
        server.add("GET", "/federation/remote-events", {"error": "boom"}, status=500)

        view = EventHostView(anonymous_session, current, settings)
        await view.load()

        assert view.suggested_events == []
        assert view.host is not None
        assert server.calls("GET", "/federation/following") == []
