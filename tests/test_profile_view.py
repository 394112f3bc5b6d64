"""Tests for the local profile view-model."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from event_federation.models.event import CalEvent
from event_federation.views.profile import ProfileView, group_events, merge_events

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def _event(event_id: str, start_offset_hours: float, duration_hours: float | None = None) -> CalEvent:
    start = NOW + timedelta(hours=start_offset_hours)
    end = start + timedelta(hours=duration_hours) if duration_hours is not None else None
    return CalEvent(id=event_id, title=event_id, start_date=start, end_date=end, source="local")


class TestGroupEvents:
    """Tests for splitting events around now."""

    def test_current_then_future_then_past(self):
        events = [
            _event("far-future", 48),
            _event("past-old", -72, 1),
            _event("running", -1, 3),
            _event("soon", 2),
            _event("past-recent", -5, 1),
        ]

        grouped = group_events(events, NOW)

        assert [e.id for e in grouped.upcoming] == ["running", "soon", "far-future"]
        assert [e.id for e in grouped.past] == ["past-recent", "past-old"]

    def test_naive_datetimes_are_utc(self):
        naive = CalEvent(id="naive", title="naive", start_date=datetime(2026, 3, 16, 9, 0))
        grouped = group_events([naive], NOW)
        assert [e.id for e in grouped.upcoming] == ["naive"]

    def test_event_without_end_ends_at_start(self):
        grouped = group_events([_event("just-started", -0.5)], NOW)
        assert [e.id for e in grouped.past] == ["just-started"]


class TestMergeEvents:
    def test_dedup_by_id(self):
        first = _event("a", 1)
        updated = first.model_copy(update={"title": "updated"})
        merged = merge_events([first, _event("b", 2)], [updated])
        assert [e.id for e in merged] == ["a", "b"]
        assert merged[0].title == "updated"


@pytest.fixture
def profile_routes(server, bob):
    upcoming = [_event("ride-1", 24).to_payload(), _event("ride-2", 48).to_payload()]
    past = [_event("ride-0", -24, 2).to_payload(), _event("ride-1", 24).to_payload()]

    def events(request: httpx.Request) -> httpx.Response:
        if "to" in request.url.params:
            return httpx.Response(200, json={"events": past})
        return httpx.Response(200, json={"events": upcoming})

    server.add("GET", "/users/bob", bob.to_payload())
    server.add_handler("GET", "/users/bob/events", events)
    return server


class TestProfileView:
    """Tests for ProfileView."""

    @pytest.mark.asyncio
    async def test_load(self, viewer_session, profile_routes, settings):
        view = ProfileView(viewer_session, "bob", settings)

        await view.load(now=NOW)

        assert view.profile.id == "u-bob"
        assert view.error is None
        assert sorted(e.id for e in view.events) == ["ride-0", "ride-1", "ride-2"]
        grouped = view.grouped(NOW)
        assert [e.id for e in grouped.upcoming] == ["ride-1", "ride-2"]
        assert [e.id for e in grouped.past] == ["ride-0"]

        past_request = next(
            r for r in profile_routes.calls("GET", "/users/bob/events") if "to" in r.url.params
        )
        assert past_request.url.params["sort"] == "desc"
        assert past_request.url.params["limit"] == "20"

    @pytest.mark.asyncio
    async def test_missing_user(self, viewer_session, server, settings):
        view = ProfileView(viewer_session, "nobody", settings)

        await view.load(now=NOW)

        assert view.profile is None
        assert view.error == "User not found."

    @pytest.mark.asyncio
    async def test_unreachable_server_is_not_reported_as_missing_user(
        self, viewer_session, server, settings
    ):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        server.add_handler("GET", "/users/bob", refuse)
        server.add("GET", "/users/bob/events", {"events": []})
        view = ProfileView(viewer_session, "bob", settings)

        await view.load(now=NOW)

        assert view.profile is None
        assert view.error.startswith("Could not reach server")

    @pytest.mark.asyncio
    async def test_own_profile_cannot_follow(self, viewer_session, server, alice, settings):
        server.add("GET", "/users/alice", alice.to_payload())
        server.add("GET", "/users/alice/events", {"events": []})
        view = ProfileView(viewer_session, "alice", settings)

        await view.load(now=NOW)

        assert view.is_own
        assert not view.can_act
        assert await view.toggle_follow() is False
        assert server.calls("POST", "/users/alice/follow") == []

    @pytest.mark.asyncio
    async def test_toggle_follow_reloads(self, viewer_session, profile_routes, settings):
        profile_routes.add("POST", "/users/bob/follow", {"ok": True, "following": True})
        view = ProfileView(viewer_session, "bob", settings)
        await view.load(now=NOW)

        assert await view.toggle_follow() is True

        assert len(profile_routes.calls("POST", "/users/bob/follow")) == 1
        assert len(profile_routes.calls("GET", "/users/bob")) == 2

    @pytest.mark.asyncio
    async def test_toggle_auto_repost_off(self, viewer_session, profile_routes, bob, settings):
        profile_routes.add("GET", "/users/bob", bob.model_copy(update={"auto_reposting": True}).to_payload())
        profile_routes.add("DELETE", "/users/bob/auto-repost", {"ok": True})
        view = ProfileView(viewer_session, "bob", settings)
        await view.load(now=NOW)

        assert await view.toggle_auto_repost() is True
        assert len(profile_routes.calls("DELETE", "/users/bob/auto-repost")) == 1

    @pytest.mark.asyncio
    async def test_anonymous_cannot_act(self, anonymous_session, profile_routes, settings):
        view = ProfileView(anonymous_session, "bob", settings)
        await view.load(now=NOW)

        assert view.profile is not None
        assert not view.can_act
        assert await view.toggle_auto_repost() is False
