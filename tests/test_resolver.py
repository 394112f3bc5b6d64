"""Tests for the debounced remote-handle resolver."""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from event_federation.federation.resolver import (
    FALLBACK_ERROR_MESSAGE,
    DebouncedResolver,
    ResolverState,
)

DELAY = 0.01


class TestPreconditions:
    """Tests for inputs that never reach the network."""

    @pytest.mark.asyncio
    async def test_anonymous_handle_needs_login(self, anonymous_session, server):
        resolver = DebouncedResolver(anonymous_session, delay=DELAY)

        resolver.update("user@example.org")
        await asyncio.sleep(DELAY * 3)

        assert resolver.state is ResolverState.IDLE
        assert resolver.needs_login is True
        assert server.requests == []

    @pytest.mark.asyncio
    async def test_plain_text_stays_idle(self, viewer_session, server):
        resolver = DebouncedResolver(viewer_session, delay=DELAY)

        resolver.update("bike rides")
        await resolver.wait()

        assert resolver.state is ResolverState.IDLE
        assert resolver.needs_login is False
        assert server.requests == []

    @pytest.mark.asyncio
    async def test_clearing_input_clears_result(self, viewer_session, server, dave):
        server.add("GET", "/federation/search", {"actor": dave.to_payload()})
        resolver = DebouncedResolver(viewer_session, delay=DELAY)
        resolver.update("@dave@mastodon.social")
        await resolver.wait()

        resolver.update("")

        assert resolver.result is None
        assert resolver.state is ResolverState.IDLE


class TestResolution:
    """Tests for debounced resolution."""

    @pytest.mark.asyncio
    async def test_url_resolves_once(self, viewer_session, server, dave):
        server.add("GET", "/federation/search", {"actor": dave.to_payload()})
        resolver = DebouncedResolver(viewer_session, delay=DELAY)

        resolver.update("https://mastodon.social/@dave")
        assert resolver.state is ResolverState.DEBOUNCING
        assert resolver.searching
        await resolver.wait()

        assert resolver.state is ResolverState.RESOLVED
        assert resolver.result.uri == dave.uri
        calls = server.calls("GET", "/federation/search")
        assert len(calls) == 1
        assert calls[0].url.params["q"] == "https://mastodon.social/@dave"

    @pytest.mark.asyncio
    async def test_rapid_typing_makes_one_request(self, viewer_session, server, dave):
        server.add("GET", "/federation/search", {"actor": dave.to_payload()})
        resolver = DebouncedResolver(viewer_session, delay=DELAY)

        for text in ("@dave@m", "@dave@mast", "@dave@mastodon.social"):
            resolver.update(text)
        await resolver.wait()

        calls = server.calls("GET", "/federation/search")
        assert len(calls) == 1
        assert calls[0].url.params["q"] == "@dave@mastodon.social"

    @pytest.mark.asyncio
    async def test_on_resolved_callback(self, viewer_session, server, dave):
        server.add("GET", "/federation/search", {"actor": dave.to_payload()})
        on_resolved = AsyncMock()

        resolver = DebouncedResolver(viewer_session, delay=DELAY, on_resolved=on_resolved)
        resolver.update("dave@mastodon.social")
        await resolver.wait()

        on_resolved.assert_awaited_once()
        assert on_resolved.await_args.args[0].uri == dave.uri

    @pytest.mark.asyncio
    async def test_failure_does_not_call_on_resolved(self, viewer_session, server):
        server.add("GET", "/federation/search", {"error": "Actor not found"}, status=404)
        on_resolved = AsyncMock()

        resolver = DebouncedResolver(viewer_session, delay=DELAY, on_resolved=on_resolved)
        resolver.update("ghost@nowhere.example")
        await resolver.wait()

        on_resolved.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_server_message_shown_verbatim(self, viewer_session, server):
        server.add(
            "GET",
            "/federation/search",
            {"error": "Could not find actor at remote server"},
            status=404,
        )
        resolver = DebouncedResolver(viewer_session, delay=DELAY)

        resolver.update("ghost@nowhere.example")
        await resolver.wait()

        assert resolver.state is ResolverState.FAILED
        assert resolver.error == "Could not find actor at remote server"
        assert resolver.result is None

    @pytest.mark.asyncio
    async def test_transport_failure_uses_fallback(self, viewer_session, server):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        server.add_handler("GET", "/federation/search", refuse)
        resolver = DebouncedResolver(viewer_session, delay=DELAY)

        resolver.update("ghost@nowhere.example")
        await resolver.wait()

        assert resolver.state is ResolverState.FAILED
        assert resolver.error == FALLBACK_ERROR_MESSAGE


    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [{"actor": {"username": "x"}}, {"ok": True}, {"actor": "not-an-object"}],
    )
    async def test_malformed_actor_fails_with_fallback(self, viewer_session, server, body):
        server.add("GET", "/federation/search", body)
        resolver = DebouncedResolver(viewer_session, delay=DELAY)

        resolver.update("ghost@nowhere.example")
        await resolver.wait()

        assert resolver.state is ResolverState.FAILED
        assert resolver.error == FALLBACK_ERROR_MESSAGE
        assert not resolver.searching


class TestSupersession:
    """Tests for stale results."""

    @pytest.mark.asyncio
    async def test_newer_input_wins_over_slow_lookup(self, viewer_session, server, dave, erin):
        first_started = asyncio.Event()

        async def search(request: httpx.Request) -> httpx.Response:
            q = request.url.params["q"]
            if q == "dave@mastodon.social":
                first_started.set()
                await asyncio.sleep(1)
                return httpx.Response(200, json={"actor": dave.to_payload()})
            return httpx.Response(200, json={"actor": erin.to_payload()})

        server.add_handler("GET", "/federation/search", search)
        resolver = DebouncedResolver(viewer_session, delay=DELAY)

        resolver.update("dave@mastodon.social")
        await first_started.wait()
        assert resolver.state is ResolverState.RESOLVING

        resolver.update("erin@gancio.example")
        await resolver.wait()

        assert resolver.state is ResolverState.RESOLVED
        assert resolver.result.uri == erin.uri
        assert resolver.generation == 2

    @pytest.mark.asyncio
    async def test_cancel_returns_to_idle(self, viewer_session, server):
        resolver = DebouncedResolver(viewer_session, delay=1)

        resolver.update("dave@mastodon.social")
        await resolver.aclose()

        assert resolver.state is ResolverState.IDLE
        assert server.requests == []
