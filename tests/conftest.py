"""Pytest fixtures for the federation view-model tests.

This module provides test fixtures that ensure:
1. No real server is contacted (all HTTP goes through httpx.MockTransport)
2. Isolated test environment with controlled configuration
3. Ready-made local users, remote actors and viewer sessions
"""

import os
from typing import Any, Callable

import httpx
import pytest
import pytest_asyncio

# Set test environment BEFORE importing application modules
os.environ.setdefault("API_BASE_URL", "http://calendar.test")
os.environ.setdefault("API_KEY", "test-api-key")
os.environ.setdefault("RESOLVE_DEBOUNCE_MS", "10")
os.environ.setdefault("DEBUG", "true")

from event_federation.auth.session import ViewerSession
from event_federation.client import ApiClient
from event_federation.config import Settings
from event_federation.models.actor import RemoteActor
from event_federation.models.profile import LocalProfile, RemoteProfile
from event_federation.models.user import User

API_PREFIX = "/api/v1"


class FakeServer:
    """In-memory stand-in for the calendar server's REST API.

    Routes are keyed by (method, path) with the API prefix stripped. A route
    is either a `(status, json_body)` tuple or a handler taking the request
    and returning an `httpx.Response` (sync or async).
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], Any] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, body: Any = None, status: int = 200) -> None:
        self.routes[(method, path)] = (status, body if body is not None else {})

    def add_handler(self, method: str, path: str, handler: Callable[[httpx.Request], Any]) -> None:
        self.routes[(method, path)] = handler

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path == f"{API_PREFIX}{path}"
        ]

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix(API_PREFIX)
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"error": f"No route for {request.method} {path}"})
        if callable(route):
            response = route(request)
            if hasattr(response, "__await__"):
                response = await response
            return response
        status, body = route
        return httpx.Response(status, json=body)


# =============================================================================
# Configuration
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset settings cache before each test to ensure clean state."""
    from event_federation.config import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Settings with a short debounce so resolver tests run fast."""
    return Settings(api_base_url="http://calendar.test", resolve_debounce_ms=10)


# =============================================================================
# HTTP
# =============================================================================


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest_asyncio.fixture
async def client(server: FakeServer):
    """API client wired to the fake server."""
    api = ApiClient(
        "http://calendar.test",
        api_key="test-api-key",
        transport=httpx.MockTransport(server.handle),
    )
    yield api
    await api.aclose()


# =============================================================================
# Accounts
# =============================================================================


@pytest.fixture
def alice() -> User:
    """The logged-in viewer."""
    return User(
        id="u-alice",
        username="alice",
        display_name="Alice Example",
        followers_count=4,
        following_count=2,
        events_count=7,
    )


@pytest.fixture
def bob() -> User:
    return User(
        id="u-bob",
        username="bob",
        display_name="Bob's Bike Rides",
        bio="<p>Weekly rides around <b>Vienna</b></p>",
        followers_count=10,
        following_count=1,
        events_count=3,
    )


@pytest.fixture
def carol() -> User:
    """A local account known to have no events."""
    return User(id="u-carol", username="carol", followers_count=0, events_count=0)


@pytest.fixture
def dave() -> RemoteActor:
    return RemoteActor(
        uri="https://mastodon.social/users/dave",
        username="dave",
        domain="mastodon.social",
        display_name="Dave",
        summary="<p>Film nights &amp; more</p>",
        icon_url="https://mastodon.social/avatars/dave.png",
        events_count=5,
        followers_count=120,
    )


@pytest.fixture
def erin() -> RemoteActor:
    """A remote actor whose counts are unknown."""
    return RemoteActor(
        uri="https://gancio.example/federation/u/erin",
        username="erin",
        domain="gancio.example",
        display_name="",
    )


@pytest.fixture
def local_item(bob: User) -> LocalProfile:
    return LocalProfile(user=bob)


@pytest.fixture
def remote_item(dave: RemoteActor) -> RemoteProfile:
    return RemoteProfile(actor=dave)


# =============================================================================
# Sessions
# =============================================================================


@pytest.fixture
def viewer_session(client: ApiClient, alice: User) -> ViewerSession:
    """Session with alice logged in."""
    return ViewerSession(client, viewer=alice)


@pytest.fixture
def anonymous_session(client: ApiClient) -> ViewerSession:
    return ViewerSession(client)


@pytest.fixture
def discover_routes(server: FakeServer, alice, bob, carol, dave, erin) -> FakeServer:
    """Fake server populated with the lists the Discover page loads."""
    server.add("GET", "/users", {"users": [u.to_payload() for u in (alice, bob, carol)]})
    server.add("GET", "/federation/actors", {"actors": [dave.to_payload(), erin.to_payload()]})
    server.add("GET", "/users/alice/following", {"users": [bob.to_payload()]})
    server.add("GET", "/federation/following", {"actors": [dave.to_payload()]})
    server.add("POST", "/federation/refresh-actors", {"refreshed": 0, "discovered": 0})
    return server
