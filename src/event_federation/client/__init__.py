"""REST API client for the calendar server.

## Usage

```python
from event_federation.client import ApiClient

async with ApiClient.from_settings() as client:
    actor = await client.federation.search("@alice@mastodon.social")
    users = await client.users.list(q="ali", limit=20)
```
"""

from __future__ import annotations

from typing import Any

import httpx

from event_federation.client.auth import AuthApi
from event_federation.client.base import (
    ApiError,
    AuthenticationError,
    BaseApiClient,
    ClientError,
    InvalidResponseError,
    RateLimitError,
    TransportError,
)
from event_federation.client.federation import (
    FederationApi,
    FetchActorResponse,
    RefreshActorsResponse,
    RemoteFollowResponse,
)
from event_federation.client.users import LocalFollowResponse, UsersApi
from event_federation.config import Settings, get_settings


class ApiClient(BaseApiClient):
    """API client grouping the `users`, `federation` and `auth` endpoints."""

    def __init__(self, base_url: str, **kwargs: Any):
        super().__init__(base_url, **kwargs)
        self.users = UsersApi(self)
        self.federation = FederationApi(self)
        self.auth = AuthApi(self)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> ApiClient:
        """Create a client configured from application settings."""
        settings = settings or get_settings()
        return cls(
            settings.api_base_url,
            api_path=settings.api_path,
            api_key=settings.api_key,
            session_cookie=settings.session_cookie,
            cookie_name=settings.session_cookie_name,
            timeout=settings.request_timeout_seconds,
            user_agent=settings.user_agent,
            transport=transport,
        )

    async def __aenter__(self) -> ApiClient:
        await super().__aenter__()
        return self


__all__ = [
    "ApiClient",
    "ClientError",
    "ApiError",
    "AuthenticationError",
    "RateLimitError",
    "TransportError",
    "InvalidResponseError",
    "RemoteFollowResponse",
    "FetchActorResponse",
    "RefreshActorsResponse",
    "LocalFollowResponse",
]
