"""Session endpoints (`/auth`)."""

from __future__ import annotations

from event_federation.client.base import BaseApiClient, parse_model
from event_federation.models.user import User


class AuthApi:
    def __init__(self, http: BaseApiClient):
        self._http = http

    async def me(self) -> User:
        """The account behind the current credentials."""
        data = await self._http.get("/auth/me")
        return parse_model(User, data)

    async def login(self, username: str, password: str) -> User:
        data = await self._http.post(
            "/auth/login", json={"username": username, "password": password}
        )
        return parse_model(User, data, "user")

    async def logout(self) -> None:
        await self._http.post("/auth/logout")
