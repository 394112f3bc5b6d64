"""Local account endpoints (`/users`)."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from urllib.parse import quote

from event_federation.client.base import BaseApiClient, parse_model, parse_models
from event_federation.models.base import ApiModel
from event_federation.models.event import CalEvent
from event_federation.models.user import User


class LocalFollowResponse(ApiModel):
    """Response of `POST /users/:username/follow` and `/unfollow`."""

    ok: bool = True
    following: bool = False


class AutoRepostResponse(ApiModel):
    ok: bool = True
    auto_reposting: bool = False


def _user_path(username: str, suffix: str = "") -> str:
    return f"/users/{quote(username, safe='')}{suffix}"


def _isoformat(value: datetime | str | None) -> str | None:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class UsersApi:
    """Local user search, profiles, events and follow edges."""

    def __init__(self, http: BaseApiClient):
        self._http = http

    async def list(
        self,
        q: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[User]:
        """Search or list local users (`GET /users?q=&limit=`)."""
        data = await self._http.get("/users", params={"q": q, "limit": limit, "offset": offset})
        return parse_models(User, data, "users")

    async def get(self, username: str) -> User:
        data = await self._http.get(_user_path(username))
        return parse_model(User, data)

    async def events(
        self,
        username: str,
        from_: datetime | str | None = None,
        to: datetime | str | None = None,
        limit: int | None = None,
        sort: Literal["asc", "desc"] | None = None,
    ) -> list[CalEvent]:
        """List a user's events (`GET /users/:username/events`)."""
        data = await self._http.get(
            _user_path(username, "/events"),
            params={"from": _isoformat(from_), "to": _isoformat(to), "limit": limit, "sort": sort},
        )
        return parse_models(CalEvent, data, "events")

    async def follow(self, username: str) -> LocalFollowResponse:
        data = await self._http.post(_user_path(username, "/follow"))
        return parse_model(LocalFollowResponse, data)

    async def unfollow(self, username: str) -> LocalFollowResponse:
        data = await self._http.post(_user_path(username, "/unfollow"))
        return parse_model(LocalFollowResponse, data)

    async def auto_repost(self, username: str) -> AutoRepostResponse:
        data = await self._http.post(_user_path(username, "/auto-repost"))
        return parse_model(AutoRepostResponse, data)

    async def remove_auto_repost(self, username: str) -> AutoRepostResponse:
        data = await self._http.delete(_user_path(username, "/auto-repost"))
        return parse_model(AutoRepostResponse, data)

    async def followers(self, username: str) -> list[User]:
        data = await self._http.get(_user_path(username, "/followers"))
        return parse_models(User, data, "users")

    async def following(self, username: str) -> list[User]:
        """Local accounts that `username` follows."""
        data = await self._http.get(_user_path(username, "/following"))
        return parse_models(User, data, "users")
