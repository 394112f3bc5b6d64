"""Federation endpoints (`/federation`).

Resolution of handles and URLs happens server-side: `search` may make the
server perform a WebFinger lookup and fetch the actor document before it
answers. Follow requests are delivered to the remote inbox by the server;
the `delivered` flag reports whether that delivery succeeded.
"""

from __future__ import annotations

from datetime import datetime

from event_federation.client.base import BaseApiClient, parse_model, parse_models
from event_federation.models.actor import RemoteActor
from event_federation.models.base import ApiModel
from event_federation.models.event import CalEvent


class RemoteFollowResponse(ApiModel):
    """Response of `POST /federation/follow`."""

    ok: bool = True
    delivered: bool = False


class FetchActorResponse(ApiModel):
    """Response of `POST /federation/fetch-actor` (event import)."""

    ok: bool = True
    imported: int = 0
    total: int = 0


class RefreshActorsResponse(ApiModel):
    """Response of `POST /federation/refresh-actors`."""

    refreshed: int = 0
    discovered: int | None = None

    @property
    def changed(self) -> bool:
        """True when the refresh touched or discovered any actor."""
        return self.refreshed > 0 or (self.discovered or 0) > 0


class FederationApi:
    """Remote actor discovery, follow edges and event import."""

    def __init__(self, http: BaseApiClient):
        self._http = http

    async def search(self, q: str) -> RemoteActor:
        """Resolve a handle or URL to a remote actor (`GET /federation/search`)."""
        data = await self._http.get("/federation/search", params={"q": q})
        return parse_model(RemoteActor, data, "actor")

    async def actors(
        self,
        domain: str | None = None,
        limit: int | None = None,
    ) -> list[RemoteActor]:
        """Remote actors known to the server, most recently fetched first."""
        data = await self._http.get(
            "/federation/actors", params={"domain": domain, "limit": limit}
        )
        return parse_models(RemoteActor, data, "actors")

    async def follow(self, actor_uri: str) -> RemoteFollowResponse:
        data = await self._http.post("/federation/follow", json={"actorUri": actor_uri})
        return parse_model(RemoteFollowResponse, data)

    async def unfollow(self, actor_uri: str) -> bool:
        data = await self._http.post("/federation/unfollow", json={"actorUri": actor_uri})
        return bool(data.get("ok", True))

    async def followed_actors(self) -> list[RemoteActor]:
        """Remote actors the viewer follows (`GET /federation/following`)."""
        data = await self._http.get("/federation/following")
        return parse_models(RemoteActor, data, "actors")

    async def fetch_actor(self, actor_uri: str) -> FetchActorResponse:
        """Import an actor's events from its outbox."""
        data = await self._http.post("/federation/fetch-actor", json={"actorUri": actor_uri})
        return parse_model(FetchActorResponse, data)

    async def remote_events(
        self,
        actor: str | None = None,
        from_: datetime | str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[CalEvent]:
        if isinstance(from_, datetime):
            from_ = from_.isoformat()
        data = await self._http.get(
            "/federation/remote-events",
            params={"actor": actor, "from": from_, "limit": limit, "offset": offset},
        )
        return parse_models(CalEvent, data, "events")

    async def refresh_actors(
        self,
        limit: int | None = None,
        max_age_hours: int | None = None,
    ) -> RefreshActorsResponse:
        """Ask the server to refetch stale actors and discover new ones."""
        data = await self._http.post(
            "/federation/refresh-actors",
            params={"limit": limit, "maxAgeHours": max_age_hours},
        )
        return parse_model(RefreshActorsResponse, data)
