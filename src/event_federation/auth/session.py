"""Viewer session context.

The session is an explicit object passed to every view-model component
instead of ambient global state. It is created once at client start,
holds the API client and the authenticated viewer (if any), and is torn
down on logout.

## Lifecycle

```python
async with ApiClient.from_settings() as client:
    session = await ViewerSession.start(client)
    if session.authenticated:
        ...
    await session.logout()
```

Listeners registered with `add_listener()` are awaited whenever the viewer
identity changes (login, logout, refresh returning a different account).
Follow state depends on the viewer, so reconcilers subscribe here.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from event_federation.client import ApiClient
from event_federation.client.base import AuthenticationError, ClientError
from event_federation.models.user import User

logger = logging.getLogger(__name__)

ViewerListener = Callable[[User | None], Awaitable[None]]


class ViewerSession:
    """The running client's session: API client plus current viewer."""

    def __init__(self, client: ApiClient, viewer: User | None = None):
        self.client = client
        self._viewer = viewer
        self._listeners: list[ViewerListener] = []

    @classmethod
    async def start(cls, client: ApiClient) -> ViewerSession:
        """Create a session and look up the viewer behind the credentials."""
        session = cls(client)
        await session.refresh_user()
        return session

    @property
    def viewer(self) -> User | None:
        return self._viewer

    @property
    def authenticated(self) -> bool:
        return self._viewer is not None

    @property
    def viewer_id(self) -> str | None:
        return self._viewer.id if self._viewer else None

    @property
    def viewer_username(self) -> str | None:
        return self._viewer.username if self._viewer else None

    def add_listener(self, listener: ViewerListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ViewerListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def _set_viewer(self, viewer: User | None) -> None:
        previous_id = self.viewer_id
        self._viewer = viewer
        new_id = self.viewer_id
        if previous_id == new_id:
            return

        logger.debug(f"Viewer changed: {previous_id} -> {new_id}")
        for listener in list(self._listeners):
            await listener(viewer)

    async def refresh_user(self) -> User | None:
        """Re-read the viewer from `GET /auth/me`.

        Missing or rejected credentials leave the session anonymous. Other
        failures also degrade to anonymous and are logged.
        """
        try:
            viewer = await self.client.auth.me()
        except AuthenticationError:
            viewer = None
        except ClientError as e:
            logger.warning(f"Could not load viewer: {e}")
            viewer = None

        await self._set_viewer(viewer)
        return viewer

    async def login(self, username: str, password: str) -> User:
        """Log in with username and password.

        Raises:
            ApiError: If the credentials are rejected
        """
        viewer = await self.client.auth.login(username, password)
        await self._set_viewer(viewer)
        return viewer

    async def logout(self) -> None:
        """Log out; the local session is cleared even if the call fails."""
        try:
            await self.client.auth.logout()
        except ClientError as e:
            logger.debug(f"Logout request failed: {e}")
        await self._set_viewer(None)
