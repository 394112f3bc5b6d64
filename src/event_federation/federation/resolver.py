"""Debounced remote-handle resolver.

Turns search input into at most one `GET /federation/search` call once the
input has been stable for the debounce delay.

## States

```
IDLE -> DEBOUNCING -> RESOLVING -> RESOLVED
                                -> FAILED
```

Every `update()` supersedes the previous attempt: the pending debounce timer
and any in-flight resolution task are cancelled and the generation counter
is bumped. A result that arrives for an older generation is discarded, so a
slow stale lookup can never overwrite a newer one.

## Preconditions

Resolving remote identities requires an authenticated viewer. Handle-like
input from an anonymous viewer stays `IDLE` without any network call and
sets `needs_login` so the caller can prompt for login instead of showing a
spinner.

Failures are not retried. The user re-triggers resolution by editing the
input, which restarts the debounce.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable

from event_federation.auth.session import ViewerSession
from event_federation.client.base import ApiError, ClientError, InvalidResponseError
from event_federation.federation.classifier import looks_like_remote_handle
from event_federation.models.actor import RemoteActor

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.4
FALLBACK_ERROR_MESSAGE = "Could not resolve account"

ResolvedCallback = Callable[[RemoteActor], Awaitable[None]]


class ResolverState(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    FAILED = "failed"


class DebouncedResolver:
    """Resolve handle-like input to a remote actor after a debounce delay.

    Example:
        ```python
        resolver = DebouncedResolver(session, delay=0.4, on_resolved=view.reload)
        resolver.update("@alice@mastodon.social")
        await resolver.wait()
        if resolver.state is ResolverState.RESOLVED:
            print(resolver.result.uri)
        ```
    """

    def __init__(
        self,
        session: ViewerSession,
        *,
        delay: float = DEFAULT_DEBOUNCE_SECONDS,
        on_resolved: ResolvedCallback | None = None,
    ):
        self.session = session
        self.delay = delay
        self.on_resolved = on_resolved

        self.state = ResolverState.IDLE
        self.query = ""
        self.result: RemoteActor | None = None
        self.error: str | None = None
        self.needs_login = False

        self._generation = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def searching(self) -> bool:
        """True while a lookup is pending or in flight."""
        return self.state in (ResolverState.DEBOUNCING, ResolverState.RESOLVING)

    def update(self, text: str) -> None:
        """Handle an input change.

        Must be called from within a running event loop when the input is
        handle-like and a viewer is logged in, since it schedules a task.
        """
        self._cancel_task()
        self._generation += 1
        trimmed = (text or "").strip()
        self.query = trimmed

        handle_like = looks_like_remote_handle(trimmed)
        self.needs_login = handle_like and not self.session.authenticated

        if not handle_like or not self.session.authenticated:
            self.result = None
            self.error = None
            self.state = ResolverState.IDLE
            return

        self.state = ResolverState.DEBOUNCING
        self._task = asyncio.get_running_loop().create_task(
            self._run(self._generation, trimmed)
        )

    async def _run(self, generation: int, query: str) -> None:
        await asyncio.sleep(self.delay)
        if generation != self._generation:
            return

        self.state = ResolverState.RESOLVING
        self.result = None
        self.error = None
        logger.debug(f"Resolving {query!r} (generation {generation})")

        try:
            actor = await self.session.client.federation.search(query)
        except ClientError as e:
            if generation != self._generation:
                return
            self.error = _failure_message(e)
            self.state = ResolverState.FAILED
            logger.info(f"Could not resolve {query!r}: {self.error}")
            return

        if generation != self._generation:
            logger.debug(f"Discarding stale resolution of {query!r}")
            return

        self.result = actor
        self.state = ResolverState.RESOLVED

        if self.on_resolved is not None:
            await self.on_resolved(actor)

    def _cancel_task(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self) -> None:
        """Wait for the current attempt to settle (no-op when idle)."""
        task = self._task
        if task is None:
            return
        # asyncio.wait does not propagate the task's own cancellation
        await asyncio.wait({task})
        if not task.cancelled() and task.exception() is not None:
            raise task.exception()

    def cancel(self) -> None:
        """Drop any pending or in-flight attempt and return to IDLE."""
        self._cancel_task()
        self._generation += 1
        if self.searching:
            self.state = ResolverState.IDLE

    async def aclose(self) -> None:
        task = self._task
        self.cancel()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)


def _failure_message(error: ClientError) -> str:
    """Server error text verbatim when available, else a generic message."""
    if isinstance(error, InvalidResponseError):
        return FALLBACK_ERROR_MESSAGE
    if isinstance(error, ApiError) and error.message:
        return error.message
    return FALLBACK_ERROR_MESSAGE
