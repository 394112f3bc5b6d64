"""Base HTTP client for the calendar server's REST API.

## Transport

All requests go to `{api_base_url}{api_path}{path}` with JSON bodies and
JSON responses. Requests are credentialed in one of two ways:

- Session cookie (browser-style), sent on every request
- API key override for non-browser callers: `Authorization: ApiKey <key>`

## Error Mapping

| Condition | Exception |
|-----------|-----------|
| Network failure / timeout | `TransportError` |
| 401 / 403 | `AuthenticationError` |
| 429 | `RateLimitError` (with `retry_after` when sent) |
| Other non-2xx | `ApiError` |
| 2xx with a malformed body | `InvalidResponseError` |

Non-2xx responses carry a structured body `{"error": "..."}`. The `error`
field becomes the exception message; when the body is not JSON the HTTP
reason phrase is used instead.

No request is retried automatically. A failed call is surfaced to the
caller, which decides whether to degrade or show the message.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Request failed"
INVALID_RESPONSE_MESSAGE = "Invalid response"

ModelT = TypeVar("ModelT", bound=BaseModel)


class ClientError(Exception):
    """Base exception for API client errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_body = response_body


class TransportError(ClientError):
    """Raised when the server could not be reached."""

    pass


class ApiError(ClientError):
    """Raised when the server answers with a non-2xx status."""

    def __init__(
        self,
        status_code: int,
        message: str,
        response_body: str | None = None,
    ):
        super().__init__(message, status_code=status_code, response_body=response_body)


class AuthenticationError(ApiError):
    """Raised when the request is not authenticated or not allowed."""

    pass


class RateLimitError(ApiError):
    """Raised when the server rate limit is exceeded."""

    def __init__(
        self,
        message: str,
        retry_after: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(429, message, response_body=response_body)
        self.retry_after = retry_after


class InvalidResponseError(ApiError):
    """Raised when a successful response body does not have the expected shape."""

    def __init__(
        self,
        message: str = INVALID_RESPONSE_MESSAGE,
        status_code: int = 200,
        response_body: str | None = None,
    ):
        super().__init__(status_code, message, response_body=response_body)


def parse_model(model: type[ModelT], data: Any, key: str | None = None) -> ModelT:
    """Validate `data` (or `data[key]`) as `model`.

    Raises:
        InvalidResponseError: If the payload is missing or malformed
    """
    try:
        payload = data[key] if key is not None else data
        return model.model_validate(payload)
    except (KeyError, TypeError, ValidationError) as e:
        logger.debug(f"Malformed {model.__name__} payload: {e}")
        raise InvalidResponseError(response_body=repr(data)) from e


def parse_models(model: type[ModelT], data: Any, key: str) -> list[ModelT]:
    """Validate the list under `data[key]`; a missing key is an empty list."""
    try:
        return [model.model_validate(item) for item in data.get(key) or []]
    except (AttributeError, TypeError, ValidationError) as e:
        logger.debug(f"Malformed {model.__name__} list: {e}")
        raise InvalidResponseError(response_body=repr(data)) from e


def _error_message(response: httpx.Response) -> str:
    """Extract the `{error}` field, falling back to the reason phrase."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.reason_phrase or GENERIC_ERROR_MESSAGE


def _clean_params(params: dict[str, Any] | None) -> dict[str, str] | None:
    """Drop `None` values and stringify the rest, like URLSearchParams."""
    if not params:
        return None
    cleaned: dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            cleaned[key] = "true" if value else "false"
        else:
            cleaned[key] = str(value)
    return cleaned or None


class BaseApiClient:
    """Thin async JSON client over `httpx.AsyncClient`.

    Example:
        ```python
        async with BaseApiClient("https://events.example.org") as client:
            data = await client.request("GET", "/users", params={"limit": 10})
        ```
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_path: str = "/api/v1",
        api_key: str | None = None,
        session_cookie: str | None = None,
        cookie_name: str = "everycal_session",
        timeout: float = 30.0,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Server origin, e.g. `https://events.example.org`
            api_path: Path prefix of the API
            api_key: Optional API key for non-browser callers
            session_cookie: Optional session cookie value
            cookie_name: Name of the session cookie
            timeout: Request timeout in seconds
            user_agent: User-Agent string for requests
            transport: Custom httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.api_path = api_path
        self.api_key = api_key
        self.session_cookie = session_cookie
        self.cookie_name = cookie_name
        self.timeout = timeout
        self.user_agent = user_agent or "event-federation/0.1.0"
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> BaseApiClient:
        """Enter async context manager."""
        self._get_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        await self.aclose()

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            cookies = {self.cookie_name: self.session_cookie} if self.session_cookie else None
            self._client = httpx.AsyncClient(
                base_url=f"{self.base_url}{self.api_path}",
                timeout=self.timeout,
                cookies=cookies,
                transport=self._transport,
            )
        return self._client

    def _get_default_headers(self) -> dict[str, str]:
        """Get default headers for requests."""
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
            # Never serve stale counts (e.g. a profile's event count)
            "Cache-Control": "no-store",
        }
        if self.api_key:
            headers["Authorization"] = f"ApiKey {self.api_key}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Send a request and decode the JSON response.

        Args:
            method: HTTP method
            path: Path below the API prefix, e.g. `/federation/search`
            params: Query parameters; `None` values are omitted
            json: JSON body

        Returns:
            Decoded JSON body (empty dict for an empty body)

        Raises:
            TransportError: If the server could not be reached
            ApiError: If the server answered with a non-2xx status
        """
        client = self._get_client()

        try:
            response = await client.request(
                method,
                path,
                params=_clean_params(params),
                json=json,
                headers=self._get_default_headers(),
            )
        except httpx.TransportError as e:
            logger.debug(f"{method} {path} failed: {e!r}")
            raise TransportError(f"Could not reach server: {e}") from e

        if response.status_code >= 400:
            message = _error_message(response)
            logger.debug(f"{method} {path} -> {response.status_code}: {message}")

            if response.status_code == 429:
                retry_after = response.headers.get("Retry-After")
                raise RateLimitError(
                    message,
                    retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
                    response_body=response.text,
                )
            if response.status_code in (401, 403):
                raise AuthenticationError(
                    response.status_code, message, response_body=response.text
                )
            raise ApiError(response.status_code, message, response_body=response.text)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise InvalidResponseError(
                "Invalid JSON in response",
                status_code=response.status_code,
                response_body=response.text,
            ) from e

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(
        self,
        path: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        return await self.request("POST", path, params=params, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)
