"""Client configuration.

Configuration is loaded from environment variables using pydantic-settings.
Credentials (API key, session cookie) should be provided via environment
variables, not config files.

## Environment Variables

- API_BASE_URL: Origin of the calendar server (default: http://localhost:3000)
- API_KEY: Optional API key, sent as `Authorization: ApiKey <key>`
- SESSION_COOKIE: Optional session cookie value for cookie-based auth
- RESOLVE_DEBOUNCE_MS: Delay before a typed handle is resolved (default: 400)
- HIDE_ZERO_EVENT_ACCOUNTS: Hide accounts known to have no events (default: true)
- DEBUG: Enable debug logging in the CLI (default: false)

## Example .env file

```
API_BASE_URL=https://events.example.org
API_KEY=ecal_0123456789abcdef
```
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "event-federation"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    api_base_url: str = Field(
        default="http://localhost:3000",
        description="Origin of the calendar server (scheme://host[:port])",
    )
    api_path: str = "/api/v1"
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    user_agent: str = "event-federation/0.1.0"

    # Credentials
    api_key: str | None = None
    session_cookie_name: str = "everycal_session"
    session_cookie: str | None = None

    # Discover page
    resolve_debounce_ms: int = Field(default=400, ge=0, le=10_000)
    discover_list_limit: int = Field(default=100, ge=1, le=100)
    hide_zero_event_accounts: bool = True

    # Background staleness refresh of known remote actors
    refresh_actors_limit: int = Field(default=20, ge=1, le=50)
    refresh_actors_max_age_hours: int = Field(default=24, ge=1)

    # Profile page / event sidebar
    profile_upcoming_limit: int = Field(default=50, ge=1)
    profile_past_limit: int = Field(default=20, ge=1)
    suggested_events_limit: int = Field(default=5, ge=0)

    @field_validator("api_base_url", mode="before")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        """Require an http(s) origin and drop any trailing slash."""
        v = str(v).strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"api_base_url must start with http:// or https://, got '{v}'")
        return v.rstrip("/")

    @field_validator("api_path", mode="before")
    @classmethod
    def normalize_api_path(cls, v: str) -> str:
        """Ensure a single leading slash and no trailing slash."""
        v = "/" + str(v).strip().strip("/")
        return "" if v == "/" else v

    @property
    def resolve_debounce_seconds(self) -> float:
        return self.resolve_debounce_ms / 1000

    @property
    def has_credentials(self) -> bool:
        """Check if any credential (API key or session cookie) is configured."""
        return bool(self.api_key or self.session_cookie)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings.

    Settings are loaded once and cached. To reload, clear the cache:
    ```python
    get_settings.cache_clear()
    ```
    """
    return Settings()


def get_settings_uncached() -> Settings:
    """Get fresh settings without caching.

    Useful for testing when environment variables change.
    """
    return Settings()
