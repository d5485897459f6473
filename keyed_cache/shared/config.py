"""
Configuration management for the keyed async cache.

Two layers, both pydantic:
- CacheConfig: immutable per-instance configuration handed to a cache
- CacheSettings: process defaults loaded from KEYED_CACHE_* environment
  variables (and an optional .env file) via pydantic-settings
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from keyed_cache.domain.models import TtlAfter

NEVER: Literal["never"] = "never"
FOREVER: Literal["forever"] = "forever"

CheckInterval = Annotated[float, Field(gt=0)] | Literal["never"]
Ttl = Annotated[float, Field(ge=0)] | Literal["forever"]


async def reject_with_error(error: Exception, key: str, loader: Any) -> Any:
    """Default reject policy: fail with the loader's own exception."""
    raise error


def ignore_removal(key: str, result: "asyncio.Future[Any]") -> None:
    """Default remove hook: do nothing."""
    return None


def _normalize_sentinel(value: Any) -> Any:
    if isinstance(value, str) and value.strip().lower() in (NEVER, FOREVER):
        return value.strip().lower()
    return value


class CacheConfig(BaseModel):
    """
    Immutable configuration for a KeyedAsyncCache.

    Attributes:
        check_interval: Seconds between background sweeps, or "never"
        ttl: Seconds an entry stays fresh, or "forever"
        ttl_after: Measure ttl from last access (ACCESS) or creation (WRITE)
        remove_rejected: Drop an entry as soon as its load fails
        on_reject: Fallback policy ``(error, key, loader) -> awaitable``
        on_remove: Hook ``(key, future)`` called before an entry is evicted
    """

    check_interval: CheckInterval = Field(
        default=NEVER, description="Seconds between background sweeps, or 'never'"
    )
    ttl: Ttl = Field(default=FOREVER, description="Entry time-to-live in seconds, or 'forever'")
    ttl_after: TtlAfter = Field(
        default=TtlAfter.ACCESS, description="Timestamp the ttl is measured from"
    )
    remove_rejected: bool = Field(
        default=True, description="Delete an entry immediately when its load fails"
    )
    on_reject: Callable[[Exception, str, Any], Awaitable[Any]] = Field(
        default=reject_with_error, description="Fallback policy for failed loads"
    )
    on_remove: Callable[[str, Any], None] = Field(
        default=ignore_removal, description="Hook invoked before eviction"
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("check_interval", "ttl", mode="before")
    @classmethod
    def _lowercase_sentinels(cls, value: Any) -> Any:
        return _normalize_sentinel(value)

    @property
    def expires(self) -> bool:
        """Whether entries can ever become stale."""
        return self.ttl != FOREVER

    @property
    def sweeps(self) -> bool:
        """Whether a periodic sweep should run."""
        return self.check_interval != NEVER and self.expires

    def with_options(self, **options: Any) -> "CacheConfig":
        """Return a validated copy with ``options`` overriding this configuration."""
        if not options:
            return self
        return CacheConfig(**{**dict(self), **options})


class CacheSettings(BaseSettings):
    """
    Process-wide cache defaults loaded from environment variables.

    Environment Variables:
        KEYED_CACHE_CHECK_INTERVAL: Seconds between sweeps or "never" (default: never)
        KEYED_CACHE_TTL: Entry ttl in seconds or "forever" (default: forever)
        KEYED_CACHE_TTL_AFTER: ACCESS or WRITE (default: ACCESS)
        KEYED_CACHE_REMOVE_REJECTED: Drop failed loads (default: true)
        KEYED_CACHE_LOG_LEVEL: Logging level for configure_logging (default: INFO)
    """

    check_interval: CheckInterval = Field(default=NEVER)
    ttl: Ttl = Field(default=FOREVER)
    ttl_after: TtlAfter = Field(default=TtlAfter.ACCESS)
    remove_rejected: bool = Field(default=True)
    log_level: str = Field(
        default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_prefix="KEYED_CACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("check_interval", "ttl", mode="before")
    @classmethod
    def _lowercase_sentinels(cls, value: Any) -> Any:
        return _normalize_sentinel(value)

    @field_validator("ttl_after", mode="before")
    @classmethod
    def _uppercase_ttl_after(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    def cache_config(self, **options: Any) -> CacheConfig:
        """Build a CacheConfig from these settings; ``options`` win over settings."""
        return CacheConfig(
            **{
                "check_interval": self.check_interval,
                "ttl": self.ttl,
                "ttl_after": self.ttl_after,
                "remove_rejected": self.remove_rejected,
                **options,
            }
        )


_settings: CacheSettings | None = None


def get_settings() -> CacheSettings:
    """
    Get the singleton CacheSettings instance.

    Returns:
        CacheSettings: The process-wide settings, read from the environment once
    """
    global _settings
    if _settings is None:
        _settings = CacheSettings()
    return _settings
