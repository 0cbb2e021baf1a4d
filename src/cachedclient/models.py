"""Pydantic models shared across cachedclient.

This is the single source of truth for configuration shapes. The models
are plain data: they describe *what* to fetch and how often, while
:class:`~cachedclient.client.Client` and
:class:`~cachedclient.cache.CachedClient` decide *how*.

* :class:`RequestConfig` -- default request settings for a client.
* :class:`CacheConfig` -- one cached endpoint registration.
* :class:`ClientConfig` -- a complete client definition, as loaded from a
  config file by :func:`~cachedclient.config.resolve_config`.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class RequestConfig(BaseModel):
    """Default HTTP request settings applied to every call made by a client."""

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Headers sent with every request"
    )
    use_cookies: bool = Field(
        default=False,
        description="Keep cookies set by responses (session-based authentication)",
    )

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout must be positive")
        return value


class CacheConfig(BaseModel):
    """Configuration for one cached endpoint.

    ``cron_spec`` is either a 5-field crontab expression, a descriptor
    such as ``@hourly``, or ``@every <duration>`` with a compact duration
    (``"@every 30s"``, ``"@every 1h30m"``). ``expiration`` is the freshness
    window and accepts a :class:`~datetime.timedelta`, a number of seconds,
    or an ISO-8601 duration string.

    Example::

        CacheConfig(path="/status", cron_spec="@every 10s", expiration=30)
    """

    path: str = Field(description="API endpoint path, also the cache key")
    cron_spec: str = Field(description="Cron specification for background updates")
    expiration: timedelta = Field(description="How long a fetched value stays fresh")
    skip_initial_fetch: bool = Field(
        default=False, description="Do not fetch when the endpoint is registered"
    )

    @field_validator("expiration")
    @classmethod
    def _non_negative_expiration(cls, value: timedelta) -> timedelta:
        if value < timedelta(0):
            raise ValueError("expiration must not be negative")
        return value


class ClientConfig(BaseModel):
    """A complete client definition.

    Loaded from ``cachedclient.json`` / ``cachedclient.yaml`` or the user
    config file. ``endpoints`` are registered automatically by
    :meth:`~cachedclient.cache.CachedClient.from_config`.
    """

    base_url: str = Field(default="", description="Base URL prepended to every path")
    request: RequestConfig = Field(default_factory=RequestConfig)
    endpoints: list[CacheConfig] = Field(default_factory=list)
    timezone: Optional[str] = Field(
        default=None,
        description="IANA timezone for cron schedules (default: local time)",
    )
