"""cachedclient -- an HTTP client with self-refreshing cached endpoints.

The package has two layers:

* :class:`~cachedclient.client.Client` -- a thin wrapper around
  :class:`httpx.Client` (base URL, default headers, JSON bodies).
* :class:`~cachedclient.cache.CachedClient` -- a ``Client`` that keeps an
  in-memory copy of registered endpoints and refreshes them in the
  background on a fixed interval (``"@every 30s"``) or a cron schedule
  (``"*/5 * * * *"``).

Typical use::

    from cachedclient import CacheConfig, CachedClient

    with CachedClient("https://api.example.com") as client:
        client.setup_cached_endpoint(
            CacheConfig(path="/rates", cron_spec="@every 30s", expiration=60)
        )
        rates = client.get_cached_or_fetch("/rates")

Modules:
    models: Pydantic configuration models.
    config: Config file discovery and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes for the CLI.
    output: stdout/stderr formatting for the CLI.
    app: Typer application and console-script entry point.
"""

from cachedclient.cache import CachedClient
from cachedclient.client import Client
from cachedclient.exceptions import (
    CachedClientError,
    ConfigError,
    DecodeError,
    ExpiredError,
    FetchError,
    NotFoundError,
    RefreshError,
    ScheduleError,
)
from cachedclient.models import CacheConfig, ClientConfig, RequestConfig

__version__ = "0.1.0"

__all__ = [
    "CacheConfig",
    "CachedClient",
    "CachedClientError",
    "Client",
    "ClientConfig",
    "ConfigError",
    "DecodeError",
    "ExpiredError",
    "FetchError",
    "NotFoundError",
    "RefreshError",
    "RequestConfig",
    "ScheduleError",
    "__version__",
]
