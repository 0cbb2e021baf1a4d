"""Self-refreshing in-memory cache for API endpoints.

* :class:`CachedClient` -- the public facade (register, read, stop).
* :class:`CacheStore` / :class:`CacheEntry` -- thread-safe value storage.
* :class:`RefreshScheduler` -- per-key background refresh tasks.
* :func:`resolve_schedule` -- turns a schedule expression into a
  :class:`FixedPeriod` or :class:`CronRules` policy.
"""

from cachedclient.cache.cached_client import REFRESH_TIMEOUT_S, CachedClient
from cachedclient.cache.schedule import (
    CronRules,
    FixedPeriod,
    parse_duration,
    resolve_schedule,
)
from cachedclient.cache.scheduler import RefreshScheduler
from cachedclient.cache.store import CacheEntry, CacheStore

__all__ = [
    "CachedClient",
    "CacheEntry",
    "CacheStore",
    "CronRules",
    "FixedPeriod",
    "REFRESH_TIMEOUT_S",
    "RefreshScheduler",
    "parse_duration",
    "resolve_schedule",
]
