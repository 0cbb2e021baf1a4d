"""Self-refreshing cache of API endpoints.

:class:`CachedClient` extends :class:`~cachedclient.client.Client` with an
in-memory cache keyed by endpoint path. Each registered endpoint is
refreshed in the background on its own schedule and can be read without
blocking:

* :meth:`CachedClient.get_cached` never performs I/O. A stale value is
  still returned, attached to an :class:`~cachedclient.exceptions.ExpiredError`.
* :meth:`CachedClient.get_cached_or_fetch` refreshes synchronously when
  the entry is stale. Concurrent callers share a single refresh per key.

Background refresh failures are logged and swallowed; the last good value
stays in place. A refresh that is already running when
:meth:`CachedClient.stop_cache_updates` is called may still complete and
store its result afterwards.

Example::

    with CachedClient("https://api.example.com") as client:
        client.setup_cached_endpoint(
            CacheConfig(path="/status", cron_spec="@every 10s", expiration=30),
            StatusModel,
        )
        status = client.get_cached("/status")
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from pydantic import TypeAdapter

from cachedclient.cache.decode import decode, make_decoder
from cachedclient.cache.schedule import resolve_schedule
from cachedclient.cache.scheduler import RefreshScheduler
from cachedclient.cache.store import CacheEntry, CacheStore
from cachedclient.client.client import DEFAULT_TIMEOUT_S, Client
from cachedclient.exceptions import (
    CachedClientError,
    ExpiredError,
    FetchError,
    NotFoundError,
    RefreshError,
)
from cachedclient.models import CacheConfig, ClientConfig

logger = logging.getLogger(__name__)

REFRESH_TIMEOUT_S = 10.0
"""Timeout for background refreshes, independent of any caller's timeout.

httpx applies it to each phase of a request (connect, write, each read,
pool) rather than as one deadline, so a backend that keeps trickling data
can hold a refresh open for longer than this.
"""


@dataclass
class _Registration:
    config: CacheConfig
    decoder: TypeAdapter
    # Held for the duration of every refresh of this key.
    refresh_lock: threading.Lock = field(default_factory=threading.Lock)


class CachedClient(Client):
    """HTTP client with self-refreshing cached endpoints.

    Args:
        base_url: Prefix for every request path.
        timeout: Default timeout in seconds for foreground requests.
        headers: Extra default headers.
        use_cookies: Keep cookies set by responses across requests.
        transport: Optional :mod:`httpx` transport.
        timezone: Timezone for cron schedules; local time when ``None``.
        refresh_timeout: Timeout in seconds for background refreshes.
        clock: Monotonic clock used for freshness decisions.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_S,
        headers: Optional[dict[str, str]] = None,
        use_cookies: bool = False,
        transport: Any = None,
        timezone: Any = None,
        refresh_timeout: float = REFRESH_TIMEOUT_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(
            base_url,
            timeout=timeout,
            headers=headers,
            use_cookies=use_cookies,
            transport=transport,
        )
        self._store = CacheStore()
        self._scheduler = RefreshScheduler(timezone=timezone)
        self._timezone = timezone
        self._refresh_timeout = refresh_timeout
        self._clock = clock
        self._registrations: dict[str, _Registration] = {}
        self._registry_lock = threading.Lock()
        self._stopped = False

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs: Any) -> "CachedClient":
        """Build a client from *config* and register its ``endpoints``.

        Keyword arguments are passed to the constructor. If registering an
        endpoint fails, the client is stopped and closed before the error
        propagates.
        """
        kwargs.setdefault("timezone", config.timezone)
        client = cls(
            config.base_url,
            timeout=config.request.timeout,
            headers=config.request.headers,
            use_cookies=config.request.use_cookies,
            **kwargs,
        )
        try:
            for endpoint in config.endpoints:
                client.setup_cached_endpoint(endpoint)
        except Exception:
            client.stop()
            client.close()
            raise
        return client

    def __enter__(self) -> "CachedClient":
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()
        self.close()

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #

    def setup_cached_endpoint(
        self,
        config: CacheConfig,
        shape: Any = Any,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        """Register an endpoint and start refreshing it in the background.

        Unless ``config.skip_initial_fetch`` is set, the endpoint is fetched
        once before this method returns. Registering a path again replaces
        the previous registration.

        Args:
            config: Path, schedule, freshness window, and initial-fetch flag.
            shape: Type the payload is decoded into (pydantic model,
                ``list[...]``, ``dict[...]``, or ``Any`` for plain JSON).
            timeout: Timeout in seconds for the initial fetch. ``None``
                uses the client default.

        Raises:
            ScheduleError: If ``config.cron_spec`` cannot be parsed. Nothing
                is registered.
            FetchError: If the initial fetch fails.
            DecodeError: If the initial payload cannot be decoded.
            CachedClientError: If the client has been stopped.
        """
        if self._stopped:
            raise CachedClientError("cached client has been stopped")

        policy = resolve_schedule(config.cron_spec, timezone=self._timezone)
        path = config.path

        self._scheduler.cancel(path)
        registration = _Registration(config=config, decoder=make_decoder(shape))
        with self._registry_lock:
            self._registrations[path] = registration
        self._store.put(path, CacheEntry(value=None, expiration=config.expiration))

        if not config.skip_initial_fetch:
            try:
                with registration.refresh_lock:
                    self._update_cache(path, registration, timeout)
            except Exception:
                self._forget(path, registration)
                raise

        self._scheduler.schedule(path, policy, lambda: self._scheduled_update(path))

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def get_cached(self, path: str, *, allow_stale: bool = False) -> Any:
        """Return the cached value for *path* without any network activity.

        Args:
            path: A registered endpoint path.
            allow_stale: Return a stale value instead of raising.

        Raises:
            NotFoundError: If *path* was never registered.
            ExpiredError: If the value is older than its freshness window
                or was never fetched. The stale value is available as
                ``exc.value``.
        """
        entry = self._entry(path)
        if entry.is_expired(self._clock()) and not allow_stale:
            raise ExpiredError(path, value=entry.value, updated_at=entry.updated_at)
        return entry.value

    def get_cached_or_fetch(self, path: str, *, timeout: Optional[float] = None) -> Any:
        """Return the cached value, refreshing it first if it is stale.

        A fresh value is returned with no I/O. Concurrent callers that find
        the same key stale wait for one shared refresh instead of each
        issuing their own.

        Args:
            path: A registered endpoint path.
            timeout: Timeout in seconds for the refresh. ``None`` uses the
                client default.

        Raises:
            NotFoundError: If *path* was never registered.
            FetchError: If the refresh request fails.
            DecodeError: If the refreshed payload cannot be decoded.
        """
        entry = self._entry(path)
        if not entry.is_expired(self._clock()):
            return entry.value

        registration = self._registration(path)
        with registration.refresh_lock:
            entry = self._entry(path)
            if entry.is_expired(self._clock()):
                self._update_cache(path, registration, timeout)
                entry = self._entry(path)
        return entry.value

    def get_entry(self, path: str) -> CacheEntry:
        """Return a snapshot of the cache entry for *path*.

        Raises:
            NotFoundError: If *path* was never registered.
        """
        return self._entry(path)

    def cache_summary(self) -> dict[str, dict[str, Any]]:
        """Metadata for every cached path: age, expiry, and whether it is scheduled."""
        summary = self._store.summary(self._clock())
        for path, info in summary.items():
            info["scheduled"] = self._scheduler.is_scheduled(path)
        return summary

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def stop_cache_updates(self, path: str) -> None:
        """Stop background refreshes for *path*. Safe to call repeatedly.

        The last cached value stays readable and will eventually be
        reported as expired.
        """
        if self._scheduler.cancel(path):
            logger.debug("Stopped cache updates for %s", path)

    def stop(self) -> None:
        """Stop every background refresh. Safe to call repeatedly.

        Cached values stay readable; no further background refresh occurs
        and no new endpoints can be registered.
        """
        self._stopped = True
        self._scheduler.shutdown()

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _entry(self, path: str) -> CacheEntry:
        entry = self._store.get(path)
        if entry is None:
            raise NotFoundError(path)
        return entry

    def _registration(self, path: str) -> _Registration:
        with self._registry_lock:
            registration = self._registrations.get(path)
        if registration is None:
            raise NotFoundError(path)
        return registration

    def _forget(self, path: str, registration: _Registration) -> None:
        with self._registry_lock:
            if self._registrations.get(path) is registration:
                del self._registrations[path]
                self._store.remove(path)

    def _update_cache(
        self,
        path: str,
        registration: _Registration,
        timeout: Optional[float],
    ) -> None:
        """Fetch, decode, and store a fresh value. Caller holds the refresh lock."""
        response = self.get(path, timeout=timeout)
        if response.status_code != 200:
            raise FetchError(path, f"unexpected status code: {response.status_code}")
        value = decode(registration.decoder, response.content, path)
        if not self._store.update(path, value, self._clock()):
            logger.debug("Discarding refresh for unregistered path %s", path)

    def _scheduled_update(self, path: str) -> None:
        with self._registry_lock:
            registration = self._registrations.get(path)
        if registration is None:
            return
        if not registration.refresh_lock.acquire(blocking=False):
            logger.debug("Refresh for %s already in flight, skipping", path)
            return
        try:
            self._update_cache(path, registration, self._refresh_timeout)
        except RefreshError as exc:
            logger.warning("Error updating cache for %s: %s", path, exc)
        finally:
            registration.refresh_lock.release()
