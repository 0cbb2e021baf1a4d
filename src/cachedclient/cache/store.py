"""In-memory storage for cached endpoint values.

* Entries are immutable snapshots; writers replace them wholesale, so a
  reader never sees a value from one refresh paired with the timestamp of
  another.
* A single lock guards the mapping. Contention is low (one writer per key
  per refresh) so a coarse lock is enough.
* Failed refreshes never reach the store: the last good value stays.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Any, Optional


@dataclass(frozen=True)
class CacheEntry:
    """One cached endpoint value and its freshness metadata.

    Attributes:
        value: Last successfully decoded payload, ``None`` before the
            first successful refresh.
        expiration: Freshness window.
        updated_at: Clock reading of the last successful refresh, or
            ``None`` if the entry was never populated.
    """

    value: Any
    expiration: timedelta
    updated_at: Optional[float] = None

    @property
    def populated(self) -> bool:
        return self.updated_at is not None

    def age(self, now: float) -> Optional[float]:
        """Seconds since the last successful refresh, or ``None``."""
        if self.updated_at is None:
            return None
        return now - self.updated_at

    def is_expired(self, now: float) -> bool:
        """A never-populated entry is always expired."""
        if self.updated_at is None:
            return True
        return now - self.updated_at > self.expiration.total_seconds()


class CacheStore:
    """Thread-safe mapping from endpoint path to :class:`CacheEntry`."""

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the current entry for *key*, or ``None`` if absent."""
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, entry: CacheEntry) -> None:
        """Store *entry*, replacing whatever was there."""
        with self._lock:
            self._entries[key] = entry

    def update(self, key: str, value: Any, updated_at: float) -> bool:
        """Record a successful refresh.

        Value and timestamp are replaced together. Keys that were removed
        in the meantime are not recreated.

        Returns:
            ``True`` if the entry existed and was updated.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            self._entries[key] = replace(entry, value=value, updated_at=updated_at)
            return True

    def remove(self, key: str) -> Optional[CacheEntry]:
        """Drop *key* and return its last entry, if any."""
        with self._lock:
            return self._entries.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def summary(self, now: float) -> dict[str, dict[str, Any]]:
        """Metadata only (age and expiry per key), never values."""
        with self._lock:
            entries = dict(self._entries)
        return {
            key: {
                "age_s": None if entry.updated_at is None else round(now - entry.updated_at, 3),
                "expired": entry.is_expired(now),
                "expiration_s": entry.expiration.total_seconds(),
            }
            for key, entry in entries.items()
        }

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
