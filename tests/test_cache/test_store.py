"""Tests for the in-memory cache store and its entries."""

from __future__ import annotations

import threading
from datetime import timedelta

import pytest

from cachedclient.cache.store import CacheEntry, CacheStore


# ---------------------------------------------------------------------------
# CacheEntry
# ---------------------------------------------------------------------------


class TestCacheEntry:
    def test_unpopulated_entry_is_expired(self) -> None:
        entry = CacheEntry(value=None, expiration=timedelta(hours=1))
        assert not entry.populated
        assert entry.is_expired(0.0)
        assert entry.age(100.0) is None

    def test_fresh_within_window(self) -> None:
        entry = CacheEntry(value=1, expiration=timedelta(seconds=10), updated_at=100.0)
        assert not entry.is_expired(105.0)
        assert entry.age(105.0) == pytest.approx(5.0)

    def test_boundary_is_still_fresh(self) -> None:
        entry = CacheEntry(value=1, expiration=timedelta(seconds=10), updated_at=100.0)
        assert not entry.is_expired(110.0)
        assert entry.is_expired(110.001)

    def test_zero_expiration_expires_immediately_after_update(self) -> None:
        entry = CacheEntry(value=1, expiration=timedelta(0), updated_at=100.0)
        assert not entry.is_expired(100.0)
        assert entry.is_expired(100.0001)

    def test_entry_is_immutable(self) -> None:
        entry = CacheEntry(value=1, expiration=timedelta(seconds=1))
        with pytest.raises(AttributeError):
            entry.value = 2  # type: ignore[misc]


# ---------------------------------------------------------------------------
# CacheStore
# ---------------------------------------------------------------------------


class TestCacheStore:
    def test_get_missing_returns_none(self) -> None:
        assert CacheStore().get("/missing") is None

    def test_put_and_get(self) -> None:
        store = CacheStore()
        entry = CacheEntry(value={"a": 1}, expiration=timedelta(seconds=5), updated_at=1.0)
        store.put("/a", entry)
        assert store.get("/a") is entry
        assert "/a" in store
        assert len(store) == 1
        assert store.keys() == ["/a"]

    def test_update_replaces_value_and_timestamp_together(self) -> None:
        store = CacheStore()
        store.put("/a", CacheEntry(value=None, expiration=timedelta(seconds=5)))
        before = store.get("/a")

        assert store.update("/a", {"v": 2}, 42.0)

        after = store.get("/a")
        assert after is not before
        assert after.value == {"v": 2}
        assert after.updated_at == 42.0
        assert after.expiration == timedelta(seconds=5)
        # The earlier snapshot is untouched.
        assert before.value is None
        assert before.updated_at is None

    def test_update_does_not_recreate_removed_key(self) -> None:
        store = CacheStore()
        assert not store.update("/gone", 1, 1.0)
        assert "/gone" not in store

    def test_remove(self) -> None:
        store = CacheStore()
        entry = CacheEntry(value=1, expiration=timedelta(seconds=1))
        store.put("/a", entry)
        assert store.remove("/a") is entry
        assert store.remove("/a") is None
        assert len(store) == 0

    def test_summary_reports_metadata_only(self) -> None:
        store = CacheStore()
        store.put("/fresh", CacheEntry(value="x", expiration=timedelta(seconds=10), updated_at=95.0))
        store.put("/never", CacheEntry(value=None, expiration=timedelta(seconds=10)))

        summary = store.summary(100.0)

        assert summary["/fresh"] == {"age_s": 5.0, "expired": False, "expiration_s": 10.0}
        assert summary["/never"] == {"age_s": None, "expired": True, "expiration_s": 10.0}

    def test_concurrent_updates_keep_entries_consistent(self) -> None:
        store = CacheStore()
        store.put("/a", CacheEntry(value=None, expiration=timedelta(seconds=1)))

        def writer(n: int) -> None:
            for i in range(200):
                stamp = float(n * 1000 + i)
                store.update("/a", stamp, stamp)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        entry = store.get("/a")
        assert entry.value == entry.updated_at
