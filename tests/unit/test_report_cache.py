# ============================================================================
# tests/unit/test_report_cache.py
# ============================================================================
"""
Tests for the report cache
"""

import json
from datetime import datetime

import pytest

from rxplain.cache import (
    CacheMiss,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    MISS,
    ReportCache,
)

from conftest import FakeClock
from rxplain.utils.exceptions import StoreError

ONE_HOUR_MS = 3_600_000


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def cache(store, fake_clock):
    return ReportCache(store, clock=fake_clock)


class TestPutGet:

    def test_default_ttl_is_one_hour(self, cache):
        assert cache.ttl_ms == ONE_HOUR_MS

    def test_put_then_get(self, cache):
        cache.put("r1", {"medications": ["Metformin"]})
        assert cache.get("r1") == {"medications": ["Metformin"]}

    def test_missing_is_miss(self, cache):
        result = cache.get("nope")
        assert result is MISS
        assert isinstance(result, CacheMiss)

    def test_cached_none_is_a_hit(self, cache):
        cache.put("empty", None)
        assert cache.get("empty") is None

    def test_cached_empty_payload_is_a_hit(self, cache):
        cache.put("empty", {})
        assert cache.get("empty") == {}

    def test_put_stamps_expiry(self, cache, store, fake_clock):
        expires_at = cache.put("r1", {"a": 1})

        assert expires_at == fake_clock() + ONE_HOUR_MS
        assert store.get("rxplain_report_expiry_r1") == str(expires_at)
        assert json.loads(store.get("rxplain_report_r1")) == {"a": 1}

    def test_put_overwrites_and_restamps(self, cache, fake_clock):
        cache.put("r1", "old")
        fake_clock.advance(ONE_HOUR_MS - 1)
        cache.put("r1", "new")
        fake_clock.advance(ONE_HOUR_MS - 1)

        assert cache.get("r1") == "new"


class TestExpiry:

    def test_live_at_exact_ttl_boundary(self, cache, fake_clock):
        cache.put("r1", "report")
        fake_clock.advance(ONE_HOUR_MS)
        assert cache.get("r1") == "report"

    def test_miss_one_ms_after_ttl(self, cache, fake_clock):
        cache.put("r1", "report")
        fake_clock.advance(ONE_HOUR_MS + 1)
        assert cache.get("r1") is MISS

    def test_expired_read_evicts_both_keys(self, cache, store, fake_clock):
        cache.put("r1", "report")
        fake_clock.advance(ONE_HOUR_MS + 1)

        cache.get("r1")

        assert store.keys() == []
        assert cache.get_statistics()["expirations"] == 1

    def test_no_sweep_without_read(self, cache, store, fake_clock):
        cache.put("r1", "report")
        fake_clock.advance(2 * ONE_HOUR_MS)

        assert len(store.keys()) == 2

    def test_custom_ttl(self, store, fake_clock):
        cache = ReportCache(store, ttl_ms=1000, clock=fake_clock)
        cache.put("r1", "x")
        fake_clock.advance(1001)
        assert cache.get("r1") is MISS

    def test_ttl_must_be_positive(self, store):
        with pytest.raises(ValueError):
            ReportCache(store, ttl_ms=0)


class TestInvalidate:

    def test_invalidate_one(self, cache):
        cache.put("r1", "a")
        cache.put("r2", "b")

        assert cache.invalidate("r1") == 2
        assert cache.get("r1") is MISS
        assert cache.get("r2") == "b"

    def test_invalidate_all_leaves_foreign_keys(self, cache, store):
        store.set("theme", "dark")
        store.set("rxplain_session", "abc")
        cache.put("r1", "a")
        cache.put("r2", "b")

        assert cache.invalidate() == 4
        assert sorted(store.keys()) == ["rxplain_session", "theme"]

    def test_invalidate_missing_is_noop(self, cache):
        assert cache.invalidate("nope") == 0


class TestConsistency:

    def test_payload_without_expiry_is_purged(self, cache, store):
        store.set("rxplain_report_r1", json.dumps("orphan"))

        assert cache.get("r1") is MISS
        assert store.keys() == []

    def test_expiry_without_payload_is_purged(self, cache, store, fake_clock):
        store.set("rxplain_report_expiry_r1", str(fake_clock() + 10))

        assert cache.get("r1") is MISS
        assert store.keys() == []

    def test_garbage_expiry_is_purged(self, cache, store):
        store.set("rxplain_report_r1", json.dumps("x"))
        store.set("rxplain_report_expiry_r1", "tomorrow")

        assert cache.get("r1") is MISS
        assert store.keys() == []

    def test_report_id_in_expiry_namespace_rejected(self, cache):
        with pytest.raises(ValueError):
            cache.put("expiry_r1", "x")


class ExpiryWriteFailingStore(InMemoryKeyValueStore):

    def set(self, key, value):
        if "expiry" in key:
            raise StoreError("disk full")
        super().set(key, value)


class TestWriteFailures:

    def test_datetime_payload_stored_as_text(self, cache):
        expires_at = cache.put("r1", {"generatedAt": datetime(2026, 1, 1, 9, 30)})

        assert expires_at is not None
        assert cache.get("r1") == {"generatedAt": "2026-01-01 09:30:00"}

    def test_circular_payload_not_cached(self, cache, store):
        payload = {}
        payload["self"] = payload

        assert cache.put("r1", payload) is None
        assert cache.get("r1") is MISS
        assert store.keys() == []

    def test_store_failure_leaves_no_half_pair(self, fake_clock):
        store = ExpiryWriteFailingStore()
        cache = ReportCache(store, clock=fake_clock)

        assert cache.put("r1", {"a": 1}) is None
        assert list(store.keys()) == []
        assert cache.get_statistics()["writes"] == 0


class TestExtras:

    def test_contains_honours_ttl(self, cache, fake_clock):
        cache.put("r1", "x")
        assert cache.contains("r1")
        fake_clock.advance(ONE_HOUR_MS + 1)
        assert not cache.contains("r1")

    def test_cached_report_ids(self, cache, fake_clock):
        cache.put("r1", "x")
        fake_clock.advance(10)
        cache.put("r2", "y")
        fake_clock.advance(ONE_HOUR_MS - 5)

        assert cache.cached_report_ids() == ["r2"]

    def test_statistics(self, cache):
        cache.put("r1", "x")
        cache.get("r1")
        cache.get("r2")

        stats = cache.get_statistics()
        assert stats["writes"] == 1
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 0.5


class TestJsonFileStore:

    def test_survives_reopen(self, tmp_path):
        path = tmp_path / "cache" / "reports.json"
        clock = FakeClock()

        ReportCache(JsonFileKeyValueStore(path), clock=clock).put("r1", {"a": 1})
        reopened = ReportCache(JsonFileKeyValueStore(path), clock=clock)

        assert reopened.get("r1") == {"a": 1}

    def test_invalidate_persists(self, tmp_path):
        path = tmp_path / "reports.json"
        store = JsonFileKeyValueStore(path)
        store.set("other", "keep")
        cache = ReportCache(store)
        cache.put("r1", "x")

        cache.invalidate()

        assert json.loads(path.read_text(encoding="utf-8")) == {"other": "keep"}

    def test_corrupt_file_treated_as_empty(self, tmp_path):
        path = tmp_path / "reports.json"
        path.write_text("{not json", encoding="utf-8")

        store = JsonFileKeyValueStore(path)
        assert store.keys() == []
