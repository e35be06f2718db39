# ============================================================================
# src/rxplain/cache/report_cache.py
# ============================================================================
"""
Report Cache Manager

Local TTL cache for rendered report payloads, keyed by report id.

Each entry occupies two co-located keys in the backing store:
    rxplain_report_<id>          JSON payload
    rxplain_report_expiry_<id>   expiry, epoch milliseconds

Features:
- Fixed TTL (1 hour by default), stamped on put
- Lazy eviction: an expired entry is deleted by the read that finds it
- Namespace-scoped invalidation; unrelated keys are never touched
- Half-written pairs are purged and reported as misses
- Thread-safe put/get/invalidate via a re-entrant lock
- Hit/miss statistics

Example:
    cache = ReportCache(InMemoryKeyValueStore())
    cache.put("report-1", {"medications": [...]})

    report = cache.get("report-1")
    if report is MISS:
        report = rebuild_report()
"""

import json
import threading
import time
from typing import Any, Callable, Dict, List, Optional
import logging

from .kv_store import KeyValueStore
from ..config.cache_config import cache_settings
from ..utils.exceptions import StoreError


class CacheMiss:
    """Sentinel type for "not cached", distinct from a cached ``None``."""

    _instance: Optional["CacheMiss"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISS"


MISS = CacheMiss()


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class CacheStatistics:
    """Track cache performance metrics"""

    def __init__(self):
        self.hits = 0
        self.misses = 0
        self.expirations = 0
        self.writes = 0
        self.invalidations = 0

    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "expirations": self.expirations,
            "writes": self.writes,
            "invalidations": self.invalidations,
            "hit_rate": self.hit_rate(),
        }


class ReportCache:

    def __init__(
        self,
        store: KeyValueStore,
        ttl_ms: Optional[int] = None,
        clock: Optional[Callable[[], int]] = None,
        prefix: Optional[str] = None,
        expiry_prefix: Optional[str] = None,
    ):
        """
        Args:
            store: Backing key-value store
            ttl_ms: Entry lifetime in milliseconds (settings default: 1 hour)
            clock: Returns the current time in epoch milliseconds
            prefix: Payload key namespace
            expiry_prefix: Expiry key namespace
        """
        self.store = store
        self.ttl_ms = ttl_ms if ttl_ms is not None else cache_settings.REPORT_CACHE_TTL_MS
        if self.ttl_ms <= 0:
            raise ValueError(f"ttl_ms must be positive, got {self.ttl_ms}")
        self.clock = clock or _epoch_ms
        self.prefix = prefix or cache_settings.REPORT_CACHE_PREFIX
        self.expiry_prefix = expiry_prefix or cache_settings.REPORT_CACHE_EXPIRY_PREFIX

        self._lock = threading.RLock()
        self._stats = CacheStatistics()
        self.logger = logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    def _payload_key(self, report_id: str) -> str:
        return f"{self.prefix}{report_id}"

    def _expiry_key(self, report_id: str) -> str:
        return f"{self.expiry_prefix}{report_id}"

    def _check_id(self, report_id: str) -> None:
        if not isinstance(report_id, str) or not report_id:
            raise ValueError("report_id must be a non-empty string")
        # The expiry namespace nests inside the payload namespace
        if self._payload_key(report_id).startswith(self.expiry_prefix):
            raise ValueError(f"report_id collides with the expiry namespace: {report_id!r}")

    def _owned_keys(self) -> List[str]:
        return [
            k for k in self.store.keys()
            if k.startswith(self.prefix) or k.startswith(self.expiry_prefix)
        ]

    def _remove(self, report_id: str) -> None:
        self.store.delete(self._payload_key(report_id))
        self.store.delete(self._expiry_key(report_id))

    def _discard(self, report_id: str) -> None:
        try:
            self._remove(report_id)
        except StoreError as e:
            # A surviving half pair is purged by the next get
            self.logger.warning(f"Could not clear partial cache entry {report_id}: {e}")

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    def put(self, report_id: str, payload: Any) -> Optional[int]:
        """
        Cache ``payload`` for the configured TTL.

        Values JSON cannot represent natively (datetimes, paths) are stored
        as their string form. A payload that still cannot be serialized, or
        a backing store that fails to write, is logged and leaves nothing
        cached.

        Returns:
            Expiry timestamp in epoch milliseconds, or None if nothing was cached
        """
        self._check_id(report_id)
        try:
            serialized = json.dumps(payload, ensure_ascii=False, default=str)
        except (TypeError, ValueError) as e:
            self.logger.warning(f"Report {report_id} not cached: payload is not serializable: {e}")
            return None

        with self._lock:
            expires_at = self.clock() + self.ttl_ms
            try:
                self.store.set(self._payload_key(report_id), serialized)
                self.store.set(self._expiry_key(report_id), str(expires_at))
            except StoreError as e:
                self.logger.warning(f"Report {report_id} not cached: {e}")
                self._discard(report_id)
                return None
            self._stats.writes += 1

        self.logger.debug(f"Cached report {report_id} until {expires_at}")
        return expires_at

    def get(self, report_id: str) -> Any:
        """
        Return the cached payload, or ``MISS``.

        An entry is live while ``now <= expires_at``. Reading an expired or
        half-written entry deletes it.
        """
        self._check_id(report_id)

        with self._lock:
            raw_payload = self.store.get(self._payload_key(report_id))
            raw_expiry = self.store.get(self._expiry_key(report_id))

            if raw_payload is None and raw_expiry is None:
                self._stats.misses += 1
                return MISS

            expires_at = _parse_expiry(raw_expiry)
            if raw_payload is None or expires_at is None:
                self.logger.warning(f"Purging incomplete cache entry for report {report_id}")
                self._remove(report_id)
                self._stats.misses += 1
                return MISS

            if self.clock() > expires_at:
                self.logger.debug(f"Cache entry expired: {report_id}")
                self._remove(report_id)
                self._stats.misses += 1
                self._stats.expirations += 1
                return MISS

            try:
                payload = json.loads(raw_payload)
            except ValueError:
                self.logger.warning(f"Purging unreadable cache entry for report {report_id}")
                self._remove(report_id)
                self._stats.misses += 1
                return MISS

            self._stats.hits += 1
            return payload

    def invalidate(self, report_id: Optional[str] = None) -> int:
        """
        Remove one entry, or every entry in the cache namespace when
        ``report_id`` is None.

        Returns:
            Number of store keys removed
        """
        with self._lock:
            if report_id is None:
                keys = self._owned_keys()
            else:
                self._check_id(report_id)
                keys = [
                    k for k in (self._payload_key(report_id), self._expiry_key(report_id))
                    if self.store.get(k) is not None
                ]
            for key in keys:
                self.store.delete(key)
            self._stats.invalidations += 1

        if report_id is None:
            self.logger.info(f"Report cache cleared ({len(keys)} keys)")
        return len(keys)

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    def contains(self, report_id: str) -> bool:
        """True if a live entry exists. Does not touch hit/miss counters."""
        self._check_id(report_id)
        with self._lock:
            raw_payload = self.store.get(self._payload_key(report_id))
            expires_at = _parse_expiry(self.store.get(self._expiry_key(report_id)))
            return (
                raw_payload is not None
                and expires_at is not None
                and self.clock() <= expires_at
            )

    def cached_report_ids(self) -> List[str]:
        """Ids of live entries, in store key order."""
        with self._lock:
            ids = [
                k[len(self.prefix):] for k in self.store.keys()
                if k.startswith(self.prefix) and not k.startswith(self.expiry_prefix)
            ]
            return [i for i in ids if i and self.contains(i)]

    def get_statistics(self) -> Dict[str, Any]:
        with self._lock:
            stats = self._stats.to_dict()
            stats["ttl_ms"] = self.ttl_ms
            return stats


def _parse_expiry(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None
