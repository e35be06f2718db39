# ============================================================================
# src/rxplain/cache/__init__.py
# ============================================================================
"""
Report cache and its key-value stores.
"""

from .kv_store import KeyValueStore, InMemoryKeyValueStore, JsonFileKeyValueStore
from .report_cache import ReportCache, CacheMiss, CacheStatistics, MISS
