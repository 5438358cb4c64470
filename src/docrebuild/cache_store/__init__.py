"""Cache Store - Persistent state of tracked repositories."""

from docrebuild.cache_store.models import (
    BuildCacheRecord,
    TrackedSource,
    parse_timestamp,
    utcnow,
)
from docrebuild.cache_store.store import DEFAULT_CACHE_PATH, CacheInfo, CacheStore

__all__ = [
    "DEFAULT_CACHE_PATH",
    "BuildCacheRecord",
    "CacheInfo",
    "CacheStore",
    "TrackedSource",
    "as_utc",
    "parse_timestamp",
    "utcnow",
]
