"""Cache and counter stores."""

from .cache_store import CacheStore, InMemoryCacheStore, FileCacheStore
from .counter_store import CounterStore, InMemoryCounterStore, FileCounterStore, counter_key

__all__ = [
    "CacheStore",
    "InMemoryCacheStore",
    "FileCacheStore",
    "CounterStore",
    "InMemoryCounterStore",
    "FileCounterStore",
    "counter_key",
]
