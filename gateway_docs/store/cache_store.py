"""
Cache Store - Advisory key/value caches with per-entry TTL

Implementations:
- InMemoryCacheStore: dict guarded by a lock
- FileCacheStore: one JSON envelope per key under a cache directory

Cache contents are never a source of truth: an unreadable or expired entry
behaves exactly like a missing one.
"""

import hashlib
import json
import logging
import os
import tempfile
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


class CacheStore(ABC):
    """Key/value text cache"""

    @abstractmethod
    def has_key(self, key: str) -> bool:
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str, ttl_days: float) -> None:
        pass


class InMemoryCacheStore(CacheStore):
    """Process-local cache; safe for concurrent readers and writers"""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.Lock()

    def has_key(self, key: str) -> bool:
        return self.get(key) is not None

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: str, ttl_days: float) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl_days * SECONDS_PER_DAY)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class FileCacheStore(CacheStore):
    """
    File-backed cache

    Each key is stored as `<cache_dir>/<md5(key)>.json` holding
    {"key", "expires_at", "value"}. Writes go through a temporary file and
    os.replace, so concurrent readers never see a half-written entry.
    """

    def __init__(self, cache_dir: Path, clock: Callable[[], float] = time.time):
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._clock = clock

    def has_key(self, key: str) -> bool:
        return self.get(key) is not None

    def get(self, key: str) -> Optional[str]:
        cache_file = self._get_cache_file_path(key)
        if not cache_file.exists():
            return None

        try:
            with open(cache_file, "r", encoding="utf-8") as f:
                envelope = json.load(f)
            value = envelope["value"]
            expires_at = float(envelope["expires_at"])
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Error loading cache file {cache_file}: {e}")
            return None

        if expires_at <= self._clock():
            logger.debug(f"Cache file expired: {cache_file}")
            return None
        return value

    def set(self, key: str, value: str, ttl_days: float) -> None:
        envelope = {
            "key": key,
            "expires_at": self._clock() + ttl_days * SECONDS_PER_DAY,
            "value": value,
        }
        cache_file = self._get_cache_file_path(key)
        fd, tmp_path = tempfile.mkstemp(dir=self.cache_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(envelope, f)
            os.replace(tmp_path, cache_file)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        logger.debug(f"Saved cache entry {key} to {cache_file}")

    def _get_cache_file_path(self, key: str) -> Path:
        """Hash the key to avoid filesystem issues"""
        key_hash = hashlib.md5(key.encode("utf-8")).hexdigest()
        return self.cache_dir / f"{key_hash}.json"
