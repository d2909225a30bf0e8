"""Daily invocation counter stores.

A day's counters are kept as one JSON blob ({name: count}) per date key,
optionally scoped to a service.
"""
import json
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

Blob = Union[str, Dict[str, Any]]


def counter_key(date_key: str, service: Optional[str] = None) -> str:
    """Key of a day's blob: "2024-01-31" or "2024-01-31:iam-service"."""
    return f"{date_key}:{service}" if service else date_key


def is_plain_name(name: str) -> bool:
    """True if name can be used as one file or directory name under a root."""
    return (
        name not in (".", "..")
        and "/" not in name
        and "\\" not in name
        and "\0" not in name
    )


class CounterStore(ABC):
    """Sparse daily counters."""

    @abstractmethod
    def get(self, date_key: str, service: Optional[str] = None) -> Optional[Blob]:
        """Return the day's blob, or None if nothing was recorded."""
        pass


class InMemoryCounterStore(CounterStore):
    """Counter store kept in a dict of raw blobs."""

    def __init__(self, blobs: Optional[Dict[str, Blob]] = None):
        self._blobs: Dict[str, Blob] = dict(blobs or {})
        self._lock = threading.Lock()

    def get(self, date_key: str, service: Optional[str] = None) -> Optional[Blob]:
        with self._lock:
            return self._blobs.get(counter_key(date_key, service))

    def put(self, date_key: str, blob: Blob, service: Optional[str] = None) -> None:
        with self._lock:
            self._blobs[counter_key(date_key, service)] = blob

    def increment(self, date_key: str, name: str, service: Optional[str] = None, by: int = 1) -> int:
        """Add to one counter of a day; returns the new count."""
        key = counter_key(date_key, service)
        with self._lock:
            raw = self._blobs.get(key)
            counts = json.loads(raw) if isinstance(raw, str) else dict(raw or {})
            counts[name] = int(counts.get(name, 0)) + by
            self._blobs[key] = json.dumps(counts)
            return counts[name]


class FileCounterStore(CounterStore):
    """Counter store reading `<dir>/<date>.json` and `<dir>/<service>/<date>.json`."""

    def __init__(self, counters_dir: Path):
        self.counters_dir = Path(counters_dir)

    def get(self, date_key: str, service: Optional[str] = None) -> Optional[Blob]:
        for part in (date_key, service):
            if part and not is_plain_name(part):
                logger.warning(f"Rejected counter path component {part!r}")
                return None
        base = self.counters_dir / service if service else self.counters_dir
        path = base / f"{date_key}.json"
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"Error reading counter file {path}: {e}")
            return None
