"""
Invocation Stats Aggregator - Dense daily series from sparse counters

For an inclusive date range, reads one counter blob per day and produces:
- the list of dates
- one dense series per counter name (missing days and names count 0)
- the names ranked by their count on the last day, descending; ties keep
  the order in which names were first seen
"""

import json
import logging
import re
from dataclasses import dataclass, field as dataclass_field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from gateway_docs.errors import DocumentationError, ErrorCode
from gateway_docs.store.counter_store import Blob, CounterStore, counter_key

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
DATE_FORMAT = "%Y-%m-%d"


@dataclass
class InvocationSeries:
    """Date-indexed counts of a set of counters"""
    label: str  # "api" or "service"
    dates: List[str] = dataclass_field(default_factory=list)
    series: Dict[str, List[int]] = dataclass_field(default_factory=dict)
    ranking: List[str] = dataclass_field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the console's response shape"""
        return {
            "date": list(self.dates),
            "details": [{self.label: name, "data": list(data)} for name, data in self.series.items()],
            f"{self.label}s": list(self.ranking),
        }


def validate_date(value: str) -> None:
    """Raise DATE_FORMAT unless value looks like YYYY-MM-DD"""
    if not isinstance(value, str) or not DATE_PATTERN.fullmatch(value):
        raise DocumentationError(ErrorCode.DATE_FORMAT, value)


def date_range(begin: str, end: str) -> List[str]:
    """
    List every date from begin to end, inclusive

    Raises:
        DocumentationError: DATE_FORMAT, DATE_PARSE or DATE_ORDER
    """
    validate_date(begin)
    validate_date(end)
    try:
        start_day = datetime.strptime(begin, DATE_FORMAT).date()
        end_day = datetime.strptime(end, DATE_FORMAT).date()
    except ValueError:
        raise DocumentationError(ErrorCode.DATE_PARSE, begin, end)

    if start_day > end_day:
        raise DocumentationError(ErrorCode.DATE_ORDER, begin, end)

    days = (end_day - start_day).days
    return [(start_day + timedelta(days=offset)).strftime(DATE_FORMAT) for offset in range(days + 1)]


class InvocationStatsAggregator:
    """
    Aggregates daily invocation counters

    Usage:
    ```python
    aggregator = InvocationStatsAggregator(counter_store)
    stats = aggregator.query_api_invoke("2024-01-01", "2024-01-07", "iam-service")
    stats.ranking  # ["GET /v1/users", ...]
    ```
    """

    def __init__(self, counter_store: CounterStore):
        self.counter_store = counter_store

    def query_api_invoke(self, begin: str, end: str, service: str) -> InvocationSeries:
        """Per-API counts of one service; names are discovered from the blobs"""
        dates = date_range(begin, end)
        daily = [self._read_day(day, service) for day in dates]
        return self.aggregate(dates, daily, label="api")

    def query_service_invoke(self, begin: str, end: str, services: Sequence[str]) -> InvocationSeries:
        """Per-service counts; the series are exactly the given services"""
        dates = date_range(begin, end)
        daily = [self._read_day(day) for day in dates]
        return self.aggregate(dates, daily, label="service", names=services)

    @staticmethod
    def aggregate(
        dates: List[str],
        daily: List[Optional[Dict[str, int]]],
        label: str = "api",
        names: Optional[Sequence[str]] = None,
    ) -> InvocationSeries:
        """
        Build dense series from per-day counts

        Args:
            dates: Ordered dates
            daily: Decoded counts per date (None for a missing/corrupt day)
            label: Series label in the response
            names: Fixed counter names; discovered from `daily` if omitted

        Returns:
            InvocationSeries with a ranking by last-day count
        """
        if names is None:
            discovered: Dict[str, None] = {}
            for counts in daily:
                for name in counts or {}:
                    discovered.setdefault(name, None)
            names = list(discovered)
        else:
            names = list(dict.fromkeys(names))

        series = {
            name: [(counts or {}).get(name, 0) for counts in daily]
            for name in names
        }
        ranking = sorted(names, key=lambda name: series[name][-1] if series[name] else 0, reverse=True)
        return InvocationSeries(label=label, dates=list(dates), series=series, ranking=ranking)

    def _read_day(self, day: str, service: Optional[str] = None) -> Optional[Dict[str, int]]:
        """Decode one day's blob; missing or corrupt blobs yield None"""
        key = counter_key(day, service)
        try:
            blob = self.counter_store.get(day, service) if service else self.counter_store.get(day)
        except Exception as e:
            logger.error(f"Counter store read failed, key {key}: {e}")
            return None

        if blob is None or blob == "":
            return None
        try:
            return decode_counts(blob)
        except (ValueError, TypeError) as e:
            logger.error(f"Read value to map error, key {key}, value {blob!r}: {e}")
            return None


def decode_counts(blob: Blob) -> Dict[str, int]:
    """
    Decode a {name: count} blob

    Raises:
        ValueError/TypeError: if the blob is not a JSON object of integer counts
    """
    counts = json.loads(blob) if isinstance(blob, (str, bytes)) else blob
    if not isinstance(counts, dict):
        raise ValueError(f"expected an object, got {type(counts).__name__}")

    decoded = {}
    for name, count in counts.items():
        if isinstance(count, bool) or not isinstance(count, int):
            raise ValueError(f"count of {name} is not an integer: {count!r}")
        decoded[str(name)] = count
    return decoded
