"""Optional in-process memoization of estimate runs.

The cache is advisory: entries may be evicted at any time and every lookup
miss simply recomputes. Callers opt in by passing an EstimateCache to the
aggregator.
"""

import hashlib
import json
import logging
import threading
from collections import OrderedDict
from dataclasses import asdict, is_dataclass
from typing import Any, List, Optional, Tuple

from ..models.estimate import DayEstimate, EstimateTrace

logger = logging.getLogger(__name__)


def _plain(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


def make_cache_key(*parts: Any) -> str:
    """Hash estimate inputs into a stable key."""
    payload = json.dumps([_plain(part) for part in parts], sort_keys=True, default=str)
    return hashlib.md5(payload.encode('utf-8')).hexdigest()


CachedRun = Tuple[List[DayEstimate], EstimateTrace]


class EstimateCache:
    """Thread-safe, size-bounded cache of estimate runs (estimates plus trace)."""

    def __init__(self, max_entries: int = 256):
        self.max_entries = max(1, int(max_entries))
        self._entries: 'OrderedDict[str, CachedRun]' = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[CachedRun]:
        with self._lock:
            cached = self._entries.get(key)
            if cached is None:
                self.misses += 1
                logger.debug("Estimate cache MISS: %s", key)
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            logger.debug("Estimate cache HIT: %s", key)
            estimates, trace = cached
            return list(estimates), trace

    def set(self, key: str, estimates: List[DayEstimate], trace: EstimateTrace) -> None:
        with self._lock:
            self._entries[key] = (list(estimates), trace)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
