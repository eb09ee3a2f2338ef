"""
Report Cache
============

In-memory TTL cache sitting in front of the analytics pipeline.

Keys are built by `report_cache_key` in the application layer. Only reports
from complete fetches are stored. Expired entries are pruned on every write
and the number of entries is capped, oldest first.
"""

import threading
import time
from typing import Callable, Dict, Optional, Tuple

from src.response_time.application.services import IReportCache
from src.response_time.domain import ResponseTimeReport


class ReportCache(IReportCache):
    """Thread-safe TTL cache of response-time reports."""

    def __init__(
        self,
        ttl_seconds: int,
        max_entries: int = 256,
        clock: Callable[[], float] = time.monotonic
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max(1, max_entries)
        self._clock = clock
        self._store: Dict[str, Tuple[ResponseTimeReport, float]] = {}
        self._lock = threading.RLock()

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def get(self, key: str) -> Optional[ResponseTimeReport]:
        if not self.enabled:
            return None
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            report, expires_at = entry
            if expires_at <= self._clock():
                self._store.pop(key, None)
                return None
            return report

    def set(self, key: str, report: ResponseTimeReport) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._prune_expired()
            self._store.pop(key, None)
            while len(self._store) >= self.max_entries:
                # Dicts keep insertion order and all entries share one TTL.
                self._store.pop(next(iter(self._store)))
            self._store[key] = (report, self._clock() + self.ttl_seconds)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def cleanup(self) -> int:
        """Drop expired entries; returns how many were removed."""
        with self._lock:
            return self._prune_expired()

    def _prune_expired(self) -> int:
        now = self._clock()
        expired = [key for key, (_, expires_at) in self._store.items() if expires_at <= now]
        for key in expired:
            self._store.pop(key, None)
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
