"""
Rule Cache - In-memory TTL cache for fetched rule sets.

Created once by the application and handed to the RuleFetcher, so tests
and callers can swap or clear it.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..engine.models import RuleScope

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    data: Any
    timestamp: float


class RuleCache:
    """Thread-safe key/value cache whose entries expire after ``ttl_seconds``."""

    def __init__(self, ttl_seconds: float = 60.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def key_for(table_name: str, scope: RuleScope, user_id: Optional[str] = None) -> str:
        """``print:global`` or ``print:user:<id>``; every key starts with the table."""
        if scope == RuleScope.GLOBAL:
            return f"{table_name}:global"
        return f"{table_name}:user:{user_id}"

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.timestamp > self.ttl_seconds:
                del self._entries[key]
                return None
            return entry.data

    def set(self, key: str, data: Any):
        with self._lock:
            self._entries[key] = CacheEntry(data=data, timestamp=self._clock())

    def invalidate(self, key: str):
        with self._lock:
            self._entries.pop(key, None)
        logger.info("Invalidated cache for: %s", key)

    def invalidate_prefix(self, prefix: str):
        """Drop every key that starts with ``prefix`` (e.g. one table)."""
        with self._lock:
            for key in [k for k in self._entries if k.startswith(prefix)]:
                del self._entries[key]
        logger.info("Invalidated cache entries with prefix: %s", prefix)

    def invalidate_table(self, table_name: str):
        self.invalidate_prefix(f"{table_name}:")

    def invalidate_all(self):
        with self._lock:
            self._entries.clear()
        logger.info("Invalidated all cache entries")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
