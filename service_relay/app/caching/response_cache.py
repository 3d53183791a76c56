"""
In-memory response cache with a fixed byte budget.

Entries are evicted oldest-inserted first when a new body would not fit;
reads refresh an entry's timestamp but never its eviction position.
Expired entries are dropped lazily when they are next read.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, TYPE_CHECKING, Any

from shared.logging import get_logger
from ..units import DurationLike, SizeLike, format_size, parse_duration, parse_size

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


DEFAULT_CAPACITY = "1024MB"
CACHE_TYPE = "response"


@dataclass
class CacheEntry:
    """One stored response body and its bookkeeping."""

    data: bytes
    content_type: str
    size: int
    timestamp: float
    expires_at: Optional[float] = None

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


@dataclass(frozen=True)
class CachedResponse:
    """Read-only view handed to callers on a hit."""

    data: bytes
    content_type: str


class ResponseCache:
    """Capacity-bounded FIFO cache of response bodies."""

    def __init__(
        self,
        max_size: SizeLike = DEFAULT_CAPACITY,
        *,
        clock: Callable[[], float] = time.monotonic,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.max_size = parse_size(max_size)
        self._clock = clock
        self._metrics = metrics
        # dicts preserve insertion order, which is the eviction order
        self._entries: Dict[str, CacheEntry] = {}
        self._current_size = 0
        self._lock = threading.Lock()
        self.logger = get_logger("relay.cache")

    def get(self, key: str) -> Optional[CachedResponse]:
        """Return the cached body for ``key`` unless absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            now = self._clock()
            if entry.is_expired(now):
                self._remove(key)
                self.logger.debug("Cache entry expired", key=key)
                return None

            entry.timestamp = now
            return CachedResponse(data=entry.data, content_type=entry.content_type)

    def set(
        self,
        key: str,
        data: bytes,
        content_type: str,
        size: Optional[int] = None,
        ttl: Optional[DurationLike] = None,
    ) -> bool:
        """Store a body; returns False when it can never fit.

        ``ttl`` is a duration literal (``"60S"``) or milliseconds. Storing
        under an existing key replaces that entry.
        """
        size = len(data) if size is None else size
        if size > self.max_size:
            self.logger.debug(
                "Item larger than cache capacity",
                key=key,
                size=format_size(size),
                capacity=format_size(self.max_size)
            )
            return False

        expires_in = parse_duration(ttl) / 1000.0 if ttl is not None else None

        with self._lock:
            if key in self._entries:
                self._remove(key)

            while self._current_size + size > self.max_size and self._entries:
                oldest_key = next(iter(self._entries))
                self._remove(oldest_key)
                self.logger.debug("Evicted cache entry", key=oldest_key)
                if self._metrics:
                    self._metrics.increment_counter("cache_evictions_total", cache_type=CACHE_TYPE)

            now = self._clock()
            self._entries[key] = CacheEntry(
                data=bytes(data),
                content_type=content_type,
                size=size,
                timestamp=now,
                expires_at=now + expires_in if expires_in is not None else None,
            )
            self._current_size += size
            assert self._current_size <= self.max_size, "cache size accounting exceeded capacity"
            self._report_size()

        return True

    def delete(self, key: str) -> None:
        with self._lock:
            self._remove(key)

    def has(self, key: str) -> bool:
        """Whether ``key`` is held and unexpired; drops it if expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if entry.is_expired(self._clock()):
                self._remove(key)
                return False
            return True

    def current_size(self) -> int:
        return self._current_size

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._current_size = 0
            self._report_size()

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "entries": len(self._entries),
                "current_size": self._current_size,
                "max_size": self.max_size,
                "current_size_human": format_size(self._current_size),
                "max_size_human": format_size(self.max_size),
            }

    def __len__(self) -> int:
        return len(self._entries)

    def _remove(self, key: str) -> None:
        # Caller holds the lock.
        entry = self._entries.pop(key, None)
        if entry is None:
            return
        self._current_size -= entry.size
        assert self._current_size >= 0, "cache size accounting went negative"
        self._report_size()

    def _report_size(self) -> None:
        if self._metrics:
            self._metrics.set_gauge("cache_size_bytes", self._current_size, cache_type=CACHE_TYPE)
