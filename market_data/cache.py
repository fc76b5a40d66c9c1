"""
Cache Layer - TTL memoization and per-key single-flight.

TTLCache holds any value under a string key until its expiry passes.
Entries are dropped lazily on read or wholesale by clear(); there is no
capacity bound.

SingleFlight collapses concurrent misses for one key into a single
in-flight task whose outcome every waiter shares.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from core.clock import ClockProtocol, SystemClock


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CacheEntry:
    """A cached value and its absolute expiry (Unix seconds)."""
    key: str
    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class TTLCache:
    """In-memory cache with a TTL per entry."""

    def __init__(self, clock: Optional[ClockProtocol] = None) -> None:
        self._clock = clock or SystemClock()
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[Any]:
        """Return the value for ``key``, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock.timestamp()):
            del self._entries[key]
            logger.debug(f"[cache] Expired {key}")
            return None
        return entry.value

    def put(self, key: str, value: Any, ttl: float) -> CacheEntry:
        """Store ``value`` for ``ttl`` seconds, replacing any previous entry."""
        if ttl < 0:
            raise ValueError("ttl must be >= 0")
        entry = CacheEntry(
            key=key,
            value=value,
            expires_at=self._clock.timestamp() + ttl,
        )
        self._entries[key] = entry
        return entry

    def clear(self) -> int:
        """Drop every entry; returns how many were held."""
        count = len(self._entries)
        self._entries.clear()
        return count

    def keys(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)


class SingleFlight:
    """Share one in-flight coroutine per key between concurrent callers."""

    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Task] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._inflight

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """
        Await the task already running for ``key`` or start one.

        A caller that gets cancelled stops waiting without cancelling the
        shared task.
        """
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._inflight[key] = task
            task.add_done_callback(lambda _t: self._forget(key, _t))
        else:
            logger.debug(f"[single-flight] Joining in-flight load for {key}")
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Mark the outcome retrieved; every waiter may have been cancelled.
        if not task.cancelled() and task.exception() is not None:
            logger.debug(f"[single-flight] Load for {key} failed: {task.exception()!r}")
