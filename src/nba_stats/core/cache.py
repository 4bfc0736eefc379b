"""In-process TTL cache for upstream payloads with single-flight fetches.

Concurrent callers asking for the same key while a fetch is running await
that fetch instead of issuing their own. The fetch runs in a task owned by
the cache, so one caller going away never fails the others; it is cancelled
only once nobody is waiting on it. Failures are not cached.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Hashable, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 1024


def cache_key(url: str, params: Optional[Mapping[str, Any]] = None) -> tuple:
    return (url, tuple(sorted((str(k), str(v)) for k, v in (params or {}).items())))


class _Flight:
    """A shared fetch and the number of callers still awaiting it."""

    __slots__ = ("task", "waiters")

    def __init__(self, task: asyncio.Task):
        self.task = task
        self.waiters = 0


class ResponseCache:
    """Payloads keyed by (url, params), expiring after `ttl_s` seconds.

    Expired entries are swept whenever a new payload is stored, and at most
    `max_entries` payloads are kept (oldest dropped first).
    """

    def __init__(
        self,
        ttl_s: float,
        *,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_s <= 0:
            raise ValueError("ttl_s must be positive")
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl_s = ttl_s
        self.max_entries = max_entries
        self._clock = clock
        # insertion order == expiry order, since every entry shares one TTL
        self._entries: dict[Hashable, tuple[float, Any]] = {}
        self._inflight: dict[Hashable, _Flight] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    def get(self, key: Hashable) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def _store(self, key: Hashable, value: Any) -> None:
        now = self._clock()
        expired = []
        for k, (expires_at, _) in self._entries.items():
            if expires_at > now:
                break
            expired.append(k)
        for k in expired:
            del self._entries[k]

        self._entries.pop(key, None)
        while len(self._entries) >= self.max_entries:
            del self._entries[next(iter(self._entries))]
        self._entries[key] = (now + self.ttl_s, value)

    async def _fill(self, key: Hashable, fetch: Callable[[], Awaitable[Any]]) -> Any:
        value = await fetch()
        self._store(key, value)
        return value

    def _settle(self, key: Hashable, flight: _Flight) -> None:
        if self._inflight.get(key) is flight:
            del self._inflight[key]
        task = flight.task
        if not task.cancelled():
            # mark retrieved so an unobserved failure is not reported at GC
            task.exception()

    async def get_or_fetch(self, key: Hashable, fetch: Callable[[], Awaitable[Any]]) -> Any:
        cached = self.get(key)
        if cached is not None:
            self.hits += 1
            return cached

        flight = self._inflight.get(key)
        if flight is None:
            self.misses += 1
            flight = _Flight(asyncio.ensure_future(self._fill(key, fetch)))
            self._inflight[key] = flight
            flight.task.add_done_callback(lambda _, key=key, flight=flight: self._settle(key, flight))
        else:
            self.hits += 1

        flight.waiters += 1
        try:
            return await asyncio.shield(flight.task)
        finally:
            flight.waiters -= 1
            if flight.waiters == 0 and not flight.task.done():
                logger.debug("No callers left for %s; cancelling shared fetch", key)
                flight.task.cancel()
