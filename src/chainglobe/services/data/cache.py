"""
Per-provider bulk cache.

Each bulk provider owns one TTLCache instance, constructed once by the engine
and injected into the client. Keys name the bulk collection ("chains",
"protocols", "pools", ...). A load is stored with a fresh timestamp even when
it produced an empty or failed listing, so a provider that is down is asked
at most once per TTL window.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from loguru import logger


class _Miss:
    """Sentinel for a cache miss (None is a legitimate payload)."""

    def __repr__(self) -> str:
        return "MISS"

    def __bool__(self) -> bool:
        return False


MISS = _Miss()


class TTLCache:
    """
    Time-boxed in-memory cache with request coalescing.

    A get is a hit iff an entry exists and ``now - fetched_at < ttl``.

    Usage:
        cache = TTLCache("defillama", ttl_seconds=300)
        listing = await cache.get_or_load("chains", client._load_chains)
    """

    def __init__(
        self,
        name: str,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic
    ):
        self.name = name
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._inflight: Dict[str, "asyncio.Future[Any]"] = {}

    def get(self, key: str = "all") -> Any:
        """Return the cached payload, or MISS if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return MISS
        fetched_at, payload = entry
        if self.clock() - fetched_at >= self.ttl_seconds:
            return MISS
        return payload

    def put(self, key: str, payload: Any) -> None:
        """Store payload with a new timestamp (unconditionally)."""
        self._entries[key] = (self.clock(), payload)

    def invalidate(self, key: Optional[str] = None) -> None:
        """Drop one key, or everything when key is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def fetched_at(self, key: str = "all") -> Optional[float]:
        entry = self._entries.get(key)
        return entry[0] if entry else None

    async def get_or_load(self, key: str, loader: Callable[[], Awaitable[Any]]) -> Any:
        """
        Return the cached payload, loading it on a miss.

        Concurrent misses for the same key share one load. If the loader
        raises, nothing is stored and every waiter sees the exception.
        """
        payload = self.get(key)
        if payload is not MISS:
            logger.debug(f"Cache hit {self.name}:{key}")
            return payload

        pending = self._inflight.get(key)
        if pending is not None:
            logger.debug(f"Joining in-flight load {self.name}:{key}")
            return await asyncio.shield(pending)

        task = asyncio.ensure_future(self._load(key, loader))
        self._inflight[key] = task
        return await asyncio.shield(task)

    async def _load(self, key: str, loader: Callable[[], Awaitable[Any]]) -> Any:
        # Runs to completion even if the caller that started it goes away
        try:
            payload = await loader()
            self.put(key, payload)
            return payload
        finally:
            self._inflight.pop(key, None)
