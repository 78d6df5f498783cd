"""
Entity snapshot cache.

Holds the latest CompositeSnapshot per canonical entity name. Fresh entries
are returned as-is (the same object on every hit); stale or missing entries
are rebuilt through the aggregator. Concurrent refreshes of one entity share
a single in-flight task, and a stored snapshot is only ever replaced by a
newer one, so callers never observe time going backwards.
"""

import asyncio
import time
from typing import Callable, Dict, List, Optional

from loguru import logger

from chainglobe.core.constants import SNAPSHOT_STALENESS_SECONDS
from chainglobe.services.data.aggregator import SnapshotAggregator
from chainglobe.services.data.types import CompositeSnapshot


class EntitySnapshotCache:
    """
    Freshness-bounded snapshot store with request coalescing.

    Usage:
        cache = EntitySnapshotCache(aggregator, staleness_seconds=300)
        snapshot = await cache.get_or_refresh("Ethereum")
    """

    def __init__(
        self,
        aggregator: SnapshotAggregator,
        staleness_seconds: float = SNAPSHOT_STALENESS_SECONDS,
        clock: Callable[[], float] = time.time
    ):
        self.aggregator = aggregator
        self.staleness_seconds = staleness_seconds
        self.clock = clock
        self._snapshots: Dict[str, CompositeSnapshot] = {}
        self._inflight: Dict[str, "asyncio.Task[CompositeSnapshot]"] = {}

    def is_fresh(self, snapshot: CompositeSnapshot) -> bool:
        return self.clock() - snapshot.fetched_at < self.staleness_seconds

    def peek(self, name: str) -> Optional[CompositeSnapshot]:
        """Stored snapshot regardless of age; never triggers a fetch."""
        return self._snapshots.get(self.aggregator.canonical_name(name))

    def names(self) -> List[str]:
        return list(self._snapshots)

    def invalidate(self, name: Optional[str] = None) -> None:
        """Forget one entity's snapshot, or all of them."""
        if name is None:
            self._snapshots.clear()
        else:
            self._snapshots.pop(self.aggregator.canonical_name(name), None)

    async def get_or_refresh(self, name: str) -> CompositeSnapshot:
        """
        Return a fresh snapshot, refreshing through the aggregator if needed.

        Callers arriving while a refresh for the same entity is in flight
        wait for that refresh instead of starting another. A caller that is
        cancelled does not cancel the shared refresh.
        """
        key = self.aggregator.canonical_name(name)

        snapshot = self._snapshots.get(key)
        if snapshot is not None and self.is_fresh(snapshot):
            logger.debug(f"Snapshot hit {key}")
            return snapshot

        task = self._inflight.get(key)
        if task is None:
            logger.debug(f"Snapshot {'stale' if snapshot else 'miss'} {key}, refreshing")
            task = asyncio.ensure_future(self._refresh(key))
            self._inflight[key] = task
        else:
            logger.debug(f"Joining in-flight refresh {key}")

        return await asyncio.shield(task)

    async def _refresh(self, key: str) -> CompositeSnapshot:
        try:
            snapshot = await self.aggregator.build_snapshot(key)
            current = self._snapshots.get(key)
            if current is not None and current.fetched_at > snapshot.fetched_at:
                # Keep monotonic freshness if an older build finishes late
                return current
            self._snapshots[key] = snapshot
            return snapshot
        finally:
            self._inflight.pop(key, None)
