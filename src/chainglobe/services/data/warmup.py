"""
Bulk warm-up driver.

Routes every roster entity through the snapshot cache once at startup so
later on-demand requests are cache hits. Launches are staggered so the
providers do not see a burst of identical bulk requests.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, List

from loguru import logger

from chainglobe.core.constants import WARMUP_STAGGER_SECONDS
from chainglobe.services.data.snapshot_cache import EntitySnapshotCache


@dataclass
class WarmUpReport:
    """Which entities were warmed and which failed."""
    warmed: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.warmed) + len(self.failed)


class WarmUpDriver:
    """
    Staggered warm-up of the snapshot cache.

    Entity i starts i * stagger_seconds after the first one. A failure of one
    entity is logged and does not stop the others.
    """

    def __init__(
        self,
        snapshot_cache: EntitySnapshotCache,
        stagger_seconds: float = WARMUP_STAGGER_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.snapshot_cache = snapshot_cache
        self.stagger_seconds = stagger_seconds
        self.sleep = sleep

    async def warm_all(self, entities: Iterable[str]) -> WarmUpReport:
        names = list(entities)
        logger.info(f"Warming {len(names)} entities (stagger {self.stagger_seconds * 1000:.0f}ms)")

        outcomes = await asyncio.gather(
            *(self._warm_one(name, index * self.stagger_seconds) for index, name in enumerate(names))
        )

        report = WarmUpReport()
        for name, ok in zip(names, outcomes):
            (report.warmed if ok else report.failed).append(name)

        logger.info(f"Warm-up complete: {len(report.warmed)}/{report.total} entities cached")
        return report

    async def _warm_one(self, name: str, delay: float) -> bool:
        if delay > 0:
            await self.sleep(delay)
        try:
            await self.snapshot_cache.get_or_refresh(name)
            return True
        except Exception as e:
            logger.bind(event="warmup_failed", entity=name).error(
                f"warmup_failed | {name} | {type(e).__name__}: {e}"
            )
            return False
