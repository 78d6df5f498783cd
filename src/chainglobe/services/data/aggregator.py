"""
Multi-provider snapshot aggregator.

Fans out to all six provider clients concurrently, waits for every call to
settle, and merges the outcomes into one CompositeSnapshot. A provider that
fails (or whose client raises despite the fail-soft contract) contributes its
documented default; it never prevents the other five from being merged.
"""

import asyncio
import time
from typing import Any, Callable, Dict, Iterable, List, Optional

from loguru import logger

from chainglobe.adapters.providers.base import ProviderClient
from chainglobe.domain.identity import IdentityResolver
from chainglobe.services.data.types import (
    CompositeSnapshot,
    FailureCause,
    ProviderResult,
    ProviderType,
)

Merger = Callable[[ProviderResult, Dict[str, Any]], None]


# ========== Per-provider merge steps ==========
# Each writes only its own snapshot fields; failed results leave defaults.

def _merge_registry(result: ProviderResult, fields: Dict[str, Any]) -> None:
    if result.ok:
        fields["tvl"] = result.payload.tvl
        fields["registry"] = result.payload


def _merge_market(result: ProviderResult, fields: Dict[str, Any]) -> None:
    if result.ok:
        fields["price"] = result.payload.price
        fields["market"] = result.payload


def _merge_liquidity(result: ProviderResult, fields: Dict[str, Any]) -> None:
    if result.ok:
        fields["liquidity"] = result.payload.total_liquidity
        fields["liquidity_detail"] = result.payload


def _merge_stablecoins(result: ProviderResult, fields: Dict[str, Any]) -> None:
    if result.ok:
        fields["stablecoin_tvl"] = result.payload.circulating_usd


def _merge_yields(result: ProviderResult, fields: Dict[str, Any]) -> None:
    if result.ok:
        fields["yield_stats"] = result.payload


def _merge_sentiment(result: ProviderResult, fields: Dict[str, Any]) -> None:
    if result.ok:
        fields["sentiment"] = result.payload


MERGERS: Dict[ProviderType, Merger] = {
    ProviderType.REGISTRY: _merge_registry,
    ProviderType.MARKET: _merge_market,
    ProviderType.LIQUIDITY: _merge_liquidity,
    ProviderType.STABLECOINS: _merge_stablecoins,
    ProviderType.YIELDS: _merge_yields,
    ProviderType.SENTIMENT: _merge_sentiment,
}


class SnapshotAggregator:
    """
    Builds composite snapshots from the provider clients.

    Usage:
        aggregator = SnapshotAggregator(clients, resolver)
        snapshot = await aggregator.build_snapshot("Ethereum")
    """

    def __init__(
        self,
        clients: Iterable[ProviderClient],
        resolver: Optional[IdentityResolver] = None,
        clock: Callable[[], float] = time.time
    ):
        self.clients: List[ProviderClient] = list(clients)
        self.resolver = resolver
        self.clock = clock

        providers = [client.provider for client in self.clients]
        if len(set(providers)) != len(providers):
            raise ValueError(f"Duplicate provider clients: {[p.value for p in providers]}")

        logger.info(
            f"SnapshotAggregator initialized with {len(self.clients)} providers: "
            f"{[p.value for p in providers]}"
        )

    def canonical_name(self, name: str) -> str:
        if self.resolver is None:
            return name
        return self.resolver.resolve(name).canonical

    async def build_snapshot(self, name: str) -> CompositeSnapshot:
        """
        Fetch all providers for one entity and merge the outcomes.

        Args:
            name: Canonical entity name (aliases are accepted)

        Returns:
            A fully merged CompositeSnapshot; never raises for provider errors
        """
        canonical = self.canonical_name(name)

        outcomes = await asyncio.gather(
            *(client.fetch_for_entity(canonical) for client in self.clients),
            return_exceptions=True
        )

        fields: Dict[str, Any] = {}
        failures = []
        for client, outcome in zip(self.clients, outcomes):
            result = self._settle(client, canonical, outcome)
            MERGERS[result.provider](result, fields)
            if not result.ok:
                failures.append((result.provider, result.cause))

        snapshot = CompositeSnapshot(
            entity=canonical,
            fetched_at=self.clock(),
            failures=tuple(failures),
            **fields
        )

        logger.bind(
            event="snapshot_refreshed",
            entity=canonical,
            failed=[p.value for p in snapshot.failed_providers],
        ).info(
            f"snapshot_refreshed | {canonical} | "
            f"ok={len(self.clients) - len(failures)}/{len(self.clients)}"
        )
        return snapshot

    @staticmethod
    def _settle(client: ProviderClient, entity: str, outcome: Any) -> ProviderResult:
        """Turn a gathered outcome into a ProviderResult."""
        if isinstance(outcome, ProviderResult):
            return outcome

        if isinstance(outcome, asyncio.CancelledError):
            detail = "provider call cancelled"
        elif isinstance(outcome, BaseException):
            detail = f"{type(outcome).__name__}: {outcome}"
        else:
            detail = f"client returned {type(outcome).__name__}"

        client.events.fetch_failed(
            cause=FailureCause.UNEXPECTED.value,
            entity=entity,
            detail=detail
        )
        return ProviderResult.failure(client.provider, FailureCause.UNEXPECTED, detail=detail)
