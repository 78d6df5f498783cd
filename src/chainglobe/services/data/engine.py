"""
Chain data engine.

Single entry point for consumers: owns the roster, resolver, provider
clients with their bulk caches, aggregator, snapshot cache and warm-up
driver. Construct once per process.

Usage:
    engine = ChainDataEngine(load_config())
    await engine.warm_all()
    snapshot = await engine.get_or_refresh("Ethereum")
    print(snapshot.to_display())
    engine.close()
"""

import time
from typing import Callable, Dict, Iterable, List, Optional

from loguru import logger

from chainglobe.adapters.providers import (
    CoinGeckoClient,
    DefiLlamaClient,
    DexScreenerClient,
    FearGreedClient,
    ProviderClient,
    StablecoinsClient,
    YieldsClient,
)
from chainglobe.core.config import EngineConfig
from chainglobe.domain.entities import Entity, Roster
from chainglobe.domain.identity import IdentityResolver
from chainglobe.services.data.aggregator import SnapshotAggregator
from chainglobe.services.data.cache import TTLCache
from chainglobe.services.data.discovery import calculate_market_share, discover_entities
from chainglobe.services.data.snapshot_cache import EntitySnapshotCache
from chainglobe.services.data.types import CompositeSnapshot, ProviderType
from chainglobe.services.data.warmup import WarmUpDriver, WarmUpReport


class ChainDataEngine:
    """Facade over the aggregation and caching engine."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        roster: Optional[Roster] = None,
        clock: Callable[[], float] = time.time
    ):
        self.config = config or EngineConfig()
        self.roster = roster if roster is not None else Roster()
        self.resolver = IdentityResolver(self.roster, self.config.endpoints.defillama_icons)

        ttls = self.config.ttls
        self.caches: Dict[ProviderType, TTLCache] = {
            ProviderType.REGISTRY: TTLCache("defillama", ttls.registry_seconds, clock),
            ProviderType.STABLECOINS: TTLCache("stablecoins", ttls.stablecoins_seconds, clock),
            ProviderType.YIELDS: TTLCache("yields", ttls.yields_seconds, clock),
            ProviderType.SENTIMENT: TTLCache("feargreed", ttls.sentiment_seconds, clock),
        }

        http = {
            "timeout": self.config.request_timeout_seconds,
            "user_agent": self.config.user_agent,
        }
        endpoints = self.config.endpoints
        self.registry = DefiLlamaClient(
            self.resolver,
            self.caches[ProviderType.REGISTRY],
            base_url=endpoints.defillama,
            top_protocols_limit=self.config.top_protocols_limit,
            **http
        )
        self.clients: List[ProviderClient] = [
            self.registry,
            CoinGeckoClient(
                self.resolver,
                base_url=endpoints.coingecko,
                history_days=self.config.price_history_days,
                calls_per_minute=self.config.coingecko_calls_per_minute,
                **http
            ),
            DexScreenerClient(
                self.resolver,
                base_url=endpoints.dexscreener,
                search_limit=self.config.liquidity_search_limit,
                **http
            ),
            StablecoinsClient(
                self.resolver,
                self.caches[ProviderType.STABLECOINS],
                base_url=endpoints.stablecoins,
                **http
            ),
            YieldsClient(
                self.resolver,
                self.caches[ProviderType.YIELDS],
                base_url=endpoints.yields,
                top_limit=self.config.top_yields_limit,
                min_pool_tvl=self.config.yield_min_pool_tvl,
                max_apy=self.config.yield_max_apy,
                **http
            ),
            FearGreedClient(
                self.caches[ProviderType.SENTIMENT],
                base_url=endpoints.fear_greed,
                **http
            ),
        ]

        self.aggregator = SnapshotAggregator(self.clients, self.resolver, clock=clock)
        self.snapshots = EntitySnapshotCache(
            self.aggregator,
            staleness_seconds=ttls.snapshot_staleness_seconds,
            clock=clock
        )
        self.warmup = WarmUpDriver(self.snapshots, stagger_seconds=self.config.warmup_stagger_seconds)

        logger.info(f"ChainDataEngine ready with {len(self.roster)} networks")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    async def get_or_refresh(self, name: str) -> CompositeSnapshot:
        return await self.snapshots.get_or_refresh(name)

    def peek(self, name: str) -> Optional[CompositeSnapshot]:
        return self.snapshots.peek(name)

    async def warm_all(self, entities: Optional[Iterable[str]] = None) -> WarmUpReport:
        """Warm the given entities, or the whole roster."""
        names = list(entities) if entities is not None else self.roster.names()
        return await self.warmup.warm_all(names)

    async def discover_entities(self, min_tvl: Optional[float] = None) -> List[Entity]:
        return await discover_entities(
            self.registry,
            self.roster,
            self.resolver,
            min_tvl=self.config.discovery_min_tvl if min_tvl is None else min_tvl,
            limit=self.config.discovery_limit,
        )

    async def market_share(self, names: Optional[Iterable[str]] = None) -> Dict[str, float]:
        """TVL share (percent) of each roster network among the given ones."""
        tvl_map = await self.registry.fetch_tvl_map()
        selected = list(names) if names is not None else self.roster.names()
        tvl_by_name = {
            name: tvl_map.get(self.resolver.provider_key(name, ProviderType.REGISTRY, tvl_map), 0.0)
            for name in selected
        }
        return calculate_market_share(tvl_by_name)

    def logo_url(self, name: str) -> Optional[str]:
        return self.resolver.logo_url(name)

    def close(self) -> None:
        for client in self.clients:
            client.close()
        logger.info("ChainDataEngine closed")
