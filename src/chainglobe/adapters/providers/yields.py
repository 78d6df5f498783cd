"""
DefiLlama yields client.

Bulk: GET /pools -> every tracked yield pool; grouped here by chain name.
"""

from collections import defaultdict
from typing import Any, Dict, List, Optional

from chainglobe.adapters.providers.base import ProviderClient
from chainglobe.core.constants import (
    TOP_YIELDS_LIMIT,
    YIELD_MAX_REASONABLE_APY,
    YIELD_MIN_POOL_TVL_USD,
    YIELDS_BASE_URL,
)
from chainglobe.domain.identity import IdentityResolver
from chainglobe.services.data.cache import TTLCache
from chainglobe.services.data.types import (
    BulkListing,
    FailureCause,
    ProviderError,
    ProviderResult,
    ProviderType,
    YieldMetrics,
    YieldPool,
)
from chainglobe.utils.numbers import middle_value, safe_float


class YieldsClient(ProviderClient):
    """
    Aggregate APY statistics and top pools per chain.

    APYs outside (0, max_apy) are treated as unrealistic and excluded from
    the averages. The TVL-weighted average divides by the TVL of all chain
    pools, including the excluded ones.
    """

    provider = ProviderType.YIELDS

    def __init__(
        self,
        resolver: IdentityResolver,
        cache: TTLCache,
        base_url: str = YIELDS_BASE_URL,
        top_limit: int = TOP_YIELDS_LIMIT,
        min_pool_tvl: float = YIELD_MIN_POOL_TVL_USD,
        max_apy: float = YIELD_MAX_REASONABLE_APY,
        **kwargs
    ):
        super().__init__(base_url, **kwargs)
        self.resolver = resolver
        self.cache = cache
        self.top_limit = top_limit
        self.min_pool_tvl = min_pool_tvl
        self.max_apy = max_apy

    async def fetch_listing(self) -> BulkListing:
        return await self.cache.get_or_load("pools", self._load_pools)

    async def fetch_all(self) -> Dict[str, List[Dict[str, Any]]]:
        """Chain name -> pools on that chain (empty on failure)."""
        listing = await self.fetch_listing()
        return listing.items

    async def _load_pools(self) -> BulkListing:
        try:
            data = await self._get_json(f"{self.base_url}/pools")
        except ProviderError as e:
            self.events.fetch_failed(cause=e.cause.value, detail=str(e), key="pools")
            return BulkListing(cause=e.cause, detail=str(e))

        pools = data.get("data") if isinstance(data, dict) else None
        if not isinstance(pools, list):
            detail = "/pools response has no 'data' list"
            self.events.fetch_failed(cause=FailureCause.SCHEMA.value, detail=detail, key="pools")
            return BulkListing(cause=FailureCause.SCHEMA, detail=detail)

        by_chain: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        for pool in pools:
            if isinstance(pool, dict) and pool.get("chain"):
                by_chain[pool["chain"]].append(pool)

        self.events.bulk_refreshed("pools", len(pools), chains=len(by_chain))
        return BulkListing(items=dict(by_chain))

    async def fetch_for_entity(self, name: str, resolved_id: Optional[str] = None) -> ProviderResult:
        listing = await self.fetch_listing()
        key = resolved_id or self.resolver.provider_key(name, self.provider, listing.items)

        if not listing.ok:
            return self._fail(name, listing.cause, listing.detail or "pool listing unavailable")

        metrics = self.compute_stats(key, listing.items.get(key, []))
        if metrics is None:
            return self._fail(name, FailureCause.NOT_FOUND, f"no yield pools for chain '{key}'")
        return self._ok(name, metrics, pool_count=metrics.pool_count)

    def _is_realistic(self, apy: float) -> bool:
        return 0 < apy < self.max_apy

    def compute_stats(self, chain_key: str, pools: List[Dict[str, Any]]) -> Optional[YieldMetrics]:
        """
        Yield statistics for one chain's pools.

        Returns:
            YieldMetrics, or None when the chain has no pools with TVL
        """
        chain_pools = [p for p in pools if safe_float(p.get("tvlUsd")) > 0]
        if not chain_pools:
            return None

        total_tvl = sum(safe_float(p.get("tvlUsd")) for p in chain_pools)
        realistic = [p for p in chain_pools if self._is_realistic(safe_float(p.get("apy")))]
        apys = [safe_float(p.get("apy")) for p in realistic]

        avg_apy = sum(apys) / len(apys) if apys else 0.0
        weighted_sum = sum(safe_float(p.get("apy")) * safe_float(p.get("tvlUsd")) for p in realistic)
        weighted_avg = weighted_sum / total_tvl if total_tvl > 0 else 0.0

        return YieldMetrics(
            chain_key=chain_key,
            pool_count=len(chain_pools),
            total_yield_tvl=total_tvl,
            avg_apy=avg_apy,
            weighted_avg_apy=weighted_avg,
            median_apy=middle_value(apys),
            top_pools=tuple(self.top_pools(chain_pools)),
        )

    def top_pools(self, pools: List[Dict[str, Any]]) -> List[YieldPool]:
        """Largest pools by TVL with TVL above the minimum and a realistic APY."""
        eligible = [
            p for p in pools
            if safe_float(p.get("tvlUsd")) > self.min_pool_tvl
            and self._is_realistic(safe_float(p.get("apy")))
        ]
        eligible.sort(key=lambda p: safe_float(p.get("tvlUsd")), reverse=True)
        return [
            YieldPool(
                pool=str(p.get("pool", "")),
                project=str(p.get("project", "")),
                symbol=str(p.get("symbol", "")),
                chain=str(p.get("chain", "")),
                apy=safe_float(p.get("apy")),
                apy_base=safe_float(p.get("apyBase")),
                apy_reward=safe_float(p.get("apyReward")),
                tvl_usd=safe_float(p.get("tvlUsd")),
                stablecoin=bool(p.get("stablecoin", False)),
            )
            for p in eligible[:self.top_limit]
        ]
