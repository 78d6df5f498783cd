"""
DexScreener on-chain liquidity client.

Two-tier strategy:
1. GET /pairs/{chainId}   sum liquidity.usd over every pair on the chain
2. GET /search?q=...      fallback when tier 1 fails or sums to zero; sums
                          the highest-liquidity matches only

Not every chain is indexable by chain id on DexScreener, hence the search.
"""

from typing import Any, Dict, List, Optional, Tuple

from chainglobe.adapters.providers.base import ProviderClient
from chainglobe.core.constants import DEXSCREENER_BASE_URL, LIQUIDITY_SEARCH_LIMIT
from chainglobe.domain.identity import IdentityResolver
from chainglobe.services.data.types import (
    FailureCause,
    LiquidityMetrics,
    ProviderError,
    ProviderResult,
    ProviderType,
)
from chainglobe.utils.numbers import safe_float


def pair_liquidity(pair: Dict[str, Any]) -> float:
    liquidity = pair.get("liquidity")
    if not isinstance(liquidity, dict):
        return 0.0
    return safe_float(liquidity.get("usd"))


class DexScreenerClient(ProviderClient):
    """Total DEX liquidity and pair count per chain."""

    provider = ProviderType.LIQUIDITY

    def __init__(
        self,
        resolver: IdentityResolver,
        base_url: str = DEXSCREENER_BASE_URL,
        search_limit: int = LIQUIDITY_SEARCH_LIMIT,
        **kwargs
    ):
        super().__init__(base_url, **kwargs)
        self.resolver = resolver
        self.search_limit = search_limit

    async def fetch_for_entity(self, name: str, resolved_id: Optional[str] = None) -> ProviderResult:
        identity = self.resolver.resolve(name)
        chain_id = resolved_id or identity.dexscreener_chain

        pairs, _ = await self._fetch_pairs(f"{self.base_url}/pairs/{chain_id}", chain_id)
        if pairs:
            total = sum(pair_liquidity(p) for p in pairs)
            if total > 0:
                metrics = LiquidityMetrics(
                    chain_id=chain_id,
                    total_liquidity=total,
                    pair_count=len(pairs),
                    method="chain_pairs",
                )
                return self._ok(name, metrics, method=metrics.method, liquidity=total)

        # Tier 2: search by symbol (or name)
        query = identity.symbol if identity.known else name
        matches, cause = await self._fetch_pairs(f"{self.base_url}/search", name, params={"q": query or name})
        if matches is None:
            return self._fail(name, cause, f"liquidity lookups failed for '{chain_id}'")

        top = sorted(matches, key=pair_liquidity, reverse=True)[:self.search_limit]
        total = sum(pair_liquidity(p) for p in top)
        if total <= 0:
            return self._fail(name, FailureCause.NOT_FOUND, f"no liquidity found for '{chain_id}' or '{query}'")

        metrics = LiquidityMetrics(
            chain_id=chain_id,
            total_liquidity=total,
            pair_count=len(matches),
            method="search",
        )
        return self._ok(name, metrics, method=metrics.method, liquidity=total)

    async def _fetch_pairs(
        self,
        url: str,
        entity: str,
        params: Optional[Dict[str, str]] = None
    ) -> Tuple[Optional[List[Dict[str, Any]]], Optional[FailureCause]]:
        """
        Pair list from a pairs/search document.

        Returns (pairs, None) on success, where a null "pairs" means no
        pairs, and (None, cause) when the lookup failed.
        """
        try:
            data = await self._get_json(url, params=params)
        except ProviderError as e:
            self.events.fetch_failed(cause=e.cause.value, entity=entity, detail=str(e))
            return None, e.cause

        pairs = data.get("pairs") if isinstance(data, dict) else data
        if isinstance(data, dict) and pairs is None:
            return [], None
        if not isinstance(data, dict) or not isinstance(pairs, list):
            detail = f"GET {url} returned pairs of type {type(pairs).__name__}"
            self.events.fetch_failed(cause=FailureCause.SCHEMA.value, entity=entity, detail=detail)
            return None, FailureCause.SCHEMA
        return [p for p in pairs if isinstance(p, dict)], None
