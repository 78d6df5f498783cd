"""
DefiLlama registry client.

Bulk endpoints (cached):
- GET /v2/chains     all chains with current TVL
- GET /protocols     all protocols with their chain lists

Per-chain endpoints (not cached, each fails soft to zeros):
- GET /overview/dexs/{chain}
- GET /overview/fees/{chain}
- GET /bridges/{chain}
- GET /v2/historicalChainTvl/{chain}
"""

import asyncio
from collections import Counter
from typing import Any, Dict, List, Optional

from chainglobe.adapters.providers.base import ProviderClient
from chainglobe.core.constants import DEFILLAMA_BASE_URL, TOP_PROTOCOLS_LIMIT
from chainglobe.domain.identity import IdentityResolver
from chainglobe.services.data.cache import TTLCache
from chainglobe.services.data.types import (
    BridgeVolume,
    BulkListing,
    DexVolume,
    FailureCause,
    FeeMetrics,
    ProtocolInfo,
    ProviderError,
    ProviderResult,
    ProviderType,
    RegistryMetrics,
    TvlHistory,
)
from chainglobe.utils.numbers import pct_change, safe_float

# Overview endpoints return large chart arrays unless told not to
OVERVIEW_PARAMS = {
    "excludeTotalDataChart": "true",
    "excludeTotalDataChartBreakdown": "true",
}


class DefiLlamaClient(ProviderClient):
    """
    TVL / protocol registry.

    The registry result for an entity is successful iff the chain is present
    in the bulk TVL listing. Detail sub-calls are gathered concurrently and
    each degrades to a zero-valued record on its own.
    """

    provider = ProviderType.REGISTRY

    def __init__(
        self,
        resolver: IdentityResolver,
        cache: TTLCache,
        base_url: str = DEFILLAMA_BASE_URL,
        top_protocols_limit: int = TOP_PROTOCOLS_LIMIT,
        **kwargs
    ):
        super().__init__(base_url, **kwargs)
        self.resolver = resolver
        self.cache = cache
        self.top_protocols_limit = top_protocols_limit

    # ========== Bulk listings ==========

    async def fetch_chain_listing(self) -> BulkListing:
        return await self.cache.get_or_load("chains", self._load_chains)

    async def fetch_protocol_listing(self) -> BulkListing:
        return await self.cache.get_or_load("protocols", self._load_protocols)

    async def fetch_all(self) -> Dict[str, Dict[str, Any]]:
        """All chains keyed by registry name (empty on failure)."""
        listing = await self.fetch_chain_listing()
        return listing.items

    async def fetch_tvl_map(self) -> Dict[str, float]:
        """Chain name -> TVL in USD."""
        chains = await self.fetch_all()
        return {name: safe_float(chain.get("tvl")) for name, chain in chains.items()}

    async def _load_chains(self) -> BulkListing:
        try:
            data = await self._get_json(f"{self.base_url}/v2/chains")
        except ProviderError as e:
            self.events.fetch_failed(cause=e.cause.value, detail=str(e), key="chains")
            return BulkListing(cause=e.cause, detail=str(e))

        if not isinstance(data, list):
            detail = f"/v2/chains returned {type(data).__name__}, expected list"
            self.events.fetch_failed(cause=FailureCause.SCHEMA.value, detail=detail, key="chains")
            return BulkListing(cause=FailureCause.SCHEMA, detail=detail)

        items = {
            chain["name"]: chain
            for chain in data
            if isinstance(chain, dict) and chain.get("name")
        }
        self.events.bulk_refreshed("chains", len(items))
        return BulkListing(items=items)

    async def _load_protocols(self) -> BulkListing:
        try:
            data = await self._get_json(f"{self.base_url}/protocols")
        except ProviderError as e:
            self.events.fetch_failed(cause=e.cause.value, detail=str(e), key="protocols")
            return BulkListing(cause=e.cause, detail=str(e))

        if not isinstance(data, list):
            detail = f"/protocols returned {type(data).__name__}, expected list"
            self.events.fetch_failed(cause=FailureCause.SCHEMA.value, detail=detail, key="protocols")
            return BulkListing(cause=FailureCause.SCHEMA, detail=detail)

        items = {
            protocol["name"]: protocol
            for protocol in data
            if isinstance(protocol, dict) and protocol.get("name")
        }
        self.events.bulk_refreshed("protocols", len(items))
        return BulkListing(items=items)

    # ========== Per-entity ==========

    async def fetch_for_entity(self, name: str, resolved_id: Optional[str] = None) -> ProviderResult:
        """
        Registry metrics for one chain.

        Args:
            name: Canonical entity name
            resolved_id: Registry chain name, if already known

        Returns:
            ProviderResult carrying RegistryMetrics (zero-valued on failure)
        """
        listing = await self.fetch_chain_listing()
        key = resolved_id or self.resolver.provider_key(name, self.provider, listing.items)
        chain = listing.items.get(key)

        if chain is None:
            if listing.ok:
                return self._fail(name, FailureCause.NOT_FOUND, f"chain '{key}' not in registry",
                                  payload=RegistryMetrics(chain_key=key))
            return self._fail(name, listing.cause, listing.detail or "chain listing unavailable",
                              payload=RegistryMetrics(chain_key=key))

        protocols, dex, fees, bridges, history = await asyncio.gather(
            self.fetch_protocol_listing(),
            self._fetch_dex_volume(key),
            self._fetch_fees(key),
            self._fetch_bridges(key),
            self._fetch_history(key),
        )

        chain_protocols = self.protocols_on_chain(protocols.items, key)
        categories = Counter(p.get("category") or "Other" for p in chain_protocols)

        metrics = RegistryMetrics(
            chain_key=key,
            tvl=safe_float(chain.get("tvl")),
            token_symbol=chain.get("tokenSymbol"),
            gecko_id=chain.get("gecko_id"),
            chain_id=chain.get("chainId"),
            dapp_count=len(chain_protocols),
            categories=tuple(categories.most_common()),
            top_protocols=tuple(
                self._to_protocol_info(p) for p in chain_protocols[:self.top_protocols_limit]
            ),
            dex=dex,
            fees=fees,
            bridges=bridges,
            history=history,
        )
        return self._ok(name, metrics, tvl=metrics.tvl)

    @staticmethod
    def protocols_on_chain(protocols: Dict[str, Dict[str, Any]], chain_key: str) -> List[Dict[str, Any]]:
        """Protocols deployed on chain_key, highest TVL first."""
        on_chain = [
            p for p in protocols.values()
            if isinstance(p.get("chains"), list) and chain_key in p["chains"]
        ]
        on_chain.sort(key=lambda p: safe_float(p.get("tvl")), reverse=True)
        return on_chain

    @staticmethod
    def _to_protocol_info(protocol: Dict[str, Any]) -> ProtocolInfo:
        return ProtocolInfo(
            name=protocol["name"],
            tvl=safe_float(protocol.get("tvl")),
            category=protocol.get("category") or "Other",
            slug=protocol.get("slug"),
            logo=protocol.get("logo"),
            url=protocol.get("url"),
        )

    async def _fetch_detail(self, chain_key: str, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        """GET a per-chain detail document; None on any failure."""
        try:
            return await self._get_json(f"{self.base_url}{path}", params=params)
        except ProviderError as e:
            # Many chains simply have no dex/fees/bridge data
            self.events.fetch_failed(cause=e.cause.value, entity=chain_key, detail=str(e), endpoint=path)
            return None

    async def _fetch_dex_volume(self, chain_key: str) -> DexVolume:
        data = await self._fetch_detail(chain_key, f"/overview/dexs/{chain_key}", OVERVIEW_PARAMS)
        if not isinstance(data, dict):
            return DexVolume()
        protocols = data.get("protocols")
        return DexVolume(
            volume_24h=safe_float(data.get("total24h", data.get("totalVolume"))),
            volume_7d=safe_float(data.get("total7d", data.get("totalVolume7d"))),
            change_1d=safe_float(data.get("change_1d")),
            change_7d=safe_float(data.get("change_7d")),
            protocol_count=len(protocols) if isinstance(protocols, list) else 0,
        )

    async def _fetch_fees(self, chain_key: str) -> FeeMetrics:
        data = await self._fetch_detail(chain_key, f"/overview/fees/{chain_key}", OVERVIEW_PARAMS)
        if not isinstance(data, dict):
            return FeeMetrics()
        return FeeMetrics(
            fees_24h=safe_float(data.get("total24h", data.get("totalFees24h"))),
            fees_7d=safe_float(data.get("total7d", data.get("totalFees7d"))),
            revenue_24h=safe_float(data.get("totalRevenue24h")),
            revenue_7d=safe_float(data.get("totalRevenue7d")),
            change_1d=safe_float(data.get("change_1d")),
            change_7d=safe_float(data.get("change_7d")),
        )

    async def _fetch_bridges(self, chain_key: str) -> BridgeVolume:
        data = await self._fetch_detail(chain_key, f"/bridges/{chain_key}")
        bridges = data.get("bridges") if isinstance(data, dict) else None
        if not isinstance(bridges, list):
            return BridgeVolume()
        bridges = [b for b in bridges if isinstance(b, dict)]
        return BridgeVolume(
            volume_24h=sum(safe_float(b.get("volume24h")) for b in bridges),
            volume_7d=sum(safe_float(b.get("volume7d")) for b in bridges),
            volume_30d=sum(safe_float(b.get("volume30d")) for b in bridges),
            bridge_count=len(bridges),
        )

    async def _fetch_history(self, chain_key: str) -> TvlHistory:
        data = await self._fetch_detail(chain_key, f"/v2/historicalChainTvl/{chain_key}")
        if not isinstance(data, list) or not data:
            return TvlHistory()

        points = [safe_float(point.get("tvl")) for point in data if isinstance(point, dict)]
        if not points:
            return TvlHistory()

        latest = points[-1]
        day_ago = points[-2] if len(points) > 1 else latest
        week_ago = points[-8] if len(points) > 7 else latest
        return TvlHistory(
            current_tvl=latest,
            change_1d=pct_change(latest, day_ago),
            change_7d=pct_change(latest, week_ago),
            data_points=len(points),
        )
