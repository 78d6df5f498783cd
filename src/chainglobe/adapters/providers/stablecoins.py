"""
DefiLlama stablecoins client.

Bulk: GET /stablecoinchains -> circulating USD-pegged supply per chain.
"""

from typing import Dict, Optional

from chainglobe.adapters.providers.base import ProviderClient
from chainglobe.core.constants import STABLECOINS_BASE_URL
from chainglobe.domain.identity import IdentityResolver
from chainglobe.services.data.cache import TTLCache
from chainglobe.services.data.types import (
    BulkListing,
    FailureCause,
    ProviderError,
    ProviderResult,
    ProviderType,
    StablecoinMetrics,
)
from chainglobe.utils.numbers import safe_float


class StablecoinsClient(ProviderClient):
    """Stablecoin supply per chain; failures carry a zero-valued payload."""

    provider = ProviderType.STABLECOINS

    def __init__(
        self,
        resolver: IdentityResolver,
        cache: TTLCache,
        base_url: str = STABLECOINS_BASE_URL,
        **kwargs
    ):
        super().__init__(base_url, **kwargs)
        self.resolver = resolver
        self.cache = cache

    async def fetch_listing(self) -> BulkListing:
        return await self.cache.get_or_load("chains", self._load_chains)

    async def fetch_all(self) -> Dict[str, float]:
        """Chain name -> circulating USD (empty on failure)."""
        listing = await self.fetch_listing()
        return listing.items

    async def _load_chains(self) -> BulkListing:
        try:
            data = await self._get_json(f"{self.base_url}/stablecoinchains")
        except ProviderError as e:
            self.events.fetch_failed(cause=e.cause.value, detail=str(e), key="chains")
            return BulkListing(cause=e.cause, detail=str(e))

        if not isinstance(data, list):
            detail = f"/stablecoinchains returned {type(data).__name__}, expected list"
            self.events.fetch_failed(cause=FailureCause.SCHEMA.value, detail=detail, key="chains")
            return BulkListing(cause=FailureCause.SCHEMA, detail=detail)

        items: Dict[str, float] = {}
        for chain in data:
            if not isinstance(chain, dict) or not chain.get("name"):
                continue
            circulating = chain.get("totalCirculatingUSD")
            pegged = circulating.get("peggedUSD") if isinstance(circulating, dict) else None
            items[chain["name"]] = safe_float(pegged)

        self.events.bulk_refreshed("chains", len(items))
        return BulkListing(items=items)

    async def fetch_for_entity(self, name: str, resolved_id: Optional[str] = None) -> ProviderResult:
        listing = await self.fetch_listing()
        key = resolved_id or self.resolver.provider_key(name, self.provider, listing.items)

        if key not in listing.items:
            empty = StablecoinMetrics(chain_key=key)
            if listing.ok:
                return self._fail(name, FailureCause.NOT_FOUND, f"chain '{key}' has no stablecoin data",
                                  payload=empty)
            return self._fail(name, listing.cause, listing.detail or "stablecoin listing unavailable",
                              payload=empty)

        metrics = StablecoinMetrics(chain_key=key, circulating_usd=listing.items[key])
        return self._ok(name, metrics, circulating_usd=metrics.circulating_usd)
