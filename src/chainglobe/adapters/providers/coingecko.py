"""
CoinGecko market-data client.

Per-entity, uncached:
- GET /coins/{id}                      current market data
- GET /coins/{id}/market_chart         price history (default 7 days)

Free API, rate limited (10-50 calls/minute, paced locally). No key required.
The price history is only requested once the coin itself has resolved, so
unknown ids spend one call of the budget rather than two.
"""

from typing import Any, Dict, Optional, Tuple

from chainglobe.adapters.providers.base import ProviderClient
from chainglobe.core.constants import COINGECKO_BASE_URL, COINGECKO_CALLS_PER_MINUTE, PRICE_HISTORY_DAYS
from chainglobe.domain.identity import IdentityResolver
from chainglobe.services.data.types import (
    FailureCause,
    MarketMetrics,
    ProviderError,
    ProviderResult,
    ProviderType,
)
from chainglobe.utils.numbers import optional_float, safe_float, safe_int

COIN_PARAMS = {
    "localization": "false",
    "tickers": "false",
    "market_data": "true",
    "community_data": "false",
    "developer_data": "false",
    "sparkline": "false",
}


class CoinGeckoClient(ProviderClient):
    """Spot price, market cap and supply for a chain's native token."""

    provider = ProviderType.MARKET

    def __init__(
        self,
        resolver: IdentityResolver,
        base_url: str = COINGECKO_BASE_URL,
        history_days: int = PRICE_HISTORY_DAYS,
        **kwargs
    ):
        kwargs.setdefault("calls_per_minute", COINGECKO_CALLS_PER_MINUTE)
        super().__init__(base_url, **kwargs)
        self.resolver = resolver
        self.history_days = history_days

    def coin_id_for(self, name: str, resolved_id: Optional[str] = None) -> str:
        """
        CoinGecko uses coin IDs, not chain names.

        Precedence: explicit resolved_id, roster gecko id, then the slugged
        name (CoinGecko ids are lowercase, hyphen-separated).
        """
        if resolved_id:
            return resolved_id
        return self.resolver.resolve(name).gecko_id

    async def fetch_for_entity(self, name: str, resolved_id: Optional[str] = None) -> ProviderResult:
        coin_id = self.coin_id_for(name, resolved_id)

        coin = await self._fetch_coin(name, coin_id)
        if isinstance(coin, ProviderResult):
            return coin

        market_data = coin.get("market_data")
        if not isinstance(market_data, dict):
            return self._fail(name, FailureCause.SCHEMA, f"no market_data for coin '{coin_id}'")

        history = await self._fetch_history(coin_id)

        metrics = MarketMetrics(
            coin_id=coin_id,
            price=optional_float(_usd(market_data, "current_price")),
            market_cap=safe_float(_usd(market_data, "market_cap")),
            volume_24h=safe_float(_usd(market_data, "total_volume")),
            price_change_24h=safe_float(market_data.get("price_change_percentage_24h")),
            circulating_supply=safe_float(market_data.get("circulating_supply")),
            total_supply=optional_float(market_data.get("total_supply")),
            price_history=history,
        )
        return self._ok(name, metrics, coin_id=coin_id, price=metrics.price)

    async def _fetch_coin(self, name: str, coin_id: str) -> Any:
        """Coin document, or a failed ProviderResult."""
        try:
            data = await self._get_json(f"{self.base_url}/coins/{coin_id}", params=COIN_PARAMS)
        except ProviderError as e:
            return self._fail(name, e.cause, str(e))

        if not isinstance(data, dict):
            return self._fail(name, FailureCause.SCHEMA, f"coin '{coin_id}' returned {type(data).__name__}")
        return data

    async def _fetch_history(self, coin_id: str) -> Tuple[Tuple[int, float], ...]:
        """(timestamp_ms, price) pairs; empty on any failure."""
        params = {"vs_currency": "usd", "days": self.history_days}
        try:
            data = await self._get_json(f"{self.base_url}/coins/{coin_id}/market_chart", params=params)
        except ProviderError as e:
            self.events.fetch_failed(cause=e.cause.value, entity=coin_id, detail=str(e), endpoint="market_chart")
            return ()

        prices = data.get("prices") if isinstance(data, dict) else None
        if not isinstance(prices, list):
            return ()
        return tuple(
            (safe_int(point[0]), safe_float(point[1]))
            for point in prices
            if isinstance(point, (list, tuple)) and len(point) >= 2
        )


def _usd(market_data: Dict[str, Any], field: str) -> Any:
    value = market_data.get(field)
    if isinstance(value, dict):
        return value.get("usd")
    return None
