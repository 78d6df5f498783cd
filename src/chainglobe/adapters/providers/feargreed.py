"""
Alternative.me Fear & Greed index client.

The index is global, so every entity receives the same (cached) result.
GET /?limit=7&format=json returns the last seven daily readings, newest first.
"""

from typing import Any, Dict, List, Optional

from chainglobe.adapters.providers.base import ProviderClient
from chainglobe.core.constants import FEAR_GREED_BASE_URL
from chainglobe.services.data.cache import TTLCache
from chainglobe.services.data.types import (
    FailureCause,
    ProviderError,
    ProviderResult,
    ProviderType,
    SentimentMetrics,
)
from chainglobe.utils.numbers import safe_int

HISTORY_LIMIT = 7


def _reading(entries: List[Dict[str, Any]], index: int) -> Optional[Dict[str, Any]]:
    if len(entries) > index and isinstance(entries[index], dict):
        return entries[index]
    return None


class FearGreedClient(ProviderClient):
    """Market sentiment index (0 = extreme fear, 100 = extreme greed)."""

    provider = ProviderType.SENTIMENT

    def __init__(self, cache: TTLCache, base_url: str = FEAR_GREED_BASE_URL, **kwargs):
        super().__init__(base_url, **kwargs)
        self.cache = cache

    async def fetch_index(self) -> ProviderResult:
        return await self.cache.get_or_load("index", self._load_index)

    async def fetch_for_entity(self, name: str, resolved_id: Optional[str] = None) -> ProviderResult:
        # Entity-independent; name only matters for logging at load time
        return await self.fetch_index()

    async def _load_index(self) -> ProviderResult:
        try:
            data = await self._get_json(
                f"{self.base_url}/",
                params={"limit": HISTORY_LIMIT, "format": "json"}
            )
        except ProviderError as e:
            return self._fail(None, e.cause, str(e))

        entries = data.get("data") if isinstance(data, dict) else None
        if not isinstance(entries, list) or not entries:
            return self._fail(None, FailureCause.SCHEMA, "fear & greed response has no readings")

        current = _reading(entries, 0)
        if current is None or current.get("value") is None:
            return self._fail(None, FailureCause.SCHEMA, "current reading has no value")

        previous = _reading(entries, 1)
        week_ago = _reading(entries, HISTORY_LIMIT - 1)

        value = safe_int(current.get("value"))
        previous_value = safe_int(previous.get("value")) if previous else None
        week_ago_value = safe_int(week_ago.get("value")) if week_ago else None

        metrics = SentimentMetrics(
            value=value,
            classification=str(current.get("value_classification") or ""),
            timestamp=safe_int(current.get("timestamp")) or None,
            previous_value=previous_value,
            previous_classification=(previous.get("value_classification") or None) if previous else None,
            week_ago_value=week_ago_value,
            change_24h=value - previous_value if previous_value is not None else None,
            change_7d=value - week_ago_value if week_ago_value is not None else None,
        )
        self.events.bulk_refreshed("index", len(entries), value=value)
        return ProviderResult.success(self.provider, metrics)
