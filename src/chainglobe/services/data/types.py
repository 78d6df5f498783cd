"""
Provider result types and the composite snapshot.

Each provider produces exactly one payload variant, tagged by its
``provider`` class attribute. The aggregator merges the six variants into a
CompositeSnapshot; missing data takes the defaults declared here.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Tuple

from chainglobe.utils.formatting import (
    NOT_AVAILABLE,
    format_count,
    format_liquidity,
    format_percent,
    format_price,
    format_usd,
    or_placeholder,
)


class ProviderType(Enum):
    """External data provider."""
    REGISTRY = "defillama"
    MARKET = "coingecko"
    LIQUIDITY = "dexscreener"
    STABLECOINS = "stablecoins"
    YIELDS = "yields"
    SENTIMENT = "feargreed"


class FailureCause(Enum):
    """Why a provider call produced no usable data."""
    TRANSPORT = "transport"     # network unreachable, timeout, non-2xx
    SCHEMA = "schema"           # unexpected or missing JSON fields
    NOT_FOUND = "not_found"     # entity absent from the provider's catalog
    UNEXPECTED = "unexpected"   # exception escaped a client (bug)


class ProviderError(Exception):
    """Raised inside provider clients; never crosses the client boundary."""

    def __init__(self, cause: FailureCause, message: str):
        super().__init__(message)
        self.cause = cause


# ========== Registry (TVL, protocols, volume, fees) ==========

@dataclass(frozen=True)
class ProtocolInfo:
    name: str
    tvl: float = 0.0
    category: str = "Other"
    slug: Optional[str] = None
    logo: Optional[str] = None
    url: Optional[str] = None


@dataclass(frozen=True)
class DexVolume:
    volume_24h: float = 0.0
    volume_7d: float = 0.0
    change_1d: float = 0.0
    change_7d: float = 0.0
    protocol_count: int = 0


@dataclass(frozen=True)
class FeeMetrics:
    fees_24h: float = 0.0
    fees_7d: float = 0.0
    revenue_24h: float = 0.0
    revenue_7d: float = 0.0
    change_1d: float = 0.0
    change_7d: float = 0.0


@dataclass(frozen=True)
class BridgeVolume:
    volume_24h: float = 0.0
    volume_7d: float = 0.0
    volume_30d: float = 0.0
    bridge_count: int = 0


@dataclass(frozen=True)
class TvlHistory:
    current_tvl: float = 0.0
    change_1d: float = 0.0
    change_7d: float = 0.0
    data_points: int = 0


@dataclass(frozen=True)
class RegistryMetrics:
    """Chain TVL plus protocol, volume and fee detail from the registry."""
    provider: ClassVar[ProviderType] = ProviderType.REGISTRY

    chain_key: str
    tvl: float = 0.0
    token_symbol: Optional[str] = None
    gecko_id: Optional[str] = None
    chain_id: Optional[Any] = None
    dapp_count: int = 0
    categories: Tuple[Tuple[str, int], ...] = ()
    top_protocols: Tuple[ProtocolInfo, ...] = ()
    dex: Optional[DexVolume] = None
    fees: Optional[FeeMetrics] = None
    bridges: Optional[BridgeVolume] = None
    history: Optional[TvlHistory] = None


# ========== Market data ==========

@dataclass(frozen=True)
class MarketMetrics:
    """Spot market data for the chain's native token."""
    provider: ClassVar[ProviderType] = ProviderType.MARKET

    coin_id: str
    price: Optional[float] = None
    market_cap: float = 0.0
    volume_24h: float = 0.0
    price_change_24h: float = 0.0
    circulating_supply: float = 0.0
    total_supply: Optional[float] = None
    price_history: Tuple[Tuple[int, float], ...] = ()


# ========== On-chain liquidity ==========

@dataclass(frozen=True)
class LiquidityMetrics:
    """Summed DEX pair liquidity for a chain."""
    provider: ClassVar[ProviderType] = ProviderType.LIQUIDITY

    chain_id: str
    total_liquidity: float = 0.0
    pair_count: int = 0
    method: str = "chain_pairs"  # or "search"


# ========== Stablecoins ==========

@dataclass(frozen=True)
class StablecoinMetrics:
    provider: ClassVar[ProviderType] = ProviderType.STABLECOINS

    chain_key: str
    circulating_usd: float = 0.0


# ========== Yields ==========

@dataclass(frozen=True)
class YieldPool:
    pool: str
    project: str
    symbol: str
    chain: str
    apy: float = 0.0
    apy_base: float = 0.0
    apy_reward: float = 0.0
    tvl_usd: float = 0.0
    stablecoin: bool = False


@dataclass(frozen=True)
class YieldMetrics:
    """Aggregate yield statistics for one chain."""
    provider: ClassVar[ProviderType] = ProviderType.YIELDS

    chain_key: str
    pool_count: int = 0
    total_yield_tvl: float = 0.0
    avg_apy: float = 0.0
    weighted_avg_apy: float = 0.0
    median_apy: float = 0.0
    top_pools: Tuple[YieldPool, ...] = ()


# ========== Sentiment ==========

@dataclass(frozen=True)
class SentimentMetrics:
    """Global fear & greed index (0-100); identical for every entity."""
    provider: ClassVar[ProviderType] = ProviderType.SENTIMENT

    value: int
    classification: str
    timestamp: Optional[int] = None
    previous_value: Optional[int] = None
    previous_classification: Optional[str] = None
    week_ago_value: Optional[int] = None
    change_24h: Optional[int] = None
    change_7d: Optional[int] = None


# ========== Results ==========

@dataclass(frozen=True)
class ProviderResult:
    """
    Outcome of one (entity, provider) call.

    A failed result may still carry a zero-valued payload for providers
    whose numeric fields default to 0 (registry, stablecoins).
    """
    provider: ProviderType
    ok: bool
    payload: Optional[Any] = None
    cause: Optional[FailureCause] = None
    detail: Optional[str] = None

    @classmethod
    def success(cls, provider: ProviderType, payload: Any) -> "ProviderResult":
        return cls(provider=provider, ok=True, payload=payload)

    @classmethod
    def failure(
        cls,
        provider: ProviderType,
        cause: FailureCause,
        detail: Optional[str] = None,
        payload: Optional[Any] = None
    ) -> "ProviderResult":
        return cls(provider=provider, ok=False, payload=payload, cause=cause, detail=detail)


@dataclass(frozen=True)
class BulkListing:
    """A provider's full collection, plus why it is empty if the fetch failed."""
    items: Dict[str, Any] = field(default_factory=dict)
    cause: Optional[FailureCause] = None
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.cause is None


@dataclass(frozen=True)
class CompositeSnapshot:
    """
    Merged multi-provider record for one entity at one point in time.

    Never mutated after construction; a refresh builds a new instance.

    Defaults when a provider failed: tvl=0, price=None, liquidity=None,
    stablecoin_tvl=0, yield_stats=None, sentiment=None.
    """
    entity: str
    fetched_at: float
    tvl: float = 0.0
    price: Optional[float] = None
    liquidity: Optional[float] = None
    stablecoin_tvl: float = 0.0
    yield_stats: Optional[YieldMetrics] = None
    sentiment: Optional[SentimentMetrics] = None
    registry: Optional[RegistryMetrics] = None
    market: Optional[MarketMetrics] = None
    liquidity_detail: Optional[LiquidityMetrics] = None
    failures: Tuple[Tuple[ProviderType, FailureCause], ...] = ()

    @property
    def failed_providers(self) -> Tuple[ProviderType, ...]:
        return tuple(provider for provider, _ in self.failures)

    def to_display(self) -> Dict[str, str]:
        """Formatted values for the UI; unavailable metrics become 'N/A'."""
        registry = self.registry
        dex = registry.dex if registry else None
        fees = registry.fees if registry else None

        display = {
            "name": self.entity,
            "tvl": format_usd(self.tvl),
            "dapps": format_count(registry.dapp_count) if registry and registry.dapp_count > 0 else NOT_AVAILABLE,
            "dex_volume_24h": or_placeholder(dex.volume_24h if dex else None),
            "fees_24h": or_placeholder(fees.fees_24h if fees else None),
            "revenue_24h": or_placeholder(fees.revenue_24h if fees else None),
            "price": format_price(self.price),
            "market_cap": or_placeholder(self.market.market_cap if self.market else None),
            "price_change_24h": or_placeholder(
                self.market.price_change_24h if self.market else None, format_percent
            ),
            "liquidity": or_placeholder(self.liquidity, format_liquidity),
            "stablecoin_tvl": format_usd(self.stablecoin_tvl) if self.stablecoin_tvl > 0 else NOT_AVAILABLE,
            "weighted_apy": or_placeholder(
                self.yield_stats.weighted_avg_apy if self.yield_stats else None,
                lambda v: format_percent(v, 2)
            ),
            "sentiment": (
                f"{self.sentiment.value} ({self.sentiment.classification})"
                if self.sentiment else NOT_AVAILABLE
            ),
        }
        return display
