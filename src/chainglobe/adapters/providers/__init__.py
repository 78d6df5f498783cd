"""Clients for the six public data providers."""

from chainglobe.adapters.providers.base import ProviderClient
from chainglobe.adapters.providers.coingecko import CoinGeckoClient
from chainglobe.adapters.providers.defillama import DefiLlamaClient
from chainglobe.adapters.providers.dexscreener import DexScreenerClient
from chainglobe.adapters.providers.feargreed import FearGreedClient
from chainglobe.adapters.providers.stablecoins import StablecoinsClient
from chainglobe.adapters.providers.yields import YieldsClient

__all__ = [
    "ProviderClient",
    "CoinGeckoClient",
    "DefiLlamaClient",
    "DexScreenerClient",
    "FearGreedClient",
    "StablecoinsClient",
    "YieldsClient",
]
