"""
chainglobe: multi-source blockchain network metrics engine.

Aggregates TVL, market, liquidity, stablecoin, yield and sentiment data
from public providers into cached per-network snapshots.
"""

__version__ = "0.1.0"
