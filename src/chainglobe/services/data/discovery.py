"""
Roster discovery and market share.

The static roster covers the well-known networks; any other chain the
registry lists above a TVL threshold can be appended for the session.
"""

from typing import Dict, Iterable, List, Optional

from loguru import logger

from chainglobe.adapters.providers.defillama import DefiLlamaClient
from chainglobe.core.constants import DISCOVERY_LIMIT, DISCOVERY_MIN_TVL_USD
from chainglobe.domain.entities import Entity, Roster
from chainglobe.domain.identity import IdentityResolver
from chainglobe.utils.numbers import safe_float


def entity_from_listing(chain: Dict) -> Entity:
    """Build a discovered Entity from a registry chain record."""
    name = chain["name"]
    symbol = chain.get("tokenSymbol") or name[:3].upper()
    return Entity(
        name=name,
        symbol=symbol,
        defillama_name=name,
        gecko_id=chain.get("gecko_id") or None,
        dexscreener_chain=name.lower(),
        alt_names=(name,),
        discovered=True,
    )


async def discover_entities(
    registry: DefiLlamaClient,
    roster: Roster,
    resolver: IdentityResolver,
    min_tvl: float = DISCOVERY_MIN_TVL_USD,
    limit: int = DISCOVERY_LIMIT
) -> List[Entity]:
    """
    Append registry chains above min_tvl that the roster does not know yet.

    Args:
        registry: Registry client (its cached chain listing is used)
        roster: Roster to extend
        resolver: Used to skip chains already known under an alias
        min_tvl: Minimum TVL in USD
        limit: Maximum number of chains considered

    Returns:
        Newly added entities, highest TVL first (empty if the listing failed)
    """
    chains = await registry.fetch_all()
    if not chains:
        logger.warning("Roster discovery skipped: registry chain listing is empty")
        return []

    candidates = [
        chain for name, chain in chains.items()
        if safe_float(chain.get("tvl")) > min_tvl and resolver.find_entity(name) is None
    ]
    candidates.sort(key=lambda c: safe_float(c.get("tvl")), reverse=True)

    added = []
    for chain in candidates[:limit]:
        entity = entity_from_listing(chain)
        if roster.add(entity):
            added.append(entity)

    logger.info(f"Roster discovery added {len(added)} networks (min TVL ${min_tvl:,.0f})")
    return added


def calculate_market_share(
    tvl_by_chain: Dict[str, float],
    names: Optional[Iterable[str]] = None
) -> Dict[str, float]:
    """
    Each chain's share of the summed TVL, in percent.

    Args:
        tvl_by_chain: Chain name -> TVL
        names: Restrict to these chains (missing ones count as 0)

    Returns:
        Chain name -> percentage (all 0 when the total is 0)
    """
    selected = list(tvl_by_chain) if names is None else list(names)
    values = {name: safe_float(tvl_by_chain.get(name)) for name in selected}
    total = sum(values.values())
    if total <= 0:
        return {name: 0.0 for name in selected}
    return {name: value / total * 100 for name, value in values.items()}
