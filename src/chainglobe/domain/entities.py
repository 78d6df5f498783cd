"""
Blockchain network roster.

The static roster is defined at process start. Networks discovered from the
registry listing are appended for the rest of the session and never removed.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from loguru import logger


@dataclass(frozen=True)
class Entity:
    """
    A blockchain network.

    Provider-specific identifiers are optional; the identity resolver falls
    back to the canonical name when one is missing.
    """
    name: str
    symbol: str
    defillama_name: Optional[str] = None
    gecko_id: Optional[str] = None
    dexscreener_chain: Optional[str] = None
    icon_path: Optional[str] = None
    alt_names: Tuple[str, ...] = ()
    discovered: bool = False


STATIC_ROSTER: Tuple[Entity, ...] = (
    Entity("Ethereum", "ETH", "Ethereum", "ethereum", "ethereum", "chains/rsz_ethereum.jpg", ("Ethereum",)),
    Entity("Solana", "SOL", "Solana", "solana", "solana", "chains/rsz_solana.jpg", ("Solana",)),
    Entity("Bitcoin", "BTC", "Bitcoin", "bitcoin", "bitcoin", "chains/rsz_bitcoin.jpg", ("Bitcoin",)),
    Entity("BSC", "BNB", "BSC", "binancecoin", "bsc", "chains/rsz_bsc.jpg", ("BSC", "BNB Chain", "Binance")),
    Entity("Avalanche", "AVAX", "Avalanche", "avalanche-2", "avalanche", "chains/rsz_avalanche.jpg", ("Avalanche",)),
    Entity("Polygon", "POL", "Polygon", "matic-network", "polygon", "chains/rsz_polygon.jpg", ("Polygon", "Matic")),
    Entity("Arbitrum", "ARB", "Arbitrum", "arbitrum", "arbitrum", "chains/rsz_arbitrum.jpg", ("Arbitrum", "Arbitrum One")),
    Entity("Optimism", "OP", "Optimism", "optimism", "optimism", "chains/rsz_optimism.jpg", ("Optimism", "OP Mainnet")),
    # Base has no native token; price tracks ETH
    Entity("Base", "ETH", "Base", "ethereum", "base", "chains/rsz_base.jpg", ("Base",)),
    Entity("Sui", "SUI", "Sui", "sui", "sui", "chains/rsz_sui.jpg", ("Sui",)),
    Entity("Cardano", "ADA", "Cardano", "cardano", "cardano", "chains/rsz_cardano.jpg", ("Cardano",)),
    Entity("Tron", "TRX", "Tron", "tron", "tron", "chains/rsz_tron.jpg", ("Tron", "TRON")),
    Entity("TON", "TON", "TON", "the-open-network", "ton", "chains/rsz_ton.jpg", ("TON", "The Open Network")),
    Entity("Polkadot", "DOT", "Polkadot", "polkadot", "polkadot", "chains/rsz_polkadot.jpg", ("Polkadot",)),
    Entity("Near", "NEAR", "Near", "near", "near", "chains/rsz_near.jpg", ("Near", "NEAR", "Aurora")),
    Entity("Fantom", "FTM", "Fantom", "fantom", "fantom", "chains/rsz_fantom.jpg", ("Fantom", "Sonic")),
    Entity("Cosmos", "ATOM", "CosmosHub", "cosmos", "cosmoshub", "chains/rsz_cosmos.jpg", ("Cosmos", "CosmosHub", "Cosmos Hub")),
    Entity("Aptos", "APT", "Aptos", "aptos", "aptos", "chains/rsz_aptos.jpg", ("Aptos",)),
    Entity("Cronos", "CRO", "Cronos", "crypto-com-chain", "cronos", "chains/rsz_cronos.jpg", ("Cronos",)),
    Entity("Sei", "SEI", "Sei", "sei-network", "sei", "chains/rsz_sei.jpg", ("Sei",)),
)


class Roster:
    """
    Ordered, append-only set of entities keyed by canonical name.

    Usage:
        roster = Roster()
        roster.add(Entity("Mantle", "MNT", gecko_id="mantle", discovered=True))
        for entity in roster:
            ...
    """

    def __init__(self, entities: Optional[Tuple[Entity, ...]] = None):
        self._entities: Dict[str, Entity] = {}
        for entity in (STATIC_ROSTER if entities is None else entities):
            self.add(entity)

    def add(self, entity: Entity) -> bool:
        """
        Append an entity.

        Returns:
            False if an entity with the same canonical name already exists
            (the existing one is kept)
        """
        if entity.name in self._entities:
            return False
        self._entities[entity.name] = entity
        if entity.discovered:
            logger.info(f"Roster extended with discovered network {entity.name} ({entity.symbol})")
        return True

    def get(self, name: str) -> Optional[Entity]:
        return self._entities.get(name)

    def names(self) -> List[str]:
        return list(self._entities)

    def __contains__(self, name: str) -> bool:
        return name in self._entities

    def __iter__(self) -> Iterator[Entity]:
        return iter(list(self._entities.values()))

    def __len__(self) -> int:
        return len(self._entities)
