"""
Cross-provider identity resolution.

Independent providers name the same network differently ("BSC" vs
"BNB Chain" vs "Binance", "Cosmos" vs "CosmosHub") and identify it with
different keys (DefiLlama chain names, CoinGecko coin ids, DexScreener chain
slugs). The resolver maps any name known to the roster (canonical or alias)
to each provider's key, and never fails: unknown names resolve to
themselves so that dynamically discovered networks still work.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from chainglobe.core.constants import DEFILLAMA_ICONS_URL
from chainglobe.domain.entities import Entity, Roster
from chainglobe.services.data.types import ProviderType


def slugify(name: str) -> str:
    """'The Open Network' -> 'the-open-network'"""
    return "-".join(name.strip().lower().split())


@dataclass(frozen=True)
class ResolvedIdentity:
    """Provider keys for one network."""
    canonical: str
    symbol: str
    registry_name: str
    gecko_id: str
    dexscreener_chain: str
    alt_names: Tuple[str, ...] = ()
    known: bool = True
    keys: Dict[ProviderType, str] = field(default_factory=dict, compare=False)

    def key_for(self, provider: ProviderType) -> str:
        return self.keys.get(provider, self.canonical)

    def candidates(self) -> List[str]:
        """Names to try against a provider catalog, most specific first."""
        seen: List[str] = []
        for name in (self.registry_name, self.canonical, *self.alt_names):
            if name and name not in seen:
                seen.append(name)
        return seen


class IdentityResolver:
    """
    Maps canonical network names to provider-specific identifiers.

    Resolution for a provider proceeds in priority order:
    1. provider-specific explicit mapping (and configured alt names)
    2. case-insensitive exact match against the provider's known keys
    3. the canonical name itself

    Usage:
        resolver = IdentityResolver(Roster())
        resolver.resolve("BNB Chain").registry_name          # "BSC"
        resolver.provider_key("Cosmos", ProviderType.REGISTRY,
                              known_keys=tvl_by_chain.keys())  # "CosmosHub"
    """

    def __init__(self, roster: Roster, icons_base_url: str = DEFILLAMA_ICONS_URL):
        self.roster = roster
        self.icons_base_url = icons_base_url.rstrip("/")

    def find_entity(self, name: str) -> Optional[Entity]:
        """Look up a roster entity by canonical name or alias (case-insensitive)."""
        if not name:
            return None

        entity = self.roster.get(name)
        if entity:
            return entity

        wanted = name.strip().lower()
        for candidate in self.roster:
            if candidate.name.lower() == wanted:
                return candidate
            if candidate.defillama_name and candidate.defillama_name.lower() == wanted:
                return candidate
            if any(alt.lower() == wanted for alt in candidate.alt_names):
                return candidate
        return None

    def resolve(self, name: str) -> ResolvedIdentity:
        """
        Resolve a name to every provider's identifier.

        Never raises. Unknown names map to themselves (gecko id and
        DexScreener chain use the slug / lowercase form of the name).
        """
        entity = self.find_entity(name)

        if entity is None:
            registry_name = name
            gecko_id = slugify(name)
            dex_chain = name.strip().lower()
            return ResolvedIdentity(
                canonical=name,
                symbol=name[:3].upper(),
                registry_name=registry_name,
                gecko_id=gecko_id,
                dexscreener_chain=dex_chain,
                known=False,
                keys=self._keys(registry_name, gecko_id, dex_chain, name),
            )

        registry_name = entity.defillama_name or entity.name
        gecko_id = entity.gecko_id or slugify(entity.name)
        dex_chain = entity.dexscreener_chain or entity.name.lower()
        return ResolvedIdentity(
            canonical=entity.name,
            symbol=entity.symbol,
            registry_name=registry_name,
            gecko_id=gecko_id,
            dexscreener_chain=dex_chain,
            alt_names=entity.alt_names,
            known=True,
            keys=self._keys(registry_name, gecko_id, dex_chain, entity.name),
        )

    @staticmethod
    def _keys(registry_name: str, gecko_id: str, dex_chain: str, canonical: str) -> Dict[ProviderType, str]:
        return {
            ProviderType.REGISTRY: registry_name,
            ProviderType.STABLECOINS: registry_name,
            ProviderType.YIELDS: registry_name,
            ProviderType.MARKET: gecko_id,
            ProviderType.LIQUIDITY: dex_chain,
            ProviderType.SENTIMENT: canonical,
        }

    def provider_key(
        self,
        name: str,
        provider: ProviderType,
        known_keys: Optional[Iterable[str]] = None
    ) -> str:
        """
        Resolve the key a provider uses for this network.

        Args:
            name: Canonical name or alias
            provider: Which provider's key space
            known_keys: The provider's catalog keys, if available. Without
                them the explicit mapping is returned as-is.

        Returns:
            The matching catalog key, or the explicit mapping / canonical
            name when nothing in the catalog matches
        """
        identity = self.resolve(name)
        explicit = identity.key_for(provider)
        if known_keys is None:
            return explicit

        keys = known_keys if isinstance(known_keys, (set, frozenset, dict)) else set(known_keys)
        candidates = [explicit] + [c for c in identity.candidates() if c != explicit]
        if name not in candidates:
            candidates.append(name)

        for candidate in candidates:
            if candidate in keys:
                return candidate

        lowered = {key.lower(): key for key in keys}
        for candidate in candidates:
            match = lowered.get(candidate.lower())
            if match is not None:
                return match

        return explicit

    def logo_url(self, name: str) -> Optional[str]:
        """Icon URL for roster networks; None for unknown names."""
        entity = self.find_entity(name)
        if entity is None or not entity.icon_path:
            return None
        return f"{self.icons_base_url}/{entity.icon_path}"
