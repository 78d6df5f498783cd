"""Unit tests for cross-provider identity resolution."""
import pytest

from chainglobe.domain.entities import Entity, Roster
from chainglobe.domain.identity import IdentityResolver, slugify
from chainglobe.services.data.types import ProviderType


class TestResolve:
    """Test resolve() for roster and unknown names."""

    def test_alias_and_canonical_map_to_same_keys(self, resolver):
        """Test 'BSC' and 'BNB Chain' resolve to the same provider keys."""
        # ACT
        bsc = resolver.resolve("BSC")
        bnb = resolver.resolve("BNB Chain")

        # ASSERT
        assert bsc.canonical == bnb.canonical == "BSC"
        assert bsc.registry_name == bnb.registry_name == "BSC"
        assert bsc.gecko_id == bnb.gecko_id == "binancecoin"
        assert bsc.dexscreener_chain == bnb.dexscreener_chain == "bsc"

    def test_provider_key_same_for_aliases(self, resolver):
        """Test provider_key agrees for all aliases of one entity."""
        for alias in ("BSC", "BNB Chain", "Binance", "bnb chain"):
            assert resolver.provider_key(alias, ProviderType.REGISTRY) == "BSC"
            assert resolver.provider_key(alias, ProviderType.MARKET) == "binancecoin"

    def test_resolve_uses_explicit_registry_name(self, resolver):
        """Test Cosmos maps to the registry's 'CosmosHub'."""
        identity = resolver.resolve("Cosmos")

        assert identity.registry_name == "CosmosHub"
        assert identity.dexscreener_chain == "cosmoshub"
        assert identity.known is True

    def test_registry_name_resolves_back_to_entity(self, resolver):
        """Test a provider-specific name finds the roster entity."""
        assert resolver.resolve("CosmosHub").canonical == "Cosmos"

    def test_unknown_name_resolves_to_itself(self, resolver):
        """Test unknown names never fail and map to themselves."""
        # ACT
        identity = resolver.resolve("Hyperliquid L1")

        # ASSERT
        assert identity.known is False
        assert identity.canonical == "Hyperliquid L1"
        assert identity.registry_name == "Hyperliquid L1"
        assert identity.gecko_id == "hyperliquid-l1"
        assert identity.dexscreener_chain == "hyperliquid l1"

    def test_base_prices_as_ethereum(self, resolver):
        """Test Base uses the ETH market-data id."""
        assert resolver.resolve("Base").gecko_id == "ethereum"


class TestProviderKey:
    """Test provider_key() priority order against a known key set."""

    def test_explicit_mapping_wins_when_present(self, resolver):
        """Test the explicit mapping is used when the catalog contains it."""
        keys = {"CosmosHub", "Cosmos"}

        assert resolver.provider_key("Cosmos", ProviderType.REGISTRY, keys) == "CosmosHub"

    def test_alt_name_used_when_explicit_missing(self, resolver):
        """Test an alt name is tried when the explicit key is absent."""
        keys = {"Ethereum", "Arbitrum One"}

        assert resolver.provider_key("Arbitrum", ProviderType.YIELDS, keys) == "Arbitrum One"

    def test_case_insensitive_match(self, resolver):
        """Test catalog keys are matched case-insensitively."""
        keys = ["ETHEREUM", "SOLANA"]

        assert resolver.provider_key("Ethereum", ProviderType.STABLECOINS, keys) == "ETHEREUM"

    def test_falls_through_to_explicit_when_no_match(self, resolver):
        """Test the explicit mapping is returned when nothing matches."""
        assert resolver.provider_key("Cosmos", ProviderType.REGISTRY, {"Ethereum"}) == "CosmosHub"

    def test_unknown_name_falls_through_to_canonical(self, resolver):
        """Test unknown names fall back to themselves."""
        assert resolver.provider_key("Mantle", ProviderType.REGISTRY, {"Ethereum"}) == "Mantle"
        assert resolver.provider_key("mantle", ProviderType.REGISTRY, {"Mantle"}) == "Mantle"

    def test_sentiment_key_is_canonical(self, resolver):
        """Test the global sentiment provider is keyed by canonical name."""
        assert resolver.provider_key("BNB Chain", ProviderType.SENTIMENT) == "BSC"


class TestDynamicRoster:
    """Test resolution follows roster growth."""

    def test_discovered_entity_resolves_after_add(self):
        """Test an appended entity is resolvable immediately."""
        # ARRANGE
        roster = Roster(entities=())
        resolver = IdentityResolver(roster)
        assert resolver.resolve("Mantle").known is False

        # ACT
        roster.add(Entity("Mantle", "MNT", "Mantle", "mantle", "mantle", discovered=True))

        # ASSERT
        identity = resolver.resolve("mantle")
        assert identity.known is True
        assert identity.canonical == "Mantle"
        assert identity.symbol == "MNT"

    def test_roster_rejects_duplicate_names(self, roster):
        """Test the roster is append-only and keeps the first entity."""
        original = roster.get("Ethereum")

        added = roster.add(Entity("Ethereum", "XXX"))

        assert added is False
        assert roster.get("Ethereum") is original


class TestLogoUrl:
    """Test icon URL construction."""

    def test_logo_url_for_roster_entity(self, resolver):
        assert resolver.logo_url("Ethereum") == "https://icons.llama.fi/chains/rsz_ethereum.jpg"
        assert resolver.logo_url("BNB Chain") == "https://icons.llama.fi/chains/rsz_bsc.jpg"

    def test_logo_url_unknown_is_none(self, resolver):
        assert resolver.logo_url("Mantle") is None

    def test_logo_url_respects_base_url(self, roster):
        resolver = IdentityResolver(roster, icons_base_url="https://cdn.example.com/")

        assert resolver.logo_url("Solana") == "https://cdn.example.com/chains/rsz_solana.jpg"


@pytest.mark.parametrize("name,expected", [
    ("The Open Network", "the-open-network"),
    ("  Sei  ", "sei"),
    ("Avalanche", "avalanche"),
])
def test_slugify(name, expected):
    assert slugify(name) == expected
