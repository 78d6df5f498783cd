"""Unit tests for the DexScreener liquidity client."""
import pytest
import requests

from chainglobe.adapters.providers.dexscreener import DexScreenerClient, pair_liquidity
from chainglobe.services.data.types import FailureCause, LiquidityMetrics

BASE = "https://api.dexscreener.com/latest/dex"


def pairs(*liquidities):
    return {"pairs": [{"liquidity": {"usd": value}} for value in liquidities]}


class TestPairLiquidity:
    """Test defensive liquidity parsing."""

    def test_numeric_and_string_values(self):
        assert pair_liquidity({"liquidity": {"usd": 10.5}}) == 10.5
        assert pair_liquidity({"liquidity": {"usd": "20"}}) == 20.0

    def test_missing_values_are_zero(self):
        assert pair_liquidity({}) == 0.0
        assert pair_liquidity({"liquidity": None}) == 0.0
        assert pair_liquidity({"liquidity": {"usd": None}}) == 0.0


class TestChainPairs:
    """Test tier 1: all pairs on the chain."""

    @pytest.mark.asyncio
    async def test_sums_all_chain_pairs(self, make_session, resolver):
        # ARRANGE
        payload = {"pairs": [{"liquidity": {"usd": 1000}}, {"liquidity": {"usd": "500.5"}}, {}]}
        session = make_session({f"{BASE}/pairs/ethereum": payload})
        client = DexScreenerClient(resolver, session=session)

        # ACT
        result = await client.fetch_for_entity("Ethereum")

        # ASSERT
        assert result.ok is True
        assert result.payload == LiquidityMetrics(
            chain_id="ethereum", total_liquidity=1500.5, pair_count=3, method="chain_pairs"
        )
        assert len(session.get.call_args_list) == 1

    @pytest.mark.asyncio
    async def test_uses_dexscreener_chain_id(self, make_session, resolver):
        session = make_session({f"{BASE}/pairs/bsc": pairs(10.0)})
        client = DexScreenerClient(resolver, session=session)

        result = await client.fetch_for_entity("BNB Chain")

        assert result.ok is True
        assert result.payload.chain_id == "bsc"


class TestSearchFallback:
    """Test tier 2: symbol search over the top matches."""

    @pytest.mark.asyncio
    async def test_falls_back_when_chain_pairs_sum_to_zero(self, make_session, resolver):
        """Test search sums only the ten highest-liquidity matches."""
        # ARRANGE
        search = pairs(*[i * 1000.0 for i in range(1, 13)])
        session = make_session({
            f"{BASE}/pairs/ethereum": {"pairs": []},
            f"{BASE}/search": search,
        })
        client = DexScreenerClient(resolver, session=session)

        # ACT
        result = await client.fetch_for_entity("Ethereum")

        # ASSERT
        assert result.ok is True
        assert result.payload.method == "search"
        assert result.payload.total_liquidity == sum(range(3, 13)) * 1000.0
        assert result.payload.pair_count == 12
        search_call = session.get.call_args_list[-1]
        assert search_call.kwargs["params"] == {"q": "ETH"}

    @pytest.mark.asyncio
    async def test_falls_back_when_chain_pairs_fail(self, make_session, resolver):
        session = make_session({
            f"{BASE}/pairs/sui": requests.ConnectionError("down"),
            f"{BASE}/search": pairs(250.0, 750.0),
        })
        client = DexScreenerClient(resolver, session=session)

        result = await client.fetch_for_entity("Sui")

        assert result.ok is True
        assert result.payload.total_liquidity == 1000.0

    @pytest.mark.asyncio
    async def test_search_limit_configurable(self, make_session, resolver):
        session = make_session({f"{BASE}/search": pairs(1.0, 5.0, 3.0)})
        client = DexScreenerClient(resolver, session=session, search_limit=2)

        result = await client.fetch_for_entity("Solana")

        assert result.payload.total_liquidity == 8.0

    @pytest.mark.asyncio
    async def test_unknown_entity_searches_by_name(self, make_session, resolver):
        session = make_session({f"{BASE}/search": pairs(42.0)})
        client = DexScreenerClient(resolver, session=session)

        result = await client.fetch_for_entity("Mantle")

        assert result.ok is True
        assert session.get.call_args_list[-1].kwargs["params"] == {"q": "Mantle"}

    @pytest.mark.asyncio
    async def test_zero_liquidity_everywhere_is_not_found(self, make_session, resolver):
        session = make_session({
            f"{BASE}/pairs/ethereum": pairs(0.0),
            f"{BASE}/search": pairs(0.0, None),
        })
        client = DexScreenerClient(resolver, session=session)

        result = await client.fetch_for_entity("Ethereum")

        assert result.ok is False
        assert result.cause == FailureCause.NOT_FOUND
        assert result.payload is None

    @pytest.mark.asyncio
    async def test_both_tiers_failing_is_transport_failure(self, make_session, resolver):
        session = make_session({
            f"{BASE}/pairs/ethereum": requests.Timeout("slow"),
            f"{BASE}/search": requests.Timeout("slow"),
        })
        client = DexScreenerClient(resolver, session=session)

        result = await client.fetch_for_entity("Ethereum")

        assert result.ok is False
        assert result.cause == FailureCause.TRANSPORT

    @pytest.mark.asyncio
    async def test_both_tiers_unknown_is_not_found(self, make_session, resolver):
        """Test a 404 from both endpoints keeps its NOT_FOUND cause."""
        session = make_session({})
        client = DexScreenerClient(resolver, session=session)

        result = await client.fetch_for_entity("Ethereum")

        assert result.ok is False
        assert result.cause == FailureCause.NOT_FOUND

    @pytest.mark.asyncio
    async def test_malformed_search_is_schema_failure(self, make_session, resolver):
        # ARRANGE
        session = make_session({
            f"{BASE}/pairs/ethereum": requests.Timeout("slow"),
            f"{BASE}/search": {"pairs": "unavailable"},
        })
        client = DexScreenerClient(resolver, session=session)

        # ACT
        result = await client.fetch_for_entity("Ethereum")

        # ASSERT
        assert result.ok is False
        assert result.cause == FailureCause.SCHEMA

    @pytest.mark.asyncio
    async def test_null_pairs_means_no_pairs(self, make_session, resolver):
        session = make_session({
            f"{BASE}/pairs/ethereum": {"pairs": None},
            f"{BASE}/search": {"pairs": None},
        })
        client = DexScreenerClient(resolver, session=session)

        result = await client.fetch_for_entity("Ethereum")

        assert result.ok is False
        assert result.cause == FailureCause.NOT_FOUND
