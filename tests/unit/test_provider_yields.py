"""Unit tests for the yield pools client."""
import pytest
import requests

from chainglobe.adapters.providers.yields import YieldsClient
from chainglobe.services.data.cache import TTLCache
from chainglobe.services.data.types import FailureCause, YieldMetrics

URL = "https://yields.llama.fi/pools"

POOLS = [
    {"chain": "Ethereum", "pool": "p1", "project": "lido", "symbol": "STETH",
     "tvlUsd": 20e6, "apy": 3.0, "apyBase": 3.0},
    {"chain": "Ethereum", "pool": "p2", "project": "aave-v3", "symbol": "USDC",
     "tvlUsd": 10e6, "apy": 5.0, "apyBase": 4.0, "apyReward": 1.0, "stablecoin": True},
    {"chain": "Ethereum", "pool": "p3", "project": "degen", "symbol": "X",
     "tvlUsd": 5e6, "apy": 2000.0},
    {"chain": "Ethereum", "pool": "p4", "project": "small", "symbol": "Y",
     "tvlUsd": 500_000, "apy": 10.0},
    {"chain": "Ethereum", "pool": "p5", "project": "empty", "symbol": "Z",
     "tvlUsd": 0, "apy": 50.0},
    {"chain": "Solana", "pool": "s1", "project": "jito", "symbol": "JITOSOL",
     "tvlUsd": 2e9, "apy": 7.0},
    {"pool": "orphan", "tvlUsd": 1e6, "apy": 1.0},
]


def make_client(session, resolver, clock, **kwargs):
    return YieldsClient(resolver, TTLCache("yields", 300, clock), session=session, **kwargs)


class TestYieldStats:
    """Test aggregate APY statistics."""

    @pytest.mark.asyncio
    async def test_stats_for_chain(self, make_session, resolver, clock):
        # ARRANGE
        client = make_client(make_session({URL: {"status": "success", "data": POOLS}}), resolver, clock)

        # ACT
        result = await client.fetch_for_entity("Ethereum")

        # ASSERT
        assert result.ok is True
        stats = result.payload
        assert isinstance(stats, YieldMetrics)
        assert stats.chain_key == "Ethereum"
        assert stats.pool_count == 4
        assert stats.total_yield_tvl == pytest.approx(35.5e6)
        assert stats.avg_apy == pytest.approx(6.0)
        # weighted sum over realistic pools, divided by TVL of all chain pools
        assert stats.weighted_avg_apy == pytest.approx((3 * 20e6 + 5 * 10e6 + 10 * 0.5e6) / 35.5e6)
        assert stats.median_apy == 5.0

    @pytest.mark.asyncio
    async def test_top_pools_filtered_and_sorted(self, make_session, resolver, clock):
        client = make_client(make_session({URL: {"data": POOLS}}), resolver, clock)

        result = await client.fetch_for_entity("Ethereum")

        top = result.payload.top_pools
        assert [p.pool for p in top] == ["p1", "p2"]
        assert top[1].stablecoin is True
        assert top[1].apy_reward == 1.0
        assert top[0].apy_reward == 0.0

    @pytest.mark.asyncio
    async def test_top_pools_limit(self, make_session, resolver, clock):
        client = make_client(make_session({URL: {"data": POOLS}}), resolver, clock, top_limit=1)

        result = await client.fetch_for_entity("Ethereum")

        assert [p.pool for p in result.payload.top_pools] == ["p1"]

    def test_median_uses_upper_middle_for_even_count(self, make_session, resolver, clock):
        client = make_client(make_session({}), resolver, clock)
        pools = [{"tvlUsd": 1, "apy": apy} for apy in (4.0, 1.0, 3.0, 2.0)]

        stats = client.compute_stats("Ethereum", pools)

        assert stats.median_apy == 3.0

    def test_no_realistic_apys(self, make_session, resolver, clock):
        client = make_client(make_session({}), resolver, clock)

        stats = client.compute_stats("Ethereum", [{"tvlUsd": 100, "apy": 0}, {"tvlUsd": 50, "apy": 5000}])

        assert stats.pool_count == 2
        assert stats.avg_apy == 0.0
        assert stats.weighted_avg_apy == 0.0
        assert stats.median_apy == 0.0

    def test_no_pools_is_none(self, make_session, resolver, clock):
        client = make_client(make_session({}), resolver, clock)

        assert client.compute_stats("Ethereum", [{"tvlUsd": 0, "apy": 5}]) is None


class TestFailures:
    """Test fail-soft behaviour."""

    @pytest.mark.asyncio
    async def test_chain_without_pools_is_not_found(self, make_session, resolver, clock):
        client = make_client(make_session({URL: {"data": POOLS}}), resolver, clock)

        result = await client.fetch_for_entity("Cardano")

        assert result.ok is False
        assert result.cause == FailureCause.NOT_FOUND
        assert result.payload is None

    @pytest.mark.asyncio
    async def test_missing_data_field_is_schema_failure(self, make_session, resolver, clock):
        client = make_client(make_session({URL: {"status": "error"}}), resolver, clock)

        result = await client.fetch_for_entity("Ethereum")

        assert result.ok is False
        assert result.cause == FailureCause.SCHEMA
        assert await client.fetch_all() == {}

    @pytest.mark.asyncio
    async def test_transport_failure(self, make_session, resolver, clock):
        client = make_client(make_session({URL: requests.ConnectionError("down")}), resolver, clock)

        result = await client.fetch_for_entity("Ethereum")

        assert result.ok is False
        assert result.cause == FailureCause.TRANSPORT

    @pytest.mark.asyncio
    async def test_pools_grouped_by_chain(self, make_session, resolver, clock):
        client = make_client(make_session({URL: {"data": POOLS}}), resolver, clock)

        by_chain = await client.fetch_all()

        assert set(by_chain) == {"Ethereum", "Solana"}
        assert len(by_chain["Ethereum"]) == 5
