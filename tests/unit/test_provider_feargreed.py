"""Unit tests for the Fear & Greed index client."""
import pytest
import requests

from chainglobe.adapters.providers.feargreed import FearGreedClient
from chainglobe.services.data.cache import TTLCache
from chainglobe.services.data.types import FailureCause, ProviderType

URL = "https://api.alternative.me/fng/"

READINGS = [
    {"value": "60", "value_classification": "Greed", "timestamp": "1700000000"},
    {"value": "55", "value_classification": "Greed", "timestamp": "1699913600"},
    {"value": "50", "value_classification": "Neutral"},
    {"value": "48", "value_classification": "Neutral"},
    {"value": "45", "value_classification": "Fear"},
    {"value": "42", "value_classification": "Fear"},
    {"value": "40", "value_classification": "Fear", "timestamp": "1699481600"},
]


def make_client(session, clock, ttl=600):
    return FearGreedClient(TTLCache("feargreed", ttl, clock), session=session)


class TestFearGreedIndex:
    """Test index parsing."""

    @pytest.mark.asyncio
    async def test_current_previous_and_week_ago(self, make_session, clock):
        # ARRANGE
        session = make_session({URL: {"name": "Fear and Greed Index", "data": READINGS}})
        client = make_client(session, clock)

        # ACT
        result = await client.fetch_for_entity("Ethereum")

        # ASSERT
        assert result.ok is True
        assert result.provider == ProviderType.SENTIMENT
        index = result.payload
        assert index.value == 60
        assert index.classification == "Greed"
        assert index.timestamp == 1700000000
        assert index.previous_value == 55
        assert index.previous_classification == "Greed"
        assert index.week_ago_value == 40
        assert index.change_24h == 5
        assert index.change_7d == 20
        assert session.get.call_args.kwargs["params"] == {"limit": 7, "format": "json"}

    @pytest.mark.asyncio
    async def test_single_reading_has_no_changes(self, make_session, clock):
        client = make_client(make_session({URL: {"data": READINGS[:1]}}), clock)

        result = await client.fetch_index()

        assert result.ok is True
        assert result.payload.previous_value is None
        assert result.payload.week_ago_value is None
        assert result.payload.change_24h is None
        assert result.payload.change_7d is None

    @pytest.mark.asyncio
    async def test_null_classification_is_blank(self, make_session, clock):
        """Test an explicit null label is not rendered as the string None."""
        readings = [
            {"value": "60", "value_classification": None},
            {"value": "55", "value_classification": None},
        ]
        client = make_client(make_session({URL: {"data": readings}}), clock)

        result = await client.fetch_index()

        assert result.ok is True
        assert result.payload.classification == ""
        assert result.payload.previous_classification is None
        assert result.payload.change_24h == 5

    @pytest.mark.asyncio
    async def test_same_result_for_every_entity(self, make_session, clock, urls):
        """Test the global index is fetched once and shared across entities."""
        session = make_session({URL: {"data": READINGS}})
        client = make_client(session, clock)

        first = await client.fetch_for_entity("Ethereum")
        second = await client.fetch_for_entity("Solana")

        assert first is second
        assert urls(session).count(URL) == 1

    @pytest.mark.asyncio
    async def test_ttl_refresh(self, make_session, clock, urls):
        session = make_session({URL: {"data": READINGS}})
        client = make_client(session, clock, ttl=600)

        await client.fetch_index()
        clock.advance(599)
        await client.fetch_index()
        clock.advance(1)
        await client.fetch_index()

        assert urls(session).count(URL) == 2


class TestFearGreedFailures:
    """Test fail-soft behaviour."""

    @pytest.mark.asyncio
    async def test_empty_data_is_schema_failure(self, make_session, clock):
        client = make_client(make_session({URL: {"data": []}}), clock)

        result = await client.fetch_index()

        assert result.ok is False
        assert result.cause == FailureCause.SCHEMA
        assert result.payload is None

    @pytest.mark.asyncio
    async def test_transport_failure_cached(self, make_session, clock, urls):
        session = make_session({URL: requests.ConnectionError("down")})
        client = make_client(session, clock)

        first = await client.fetch_index()
        second = await client.fetch_index()

        assert first.ok is False
        assert first.cause == FailureCause.TRANSPORT
        assert second is first
        assert urls(session).count(URL) == 1
