"""Shared pytest fixtures and configuration."""
import pytest
from unittest.mock import MagicMock

import requests
from loguru import logger

from chainglobe.domain.entities import Roster
from chainglobe.domain.identity import IdentityResolver


class FakeClock:
    """Manually advanced clock for TTL and staleness tests."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _json_response(payload=None, status=200):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = payload
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status} Error", response=response
        )
    return response


def _make_session(routes):
    """
    Session mock that answers GETs by exact URL.

    Route values may be a JSON payload, a prepared response mock, or an
    exception instance to raise. Unknown URLs answer 404.
    """
    session = MagicMock()
    session.headers = {}

    def get(url, params=None, timeout=None):
        route = routes.get(url)
        if route is None:
            return _json_response({"message": "not found"}, status=404)
        if isinstance(route, Exception):
            raise route
        if isinstance(route, MagicMock):
            return route
        return _json_response(route)

    session.get.side_effect = get
    return session


@pytest.fixture
def clock():
    """Fake clock starting at a fixed epoch."""
    return FakeClock()


@pytest.fixture
def json_response():
    """Factory for mocked requests responses."""
    return _json_response


@pytest.fixture
def make_session():
    """Factory for URL-routed session mocks."""
    return _make_session


@pytest.fixture
def roster():
    """Fresh copy of the static roster."""
    return Roster()


@pytest.fixture
def resolver(roster):
    """Identity resolver over the static roster."""
    return IdentityResolver(roster)


@pytest.fixture
def log_records():
    """Capture loguru records emitted during a test."""
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


def requested_urls(session):
    return [call.args[0] for call in session.get.call_args_list]


@pytest.fixture
def urls():
    """Return the URLs a session mock was asked for, in order."""
    return requested_urls
