"""
Shared HTTP plumbing for provider clients.

Requests go through a blocking ``requests.Session`` run in the default
executor so that the event loop is never blocked. Every call is a single
attempt bounded by the transport timeout; there is no retry because the
public APIs behind these clients throttle aggressively. Clients for APIs with
a published call budget can be paced locally (calls_per_minute). A paced
call waits for the budget on the event loop before it is handed to the
executor, so it never holds a worker thread that other clients need.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests
from ratelimit import RateLimitException, limits

from chainglobe.core.constants import REQUEST_TIMEOUT_SECONDS, USER_AGENT
from chainglobe.core.logging_config import ProviderEventLogger
from chainglobe.services.data.types import (
    FailureCause,
    ProviderError,
    ProviderResult,
    ProviderType,
)


def _call_token() -> None:
    """Budget token; the ``limits`` wrapper raises when none is left."""


class ProviderClient(ABC):
    """
    Base class for the six provider clients.

    Subclasses set ``provider`` and implement ``fetch_for_entity``.
    Only ``_get_json`` raises (ProviderError); public methods of subclasses
    catch it and return a failed ProviderResult or an empty mapping.
    """

    provider: ProviderType

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        user_agent: str = USER_AGENT,
        calls_per_minute: Optional[int] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": user_agent,
            "Accept": "application/json"
        })
        self.events = ProviderEventLogger(self.provider.value)

        # Budget is per client instance
        self.calls_per_minute = calls_per_minute
        self._spend_call = None
        if calls_per_minute:
            self._spend_call = limits(calls=calls_per_minute, period=60)(_call_token)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self) -> None:
        self.session.close()

    @property
    def paced(self) -> bool:
        return self._spend_call is not None

    async def _wait_for_budget(self) -> None:
        """Sleep on the loop until the local call budget has room."""
        if self._spend_call is None:
            return
        while True:
            try:
                self._spend_call()
                return
            except RateLimitException as e:
                self.events.budget_wait(round(e.period_remaining, 2))
                await asyncio.sleep(e.period_remaining)

    def _blocking_get(self, url: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        return self.session.get(url, params=params, timeout=self.timeout)

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a JSON document.

        Raises:
            ProviderError: NOT_FOUND for 404, TRANSPORT for other non-2xx
                status and network errors, SCHEMA for a body that is not
                valid JSON
        """
        await self._wait_for_budget()
        try:
            # Run in executor to avoid blocking the loop
            loop = asyncio.get_event_loop()
            response = await loop.run_in_executor(
                None,
                lambda: self._blocking_get(url, params)
            )
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status = getattr(e.response, "status_code", None)
            # Unknown ids/chains come back as 404
            cause = FailureCause.NOT_FOUND if status == 404 else FailureCause.TRANSPORT
            raise ProviderError(cause, f"GET {url} failed: {e}") from e
        except requests.exceptions.RequestException as e:
            raise ProviderError(FailureCause.TRANSPORT, f"GET {url} failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(FailureCause.SCHEMA, f"GET {url} returned invalid JSON: {e}") from e

    def _ok(self, entity: str, payload: Any, **kwargs) -> ProviderResult:
        self.events.fetch_ok(entity=entity, **kwargs)
        return ProviderResult.success(self.provider, payload)

    def _fail(
        self,
        entity: Optional[str],
        cause: FailureCause,
        detail: str,
        payload: Any = None
    ) -> ProviderResult:
        self.events.fetch_failed(cause=cause.value, entity=entity, detail=detail)
        return ProviderResult.failure(self.provider, cause, detail=detail, payload=payload)

    @abstractmethod
    async def fetch_for_entity(self, name: str, resolved_id: Optional[str] = None) -> ProviderResult:
        """
        Fetch this provider's metrics for one entity.

        Never raises for provider-side problems; returns a failed
        ProviderResult carrying the FailureCause instead.
        """
        pass
