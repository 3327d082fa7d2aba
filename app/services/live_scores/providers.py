"""
HTTP clients for the external score providers.

- TheSportsDB (v1 JSON API): live events for football, basketball and tennis,
  and the "next events" list used by upcoming-match discovery.
- CricAPI: live cricket match info.

Clients return raw JSON bodies; turning them into Match fields is the
mappers' job. Every call carries the configured timeout. Transport problems
surface as ProviderUnavailableError and unusable bodies as
MalformedResponseError, so the sync loop can log and isolate them per match.

Usage:
    client = SportsDbClient(api_key="3", timeout=10.0)
    body = await client.fetch_match("1032723")
    events = await client.fetch_next_events("football")
    await client.close()
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from app.core import metrics
from app.core.logging import get_logger
from app.services.live_scores.exceptions import (
    ProviderError,
    ProviderUnavailableError,
    MalformedResponseError,
)
from app.services.live_scores.mappers import SPORTSDB, CRICAPI

logger = get_logger(__name__)


class ProviderClient(ABC):
    """
    Base class for score provider clients.

    Owns one httpx.AsyncClient (created lazily unless injected) and turns
    every failure into a ProviderError subclass.
    """

    name = "provider"

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
                headers={"Accept": "application/json"}
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a URL and decode its JSON body.

        Raises:
            ProviderUnavailableError: On timeout, network error or non-2xx status
            MalformedResponseError: If the body is not JSON
        """
        client = await self._get_client()
        try:
            response = await client.get(url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            metrics.record_provider_failure(self.name, f"http_{e.response.status_code}")
            raise ProviderUnavailableError(self.name, f"HTTP {e.response.status_code} for {e.request.url.path}") from e
        except httpx.TimeoutException as e:
            metrics.record_provider_failure(self.name, "timeout")
            raise ProviderUnavailableError(self.name, f"timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            metrics.record_provider_failure(self.name, "transport")
            raise ProviderUnavailableError(self.name, str(e) or type(e).__name__) from e

        try:
            return response.json()
        except ValueError as e:
            metrics.record_provider_failure(self.name, "malformed")
            raise MalformedResponseError(self.name, "response body is not valid JSON") from e

    @abstractmethod
    async def fetch_match(self, match_id: str) -> Any:
        """Fetch the raw live-data body for one match."""


class SportsDbClient(ProviderClient):
    """TheSportsDB v1 client: ``{base}/{api_key}/<endpoint>.php``."""

    name = SPORTSDB

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://www.thesportsdb.com/api/v1/json",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__(base_url, timeout=timeout, client=client)
        self.api_key = api_key

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}/{self.api_key}/{endpoint}"

    async def fetch_match(self, match_id: str) -> Any:
        """
        Fetch the live event body for one match.

        Returns:
            ``{"events": [...] | null}`` as returned by eventslive.php
        """
        body = await self._get_json(self._url("eventslive.php"), params={"id": match_id})
        if body is not None and not isinstance(body, dict):
            raise MalformedResponseError(self.name, f"expected an object for event {match_id}")
        return body or {"events": None}

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(ProviderUnavailableError),
        reraise=True
    )
    async def fetch_next_events(self, sport: str) -> List[Dict[str, Any]]:
        """
        Fetch upcoming events for a sport (retried on transport failures).

        Returns:
            List of raw event dicts; empty when the provider has none
        """
        body = await self._get_json(self._url("eventsnext.php"), params={"sport": sport})
        if body is None:
            return []
        if not isinstance(body, dict):
            raise MalformedResponseError(self.name, f"expected an object for upcoming {sport} events")

        events = body.get("events") or []
        if not isinstance(events, list):
            raise MalformedResponseError(self.name, f"'events' is not a list for upcoming {sport} events")

        logger.debug(f"Fetched {len(events)} upcoming {sport} events", extra={"sport": sport})
        return [e for e in events if isinstance(e, dict)]


class CricApiClient(ProviderClient):
    """CricAPI v1 client: ``{base}/match_info?apikey=&id=``."""

    name = CRICAPI

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.cricapi.com/v1",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__(base_url, timeout=timeout, client=client)
        self.api_key = api_key

    async def fetch_match(self, match_id: str) -> Any:
        """
        Fetch match info for one cricket match.

        Returns:
            ``{"status": "success", "data": {...}}``; ``data`` is absent when
            the match is unknown
        """
        body = await self._get_json(
            f"{self.base_url}/match_info",
            params={"apikey": self.api_key, "id": match_id}
        )
        if not isinstance(body, dict):
            raise MalformedResponseError(self.name, f"expected an object for match {match_id}")
        # CricAPI reports quota and key problems in-band with HTTP 200
        if body.get("status") == "failure":
            metrics.record_provider_failure(self.name, "api_failure")
            raise ProviderUnavailableError(self.name, str(body.get("reason") or "request failed"))
        return body


def build_providers(config) -> Dict[str, ProviderClient]:
    """
    Create one client per provider from a LiveSyncConfig.

    Returns:
        Provider name -> client, as looked up through SportFeed.provider
    """
    return {
        SPORTSDB: SportsDbClient(
            api_key=config.sportsdb_api_key,
            base_url=config.sportsdb_base_url,
            timeout=config.provider_timeout_seconds
        ),
        CRICAPI: CricApiClient(
            api_key=config.cricapi_api_key,
            base_url=config.cricapi_base_url,
            timeout=config.provider_timeout_seconds
        ),
    }


async def close_providers(providers: Dict[str, ProviderClient]):
    """Close every client, logging (not raising) close failures."""
    for name, client in providers.items():
        try:
            await client.close()
        except Exception as e:
            logger.warning(f"Failed to close {name} client: {e}", extra={"provider": name})


__all__ = [
    "ProviderClient",
    "ProviderError",
    "SportsDbClient",
    "CricApiClient",
    "build_providers",
    "close_providers",
]
