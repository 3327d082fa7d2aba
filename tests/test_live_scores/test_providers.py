"""Tests for provider clients using httpx.MockTransport."""
import json

import httpx
import pytest

from app.services.live_scores.exceptions import ProviderUnavailableError, MalformedResponseError
from app.services.live_scores.providers import (
    ProviderClient,
    SportsDbClient,
    CricApiClient,
    build_providers,
    close_providers,
)
from app.services.live_scores.mappers import SPORTSDB, CRICAPI
from app.services.live_scores import LiveSyncConfig


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def no_backoff(monkeypatch):
    """Drop the exponential backoff so retry tests run instantly."""
    from tenacity import wait_none
    monkeypatch.setattr(SportsDbClient.fetch_next_events.retry, "wait", wait_none())


class TestSportsDbClient:

    @pytest.mark.asyncio
    async def test_fetch_match(self):
        seen = []

        def handler(request: httpx.Request):
            seen.append(request)
            return httpx.Response(200, json={"events": [{"idEvent": "evt1"}]})

        client = SportsDbClient(api_key="123", base_url="https://sportsdb.test/api/v1/json/", client=mock_client(handler))
        body = await client.fetch_match("evt1")

        assert body == {"events": [{"idEvent": "evt1"}]}
        assert seen[0].url.path == "/api/v1/json/123/eventslive.php"
        assert seen[0].url.params["id"] == "evt1"
        await client.close()

    @pytest.mark.asyncio
    async def test_null_body_is_no_events(self):
        client = SportsDbClient(api_key="3", client=mock_client(lambda r: httpx.Response(200, content=b"null")))
        assert await client.fetch_match("evt1") == {"events": None}

    @pytest.mark.asyncio
    async def test_http_error_is_unavailable(self):
        client = SportsDbClient(api_key="3", client=mock_client(lambda r: httpx.Response(503)))

        with pytest.raises(ProviderUnavailableError, match="HTTP 503"):
            await client.fetch_match("evt1")

    @pytest.mark.asyncio
    async def test_timeout_is_unavailable(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = SportsDbClient(api_key="3", timeout=2.5, client=mock_client(handler))

        with pytest.raises(ProviderUnavailableError, match="timed out after 2.5s"):
            await client.fetch_match("evt1")

    @pytest.mark.asyncio
    async def test_invalid_json_is_malformed(self):
        client = SportsDbClient(api_key="3", client=mock_client(lambda r: httpx.Response(200, content=b"<html>")))

        with pytest.raises(MalformedResponseError):
            await client.fetch_match("evt1")

    @pytest.mark.asyncio
    async def test_non_object_body_is_malformed(self):
        client = SportsDbClient(api_key="3", client=mock_client(lambda r: httpx.Response(200, json=[1, 2])))

        with pytest.raises(MalformedResponseError):
            await client.fetch_match("evt1")

    @pytest.mark.asyncio
    async def test_fetch_next_events(self):
        def handler(request):
            assert request.url.path.endswith("/eventsnext.php")
            assert request.url.params["sport"] == "football"
            return httpx.Response(200, json={"events": [{"idEvent": "1"}, "junk", {"idEvent": "2"}]})

        client = SportsDbClient(api_key="3", client=mock_client(handler))
        events = await client.fetch_next_events("football")

        assert [e["idEvent"] for e in events] == ["1", "2"]

    @pytest.mark.asyncio
    async def test_fetch_next_events_none(self):
        client = SportsDbClient(api_key="3", client=mock_client(lambda r: httpx.Response(200, json={"events": None})))
        assert await client.fetch_next_events("tennis") == []

    @pytest.mark.asyncio
    async def test_fetch_next_events_retries_transport_failures(self, no_backoff):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) < 3:
                return httpx.Response(502)
            return httpx.Response(200, json={"events": [{"idEvent": "1"}]})

        client = SportsDbClient(api_key="3", client=mock_client(handler))

        events = await client.fetch_next_events("football")

        assert len(calls) == 3
        assert events == [{"idEvent": "1"}]

    @pytest.mark.asyncio
    async def test_fetch_next_events_gives_up(self, no_backoff):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500)

        client = SportsDbClient(api_key="3", client=mock_client(handler))

        with pytest.raises(ProviderUnavailableError):
            await client.fetch_next_events("football")
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_malformed_list_is_not_retried(self, no_backoff):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"events": "none"})

        client = SportsDbClient(api_key="3", client=mock_client(handler))

        with pytest.raises(MalformedResponseError):
            await client.fetch_next_events("football")
        assert len(calls) == 1


class TestCricApiClient:

    @pytest.mark.asyncio
    async def test_fetch_match(self):
        def handler(request):
            assert request.url.path == "/v1/match_info"
            assert request.url.params["apikey"] == "key"
            assert request.url.params["id"] == "cric1"
            return httpx.Response(200, content=json.dumps({"status": "success", "data": {"id": "cric1"}}))

        client = CricApiClient(api_key="key", base_url="https://cricapi.test/v1", client=mock_client(handler))

        assert (await client.fetch_match("cric1"))["data"]["id"] == "cric1"

    @pytest.mark.asyncio
    async def test_in_band_failure_is_unavailable(self):
        body = {"status": "failure", "reason": "Invalid API key"}
        client = CricApiClient(api_key="bad", client=mock_client(lambda r: httpx.Response(200, json=body)))

        with pytest.raises(ProviderUnavailableError, match="Invalid API key"):
            await client.fetch_match("cric1")


class TestBuildProviders:

    @pytest.mark.asyncio
    async def test_build_and_close(self):
        config = LiveSyncConfig(sportsdb_api_key="abc", cricapi_api_key="def", provider_timeout_seconds=4.0)

        providers = build_providers(config)

        assert isinstance(providers[SPORTSDB], SportsDbClient)
        assert isinstance(providers[CRICAPI], CricApiClient)
        assert providers[SPORTSDB].api_key == "abc"
        assert providers[CRICAPI].timeout == 4.0

        await providers[SPORTSDB]._get_client()
        await close_providers(providers)
        assert providers[SPORTSDB]._client is None


class TestProviderClient:

    def test_base_client_is_abstract(self):
        with pytest.raises(TypeError):
            ProviderClient("https://provider.example.com")

    def test_subclass_must_implement_fetch_match(self):
        class Incomplete(ProviderClient):
            name = "incomplete"

        with pytest.raises(TypeError):
            Incomplete("https://provider.example.com")
