"""
Tests for HttpClient: deadlines, status handling and retry over the wire.

The network is mocked with aioresponses; backoff sleeps are recorded by the
``http_client`` fixture instead of awaited.
"""

import asyncio
import re

import aiohttp
import pytest
from aioresponses import CallbackResult, aioresponses

from cratedocs.config import FetcherConfig
from cratedocs.exceptions import FetchError, FetchTimeoutError, HttpStatusError
from cratedocs.fetch import HttpClient
from cratedocs.observability import METRICS

from tests.helpers import histogram_observes, metric_delta

PAGE = "https://docs.rs/demo/latest/demo/index.html"
API = "https://crates.io/api/v1/crates/demo"


@pytest.mark.unit
class TestSingleFetch:
    """fetch_text / fetch_json: one request, no retry."""

    @pytest.mark.asyncio
    async def test_fetch_text(self, http_client):
        with aioresponses() as m:
            m.get(PAGE, status=200, body="<html>demo</html>")

            assert await http_client.fetch_text(PAGE) == "<html>demo</html>"

    @pytest.mark.asyncio
    async def test_fetch_json_ignores_content_type(self, http_client):
        with aioresponses() as m:
            m.get(API, status=200, body='{"crate": {"name": "demo"}}', content_type="text/plain")

            assert await http_client.fetch_json(API) == {"crate": {"name": "demo"}}

    @pytest.mark.asyncio
    async def test_fetch_json_sends_query_params(self, http_client):
        with aioresponses() as m:
            m.get(re.compile(r"^https://crates\.io/api/v1/crates\?.*q=serde.*$"), status=200, payload={"crates": []})

            data = await http_client.fetch_json("https://crates.io/api/v1/crates", params={"q": "serde"})

        assert data == {"crates": []}

    @pytest.mark.asyncio
    async def test_server_error_raised_without_retry(self, http_client, sleep_calls):
        with aioresponses() as m:
            m.get(PAGE, status=500)

            with pytest.raises(HttpStatusError) as exc_info:
                await http_client.fetch_text(PAGE)

        assert exc_info.value.status == 500
        assert exc_info.value.url == PAGE
        assert sleep_calls == []

    @pytest.mark.asyncio
    async def test_timeout_becomes_fetch_timeout_error(self, http_client):
        with aioresponses() as m:
            m.get(PAGE, timeout=True)

            with pytest.raises(FetchTimeoutError) as exc_info:
                await http_client.fetch_text(PAGE, timeout=0.5)

        assert exc_info.value.timeout == 0.5
        assert "0.5" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_slow_response_cut_off_by_deadline(self, http_client):
        async def slow_response(url, **kwargs):
            await asyncio.sleep(1)
            return CallbackResult(status=200, body="too late")

        with aioresponses() as m:
            m.get(PAGE, callback=slow_response)

            with pytest.raises(FetchTimeoutError) as exc_info:
                await http_client.fetch_text(PAGE, timeout=0.05)

        assert exc_info.value.timeout == 0.05
        assert exc_info.value.url == PAGE

    @pytest.mark.asyncio
    async def test_connection_error_becomes_fetch_error(self, http_client):
        with aioresponses() as m:
            m.get(PAGE, exception=aiohttp.ClientConnectionError("refused"))

            with pytest.raises(FetchError) as exc_info:
                await http_client.fetch_text(PAGE)

        assert not isinstance(exc_info.value, FetchTimeoutError)
        assert exc_info.value.is_transient is False

    @pytest.mark.asyncio
    async def test_latency_observed(self, http_client):
        with histogram_observes(METRICS["fetch_latency_seconds"], min_observations=1):
            with aioresponses() as m:
                m.get(PAGE, status=200, body="ok")
                await http_client.fetch_text(PAGE)


@pytest.mark.unit
class TestRetryingFetch:
    """get_text / get_json apply the configured retry budget."""

    @pytest.mark.asyncio
    async def test_server_errors_then_success(self, http_client, sleep_calls):
        with aioresponses() as m:
            m.get(PAGE, status=500)
            m.get(PAGE, status=502)
            m.get(PAGE, status=200, body="finally")

            with metric_delta(METRICS["fetch_retries_total"], 2):
                assert await http_client.get_text(PAGE) == "finally"

        assert sleep_calls == [0.5, 1.0]

    @pytest.mark.asyncio
    async def test_not_found_is_not_retried(self, http_client, sleep_calls):
        with aioresponses() as m:
            m.get(PAGE, status=404)

            with pytest.raises(HttpStatusError) as exc_info:
                await http_client.get_text(PAGE)

        assert exc_info.value.is_not_found
        assert sleep_calls == []

    @pytest.mark.asyncio
    async def test_retry_budget_exhausted(self, http_client, sleep_calls):
        with aioresponses() as m:
            m.get(PAGE, status=503, repeat=True)

            with pytest.raises(HttpStatusError) as exc_info:
                await http_client.get_text(PAGE)

        assert exc_info.value.status == 503
        assert len(sleep_calls) == 2

    @pytest.mark.asyncio
    async def test_timeouts_retried(self, http_client, sleep_calls):
        with aioresponses() as m:
            m.get(PAGE, timeout=True)
            m.get(PAGE, status=200, body="recovered")

            assert await http_client.get_text(PAGE) == "recovered"

        assert sleep_calls == [0.5]

    @pytest.mark.asyncio
    async def test_get_json_retries(self, http_client, sleep_calls):
        with aioresponses() as m:
            m.get(API, status=500)
            m.get(API, status=200, payload={"crate": {"name": "demo"}})

            assert await http_client.get_json(API) == {"crate": {"name": "demo"}}

        assert sleep_calls == [0.5]

    @pytest.mark.asyncio
    async def test_html_instead_of_json_becomes_fetch_error(self, http_client, sleep_calls):
        with aioresponses() as m:
            m.get(API, status=200, body="<html>maintenance</html>", content_type="text/html")

            with pytest.raises(FetchError) as exc_info:
                await http_client.get_json(API)

        assert exc_info.value.url == API
        assert exc_info.value.is_transient is False
        assert isinstance(exc_info.value.__cause__, ValueError)
        assert sleep_calls == []

    @pytest.mark.asyncio
    async def test_undecodable_text_becomes_fetch_error(self, http_client, sleep_calls):
        with aioresponses() as m:
            m.get(PAGE, status=200, body=b"\xff\xfe<html>", content_type="text/html; charset=utf-8")

            with pytest.raises(FetchError) as exc_info:
                await http_client.get_text(PAGE)

        assert exc_info.value.url == PAGE
        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)
        assert sleep_calls == []


@pytest.mark.unit
class TestLifecycle:
    @pytest.mark.asyncio
    async def test_uninitialized_client_refuses_requests(self, fetcher_config):
        client = HttpClient(fetcher_config)

        with pytest.raises(RuntimeError):
            await client.fetch_text(PAGE)

    @pytest.mark.asyncio
    async def test_session_carries_user_agent(self, fetcher_config):
        async with HttpClient(fetcher_config) as client:
            assert client.session is not None
            assert client.session.headers["User-Agent"] == "TestBot/1.0"
            assert client.get_stats() == {"in_flight_requests": 0, "initialized": True}

        assert client.session is None

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        client = HttpClient(FetcherConfig())
        await client.initialize()
        await client.close()
        await client.close()

        assert client.get_stats()["initialized"] is False
