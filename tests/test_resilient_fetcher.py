"""Tests for the retrying fetcher."""

import asyncio

import httpx
import pytest

from roster_watch.errors import ConfigError, NetworkError, NetworkTimeout
from roster_watch.services.resilient_fetcher import ResilientFetcher, backoff_delay_ms

pytestmark = pytest.mark.anyio

URL = "http://upstream.test/players"


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays_ms: list[int] = []

    async def __call__(self, seconds: float) -> None:
        self.delays_ms.append(round(seconds * 1000))


def _fetcher(handler, sleep=None, **kwargs) -> tuple[ResilientFetcher, RecordingSleep]:
    sleep = sleep or RecordingSleep()
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ResilientFetcher(client=client, sleep=sleep, **kwargs), sleep


def _failing_then_ok(failures: int):
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        if calls["count"] <= failures:
            return httpx.Response(503, text="unavailable")
        return httpx.Response(200, json={"statusCode": 200, "data": [1, 2, 3]})

    return handler, calls


class TestBackoff:
    """Backoff schedule."""

    def test_doubles_then_caps(self):
        assert [backoff_delay_ms(a) for a in range(5)] == [1000, 2000, 4000, 5000, 5000]


class TestFetch:
    """Retry behaviour."""

    async def test_success_first_try(self):
        """No retries, no delays on an immediate 200."""
        handler, calls = _failing_then_ok(0)
        fetcher, sleep = _fetcher(handler)
        response = await fetcher.fetch(URL)
        assert response.json()["data"] == [1, 2, 3]
        assert calls["count"] == 1
        assert sleep.delays_ms == []

    async def test_recovers_before_retries_run_out(self):
        """Two failures then success returns the full payload."""
        handler, calls = _failing_then_ok(2)
        fetcher, sleep = _fetcher(handler, max_retries=3)
        response = await fetcher.fetch(URL)
        assert response.json()["data"] == [1, 2, 3]
        assert calls["count"] == 3
        assert sleep.delays_ms == [1000, 2000]

    async def test_exhaustion_raises_last_error(self):
        """Exactly max_retries attempts, no delay after the last one."""
        handler, calls = _failing_then_ok(10)
        fetcher, sleep = _fetcher(handler)
        with pytest.raises(NetworkError) as exc_info:
            await fetcher.fetch(URL, max_retries=4)
        assert calls["count"] == 4
        assert sleep.delays_ms == [1000, 2000, 4000]
        assert exc_info.value.status_code == 503
        assert "HTTP 503" in str(exc_info.value)

    async def test_delay_is_capped(self):
        handler, _ = _failing_then_ok(10)
        fetcher, sleep = _fetcher(handler)
        with pytest.raises(NetworkError):
            await fetcher.fetch(URL, max_retries=5)
        assert sleep.delays_ms == [1000, 2000, 4000, 5000]

    async def test_transport_error_is_retried(self):
        """Connection failures count as attempts."""
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            if calls["count"] == 1:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, text="ok")

        fetcher, sleep = _fetcher(handler)
        response = await fetcher.fetch(URL)
        assert response.text == "ok"
        assert sleep.delays_ms == [1000]

    async def test_timeout_cancels_attempt(self):
        """A hung attempt times out and the next attempt proceeds."""
        calls = {"count": 0}

        async def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            if calls["count"] == 1:
                await asyncio.sleep(5)
            return httpx.Response(200, text="late but fine")

        fetcher, sleep = _fetcher(handler)
        response = await fetcher.fetch(URL, timeout_ms=20)
        assert response.text == "late but fine"
        assert calls["count"] == 2

    async def test_timeout_exhaustion_raises_timeout(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200)

        fetcher, _ = _fetcher(handler)
        with pytest.raises(NetworkTimeout):
            await fetcher.fetch(URL, timeout_ms=10, max_retries=2)

    async def test_missing_url_is_not_retried(self):
        """A blank URL is a configuration error raised immediately."""
        handler, calls = _failing_then_ok(0)
        fetcher, sleep = _fetcher(handler)
        with pytest.raises(ConfigError):
            await fetcher.fetch("  ", label="players")
        assert calls["count"] == 0
        assert sleep.delays_ms == []

    async def test_passes_headers(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200)

        fetcher, _ = _fetcher(handler)
        await fetcher.fetch(URL, headers={"Authorization": "Bearer s3cret"})
        assert seen["auth"] == "Bearer s3cret"

    async def test_schedule_matches_backoff_table(self):
        """Every wait between attempts follows backoff_delay_ms."""
        handler, calls = _failing_then_ok(10)
        fetcher, sleep = _fetcher(handler)
        with pytest.raises(NetworkError):
            await fetcher.fetch(URL, max_retries=6)
        assert calls["count"] == 6
        assert sleep.delays_ms == [backoff_delay_ms(a) for a in range(5)]

    async def test_unexpected_error_is_not_retried(self):
        """Only network failures are retried; other errors surface at once."""
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            raise RuntimeError("handler bug")

        fetcher, sleep = _fetcher(handler)
        with pytest.raises(RuntimeError):
            await fetcher.fetch(URL)
        assert calls["count"] == 1
        assert sleep.delays_ms == []
