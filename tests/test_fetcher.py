"""Tests for the retrying HTTP fetcher."""

import asyncio

import httpx
import pytest

from content_analyzer.collectors.fetcher import (
    RetryableStatusError,
    RetryOptions,
    build_client,
    build_headers,
    fetch_with_retry,
    is_retryable_status,
)
from content_analyzer.constants import DEFAULT_USER_AGENT
from content_analyzer.errors import FetchError


def _scripted_transport(responses):
    """Transport that replays a list of statuses (or exceptions) in order."""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        item = responses[min(len(calls) - 1, len(responses) - 1)]
        if isinstance(item, Exception):
            raise item
        return httpx.Response(item, text=f"status {item}")

    return httpx.MockTransport(handler), calls


async def _fetch(transport, url="https://clinic.example.com/", **kwargs):
    async with build_client(transport=transport) as client:
        return await fetch_with_retry(client, url, **kwargs)


# ─── is_retryable_status ──────────────────────────────────────────────────────


class TestIsRetryableStatus:
    @pytest.mark.parametrize("status", [429, 500, 502, 503, 599])
    def test_retryable(self, status):
        assert is_retryable_status(status)

    @pytest.mark.parametrize("status", [200, 301, 400, 403, 404])
    def test_not_retryable(self, status):
        assert not is_retryable_status(status)


# ─── fetch_with_retry ─────────────────────────────────────────────────────────


class TestFetchWithRetry:
    def test_503_503_200_sleeps_twice_with_backoff(self, sleep_recorder):
        """503, 503, 200 → success after exactly two sleeps, second longer than first."""
        transport, calls = _scripted_transport([503, 503, 200])
        retry = RetryOptions(max_retries=3, delay=1.0, backoff=2.0)

        response = asyncio.run(_fetch(transport, retry=retry, sleep=sleep_recorder))

        assert response.status_code == 200
        assert len(calls) == 3
        assert sleep_recorder.calls == [1.0, 2.0]
        assert sleep_recorder.calls[1] > sleep_recorder.calls[0]

    def test_404_returned_without_retry(self, sleep_recorder):
        """Non-retryable status comes straight back to the caller."""
        transport, calls = _scripted_transport([404])

        response = asyncio.run(_fetch(transport, sleep=sleep_recorder))

        assert response.status_code == 404
        assert len(calls) == 1
        assert sleep_recorder.calls == []

    def test_exhausted_retries_raise_fetch_error(self, sleep_recorder):
        """max_retries=2 → 3 attempts, then FetchError carrying the last status."""
        transport, calls = _scripted_transport([500])
        retry = RetryOptions(max_retries=2, delay=0.5, backoff=3.0)

        with pytest.raises(FetchError) as exc_info:
            asyncio.run(_fetch(transport, retry=retry, sleep=sleep_recorder))

        assert len(calls) == 3
        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.cause, RetryableStatusError)
        assert exc_info.value.cause.status_code == 500
        assert sleep_recorder.calls == [0.5, 1.5]

    def test_transport_error_is_retried(self, sleep_recorder):
        """Connection failures are retried like 5xx responses."""
        transport, calls = _scripted_transport([httpx.ConnectError("connection refused"), 200])

        response = asyncio.run(_fetch(transport, sleep=sleep_recorder))

        assert response.status_code == 200
        assert len(calls) == 2
        assert sleep_recorder.calls == [1.0]

    def test_zero_retries_single_attempt(self, sleep_recorder):
        transport, calls = _scripted_transport([429])

        with pytest.raises(FetchError):
            asyncio.run(_fetch(transport, retry=RetryOptions(max_retries=0), sleep=sleep_recorder))

        assert len(calls) == 1
        assert sleep_recorder.calls == []

    def test_redirect_loop_fails_without_retry(self, sleep_recorder):
        """302 back to itself → FetchError after one attempt, no backoff sleeps."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(302, headers={"location": str(request.url)})

        with pytest.raises(FetchError) as exc_info:
            asyncio.run(_fetch(httpx.MockTransport(handler), sleep=sleep_recorder))

        assert isinstance(exc_info.value.cause, httpx.TooManyRedirects)
        assert exc_info.value.attempts == 1
        assert sleep_recorder.calls == []

    def test_identifying_user_agent_sent(self, sleep_recorder):
        transport, calls = _scripted_transport([200])

        asyncio.run(_fetch(transport, sleep=sleep_recorder))

        assert calls[0].headers["user-agent"] == DEFAULT_USER_AGENT

    def test_caller_headers_override_defaults(self, sleep_recorder):
        transport, calls = _scripted_transport([200])

        asyncio.run(_fetch(transport, headers={"User-Agent": "custom/2.0"}, sleep=sleep_recorder))

        assert calls[0].headers["user-agent"] == "custom/2.0"


class TestBuildHeaders:
    def test_defaults_present(self):
        headers = build_headers()
        assert headers["User-Agent"] == DEFAULT_USER_AGENT

    def test_extra_headers_merged(self):
        headers = build_headers({"X-Trace": "abc"})
        assert headers["X-Trace"] == "abc"
        assert headers["User-Agent"] == DEFAULT_USER_AGENT
