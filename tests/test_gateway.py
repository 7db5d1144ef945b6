"""Unit tests for the gateway pipeline

Tests cover:
- Ordering of rate limiting, validation, cache and upstream fetch
- Cache hits and expiry
- Error results and the `cached` flag
- The un-limited test endpoint
"""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest

from field_explorer.cache import ResponseCache
from field_explorer.errors import UpstreamHttpError, UpstreamTimeout
from field_explorer.gateway import Gateway, GatewayResult, normalize_headers
from field_explorer.ratelimit import RateLimiter, RateLimitStatus
from field_explorer.upstream import UpstreamClient

URL = "https://api.coingecko.com/api/v3/simple/price?ids=bitcoin&vs_currencies=usd"
PAYLOAD = {"bitcoin": {"usd": 64000.5}}


@pytest.fixture
def upstream():
    client = MagicMock(spec=UpstreamClient)
    client.fetch.return_value = PAYLOAD
    return client


@pytest.fixture
def gateway(upstream, fake_clock):
    return Gateway(
        rate_limiter=RateLimiter(max_requests=30, window_seconds=60, clock=fake_clock),
        cache=ResponseCache(ttl_seconds=10, clock=fake_clock),
        upstream=upstream,
    )


def test_successful_proxy(gateway, upstream):
    result = gateway.proxy(URL, client_id="1.2.3.4")

    assert result.success
    assert result.status_code == 200
    assert result.to_payload() == {"success": True, "data": PAYLOAD, "cached": False}
    assert result.rate_limit_headers() == {
        "X-RateLimit-Limit": "30",
        "X-RateLimit-Remaining": "29",
        "X-RateLimit-Reset": "60",
    }
    upstream.fetch.assert_called_once_with(URL, [])


def test_disallowed_domain_never_reaches_upstream(gateway, upstream):
    result = gateway.proxy("https://evil.example.com/x", client_id="a")

    assert not result.success
    assert result.status_code == 400
    assert "evil.example.com" in result.error
    assert "cached" not in result.to_payload()
    upstream.fetch.assert_not_called()


def test_missing_url(gateway, upstream):
    result = gateway.proxy(None, client_id="a")

    assert result.status_code == 400
    assert result.to_payload() == {"success": False, "error": "URL is required and must be a string"}
    upstream.fetch.assert_not_called()


def test_rate_limit_is_checked_before_validation(gateway, upstream):
    for _ in range(30):
        gateway.proxy("https://evil.example.com/x", client_id="a")

    result = gateway.proxy(URL, client_id="a")
    assert result.status_code == 429
    upstream.fetch.assert_not_called()


def test_rate_limit_denial_and_reset(gateway, fake_clock):
    for _ in range(30):
        assert gateway.proxy(URL, client_id="a").success

    denied = gateway.proxy(URL, client_id="a")
    assert denied.status_code == 429
    assert denied.error == "Rate limit exceeded. Please try again in 60 seconds."
    assert denied.rate_limit_headers()["X-RateLimit-Remaining"] == "0"

    fake_clock.advance(61)
    assert gateway.proxy(URL, client_id="a").success


def test_cache_hit_skips_upstream(gateway, upstream):
    first = gateway.proxy(URL, client_id="a")
    second = gateway.proxy(URL, client_id="b")

    assert first.cached is False
    assert second.cached is True
    assert second.data == first.data
    assert upstream.fetch.call_count == 1


def test_cache_expires(gateway, upstream, fake_clock):
    gateway.proxy(URL, client_id="a")
    fake_clock.advance(10)
    result = gateway.proxy(URL, client_id="a")

    assert result.cached is False
    assert upstream.fetch.call_count == 2


def test_cache_key_depends_on_headers(gateway, upstream):
    gateway.proxy(URL, [{"key": "X-A", "value": "1"}], client_id="a")
    gateway.proxy(URL, [{"key": "X-A", "value": "2"}], client_id="a")
    gateway.proxy(URL, [{"key": "X-A", "value": "1"}], client_id="a")

    assert upstream.fetch.call_count == 2


def test_upstream_errors_are_not_cached(gateway, upstream):
    upstream.fetch.side_effect = UpstreamHttpError(503, "Service Unavailable")
    result = gateway.proxy(URL, client_id="a")

    assert result.to_payload() == {"success": False, "error": "HTTP 503: Service Unavailable", "cached": False}
    assert result.status_code == 400

    upstream.fetch.side_effect = None
    assert gateway.proxy(URL, client_id="a").cached is False
    assert upstream.fetch.call_count == 2


def test_unexpected_errors_become_500(gateway, upstream):
    upstream.fetch.side_effect = RuntimeError("boom")
    result = gateway.proxy(URL, client_id="a")

    assert result.status_code == 500
    assert result.error == "Internal server error"


def test_test_endpoint_reports_field_count(gateway, upstream):
    upstream.fetch.return_value = {"a": 1, "b": {"c": 2}, "d": [{"e": 1}]}
    result = gateway.test(URL)

    assert result.success
    assert result.field_count == 4  # a, b~>c, d, d[0]~>e
    assert result.to_payload()["fieldCount"] == 4
    assert "cached" not in result.to_payload()
    assert result.rate_limit_headers() == {}


def test_test_endpoint_skips_limits_and_cache(gateway, upstream):
    for _ in range(40):
        assert gateway.test(URL).success
    assert upstream.fetch.call_count == 40
    assert len(gateway.cache) == 0


def test_test_endpoint_errors(gateway, upstream):
    assert gateway.test("http://api.coingecko.com").error == "Only HTTPS protocol is allowed for security"

    upstream.fetch.side_effect = UpstreamTimeout(15)
    assert gateway.test(URL).to_payload() == {"success": False, "error": "Request timed out after 15 seconds"}


def test_concurrent_requests_share_one_window(gateway):
    results = []
    lock = threading.Lock()

    def call():
        result = gateway.proxy(URL, client_id="shared")
        with lock:
            results.append(result.status_code)

    threads = [threading.Thread(target=call) for _ in range(35)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(200) == 30
    assert results.count(429) == 5


def test_normalize_headers():
    class Header:
        key = "X-B"
        value = 2

    assert normalize_headers([{"key": "X-A", "value": "1"}, Header(), {"key": None}]) == [
        {"key": "X-A", "value": "1"},
        {"key": "X-B", "value": "2"},
        {"key": "", "value": ""},
    ]
    assert normalize_headers(None) == []


def test_rate_limit_reset_header_rounds_up():
    result = GatewayResult(
        success=True, status_code=200, rate_limit=RateLimitStatus(True, 30, 10, 12.2)
    )
    assert result.rate_limit_headers()["X-RateLimit-Reset"] == "13"
