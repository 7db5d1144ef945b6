"""Tests for the HTTP surface of the gateway"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from field_explorer.api import create_app
from field_explorer.cache import ResponseCache
from field_explorer.errors import NonJsonResponse
from field_explorer.gateway import Gateway
from field_explorer.ratelimit import RateLimiter
from field_explorer.upstream import UpstreamClient

URL = "https://finnhub.io/api/v1/quote?symbol=AAPL"


@pytest.fixture
def upstream():
    client = MagicMock(spec=UpstreamClient)
    client.fetch.return_value = {"c": 189.5, "d": -1.2}
    return client


@pytest.fixture
def client(upstream, fake_clock):
    gateway = Gateway(
        rate_limiter=RateLimiter(max_requests=3, window_seconds=60, clock=fake_clock),
        cache=ResponseCache(ttl_seconds=10, clock=fake_clock),
        upstream=upstream,
    )
    return TestClient(create_app(gateway))


def test_proxy_success(client, upstream):
    response = client.post(
        "/api/proxy",
        json={"url": URL, "customHeaders": [{"key": "X-Trace", "value": "1"}]},
        headers={"X-Forwarded-For": "203.0.113.7"},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": {"c": 189.5, "d": -1.2}, "cached": False}
    assert response.headers["X-RateLimit-Limit"] == "3"
    assert response.headers["X-RateLimit-Remaining"] == "2"
    assert response.headers["X-RateLimit-Reset"] == "60"
    upstream.fetch.assert_called_once_with(URL, [{"key": "X-Trace", "value": "1"}])


def test_proxy_rate_limit_per_forwarded_client(client):
    for _ in range(3):
        assert client.post("/api/proxy", json={"url": URL}, headers={"X-Forwarded-For": "a"}).status_code == 200

    denied = client.post("/api/proxy", json={"url": URL}, headers={"X-Forwarded-For": "a, proxy"})
    assert denied.status_code == 429
    assert denied.json()["success"] is False
    assert denied.headers["X-RateLimit-Remaining"] == "0"

    other = client.post("/api/proxy", json={"url": URL}, headers={"X-Forwarded-For": "b"})
    assert other.status_code == 200
    assert other.json()["cached"] is True


def test_proxy_missing_url(client):
    response = client.post("/api/proxy", json={})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "URL is required and must be a string"}


def test_proxy_rejects_domain(client):
    response = client.post("/api/proxy", json={"url": "https://evil.example.com/"})

    assert response.status_code == 400
    assert "not in the allowed list" in response.json()["error"]


def test_malformed_body(client):
    response = client.post(
        "/api/proxy", content=b"not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid request body"}

    response = client.post("/api/proxy", json={"url": URL, "customHeaders": "nope"})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request body"


def test_upstream_failure_reports_cached_false(client, upstream):
    upstream.fetch.side_effect = NonJsonResponse()
    response = client.post("/api/proxy", json={"url": URL})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Response is not valid JSON", "cached": False}


def test_api_test_endpoint(client, upstream):
    for _ in range(5):
        response = client.post("/api/test", json={"url": URL})
        assert response.status_code == 200

    assert response.json() == {"success": True, "data": {"c": 189.5, "d": -1.2}, "fieldCount": 2}
    assert "X-RateLimit-Limit" not in response.headers
    assert upstream.fetch.call_count == 5


def test_health(client):
    body = client.get("/health").json()

    assert body["status"] == "healthy"
    assert body["version"] == "1.0.0"
    assert "timestamp" in body
