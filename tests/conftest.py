"""
Pytest configuration shared across the test suite

Provides a controllable clock for the limiter/cache and a factory for
canned `requests.Response` objects.
"""

from __future__ import annotations

import io

import pytest
import requests


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_response():
    """Build a requests.Response without touching the network."""

    def _make(
        status_code: int = 200,
        body: bytes = b"{}",
        content_type: str | None = "application/json",
        reason: str = "OK",
    ) -> requests.Response:
        response = requests.Response()
        response.status_code = status_code
        response.reason = reason
        response._content = body
        response._content_consumed = True
        response.raw = io.BytesIO(b"")
        response.encoding = "utf-8"
        if content_type:
            response.headers["Content-Type"] = content_type
        return response

    return _make
