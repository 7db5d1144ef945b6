"""Unit tests for the fixed-window rate limiter"""

from __future__ import annotations

import threading

import pytest

from field_explorer.ratelimit import RateLimiter, client_identity


@pytest.fixture
def limiter(fake_clock):
    return RateLimiter(max_requests=30, window_seconds=60, clock=fake_clock)


def test_allows_up_to_limit_then_denies(limiter):
    remaining = [limiter.check("1.2.3.4").remaining for _ in range(30)]
    assert remaining == list(range(29, -1, -1))

    denied = limiter.check("1.2.3.4")
    assert not denied.allowed
    assert denied.remaining == 0
    assert denied.limit == 30


def test_reset_in_counts_down(limiter, fake_clock):
    first = limiter.check("a")
    assert first.reset_in == 60

    fake_clock.advance(15)
    assert limiter.check("a").reset_in == 45


def test_new_window_after_expiry(limiter, fake_clock):
    for _ in range(31):
        limiter.check("a")

    fake_clock.advance(61)
    status = limiter.check("a")
    assert status.allowed
    assert status.remaining == 29


def test_denied_requests_do_not_extend_window(limiter, fake_clock):
    for _ in range(30):
        limiter.check("a")
    fake_clock.advance(30)
    assert limiter.check("a").reset_in == 30


def test_clients_are_isolated(limiter):
    for _ in range(30):
        limiter.check("a")

    assert not limiter.check("a").allowed
    assert limiter.check("b").allowed


def test_client_table_is_bounded(fake_clock):
    limiter = RateLimiter(max_requests=5, window_seconds=60, max_clients=2, clock=fake_clock)
    for client in ("a", "b", "c"):
        limiter.check(client)
    assert len(limiter) == 2


def test_concurrent_checks_never_overshoot(fake_clock):
    limiter = RateLimiter(max_requests=30, window_seconds=60, clock=fake_clock)
    results = []
    lock = threading.Lock()

    def hit():
        status = limiter.check("shared")
        with lock:
            results.append(status.allowed)

    threads = [threading.Thread(target=hit) for _ in range(50)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 30
    assert results.count(False) == 20


@pytest.mark.parametrize(
    "header, expected",
    [
        ("203.0.113.7", "203.0.113.7"),
        (" 203.0.113.7 , 10.0.0.1", "203.0.113.7"),
        ("", "unknown"),
        (None, "unknown"),
        (" , 10.0.0.1", "unknown"),
    ],
)
def test_client_identity(header, expected):
    assert client_identity(header) == expected


def test_window_boundary_belongs_to_current_window(limiter, fake_clock):
    for _ in range(30):
        limiter.check("a")

    fake_clock.advance(60)
    at_reset = limiter.check("a")
    assert not at_reset.allowed
    assert at_reset.reset_in == 0

    fake_clock.advance(0.001)
    assert limiter.check("a").remaining == 29
