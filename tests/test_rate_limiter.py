"""
Per-client token buckets and the periodic bulk reset.
"""

from datetime import timedelta

import pytest
from starlette.requests import Request

from gatekeeper.api.rate_limit import RateLimiter, client_identifier
from gatekeeper.utils.exceptions import RateLimitExceededError
from gatekeeper.workers import LimiterCleanupWorker


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return RateLimiter(3, timedelta(seconds=60), clock=clock)


def _request(headers=None, client=("127.0.0.1", 5000)):
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


class TestRateLimiter:
    def test_burst_then_limited(self, limiter):
        assert [limiter.allow("10.0.0.1") for _ in range(4)] == [True, True, True, False]

    def test_refills_over_time(self, limiter, clock):
        for _ in range(3):
            limiter.allow("10.0.0.1")
        assert not limiter.allow("10.0.0.1")

        clock.advance(20)  # 3 per 60s -> one token every 20s
        assert limiter.allow("10.0.0.1")
        assert not limiter.allow("10.0.0.1")

    def test_clients_are_independent(self, limiter):
        for _ in range(3):
            limiter.allow("10.0.0.1")
        assert not limiter.allow("10.0.0.1")
        assert limiter.allow("10.0.0.2")

    def test_clear_resets_every_client(self, limiter):
        for _ in range(3):
            limiter.allow("10.0.0.1")
        assert limiter.clear() == 1
        assert len(limiter) == 0
        assert limiter.allow("10.0.0.1")

    def test_check_raises_when_exhausted(self, limiter):
        for _ in range(3):
            limiter.check("10.0.0.1")
        with pytest.raises(RateLimitExceededError):
            limiter.check("10.0.0.1")


class TestClientIdentifier:
    def test_uses_first_forwarded_hop(self):
        request = _request({"X-Forwarded-For": "203.0.113.5, 10.0.0.1"})
        assert client_identifier(request) == "203.0.113.5"

    def test_falls_back_to_peer_address(self):
        assert client_identifier(_request()) == "127.0.0.1"

    def test_unknown_without_peer(self):
        assert client_identifier(_request(client=None)) == "unknown"


class TestCleanupWorker:
    def test_run_once_empties_limiter(self, limiter):
        limiter.allow("a")
        limiter.allow("b")
        worker = LimiterCleanupWorker(limiter, timedelta(hours=1))

        assert worker.run_once() == 2
        assert len(limiter) == 0

    def test_start_and_stop(self, limiter):
        worker = LimiterCleanupWorker(limiter, timedelta(hours=1))
        worker.start()
        assert worker.running
        worker.stop()
        assert not worker.running
