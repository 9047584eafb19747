"""Unit tests for per-client rate limiting."""

from ntando.config import Settings
from ntando.core.ratelimit import ClientRateLimiter


class TestClientRateLimiter:
    """Tests for the fixed-window limiter."""

    def test_allows_up_to_limit(self):
        limiter = ClientRateLimiter(requests=3, window_seconds=60)

        assert [limiter.hit("10.0.0.1") for _ in range(3)] == [None, None, None]

        retry_after = limiter.hit("10.0.0.1")
        assert retry_after is not None
        assert 1 <= retry_after <= 60

    def test_clients_are_counted_separately(self):
        limiter = ClientRateLimiter(requests=1, window_seconds=60)

        assert limiter.hit("10.0.0.1") is None
        assert limiter.hit("10.0.0.2") is None
        assert limiter.hit("10.0.0.1") is not None

    def test_from_settings(self):
        limiter = ClientRateLimiter.from_settings(
            Settings(rate_limit_requests=5, rate_limit_window_seconds=30)
        )

        assert limiter is not None
        assert limiter.item.amount == 5
        assert limiter.item.get_expiry() == 30

    def test_disabled(self):
        assert ClientRateLimiter.from_settings(Settings(rate_limit_enabled=False)) is None
