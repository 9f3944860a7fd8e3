"""Tests for the token-bucket rate limiter and its middleware integration."""

from reqforge.middleware.request_context import RateLimiter


def _limiter(per_minute=60):
    return RateLimiter(lambda: per_minute, clock=lambda: 0.0)


class TestRateLimiter:

    def test_allows_within_limit(self):
        allowed, retry = _limiter().allow("client-a", now=0.0)
        assert allowed is True
        assert retry == 0.0

    def test_denies_after_exhaustion(self):
        limiter = _limiter()
        for _ in range(60):
            limiter.allow("client-a", now=0.0)
        allowed, retry = limiter.allow("client-a", now=0.0)
        assert allowed is False
        assert retry > 0

    def test_refills_over_time(self):
        limiter = _limiter()
        for _ in range(60):
            limiter.allow("client-a", now=0.0)
        allowed, _ = limiter.allow("client-a", now=2.0)
        assert allowed is True

    def test_separate_keys_independent(self):
        limiter = _limiter()
        for _ in range(60):
            limiter.allow("client-a", now=0.0)
        allowed, _ = limiter.allow("client-b", now=0.0)
        assert allowed is True

    def test_zero_limit_always_allows(self):
        assert _limiter(per_minute=0).allow("any", now=0.0) == (True, 0.0)


class TestMiddleware:

    def test_request_id_is_echoed(self, client):
        resp = client.get("/api/projects", headers={"X-Request-ID": "abc123"})
        assert resp.headers["X-Request-ID"] == "abc123"
        assert resp.headers["X-Response-Time"].endswith("ms")

    def test_request_id_is_generated(self, client):
        resp = client.get("/api/projects")
        assert len(resp.headers["X-Request-ID"]) == 16
