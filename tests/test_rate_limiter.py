"""
Tests for the sliding-window rate limiter.
"""
import pytest
from starlette.requests import Request

from eduprep.errors import RateLimitError
from eduprep.utils.rate_limiter import RateLimiter, rate_limiter
from eduprep.utils.security import create_access_token


def make_request(ip="10.0.0.1", token=None):
    headers = []
    if token:
        headers.append((b"authorization", f"Bearer {token}".encode()))
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers, "client": (ip, 5000)})


class TestRateLimiter:
    """Tests for RateLimiter.check_rate_limit."""

    @pytest.mark.asyncio
    async def test_minute_limit(self):
        limiter = RateLimiter(requests_per_minute=2, requests_per_hour=100)
        await limiter.check_rate_limit(make_request())
        await limiter.check_rate_limit(make_request())

        with pytest.raises(RateLimitError) as exc_info:
            await limiter.check_rate_limit(make_request())

        assert exc_info.value.status_code == 429
        assert exc_info.value.retry_after == 60

    @pytest.mark.asyncio
    async def test_hour_limit(self):
        limiter = RateLimiter(requests_per_minute=100, requests_per_hour=1)
        await limiter.check_rate_limit(make_request())

        with pytest.raises(RateLimitError) as exc_info:
            await limiter.check_rate_limit(make_request())

        assert exc_info.value.retry_after == 3600

    @pytest.mark.asyncio
    async def test_clients_counted_separately(self):
        limiter = RateLimiter(requests_per_minute=1, requests_per_hour=100)
        await limiter.check_rate_limit(make_request(ip="10.0.0.1"))
        await limiter.check_rate_limit(make_request(ip="10.0.0.2"))

    @pytest.mark.asyncio
    async def test_authenticated_user_keyed_by_id(self):
        limiter = RateLimiter(requests_per_minute=1, requests_per_hour=100)
        token = create_access_token("user_demo")
        await limiter.check_rate_limit(make_request(ip="10.0.0.1", token=token))

        # Same user from another address shares the budget
        with pytest.raises(RateLimitError):
            await limiter.check_rate_limit(make_request(ip="10.0.0.2", token=token))

    def test_invalid_token_falls_back_to_ip(self):
        limiter = RateLimiter()
        assert limiter._get_client_id(make_request(ip="10.0.0.9", token="garbage")) == "ip:10.0.0.9"


class TestRateLimitMiddleware:
    """Tests for the 429 response produced by the app."""

    def test_returns_429_with_retry_after(self, client, monkeypatch):
        monkeypatch.setattr(rate_limiter, "requests_per_minute", 2)

        assert client.get("/").status_code == 200
        assert client.get("/").status_code == 200
        response = client.get("/")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"
        assert response.json()["code"] == "rate_limit_exceeded"
        assert response.json()["retry_after"] == 60

    def test_health_is_not_limited(self, client, monkeypatch):
        monkeypatch.setattr(rate_limiter, "requests_per_minute", 1)

        for _ in range(3):
            assert client.get("/health").status_code == 200
