"""Unit tests for rate limiting infrastructure."""

import asyncio

import pytest
from fastapi import HTTPException

from src.catalog.api.http.middleware.limiter import (
    DefaultLocalRateLimiter,
    close_rate_limiter,
    configure_rate_limiter,
    get_rate_limiter,
    rate_limit,
)
from src.catalog.runtime.config.config_data import ConfigData
from src.catalog.runtime.context import with_context


@pytest.fixture
def enabled_limiter_config():
    config = ConfigData()
    config.rate_limiter.enabled = True
    config.rate_limiter.requests = 2
    config.rate_limiter.window_ms = 10_000
    with with_context(config):
        yield


class TestDefaultLocalRateLimiter:
    """Test the in-memory rate limiter implementation."""

    @pytest.mark.asyncio
    async def test_allows_requests_within_limit(self, request_factory, response_factory):
        limiter = DefaultLocalRateLimiter(2, 10_000, per_endpoint=True, per_method=True)
        request = request_factory({})

        await limiter(request, response_factory())
        await limiter(request, response_factory())

    @pytest.mark.asyncio
    async def test_blocks_requests_when_limit_exceeded(
        self, request_factory, response_factory
    ):
        limiter = DefaultLocalRateLimiter(2, 5_000, per_endpoint=True, per_method=True)
        request = request_factory({})

        for _ in range(2):
            await limiter(request, response_factory())

        with pytest.raises(HTTPException) as exc_info:
            await limiter(request, response_factory())

        assert exc_info.value.status_code == 429
        assert "too many" in exc_info.value.detail.lower()
        assert "Retry-After" in exc_info.value.headers

    @pytest.mark.asyncio
    async def test_rate_window_resets(self, request_factory, response_factory):
        limiter = DefaultLocalRateLimiter(1, 1_000, per_endpoint=False, per_method=False)
        request = request_factory({})

        await limiter(request, response_factory())
        await asyncio.sleep(1.1)
        await limiter(request, response_factory())

    @pytest.mark.asyncio
    async def test_clients_are_tracked_separately(self, request_factory, response_factory):
        limiter = DefaultLocalRateLimiter(1, 10_000, per_endpoint=False, per_method=False)

        await limiter(request_factory({}, client=("10.0.0.1", 1)), response_factory())
        await limiter(request_factory({}, client=("10.0.0.2", 1)), response_factory())

    @pytest.mark.asyncio
    async def test_per_method_keys(self, request_factory, response_factory):
        limiter = DefaultLocalRateLimiter(1, 10_000, per_endpoint=False, per_method=True)

        await limiter(request_factory({}, method="GET"), response_factory())
        await limiter(request_factory({}, method="PUT"), response_factory())
        with pytest.raises(HTTPException):
            await limiter(request_factory({}, method="GET"), response_factory())

    def test_key_prefers_authenticated_user(self, request_factory):
        limiter = DefaultLocalRateLimiter(1, 1_000, per_endpoint=True, per_method=True)
        request = request_factory({}, path="/books/B1")
        request.state.uid = "reader-1"

        key = limiter._make_key(request, per_endpoint=True, per_method=True)

        assert key == "user:reader-1:GET:/books/B1"

    @pytest.mark.asyncio
    async def test_cleanup_clears_hits(self, request_factory, response_factory):
        limiter = DefaultLocalRateLimiter(1, 10_000, per_endpoint=False, per_method=False)
        request = request_factory({})
        await limiter(request, response_factory())

        await limiter.cleanup()

        await limiter(request, response_factory())


class TestRateLimitDependency:
    @pytest.fixture(autouse=True)
    def reset_limiter(self):
        configure_rate_limiter()
        yield
        asyncio.run(close_rate_limiter())

    @pytest.mark.asyncio
    async def test_disabled_limiter_never_blocks(self, request_factory, response_factory):
        config = ConfigData()
        config.rate_limiter.enabled = False
        config.rate_limiter.requests = 1

        guard = rate_limit()
        with with_context(config):
            for _ in range(5):
                await guard(request_factory({}), response_factory())

    @pytest.mark.asyncio
    async def test_enabled_limiter_blocks(
        self, enabled_limiter_config, request_factory, response_factory
    ):
        guard = rate_limit()
        request = request_factory({}, client=("10.1.1.1", 1))

        await guard(request, response_factory())
        await guard(request, response_factory())
        with pytest.raises(HTTPException) as exc_info:
            await guard(request, response_factory())
        assert exc_info.value.status_code == 429

    def test_limiters_cached_per_configuration(self, enabled_limiter_config):
        assert get_rate_limiter() is get_rate_limiter()
        assert get_rate_limiter(requests=5) is not get_rate_limiter()

    def test_custom_factory(self, enabled_limiter_config):
        calls = []

        def factory(times, milliseconds, per_endpoint, per_method):
            calls.append((times, milliseconds))

            async def _no_limit(request, response):
                return None

            return _no_limit

        configure_rate_limiter(limiter_factory=factory)
        get_rate_limiter()

        assert calls == [(2, 10_000)]

    def test_unconfigured_limiter_raises(self, enabled_limiter_config):
        asyncio.run(close_rate_limiter())
        with pytest.raises(RuntimeError, match="not configured"):
            get_rate_limiter(requests=99)
