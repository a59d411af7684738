"""Per-client request quotas for the HTTP layer.

Limiters are built by a pluggable factory and cached per
``(requests, window, per_endpoint, per_method)`` tuple, so every route that
asks for the same quota shares one counter store.
"""

from __future__ import annotations

import asyncio
import time
from collections import defaultdict, deque
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import HTTPException, Request, Response
from loguru import logger

from src.catalog.runtime.context import get_config

RateLimiterType = Callable[[Request, Response], Awaitable[Any]]
RateLimiterFactory = Callable[[int, int, bool, bool], RateLimiterType]


class DefaultLocalRateLimiter:
    """Sliding-window limiter kept in process memory.

    Callers are identified by their authenticated uid when one is known,
    otherwise by client address. The key can be narrowed further to the
    route template and the HTTP method.
    """

    SWEEP_INTERVAL_SECONDS = 60.0

    def __init__(
        self, times: int, milliseconds: int, per_endpoint: bool, per_method: bool
    ) -> None:
        self.times = times
        self.window = max(1, milliseconds // 1000)
        self.per_endpoint = per_endpoint
        self.per_method = per_method
        self._hits: defaultdict[str, deque[float]] = defaultdict(deque)
        self._lock = asyncio.Lock()
        self._next_sweep = time.monotonic() + self.SWEEP_INTERVAL_SECONDS

    async def __call__(self, request: Request, response: Response) -> None:
        key = self._make_key(
            request, per_endpoint=self.per_endpoint, per_method=self.per_method
        )
        retry_after = await self._record_hit(key)
        if retry_after is not None:
            logger.bind(key=key, retry_after=retry_after).warning("rate_limit.exceeded")
            raise HTTPException(
                status_code=429,
                detail="Too Many Requests",
                headers={"Retry-After": str(retry_after)},
            )

    def _make_key(
        self, request: Request, *, per_endpoint: bool, per_method: bool
    ) -> str:
        uid = getattr(request.state, "uid", None)
        if uid is not None:
            parts = [f"user:{uid}"]
        else:
            parts = [f"ip:{request.client.host if request.client else 'anonymous'}"]

        if per_method:
            parts.append(request.method)
        if per_endpoint:
            template = getattr(request.scope.get("route"), "path", None)
            parts.append((template or request.url.path).rstrip("/"))
        return ":".join(p for p in parts if p)

    async def _record_hit(self, key: str) -> int | None:
        """Count a hit for ``key``; returns seconds to wait when over quota."""
        now = time.monotonic()
        async with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)
            hits = self._hits[key]
            while hits and hits[0] <= now - self.window:
                hits.popleft()
            if len(hits) >= self.times:
                return max(0, int(self.window - (now - hits[0])))
            hits.append(now)
            return None

    def _sweep(self, now: float) -> None:
        self._next_sweep = now + self.SWEEP_INTERVAL_SECONDS
        stale = [
            key
            for key, hits in self._hits.items()
            if not hits or hits[-1] <= now - self.window
        ]
        for key in stale:
            del self._hits[key]

    async def cleanup(self) -> None:
        async with self._lock:
            tracked = len(self._hits)
            self._hits.clear()
        logger.debug("Cleared local rate limiter with {} tracked keys", tracked)


class _LimiterRegistry:
    def __init__(self) -> None:
        self.factory: RateLimiterFactory | None = None
        self.cache: dict[tuple[int, int, bool, bool], RateLimiterType] = {}

    def reset(self, factory: RateLimiterFactory | None) -> list[RateLimiterType]:
        released = list(self.cache.values())
        self.cache.clear()
        self.factory = factory
        return released

    def get(
        self, requests: int, window_ms: int, per_endpoint: bool, per_method: bool
    ) -> RateLimiterType:
        key = (requests, window_ms, per_endpoint, per_method)
        limiter = self.cache.get(key)
        if limiter is None:
            if self.factory is None:
                raise RuntimeError("Rate limiter not configured")
            limiter = self.factory(*key)
            self.cache[key] = limiter
        return limiter


_registry = _LimiterRegistry()


def configure_rate_limiter(limiter_factory: RateLimiterFactory | None = None) -> None:
    """Select the limiter implementation; defaults to the in-memory limiter."""
    _registry.reset(limiter_factory or DefaultLocalRateLimiter)
    if limiter_factory is None:
        logger.info("Using local in-memory rate limiter")


def get_rate_limiter(
    requests: int | None = None, window_ms: int | None = None
) -> RateLimiterType:
    cfg = get_config().rate_limiter
    return _registry.get(
        cfg.requests if requests is None else requests,
        cfg.window_ms if window_ms is None else window_ms,
        cfg.per_endpoint,
        cfg.per_method,
    )


def rate_limit(
    requests: int | None = None, window_ms: int | None = None
) -> RateLimiterType:
    """Return a dependency enforcing the configured (or given) quota."""

    async def dependency(request: Request, response: Response) -> None:
        if not get_config().rate_limiter.enabled:
            return
        limiter = get_rate_limiter(requests, window_ms)
        await limiter(request, response)

    return dependency


async def close_rate_limiter() -> None:
    released = _registry.reset(None)
    for limiter in released:
        if isinstance(limiter, DefaultLocalRateLimiter):
            await limiter.cleanup()
    logger.info("Rate limiter closed ({} limiters released)", len(released))
