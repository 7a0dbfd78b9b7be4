"""
Per-client rate limiter for the API, using a token bucket algorithm.

Each client IP owns a bucket of ``max_requests`` tokens refilled at
``max_requests / window_seconds`` tokens per second, so the steady state is
``max_requests`` per window with bursts up to the full bucket. Thread-safe
via a single ``threading.Lock``: sync route handlers run in a threadpool.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from slideforge_core.config import RateLimitConfig

# Full buckets are dropped once every this many calls
_IDLE_SWEEP_EVERY = 1000


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass
class ClientBucket:
    """Internal per-client token bucket state."""
    tokens: float
    last_refill: float = field(default_factory=time.monotonic)


@dataclass
class RateLimitResult:
    """Outcome of a rate-limit check."""
    allowed: bool
    remaining: int
    retry_after: int = 0     # seconds


# ---------------------------------------------------------------------------
# Rate limiter
# ---------------------------------------------------------------------------

class RateLimiter:
    """Token-bucket rate limiter keyed by client id."""

    def __init__(self, config: Optional[RateLimitConfig] = None) -> None:
        self._config = config or RateLimitConfig()
        self._buckets: Dict[str, ClientBucket] = {}
        self._lock = threading.Lock()
        self._calls = 0

    @property
    def rate(self) -> float:
        """Tokens per second."""
        return self._config.max_requests / max(self._config.window_seconds, 1)

    def _refill(self, bucket: ClientBucket, now: float) -> None:
        elapsed = now - bucket.last_refill
        if elapsed > 0:
            bucket.tokens = min(float(self._config.max_requests), bucket.tokens + elapsed * self.rate)
            bucket.last_refill = now

    def _sweep(self, now: float) -> None:
        """Drop buckets that have refilled completely. Caller holds the lock."""
        for key in list(self._buckets):
            bucket = self._buckets[key]
            self._refill(bucket, now)
            if bucket.tokens >= self._config.max_requests:
                del self._buckets[key]

    def hit(self, client_id: str) -> RateLimitResult:
        """Consume one token for ``client_id`` if available."""
        if not self._config.enabled:
            return RateLimitResult(allowed=True, remaining=self._config.max_requests)

        now = time.monotonic()
        with self._lock:
            self._calls += 1
            if self._calls % _IDLE_SWEEP_EVERY == 0:
                self._sweep(now)

            bucket = self._buckets.get(client_id)
            if bucket is None:
                bucket = self._buckets[client_id] = ClientBucket(
                    tokens=float(self._config.max_requests), last_refill=now
                )
            self._refill(bucket, now)

            if bucket.tokens >= 1.0:
                bucket.tokens -= 1.0
                return RateLimitResult(allowed=True, remaining=int(bucket.tokens))

            deficit = 1.0 - bucket.tokens
            retry = math.ceil(deficit / self.rate) if self.rate > 0 else self._config.window_seconds
            return RateLimitResult(allowed=False, remaining=0, retry_after=max(retry, 1))

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

def install_rate_limit(app: FastAPI, limiter: RateLimiter, prefix: str = "/api/") -> None:
    """Apply ``limiter`` to every request whose path starts with ``prefix``."""

    @app.middleware("http")
    async def rate_limit_middleware(request: Request, call_next):
        if not request.url.path.startswith(prefix):
            return await call_next(request)

        client_id = request.client.host if request.client else "unknown"
        result = limiter.hit(client_id)
        if not result.allowed:
            return JSONResponse(
                status_code=429,
                content={
                    "error": "Too many requests",
                    "details": "Too many requests from this IP, please try again later.",
                    "suggestion": f"Wait {result.retry_after} seconds before trying again.",
                },
                headers={"Retry-After": str(result.retry_after)},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)
        return response
