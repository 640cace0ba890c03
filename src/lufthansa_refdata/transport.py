from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Sequence

import anyio
import httpx

from .errors import LufthansaCancelledError, LufthansaTransportError

log = logging.getLogger("lufthansa_refdata.transport")


class TokenBucketLimiter:
    """
    Token bucket allowing `limit` requests per `period` seconds, with a burst
    of `limit`.

    wait() reserves a token before sleeping, so concurrent waiters queue in
    arrival order. A cancelled wait gives its token back. A wait that can't
    finish before the caller's effective deadline fails immediately instead of
    sleeping into the timeout.
    """

    def __init__(
        self,
        *,
        limit: int,
        period: float,
        name: str = "",
        clock: Callable[[], float] = time.monotonic,
    ):
        if limit <= 0:
            raise ValueError("limit must be positive.")
        if period <= 0:
            raise ValueError("period must be positive.")
        self.limit = limit
        self.period = period
        self.name = name or f"{limit}/{period:g}s"
        self.rate = limit / period  # tokens per second
        self._clock = clock
        self._tokens = float(limit)
        self._last = clock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(now - self._last, 0.0)
        self._tokens = min(float(self.limit), self._tokens + elapsed * self.rate)
        self._last = now

    def reserve(self) -> float:
        """Take a token; returns the seconds to wait before using it."""
        self._refill()
        self._tokens -= 1.0
        if self._tokens >= 0:
            return 0.0
        return -self._tokens / self.rate

    def refund(self) -> None:
        self._tokens = min(float(self.limit), self._tokens + 1.0)

    @property
    def available(self) -> float:
        self._refill()
        return self._tokens

    async def wait(self) -> None:
        delay = self.reserve()
        if delay <= 0:
            return

        deadline = anyio.current_effective_deadline()
        if anyio.current_time() + delay > deadline:
            self.refund()
            raise LufthansaCancelledError(
                f"rate limiter {self.name}: wait of {delay:.2f}s exceeds deadline"
            )

        log.debug(
            "rate_limit_wait",
            extra={"limiter": self.name, "duration_ms": int(delay * 1000)},
        )
        try:
            await anyio.sleep(delay)
        except anyio.get_cancelled_exc_class():
            self.refund()
            raise


class RateLimitedTransport:
    """
    Sends requests through an httpx.AsyncClient once every limiter has granted.
    Limiters are waited on in the order given. No retries happen here.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        limiters: Optional[Sequence[TokenBucketLimiter]] = None,
    ):
        self.http = http
        self.limiters = tuple(limiters or ())

    async def wait(self) -> None:
        """All limiters grant, or none keeps a token."""
        granted: list[TokenBucketLimiter] = []
        try:
            for limiter in self.limiters:
                await limiter.wait()
                granted.append(limiter)
        except BaseException:
            for limiter in granted:
                limiter.refund()
            raise

    async def send(self, request: httpx.Request) -> httpx.Response:
        await self.wait()
        try:
            return await self.http.send(request)
        except httpx.TimeoutException as exc:
            raise LufthansaTransportError(
                f"Timeout calling {request.method} {request.url}: {exc}"
            ) from exc
        except httpx.HTTPError as exc:
            raise LufthansaTransportError(
                f"Network error calling {request.method} {request.url}: {exc}"
            ) from exc


__all__ = ["TokenBucketLimiter", "RateLimitedTransport"]
