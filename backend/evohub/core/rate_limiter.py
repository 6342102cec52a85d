"""In-memory fixed-window rate limiting.

Each named limiter keeps a ``key -> (count, reset_at)`` table. The first
request of a window opens it; requests are rejected once ``count`` reaches
``max_requests`` until the window ends. A background task started on first
use prunes expired entries.

Limits are per process. Behind several replicas each replica counts on its
own, which is acceptable for abuse protection but not for billing.
"""

from __future__ import annotations

import asyncio
import math
import time
from dataclasses import dataclass
from typing import Callable, Optional

from evohub.core.exceptions import NotFoundException, RateLimitExceededException
from evohub.core.logging import logger
from evohub.core.security_logger import log_rate_limit_exceeded
from evohub.schemas.rate_limit import LimiterState, RateLimitEntry, RateLimitResult

SERVICE_LIMITER_NAME = "service-limiter"


@dataclass(frozen=True)
class LimiterPreset:
    """Configuration of one named limiter."""

    name: str
    max_requests: int
    window_seconds: float


def default_presets(is_development: bool = False) -> list[LimiterPreset]:
    """Limiters used by the API routes. Development relaxes ``api`` and ``contactForm``."""
    return [
        LimiterPreset("standardApi", 50, 60),
        LimiterPreset("auth", 10, 60),
        LimiterPreset("sensitiveAction", 5, 60 * 60),
        LimiterPreset("api", 1000 if is_development else 30, 60),
        LimiterPreset("aiJobs", 10, 60),
        LimiterPreset("aiGenerate", 15, 60),
        LimiterPreset("voiceTranscribe", 15, 60),
        LimiterPreset("contactForm", 50 if is_development else 5, 60),
        LimiterPreset("stripeWebhook", 100, 60),
    ]


@dataclass
class _Window:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """A single named limiter."""

    def __init__(
        self,
        name: str,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.name = name
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = asyncio.Lock()

    async def check(
        self,
        key: str,
        *,
        ip_address: Optional[str] = None,
        target_resource: Optional[str] = None,
    ) -> RateLimitResult:
        """Count one request for *key*.

        Raises:
            RateLimitExceededException: When the window's budget is used up.
        """
        async with self._lock:
            now = self._clock()
            window = self._windows.get(key)
            if window is None or window.reset_at <= now:
                window = _Window(count=1, reset_at=now + self.window_seconds)
                self._windows[key] = window
            elif window.count >= self.max_requests:
                retry_after = math.ceil(window.reset_at - now)
                log_rate_limit_exceeded(
                    ip_address,
                    target_resource or key,
                    {
                        "limiter_name": self.name,
                        "max_requests": self.max_requests,
                        "window_seconds": self.window_seconds,
                        "reset_at": int(window.reset_at * 1000),
                    },
                )
                raise RateLimitExceededException(
                    retry_after=retry_after,
                    limit=self.max_requests,
                    remaining=0,
                    message="Rate limit exceeded",
                )
            else:
                window.count += 1

            return RateLimitResult(
                allowed=True,
                retry_after=max(0.0, window.reset_at - now),
                limit=self.max_requests,
                remaining=max(0, self.max_requests - window.count),
            )

    def reset(self, key: str) -> bool:
        """Forget *key*. Returns True if it was tracked."""
        return self._windows.pop(key, None) is not None

    def prune(self) -> int:
        """Drop windows that have ended and return how many were removed."""
        now = self._clock()
        expired = [k for k, w in self._windows.items() if w.reset_at <= now]
        for key in expired:
            del self._windows[key]
        return len(expired)

    def state(self) -> LimiterState:
        return LimiterState(
            name=self.name,
            max_requests=self.max_requests,
            window_seconds=self.window_seconds,
            entries=[
                RateLimitEntry(key=k, count=w.count, reset_at=int(w.reset_at * 1000))
                for k, w in self._windows.items()
            ],
        )


class RateLimiterRegistry:
    """Holds every named limiter of the process and prunes them periodically."""

    def __init__(
        self,
        presets: Optional[list[LimiterPreset]] = None,
        *,
        enabled: bool = True,
        cleanup_interval_seconds: float = 60.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the registry.

        Args:
            presets: Limiters to create up front.
            enabled: When False, ``check`` always allows and nothing is counted.
            cleanup_interval_seconds: Period of the background prune task.
            clock: Epoch-seconds time source.
        """
        self.enabled = enabled
        self._clock = clock
        self._cleanup_interval = cleanup_interval_seconds
        self._limiters: dict[str, FixedWindowRateLimiter] = {}
        self._service_limiters: dict[tuple[int, float], FixedWindowRateLimiter] = {}
        self._cleanup_task: Optional[asyncio.Task] = None
        for preset in presets or []:
            self.create(preset.name, preset.max_requests, preset.window_seconds)

    def create(
        self, name: str, max_requests: int, window_seconds: float
    ) -> FixedWindowRateLimiter:
        """Create or reconfigure a limiter. Existing windows are kept."""
        existing = self._limiters.get(name)
        if existing is not None:
            existing.max_requests = max_requests
            existing.window_seconds = window_seconds
            return existing
        limiter = FixedWindowRateLimiter(name, max_requests, window_seconds, clock=self._clock)
        self._limiters[name] = limiter
        return limiter

    def get(self, name: str) -> FixedWindowRateLimiter:
        limiter = self._limiters.get(name)
        if limiter is None:
            raise NotFoundException(f"Unknown rate limiter '{name}'")
        return limiter

    async def check(
        self,
        name: str,
        key: str,
        *,
        ip_address: Optional[str] = None,
        target_resource: Optional[str] = None,
    ) -> RateLimitResult:
        """Count one request against limiter *name*."""
        limiter = self.get(name)
        if not self.enabled:
            return RateLimitResult(
                allowed=True, retry_after=0.0, limit=limiter.max_requests, remaining=9999
            )
        self._ensure_cleanup_task()
        return await limiter.check(key, ip_address=ip_address, target_resource=target_resource)

    async def rate_limit(self, key: str, max_requests: int, window_seconds: float) -> None:
        """Service-level limit on an arbitrary key, e.g. ``comment:{user_id}``.

        Raises:
            RateLimitExceededException: With a message naming the retry delay.
        """
        if not self.enabled:
            return
        budget = (max_requests, window_seconds)
        limiter = self._service_limiters.get(budget)
        if limiter is None:
            limiter = FixedWindowRateLimiter(
                SERVICE_LIMITER_NAME, max_requests, window_seconds, clock=self._clock
            )
            self._service_limiters[budget] = limiter
        self._ensure_cleanup_task()
        try:
            await limiter.check(key, target_resource=key)
        except RateLimitExceededException as e:
            raise RateLimitExceededException(
                retry_after=e.retry_after,
                limit=e.limit,
                remaining=0,
                message=f"Rate limit exceeded. Please retry after {int(e.retry_after)} seconds.",
            ) from e

    def get_state(self, name: Optional[str] = None) -> list[LimiterState]:
        """Snapshot all limiters, or just *name*."""
        if name is not None:
            return [self.get(name).state()]
        return [limiter.state() for limiter in self._limiters.values()]

    def reset_key(self, name: str, key: str) -> bool:
        """Forget *key* in limiter *name*. Returns False if either is unknown."""
        limiter = self._limiters.get(name)
        if limiter is None:
            return False
        return limiter.reset(key)

    def prune_expired(self) -> int:
        limiters = [*self._limiters.values(), *self._service_limiters.values()]
        return sum(limiter.prune() for limiter in limiters)

    # ------------------------------------------------------------------
    # Background cleanup
    # ------------------------------------------------------------------

    def _ensure_cleanup_task(self) -> None:
        """Lazily start the periodic prune task. A non-positive interval disables it."""
        if self._cleanup_interval <= 0:
            return
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return
        self._cleanup_task = asyncio.create_task(self._periodic_cleanup_loop())
        logger.info(
            "RateLimiterRegistry cleanup started (interval=%ss)", self._cleanup_interval
        )

    async def _periodic_cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self._cleanup_interval)
            removed = self.prune_expired()
            if removed:
                logger.debug(f"[RateLimiter] Pruned {removed} expired windows")

    async def close(self) -> None:
        """Stop the cleanup task."""
        if self._cleanup_task is None:
            return
        self._cleanup_task.cancel()
        try:
            await self._cleanup_task
        except asyncio.CancelledError:
            pass
        self._cleanup_task = None
