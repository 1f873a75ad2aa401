#!/usr/bin/env python3

"""
Fixed-Window Rate Limiting for external services.

Each service key owns a request budget per time window. Callers ask for
permission before making an external call and receive either ``Allowed`` or
``RateLimitExceeded`` with the remaining wait; nothing is raised, so the
back-off path has to be handled where the call is made.

The check-and-update runs without any suspension point, so concurrent
asyncio tasks sharing one limiter cannot interleave between reading and
writing a counter.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)

MINUTE_MS = 60_000
DAY_MS = 86_400_000


@dataclass(frozen=True)
class ServiceLimit:
    """Request budget for one service key."""

    max_requests: int
    window_ms: int


DEFAULT_LIMITS: dict[str, ServiceLimit] = {
    "google": ServiceLimit(max_requests=100, window_ms=DAY_MS),
    "wikipedia": ServiceLimit(max_requests=200, window_ms=MINUTE_MS),
    "reddit": ServiceLimit(max_requests=60, window_ms=MINUTE_MS),
    "medium": ServiceLimit(max_requests=30, window_ms=MINUTE_MS),
    "substack": ServiceLimit(max_requests=30, window_ms=MINUTE_MS),
}


@dataclass
class RateLimitState:
    """Mutable window state for a specific service key."""

    window_start_ms: int
    count_in_window: int = 0


@dataclass(frozen=True)
class Allowed:
    """The call may proceed."""

    service: str


@dataclass(frozen=True)
class RateLimitExceeded:
    """The local budget for ``service`` is spent for the current window."""

    service: str
    retry_after_ms: int

    @property
    def retry_after_seconds(self) -> int:
        return -(-self.retry_after_ms // 1000)

    def describe(self) -> str:
        return (
            f"Rate limit exceeded for {self.service}. "
            f"Try again in {self.retry_after_seconds} seconds."
        )


RateLimitResult = Union[Allowed, RateLimitExceeded]


@dataclass
class RateLimiterMetrics:
    """Counters for monitoring rate limiter decisions."""

    allowed: int = 0
    rejected: int = 0
    window_resets: int = 0


def _monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class RateLimiter:
    """
    Per-service fixed-window request gate.

    Features:
    - Configurable (max_requests, window_ms) per service key
    - Unknown service keys are never limited
    - Result variants instead of exceptions
    """

    def __init__(
        self,
        limits: Optional[dict[str, ServiceLimit]] = None,
        clock: Callable[[], int] = _monotonic_ms,
    ):
        self._limits: dict[str, ServiceLimit] = dict(
            DEFAULT_LIMITS if limits is None else limits
        )
        for service, limit in self._limits.items():
            if limit.max_requests < 1:
                raise ValueError(
                    f"max_requests for '{service}' must be >= 1, got {limit.max_requests}"
                )
            if limit.window_ms <= 0:
                raise ValueError(
                    f"window_ms for '{service}' must be > 0, got {limit.window_ms}"
                )
        self._clock = clock
        self._states: dict[str, RateLimitState] = {}
        self._metrics: dict[str, RateLimiterMetrics] = {}
        self._lock = threading.Lock()

    def configure(self, service: str, limit: ServiceLimit) -> None:
        """Set or replace the budget for a service key."""
        with self._lock:
            self._limits[service] = limit
            self._states.pop(service, None)

    def check_limit(self, service: str) -> RateLimitResult:
        """Consume one request from ``service``'s budget if available."""
        with self._lock:
            limit = self._limits.get(service)
            if limit is None:
                return Allowed(service)

            now = self._clock()
            metrics = self._metrics.setdefault(service, RateLimiterMetrics())
            state = self._states.get(service)

            if state is None or now - state.window_start_ms > limit.window_ms:
                self._states[service] = RateLimitState(
                    window_start_ms=now, count_in_window=1
                )
                metrics.allowed += 1
                if state is not None:
                    metrics.window_resets += 1
                return Allowed(service)

            state.count_in_window += 1
            if state.count_in_window > limit.max_requests:
                metrics.rejected += 1
                retry_after = limit.window_ms - (now - state.window_start_ms)
                logger.debug(
                    f"Rate limit hit for '{service}': "
                    f"{state.count_in_window - 1}/{limit.max_requests}, "
                    f"retry in {retry_after}ms"
                )
                return RateLimitExceeded(service=service, retry_after_ms=retry_after)

            metrics.allowed += 1
            return Allowed(service)

    def get_state(self, service: str) -> Optional[RateLimitState]:
        """Return a copy of the current window state for a service."""
        with self._lock:
            state = self._states.get(service)
            if state is None:
                return None
            return RateLimitState(state.window_start_ms, state.count_in_window)

    def get_metrics(self, service: str) -> RateLimiterMetrics:
        """Return decision counters for a service."""
        with self._lock:
            metrics = self._metrics.get(service, RateLimiterMetrics())
            return RateLimiterMetrics(
                allowed=metrics.allowed,
                rejected=metrics.rejected,
                window_resets=metrics.window_resets,
            )

    def reset(self, service: Optional[str] = None) -> None:
        """Reset window state for a service or all services."""
        with self._lock:
            if service:
                self._states.pop(service, None)
                self._metrics.pop(service, None)
            else:
                self._states.clear()
                self._metrics.clear()
