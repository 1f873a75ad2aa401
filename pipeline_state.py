"""Shared mutable state for one Guest Scout pipeline.

The rate limiter, the lookup cache and the classification cache are owned by
a PipelineState that the orchestrator constructs and hands to every
component. Lifetime is whatever the owner chooses (a process, a search
session, a single test).
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, Mapping, Optional, TypeVar, Union

from cache import DEFAULT_TTL_SECONDS, TTLCache
from known_figures import KnownFigure, load_known_figures
from models import ClassificationResult
from rate_limiter import RateLimiter, RateLimitExceeded, ServiceLimit

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ProviderCallStats:
    """Outcome counts of external heuristic calls."""

    attempted: int = 0
    failed: int = 0
    rate_limited: int = 0

    @property
    def all_failed(self) -> bool:
        return self.attempted > 0 and self.failed + self.rate_limited >= self.attempted

    def since(self, earlier: "ProviderCallStats") -> "ProviderCallStats":
        """Counts accumulated after the ``earlier`` snapshot."""
        return ProviderCallStats(
            attempted=self.attempted - earlier.attempted,
            failed=self.failed - earlier.failed,
            rate_limited=self.rate_limited - earlier.rate_limited,
        )


@dataclass
class PipelineState:
    """Process- or session-scoped handles shared across concurrent evaluations."""

    rate_limiter: RateLimiter = field(default_factory=RateLimiter)
    lookup_cache: TTLCache = field(default_factory=TTLCache)
    known_figures: Mapping[str, KnownFigure] = field(default_factory=load_known_figures)
    classifications: dict[str, ClassificationResult] = field(default_factory=dict)
    provider_stats: ProviderCallStats = field(default_factory=ProviderCallStats)

    @classmethod
    def create(
        cls,
        cache_ttl: float = DEFAULT_TTL_SECONDS,
        limits: Optional[dict[str, ServiceLimit]] = None,
        known_figures_path: Optional[Path | str] = None,
    ) -> "PipelineState":
        """Build a fresh state with its own limiter, caches and figure table."""
        return cls(
            rate_limiter=RateLimiter(limits=limits),
            lookup_cache=TTLCache(default_ttl=cache_ttl),
            known_figures=load_known_figures(known_figures_path),
        )

    async def cached_lookup(
        self, service: str, key: str, fetch: Callable[[], Awaitable[T]]
    ) -> Union[T, RateLimitExceeded]:
        """
        Memoized, rate-limited external call.

        A fresh cached value is returned without consuming rate budget.
        Otherwise one request is taken from ``service``'s budget; when the
        budget is spent the RateLimitExceeded variant is returned and
        ``fetch`` is not called. Failures of ``fetch`` propagate uncached.
        """
        if key in self.lookup_cache:
            return await self.lookup_cache.get_cached(key, fetch)

        self.provider_stats.attempted += 1
        decision = self.rate_limiter.check_limit(service)
        if isinstance(decision, RateLimitExceeded):
            self.provider_stats.rate_limited += 1
            logger.debug(decision.describe())
            return decision

        try:
            return await self.lookup_cache.get_cached(key, fetch)
        except Exception:
            self.provider_stats.failed += 1
            raise

    def clear_caches(self) -> None:
        """Forget cached lookups and classification decisions."""
        self.lookup_cache.clear()
        self.classifications.clear()
        logger.debug("Pipeline caches cleared")
