"""
Celebrity / Influencer Classifier

Decides whether a named candidate is too high profile to be a useful podcast
guest suggestion.

Evaluation per name:
    cache check -> known-figures table -> [reference | social | news] -> decision

The three heuristic checks run concurrently under one wall-clock timeout.
Each check absorbs its own failures (provider error, rate limit, timeout)
and reports "no evidence", so one broken provider never hides the others.

Decision rule:
- A social-follower hit alone is sufficient to exclude
- Otherwise BOTH the reference check and the news check must indicate a
  high-profile person; either one alone is common for ordinary professionals
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional

from async_utils import BatchProcessor, ProgressCallback
from cache import generate_reference_cache_key, generate_search_cache_key
from celebrity_constants import (
    ACHIEVEMENT_KEYWORDS,
    BUSINESS_INFLUENCER_KEYWORDS,
    CELEBRITY_KEYWORDS,
    DEFAULT_SOCIAL_PLATFORM,
    HEADLINE_KEYWORDS,
    QUALITY_NEWS_DOMAINS,
    SOCIAL_PLATFORM_DOMAINS,
)
from config import Config
from models import Candidate, ClassificationResult, EvidenceSource, ExcludedCandidate
from pipeline_state import PipelineState
from rate_limiter import RateLimitExceeded
from search_providers import (
    ReferenceArticle,
    ReferenceProvider,
    SearchResponse,
    WebSearchProvider,
)
from text_utils import (
    contains_any,
    extract_follower_count,
    find_keywords,
    normalize_lookup_name,
    normalize_name,
)
from url_utils import domain_matches

logger = logging.getLogger(__name__)

REFERENCE_SERVICE = "wikipedia"
SEARCH_SERVICE = "google"


# =============================================================================
# Settings
# =============================================================================


@dataclass(frozen=True)
class CelebrityCheckSettings:
    """Tunable thresholds for the heuristic checks."""

    wordcount_threshold: int = 2000
    business_follower_threshold: int = 500_000
    general_follower_threshold: int = 2_000_000
    news_results_threshold: int = 1000
    news_quality_source_min: int = 3
    check_timeout: float = 10.0
    batch_size: int = 5
    batch_delay: float = 1.0

    @classmethod
    def from_config(cls) -> "CelebrityCheckSettings":
        return cls(
            wordcount_threshold=Config.REFERENCE_WORDCOUNT_THRESHOLD,
            business_follower_threshold=Config.BUSINESS_FOLLOWER_THRESHOLD,
            general_follower_threshold=Config.GENERAL_FOLLOWER_THRESHOLD,
            news_results_threshold=Config.NEWS_RESULTS_THRESHOLD,
            news_quality_source_min=Config.NEWS_QUALITY_SOURCE_MIN,
            check_timeout=Config.CELEBRITY_CHECK_TIMEOUT_SECONDS,
            batch_size=Config.CELEBRITY_BATCH_SIZE,
            batch_delay=Config.BATCH_DELAY_SECONDS,
        )


# =============================================================================
# Check Signals
# =============================================================================


@dataclass(frozen=True)
class ReferenceSignal:
    is_high_profile: bool = False
    title: str = ""
    wordcount: int = 0
    role_keywords: tuple[str, ...] = ()
    achievement_keywords: tuple[str, ...] = ()


@dataclass(frozen=True)
class SocialSignal:
    is_influencer: bool = False
    follower_count: Optional[int] = None
    platform: Optional[str] = None
    threshold: Optional[int] = None


@dataclass(frozen=True)
class NewsSignal:
    is_high_profile: bool = False
    total_results: int = 0
    quality_source_count: int = 0
    major_headline: Optional[str] = None


def evaluate_reference(
    article: Optional[ReferenceArticle], settings: CelebrityCheckSettings
) -> ReferenceSignal:
    """Long article with a role keyword, or any achievement keyword."""
    if article is None:
        return ReferenceSignal()

    roles = tuple(find_keywords(article.snippet, CELEBRITY_KEYWORDS))
    achievements = tuple(find_keywords(article.snippet, ACHIEVEMENT_KEYWORDS))
    long_article = article.wordcount > settings.wordcount_threshold
    return ReferenceSignal(
        is_high_profile=bool((long_article and roles) or achievements),
        title=article.title,
        wordcount=article.wordcount,
        role_keywords=roles,
        achievement_keywords=achievements,
    )


def platform_for_link(link: str) -> str:
    """Display name of the social platform hosting ``link``."""
    for domain, platform in SOCIAL_PLATFORM_DOMAINS.items():
        if domain_matches(link, (domain,)):
            return platform
    return DEFAULT_SOCIAL_PLATFORM


def evaluate_social(
    response: SearchResponse, settings: CelebrityCheckSettings
) -> SocialSignal:
    """Flag the first snippet whose audience count exceeds its threshold.

    Snippets mentioning a business-influencer role use the lower business
    threshold. Unparseable counts are skipped.
    """
    largest: Optional[int] = None
    for item in response.items:
        count = extract_follower_count(item.snippet)
        if count is None:
            continue
        largest = count if largest is None else max(largest, count)

        if contains_any(item.snippet, BUSINESS_INFLUENCER_KEYWORDS):
            threshold = settings.business_follower_threshold
        else:
            threshold = settings.general_follower_threshold

        if count > threshold:
            return SocialSignal(
                is_influencer=True,
                follower_count=count,
                platform=platform_for_link(item.link),
                threshold=threshold,
            )

    return SocialSignal(follower_count=largest)


def evaluate_news(
    response: SearchResponse, settings: CelebrityCheckSettings
) -> NewsSignal:
    """High result volume, several quality outlets, or one major headline."""
    quality_items = [
        item for item in response.items if domain_matches(item.link, QUALITY_NEWS_DOMAINS)
    ]
    headline = next(
        (item.title for item in quality_items if contains_any(item.title, HEADLINE_KEYWORDS)),
        None,
    )
    is_high_profile = (
        response.total_results > settings.news_results_threshold
        or len(quality_items) >= settings.news_quality_source_min
        or headline is not None
    )
    return NewsSignal(
        is_high_profile=is_high_profile,
        total_results=response.total_results,
        quality_source_count=len(quality_items),
        major_headline=headline,
    )


def social_query(name: str) -> str:
    sites = " OR ".join(f"site:{domain}" for domain in SOCIAL_PLATFORM_DOMAINS)
    return f'"{name}" ({sites})'


def news_query(name: str) -> str:
    return f'"{name}"'


# =============================================================================
# Classifier
# =============================================================================


@dataclass
class CelebrityFilterResult:
    """Candidates kept and candidates excluded as too high profile."""

    filtered: list[Candidate]
    excluded: list[ExcludedCandidate]


class CelebrityFilter:
    """
    Classifies names as high-profile (exclude) or suitable (keep).

    Decisions are cached per normalized name in the shared PipelineState, so
    a repeated name costs no external calls until the cache is cleared.
    """

    def __init__(
        self,
        state: PipelineState,
        search_provider: WebSearchProvider,
        reference_provider: ReferenceProvider,
        settings: Optional[CelebrityCheckSettings] = None,
    ) -> None:
        self.state = state
        self.search_provider = search_provider
        self.reference_provider = reference_provider
        self.settings = settings or CelebrityCheckSettings()

    async def _lookup(
        self, check: str, service: str, key: str, fetch: Callable[[], Awaitable[Any]]
    ) -> Any:
        """Run one external call; None means no evidence could be gathered."""
        try:
            outcome = await self.state.cached_lookup(service, key, fetch)
        except Exception as e:
            logger.warning(f"{check} check failed: {e}")
            return None
        if isinstance(outcome, RateLimitExceeded):
            logger.warning(f"{check} check skipped: {outcome.describe()}")
            return None
        return outcome

    async def check_reference(self, name: str) -> ReferenceSignal:
        article = await self._lookup(
            "Reference",
            REFERENCE_SERVICE,
            generate_reference_cache_key(name),
            lambda: self.reference_provider.search(name),
        )
        return evaluate_reference(article, self.settings)

    async def check_social_followers(self, name: str) -> SocialSignal:
        query = social_query(name)
        response = await self._lookup(
            "Social follower",
            SEARCH_SERVICE,
            generate_search_cache_key(query, 10),
            lambda: self.search_provider.search(query, num_results=10),
        )
        if response is None:
            return SocialSignal()
        return evaluate_social(response, self.settings)

    async def check_news_coverage(self, name: str) -> NewsSignal:
        query = news_query(name)
        response = await self._lookup(
            "News coverage",
            SEARCH_SERVICE,
            generate_search_cache_key(query, 10, "y1"),
            lambda: self.search_provider.search(
                query, num_results=10, date_restrict="y1", sort="date"
            ),
        )
        if response is None:
            return NewsSignal()
        return evaluate_news(response, self.settings)

    def decide(
        self,
        reference: ReferenceSignal,
        social: SocialSignal,
        news: NewsSignal,
    ) -> ClassificationResult:
        """Combine the three signals into a decision."""
        if social.is_influencer:
            return ClassificationResult.excluded(
                f"Social media influencer with {social.follower_count:,} followers "
                f"on {social.platform}",
                EvidenceSource.SOCIAL_FOLLOWERS,
                follower_count=social.follower_count,
                platform=social.platform,
                threshold=social.threshold,
            )

        if reference.is_high_profile and news.is_high_profile:
            return ClassificationResult.excluded(
                "High-profile figure with encyclopedia presence and recent major "
                "news coverage",
                EvidenceSource.REFERENCE_LOOKUP,
                article_title=reference.title,
                wordcount=reference.wordcount,
                keywords=list(reference.role_keywords + reference.achievement_keywords),
                news_total_results=news.total_results,
                news_quality_sources=news.quality_source_count,
                news_headline=news.major_headline,
            )

        return ClassificationResult.not_excluded()

    async def is_excluded(self, name: str) -> ClassificationResult:
        """
        Classify one name.

        Args:
            name: Candidate display name

        Returns:
            ClassificationResult; never raises for provider failures
        """
        key = normalize_name(name)
        if not key:
            return ClassificationResult.not_excluded()

        cached = self.state.classifications.get(key)
        if cached is not None:
            logger.debug(f"Classification cache hit: {name}")
            return cached

        figure = self.state.known_figures.get(normalize_lookup_name(name))
        if figure is not None:
            result = ClassificationResult.excluded(
                figure.exclusion_reason(),
                EvidenceSource.KNOWN_LIST,
                category=figure.category,
            )
            self.state.classifications[key] = result
            return result

        reference_task = asyncio.create_task(self.check_reference(name))
        social_task = asyncio.create_task(self.check_social_followers(name))
        news_task = asyncio.create_task(self.check_news_coverage(name))
        tasks = (reference_task, social_task, news_task)

        done, pending = await asyncio.wait(tasks, timeout=self.settings.check_timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(
                f"Celebrity check for {name} timed out after "
                f"{self.settings.check_timeout}s; deciding on partial results"
            )

        reference = reference_task.result() if reference_task in done else ReferenceSignal()
        social = social_task.result() if social_task in done else SocialSignal()
        news = news_task.result() if news_task in done else NewsSignal()

        result = self.decide(reference, social, news)
        if result.is_excluded:
            logger.info(f"Excluding {name}: {result.reason}")

        # A timed-out decision is not stored so a later call can finish the checks
        if not pending:
            self.state.classifications[key] = result
        return result

    async def filter_batch(
        self,
        candidates: Iterable[Candidate],
        on_progress: Optional[ProgressCallback] = None,
    ) -> CelebrityFilterResult:
        """
        Split candidates into kept and excluded.

        Candidates are processed in groups of ``settings.batch_size`` with
        ``settings.batch_delay`` seconds between groups. A candidate whose
        processing raises is kept.
        """
        items = list(candidates)
        processor = BatchProcessor(
            batch_size=self.settings.batch_size, batch_delay=self.settings.batch_delay
        )
        outcomes = await processor.process(
            items, lambda c: self.is_excluded(c.name), on_progress
        )

        filtered: list[Candidate] = []
        excluded: list[ExcludedCandidate] = []
        for outcome in outcomes:
            candidate = outcome.item
            if not outcome.success:
                logger.warning(
                    f"Error processing guest {candidate.name}: {outcome.error}; keeping"
                )
                filtered.append(candidate)
            elif outcome.result.is_excluded:
                excluded.append(
                    ExcludedCandidate(
                        candidate=candidate,
                        reason=outcome.result.reason or "",
                        evidence=outcome.result.evidence,
                    )
                )
            else:
                filtered.append(candidate)

        logger.info(
            f"Celebrity filter: {len(filtered)} kept, {len(excluded)} excluded "
            f"of {len(items)}"
        )
        return CelebrityFilterResult(filtered=filtered, excluded=excluded)

    def clear_cache(self) -> None:
        """Forget classification decisions."""
        self.state.classifications.clear()
