"""Social metric collection.

Gathers best-effort audience signals (followers, engagement rate) for a
candidate from web search snippets about their social profiles. When the
snippets carry no explicit counts, followers are estimated from the size
and tone of the candidate's web presence.
"""

import logging
import re
from typing import Optional

from cache import generate_search_cache_key
from models import Candidate, SocialMetrics
from pipeline_state import PipelineState
from rate_limiter import RateLimitExceeded
from search_providers import SearchResponse, WebSearchProvider
from text_utils import extract_engagement_rate, extract_follower_count

logger = logging.getLogger(__name__)

SEARCH_SERVICE = "google"

BASE_FOLLOWER_ESTIMATE = 500
DEFAULT_ENGAGEMENT_RATE = 0.02

_INFLUENCE_RE = re.compile(r"influential|expert|thought leader|keynote|speaker", re.IGNORECASE)
_PRESS_RE = re.compile(r"featured|interviewed|quoted", re.IGNORECASE)


def estimate_followers(response: SearchResponse) -> int:
    """Estimate an audience size from web presence.

    500 base, +100 per result, +1000 per snippet with an influence term,
    +500 per snippet with a press term.
    """
    estimate = BASE_FOLLOWER_ESTIMATE + 100 * len(response.items)
    for item in response.items:
        if _INFLUENCE_RE.search(item.snippet):
            estimate += 1000
        if _PRESS_RE.search(item.snippet):
            estimate += 500
    return estimate


def metrics_from_search(
    response: SearchResponse, platform: Optional[str] = None
) -> SocialMetrics:
    """Largest follower count and engagement rate found across snippets."""
    followers = 0
    engagement = 0.0
    for item in response.items:
        count = extract_follower_count(item.snippet)
        if count is not None:
            followers = max(followers, count)
        rate = extract_engagement_rate(item.snippet)
        if rate is not None:
            engagement = max(engagement, rate)

    if followers == 0:
        followers = estimate_followers(response)
    if engagement == 0:
        engagement = DEFAULT_ENGAGEMENT_RATE

    return SocialMetrics(followers=followers, engagement_rate=engagement, platform=platform)


def profile_query(candidate: Candidate) -> str:
    handles = candidate.social_handles
    pointers = []
    if handles is not None:
        pointers = [p for p in (handles.linkedin_url, handles.twitter_handle) if p]
    if pointers:
        return f"{' '.join(pointers)} followers profile"
    return f'"{candidate.name}" followers profile'


def primary_platform(candidate: Candidate) -> Optional[str]:
    handles = candidate.social_handles
    if handles is None:
        return None
    if handles.linkedin_url:
        return "linkedin"
    if handles.twitter_handle:
        return "twitter"
    return None


class SocialMetricCollector:
    """Collects SocialMetrics for candidates through a web search provider."""

    def __init__(self, search_provider: WebSearchProvider, state: PipelineState) -> None:
        self.search_provider = search_provider
        self.state = state

    async def collect(self, candidate: Candidate) -> SocialMetrics:
        """
        Collect audience signals for one candidate.

        Returns conservative defaults when the local rate budget is spent.

        Raises:
            ExternalServiceError: When the search provider fails
        """
        query = profile_query(candidate)
        platform = primary_platform(candidate)

        outcome = await self.state.cached_lookup(
            SEARCH_SERVICE,
            generate_search_cache_key(query, 10),
            lambda: self.search_provider.search(query, num_results=10),
        )
        if isinstance(outcome, RateLimitExceeded):
            logger.warning(
                f"Metrics for {candidate.name} defaulted: {outcome.describe()}"
            )
            return SocialMetrics(
                followers=BASE_FOLLOWER_ESTIMATE,
                engagement_rate=DEFAULT_ENGAGEMENT_RATE,
                platform=platform,
            )

        metrics = metrics_from_search(outcome, platform)
        logger.debug(
            f"Metrics for {candidate.name}: {metrics.followers} followers, "
            f"{metrics.engagement_rate:.1%} engagement"
        )
        return metrics
