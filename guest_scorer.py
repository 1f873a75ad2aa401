"""
Guest Quality Scorer

Computes a composite suitability score for a candidate and a search topic.
Scoring is a pure function of its inputs: no external calls and no mutation
of the candidate.

Sub-scores (each 0-100) and weights:
    relevance   0.30  topic overlap with expertise tags, title/company, bio
    authority   0.25  leadership title, years of experience, credentials
    engagement  0.20  engagement rate from social metrics
    recency     0.15  recent activity and past podcast appearances
    reach       0.10  piecewise-linear follower count mapping

Qualification is a conjunctive gate on top of the weighted total, so one
very strong dimension cannot hide a critically weak one.
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from celebrity_constants import (
    CREDENTIALS_RE,
    LEADERSHIP_TITLE_RE,
    PLATFORM_FOLLOWER_FLOORS,
    RECOGNITION_RE,
    YEARS_EXPERIENCE_RE,
    get_related_terms,
)
from models import Candidate, ScoreBreakdown, ScoreResult, SocialMetrics

logger = logging.getLogger(__name__)

WEIGHTS: dict[str, float] = {
    "relevance": 0.30,
    "authority": 0.25,
    "engagement": 0.20,
    "recency": 0.15,
    "reach": 0.10,
}

MINIMUM_SCORES: dict[str, float] = {
    "total": 65,
    "relevance": 15,
    "authority": 10,
    "engagement": 5,
}

DEFAULT_FOLLOWER_FLOOR = PLATFORM_FOLLOWER_FLOORS["linkedin"]
RECENT_ACTIVITY_WINDOW = timedelta(days=90)

FLAG_LOW_RELEVANCE = "Low topic relevance"
FLAG_LIMITED_EXPERTISE = "Limited expertise evidence"
FLAG_LOW_ENGAGEMENT = "Low engagement"
FLAG_LOW_FOLLOWERS = "Low follower count"


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def split_topic(topic: str) -> list[str]:
    """Comma-separated topic terms, lowercased and trimmed."""
    return [t.strip() for t in (topic or "").lower().split(",") if t.strip()]


# =============================================================================
# Sub-scores
# =============================================================================


def score_relevance(candidate: Candidate, topic: str) -> float:
    terms = split_topic(topic)
    if not terms:
        return 0.0

    matching_tags = [
        tag for tag in candidate.expertise if any(t in tag.lower() for t in terms)
    ]
    expertise_points = min(40, 20 * len(matching_tags))

    title, company = candidate.title.lower(), candidate.company.lower()
    role_points = 0
    for t in terms:
        if t in title:
            role_points += 15
        if t in company:
            role_points += 15
    role_points = min(30, role_points)

    bio = candidate.bio.lower()
    bio_points = 0
    for t in terms:
        if t in bio:
            bio_points += 10
        bio_points += 5 * sum(1 for related in get_related_terms(t) if related in bio)
    bio_points = min(30, bio_points)

    return _clamp(expertise_points + role_points + bio_points)


def score_authority(candidate: Candidate) -> float:
    score = 0
    if LEADERSHIP_TITLE_RE.search(candidate.title or ""):
        score += 30

    years = YEARS_EXPERIENCE_RE.search(candidate.bio or "")
    if years:
        score += min(30, int(years.group(1)) * 2)

    if CREDENTIALS_RE.search(candidate.bio or ""):
        score += 20
    if RECOGNITION_RE.search(candidate.bio or ""):
        score += 20

    return _clamp(score)


def score_engagement(engagement_rate: float) -> float:
    """>=5% -> 100; 2-5% -> 60..100; below 2% -> 0..60."""
    if engagement_rate >= 0.05:
        raw = 100.0
    elif engagement_rate >= 0.02:
        raw = 60 + (engagement_rate - 0.02) / 0.03 * 40
    else:
        raw = engagement_rate / 0.02 * 60
    return _clamp(_round_half_up(raw))


def score_reach(followers: int) -> float:
    """Four-segment piecewise-linear follower mapping."""
    if followers <= 500:
        raw = followers / 500 * 20
    elif followers <= 5000:
        raw = 20 + (followers - 500) / 4500 * 30
    elif followers <= 50000:
        raw = 50 + (followers - 5000) / 45000 * 30
    else:
        raw = 80 + min(20, (followers - 50000) / 950000 * 20)
    return _clamp(_round_half_up(raw))


def _latest_appearance_date(candidate: Candidate) -> Optional[datetime]:
    latest: Optional[datetime] = None
    for appearance in candidate.past_appearances:
        if not appearance.date:
            continue
        try:
            when = _utc(datetime.fromisoformat(appearance.date))
        except ValueError:
            continue
        if latest is None or when > latest:
            latest = when
    return latest


def score_recency(candidate: Candidate, now: datetime) -> float:
    score = 0
    last_active = candidate.last_active or _latest_appearance_date(candidate)
    if last_active is not None and _utc(last_active) > _utc(now) - RECENT_ACTIVITY_WINDOW:
        score += 50
    score += min(50, len(candidate.past_appearances) * 10)
    return _clamp(score)


def weighted_total(breakdown: ScoreBreakdown) -> float:
    values = breakdown.as_dict()
    return sum(values[key] * weight for key, weight in WEIGHTS.items())


def metrics_from_candidate(candidate: Candidate) -> Optional[SocialMetrics]:
    """SocialMetrics from the source-reported metrics, if there are any."""
    if candidate.metrics.is_empty:
        return None
    handles = candidate.social_handles
    platform = None
    if handles is not None:
        platform = "linkedin" if handles.linkedin_url else (
            "twitter" if handles.twitter_handle else None
        )
    return SocialMetrics(
        followers=candidate.metrics.followers or 0,
        engagement_rate=candidate.metrics.engagement_rate or 0.0,
        posts=candidate.metrics.recent_post_count or 0,
        platform=platform,
    )


def combine_metrics(
    collected: Optional[SocialMetrics], reported: Optional[SocialMetrics]
) -> Optional[SocialMetrics]:
    """
    Field-wise maximum of collected and source-reported metrics.

    The platform follows whichever side supplied the larger follower count.
    """
    if collected is None or reported is None:
        return collected or reported
    platform = (
        reported.platform
        if reported.followers > collected.followers
        else collected.platform
    ) or collected.platform or reported.platform
    return SocialMetrics(
        followers=max(collected.followers, reported.followers),
        engagement_rate=max(collected.engagement_rate, reported.engagement_rate),
        posts=max(collected.posts, reported.posts),
        platform=platform,
    )


# =============================================================================
# Scorer
# =============================================================================


class GuestScorer:
    """Scores candidates against a topic and applies the qualification gate."""

    def __init__(self, now: Callable[[], datetime] = _utc_now) -> None:
        self._now = now

    def score_guest(
        self,
        candidate: Candidate,
        topic: str,
        social_metrics: Optional[SocialMetrics] = None,
    ) -> ScoreResult:
        """
        Score one candidate for a topic.

        Args:
            candidate: The candidate (not modified)
            topic: Comma-separated topic terms
            social_metrics: Collected audience signals, combined field-wise
                with the candidate's own reported metrics; with neither,
                engagement and reach score zero

        Returns:
            ScoreResult with total, breakdown and warning flags
        """
        flags: list[str] = []
        metrics = combine_metrics(social_metrics, metrics_from_candidate(candidate))

        relevance = score_relevance(candidate, topic)
        if relevance < MINIMUM_SCORES["relevance"]:
            flags.append(FLAG_LOW_RELEVANCE)

        authority = score_authority(candidate)
        if authority < MINIMUM_SCORES["authority"]:
            flags.append(FLAG_LIMITED_EXPERTISE)

        engagement = reach = 0.0
        if metrics is not None:
            engagement = score_engagement(metrics.engagement_rate)
            reach = score_reach(metrics.followers)
            floor = PLATFORM_FOLLOWER_FLOORS.get(
                (metrics.platform or "").lower(), DEFAULT_FOLLOWER_FLOOR
            )
            if metrics.followers < floor:
                flags.append(FLAG_LOW_FOLLOWERS)
        if engagement < MINIMUM_SCORES["engagement"]:
            flags.append(FLAG_LOW_ENGAGEMENT)

        breakdown = ScoreBreakdown(
            relevance=relevance,
            authority=authority,
            engagement=engagement,
            recency=score_recency(candidate, self._now()),
            reach=reach,
        )
        total = weighted_total(breakdown)
        logger.debug(f"Scored {candidate.name} for '{topic}': {total:.1f}")
        return ScoreResult(total=total, breakdown=breakdown, flags=tuple(flags))

    @staticmethod
    def is_qualified_guest(score: ScoreResult) -> bool:
        return is_qualified_guest(score)


def is_qualified_guest(score: ScoreResult) -> bool:
    """Total and every critical dimension must clear its minimum."""
    return (
        score.total >= MINIMUM_SCORES["total"]
        and score.breakdown.relevance >= MINIMUM_SCORES["relevance"]
        and score.breakdown.authority >= MINIMUM_SCORES["authority"]
        and score.breakdown.engagement >= MINIMUM_SCORES["engagement"]
    )
