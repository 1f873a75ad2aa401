"""Unified data models for Guest Scout.

This module provides the shared data classes passed between the matcher,
classifier, scorer and batch orchestrator.

Models:
- Candidate: a person being evaluated as a podcast guest (immutable input)
- SocialMetrics: audience signals used by the scorer
- ClassificationResult / Evidence: celebrity/influencer decision
- ScoreResult / ScoreBreakdown: composite suitability score
- EvaluatedCandidate / ExcludedCandidate: orchestrator output entries
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from text_utils import normalize_name


@dataclass(frozen=True)
class SocialHandles:
    """Social profile pointers (unvalidated until URL normalization)."""

    linkedin_url: Optional[str] = None
    twitter_handle: Optional[str] = None


@dataclass(frozen=True)
class CandidateMetrics:
    """Best-effort audience metrics reported by a source."""

    followers: Optional[int] = None
    engagement_rate: Optional[float] = None
    recent_post_count: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return (
            self.followers is None
            and self.engagement_rate is None
            and self.recent_post_count is None
        )


@dataclass(frozen=True)
class PastAppearance:
    """A previous podcast / interview appearance."""

    platform: str
    title: str
    url: str = ""
    date: Optional[str] = None


@dataclass(frozen=True)
class Candidate:
    """
    A person under consideration as a podcast guest.

    Instances are never mutated by scoring or classification; merging
    fragments produces a new Candidate.
    """

    name: str
    title: str = ""
    company: str = ""
    bio: str = ""
    expertise: tuple[str, ...] = ()
    social_handles: Optional[SocialHandles] = None
    metrics: CandidateMetrics = field(default_factory=CandidateMetrics)
    past_appearances: tuple[PastAppearance, ...] = ()
    last_active: Optional[datetime] = None
    source: str = ""

    @property
    def identity(self) -> str:
        """Normalized name used to key decisions about this person."""
        return normalize_name(self.name)

    def to_dict(self) -> dict[str, Any]:
        handles = self.social_handles or SocialHandles()
        return {
            "name": self.name,
            "title": self.title,
            "company": self.company,
            "bio": self.bio,
            "expertise": list(self.expertise),
            "linkedinUrl": handles.linkedin_url,
            "twitterHandle": handles.twitter_handle,
            "followers": self.metrics.followers,
            "engagementRate": self.metrics.engagement_rate,
            "recentPostCount": self.metrics.recent_post_count,
            "pastAppearances": [
                {"platform": a.platform, "title": a.title, "url": a.url, "date": a.date}
                for a in self.past_appearances
            ],
            "lastActive": self.last_active.isoformat() if self.last_active else None,
        }


@dataclass(frozen=True)
class SocialMetrics:
    """Audience signals for engagement/reach scoring."""

    followers: int = 0
    engagement_rate: float = 0.0
    posts: int = 0
    platform: Optional[str] = None


class EvidenceSource(str, Enum):
    """Which check established that a candidate is high profile."""

    KNOWN_LIST = "known-list"
    REFERENCE_LOOKUP = "reference-lookup"
    SOCIAL_FOLLOWERS = "social-followers"
    NEWS_COVERAGE = "news-coverage"


@dataclass(frozen=True)
class Evidence:
    """What triggered an exclusion."""

    matched_source: EvidenceSource
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ClassificationResult:
    """Celebrity/influencer decision for one normalized name."""

    is_excluded: bool
    reason: Optional[str] = None
    evidence: Optional[Evidence] = None

    @classmethod
    def not_excluded(cls) -> "ClassificationResult":
        return cls(is_excluded=False)

    @classmethod
    def excluded(
        cls, reason: str, source: EvidenceSource, **details: Any
    ) -> "ClassificationResult":
        return cls(
            is_excluded=True,
            reason=reason,
            evidence=Evidence(matched_source=source, details=details),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"isExcluded": self.is_excluded}
        if self.reason:
            data["reason"] = self.reason
        if self.evidence:
            data["evidence"] = {
                "matchedSource": self.evidence.matched_source.value,
                "details": dict(self.evidence.details),
            }
        return data


@dataclass(frozen=True)
class ScoreBreakdown:
    """Independent 0-100 sub-scores."""

    relevance: float = 0.0
    authority: float = 0.0
    engagement: float = 0.0
    recency: float = 0.0
    reach: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return {
            "relevance": self.relevance,
            "authority": self.authority,
            "engagement": self.engagement,
            "recency": self.recency,
            "reach": self.reach,
        }


@dataclass(frozen=True)
class ScoreResult:
    """Composite suitability score for one candidate and topic."""

    total: float
    breakdown: ScoreBreakdown
    flags: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": round(self.total, 2),
            "breakdown": self.breakdown.as_dict(),
            "flags": list(self.flags),
        }


@dataclass
class EvaluatedCandidate:
    """A candidate that survived filtering."""

    candidate: Candidate
    score: Optional[ScoreResult] = None
    classification: Optional[ClassificationResult] = None
    qualified: bool = False

    @property
    def sort_key(self) -> float:
        return self.score.total if self.score is not None else float("-inf")


@dataclass
class ExcludedCandidate:
    """A candidate routed out of the result set, with the reason."""

    candidate: Candidate
    reason: str
    evidence: Optional[Evidence] = None
    score: Optional[ScoreResult] = None
