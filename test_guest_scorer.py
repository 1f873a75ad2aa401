"""Tests for the composite guest scorer."""

from datetime import datetime, timedelta, timezone

import pytest

from guest_scorer import (
    FLAG_LIMITED_EXPERTISE,
    FLAG_LOW_ENGAGEMENT,
    FLAG_LOW_FOLLOWERS,
    FLAG_LOW_RELEVANCE,
    WEIGHTS,
    GuestScorer,
    is_qualified_guest,
    score_authority,
    score_engagement,
    score_reach,
    score_recency,
    score_relevance,
    split_topic,
)
from models import (
    Candidate,
    CandidateMetrics,
    PastAppearance,
    ScoreBreakdown,
    ScoreResult,
    SocialMetrics,
)

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def make_scorer() -> GuestScorer:
    return GuestScorer(now=lambda: NOW)


def researcher() -> Candidate:
    return Candidate(
        name="Jane Doe",
        title="AI Researcher",
        bio="10 years experience, published author",
        expertise=("Machine Learning",),
    )


def test_split_topic():
    assert split_topic(" AI, Startup ,, ") == ["ai", "startup"]
    assert split_topic("") == []


def test_relevance_components():
    candidate = researcher()
    # topic in title (15); "Machine Learning" does not contain "ai"
    assert score_relevance(candidate, "AI") == 15
    assert score_relevance(candidate, "") == 0
    assert score_relevance(candidate, "gardening") == 0


def test_relevance_is_capped():
    candidate = Candidate(
        name="Max Out",
        title="AI lead",
        company="AI Labs",
        bio="AI startup founder backed by venture and seed funding",
        expertise=("AI", "AI safety", "Applied AI"),
    )
    assert score_relevance(candidate, "AI, startup") == 100


def test_related_terms_expand_bio_only():
    tagged = Candidate(name="A B", expertise=("Software Platforms",))
    described = Candidate(name="A B", bio="Builds software platforms")
    assert score_relevance(tagged, "technology") == 0
    # "software" and "platform" are related terms for technology
    assert score_relevance(described, "technology") == 10


def test_authority_components():
    assert score_authority(researcher()) == 40
    leader = Candidate(
        name="Lee Chief",
        title="Founder & CEO",
        bio="20+ years building startups; keynote speaker and award-winning author",
    )
    assert score_authority(leader) == 100
    assert score_authority(Candidate(name="Nobody")) == 0


def test_engagement_formula():
    assert score_engagement(0.05) == 100
    assert score_engagement(0.08) == 100
    assert score_engagement(0.035) == 80
    assert score_engagement(0.02) == 60
    assert score_engagement(0.01) == 30
    assert score_engagement(0.0) == 0


def test_reach_formula():
    assert score_reach(0) == 0
    assert score_reach(500) == 20
    assert score_reach(2750) == 35
    assert score_reach(5000) == 50
    assert score_reach(50_000) == 80
    assert score_reach(1_000_000) == 100
    assert score_reach(10_000_000) == 100


def test_recency_uses_last_active_then_appearance_dates():
    recent = Candidate(name="A B", last_active=NOW - timedelta(days=10))
    stale = Candidate(name="A B", last_active=NOW - timedelta(days=200))
    by_date = Candidate(
        name="A B",
        past_appearances=(
            PastAppearance(platform="podcast", title="Ep 1", date="2024-05-20"),
            PastAppearance(platform="podcast", title="Ep 2", date="not a date"),
        ),
    )
    assert score_recency(recent, NOW) == 50
    assert score_recency(stale, NOW) == 0
    assert score_recency(by_date, NOW) == 70


def test_total_is_weighted_sum():
    scorer = make_scorer()
    metrics = SocialMetrics(followers=60_000, engagement_rate=0.06, platform="linkedin")
    for candidate in (researcher(), Candidate(name="Empty Person")):
        result = scorer.score_guest(candidate, "AI, startup", metrics)
        values = result.breakdown.as_dict()
        assert result.total == pytest.approx(
            sum(values[k] * w for k, w in WEIGHTS.items())
        )
        assert all(0 <= v <= 100 for v in values.values())
        assert 0 <= result.total <= 100


def test_researcher_scenario():
    scorer = make_scorer()
    metrics = SocialMetrics(followers=60_000, engagement_rate=0.06, platform="linkedin")

    result = scorer.score_guest(researcher(), "AI", metrics)

    assert result.breakdown == ScoreBreakdown(
        relevance=15, authority=40, engagement=100, recency=0, reach=80
    )
    assert result.total == pytest.approx(42.5)
    assert result.flags == ()
    assert not is_qualified_guest(result)


def test_established_expert_qualifies():
    scorer = make_scorer()
    candidate = Candidate(
        name="Jane Doe",
        title="Head of AI Research",
        bio=(
            "Published author and keynote speaker with 12 years of AI "
            "experience; award-winning researcher"
        ),
        expertise=("Applied AI", "AI Ethics"),
        past_appearances=tuple(
            PastAppearance(platform="podcast", title=f"Ep {i}") for i in range(3)
        ),
        last_active=NOW - timedelta(days=10),
    )
    metrics = SocialMetrics(followers=60_000, engagement_rate=0.06, platform="linkedin")

    result = scorer.score_guest(candidate, "AI", metrics)

    assert result.breakdown.relevance == 65
    assert result.breakdown.authority == 94
    assert result.breakdown.recency == 80
    assert result.total == pytest.approx(83.0)
    assert is_qualified_guest(result)
    assert GuestScorer.is_qualified_guest(result)


def test_weak_relevance_blocks_qualification():
    score = ScoreResult(
        total=73.0,
        breakdown=ScoreBreakdown(
            relevance=10, authority=100, engagement=100, recency=100, reach=100
        ),
    )
    assert score.total >= 65
    assert not is_qualified_guest(score)


def test_flags_for_weak_candidate():
    scorer = make_scorer()
    metrics = SocialMetrics(followers=100, engagement_rate=0.001, platform="twitter")

    result = scorer.score_guest(Candidate(name="Quiet Person"), "AI", metrics)

    assert FLAG_LOW_RELEVANCE in result.flags
    assert FLAG_LIMITED_EXPERTISE in result.flags
    assert FLAG_LOW_ENGAGEMENT in result.flags
    assert FLAG_LOW_FOLLOWERS in result.flags


def test_follower_floor_is_per_platform():
    scorer = make_scorer()
    linkedin = SocialMetrics(followers=800, engagement_rate=0.05, platform="linkedin")
    twitter = SocialMetrics(followers=800, engagement_rate=0.05, platform="twitter")
    assert FLAG_LOW_FOLLOWERS not in scorer.score_guest(researcher(), "AI", linkedin).flags
    assert FLAG_LOW_FOLLOWERS in scorer.score_guest(researcher(), "AI", twitter).flags


def test_no_metrics_scores_zero_engagement():
    result = make_scorer().score_guest(researcher(), "AI")
    assert result.breakdown.engagement == 0
    assert result.breakdown.reach == 0
    assert FLAG_LOW_ENGAGEMENT in result.flags
    assert FLAG_LOW_FOLLOWERS not in result.flags
    assert not is_qualified_guest(result)


def test_reported_metrics_used_when_none_collected():
    candidate = Candidate(
        name="Jane Doe",
        metrics=CandidateMetrics(followers=5000, engagement_rate=0.02),
    )
    result = make_scorer().score_guest(candidate, "AI")
    assert result.breakdown.reach == 50
    assert result.breakdown.engagement == 60


def test_reported_metrics_combine_with_collected():
    candidate = Candidate(
        name="Jane Doe",
        metrics=CandidateMetrics(followers=60_000, engagement_rate=0.06),
    )
    estimate = SocialMetrics(followers=500, engagement_rate=0.02)
    larger = SocialMetrics(followers=2_000_000, engagement_rate=0.01, platform="twitter")

    from_estimate = make_scorer().score_guest(candidate, "AI", estimate)
    from_larger = make_scorer().score_guest(candidate, "AI", larger)

    assert from_estimate.breakdown.reach == 80
    assert from_estimate.breakdown.engagement == 100
    assert from_larger.breakdown.reach == 100
    assert from_larger.breakdown.engagement == 100


def test_scoring_does_not_mutate_candidate():
    candidate = researcher()
    snapshot = Candidate(**candidate.__dict__)
    make_scorer().score_guest(candidate, "AI")
    assert candidate == snapshot
