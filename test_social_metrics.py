"""Tests for social metric collection."""

import asyncio

import pytest

from error_handling import ExternalServiceError
from models import Candidate, SocialHandles, SocialMetrics
from pipeline_state import PipelineState
from rate_limiter import ServiceLimit
from social_metrics import (
    BASE_FOLLOWER_ESTIMATE,
    DEFAULT_ENGAGEMENT_RATE,
    SocialMetricCollector,
    estimate_followers,
    metrics_from_search,
    profile_query,
)
from testing_fakes import FakeSearchProvider, search_response


def test_metrics_take_largest_counts():
    response = search_response(
        ("a", "https://x.com/jane", "Jane. 12K followers, 3.2% engagement"),
        ("b", "https://linkedin.com/in/jane", "500+ connections"),
    )
    metrics = metrics_from_search(response, "twitter")
    assert metrics.followers == 12_000
    assert metrics.engagement_rate == pytest.approx(0.032)
    assert metrics.platform == "twitter"


def test_metrics_fall_back_to_estimate():
    response = search_response(
        ("a", "https://example.com/1", "Influential speaker on climate"),
        ("b", "https://example.com/2", "Featured in a local paper"),
    )
    assert estimate_followers(response) == 500 + 200 + 1000 + 500
    metrics = metrics_from_search(response)
    assert metrics.followers == 2200
    assert metrics.engagement_rate == DEFAULT_ENGAGEMENT_RATE


def test_profile_query_prefers_handles():
    with_handles = Candidate(
        name="Jane Doe",
        social_handles=SocialHandles(
            linkedin_url="https://linkedin.com/in/jane", twitter_handle="jane"
        ),
    )
    assert profile_query(with_handles) == "https://linkedin.com/in/jane jane followers profile"
    assert profile_query(Candidate(name="Jane Doe")) == '"Jane Doe" followers profile'


def test_collector_uses_search_once_per_query():
    search = FakeSearchProvider(
        lambda q, d: search_response(("a", "https://x.com/j", "40K followers"))
    )
    collector = SocialMetricCollector(search, PipelineState.create())
    candidate = Candidate(name="Jane Doe", social_handles=SocialHandles(twitter_handle="j"))

    first = asyncio.run(collector.collect(candidate))
    second = asyncio.run(collector.collect(candidate))

    assert first == second
    assert first.followers == 40_000
    assert first.platform == "twitter"
    assert len(search.calls) == 1


def test_collector_defaults_when_rate_limited():
    state = PipelineState.create(limits={"google": ServiceLimit(1, 60_000)})
    state.rate_limiter.check_limit("google")
    search = FakeSearchProvider()
    collector = SocialMetricCollector(search, state)

    metrics = asyncio.run(collector.collect(Candidate(name="Jane Doe")))

    assert metrics == SocialMetrics(
        followers=BASE_FOLLOWER_ESTIMATE, engagement_rate=DEFAULT_ENGAGEMENT_RATE
    )
    assert search.calls == []


def test_collector_propagates_provider_errors():
    search = FakeSearchProvider(error=ExternalServiceError("down", service="google"))
    collector = SocialMetricCollector(search, PipelineState.create())
    with pytest.raises(ExternalServiceError):
        asyncio.run(collector.collect(Candidate(name="Jane Doe")))
