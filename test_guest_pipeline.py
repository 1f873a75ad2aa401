"""Tests for the batched guest evaluation pipeline."""

import asyncio
from datetime import datetime, timezone

from celebrity_filter import CelebrityCheckSettings, CelebrityFilter
from error_handling import ExternalServiceError, PROCESSING_ERROR_REASON
from guest_pipeline import (
    BELOW_THRESHOLD_REASON,
    MISSING_TOPICS_REASON,
    GuestPipeline,
    PipelineOptions,
)
from guest_scorer import GuestScorer
from llm_response import candidates_from_suggestions
from models import Candidate, CandidateMetrics, EvidenceSource, PastAppearance
from pipeline_state import PipelineState
from search_providers import NullReferenceProvider, NullSearchProvider
from social_metrics import SocialMetricCollector
from testing_fakes import (
    FakeReferenceProvider,
    FakeSearchProvider,
    RecordingSleep,
    search_response,
)

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def make_pipeline(
    search=None,
    reference=None,
    options=None,
    collector=None,
    celebrity_filter_cls=CelebrityFilter,
    scorer=None,
    sleep=None,
):
    state = PipelineState.create()
    search = search or FakeSearchProvider()
    celebrity_filter = celebrity_filter_cls(
        state,
        search,
        reference or FakeReferenceProvider(),
        settings=CelebrityCheckSettings(batch_delay=0),
    )
    pipeline = GuestPipeline(
        state,
        celebrity_filter,
        scorer=scorer or GuestScorer(now=lambda: NOW),
        metrics_collector=collector,
        options=options or PipelineOptions(batch_delay=0),
        sleep=sleep or RecordingSleep(),
    )
    return pipeline, search


def researcher() -> Candidate:
    return Candidate(
        name="Jane Doe",
        title="AI Researcher",
        bio="10 years experience, published author",
        expertise=("Machine Learning",),
    )


def platform_lead() -> Candidate:
    return Candidate(
        name="Priya Patel",
        title="Head of AI Platform",
        bio="Speaker on AI systems, 8 years",
        expertise=("AI",),
    )


def test_run_ranks_and_excludes_known_figures():
    pipeline, _ = make_pipeline()

    result = asyncio.run(
        pipeline.run([researcher(), Candidate(name="Elon Musk"), platform_lead()], "AI")
    )

    assert [e.candidate.name for e in result.filtered] == ["Priya Patel", "Jane Doe"]
    assert result.filtered[0].score.total > result.filtered[1].score.total
    assert len(result.excluded) == 1
    excluded = result.excluded[0]
    assert excluded.candidate.name == "Elon Musk"
    assert excluded.evidence.matched_source is EvidenceSource.KNOWN_LIST
    assert result.summary.describe() == (
        "3 candidates evaluated, 1 excluded as celebrities (known-list: 1)"
    )


def test_duplicates_are_merged_before_evaluation():
    pipeline, _ = make_pipeline()
    fragments = [
        Candidate(name="Jon Smith", expertise=("AI",)),
        Candidate(name="John Smith", expertise=("Robotics",)),
    ]

    result = asyncio.run(pipeline.run(fragments, "AI"))

    assert result.summary.input_count == 2
    assert result.summary.unique_count == 1
    assert len(result.filtered) == 1
    assert result.filtered[0].candidate.expertise == ("AI", "Robotics")


def test_progress_and_batch_delays():
    sleep = RecordingSleep()
    pipeline, _ = make_pipeline(options=PipelineOptions(batch_size=5, batch_delay=1.0), sleep=sleep)
    candidates = [Candidate(name=f"Guest {chr(65 + i)}") for i in range(12)]
    progress = []

    asyncio.run(pipeline.run(candidates, "AI", on_progress=lambda p, t: progress.append((p, t))))

    assert progress == [(i, 12) for i in range(1, 13)]
    assert sleep.delays == [1.0, 1.0]


def test_pre_filters():
    options = PipelineOptions(
        min_appearances=1, max_appearances=1, required_topics=["robot"], batch_delay=0
    )
    reference = FakeReferenceProvider()
    pipeline, _ = make_pipeline(reference=reference, options=options)
    one = (PastAppearance(platform="podcast", title="Ep 1"),)
    two = one + (PastAppearance(platform="podcast", title="Ep 2"),)
    candidates = [
        Candidate(name="Nora Quinn", expertise=("Robotics",)),
        Candidate(name="Max Byrne", expertise=("Robotics",), past_appearances=two),
        Candidate(name="Ola Berg", expertise=("AI",), past_appearances=one),
        Candidate(name="Tom Reyes", expertise=("Robotics",), past_appearances=one),
    ]

    result = asyncio.run(pipeline.run(candidates, "robotics"))

    reasons = {e.candidate.name: e.reason for e in result.excluded}
    assert reasons == {
        "Nora Quinn": "Fewer than 1 past appearances",
        "Max Byrne": "More than 1 past appearances",
        "Ola Berg": MISSING_TOPICS_REASON,
    }
    assert [e.candidate.name for e in result.filtered] == ["Tom Reyes"]
    assert reference.calls == ["Tom Reyes"]
    assert result.summary.excluded_as_celebrity == 0
    assert result.summary.describe() == (
        "1 candidates evaluated, 0 excluded as celebrities, 3 excluded by filters"
    )


def test_invalid_candidate_is_excluded():
    pipeline, _ = make_pipeline()

    result = asyncio.run(pipeline.run([Candidate(name="!!!")], "AI"))

    assert result.filtered == []
    assert result.excluded[0].reason == PROCESSING_ERROR_REASON


def test_classification_failure_keeps_candidate():
    class BrokenFilter(CelebrityFilter):
        async def is_excluded(self, name):
            raise RuntimeError("classifier bug")

    pipeline, _ = make_pipeline(celebrity_filter_cls=BrokenFilter)

    result = asyncio.run(pipeline.run([researcher()], "AI"))

    assert len(result.filtered) == 1
    assert result.filtered[0].classification is None
    assert result.filtered[0].score is not None


def test_metrics_failure_retried_once_then_included():
    class FailingCollector:
        def __init__(self):
            self.calls = 0

        async def collect(self, candidate):
            self.calls += 1
            raise ExternalServiceError("metrics down", service="google")

    sleep = RecordingSleep()
    collector = FailingCollector()
    pipeline, _ = make_pipeline(collector=collector, sleep=sleep)

    result = asyncio.run(pipeline.run([researcher()], "AI"))

    assert collector.calls == 2
    assert sleep.delays == [0.5]
    assert result.filtered[0].score.breakdown.engagement == 0


def test_scoring_failure_leaves_candidate_unscored_and_last():
    class PickyScorer(GuestScorer):
        def score_guest(self, candidate, topic, social_metrics=None):
            if candidate.name == "Bad Data":
                raise ZeroDivisionError("bad data")
            return super().score_guest(candidate, topic, social_metrics)

    pipeline, _ = make_pipeline(scorer=PickyScorer(now=lambda: NOW))

    result = asyncio.run(pipeline.run([Candidate(name="Bad Data"), researcher()], "AI"))

    assert [e.candidate.name for e in result.filtered] == ["Jane Doe", "Bad Data"]
    assert result.filtered[-1].score is None
    assert result.summary.unscored == 1
    assert result.summary.describe().endswith("1 could not be scored")


def test_qualified_only_excludes_weak_candidates():
    pipeline, _ = make_pipeline(options=PipelineOptions(qualified_only=True, batch_delay=0))

    result = asyncio.run(pipeline.run([researcher()], "AI"))

    assert result.filtered == []
    assert result.excluded[0].reason == BELOW_THRESHOLD_REASON
    assert result.excluded[0].score is not None


def test_include_celebrities_skips_classification():
    search = FakeSearchProvider()
    pipeline, _ = make_pipeline(
        search=search, options=PipelineOptions(exclude_celebrities=False, batch_delay=0)
    )

    result = asyncio.run(pipeline.run([Candidate(name="Elon Musk")], "AI"))

    assert [e.candidate.name for e in result.filtered] == ["Elon Musk"]
    assert search.calls == []


def test_search_outage_reported():
    error = ExternalServiceError("offline", service="google", status=503)
    pipeline, _ = make_pipeline(
        search=FakeSearchProvider(error=error), reference=FakeReferenceProvider(error=error)
    )

    result = asyncio.run(pipeline.run([researcher(), platform_lead()], "AI"))

    assert len(result.filtered) == 2
    assert result.summary.search_unavailable
    assert result.summary.describe().startswith("Search service unavailable")


def test_collected_metrics_feed_the_score():
    search = FakeSearchProvider(
        lambda q, d: search_response(("Jane", "https://x.com/jane", "60K followers, 6% engagement"))
    )
    pipeline, _ = make_pipeline(search=search)
    pipeline.metrics_collector = SocialMetricCollector(search, pipeline.state)

    result = asyncio.run(pipeline.run([researcher()], "AI"))

    breakdown = result.filtered[0].score.breakdown
    assert breakdown.engagement == 100
    assert breakdown.reach == 80


def test_create_with_offline_providers():
    pipeline = GuestPipeline.create(
        NullSearchProvider(),
        NullReferenceProvider(),
        options=PipelineOptions(batch_delay=0),
        collect_metrics=False,
    )

    result = asyncio.run(pipeline.run([researcher()], "AI"))

    assert [e.candidate.name for e in result.filtered] == ["Jane Doe"]
    assert pipeline.metrics_collector is None


def test_empty_input():
    pipeline, _ = make_pipeline()
    result = asyncio.run(pipeline.run([], "AI"))
    assert result.filtered == [] and result.excluded == []
    assert result.summary.describe() == "0 candidates evaluated, 0 excluded as celebrities"


def test_reported_metrics_survive_metric_estimates():
    pipeline = GuestPipeline.create(
        NullSearchProvider(),
        NullReferenceProvider(),
        options=PipelineOptions(batch_delay=0),
    )
    candidate = Candidate(
        name="Jane Doe",
        title="AI Researcher",
        metrics=CandidateMetrics(followers=60_000, engagement_rate=0.06),
    )

    result = asyncio.run(pipeline.run([candidate], "AI"))

    assert pipeline.metrics_collector is not None
    breakdown = result.filtered[0].score.breakdown
    assert breakdown.reach == 80
    assert breakdown.engagement == 100


def test_fragments_with_date_only_and_utc_timestamps_merge():
    pipeline, _ = make_pipeline()
    fragments = candidates_from_suggestions(
        [
            {"name": "Jane Doe", "lastActive": "2024-05-01"},
            {"name": "Jane Doe", "lastActive": "2024-05-02T00:00:00Z"},
        ]
    )

    result = asyncio.run(pipeline.run(fragments, "AI"))

    assert result.summary.unique_count == 1
    merged = result.filtered[0].candidate
    assert merged.last_active == datetime(2024, 5, 2, tzinfo=timezone.utc)


def test_default_options_keep_candidates_without_appearances():
    options = PipelineOptions()
    assert options.min_appearances == 0
    assert options.max_appearances is None

    pipeline, _ = make_pipeline(options=PipelineOptions(batch_delay=0))
    result = asyncio.run(pipeline.run([Candidate(name="New Voice")], "AI"))

    assert [e.candidate.name for e in result.filtered] == ["New Voice"]
