"""
Guest Evaluation Pipeline

Drives a list of raw candidates to a ranked, deduplicated, non-celebrity
result set:

    dedupe -> pre-filters -> batched [validate, metrics, classify, score]
           -> partition into filtered (sorted by score) and excluded

Each candidate passes through the stages in order. When a stage raises,
the single failure policy in error_handling decides whether the candidate
is retried, kept (possibly unscored) or excluded with a generic reason, so
one bad record never aborts the batch.
"""

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Iterable, Optional, Union

from async_utils import BatchProcessor, ProgressCallback
from celebrity_filter import CelebrityCheckSettings, CelebrityFilter
from config import Config
from error_handling import (
    Exclude,
    PipelineStage,
    Retry,
    StageFailureAction,
    on_stage_failure,
)
from guest_scorer import GuestScorer, is_qualified_guest
from models import (
    Candidate,
    ClassificationResult,
    EvaluatedCandidate,
    ExcludedCandidate,
    ScoreResult,
    SocialMetrics,
)
from pipeline_state import PipelineState, ProviderCallStats
from profile_matcher import dedupe_candidates
from search_providers import ReferenceProvider, WebSearchProvider
from social_metrics import SocialMetricCollector

logger = logging.getLogger(__name__)

BELOW_THRESHOLD_REASON = "Below quality thresholds"
MISSING_TOPICS_REASON = "Missing required topics"

Evaluation = Union[EvaluatedCandidate, ExcludedCandidate]


@dataclass
class PipelineOptions:
    """Per-run filtering options."""

    exclude_celebrities: bool = True
    min_appearances: int = 0
    max_appearances: Optional[int] = None
    required_topics: list[str] = field(default_factory=list)
    qualified_only: bool = False
    batch_size: int = 5
    batch_delay: float = 1.0

    @classmethod
    def from_config(cls, **overrides: Any) -> "PipelineOptions":
        options = cls(
            batch_size=Config.CELEBRITY_BATCH_SIZE,
            batch_delay=Config.BATCH_DELAY_SECONDS,
        )
        return replace(options, **overrides)


@dataclass
class PipelineSummary:
    """Aggregate outcome suitable for showing to an end user."""

    input_count: int = 0
    unique_count: int = 0
    evaluated: int = 0
    excluded: int = 0
    excluded_as_celebrity: int = 0
    unscored: int = 0
    reason_breakdown: dict[str, int] = field(default_factory=dict)
    search_unavailable: bool = False

    def describe(self) -> str:
        if self.search_unavailable:
            return (
                "Search service unavailable: celebrity checks used the "
                "known-figures list only."
            )
        message = (
            f"{self.evaluated} candidates evaluated, "
            f"{self.excluded_as_celebrity} excluded as celebrities"
        )
        if self.reason_breakdown:
            reasons = ", ".join(
                f"{reason}: {count}"
                for reason, count in sorted(self.reason_breakdown.items())
            )
            message += f" ({reasons})"
        filtered_out = self.excluded - self.excluded_as_celebrity
        if filtered_out:
            message += f", {filtered_out} excluded by filters"
        if self.unscored:
            message += f", {self.unscored} could not be scored"
        return message


@dataclass
class PipelineResult:
    filtered: list[EvaluatedCandidate]
    excluded: list[ExcludedCandidate]
    summary: PipelineSummary


class GuestPipeline:
    """Evaluates candidates for a topic with bounded, batched concurrency."""

    def __init__(
        self,
        state: PipelineState,
        celebrity_filter: CelebrityFilter,
        scorer: Optional[GuestScorer] = None,
        metrics_collector: Optional[SocialMetricCollector] = None,
        options: Optional[PipelineOptions] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.state = state
        self.celebrity_filter = celebrity_filter
        self.scorer = scorer or GuestScorer()
        self.metrics_collector = metrics_collector
        self.options = options or PipelineOptions()
        self._sleep = sleep

    @classmethod
    def create(
        cls,
        search_provider: WebSearchProvider,
        reference_provider: ReferenceProvider,
        state: Optional[PipelineState] = None,
        options: Optional[PipelineOptions] = None,
        collect_metrics: bool = True,
        settings: Optional[CelebrityCheckSettings] = None,
    ) -> "GuestPipeline":
        """Wire a pipeline from providers, sharing one state across components."""
        state = state or PipelineState()
        celebrity_filter = CelebrityFilter(
            state, search_provider, reference_provider, settings=settings
        )
        collector = (
            SocialMetricCollector(search_provider, state) if collect_metrics else None
        )
        return cls(
            state,
            celebrity_filter,
            metrics_collector=collector,
            options=options,
        )

    # -------------------------------------------------------------------------
    # Pre-filters
    # -------------------------------------------------------------------------

    def _pre_filter_reason(self, candidate: Candidate) -> Optional[str]:
        appearances = len(candidate.past_appearances)
        if appearances < self.options.min_appearances:
            return f"Fewer than {self.options.min_appearances} past appearances"
        if (
            self.options.max_appearances is not None
            and appearances > self.options.max_appearances
        ):
            return f"More than {self.options.max_appearances} past appearances"

        required = [t.lower() for t in self.options.required_topics if t.strip()]
        if required:
            tags = [tag.lower() for tag in candidate.expertise]
            if not any(topic in tag for topic in required for tag in tags):
                return MISSING_TOPICS_REASON
        return None

    # -------------------------------------------------------------------------
    # Per-candidate stages
    # -------------------------------------------------------------------------

    async def _run_stage(
        self,
        stage: PipelineStage,
        candidate: Candidate,
        func: Callable[[], Awaitable[Any]],
    ) -> tuple[Any, Optional[StageFailureAction]]:
        """Run one stage, consulting the failure policy when it raises."""
        attempt = 1
        while True:
            try:
                return await func(), None
            except Exception as e:
                action = on_stage_failure(stage, attempt)
                logger.warning(
                    f"{stage.value} stage failed for {candidate.name} "
                    f"(attempt {attempt}): {e}"
                )
                if isinstance(action, Retry):
                    await self._sleep(action.delay)
                    attempt += 1
                    continue
                return None, action

    async def _validate(self, candidate: Candidate) -> None:
        if not candidate.name or not candidate.name.strip():
            raise ValueError("Candidate has no name")
        if not candidate.identity:
            raise ValueError(f"Candidate name {candidate.name!r} has no letters or digits")

    async def _collect_metrics(self, candidate: Candidate) -> Optional[SocialMetrics]:
        if self.metrics_collector is None:
            return None
        return await self.metrics_collector.collect(candidate)

    async def _classify(self, candidate: Candidate) -> Optional[ClassificationResult]:
        if not self.options.exclude_celebrities:
            return None
        return await self.celebrity_filter.is_excluded(candidate.name)

    async def _score(
        self, candidate: Candidate, topic: str, metrics: Optional[SocialMetrics]
    ) -> ScoreResult:
        return self.scorer.score_guest(candidate, topic, metrics)

    async def evaluate(self, candidate: Candidate, topic: str) -> Evaluation:
        """Run one candidate through validate, metrics, classify and score."""
        _, failure = await self._run_stage(
            PipelineStage.VALIDATE, candidate, lambda: self._validate(candidate)
        )
        if isinstance(failure, Exclude):
            return ExcludedCandidate(candidate=candidate, reason=failure.reason)

        metrics, failure = await self._run_stage(
            PipelineStage.METRICS, candidate, lambda: self._collect_metrics(candidate)
        )
        if isinstance(failure, Exclude):
            return ExcludedCandidate(candidate=candidate, reason=failure.reason)

        classification, failure = await self._run_stage(
            PipelineStage.CLASSIFY, candidate, lambda: self._classify(candidate)
        )
        if isinstance(failure, Exclude):
            return ExcludedCandidate(candidate=candidate, reason=failure.reason)
        if classification is not None and classification.is_excluded:
            return ExcludedCandidate(
                candidate=candidate,
                reason=classification.reason or "",
                evidence=classification.evidence,
            )

        score, failure = await self._run_stage(
            PipelineStage.SCORE, candidate, lambda: self._score(candidate, topic, metrics)
        )
        if isinstance(failure, Exclude):
            return ExcludedCandidate(candidate=candidate, reason=failure.reason)

        qualified = score is not None and is_qualified_guest(score)
        if self.options.qualified_only and score is not None and not qualified:
            return ExcludedCandidate(
                candidate=candidate, reason=BELOW_THRESHOLD_REASON, score=score
            )

        return EvaluatedCandidate(
            candidate=candidate,
            score=score,
            classification=classification,
            qualified=qualified,
        )

    # -------------------------------------------------------------------------
    # Batch
    # -------------------------------------------------------------------------

    async def run(
        self,
        candidates: Iterable[Candidate],
        topic: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PipelineResult:
        """
        Evaluate candidates for a topic.

        Args:
            candidates: Raw candidate records, possibly with duplicates
            topic: Comma-separated topic terms used for scoring
            on_progress: Called with (processed, total) after each evaluation

        Returns:
            PipelineResult with filtered candidates sorted by descending
            score (unscored last), excluded candidates with reasons, and a
            summary
        """
        raw = list(candidates)
        unique = dedupe_candidates(raw)
        stats_before = replace(self.state.provider_stats)

        excluded: list[ExcludedCandidate] = []
        to_evaluate: list[Candidate] = []
        for candidate in unique:
            reason = self._pre_filter_reason(candidate)
            if reason:
                excluded.append(ExcludedCandidate(candidate=candidate, reason=reason))
            else:
                to_evaluate.append(candidate)

        processor = BatchProcessor(
            batch_size=self.options.batch_size,
            batch_delay=self.options.batch_delay,
            sleep=self._sleep,
        )
        outcomes = await processor.process(
            to_evaluate, lambda c: self.evaluate(c, topic), on_progress
        )

        filtered: list[EvaluatedCandidate] = []
        for outcome in outcomes:
            if not outcome.success:
                logger.error(
                    f"Unexpected failure evaluating {outcome.item.name}: {outcome.error}"
                )
                filtered.append(EvaluatedCandidate(candidate=outcome.item))
            elif isinstance(outcome.result, ExcludedCandidate):
                excluded.append(outcome.result)
            else:
                filtered.append(outcome.result)

        filtered.sort(key=lambda e: e.sort_key, reverse=True)

        summary = self._summarize(raw, unique, to_evaluate, filtered, excluded, stats_before)
        logger.info(summary.describe())
        return PipelineResult(filtered=filtered, excluded=excluded, summary=summary)

    def _summarize(
        self,
        raw: list[Candidate],
        unique: list[Candidate],
        evaluated: list[Candidate],
        filtered: list[EvaluatedCandidate],
        excluded: list[ExcludedCandidate],
        stats_before: ProviderCallStats,
    ) -> PipelineSummary:
        run_stats = self.state.provider_stats.since(stats_before)
        celebrity_sources = Counter(
            e.evidence.matched_source.value for e in excluded if e.evidence is not None
        )
        return PipelineSummary(
            input_count=len(raw),
            unique_count=len(unique),
            evaluated=len(evaluated),
            excluded=len(excluded),
            excluded_as_celebrity=sum(celebrity_sources.values()),
            unscored=sum(1 for e in filtered if e.score is None),
            reason_breakdown=dict(celebrity_sources),
            search_unavailable=run_stats.all_failed,
        )
