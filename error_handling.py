#!/usr/bin/env python3

"""
Standardized Error Handling for Guest Scout.

Provides the exception hierarchy used by the external providers and the
single failure policy the batch orchestrator consults when one stage of a
candidate's evaluation raises.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


# === EXCEPTION HIERARCHY ===


class GuestScoutError(Exception):
    """Base exception class for all Guest Scout errors."""

    pass


class RetryableError(GuestScoutError):
    """Exception that indicates the operation can be retried."""

    def __init__(
        self, message: str = "Operation can be retried", **kwargs: Any
    ) -> None:
        super().__init__(message)
        self.message = message
        self.retry_after: Optional[float] = kwargs.get("retry_after")
        self.context: dict[str, Any] = kwargs.get("context", {})


class FatalError(GuestScoutError):
    """Exception that indicates the operation should not be retried."""

    def __init__(self, message: str = "Fatal error occurred", **kwargs: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = kwargs.get("context", {})


class ExternalServiceError(RetryableError):
    """A call to an external provider failed (5xx, auth, bad payload)."""

    def __init__(
        self, message: str = "External service call failed", **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)
        self.service: str = kwargs.get("service", "unknown")
        self.status: Optional[int] = kwargs.get("status")


class QuotaExceededError(ExternalServiceError):
    """The provider rejected the call because its quota is used up."""

    def __init__(self, message: str = "Provider quota exceeded", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        if self.retry_after is None:
            self.retry_after = 60.0


class ServiceTimeoutError(ExternalServiceError):
    """The provider did not answer within the client timeout."""

    def __init__(self, message: str = "Provider timed out", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.timeout_duration: Optional[float] = kwargs.get("timeout_duration")


class ResponseParseError(FatalError):
    """A provider answered with a payload that could not be interpreted."""

    def __init__(self, message: str = "Could not parse response", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.raw_excerpt: str = kwargs.get("raw_excerpt", "")


class ConfigurationError(FatalError):
    """Exception for configuration errors."""

    def __init__(self, message: str = "Configuration error occurred", **kwargs: Any):
        super().__init__(message, **kwargs)
        self.problems: list[str] = kwargs.get("problems", [])


# === STAGE FAILURE POLICY ===


class PipelineStage(Enum):
    """Stages a single candidate passes through in the orchestrator."""

    VALIDATE = "validate"
    METRICS = "metrics"
    CLASSIFY = "classify"
    SCORE = "score"


@dataclass(frozen=True)
class Include:
    """Keep the candidate despite the failure."""


@dataclass(frozen=True)
class Exclude:
    """Drop the candidate into the excluded list with a reason."""

    reason: str


@dataclass(frozen=True)
class Retry:
    """Run the failed stage again after a delay."""

    delay: float = 0.5


StageFailureAction = Union[Include, Exclude, Retry]

PROCESSING_ERROR_REASON = "Processing error"
MAX_METRICS_ATTEMPTS = 2


def on_stage_failure(stage: PipelineStage, attempt: int = 1) -> StageFailureAction:
    """Decide what happens to a candidate whose evaluation stage raised.

    Infrastructure failures bias toward keeping the candidate: losing a
    valid guest silently is worse than showing one that was not fully
    checked.

    Args:
        stage: The stage that failed
        attempt: How many times the stage has been attempted so far

    Returns:
        Include, Exclude(reason) or Retry(delay)
    """
    if stage is PipelineStage.VALIDATE:
        return Exclude(PROCESSING_ERROR_REASON)
    if stage is PipelineStage.METRICS and attempt < MAX_METRICS_ATTEMPTS:
        return Retry(delay=0.5 * attempt)
    return Include()
