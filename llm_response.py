"""Parsing of LLM guest-suggestion responses.

Models asked for a JSON array often wrap it in prose or markdown fences.
Parsing tries, in order:
1. The whole response (after stripping code fences) as JSON
2. The first balanced ``[...]`` in the text that decodes to a list

Each suggestion object is then mapped to a Candidate.
"""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any, Optional

from error_handling import ResponseParseError
from models import Candidate, CandidateMetrics, PastAppearance, SocialHandles
from url_utils import normalize_social_handles

logger = logging.getLogger(__name__)

_CODE_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")

# Wrapper keys some models use instead of returning a bare array
_WRAPPER_KEYS = ("guests", "suggestions", "results", "items")


def _strip_code_fence(text: str) -> str:
    match = _CODE_FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text


def _unwrap(parsed: Any) -> Optional[list]:
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        for key in _WRAPPER_KEYS:
            if isinstance(parsed.get(key), list):
                return parsed[key]
    return None


def _balanced_array_end(text: str, start: int) -> Optional[int]:
    """Index just past the ``]`` closing the ``[`` at ``start``.

    Brackets inside JSON string literals are ignored.
    """
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return index + 1
    return None


def extract_json_array(text: str) -> Optional[list]:
    """Return the first balanced ``[...]`` in ``text`` that decodes to a list."""
    start = text.find("[")
    while start != -1:
        end = _balanced_array_end(text, start)
        if end is not None:
            try:
                parsed = json.loads(text[start:end])
            except json.JSONDecodeError:
                parsed = None
            if isinstance(parsed, list):
                return parsed
        start = text.find("[", start + 1)
    return None


def parse_guest_suggestions(response_text: str) -> list[dict[str, Any]]:
    """
    Parse an LLM response into a list of suggestion objects.

    Non-object entries in the array are dropped.

    Raises:
        ResponseParseError: If no JSON array can be recovered
    """
    if not response_text or not response_text.strip():
        raise ResponseParseError("Empty response from language model")

    text = _strip_code_fence(response_text.strip())
    suggestions: Optional[list] = None
    try:
        suggestions = _unwrap(json.loads(text))
    except json.JSONDecodeError:
        pass

    if suggestions is None:
        suggestions = extract_json_array(text)

    if suggestions is None:
        logger.error(f"Could not parse guest suggestions: {response_text[:200]!r}")
        raise ResponseParseError(
            "Failed to parse guest suggestions from AI response",
            raw_excerpt=response_text[:200],
        )

    objects = [s for s in suggestions if isinstance(s, dict)]
    if len(objects) != len(suggestions):
        logger.debug(f"Dropped {len(suggestions) - len(objects)} non-object suggestions")
    return objects


# =============================================================================
# Suggestion -> Candidate
# =============================================================================


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _tags(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list):
        return ()
    return tuple(t.strip() for t in value if isinstance(t, str) and t.strip())


def _number(value: Any, kind: type) -> Any:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return kind(value)
    except (TypeError, ValueError):
        return None


def _appearances(value: Any) -> tuple[PastAppearance, ...]:
    if not isinstance(value, list):
        return ()
    appearances: list[PastAppearance] = []
    for entry in value:
        if isinstance(entry, str) and entry.strip():
            appearances.append(PastAppearance(platform="podcast", title=entry.strip()))
        elif isinstance(entry, dict) and _text(entry.get("title")):
            appearances.append(
                PastAppearance(
                    platform=_text(entry.get("platform")) or "podcast",
                    title=_text(entry.get("title")),
                    url=_text(entry.get("url")),
                    date=_text(entry.get("date")) or None,
                )
            )
    return tuple(appearances)


def _timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    # Date-only and offset-less values are read as UTC
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def candidate_from_suggestion(data: dict[str, Any], source: str = "llm") -> Candidate:
    """
    Map a suggestion object (camelCase keys) to a Candidate.

    Invalid LinkedIn URLs are dropped and twitter handles lose their ``@``.

    Raises:
        ResponseParseError: If the suggestion has no name
    """
    name = _text(data.get("name"))
    if not name:
        raise ResponseParseError("Guest suggestion is missing a name")

    handles = normalize_social_handles(
        SocialHandles(
            linkedin_url=_text(data.get("linkedinUrl")) or None,
            twitter_handle=_text(data.get("twitterHandle")) or None,
        )
    )
    metrics = CandidateMetrics(
        followers=_number(data.get("followers"), int),
        engagement_rate=_number(data.get("engagementRate"), float),
        recent_post_count=_number(data.get("recentPostCount"), int),
    )
    appearances = data.get("pastAppearances")
    if appearances is None:
        appearances = data.get("pastPodcasts")

    return Candidate(
        name=name,
        title=_text(data.get("title")),
        company=_text(data.get("company")),
        bio=_text(data.get("bio")),
        expertise=_tags(data.get("expertise")),
        social_handles=handles,
        metrics=metrics,
        past_appearances=_appearances(appearances),
        last_active=_timestamp(data.get("lastActive")),
        source=source,
    )


def candidates_from_suggestions(
    suggestions: list[dict[str, Any]], source: str = "llm"
) -> list[Candidate]:
    """Map every suggestion with a name; nameless ones are skipped."""
    candidates: list[Candidate] = []
    for data in suggestions:
        try:
            candidates.append(candidate_from_suggestion(data, source))
        except ResponseParseError as e:
            logger.debug(f"Skipping suggestion: {e}")
    return candidates
