"""
Profile Matcher Engine

Decides whether two partial candidate records discovered through different
sources (LLM suggestions, LinkedIn search, Twitter search, ...) describe the
same person, and merges them so each person is evaluated and listed once.

Matching rules, any one is sufficient:
- Exact normalized-name equality
- Same last name AND similar first names (edit distance within tolerance)
- Both records carry an organization whose normalized form is identical

Name tolerance scales with length: a match allows at most
floor(0.3 * longest) edits, so short names need a near-exact match while
long names absorb more spelling variation.

Merging keeps the richer value per field, unions expertise tags and takes
the maximum of each numeric metric. Different sources observe different
slices of a person's audience, so the best-known reach wins over an average.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional, TypeVar

from models import Candidate, CandidateMetrics, PastAppearance, SocialHandles
from text_utils import normalize_name

logger = logging.getLogger(__name__)

NAME_TOLERANCE_RATIO = 0.3

N = TypeVar("N", int, float)


# =============================================================================
# NAME COMPARISON
# =============================================================================


def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance (insert, delete, substitute all cost 1)."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(
                min(
                    current[j - 1] + 1,  # insertion
                    previous[j] + 1,  # deletion
                    previous[j - 1] + cost,  # substitution
                )
            )
        previous = current
    return previous[-1]


def names_similar(a: str, b: str) -> bool:
    """True if the normalized names are within the length-scaled edit tolerance.

    >>> names_similar("Jon", "John")
    True
    >>> names_similar("Jon", "Jonathan")
    False
    """
    norm_a, norm_b = normalize_name(a), normalize_name(b)
    max_distance = int(max(len(norm_a), len(norm_b)) * NAME_TOLERANCE_RATIO)
    return levenshtein_distance(norm_a, norm_b) <= max_distance


def split_name(full_name: str) -> tuple[str, str]:
    """Split a display name into normalized (first, last) parts.

    The last whitespace-separated token is the last name; everything before
    it is the first name.
    """
    parts = [normalize_name(p) for p in (full_name or "").split()]
    parts = [p for p in parts if p]
    if not parts:
        return "", ""
    return "".join(parts[:-1]), parts[-1]


def profiles_match(p1: Candidate, p2: Candidate) -> bool:
    """Decide whether two records describe the same person."""
    name1, name2 = normalize_name(p1.name), normalize_name(p2.name)
    if name1 and name1 == name2:
        return True

    first1, last1 = split_name(p1.name)
    first2, last2 = split_name(p2.name)
    if last1 and last1 == last2 and names_similar(first1, first2):
        return True

    company1, company2 = normalize_name(p1.company), normalize_name(p2.company)
    if company1 and company1 == company2:
        return True

    return False


# =============================================================================
# MERGING
# =============================================================================


def _richer_text(a: str, b: str) -> str:
    """Prefer the longer non-empty value; ties keep the first."""
    a, b = (a or "").strip(), (b or "").strip()
    return b if len(b) > len(a) else a


def _max_optional(a: Optional[N], b: Optional[N]) -> Optional[N]:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _latest(a: Optional[datetime], b: Optional[datetime]) -> Optional[datetime]:
    """Later of two timestamps; naive values are taken as UTC."""
    if a is None:
        return b
    if b is None:
        return a
    return a if _as_utc(a) >= _as_utc(b) else b


def _union_tags(*groups: Iterable[str]) -> tuple[str, ...]:
    seen: set[str] = set()
    merged: list[str] = []
    for group in groups:
        for tag in group:
            key = tag.strip().lower()
            if key and key not in seen:
                seen.add(key)
                merged.append(tag.strip())
    return tuple(merged)


def _union_appearances(
    a: Iterable[PastAppearance], b: Iterable[PastAppearance]
) -> tuple[PastAppearance, ...]:
    seen: set[str] = set()
    merged: list[PastAppearance] = []
    for appearance in [*a, *b]:
        key = appearance.url or f"{appearance.platform}:{appearance.title}".lower()
        if key not in seen:
            seen.add(key)
            merged.append(appearance)
    return tuple(merged)


def _merge_handles(
    a: Optional[SocialHandles], b: Optional[SocialHandles]
) -> Optional[SocialHandles]:
    if a is None:
        return b
    if b is None:
        return a
    return SocialHandles(
        linkedin_url=a.linkedin_url or b.linkedin_url,
        twitter_handle=a.twitter_handle or b.twitter_handle,
    )


def merge_profiles(p1: Candidate, p2: Candidate) -> Candidate:
    """Combine two records of the same person into a new Candidate."""
    metrics = CandidateMetrics(
        followers=_max_optional(p1.metrics.followers, p2.metrics.followers),
        engagement_rate=_max_optional(
            p1.metrics.engagement_rate, p2.metrics.engagement_rate
        ),
        recent_post_count=_max_optional(
            p1.metrics.recent_post_count, p2.metrics.recent_post_count
        ),
    )
    sources = [s for s in (p1.source, p2.source) if s]

    return Candidate(
        name=_richer_text(p1.name, p2.name),
        title=_richer_text(p1.title, p2.title),
        company=_richer_text(p1.company, p2.company),
        bio=_richer_text(p1.bio, p2.bio),
        expertise=_union_tags(p1.expertise, p2.expertise),
        social_handles=_merge_handles(p1.social_handles, p2.social_handles),
        metrics=metrics,
        past_appearances=_union_appearances(p1.past_appearances, p2.past_appearances),
        last_active=_latest(p1.last_active, p2.last_active),
        source="+".join(dict.fromkeys(sources)),
    )


def dedupe_candidates(candidates: Iterable[Candidate]) -> list[Candidate]:
    """
    Collapse records describing the same person.

    Each record is merged into the first earlier group it matches; the
    output keeps first-seen order.
    """
    groups: list[Candidate] = []
    merged_count = 0
    for candidate in candidates:
        for index, existing in enumerate(groups):
            if profiles_match(existing, candidate):
                groups[index] = merge_profiles(existing, candidate)
                merged_count += 1
                break
        else:
            groups.append(candidate)

    if merged_count:
        logger.info(f"Merged {merged_count} duplicate profile fragments")
    return groups
