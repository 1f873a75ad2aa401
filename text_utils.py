"""Text utilities for Guest Scout.

Shared text processing functions used across the codebase: name
normalization, audience-count parsing from search snippets, keyword
matching.
"""

import html
import re
from typing import Iterable, Optional

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")
_WHITESPACE_RE = re.compile(r"\s+")
_TAG_RE = re.compile(r"<[^>]+>")

_SUFFIX_MULTIPLIERS = {"k": 1_000, "m": 1_000_000, "b": 1_000_000_000}

# A number with optional thousands separators/decimals and a K/M/B suffix
_COUNT_RE = re.compile(r"(\d+(?:[.,]\d+)*)\+?\s?([kmb])?(?![a-z])", re.IGNORECASE)

_FOLLOWER_RE = re.compile(
    r"(\d+(?:[.,]\d+)*\+?\s?[kmb]?)\s*(?:followers|connections|subscribers)\b",
    re.IGNORECASE,
)

_ENGAGEMENT_RE = re.compile(r"(\d+(?:\.\d+)?)\s*%\s*engagement", re.IGNORECASE)


def normalize_name(value: str) -> str:
    """Lowercase and strip every non-alphanumeric character."""
    if not value:
        return ""
    return _NON_ALNUM_RE.sub("", value.lower())


def normalize_lookup_name(value: str) -> str:
    """Lowercase, trim and collapse internal whitespace.

    Used for keys that must stay human-readable, e.g. the known-figures
    table ("elon musk").
    """
    if not value:
        return ""
    return _WHITESPACE_RE.sub(" ", value.strip().lower())


def parse_follower_count(text: str) -> Optional[int]:
    """Parse a leading audience count such as "1.5M Followers" or "800K".

    Returns:
        The count as an int, or None if the text does not start with a
        parseable number.
    """
    if not text:
        return None
    match = _COUNT_RE.match(text.strip())
    if not match:
        return None

    digits, suffix = match.group(1), match.group(2)
    try:
        value = float(digits.replace(",", ""))
    except ValueError:
        return None

    if suffix:
        value *= _SUFFIX_MULTIPLIERS[suffix.lower()]
    return int(round(value))


def extract_follower_count(snippet: str) -> Optional[int]:
    """Find the first "<count> followers|connections|subscribers" in a snippet."""
    if not snippet:
        return None
    match = _FOLLOWER_RE.search(snippet)
    if not match:
        return None
    return parse_follower_count(match.group(1))


def extract_engagement_rate(snippet: str) -> Optional[float]:
    """Find "<n>% engagement" in a snippet and return it as a fraction."""
    if not snippet:
        return None
    match = _ENGAGEMENT_RE.search(snippet)
    if not match:
        return None
    return float(match.group(1)) / 100


def strip_html(text: str) -> str:
    """Remove markup (e.g. search-match spans) and unescape entities."""
    if not text:
        return ""
    return html.unescape(_TAG_RE.sub("", text))


def find_keywords(text: str, keywords: Iterable[str]) -> list[str]:
    """Return the keywords that occur in ``text`` (case-insensitive substring)."""
    if not text:
        return []
    lowered = text.lower()
    return [kw for kw in keywords if kw.lower() in lowered]


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    """True if any keyword occurs in ``text`` (case-insensitive substring)."""
    if not text:
        return False
    lowered = text.lower()
    return any(kw.lower() in lowered for kw in keywords)
