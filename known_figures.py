"""Static table of globally recognizable people.

Names in this table are excluded from guest suggestions without any
external lookup. The built-in seed covers the categories the offline
generator produces; a regenerated list can be loaded from JSON:

    [{"name": "Elon Musk", "category": "Tech Leaders and Entrepreneurs"}, ...]

The resulting mapping is keyed by lowercased full name and is read-only.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

from error_handling import ResponseParseError
from text_utils import normalize_lookup_name

logger = logging.getLogger(__name__)

TECH = "Tech Leaders and Entrepreneurs"
BUSINESS = "Business and Finance"
MEDIA = "Media and Entertainment"
SCIENCE = "Science and Innovation"
INFLUENCERS = "Social Media Influencers"


@dataclass(frozen=True)
class KnownFigure:
    name: str
    category: str
    reason: str = ""

    def exclusion_reason(self) -> str:
        return self.reason or f"Well-known public figure ({self.category})"


_SEED: dict[str, tuple[str, ...]] = {
    TECH: (
        "Elon Musk",
        "Mark Zuckerberg",
        "Jeff Bezos",
        "Bill Gates",
        "Tim Cook",
        "Satya Nadella",
        "Sundar Pichai",
        "Larry Page",
        "Sergey Brin",
        "Jensen Huang",
        "Sam Altman",
        "Jack Dorsey",
        "Larry Ellison",
        "Michael Dell",
        "Reed Hastings",
        "Marc Benioff",
        "Steve Wozniak",
        "Sheryl Sandberg",
        "Susan Wojcicki",
        "Brian Chesky",
    ),
    BUSINESS: (
        "Warren Buffett",
        "Jamie Dimon",
        "Charlie Munger",
        "Ray Dalio",
        "Larry Fink",
        "Mary Barra",
        "Richard Branson",
        "Jack Ma",
        "Bernard Arnault",
        "Carlos Slim",
        "Michael Bloomberg",
        "Indra Nooyi",
        "Howard Schultz",
        "Mukesh Ambani",
    ),
    MEDIA: (
        "Oprah Winfrey",
        "Taylor Swift",
        "Beyonce",
        "Tom Hanks",
        "Leonardo DiCaprio",
        "Dwayne Johnson",
        "Kim Kardashian",
        "Steven Spielberg",
        "Ellen DeGeneres",
        "Jimmy Fallon",
        "Rihanna",
        "Lady Gaga",
        "Joe Rogan",
    ),
    SCIENCE: (
        "Neil deGrasse Tyson",
        "Jane Goodall",
        "Michio Kaku",
        "Brian Cox",
        "Bill Nye",
        "Jennifer Doudna",
        "Anthony Fauci",
        "David Attenborough",
    ),
    INFLUENCERS: (
        "MrBeast",
        "Cristiano Ronaldo",
        "Selena Gomez",
        "Kylie Jenner",
        "PewDiePie",
        "Charli D'Amelio",
        "Khaby Lame",
        "Addison Rae",
    ),
}


def _seed_figures() -> dict[str, KnownFigure]:
    table: dict[str, KnownFigure] = {}
    for category, names in _SEED.items():
        for name in names:
            table[normalize_lookup_name(name)] = KnownFigure(name=name, category=category)
    return table


def load_known_figures(path: Optional[Path | str] = None) -> Mapping[str, KnownFigure]:
    """
    Load the known-figures table.

    Args:
        path: Optional JSON file produced by the offline generator. When
            omitted, the built-in seed table is returned.

    Returns:
        Read-only mapping from lowercased full name to KnownFigure

    Raises:
        ResponseParseError: If the file is not a JSON list of named entries
    """
    if path is None:
        return MappingProxyType(_seed_figures())

    raw = Path(path).read_text(encoding="utf-8")
    try:
        entries = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ResponseParseError(
            f"Known-figures file {path} is not valid JSON: {e}", raw_excerpt=raw[:200]
        ) from e
    if not isinstance(entries, list):
        raise ResponseParseError(f"Known-figures file {path} must contain a JSON list")

    table: dict[str, KnownFigure] = {}
    for entry in entries:
        if isinstance(entry, str):
            entry = {"name": entry}
        if not isinstance(entry, dict) or not entry.get("name"):
            logger.debug(f"Skipping malformed known-figure entry: {entry!r}")
            continue
        name = str(entry["name"])
        table[normalize_lookup_name(name)] = KnownFigure(
            name=name,
            category=str(entry.get("category") or "Well-known figure"),
            reason=str(entry.get("reason") or ""),
        )

    logger.info(f"Loaded {len(table)} known figures from {path}")
    return MappingProxyType(table)
