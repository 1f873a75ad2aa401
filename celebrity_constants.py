"""Heuristic keyword tables for Guest Scout.

Single source of truth for the curated word lists used by the celebrity
classifier and the guest scorer. Bump KEYWORD_TABLES_VERSION whenever a
table changes so cached decisions and calibration notes can be traced back
to the lists that produced them.

Usage:
    from celebrity_constants import (
        CELEBRITY_KEYWORDS,
        ACHIEVEMENT_KEYWORDS,
        QUALITY_NEWS_DOMAINS,
        get_related_terms,
    )
"""

import re

KEYWORD_TABLES_VERSION = "2024.1"

# =============================================================================
# Reference-presence check
# =============================================================================
# Roles and superlatives that mark an encyclopedia summary as describing a
# high-profile person. Only counted when the article is long.

CELEBRITY_KEYWORDS: tuple[str, ...] = (
    # Business roles
    "billionaire",
    "entrepreneur",
    "ceo",
    "founder",
    "executive",
    "philanthropist",
    "investor",
    "tech executive",
    "silicon valley",
    "startup founder",
    "serial entrepreneur",
    # Entertainment
    "actor",
    "actress",
    "musician",
    "singer",
    "celebrity",
    "star",
    "producer",
    "director",
    "artist",
    "performer",
    # Creators
    "influencer",
    "youtuber",
    "streamer",
    "content creator",
    "public figure",
    "media personality",
    # Superlatives
    "famous",
    "renowned",
    "notable",
    "prominent",
    "distinguished",
    "award-winning",
    "bestselling",
    "acclaimed",
    # Business-influencer personas
    "social media entrepreneur",
    "digital marketing guru",
    "business guru",
    "keynote speaker",
    "motivational speaker",
    "thought leader",
    "business influencer",
    "marketing influencer",
    "social media expert",
)

# Press, awards and programs that by themselves indicate major recognition.
ACHIEVEMENT_KEYWORDS: tuple[str, ...] = (
    "forbes",
    "time 100",
    "fortune 500",
    "grammy",
    "oscar",
    "emmy",
    "nobel",
    "pulitzer",
    "world record",
    "hall of fame",
    "bestselling author",
    "ted talk",
    "tedx",
    "keynote",
    "inc 500",
    "shark tank",
    "dragons den",
    "y combinator",
    "web summit",
    "sxsw",
    "social media week",
)

# =============================================================================
# Social-follower check
# =============================================================================

BUSINESS_INFLUENCER_KEYWORDS: tuple[str, ...] = (
    "entrepreneur",
    "founder",
    "ceo",
    "investor",
    "speaker",
    "author",
    "expert",
    "guru",
    "consultant",
    "advisor",
)

# Domain -> display name, in the order used to build the site-scoped query
SOCIAL_PLATFORM_DOMAINS: dict[str, str] = {
    "twitter.com": "Twitter/X",
    "x.com": "Twitter/X",
    "instagram.com": "Instagram",
    "linkedin.com": "LinkedIn",
    "youtube.com": "YouTube",
    "tiktok.com": "TikTok",
}

DEFAULT_SOCIAL_PLATFORM = "Social Media"

# =============================================================================
# News-coverage check
# =============================================================================

QUALITY_NEWS_DOMAINS = frozenset(
    {
        # Tech press
        "techcrunch.com",
        "wired.com",
        "theverge.com",
        "cnet.com",
        "venturebeat.com",
        "arstechnica.com",
        # Business press
        "forbes.com",
        "bloomberg.com",
        "reuters.com",
        "wsj.com",
        "ft.com",
        "cnbc.com",
        "businessinsider.com",
        # General news
        "nytimes.com",
        "washingtonpost.com",
        "theguardian.com",
        "bbc.com",
        "cnn.com",
        "apnews.com",
        # Entertainment
        "variety.com",
        "hollywoodreporter.com",
        "deadline.com",
        "billboard.com",
        "rollingstone.com",
    }
)

# Announcement-style verbs marking a "major news moment" headline
HEADLINE_KEYWORDS: tuple[str, ...] = (
    "announces",
    "launches",
    "reveals",
    "joins",
    "leads",
    "raises",
    "acquires",
    "wins",
    "receives",
    "appointed",
)

# =============================================================================
# Guest scorer
# =============================================================================

RELATED_TERMS: dict[str, tuple[str, ...]] = {
    "startup": (
        "entrepreneur",
        "founder",
        "venture",
        "seed",
        "series a",
        "startup",
        "innovation",
    ),
    "entrepreneurship": (
        "business",
        "founder",
        "ceo",
        "startup",
        "venture",
        "entrepreneurial",
    ),
    "technology": ("tech", "software", "digital", "innovation", "ai", "platform"),
    "marketing": ("growth", "brand", "digital marketing", "advertising", "content"),
    "leadership": ("management", "executive", "strategy", "ceo", "director"),
    "innovation": (
        "innovative",
        "disruption",
        "breakthrough",
        "cutting-edge",
        "pioneer",
    ),
}

LEADERSHIP_TITLE_RE = re.compile(r"CEO|Founder|Director|Head|Chief|Partner", re.IGNORECASE)
YEARS_EXPERIENCE_RE = re.compile(r"(\d+)\+?\s*years?", re.IGNORECASE)
CREDENTIALS_RE = re.compile(r"author|speaker|published|keynote", re.IGNORECASE)
RECOGNITION_RE = re.compile(r"award|featured|recognized|expert", re.IGNORECASE)

# Minimum follower counts per platform before a "Low follower count" flag
PLATFORM_FOLLOWER_FLOORS: dict[str, int] = {
    "linkedin": 500,
    "twitter": 1000,
}


def get_related_terms(topic: str) -> tuple[str, ...]:
    """Return the curated expansion list for a (lowercased) topic term."""
    return RELATED_TERMS.get(topic.strip().lower(), ())
