"""URL validation and parsing utilities.

Centralized handling of social profile URLs (format validation and
normalization) and of result-link domains (news-source matching). No
network requests are made here.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional
from urllib.parse import urlparse

from models import SocialHandles

logger = logging.getLogger(__name__)

LINKEDIN_URL_RE = re.compile(
    r"^https://(?:www\.)?linkedin\.com/(?:in|company)/[\w-]+/?$"
)
TWITTER_URL_RE = re.compile(r"^https://(?:www\.)?(?:twitter\.com|x\.com)/[\w-]+/?$")
INSTAGRAM_URL_RE = re.compile(r"^https://(?:www\.)?instagram\.com/[\w.-]+/?$")

PLATFORM_DOMAINS: dict[str, tuple[str, ...]] = {
    "linkedin": ("linkedin.com",),
    "twitter": ("twitter.com", "x.com"),
    "instagram": ("instagram.com",),
}

_PLATFORM_PATTERNS = {
    "linkedin": LINKEDIN_URL_RE,
    "twitter": TWITTER_URL_RE,
    "instagram": INSTAGRAM_URL_RE,
}


@dataclass(frozen=True)
class UrlValidation:
    """Outcome of validating a social profile URL."""

    is_valid: bool
    normalized_url: Optional[str] = None
    platform: Optional[str] = None
    error: Optional[str] = None


def get_domain(url: str) -> str:
    """Return the lowercased host of a URL without a leading ``www.``."""
    if not url:
        return ""
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return ""
    host = host.lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def domain_matches(url: str, domains: Iterable[str]) -> bool:
    """True if the URL's host is one of ``domains`` or a subdomain of one."""
    host = get_domain(url)
    if not host:
        return False
    return any(host == d or host.endswith("." + d) for d in domains)


def get_platform(url: str) -> Optional[str]:
    """Determine the social platform of a URL."""
    host = get_domain(url)
    for platform, domains in PLATFORM_DOMAINS.items():
        if host in domains:
            return platform
    return None


def normalize_linkedin_url(url: str) -> str:
    """Rewrite a LinkedIn URL to ``https://linkedin.com/<path>``."""
    try:
        path = urlparse(url).path.strip("/")
    except ValueError:
        return url
    return f"https://linkedin.com/{path}"


def validate_and_normalize_url(url: Optional[str]) -> UrlValidation:
    """
    Validate a social profile URL's format and normalize it.

    Args:
        url: LinkedIn, Twitter/X or Instagram profile URL

    Returns:
        UrlValidation with the normalized URL when valid
    """
    if not url:
        return UrlValidation(is_valid=False, error="URL is required")

    url = url.strip()
    platform = get_platform(url)
    if not platform:
        return UrlValidation(is_valid=False, error="Invalid social media platform")

    if not _PLATFORM_PATTERNS[platform].match(url):
        return UrlValidation(
            is_valid=False, platform=platform, error=f"Invalid {platform} URL format"
        )

    normalized = normalize_linkedin_url(url) if platform == "linkedin" else url
    return UrlValidation(is_valid=True, normalized_url=normalized, platform=platform)


def normalize_twitter_handle(handle: Optional[str]) -> Optional[str]:
    """Reduce ``@name`` or a profile URL to the bare handle."""
    if not handle:
        return None
    handle = handle.strip()
    if get_platform(handle) == "twitter":
        handle = urlparse(handle).path.strip("/").split("/")[0]
    handle = handle.lstrip("@")
    return handle if re.fullmatch(r"\w{1,50}", handle) else None


def normalize_social_handles(handles: Optional[SocialHandles]) -> Optional[SocialHandles]:
    """Validate social pointers, dropping the ones that fail validation."""
    if handles is None:
        return None

    linkedin_url = None
    if handles.linkedin_url:
        result = validate_and_normalize_url(handles.linkedin_url)
        if result.is_valid and result.platform == "linkedin":
            linkedin_url = result.normalized_url
        else:
            logger.debug(f"Dropping invalid LinkedIn URL: {handles.linkedin_url}")

    twitter_handle = normalize_twitter_handle(handles.twitter_handle)
    if linkedin_url is None and twitter_handle is None:
        return None
    return SocialHandles(linkedin_url=linkedin_url, twitter_handle=twitter_handle)
