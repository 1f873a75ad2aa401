"""External search providers for Guest Scout.

The classifier and the metrics collector talk to two kinds of providers:

- WebSearchProvider: general web search returning ranked {title, link, snippet}
  items plus the provider's estimated total result count
- ReferenceProvider: encyclopedic lookup returning the top matching article

Concrete clients wrap the Google Custom Search JSON API and the MediaWiki
search API over aiohttp. Payload parsing is kept in pure functions so it can
be tested without a network. Null providers are used when the pipeline runs
offline.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import aiohttp

from error_handling import (
    ExternalServiceError,
    QuotaExceededError,
    ResponseParseError,
    ServiceTimeoutError,
)
from text_utils import strip_html

logger = logging.getLogger(__name__)

GOOGLE_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"
WIKIPEDIA_API_URL = "https://en.wikipedia.org/w/api.php"
USER_AGENT = "GuestScout/1.0 (podcast guest research)"

# The Custom Search API returns at most 10 results per request
MAX_RESULTS_PER_REQUEST = 10


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class SearchItem:
    """One ranked web search result."""

    title: str
    link: str
    snippet: str = ""


@dataclass(frozen=True)
class SearchResponse:
    """Ranked results plus the provider's estimated total."""

    items: tuple[SearchItem, ...] = ()
    total_results: int = 0

    @classmethod
    def empty(cls) -> "SearchResponse":
        return cls()


@dataclass(frozen=True)
class ReferenceArticle:
    """Top encyclopedic match for a name."""

    title: str
    snippet: str
    wordcount: int


class WebSearchProvider(Protocol):
    async def search(
        self,
        query: str,
        num_results: int = 10,
        date_restrict: Optional[str] = None,
        site_restrict: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> SearchResponse: ...


class ReferenceProvider(Protocol):
    async def search(self, name: str) -> Optional[ReferenceArticle]: ...


# =============================================================================
# Payload Parsing
# =============================================================================


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def parse_google_payload(payload: dict[str, Any]) -> SearchResponse:
    """Convert a Custom Search JSON payload into a SearchResponse.

    Items without a link are skipped; a missing or malformed total counts
    as zero.
    """
    items: list[SearchItem] = []
    for raw in payload.get("items") or []:
        if not isinstance(raw, dict) or not raw.get("link"):
            continue
        items.append(
            SearchItem(
                title=str(raw.get("title") or ""),
                link=str(raw["link"]),
                snippet=str(raw.get("snippet") or ""),
            )
        )

    info = payload.get("searchInformation") or {}
    return SearchResponse(items=tuple(items), total_results=_to_int(info.get("totalResults")))


def parse_wikipedia_payload(payload: dict[str, Any]) -> Optional[ReferenceArticle]:
    """Return the top article from a MediaWiki ``list=search`` payload."""
    results = (payload.get("query") or {}).get("search") or []
    if not results or not isinstance(results[0], dict):
        return None
    top = results[0]
    return ReferenceArticle(
        title=str(top.get("title") or ""),
        snippet=strip_html(str(top.get("snippet") or "")),
        wordcount=_to_int(top.get("wordcount")),
    )


def _is_quota_error(status: int, body: str) -> bool:
    if status == 429:
        return True
    lowered = body.lower()
    return status == 403 and ("quota" in lowered or "ratelimitexceeded" in lowered)


# =============================================================================
# HTTP Base
# =============================================================================


class _JSONHTTPProvider:
    """Shared aiohttp session handling and error mapping."""

    service_name = "http"

    def __init__(
        self,
        timeout: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"User-Agent": USER_AGENT},
            )
            self._owns_session = True
        return self._session

    async def _get_json(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        session = await self._get_session()
        try:
            async with session.get(url, params=params) as response:
                body = await response.text()
                if _is_quota_error(response.status, body):
                    retry_after = response.headers.get("Retry-After")
                    raise QuotaExceededError(
                        f"{self.service_name} quota exceeded",
                        service=self.service_name,
                        status=response.status,
                        retry_after=float(retry_after)
                        if retry_after and retry_after.isdigit()
                        else None,
                    )
                if not 200 <= response.status < 300:
                    raise ExternalServiceError(
                        f"{self.service_name} returned HTTP {response.status}",
                        service=self.service_name,
                        status=response.status,
                    )
        except asyncio.TimeoutError as e:
            raise ServiceTimeoutError(
                f"{self.service_name} timed out after {self.timeout}s",
                service=self.service_name,
                timeout_duration=self.timeout,
            ) from e
        except aiohttp.ClientError as e:
            raise ExternalServiceError(
                f"{self.service_name} request failed: {e}", service=self.service_name
            ) from e

        try:
            payload = json.loads(body)
        except json.JSONDecodeError as e:
            raise ResponseParseError(
                f"{self.service_name} returned invalid JSON", raw_excerpt=body[:200]
            ) from e
        if not isinstance(payload, dict):
            raise ResponseParseError(
                f"{self.service_name} returned an unexpected payload",
                raw_excerpt=body[:200],
            )
        return payload

    async def close(self) -> None:
        """Close the HTTP session if this provider created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


# =============================================================================
# Concrete Providers
# =============================================================================


class GoogleSearchClient(_JSONHTTPProvider):
    """Google Custom Search JSON API client."""

    service_name = "google"

    def __init__(
        self,
        api_key: str,
        search_engine_id: str,
        timeout: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        super().__init__(timeout=timeout, session=session)
        self.api_key = api_key
        self.search_engine_id = search_engine_id

    async def search(
        self,
        query: str,
        num_results: int = 10,
        date_restrict: Optional[str] = None,
        site_restrict: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> SearchResponse:
        """Run a web search.

        Args:
            query: Search query
            num_results: Results wanted (capped at 10 by the API)
            date_restrict: e.g. ``y1`` for the last year
            site_restrict: Restrict results to one site
            sort: e.g. ``date``

        Raises:
            QuotaExceededError, ServiceTimeoutError, ExternalServiceError
        """
        params: dict[str, Any] = {
            "key": self.api_key,
            "cx": self.search_engine_id,
            "q": query,
            "num": max(1, min(num_results, MAX_RESULTS_PER_REQUEST)),
        }
        if date_restrict:
            params["dateRestrict"] = date_restrict
        if site_restrict:
            params["siteSearch"] = site_restrict
        if sort:
            params["sort"] = sort

        payload = await self._get_json(GOOGLE_SEARCH_URL, params)
        response = parse_google_payload(payload)
        logger.debug(
            f"Search '{query}': {len(response.items)} items, "
            f"{response.total_results} total"
        )
        return response


class WikipediaClient(_JSONHTTPProvider):
    """MediaWiki search API client."""

    service_name = "wikipedia"

    def __init__(
        self,
        endpoint: str = WIKIPEDIA_API_URL,
        timeout: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        super().__init__(timeout=timeout, session=session)
        self.endpoint = endpoint

    async def search(self, name: str) -> Optional[ReferenceArticle]:
        params = {
            "action": "query",
            "list": "search",
            "srsearch": name,
            "format": "json",
        }
        payload = await self._get_json(self.endpoint, params)
        return parse_wikipedia_payload(payload)


class NullSearchProvider:
    """Web search provider that never finds anything."""

    async def search(
        self,
        query: str,
        num_results: int = 10,
        date_restrict: Optional[str] = None,
        site_restrict: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> SearchResponse:
        return SearchResponse.empty()


class NullReferenceProvider:
    """Reference provider that never finds anything."""

    async def search(self, name: str) -> Optional[ReferenceArticle]:
        return None
