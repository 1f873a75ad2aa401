"""In-memory provider fakes shared by the test modules."""

import asyncio
from typing import Callable, Optional

from search_providers import ReferenceArticle, SearchItem, SearchResponse

SearchResponder = Callable[[str, Optional[str]], SearchResponse]


def search_response(*items: tuple[str, str, str], total: int = 0) -> SearchResponse:
    """Build a SearchResponse from (title, link, snippet) tuples."""
    return SearchResponse(
        items=tuple(SearchItem(title=t, link=l, snippet=s) for t, l, s in items),
        total_results=total,
    )


class FakeSearchProvider:
    """Web search fake that records calls and answers from a responder."""

    def __init__(
        self,
        responder: Optional[SearchResponder] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ) -> None:
        self.responder = responder
        self.error = error
        self.delay = delay
        self.calls: list[dict] = []

    async def search(
        self,
        query: str,
        num_results: int = 10,
        date_restrict: Optional[str] = None,
        site_restrict: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> SearchResponse:
        self.calls.append(
            {"query": query, "num_results": num_results, "date_restrict": date_restrict}
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.responder is None:
            return SearchResponse.empty()
        return self.responder(query, date_restrict)


class FakeReferenceProvider:
    """Reference fake keyed by the exact searched name."""

    def __init__(
        self,
        articles: Optional[dict[str, ReferenceArticle]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ) -> None:
        self.articles = articles or {}
        self.error = error
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def search(self, name: str) -> Optional[ReferenceArticle]:
        self.calls.append(name)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.error is not None:
                raise self.error
            return self.articles.get(name)
        finally:
            self.in_flight -= 1


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays and returns at once."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
