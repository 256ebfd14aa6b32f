"""
Search Executor
===============
Drives the shared page through a Shodan query and collects N result pages.

Steps per request (all under the session lock):
    1. Launch the browser if needed, then check-and-repair the login
    2. Open the advanced search page and type the query
    3. Click search and wait for the navigation it triggers
    4. Scrape page 1, then ``?page=2..N`` of the results URL

Any failure aborts the whole request; there is no partial result.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout

from .browser_session import BrowserSession
from .errors import NavigationError, SelectorTimeout
from .page_actions import expect_navigation, goto_settled, wait_for_selector
from .scraper import RESULT_CONTAINER_SELECTOR, ResultExtractor, ResultRecord
from .utils import set_query_param

logger = logging.getLogger(__name__)

QUERY_INPUT_SELECTOR = '#search-query'
SEARCH_BUTTON_SELECTOR = 'button.button-red[type="submit"]'

DEFAULT_PAGES = 2


def coerce_pages(value: Any, default: int = DEFAULT_PAGES, max_pages: Optional[int] = None) -> int:
    """Turn user input into a page count >= 1.

    Missing or non-numeric input falls back to *default*; zero and negative
    numbers become 1.  When *max_pages* is given, larger counts are clamped
    to it.
    """
    if value is None or value == "":
        pages = default
    else:
        try:
            pages = int(float(value))
        except (TypeError, ValueError, OverflowError):
            pages = default
    pages = max(1, pages)
    if max_pages is not None:
        pages = min(pages, max(1, max_pages))
    return pages


@dataclass
class SearchRequest:
    query: str
    pages: int = DEFAULT_PAGES

    def __post_init__(self):
        self.query = (self.query or "").strip()
        self.pages = coerce_pages(self.pages)


@dataclass
class SearchResponse:
    """Aggregated results; ``counts`` keeps the per-page breakdown."""
    query: str
    pages: int
    counts: List[int] = field(default_factory=list)
    results: List[ResultRecord] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.results)

    @classmethod
    def from_pages(cls, query: str, pages: int, by_page: List[List[ResultRecord]]) -> "SearchResponse":
        return cls(
            query=query,
            pages=pages,
            counts=[len(records) for records in by_page],
            results=[record for records in by_page for record in records],
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON export."""
        return {
            'query': self.query,
            'pages': self.pages,
            'counts': list(self.counts),
            'count': self.count,
            'results': [r.to_dict() for r in self.results],
        }


class SearchExecutor:
    """Runs searches on a ``BrowserSession``, one at a time.

    Usage::

        executor = SearchExecutor(session)
        response = await executor.search("product:nginx", pages=2)
    """

    def __init__(self, session: BrowserSession, extractor: Optional[ResultExtractor] = None):
        self.session = session
        self.config = session.config
        self.extractor = extractor or ResultExtractor()

    async def search(self, query: str, pages: Any = DEFAULT_PAGES) -> SearchResponse:
        """Run *query* and scrape *pages* result pages.

        The caller is responsible for rejecting blank queries.

        Raises:
            SelectorTimeout: search box or result cards never appeared.
            NavigationError: a navigation failed.
            ManualChallengeTimeout: login needed a human who never came.
        """
        pages = coerce_pages(pages, self.config.default_pages, self.config.max_pages)
        request = SearchRequest(query=query, pages=pages)
        return await self.session.lock.run(lambda: self._search_locked(request))

    async def _search_locked(self, request: SearchRequest) -> SearchResponse:
        start = time.monotonic()
        if not self.session.is_launched:
            await self.session.launch()
        page = self.session.page
        await self.session.login.ensure_logged_in(page)

        # ── Page 1: submit the query ─────────────────────────────────
        await self._submit_query(request.query)

        by_page: List[List[ResultRecord]] = []
        records = await self._scrape_current()
        if records is not None:
            by_page.append(records)

            # ── Pages 2..N ───────────────────────────────────────────
            results_url = page.url
            for page_no in range(2, request.pages + 1):
                url = set_query_param(results_url, "page", str(page_no))
                await goto_settled(page, url, self.config.navigation_timeout_ms)
                records = await self._scrape_current()
                if records is None:
                    break
                by_page.append(records)

        # Pages after an empty one (empty_on_timeout) count as zero
        by_page.extend([] for _ in range(request.pages - len(by_page)))
        response = SearchResponse.from_pages(request.query, request.pages, by_page)
        logger.info(
            f"[SEARCH] '{request.query[:60]}' - pages={request.pages}, "
            f"counts={response.counts}, total={response.count} "
            f"({time.monotonic() - start:.1f}s)"
        )
        return response

    async def _submit_query(self, query: str) -> None:
        page = self.session.page
        timeout_ms = self.config.selector_timeout_ms

        await goto_settled(page, self.config.advanced_search_url, self.config.navigation_timeout_ms)
        await wait_for_selector(page, QUERY_INPUT_SELECTOR, timeout_ms)
        try:
            await page.fill(QUERY_INPUT_SELECTOR, "")
            await page.type(QUERY_INPUT_SELECTOR, query, delay=self.config.query_type_delay_ms)
        except PlaywrightError as exc:
            raise NavigationError(page.url, f"could not type query: {exc}") from exc

        # Listener first, then click: the click can start navigating at once
        async with expect_navigation(page, self.config.navigation_timeout_ms):
            try:
                await page.click(SEARCH_BUTTON_SELECTOR, timeout=timeout_ms)
            except PlaywrightTimeout as exc:
                raise SelectorTimeout(SEARCH_BUTTON_SELECTOR, timeout_ms) from exc
        logger.debug(f"[SEARCH] Results URL: {page.url[:120]}")

    async def _scrape_current(self) -> Optional[List[ResultRecord]]:
        """Wait for result cards and extract them.

        Returns None (instead of raising) when no cards appear and
        ``empty_on_timeout`` is enabled.
        """
        page = self.session.page
        try:
            await wait_for_selector(page, RESULT_CONTAINER_SELECTOR, self.config.selector_timeout_ms)
        except SelectorTimeout:
            if self.config.empty_on_timeout:
                logger.info(f"[SEARCH] No result cards on {page.url[:80]} - treating as empty")
                return None
            raise
        html = await page.content()
        return self.extractor.extract(html, page.url)
