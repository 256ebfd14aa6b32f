"""
Result Scraper
Extracts Shodan result cards from rendered search-page HTML.

Shodan runs UI experiments, so every field is located through an ordered
``SelectorChain``: the first selector that matches wins.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from bs4 import BeautifulSoup, Tag

from .utils import absolute_url, clean_text

logger = logging.getLogger(__name__)

_BS_PARSER = "lxml"


@dataclass
class ResultRecord:
    """
    One search hit.  Absent fields are None, never empty strings or lists.
    """
    title: Optional[str] = None
    title_url: Optional[str] = None
    timestamp: Optional[str] = None
    hostnames: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    banner: Optional[str] = None

    @property
    def is_noise(self) -> bool:
        """Cards with neither a title nor a banner carry no information."""
        return self.title is None and self.banner is None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON export."""
        return {
            'title': self.title,
            'title_url': self.title_url,
            'timestamp': self.timestamp,
            'hostnames': self.hostnames,
            'tags': self.tags,
            'banner': self.banner,
        }


class SelectorChain:
    """Ordered list of CSS selectors evaluated until one matches.

    Each entry may itself be a selector group (``"a, b"``); within a group
    document order applies, across entries priority order applies.
    """

    def __init__(self, *selectors: str):
        if not selectors:
            raise ValueError("SelectorChain needs at least one selector")
        self.selectors: Sequence[str] = selectors

    def first(self, root: Tag) -> Optional[Tag]:
        for selector in self.selectors:
            el = root.select_one(selector)
            if el is not None:
                return el
        return None

    def all(self, root: Tag) -> List[Tag]:
        for selector in self.selectors:
            found = root.select(selector)
            if found:
                return found
        return []

    def __repr__(self) -> str:
        return f"SelectorChain({', '.join(repr(s) for s in self.selectors)})"


# ---------------------------------------------------------------------------
# Selector banks
# ---------------------------------------------------------------------------

# Any of these on the page means results rendered (used for waiting)
RESULT_CONTAINER_SELECTOR = 'div.result, .search-result, .banner'

CARD_SELECTORS = SelectorChain('.result', '.search-result, .banner')

TITLE_SELECTORS = SelectorChain(
    '.heading a.title',
    '.heading a.title.text-dark',
    'a.title',
    'a',                                # any link in the card
)
TIMESTAMP_SELECTORS = SelectorChain('.timestamp, time')
HOSTNAME_SELECTORS = SelectorChain('.result-hostnames li, li.hostnames, .hostnames li')
TAG_SELECTORS = SelectorChain('.result-details a.tag, a.tag, .tags a')
BANNER_SELECTORS = SelectorChain('.banner-data pre, pre.banner, pre')


def _text(el: Optional[Tag]) -> Optional[str]:
    if el is None:
        return None
    return clean_text(el.get_text())


def _text_list(elements: List[Tag]) -> Optional[List[str]]:
    # Blank entries are kept as "" to match the DOM's textContent.trim()
    values = [el.get_text().strip() for el in elements]
    return values or None


class ResultExtractor:
    """
    Turns one rendered results page into ``ResultRecord`` objects.
    """

    def __init__(
        self,
        cards: SelectorChain = CARD_SELECTORS,
        title: SelectorChain = TITLE_SELECTORS,
        timestamp: SelectorChain = TIMESTAMP_SELECTORS,
        hostnames: SelectorChain = HOSTNAME_SELECTORS,
        tags: SelectorChain = TAG_SELECTORS,
        banner: SelectorChain = BANNER_SELECTORS,
    ):
        self.cards = cards
        self.title = title
        self.timestamp = timestamp
        self.hostnames = hostnames
        self.tags = tags
        self.banner = banner

    def extract(self, html: str, page_url: str = "") -> List[ResultRecord]:
        """
        Extract result records from HTML.

        Args:
            html: Rendered page HTML (``page.content()``)
            page_url: URL of the page, used to resolve relative links

        Returns:
            Records in document order, noise cards removed
        """
        soup = BeautifulSoup(html, _BS_PARSER)
        cards = self.cards.all(soup)

        records = []
        dropped = 0
        for card in cards:
            record = self.extract_card(card, page_url)
            if record.is_noise:
                dropped += 1
                continue
            records.append(record)

        logger.info(
            f"[SCRAPE] {page_url[:70] or '<page>'} - cards={len(cards)}, "
            f"kept={len(records)}, dropped={dropped}"
        )
        return records

    def extract_card(self, card: Tag, page_url: str = "") -> ResultRecord:
        """Extract one card; never filters."""
        title_link = self.title.first(card)
        href = title_link.get('href') if title_link is not None else None
        banner = self.banner.first(card)

        return ResultRecord(
            title=_text(title_link),
            title_url=absolute_url(href, page_url) if href is not None else None,
            timestamp=_text(self.timestamp.first(card)),
            hostnames=_text_list(self.hostnames.all(card)),
            tags=_text_list(self.tags.all(card)),
            banner=_text(banner),
        )
