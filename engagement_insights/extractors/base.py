"""
Ordered extractor strategies.

A strategy is a plain function over parsed HTML that returns a value or
``None``. A chain runs its strategies in order and keeps the first hit.
"""
import logging
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar
from bs4 import BeautifulSoup, Tag
from engagement_insights.utils.text import collapse_whitespace

logger = logging.getLogger(__name__)

T = TypeVar('T')
Strategy = Callable[..., Optional[T]]


def parse_html(content: str) -> BeautifulSoup:
    return BeautifulSoup(content or "", 'html.parser')


def text_of(elem: Optional[Tag]) -> str:
    """Whitespace-collapsed text of an element, '' for None."""
    if elem is None:
        return ''
    return collapse_whitespace(elem.get_text(" ", strip=True))


def first_text(root: Tag, selectors: Sequence[str]) -> str:
    """Text of the first selector that matches a non-empty element."""
    for selector in selectors:
        elem = root.select_one(selector)
        text = text_of(elem)
        if text:
            return text
    return ''


class StrategyChain(Generic[T]):
    """Chain-of-responsibility over extractor strategies."""

    def __init__(self, name: str, strategies: List[Strategy]):
        self.name = name
        self.strategies = list(strategies)

    def run(self, *args: Any) -> Optional[T]:
        for strategy in self.strategies:
            result = strategy(*args)
            if result:
                logger.debug(f"{self.name}: matched by {strategy.__name__}")
                return result
        logger.debug(f"{self.name}: no strategy matched")
        return None

    __call__ = run
