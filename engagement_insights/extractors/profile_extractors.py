"""
Top-card extractors for a profile page: name, headline and the
"current company" affordance.
"""
import re
from typing import Optional
from bs4 import BeautifulSoup
from engagement_insights.extractors.base import StrategyChain, first_text, text_of
from engagement_insights.utils.text import collapse_whitespace


NAME_SELECTORS = [
    'h1',
    '.top-card-layout__title',
    '.pv-top-card--list .t-24',
    '.profile-card__content h1',
    '.pv-top-card-v2-section__name',
    '.inline-show-more-text',
    '[data-anonymize="person-name"]',
]

HEADLINE_SELECTORS = [
    '.text-body-medium',
    '.top-card-layout__headline',
    '.pv-top-card--list .pv-top-card__headline',
    '.profile-card__headline',
    '.profile-headline',
    '.pv-top-card-v2-section__headline',
    '[data-anonymize="headline"]',
    '.mt2 .text-body-medium',
]

COMPANY_AFFORDANCE_SELECTORS = [
    'button[aria-label*="Current company"]',
    'button[aria-label*="company"]',
    '.pv-text-details__right-panel-item-link',
    '.pv-text-details__right-panel-item-text',
    '.inline-show-more-text--full',
]

GENERIC_TITLES = {'linkedin', 'join linkedin', 'sign up', 'welcome to linkedin', 'log in'}

_CURRENT_COMPANY_RE = re.compile(r'Current company:\s*([^.]+)', re.I)
_TITLE_RE = re.compile(r'^(.+?)\s*\|\s*(?:LinkedIn|Linked In)', re.I)


def _usable_name(text: str) -> Optional[str]:
    if text and 1 < len(text) < 100 and text.lower() not in GENERIC_TITLES:
        return text
    return None


def name_from_selectors(soup: BeautifulSoup) -> Optional[str]:
    return _usable_name(first_text(soup, NAME_SELECTORS))


def name_from_meta(soup: BeautifulSoup) -> Optional[str]:
    meta = soup.select_one('meta[property="og:title"]')
    if meta and meta.get('content'):
        return _usable_name(collapse_whitespace(meta['content'].split(' | ')[0]))
    return None


def name_from_title(soup: BeautifulSoup) -> Optional[str]:
    title = text_of(soup.title)
    match = _TITLE_RE.match(title)
    if match:
        return _usable_name(match.group(1).strip())
    return None


name_chain: StrategyChain[str] = StrategyChain(
    "profile name", [name_from_selectors, name_from_meta, name_from_title]
)


def extract_name(soup: BeautifulSoup) -> Optional[str]:
    """Canonical name: selectors, then og:title, then <title>."""
    return name_chain(soup)


def extract_headline(soup: BeautifulSoup) -> Optional[str]:
    """Raw headline text below the name."""
    for selector in HEADLINE_SELECTORS:
        for elem in soup.select(selector):
            text = text_of(elem)
            lowered = text.lower()
            if text and 'connections' not in lowered and 'followers' not in lowered:
                return text
    return None


def extract_current_company(soup: BeautifulSoup) -> Optional[str]:
    """Company from the dedicated "current company" affordance, if present."""
    for selector in COMPANY_AFFORDANCE_SELECTORS:
        elem = soup.select_one(selector)
        if elem is None:
            continue

        aria_label = collapse_whitespace(elem.get('aria-label', ''))
        match = _CURRENT_COMPANY_RE.search(aria_label)
        if match:
            return match.group(1).strip()

        text = text_of(elem)
        lowered = text.lower()
        if (text and text != 'flex' and 1 < len(text) < 50
                and 'linkedin' not in lowered and 'profile' not in lowered):
            return text

        if aria_label and len(aria_label) < 50 and 'linkedin' not in aria_label.lower():
            return aria_label
    return None
