"""
Experience-section extractors.

Used when the headline does not yield both a job title and a company. The
section is located first, then each strategy reads the first experience
entry and returns ``(job_title, company)`` or ``None``.
"""
import re
from typing import List, Optional, Tuple
from bs4 import BeautifulSoup, Tag
from engagement_insights.extractors.base import StrategyChain, text_of
from engagement_insights.utils.text import (
    collapse_whitespace,
    looks_like_company,
    looks_like_job_title,
)

Pair = Tuple[str, str]

ENTRY_SELECTOR = 'li, .pvs-entity, [data-view-name="profile-components"], .pvs-list__item, .pvs-entity--padded'

SECTION_CLASS_PATTERNS = [
    '.pvs-list__container',
    '.pvs-list',
    '[data-view-name="profile-components"]',
    '.pvs-entity',
    '.pvs-list__item',
    '.experience-item',
    '.profile-section-card',
]

DATE_RANGE_RE = re.compile(r'\d{4}\s*[-–—]\s*(\d{4}|Present|Current)', re.I)
DATE_SPLIT_SEPARATORS = ['\n', '·', '|', '•', ' - ', '–', '—']

# (pattern, job group, company group)
EXPERIENCE_PATTERNS = [
    (re.compile(r'(.+?)\s+at\s+(.+?)(?:\n|$)', re.I), 1, 2),
    (re.compile(r'(.+?)\s+@\s+(.+?)(?:\n|$)', re.I), 1, 2),
    (re.compile(r'(.+?)\s+·\s+(.+?)(?:\n|$)', re.I), 1, 2),
    (re.compile(r'(.+?)\s+[-–—]\s+(.+?)(?:\n|$)', re.I), 1, 2),
    (re.compile(r'(.+?)\s+\|\s+(.+?)(?:\n|$)', re.I), 2, 1),
    (re.compile(r'(.+?)\s+•\s+(.+?)(?:\n|$)', re.I), 2, 1),
]


# ---------- Section location ----------

def _section_by_heading(soup: BeautifulSoup) -> Optional[Tag]:
    for heading in soup.find_all(['h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'span', 'div']):
        if text_of(heading).lower() == 'experience':
            return heading.find_parent(['section', 'article']) or heading.parent
    return None


def _section_by_aria(soup: BeautifulSoup) -> Optional[Tag]:
    return soup.select_one('section[aria-label*="Experience" i]')


def _section_by_id(soup: BeautifulSoup) -> Optional[Tag]:
    anchor = soup.select_one('#experience, #experience-section, .experience-section')
    if anchor is None:
        return None
    return anchor.find_parent('section') or anchor


def _section_by_class(soup: BeautifulSoup) -> Optional[Tag]:
    for pattern in SECTION_CLASS_PATTERNS:
        for elem in soup.select(pattern):
            text = elem.get_text(" ", strip=True).lower()
            if re.search(r'\d{4}', text) or 'present' in text or 'current' in text:
                return elem
    return None


def _section_by_list_shape(soup: BeautifulSoup) -> Optional[Tag]:
    for lst in soup.select('ul, ol, .pvs-list'):
        items = lst.select('li, .pvs-list__item')
        if not items:
            continue
        item_text = items[0].get_text(" ", strip=True)
        if '·' in item_text or ' at ' in item_text or '@' in item_text or re.search(r'\d{4}', item_text):
            return lst
    return None


section_chain: StrategyChain[Tag] = StrategyChain(
    "experience section",
    [_section_by_heading, _section_by_aria, _section_by_id, _section_by_class, _section_by_list_shape],
)


def find_first_entry(soup: BeautifulSoup) -> Optional[Tag]:
    """First experience entry on the page, if an experience section exists."""
    section = section_chain(soup)
    if section is None:
        return None
    entry = section.select_one(ENTRY_SELECTOR)
    return entry


# ---------- Entry strategies ----------

def from_aria_hidden_spans(entry: Tag) -> Optional[Pair]:
    """(a) Two aria-hidden spans: title then company."""
    spans = entry.select('span[aria-hidden="true"]')
    if len(spans) >= 2:
        job_title, company = text_of(spans[0]), text_of(spans[1])
        if job_title and company:
            return job_title, company
    return None


def from_flex_spans(entry: Tag) -> Optional[Pair]:
    """(b) Two sibling spans in a flex row, classified in either order."""
    for flex in entry.select('.display-flex, .flex-row, .flex'):
        spans = flex.find_all('span')
        if len(spans) < 2:
            continue
        first, second = text_of(spans[0]), text_of(spans[1])
        if not first or not second:
            continue
        if looks_like_job_title(first) and looks_like_company(second):
            return first, second
        if looks_like_company(first) and looks_like_job_title(second):
            return second, first
    return None


def from_bold_lead(entry: Tag) -> Optional[Pair]:
    """(c) Bold lead element plus the nearest sibling text that reads as a company."""
    strong = entry.select_one('strong, b, .t-bold')
    if strong is None:
        return None
    job_title = text_of(strong)
    container = strong.find_parent(['div', 'li']) or entry
    for elem in container.select('span, div, .t-14, .t-normal, .t-black--light'):
        text = text_of(elem)
        if text and text != job_title and len(text) > 2 and looks_like_company(text):
            return (job_title, text) if job_title else None
    return None


def _split_on_first_separator(block: str) -> List[str]:
    for sep in DATE_SPLIT_SEPARATORS:
        if sep in block:
            return [collapse_whitespace(p) for p in block.split(sep) if collapse_whitespace(p)]
    return [collapse_whitespace(block)] if collapse_whitespace(block) else []


def from_date_anchor(entry: Tag) -> Optional[Pair]:
    """(d) Split the text before a 'YYYY - YYYY|Present' range."""
    block = entry.get_text("\n", strip=True)
    match = DATE_RANGE_RE.search(block)
    if not match:
        return None
    parts = _split_on_first_separator(block[:match.start()].strip())
    if len(parts) >= 2:
        return parts[0], parts[1]
    if len(parts) == 1:
        at_match = re.match(r'(.+?)\s+(?:at|@)\s+(.+)', parts[0], re.I)
        if at_match:
            return collapse_whitespace(at_match.group(1)), collapse_whitespace(at_match.group(2))
    return None


def from_text_patterns(entry: Tag) -> Optional[Pair]:
    """(e) Ordered regular expressions over the raw entry text."""
    block = entry.get_text("\n", strip=True)
    for pattern, job_idx, company_idx in EXPERIENCE_PATTERNS:
        match = pattern.search(block)
        if not match:
            continue
        job_title = collapse_whitespace(match.group(job_idx))
        company = collapse_whitespace(match.group(company_idx))
        if len(job_title) > 2 and len(company) > 2:
            return job_title, company
    return None


def from_company_link(entry: Tag) -> Optional[Pair]:
    """(f) Company-page link plus the nearest title-like span."""
    link = entry.select_one('a[href*="/company/"]')
    if link is None:
        return None
    company = text_of(link)
    if not company:
        return None
    for span in entry.find_all('span'):
        text = text_of(span)
        if text and text != company and len(text) > 2 and looks_like_job_title(text):
            return text, company
    return None


def from_first_fragments(entry: Tag) -> Optional[Pair]:
    """(g) First two distinct, reasonably long text fragments in DOM order."""
    fragments: List[str] = []
    for raw in entry.stripped_strings:
        text = collapse_whitespace(raw)
        if len(text) <= 2 or text.isdigit() or 'ago' in text or '·' in text:
            continue
        if text not in fragments:
            fragments.append(text)
        if len(fragments) == 2:
            return fragments[0], fragments[1]
    return None


EXPERIENCE_STRATEGIES = [
    from_aria_hidden_spans,
    from_flex_spans,
    from_bold_lead,
    from_date_anchor,
    from_text_patterns,
    from_company_link,
    from_first_fragments,
]

experience_chain: StrategyChain[Pair] = StrategyChain("experience entry", EXPERIENCE_STRATEGIES)


def extract_experience(soup: BeautifulSoup) -> Optional[Pair]:
    """``(job_title, company)`` from the first experience entry."""
    entry = find_first_entry(soup)
    if entry is None:
        return None
    return experience_chain(entry)
