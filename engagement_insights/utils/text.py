"""
Text classification helpers for free-text profile fragments.

Pure functions: judge whether a fragment names a company or a job title,
and strip UI noise from names and company strings.
"""
import re
from typing import Optional, Tuple
from engagement_insights.models.base import NOT_SPECIFIED


HEADLINE_SEPARATORS = [' at ', ' @ ', ' · ', ' - ', ' | ', ' • ', ' / ', ' , ']

COMPANY_SUFFIXES = [
    'inc', 'ltd', 'llc', 'corp', 'corporation', 'company',
    'group', 'solutions', 'technologies', 'systems', 'services',
    'consulting', 'associates', 'partners', 'limited', 'global',
    'industries', 'holdings', 'enterprises', 'labs', 'studio',
    'agency', 'firm', 'office', 'institute', 'university', 'college',
    'school', 'hospital', 'clinic', 'bank', 'financial', 'insurance',
    'healthcare', 'pharma', 'biotech', 'software', 'hardware', 'networks'
]

JOB_KEYWORDS = [
    'engineer', 'developer', 'manager', 'director', 'specialist',
    'analyst', 'consultant', 'associate', 'lead', 'head', 'chief',
    'officer', 'coordinator', 'assistant', 'representative', 'supervisor',
    'architect', 'designer', 'administrator', 'technician', 'scientist',
    'researcher', 'instructor', 'teacher', 'professor', 'president',
    'vp', 'vice president', 'partner', 'principal', 'senior', 'junior',
    'staff', 'intern', 'trainee', 'apprentice', 'fellow'
]

EMPLOYMENT_TYPES = (
    r'Full[- ]?time|Part[- ]?time|Contract|Freelance|Self[- ]?employed|Internship|'
    r'Trainee|Apprenticeship|Volunteer|Temporary|Seasonal|Remote|Hybrid|On[- ]?site'
)

_COMPANY_RE = re.compile(r'\b(?:' + '|'.join(COMPANY_SUFFIXES) + r')\b', re.I)
_JOB_RE = re.compile(r'\b(?:' + '|'.join(JOB_KEYWORDS) + r')\b', re.I)
_EMPLOYMENT_SUFFIX_RE = re.compile(r'·\s*(?:' + EMPLOYMENT_TYPES + r')\s*', re.I)
_EMPLOYMENT_ONLY_RE = re.compile(r'^\s*(?:' + EMPLOYMENT_TYPES + r')\s*$', re.I)
_TRAILING_SEPARATOR_RE = re.compile(r'\s*[·\-–—|•/,]\s*$')
_VIEW_RE = re.compile(r'View\s', re.I)
_ELLIPSIS_RE = re.compile(r'(?:\.{3,}|…)$')
_WHITESPACE_RE = re.compile(r'\s+')

PLACEHOLDERS = {'', '--', '-', '—', NOT_SPECIFIED.lower()}


def collapse_whitespace(text: Optional[str]) -> str:
    """Collapse runs of whitespace and trim."""
    if not text:
        return ''
    return _WHITESPACE_RE.sub(' ', text).strip()


def is_placeholder(text: Optional[str]) -> bool:
    """True for empty, dash-only or already-sentinel values."""
    return collapse_whitespace(text).lower() in PLACEHOLDERS


def normalize_field(text: Optional[str]) -> str:
    """Map empty or placeholder-only values to the sentinel."""
    if is_placeholder(text):
        return NOT_SPECIFIED
    return collapse_whitespace(text)


def clean_name(raw_name: Optional[str]) -> str:
    """Strip trailing 'View ...' UI text and ellipses from a display name."""
    name = collapse_whitespace(raw_name)
    if not name:
        return NOT_SPECIFIED
    match = _VIEW_RE.search(name)
    if match:
        name = name[:match.start()].strip()
    name = _ELLIPSIS_RE.sub('', name).strip()
    return name or NOT_SPECIFIED


def clean_company(raw_company: Optional[str]) -> str:
    """Remove employment-type qualifiers like '· Full-time' from a company string."""
    if is_placeholder(raw_company):
        return NOT_SPECIFIED
    cleaned = _EMPLOYMENT_SUFFIX_RE.sub('', collapse_whitespace(raw_company)).strip()
    if _EMPLOYMENT_ONLY_RE.match(cleaned):
        cleaned = ''
    cleaned = _TRAILING_SEPARATOR_RE.sub('', cleaned).strip()
    return cleaned or NOT_SPECIFIED


def has_job_keyword(text: str) -> bool:
    return bool(_JOB_RE.search(text or ''))


def looks_like_company(text: Optional[str]) -> bool:
    """Judge whether a fragment names an organisation.

    A corporate suffix is decisive. Otherwise a capitalised fragment of at
    least three characters counts, unless it contains a job-role word.
    """
    if not text or len(text) < 2 or len(text) > 60:
        return False
    if _COMPANY_RE.search(text):
        return True
    if text[0].isupper() and len(text) >= 3:
        return not has_job_keyword(text)
    return False


def looks_like_job_title(text: Optional[str]) -> bool:
    """Permissive job-title check used when pairing experience fragments."""
    if not text:
        return False
    if has_job_keyword(text):
        return True
    return 2 < len(text) < 60


def find_separator(text: Optional[str]) -> Optional[str]:
    """First headline separator, in priority order, present in ``text``."""
    if not text:
        return None
    for sep in HEADLINE_SEPARATORS:
        if sep in text:
            return sep
    return None


def contains_separator(text: Optional[str]) -> bool:
    return find_separator(text) is not None


def truncate_at_separator(text: str) -> str:
    """Cut ``text`` at the earliest headline separator it contains."""
    positions = [text.find(sep) for sep in HEADLINE_SEPARATORS if sep in text]
    if not positions:
        return text.strip()
    return text[:min(positions)].strip()


def split_headline(headline: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Split a headline at the first matching separator.

    Returns ``(job_title, company_candidate)``. The candidate is unvalidated.
    A headline without separators is all job title.
    """
    headline = collapse_whitespace(headline)
    if is_placeholder(headline):
        return None, None
    sep = find_separator(headline)
    if not sep:
        return (headline if len(headline) > 1 else None), None
    parts = headline.split(sep)
    title = parts[0].strip()
    candidate = sep.join(parts[1:]).strip()
    return (title if len(title) > 1 else None), (candidate or None)


def extract_company_from_headline(headline: Optional[str]) -> Optional[str]:
    """Validated company extraction from a headline.

    Tries every separator in priority order and returns the first trailing
    segment that, once cleaned, passes ``looks_like_company``.
    """
    headline = collapse_whitespace(headline)
    if is_placeholder(headline):
        return None
    for sep in HEADLINE_SEPARATORS:
        if sep not in headline:
            continue
        parts = headline.split(sep)
        if len(parts) < 2:
            continue
        candidate = clean_company(sep.join(parts[1:]).strip())
        if candidate != NOT_SPECIFIED and looks_like_company(candidate):
            return candidate
    return None


def parse_count(text: Optional[str]) -> int:
    """First integer in ``text``, honouring thousands separators and K/M suffixes."""
    if not text:
        return 0
    cleaned = text.replace(',', '')
    match = re.search(r'(\d+(?:\.\d+)?)\s*([KkMm]?)', cleaned)
    if not match:
        return 0
    number = float(match.group(1))
    suffix = match.group(2).upper()
    if suffix == 'K':
        number *= 1000
    elif suffix == 'M':
        number *= 1000000
    return int(number)
