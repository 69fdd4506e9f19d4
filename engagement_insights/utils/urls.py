"""
URL helpers: canonical profile URLs, profile-link checks, target-kind
inference and readable names derived from profile URLs.
"""
import re
from typing import Optional
from urllib.parse import urlsplit, urlunsplit
from engagement_insights.models.base import NOT_SPECIFIED
from engagement_insights.models.engagement import TargetKind


LINKEDIN_ORIGIN = "https://www.linkedin.com"
PROFILE_MARKER = "/in/"
OPAQUE_ID_MARKERS = ("miniProfile", "urn:", "urn%3A")
POST_PATH_MARKERS = ("/feed/", "/posts/", "/activity")
MEMBER_PLACEHOLDER = "LinkedIn Member"

AUTH_WALL_PATH_PREFIXES = ("/login", "/signin", "/authwall", "/checkpoint/", "/uas/", "/m/login")


def absolutize(href: str) -> str:
    """Resolve a site-relative href against the LinkedIn origin."""
    href = href.strip()
    if href.startswith("//"):
        return f"https:{href}"
    if href.startswith("http"):
        return href
    if not href.startswith("/"):
        href = f"/{href}"
    return f"{LINKEDIN_ORIGIN}{href}"


def canonical_profile_url(href: Optional[str]) -> Optional[str]:
    """Absolute profile URL with query string and fragment removed.

    A trailing slash is always present so ``/in/jane`` and ``/in/jane/``
    collapse to one key.
    """
    if not href:
        return None
    parts = urlsplit(absolutize(href))
    path = parts.path if parts.path.endswith("/") else f"{parts.path}/"
    return urlunsplit((parts.scheme or "https", parts.netloc, path, "", ""))


def is_profile_url(url: Optional[str]) -> bool:
    """Structural check: a person profile link, not an opaque internal ID."""
    if not url or PROFILE_MARKER not in url:
        return False
    return not any(marker in url for marker in OPAQUE_ID_MARKERS)


def profile_slug(url: Optional[str]) -> Optional[str]:
    """Path segment after ``/in/``."""
    if not url or PROFILE_MARKER not in url:
        return None
    tail = url.split(PROFILE_MARKER, 1)[1]
    slug = tail.split("?")[0].split("#")[0].strip("/").split("/")[0]
    return slug or None


def name_from_profile_url(url: Optional[str]) -> str:
    """Readable name from a profile URL: ``/in/jane-doe/`` -> ``Jane Doe``.

    Opaque all-caps member IDs yield a generic member placeholder.
    """
    slug = profile_slug(url)
    if not slug:
        return NOT_SPECIFIED
    if re.fullmatch(r"[A-Z0-9_-]+", slug) and re.search(r"\d", slug):
        return MEMBER_PLACEHOLDER
    # Trailing vanity suffixes like "-12345678" or "-a1b2c3" carry no name
    words = [w for w in slug.split("-") if w and not re.search(r"\d", w)]
    if not words:
        return MEMBER_PLACEHOLDER
    return " ".join(w.capitalize() for w in words)


def infer_target_kind(url: str) -> TargetKind:
    """Resolve the page kind from the URL path."""
    path = urlsplit(absolutize(url)).path
    if PROFILE_MARKER in path:
        return TargetKind.PROFILE
    if any(marker in path for marker in POST_PATH_MARKERS):
        return TargetKind.POST
    return TargetKind.PROFILE


def is_linkedin_url(url: Optional[str]) -> bool:
    if not url:
        return False
    host = urlsplit(url).netloc.lower()
    return host == "linkedin.com" or host.endswith(".linkedin.com")


def is_auth_wall_url(url: Optional[str]) -> bool:
    """Login, auth-wall or checkpoint page, judged by path prefix only."""
    path = urlsplit(url or "").path.lower()
    return path.startswith(AUTH_WALL_PATH_PREFIXES)
