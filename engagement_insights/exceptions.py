"""
Error taxonomy for the scraping engine.

Every failure the engine can surface to a caller is a ``ScrapeError``.
``fatal`` errors abort the run; the rest degrade the unit of work that hit
them. ``retryable`` marks failures worth repeating at the unit that failed.
"""
from typing import Optional


class ScrapeError(Exception):
    """Base class for all engine failures."""

    default_message = "Scraping failed"
    fatal = False
    retryable = False

    def __init__(self, message: Optional[str] = None, url: Optional[str] = None):
        self.message = message or self.default_message
        self.url = url
        super().__init__(self.message)


class InvalidSessionError(ScrapeError):
    """Session token is absent or malformed."""

    default_message = "Invalid li_at cookie format"
    fatal = True


class LoginRejectedError(ScrapeError):
    """Token looks valid but the site answered with a logged-out state."""

    default_message = "Login failed - cookie may be expired"
    fatal = True


class AuthWallError(ScrapeError):
    """Navigation landed on a login or auth-wall page."""

    default_message = "Authentication required to view this page"


class NotFoundError(ScrapeError):
    """Navigation landed on a 'page not found' page."""

    default_message = "Page not found"


class NavigationTimeoutError(ScrapeError):
    """Timeout or network failure while navigating or waiting."""

    default_message = "Navigation timed out"
    retryable = True


class NoOverlayError(ScrapeError):
    """The reactions overlay never appeared after triggering an affordance."""

    default_message = "Could not open likes modal"


class ExtractionEmptyError(ScrapeError):
    """Harvesting completed but produced nothing."""

    default_message = "No profile URLs found in likes modal"


class BrowserBusyError(ScrapeError):
    """The browsing process is owned by a job that is still running."""

    default_message = "Browser is busy with another scrape job"


class JobCancelledError(ScrapeError):
    """The job was cancelled by its owner."""

    default_message = "Scrape job cancelled"
    fatal = True
