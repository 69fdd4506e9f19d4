"""
Navigation controller: isolated tabs with camouflage and landing checks.
"""
import logging
import random
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from urllib.parse import urlsplit
from bs4 import BeautifulSoup
from playwright.async_api import (
    BrowserContext,
    Error as PlaywrightError,
    Page as PlaywrightPage,
    TimeoutError as PlaywrightTimeoutError,
)
from config import Settings, settings as default_settings
from engagement_insights.exceptions import AuthWallError, NavigationTimeoutError, NotFoundError
from engagement_insights.extractors.base import parse_html, text_of
from engagement_insights.utils.pacing import Pacer
from engagement_insights.utils.urls import is_auth_wall_url

logger = logging.getLogger(__name__)


AUTH_WALL_TITLE_MARKERS = ("sign up", "join linkedin", "log in", "sign in")

NOT_FOUND_TITLE_MARKERS = ("404", "page not found")

# Only the error template is read; body text may quote these phrases
NOT_FOUND_CONTAINER_SELECTOR = (
    '.not-found, .page-not-found, .error-container, .artdeco-empty-state, '
    'main > h1, main > h2, main > section > h1'
)

NOT_FOUND_TEXT_MARKERS = (
    "page not found",
    "this page doesn't exist",
    "this page doesn’t exist",
    "this profile is not available",
    "couldn't find",
    "couldn’t find",
)


def error_page_text(soup: BeautifulSoup) -> str:
    """Text of LinkedIn's error-page template, '' on ordinary pages."""
    return " ".join(text_of(elem) for elem in soup.select(NOT_FOUND_CONTAINER_SELECTOR))


def classify_landing(url: str, title: str = "", error_text: str = "") -> None:
    """
    Raise ``AuthWallError`` or ``NotFoundError`` for soft-failure landings.

    ``error_text`` is the text of the error-page container, never the whole body.
    """
    lowered_title = (title or "").lower()
    if is_auth_wall_url(url) or any(m in lowered_title for m in AUTH_WALL_TITLE_MARKERS):
        raise AuthWallError(url=url)

    lowered_text = (error_text or "").lower()
    if (
        urlsplit(url or "").path.startswith("/404")
        or any(m in lowered_title for m in NOT_FOUND_TITLE_MARKERS)
        or any(m in lowered_text for m in NOT_FOUND_TEXT_MARKERS)
    ):
        raise NotFoundError(url=url)


class NavigationService:
    """Opens target URLs in isolated tabs of the authenticated context."""

    def __init__(
        self,
        context: BrowserContext,
        settings: Optional[Settings] = None,
        pacer: Optional[Pacer] = None
    ):
        self.context = context
        self.settings = settings or default_settings
        self.pacer = pacer or Pacer()
        self.timeout = self.settings.scraper_timeout * 1000  # Convert to milliseconds
        self.open_tabs = 0
        self.current_url: Optional[str] = None

    @asynccontextmanager
    async def open(self, url: str) -> AsyncIterator[PlaywrightPage]:
        """
        Open ``url`` in a new tab and yield it once content has settled.

        The tab is closed on every exit path, including landing failures,
        timeouts and cancellation.
        """
        self.pacer.check()
        page = await self.context.new_page()
        self.open_tabs += 1
        try:
            await self._goto(page, url)
            await self.pacer.sleep(self.settings.page_settle_delay)
            await self.check_landing(page)
            await self.humanize(page)
            self.current_url = page.url
            yield page
        finally:
            await self._close(page)

    async def _goto(self, page: PlaywrightPage, url: str) -> None:
        logger.info(f"Navigating to {url}")
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=self.timeout)
        except PlaywrightTimeoutError as e:
            self.pacer.check()
            raise NavigationTimeoutError(f"Timed out loading {url}", url=url) from e
        except PlaywrightError as e:
            self.pacer.check()
            raise NavigationTimeoutError(f"Navigation error for {url}: {e.message}", url=url) from e

    async def check_landing(self, page: PlaywrightPage) -> None:
        """Classify where the navigation actually ended up."""
        current_url = page.url
        title = await page.title()
        # Cheap URL check before pulling the whole document
        if is_auth_wall_url(current_url):
            logger.warning(f"Redirected to auth wall: {current_url}")
            raise AuthWallError(url=current_url)
        error_text = error_page_text(parse_html(await page.content()))
        try:
            classify_landing(current_url, title, error_text)
        except (AuthWallError, NotFoundError) as e:
            logger.warning(f"{type(e).__name__} at {current_url} (title: {title!r})")
            raise

    async def humanize(self, page: PlaywrightPage) -> None:
        """Small randomised mouse and wheel motion inside the viewport."""
        viewport = page.viewport_size or {
            "width": self.settings.viewport_width,
            "height": self.settings.viewport_height
        }
        width, height = viewport["width"], viewport["height"]
        for _ in range(random.randint(2, 4)):
            await page.mouse.move(
                random.randint(int(width * 0.1), int(width * 0.9)),
                random.randint(int(height * 0.1), int(height * 0.9)),
                steps=random.randint(5, 15)
            )
        await page.mouse.wheel(0, random.randint(int(height * 0.05), int(height * 0.2)))

    async def _close(self, page: PlaywrightPage) -> None:
        self.open_tabs -= 1
        try:
            await page.close()
        except PlaywrightError as e:
            # Browser already gone (cancelled job)
            logger.debug(f"Tab close skipped: {e.message}")
