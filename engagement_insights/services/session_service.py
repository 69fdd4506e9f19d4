"""
Session bootstrapper: launches the browser, injects the stored session
token and verifies the login took.
"""
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple
from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page as PlaywrightPage,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
)
from config import Settings, settings as default_settings
from engagement_insights.exceptions import (
    InvalidSessionError,
    LoginRejectedError,
    NavigationTimeoutError,
)
from engagement_insights.extractors.base import parse_html
from engagement_insights.models import Session
from engagement_insights.utils.pacing import Pacer
from engagement_insights.utils.urls import LINKEDIN_ORIGIN, is_auth_wall_url

logger = logging.getLogger(__name__)

FEED_URL = f"{LINKEDIN_ORIGIN}/feed/"
AUTH_COOKIE_NAME = "li_at"
ONE_YEAR = 365 * 24 * 60 * 60

LOGIN_FORM_SELECTORS = [
    'input[name="session_key"]',
    'input[name="session_password"]',
    'form.login__form',
    '.sign-in-form',
    'a[data-tracking-control-name*="sign-in"]',
]

# Launch with stealth args to suppress automation telltales
STEALTH_ARGS = [
    '--disable-blink-features=AutomationControlled',
    '--disable-dev-shm-usage',
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-infobars',
    '--disable-notifications',
    '--exclude-switches=enable-automation',
    '--start-maximized',
]

STEALTH_INIT_SCRIPT = """
    Object.defineProperty(navigator, 'webdriver', {
        get: () => undefined
    });

    Object.defineProperty(navigator, 'plugins', {
        get: () => [1, 2, 3, 4, 5]
    });

    Object.defineProperty(navigator, 'languages', {
        get: () => ['en-US', 'en']
    });

    window.chrome = {
        runtime: {}
    };
"""

Launcher = Callable[[Settings], Awaitable[Tuple[Optional[Playwright], Browser]]]


async def launch_chromium(settings: Settings) -> Tuple[Playwright, Browser]:
    """Start Playwright and launch Chromium with stealth args."""
    playwright = await async_playwright().start()
    try:
        browser = await playwright.chromium.launch(
            headless=settings.playwright_headless,
            args=STEALTH_ARGS
        )
    except BaseException:
        await playwright.stop()
        raise
    return playwright, browser


def context_options(settings: Settings) -> Dict[str, Any]:
    """Realistic browser fingerprint for the authenticated context."""
    return {
        'viewport': {'width': settings.viewport_width, 'height': settings.viewport_height},
        'user_agent': settings.user_agent,
        'locale': 'en-US',
        'timezone_id': 'America/New_York',
        'extra_http_headers': {
            'Accept-Language': 'en-US,en;q=0.9',
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
            'DNT': '1',
            'Upgrade-Insecure-Requests': '1',
        }
    }


def auth_cookie(token: str) -> Dict[str, Any]:
    """Long-lived authentication cookie scoped to the LinkedIn domain."""
    return {
        "name": AUTH_COOKIE_NAME,
        "value": token.strip(),
        "domain": ".linkedin.com",
        "path": "/",
        "expires": int(time.time()) + ONE_YEAR,
        "httpOnly": True,
        "secure": True,
        "sameSite": "None"
    }


def has_login_form(content: str) -> bool:
    soup = parse_html(content)
    return any(soup.select_one(selector) is not None for selector in LOGIN_FORM_SELECTORS)


class AuthenticatedContext:
    """A logged-in browsing process. The caller owns it and must close it."""

    def __init__(
        self,
        browser: Browser,
        context: BrowserContext,
        home_page: PlaywrightPage,
        playwright: Optional[Playwright] = None
    ):
        self.browser = browser
        self.context = context
        self.home_page = home_page
        self.playwright = playwright
        self.is_initialized = True

    @property
    def is_connected(self) -> bool:
        return self.is_initialized and self.browser.is_connected()

    async def close(self) -> None:
        """Close context, browser and the Playwright driver. Idempotent."""
        if not self.is_initialized:
            return
        self.is_initialized = False
        try:
            await self.context.close()
        except PlaywrightError as e:
            logger.debug(f"Context already closed: {e.message}")
        try:
            await self.browser.close()
        except PlaywrightError as e:
            logger.debug(f"Browser already closed: {e.message}")
        if self.playwright:
            await self.playwright.stop()
        logger.info("Browser closed")


class SessionBootstrapper:
    """Turns a stored session token into an authenticated browsing context."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        launcher: Optional[Launcher] = None,
        pacer: Optional[Pacer] = None
    ):
        self.settings = settings or default_settings
        self.launcher = launcher or launch_chromium
        self.pacer = pacer or Pacer()
        self.timeout = self.settings.scraper_timeout * 1000  # Convert to milliseconds

    def validate(self, session: Optional[Session]) -> Session:
        """Fail fast on absent or malformed tokens, before any network cost."""
        if session is None or not session.token:
            raise InvalidSessionError("No active LinkedIn session token available")
        if not session.has_valid_format(self.settings.session_token_prefix):
            raise InvalidSessionError()
        return session

    async def bootstrap(self, session: Optional[Session]) -> AuthenticatedContext:
        """
        Launch the browser, inject the token and verify login on the feed.

        Raises:
            InvalidSessionError: token absent or malformed
            LoginRejectedError: the site answered with a logged-out state
            NavigationTimeoutError: the feed did not load in time
        """
        session = self.validate(session)
        logger.info(f"Bootstrapping browser session for {session.owner_label or 'unlabelled token'}")

        playwright, browser = await self.launcher(self.settings)
        auth: Optional[AuthenticatedContext] = None
        try:
            context = await browser.new_context(**context_options(self.settings))
            await context.add_init_script(STEALTH_INIT_SCRIPT)
            await context.add_cookies([auth_cookie(session.token)])
            logger.debug("Authentication cookie set")

            home_page = await context.new_page()
            auth = AuthenticatedContext(browser, context, home_page, playwright)
            await self._verify_login(home_page)
            logger.info("Login successful")
            return auth
        except BaseException:
            if auth:
                await auth.close()
            else:
                await browser.close()
                if playwright:
                    await playwright.stop()
            raise

    async def _verify_login(self, page: PlaywrightPage) -> None:
        try:
            await page.goto(FEED_URL, wait_until="domcontentloaded", timeout=self.timeout)
        except PlaywrightTimeoutError as e:
            raise NavigationTimeoutError("Timed out loading the LinkedIn feed", url=FEED_URL) from e
        except PlaywrightError as e:
            self.pacer.check()
            raise NavigationTimeoutError(f"Could not reach LinkedIn: {e.message}", url=FEED_URL) from e

        await self.pacer.sleep(self.settings.page_settle_delay)

        current_url = page.url
        if is_auth_wall_url(current_url):
            logger.warning(f"Login rejected, redirected to {current_url}")
            raise LoginRejectedError(url=current_url)
        if has_login_form(await page.content()):
            logger.warning("Login rejected, login form present on feed")
            raise LoginRejectedError(url=current_url)
