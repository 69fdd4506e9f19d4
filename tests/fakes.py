"""
In-memory stand-ins for the Playwright page/context/browser surface.

Pages serve HTML from a ``site`` mapping of URL -> FakeDocument and react to
the engine's JavaScript snippets by identity.
"""
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple
from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError
from config import Settings
from engagement_insights.services.discovery_service import SCROLL_PAGE_JS, TAG_AFFORDANCE_JS
from engagement_insights.services.modal_service import (
    CLICK_AFFORDANCE_JS,
    CLOSE_OVERLAY_JS,
    SCROLL_OVERLAY_JS,
)
from engagement_insights.services.profile_service import SCROLL_PROFILE_JS
from engagement_insights.services.session_service import FEED_URL

FIXTURES = Path(__file__).parent / "fixtures"

VALID_TOKEN = "AQEDAQNvZXhhbXBsZXRva2Vu"


def load_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


def fast_settings(**overrides) -> Settings:
    """Settings with every pacing delay at zero."""
    values = dict(
        page_settle_delay=0,
        scroll_settle_delay=0,
        click_settle_delay=0,
        modal_scroll_delay=0,
        profile_settle_delay=0,
        experience_scroll_delay=0,
        inter_profile_delay=0,
        retry_backoff=0,
        overlay_timeout=0.01,
        profile_card_timeout=0.01,
        linkedin_li_at=None,
    )
    values.update(overrides)
    return Settings(**values)


def overlay_html(entries: Sequence[Tuple[str, str]]) -> str:
    """Reactions overlay markup for ``(href, display name)`` entries."""
    items = "".join(
        f'<li class="artdeco-list__item">'
        f'<a href="{href}" class="link-without-hover-state">'
        f'<div class="artdeco-entity-lockup">'
        f'<div class="artdeco-entity-lockup__title">{name}</div>'
        f'</div></a></li>'
        for href, name in entries
    )
    return (
        '<div class="artdeco-modal" role="dialog">'
        '<button class="artdeco-modal__dismiss" aria-label="Dismiss">x</button>'
        f'<div class="artdeco-modal__content"><ul>{items}</ul></div>'
        '</div>'
    )


class FakeDocument:
    """What a URL serves: base HTML, lazily rendered HTML and overlay frames."""

    def __init__(
        self,
        html: str = "<html><body></body></html>",
        title: str = "",
        final_url: Optional[str] = None,
        scrolled_html: Optional[str] = None,
        overlay_frames: Optional[List[str]] = None,
        goto_errors: Optional[List[Exception]] = None
    ):
        self.html = html
        self.title = title
        self.final_url = final_url
        self.scrolled_html = scrolled_html
        self.overlay_frames = list(overlay_frames or [])
        self.goto_errors = list(goto_errors or [])


class FakeMouse:
    def __init__(self):
        self.moves = []
        self.wheels = []

    async def move(self, x, y, steps=1):
        self.moves.append((x, y, steps))

    async def wheel(self, delta_x, delta_y):
        self.wheels.append((delta_x, delta_y))


class FakeKeyboard:
    def __init__(self):
        self.pressed = []

    async def press(self, key):
        self.pressed.append(key)


class FakePage:
    def __init__(self, context: "FakeContext"):
        self.context = context
        self.url = "about:blank"
        self.document: Optional[FakeDocument] = None
        self.dom = "<html><body></body></html>"
        self.overlay_open = False
        self.frame = 0
        self.overlay_scrolls = 0
        self.profile_scrolls = 0
        self.evaluations: List[str] = []
        self.viewport_size = {"width": 1280, "height": 800}
        self.mouse = FakeMouse()
        self.keyboard = FakeKeyboard()
        self.closed = False

    async def goto(self, url, wait_until=None, timeout=None):
        if self.context.closed:
            raise PlaywrightError("Target page, context or browser has been closed")
        self.context.goto_log.append(url)
        document = self.context.site.get(url)
        if document is None:
            raise PlaywrightError(f"net::ERR_NAME_NOT_RESOLVED at {url}")
        if document.goto_errors:
            raise document.goto_errors.pop(0)
        self.document = document
        self.url = document.final_url or url
        self.dom = document.html
        self.overlay_open = False
        self.frame = 0

    async def title(self):
        return self.document.title if self.document else ""

    async def content(self):
        if self.overlay_open and self.document and self.document.overlay_frames:
            frames = self.document.overlay_frames
            overlay = frames[min(self.frame, len(frames) - 1)]
            if "</body>" in self.dom:
                return self.dom.replace("</body>", f"{overlay}</body>")
            return self.dom + overlay
        return self.dom

    async def wait_for_selector(self, selector, timeout=None, **kwargs):
        soup = BeautifulSoup(await self.content(), "html.parser")
        if soup.select_one(selector) is None:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")

    async def evaluate(self, script, arg=None):
        self.evaluations.append(script)
        if script == SCROLL_PAGE_JS or script == SCROLL_PROFILE_JS:
            if script == SCROLL_PROFILE_JS:
                self.profile_scrolls += 1
            if self.document and self.document.scrolled_html and self.dom == self.document.html:
                self.dom = self.document.scrolled_html
            return None
        if script == TAG_AFFORDANCE_JS:
            soup = BeautifulSoup(self.dom, "html.parser")
            matches = soup.select(arg["selector"])
            if arg["nth"] >= len(matches):
                return False
            matches[arg["nth"]]["data-like-index"] = str(arg["index"])
            self.dom = str(soup)
            return True
        if script == CLICK_AFFORDANCE_JS:
            soup = BeautifulSoup(self.dom, "html.parser")
            if soup.select_one(f'[data-like-index="{arg}"]') is None:
                return False
            if self.document and self.document.overlay_frames:
                self.overlay_open = True
                self.frame = 0
            return True
        if script == SCROLL_OVERLAY_JS:
            self.overlay_scrolls += 1
            if self.document and self.document.overlay_frames:
                self.frame = min(self.frame + 1, len(self.document.overlay_frames) - 1)
            return None
        if script == CLOSE_OVERLAY_JS:
            was_open = self.overlay_open
            self.overlay_open = False
            return was_open
        return None

    async def close(self):
        if self.closed:
            return
        self.closed = True


class FakeContext:
    def __init__(self, site: Dict[str, FakeDocument]):
        self.site = site
        self.pages: List[FakePage] = []
        self.goto_log: List[str] = []
        self.cookies: List[dict] = []
        self.init_scripts: List[str] = []
        self.options: dict = {}
        self.closed = False

    @property
    def open_pages(self) -> List[FakePage]:
        return [page for page in self.pages if not page.closed]

    async def new_page(self):
        if self.closed:
            raise PlaywrightError("Target page, context or browser has been closed")
        page = FakePage(self)
        self.pages.append(page)
        return page

    async def add_cookies(self, cookies):
        self.cookies.extend(cookies)

    async def add_init_script(self, script):
        self.init_scripts.append(script)

    async def close(self):
        self.closed = True
        for page in self.pages:
            page.closed = True


class FakeBrowser:
    def __init__(self, site: Dict[str, FakeDocument]):
        self.site = site
        self.contexts: List[FakeContext] = []
        self.launches = 0
        self.closed = False

    async def new_context(self, **options):
        context = FakeContext(self.site)
        context.options = options
        self.contexts.append(context)
        return context

    def is_connected(self):
        return not self.closed

    async def close(self):
        self.closed = True
        for context in self.contexts:
            await context.close()

    @property
    def context(self) -> FakeContext:
        return self.contexts[-1]


def fake_launcher(browser: FakeBrowser):
    """Launcher returning ``browser`` without a Playwright driver."""
    async def launch(settings):
        browser.launches += 1
        return None, browser
    return launch


# ---------- A small fake site ----------

TARGET_URL = "https://www.linkedin.com/in/target-person/recent-activity/all/"
CLEAN_URL = "https://www.linkedin.com/in/alice-clean/"
EXPERIENCE_URL = "https://www.linkedin.com/in/bob-builder/"
AUTH_WALL_URL = "https://www.linkedin.com/in/jane-doe/"

OVERLAY_ENTRIES = [
    ("/in/alice-clean?miniProfileUrn=urn%3Ali%3Afs_miniProfile%3AACoAA1", "Alice Clean View Alice Clean’s profile"),
    ("/in/bob-builder/", "Bob Builder"),
    ("/in/jane-doe/", ""),
]


def target_document() -> FakeDocument:
    """Activity page: one post up front, a second after scrolling, three reactors."""
    html = load_fixture("target_activity.html")
    scrolled = html.replace("</main>", load_fixture("second_post.html") + "</main>")
    return FakeDocument(
        html=html,
        title="Activity | Target Person | LinkedIn",
        scrolled_html=scrolled,
        overlay_frames=[overlay_html(OVERLAY_ENTRIES[:2])] + [overlay_html(OVERLAY_ENTRIES)] * 4
    )


def build_site() -> Dict[str, FakeDocument]:
    return {
        FEED_URL: FakeDocument(html=load_fixture("feed.html"), title="Feed | LinkedIn"),
        TARGET_URL: target_document(),
        CLEAN_URL: FakeDocument(html=load_fixture("profile_clean.html"), title="Alice Clean | LinkedIn"),
        EXPERIENCE_URL: FakeDocument(
            html=load_fixture("profile_experience.html"),
            scrolled_html=load_fixture("profile_experience_scrolled.html"),
            title="LinkedIn"
        ),
        AUTH_WALL_URL: FakeDocument(
            html=load_fixture("login.html"),
            title="Sign Up | LinkedIn",
            final_url="https://www.linkedin.com/authwall?trk=bf&sessionRedirect=%2Fin%2Fjane-doe%2F"
        ),
    }
