"""
Modal harvester: opens the reactions overlay for an engagement source,
scrolls it until no new entries render, and reads identity references.
"""
import logging
from enum import Enum
from typing import Dict, List, Optional
from bs4 import BeautifulSoup, Tag
from playwright.async_api import (
    Error as PlaywrightError,
    Page as PlaywrightPage,
    TimeoutError as PlaywrightTimeoutError,
)
from config import Settings, settings as default_settings
from engagement_insights.exceptions import ExtractionEmptyError, NoOverlayError
from engagement_insights.extractors.base import parse_html, text_of
from engagement_insights.models import EngagementSource, IdentityReference, NOT_SPECIFIED
from engagement_insights.utils.pacing import Pacer
from engagement_insights.utils.text import clean_name
from engagement_insights.utils.urls import (
    MEMBER_PLACEHOLDER,
    canonical_profile_url,
    is_profile_url,
    name_from_profile_url,
)

logger = logging.getLogger(__name__)


OVERLAY_SELECTOR = '.artdeco-modal, [role="dialog"]'

PROFILE_LINK_SELECTOR = (
    'a[href*="/in/"], a[data-control-name="profile"], '
    '[data-anonymize="person-name"] a, .reactions-modal__list-item a'
)

ENTRY_CONTAINER_SELECTOR = (
    '.artdeco-entity-lockup, .reactors__profile-item, li, .profile-item, '
    '.feed-shared-actor, .reactions-modal__list-item'
)

ENTRY_NAME_SELECTOR = (
    '.artdeco-entity-lockup__title, .reactors__profile-name, .profile-item-title, '
    'h3, .feed-shared-actor__name, .reactions-modal__profile-name'
)

CLICK_AFFORDANCE_JS = """
(index) => {
    const el = document.querySelector(`[data-like-index="${index}"]`);
    if (!el) return false;
    el.scrollIntoView({ block: 'center', inline: 'center' });
    const anchor = el.closest('a');
    if (anchor) {
        anchor.addEventListener('click', (e) => e.preventDefault(), { once: true });
    }
    el.click();
    return true;
}
"""

SCROLL_OVERLAY_JS = """
(increment) => {
    const overlay = document.querySelector(
        '.artdeco-modal__content, .reactions-modal__list, .artdeco-modal, [role="dialog"]'
    );
    if (overlay) {
        overlay.scrollBy(0, increment);
    } else {
        window.scrollBy(0, increment);
    }
    document.querySelectorAll('.overflow-auto, .modal__content').forEach((el) => el.scrollBy(0, increment));
}
"""

CLOSE_OVERLAY_JS = """
() => {
    const closeSelectors = [
        '.artdeco-modal__dismiss',
        'button[aria-label="Dismiss"]',
        'button[aria-label="Close"]',
        '.artdeco-modal__close-button',
        'button[data-control-name="overlay.close"]'
    ];
    for (const sel of closeSelectors) {
        const btn = document.querySelector(sel);
        if (btn) {
            btn.click();
            return true;
        }
    }
    return false;
}
"""


class HarvestState(str, Enum):
    IDLE = "idle"
    TRIGGERING = "triggering"
    WAITING_FOR_OVERLAY = "waiting_for_overlay"
    SCROLLING = "scrolling"
    EXTRACTING = "extracting"
    DONE = "done"
    FAILED = "failed"


def overlay_root(soup: BeautifulSoup) -> Optional[Tag]:
    return soup.select_one(OVERLAY_SELECTOR)


def _entry_name(link: Tag) -> str:
    container = link.css.closest(ENTRY_CONTAINER_SELECTOR)
    if container is not None:
        name = text_of(container.select_one(ENTRY_NAME_SELECTOR))
        if name:
            return name
    return text_of(link) or link.get('aria-label', '')


def extract_identities(soup: BeautifulSoup) -> List[IdentityReference]:
    """
    Identity references inside the reactions overlay, keyed by canonical URL.

    Links that are not structurally person profiles are dropped. Entries
    without a readable name fall back to a name derived from the URL.
    """
    root = overlay_root(soup) or soup
    found: Dict[str, IdentityReference] = {}
    from_url = set()

    for link in root.select(PROFILE_LINK_SELECTOR):
        profile_url = canonical_profile_url(link.get('href'))
        if not is_profile_url(profile_url):
            continue

        name = clean_name(_entry_name(link))
        derived = name == NOT_SPECIFIED
        if derived:
            name = name_from_profile_url(profile_url)
        if name == MEMBER_PLACEHOLDER:
            # Out-of-network members expose no usable profile
            continue

        if profile_url in found and (derived or profile_url not in from_url):
            continue
        found[profile_url] = IdentityReference(name=name, profile_url=profile_url)
        if derived:
            from_url.add(profile_url)
        else:
            from_url.discard(profile_url)

    return list(found.values())


def count_identities(soup: BeautifulSoup) -> int:
    """Distinct profile URLs currently rendered in the overlay."""
    root = overlay_root(soup) or soup
    urls = {canonical_profile_url(link.get('href')) for link in root.select(PROFILE_LINK_SELECTOR)}
    return len({url for url in urls if is_profile_url(url)})


class ModalHarvester:
    """Drives one reactions overlay from trigger to extraction."""

    def __init__(self, settings: Optional[Settings] = None, pacer: Optional[Pacer] = None):
        self.settings = settings or default_settings
        self.pacer = pacer or Pacer()
        self.state = HarvestState.IDLE
        self.scroll_steps = 0

    def _transition(self, state: HarvestState) -> None:
        logger.debug(f"Harvester: {self.state.value} -> {state.value}")
        self.state = state

    async def harvest(
        self,
        page: PlaywrightPage,
        source: EngagementSource,
        target_count: int
    ) -> List[IdentityReference]:
        """
        Open the overlay for ``source`` and return up to ``target_count``
        de-duplicated identities.

        Raises:
            NoOverlayError: the affordance could not be clicked or no overlay appeared
            ExtractionEmptyError: the overlay held no profile links
        """
        self.state = HarvestState.IDLE
        self.scroll_steps = 0
        try:
            await self.trigger(page, source)
            await self.wait_for_overlay(page)
            await self.scroll_until_exhausted(page, target_count)

            self._transition(HarvestState.EXTRACTING)
            identities = extract_identities(parse_html(await page.content()))
        except Exception:
            self._transition(HarvestState.FAILED)
            raise

        if not identities:
            self._transition(HarvestState.FAILED)
            raise ExtractionEmptyError(url=page.url)

        self._transition(HarvestState.DONE)
        logger.info(f"Harvested {len(identities)} unique profile(s) after {self.scroll_steps} scroll(s)")
        for i, identity in enumerate(identities[:10]):
            logger.debug(f"  {i + 1}. {identity.name}: {identity.profile_url}")
        return identities[:target_count]

    async def trigger(self, page: PlaywrightPage, source: EngagementSource) -> None:
        self._transition(HarvestState.TRIGGERING)
        logger.info(f"Opening reactions for post by {source.author} ({source.likes_count} reactions)")
        clicked = await page.evaluate(CLICK_AFFORDANCE_JS, source.index)
        if not clicked:
            raise NoOverlayError("Could not click the reaction count", url=page.url)
        await self.pacer.sleep(self.settings.click_settle_delay)

    async def wait_for_overlay(self, page: PlaywrightPage) -> None:
        self._transition(HarvestState.WAITING_FOR_OVERLAY)
        try:
            await page.wait_for_selector(
                OVERLAY_SELECTOR,
                timeout=self.settings.overlay_timeout * 1000
            )
        except PlaywrightTimeoutError as e:
            self.pacer.check()
            raise NoOverlayError(url=page.url) from e
        logger.debug("Reactions overlay detected")
        await self.pacer.sleep(self.settings.click_settle_delay)

    async def scroll_until_exhausted(self, page: PlaywrightPage, target_count: int) -> int:
        """
        Scroll the overlay until the target count is reached, the count stays
        unchanged for ``modal_stall_limit`` consecutive measurements, or the
        attempt bound runs out. Returns the last measured count.
        """
        self._transition(HarvestState.SCROLLING)
        max_attempts = self.settings.modal_max_scroll_attempts
        stall_limit = self.settings.modal_stall_limit

        previous: Optional[int] = None
        stalls = 0
        count = 0
        for attempt in range(max_attempts):
            count = count_identities(parse_html(await page.content()))
            logger.debug(f"Scroll {attempt + 1}/{max_attempts} - profiles loaded: {count}")

            if count >= target_count:
                logger.info(f"Reached target count: {count}/{target_count}")
                break

            if count == previous:
                stalls += 1
                if stalls >= stall_limit:
                    logger.info(f"No new profiles after {stalls} scrolls, stopping")
                    break
            else:
                stalls = 0
            previous = count

            await page.evaluate(SCROLL_OVERLAY_JS, self.settings.modal_scroll_increment)
            self.scroll_steps += 1
            await self.pacer.sleep(self.settings.modal_scroll_delay)
        return count

    async def close_overlay(self, page: PlaywrightPage) -> None:
        """Dismiss the overlay via its close button, then Escape."""
        try:
            await page.evaluate(CLOSE_OVERLAY_JS)
            await page.keyboard.press("Escape")
        except PlaywrightError as e:
            logger.debug(f"Overlay close skipped: {e.message}")
            return
        await self.pacer.sleep(self.settings.click_settle_delay)
