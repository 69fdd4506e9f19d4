"""
Profile enricher: visits each harvested identity's profile page and
classifies its headline and experience text into name, job title and company.
"""
import logging
from typing import List, Optional, Tuple
from playwright.async_api import (
    Error as PlaywrightError,
    Page as PlaywrightPage,
    TimeoutError as PlaywrightTimeoutError,
)
from config import Settings, settings as default_settings
from engagement_insights.exceptions import (
    AuthWallError,
    JobCancelledError,
    NotFoundError,
    ScrapeError,
)
from engagement_insights.extractors.base import parse_html
from engagement_insights.extractors.experience_extractors import extract_experience
from engagement_insights.extractors.profile_extractors import (
    extract_current_company,
    extract_headline,
    extract_name,
)
from engagement_insights.models import (
    EngagementSource,
    EnrichedProfile,
    IdentityReference,
    NOT_SPECIFIED,
)
from engagement_insights.services.navigation_service import NavigationService
from engagement_insights.utils.pacing import Pacer
from engagement_insights.utils.retry import retry_async
from engagement_insights.utils.text import (
    clean_company,
    clean_name,
    contains_separator,
    extract_company_from_headline,
    is_placeholder,
    normalize_field,
    split_headline,
    truncate_at_separator,
)
from engagement_insights.utils.urls import name_from_profile_url

logger = logging.getLogger(__name__)


PROFILE_CARD_SELECTOR = '.pv-top-card, .profile-card, .top-card-layout'

SCROLL_PROFILE_JS = "(increment) => window.scrollBy(0, increment)"

# Landing failures that will not resolve by repeating the same navigation
NON_RETRYABLE = (AuthWallError, NotFoundError, JobCancelledError)


def is_retryable(exc: BaseException) -> bool:
    return not isinstance(exc, NON_RETRYABLE)


def resolve_headline_fields(
    headline: Optional[str],
    affordance_company: Optional[str] = None
) -> Tuple[Optional[str], Optional[str]]:
    """
    Job title and company from the top card.

    The segment before the first separator is the job title. A dedicated
    company affordance wins over the headline; otherwise the headline only
    yields a company that passes ``looks_like_company``.
    """
    job_title, _ = split_headline(headline)

    company = None
    if not is_placeholder(affordance_company):
        company = clean_company(affordance_company)
        if company == NOT_SPECIFIED:
            company = None
    if company is None and headline:
        company = extract_company_from_headline(headline)
    return job_title, company


def needs_experience(job_title: Optional[str], company: Optional[str]) -> bool:
    """Experience fallback when either field is missing or the title was mis-split."""
    return (
        is_placeholder(job_title)
        or is_placeholder(company)
        or contains_separator(job_title)
    )


def merge_experience(
    job_title: Optional[str],
    company: Optional[str],
    experience: Optional[Tuple[str, str]]
) -> Tuple[Optional[str], Optional[str]]:
    """Fill gaps from the first experience entry without overriding good values."""
    if not experience:
        return job_title, company
    exp_title, exp_company = experience
    if is_placeholder(company) and not is_placeholder(exp_company):
        company = clean_company(exp_company)
    if (is_placeholder(job_title) or contains_separator(job_title)) and not is_placeholder(exp_title):
        job_title = exp_title
    return job_title, company


def finalize_fields(job_title: Optional[str], company: Optional[str]) -> Tuple[str, str]:
    if job_title and contains_separator(job_title):
        job_title = truncate_at_separator(job_title)
    return normalize_field(job_title), normalize_field(company)


class ProfileEnricher:
    """Sequential, retrying enrichment of identity references."""

    def __init__(
        self,
        navigator: NavigationService,
        settings: Optional[Settings] = None,
        pacer: Optional[Pacer] = None
    ):
        self.navigator = navigator
        self.settings = settings or default_settings
        self.pacer = pacer or navigator.pacer

    async def enrich(
        self,
        identity: IdentityReference,
        source: Optional[EngagementSource] = None
    ) -> EnrichedProfile:
        """
        Enrich one identity. Never raises for per-profile failures: auth
        walls, missing pages and exhausted retries all produce a degraded
        record with the name derived from the profile URL.
        """
        async def attempt() -> EnrichedProfile:
            return await self._enrich_once(identity, source)
        attempt.__name__ = f"enrich({identity.profile_url})"

        try:
            return await retry_async(
                attempt,
                max_attempts=self.settings.enrich_max_attempts,
                initial_delay=self.settings.retry_backoff,
                exponential_base=1.0,
                exceptions=(ScrapeError, PlaywrightError),
                retry_if=is_retryable,
                sleep=self.pacer.sleep
            )
        except (AuthWallError, NotFoundError) as e:
            logger.warning(f"{e.message} for {identity.profile_url}, using URL-derived name")
            return self.degraded(identity, source)
        except ScrapeError as e:
            if e.fatal:
                raise
            logger.error(f"Giving up on {identity.profile_url}: {e.message}")
            return self.degraded(identity, source)
        except PlaywrightError as e:
            self.pacer.check()
            logger.error(f"Giving up on {identity.profile_url}: {e.message}")
            return self.degraded(identity, source)

    async def enrich_all(
        self,
        identities: List[IdentityReference],
        source: Optional[EngagementSource] = None
    ) -> List[EnrichedProfile]:
        """Enrich in discovery order, pacing between profiles."""
        enriched: List[EnrichedProfile] = []
        total = len(identities)
        for i, identity in enumerate(identities):
            logger.info(f"[{i + 1}/{total}] Processing {identity.name}")
            enriched.append(await self.enrich(identity, source))
            if i < total - 1:
                await self.pacer.sleep(self.settings.inter_profile_delay)
        return enriched

    def degraded(
        self,
        identity: IdentityReference,
        source: Optional[EngagementSource] = None
    ) -> EnrichedProfile:
        return self._record(identity, source, name_from_profile_url(identity.profile_url))

    def _record(
        self,
        identity: IdentityReference,
        source: Optional[EngagementSource],
        name: str,
        job_title: str = NOT_SPECIFIED,
        company: str = NOT_SPECIFIED
    ) -> EnrichedProfile:
        profile = EnrichedProfile(
            name=name,
            job_title=job_title,
            company=company,
            profile_url=identity.profile_url,
            liked_at=identity.discovered_at
        )
        if source is not None:
            profile.post_author = source.author
            profile.post_content = source.content_summary
        return profile

    async def _enrich_once(
        self,
        identity: IdentityReference,
        source: Optional[EngagementSource]
    ) -> EnrichedProfile:
        async with self.navigator.open(identity.profile_url) as page:
            await self._wait_for_profile_card(page)
            soup = parse_html(await page.content())

            name = clean_name(extract_name(soup))
            if name == NOT_SPECIFIED:
                name = identity.name
            headline = extract_headline(soup)
            job_title, company = resolve_headline_fields(headline, extract_current_company(soup))
            logger.debug(f"Headline {headline!r} -> title={job_title!r}, company={company!r}")

            if needs_experience(job_title, company):
                logger.info("Company or job title missing, checking experience section")
                await self._scroll_to_experience(page)
                experience = extract_experience(parse_html(await page.content()))
                job_title, company = merge_experience(job_title, company, experience)

        job_title, company = finalize_fields(job_title, company)
        logger.info(f"Extracted: {name} | Job: {job_title} | Company: {company}")
        return self._record(identity, source, name, job_title, company)

    async def _wait_for_profile_card(self, page: PlaywrightPage) -> None:
        try:
            await page.wait_for_selector(
                PROFILE_CARD_SELECTOR,
                timeout=self.settings.profile_card_timeout * 1000
            )
        except PlaywrightTimeoutError:
            logger.debug("Profile card not found, waiting a bit more")
            await self.pacer.sleep(self.settings.page_settle_delay)
        await self.pacer.sleep(self.settings.profile_settle_delay)

    async def _scroll_to_experience(self, page: PlaywrightPage) -> None:
        viewport = page.viewport_size or {"height": self.settings.viewport_height}
        for _ in range(self.settings.experience_scroll_steps):
            await page.evaluate(SCROLL_PROFILE_JS, int(viewport["height"] * 0.8))
            await self.pacer.sleep(self.settings.experience_scroll_delay)
