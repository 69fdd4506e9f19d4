"""
Scraping engine: drives one job from session bootstrap to the result
envelope, through an explicit job handle the caller owns.
"""
import asyncio
import logging
import signal
from typing import List, Optional
from playwright.async_api import Error as PlaywrightError
from config import Settings, settings as default_settings
from engagement_insights.exceptions import (
    BrowserBusyError,
    ExtractionEmptyError,
    JobCancelledError,
    ScrapeError,
)
from engagement_insights.models import (
    BrowserStatus,
    JobRequest,
    NavigationTarget,
    ScrapeResult,
    Session,
    TargetKind,
)
from engagement_insights.models.base import utcnow
from engagement_insights.repositories.session_repository import session_repository
from engagement_insights.services.aggregator_service import aggregate
from engagement_insights.services.discovery_service import DiscoveryService
from engagement_insights.services.modal_service import ModalHarvester
from engagement_insights.services.navigation_service import NavigationService
from engagement_insights.services.profile_service import ProfileEnricher
from engagement_insights.services.session_service import (
    AuthenticatedContext,
    Launcher,
    SessionBootstrapper,
)
from engagement_insights.utils.pacing import Pacer
from engagement_insights.utils.urls import infer_target_kind, is_linkedin_url

logger = logging.getLogger(__name__)


def resolve_target(request: JobRequest) -> NavigationTarget:
    kind = request.target_kind
    if kind == TargetKind.AUTO:
        kind = infer_target_kind(request.url)
    return NavigationTarget(url=request.url, kind=kind)


class ScrapeJob:
    """
    One scrape run and the browsing process it owns.

    ``run()`` returns a ScrapeResult and never raises for engine failures.
    The browser is closed when the run ends, unless the request asked to
    keep the session open, in which case it is closed by ``close()``, by
    leaving the ``async with`` block, or after ``keep_open_timeout``.
    """

    def __init__(
        self,
        engine: "EngagementScraper",
        session: Optional[Session],
        request: JobRequest,
        settings: Settings
    ):
        self.engine = engine
        self.session = session
        self.request = request
        self.settings = settings
        self.target = resolve_target(request)
        self.pacer = Pacer(jitter=settings.pacing_jitter)
        self.auth: Optional[AuthenticatedContext] = None
        self.navigator: Optional[NavigationService] = None
        self.result: Optional[ScrapeResult] = None
        self.running = False
        self.closed = False
        self._auto_close: Optional[asyncio.TimerHandle] = None
        self._close_task: Optional[asyncio.Future] = None

    @property
    def target_count(self) -> int:
        return self.request.max_identities or self.settings.max_identities

    async def run(self) -> ScrapeResult:
        if self.running or self.result is not None or self.closed:
            raise RuntimeError("A ScrapeJob can only be run once")
        self.running = True
        started_at = utcnow()

        logger.info("=" * 60)
        logger.info(f"Starting scrape of {self.target.url} ({self.target.kind.value})")
        logger.info(f"Max profiles to process: {self.target_count}")

        try:
            result = await self._execute(started_at)
        except ScrapeError as e:
            logger.error(f"Scrape failed: {e.message}")
            result = ScrapeResult.failure(self.target.url, e.message)
        except PlaywrightError as e:
            if self.pacer.cancelled:
                result = ScrapeResult.failure(self.target.url, JobCancelledError.default_message)
            else:
                logger.error(f"Browser error during scrape: {e.message}", exc_info=True)
                result = ScrapeResult.failure(self.target.url, e.message)
        finally:
            self.running = False
            if self.request.keep_session_open and self.auth is not None and not self.pacer.cancelled:
                self._schedule_auto_close()
            else:
                await self.close()

        self.result = result
        if result.success:
            logger.info(f"Scrape complete: {result.stats.total_profiles} profile(s)")
        return result

    async def _execute(self, started_at) -> ScrapeResult:
        session = self.session if self.session is not None else session_repository.get_active_session()
        if not is_linkedin_url(self.target.url):
            logger.warning(f"Target does not look like a LinkedIn URL: {self.target.url}")

        self.auth = await self.engine.bootstrapper(self.pacer).bootstrap(session)
        self.navigator = NavigationService(self.auth.context, self.settings, self.pacer)
        discovery = DiscoveryService(self.settings, self.pacer)
        harvester = ModalHarvester(self.settings, self.pacer)
        enricher = ProfileEnricher(self.navigator, self.settings, self.pacer)

        async with self.navigator.open(self.target.url) as page:
            sources = await discovery.discover(page)
            if not sources:
                raise ExtractionEmptyError("No like buttons found", url=self.target.url)

            source = sources[0]
            post, comments = await discovery.read_post(
                page, source, kind=self.target.kind, with_comments=self.request.scrape_comments
            )
            identities = await harvester.harvest(page, source, self.target_count)
            await harvester.close_overlay(page)

        logger.info(f"Visiting {len(identities)} profile page(s)")
        enriched = await enricher.enrich_all(identities, source)
        return aggregate(self.target.url, enriched, post, comments, started_at)

    def cancel(self) -> None:
        """Stop the job: wake every pacing wait and close the browser."""
        if self.closed or self.pacer.cancelled:
            return
        logger.warning("Cancelling scrape job")
        self.pacer.cancel()
        self._close_task = asyncio.ensure_future(self.close())

    async def close(self) -> None:
        """Release the browsing process. Safe to call more than once."""
        if self._auto_close is not None:
            self._auto_close.cancel()
            self._auto_close = None
        if self.auth is not None:
            await self.auth.close()
        self.closed = True
        self.engine._release(self)

    def _schedule_auto_close(self) -> None:
        timeout = self.settings.keep_open_timeout
        logger.info(f"Keeping browser open, auto-close in {timeout:.0f}s")
        loop = asyncio.get_running_loop()
        self._auto_close = loop.call_later(timeout, self._auto_close_expired)

    def _auto_close_expired(self) -> None:
        logger.info("Keep-open window expired, closing browser")
        self._auto_close = None
        self._close_task = asyncio.ensure_future(self.close())

    def status(self) -> BrowserStatus:
        if self.auth is None:
            return BrowserStatus()
        current_url = self.navigator.current_url if self.navigator else None
        return BrowserStatus(
            is_connected=self.auth.is_connected,
            is_initialized=self.auth.is_initialized,
            current_url=current_url or self.auth.home_page.url
        )

    async def __aenter__(self) -> "ScrapeJob":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class EngagementScraper:
    """Hands out scrape jobs; at most one owns the browser at a time."""

    def __init__(self, settings: Optional[Settings] = None, launcher: Optional[Launcher] = None):
        self.settings = settings or default_settings
        self.launcher = launcher
        self._active: Optional[ScrapeJob] = None

    def bootstrapper(self, pacer: Pacer) -> SessionBootstrapper:
        return SessionBootstrapper(self.settings, launcher=self.launcher, pacer=pacer)

    @property
    def is_busy(self) -> bool:
        return self._active is not None

    def start_job(self, session: Optional[Session], request: JobRequest) -> ScrapeJob:
        """
        Reserve the browser for a new job.

        ``session`` may be None to use the most recent active stored session.

        Raises:
            BrowserBusyError: another job still owns the browser
        """
        if self.is_busy:
            raise BrowserBusyError()
        job = ScrapeJob(self, session, request, self.settings)
        self._active = job
        return job

    async def scrape(self, session: Optional[Session], request: JobRequest) -> ScrapeResult:
        """Run a job to completion and release the browser."""
        async with self.start_job(session, request) as job:
            return await job.run()

    def _release(self, job: ScrapeJob) -> None:
        if self._active is job:
            self._active = None

    def status(self) -> BrowserStatus:
        if self._active is None:
            return BrowserStatus()
        return self._active.status()


def install_signal_handlers(job: ScrapeJob, loop: Optional[asyncio.AbstractEventLoop] = None) -> bool:
    """Cancel ``job`` on SIGINT/SIGTERM. Returns False where unsupported."""
    loop = loop or asyncio.get_running_loop()
    installed: List[int] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, job.cancel)
        except NotImplementedError:
            logger.debug("Signal handlers are not supported on this platform")
            return False
        installed.append(sig)
    logger.debug(f"Installed handlers for signals {installed}")
    return True


def remove_signal_handlers(loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
    loop = loop or asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.remove_signal_handler(sig)
        except NotImplementedError:
            return
