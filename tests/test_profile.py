"""
Profile enrichment tests.
"""
import pytest
from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError
from engagement_insights.exceptions import JobCancelledError
from engagement_insights.models import EngagementSource, IdentityReference, NOT_SPECIFIED
from engagement_insights.services.navigation_service import NavigationService
from engagement_insights.services.profile_service import (
    ProfileEnricher,
    finalize_fields,
    merge_experience,
    needs_experience,
    resolve_headline_fields,
)
from engagement_insights.utils.pacing import Pacer
from tests.fakes import (
    AUTH_WALL_URL,
    CLEAN_URL,
    EXPERIENCE_URL,
    FakeContext,
    FakeDocument,
    load_fixture,
)

MISSING_URL = "https://www.linkedin.com/in/gone-away/"
FLAKY_URL = "https://www.linkedin.com/in/flaky-fiona/"

SOURCE = EngagementSource(index=0, likes_count=12, author="Target Person")


def enricher_for(site, settings, pacer=None):
    context = FakeContext(site)
    navigator = NavigationService(context, settings, pacer or Pacer())
    return context, ProfileEnricher(navigator, settings)


def identity(url, name="Someone"):
    return IdentityReference(name=name, profile_url=url)


class TestHeadlineRules:
    def test_title_and_validated_company(self):
        assert resolve_headline_fields("Senior Engineer at Acme Robotics Inc") == (
            "Senior Engineer", "Acme Robotics Inc"
        )
        assert resolve_headline_fields("Founder @ Stripe") == ("Founder", "Stripe")

    def test_company_candidate_must_look_like_a_company(self):
        assert resolve_headline_fields("Growth · Full-time") == ("Growth", None)
        assert resolve_headline_fields("Engineer at lead developer") == ("Engineer", None)

    def test_affordance_company_wins(self):
        assert resolve_headline_fields("Analyst at Hooli", "Globex · Full-time") == ("Analyst", "Globex")

    def test_no_headline(self):
        assert resolve_headline_fields(None) == (None, None)

    def test_needs_experience(self):
        assert needs_experience("Engineer", None)
        assert needs_experience(None, "Acme")
        assert needs_experience("Engineer - Platform | Data", "Acme")
        assert not needs_experience("Engineer", "Acme")

    def test_merge_keeps_good_values(self):
        assert merge_experience("Growth", None, ("Head of Growth", "Globex · Full-time")) == (
            "Growth", "Globex"
        )
        assert merge_experience("Lead | Data", "Acme", ("Data Lead", "Initech")) == ("Data Lead", "Acme")
        assert merge_experience("Lead", None, None) == ("Lead", None)

    def test_finalize_truncates_and_fills_sentinel(self):
        assert finalize_fields("Lead · Data", None) == ("Lead", NOT_SPECIFIED)
        assert finalize_fields("--", "Acme") == (NOT_SPECIFIED, "Acme")


@pytest.mark.asyncio
async def test_clean_headline(site, settings):
    context, enricher = enricher_for(site, settings)

    profile = await enricher.enrich(identity(CLEAN_URL, "Alice"), SOURCE)

    assert profile.name == "Alice Clean"
    assert profile.job_title == "Senior Engineer"
    assert profile.company == "Acme Robotics Inc"
    assert profile.post_author == "Target Person"
    assert profile.post_content == "Post with 12 likes"
    assert context.pages[0].profile_scrolls == 0
    assert context.open_pages == []


@pytest.mark.asyncio
async def test_experience_fallback_fills_company(site, settings):
    context, enricher = enricher_for(site, settings)
    reference = identity(EXPERIENCE_URL, "Bob")

    profile = await enricher.enrich(reference)

    assert profile.name == "Bob Builder"
    assert profile.job_title == "Growth"
    assert profile.company == "Globex Corporation"
    assert profile.liked_at == reference.discovered_at
    assert context.pages[0].profile_scrolls == settings.experience_scroll_steps


@pytest.mark.asyncio
async def test_missing_experience_leaves_sentinel(settings):
    site = {EXPERIENCE_URL: FakeDocument(html=load_fixture("profile_experience.html"), title="LinkedIn")}
    _, enricher = enricher_for(site, settings)

    profile = await enricher.enrich(identity(EXPERIENCE_URL))

    assert profile.job_title == "Growth"
    assert profile.company == NOT_SPECIFIED


@pytest.mark.asyncio
async def test_auth_wall_degrades_without_retry(site, settings):
    context, enricher = enricher_for(site, settings)

    profile = await enricher.enrich(identity(AUTH_WALL_URL, "Jane"), SOURCE)

    assert profile.name == "Jane Doe"
    assert profile.job_title == NOT_SPECIFIED
    assert profile.company == NOT_SPECIFIED
    assert profile.is_degraded
    assert context.goto_log == [AUTH_WALL_URL]
    assert context.open_pages == []


@pytest.mark.asyncio
async def test_not_found_degrades(settings):
    site = {MISSING_URL: FakeDocument(title="Page not found | LinkedIn")}
    context, enricher = enricher_for(site, settings)

    profile = await enricher.enrich(identity(MISSING_URL))

    assert profile.name == "Gone Away"
    assert profile.is_degraded
    assert len(context.goto_log) == 1


@pytest.mark.asyncio
async def test_exhausted_retries_degrade(settings):
    errors = [PlaywrightTimeoutError("Timeout 60000ms exceeded") for _ in range(3)]
    site = {FLAKY_URL: FakeDocument(goto_errors=errors)}
    context, enricher = enricher_for(site, settings)

    profile = await enricher.enrich(identity(FLAKY_URL))

    assert profile.name == "Flaky Fiona"
    assert profile.is_degraded
    assert len(context.goto_log) == settings.enrich_max_attempts
    assert context.open_pages == []


@pytest.mark.asyncio
async def test_transient_failure_then_success(settings):
    site = {
        FLAKY_URL: FakeDocument(
            html=load_fixture("profile_clean.html"),
            title="Alice Clean | LinkedIn",
            goto_errors=[PlaywrightError("net::ERR_CONNECTION_RESET")]
        )
    }
    context, enricher = enricher_for(site, settings)

    profile = await enricher.enrich(identity(FLAKY_URL))

    assert profile.company == "Acme Robotics Inc"
    assert len(context.goto_log) == 2


@pytest.mark.asyncio
async def test_cancelled_job_is_not_degraded(site, settings):
    pacer = Pacer()
    pacer.cancel()
    context, enricher = enricher_for(site, settings, pacer)

    with pytest.raises(JobCancelledError):
        await enricher.enrich(identity(CLEAN_URL))
    assert context.goto_log == []


@pytest.mark.asyncio
async def test_enrich_all_keeps_discovery_order(site, settings):
    _, enricher = enricher_for(site, settings)
    identities = [identity(EXPERIENCE_URL), identity(AUTH_WALL_URL), identity(CLEAN_URL)]

    profiles = await enricher.enrich_all(identities, SOURCE)

    assert [p.profile_url for p in profiles] == [EXPERIENCE_URL, AUTH_WALL_URL, CLEAN_URL]
    assert [p.name for p in profiles] == ["Bob Builder", "Jane Doe", "Alice Clean"]


@pytest.mark.asyncio
async def test_slug_resembling_login_path_is_enriched(settings):
    url = "https://www.linkedin.com/in/anna-loginova/"
    site = {url: FakeDocument(html=load_fixture("profile_clean.html"), title="Anna Loginova | LinkedIn")}
    _, enricher = enricher_for(site, settings)

    profile = await enricher.enrich(identity(url))

    assert profile.job_title == "Senior Engineer"
    assert profile.company == "Acme Robotics Inc"
