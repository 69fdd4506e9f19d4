"""
Session bootstrapper and session repository tests.
"""
import json
import time
import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from engagement_insights.exceptions import (
    InvalidSessionError,
    LoginRejectedError,
    NavigationTimeoutError,
)
from engagement_insights.models import Session
from engagement_insights.repositories.session_repository import SessionRepository
from engagement_insights.services.session_service import (
    FEED_URL,
    STEALTH_INIT_SCRIPT,
    SessionBootstrapper,
)
from tests.fakes import FakeBrowser, FakeDocument, VALID_TOKEN, fake_launcher, fast_settings, load_fixture


@pytest.mark.asyncio
async def test_malformed_token_fails_before_launch(browser, settings):
    """Test that a bad token never starts a browser."""
    bootstrapper = SessionBootstrapper(settings, launcher=fake_launcher(browser))

    with pytest.raises(InvalidSessionError):
        await bootstrapper.bootstrap(Session(token="not-a-session-token"))
    with pytest.raises(InvalidSessionError):
        await bootstrapper.bootstrap(None)

    assert browser.launches == 0


@pytest.mark.asyncio
async def test_bootstrap_injects_cookie_and_verifies_feed(browser, session, settings):
    bootstrapper = SessionBootstrapper(settings, launcher=fake_launcher(browser))

    auth = await bootstrapper.bootstrap(session)

    assert auth.is_connected
    assert auth.home_page.url == FEED_URL
    context = browser.context
    cookie = context.cookies[0]
    assert cookie["name"] == "li_at"
    assert cookie["value"] == VALID_TOKEN
    assert cookie["domain"] == ".linkedin.com"
    assert cookie["expires"] > time.time() + 364 * 24 * 3600
    assert STEALTH_INIT_SCRIPT in context.init_scripts
    assert context.options["user_agent"] == settings.user_agent
    assert context.options["extra_http_headers"]["DNT"] == "1"

    await auth.close()
    await auth.close()
    assert browser.closed
    assert not auth.is_connected


@pytest.mark.asyncio
async def test_redirect_to_login_is_rejected(session, settings):
    site = {FEED_URL: FakeDocument(
        html=load_fixture("login.html"),
        final_url="https://www.linkedin.com/login?session_redirect=%2Ffeed%2F"
    )}
    browser = FakeBrowser(site)
    bootstrapper = SessionBootstrapper(settings, launcher=fake_launcher(browser))

    with pytest.raises(LoginRejectedError) as exc_info:
        await bootstrapper.bootstrap(session)

    assert exc_info.value.message == "Login failed - cookie may be expired"
    assert browser.closed


@pytest.mark.asyncio
async def test_login_form_on_feed_is_rejected(session, settings):
    browser = FakeBrowser({FEED_URL: FakeDocument(html=load_fixture("login.html"))})
    bootstrapper = SessionBootstrapper(settings, launcher=fake_launcher(browser))

    with pytest.raises(LoginRejectedError):
        await bootstrapper.bootstrap(session)
    assert browser.closed


@pytest.mark.asyncio
async def test_feed_timeout_is_transient_failure(session, settings):
    browser = FakeBrowser({FEED_URL: FakeDocument(goto_errors=[PlaywrightTimeoutError("Timeout")])})
    bootstrapper = SessionBootstrapper(settings, launcher=fake_launcher(browser))

    with pytest.raises(NavigationTimeoutError) as exc_info:
        await bootstrapper.bootstrap(session)

    assert exc_info.value.retryable
    assert browser.closed


def write_json(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_repository_returns_most_recent_active_session(tmp_path, settings):
    path = write_json(tmp_path / "sessions.json", [
        {"token": "AQEDold", "owner_label": "old", "last_used_at": "2024-01-01T00:00:00Z"},
        {"token": "AQEDnew", "owner_label": "new", "last_used_at": "2024-03-01T00:00:00Z"},
        {"token": "AQEDoff", "owner_label": "off", "last_used_at": "2024-06-01T00:00:00Z", "is_active": False},
        {"owner_label": "broken"},
    ])
    repository = SessionRepository(path, settings)

    assert len(repository.load()) == 3
    assert repository.get_active_session().owner_label == "new"


def test_repository_reads_cookie_exports(tmp_path, settings):
    cookies = [
        {"name": "JSESSIONID", "value": "ajax:123", "domain": ".www.linkedin.com"},
        {"name": "li_at", "value": VALID_TOKEN, "domain": ".www.linkedin.com"},
    ]
    exported = SessionRepository(write_json(tmp_path / "cookies.json", cookies), settings)
    storage_state = SessionRepository(
        write_json(tmp_path / "state.json", {"cookies": cookies, "origins": []}), settings
    )

    assert exported.get_active_session().token == VALID_TOKEN
    assert storage_state.get_active_session().token == VALID_TOKEN


def test_repository_falls_back_to_configured_token(tmp_path):
    missing = str(tmp_path / "missing.json")

    assert SessionRepository(missing, fast_settings()).get_active_session() is None
    session = SessionRepository(missing, fast_settings(linkedin_li_at=VALID_TOKEN)).get_active_session()
    assert session.token == VALID_TOKEN


def test_repository_ignores_invalid_json(tmp_path, settings):
    path = tmp_path / "sessions.json"
    path.write_text("{not json", encoding="utf-8")
    assert SessionRepository(str(path), settings).get_active_session() is None
