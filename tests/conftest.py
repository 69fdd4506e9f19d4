"""
Shared fixtures: fast settings and a small fake LinkedIn site.
"""
import pytest
from engagement_insights.models import Session
from tests.fakes import FakeBrowser, VALID_TOKEN, build_site, fast_settings


@pytest.fixture
def settings():
    return fast_settings()


@pytest.fixture
def site():
    return build_site()


@pytest.fixture
def browser(site):
    return FakeBrowser(site)


@pytest.fixture
def session():
    return Session(token=VALID_TOKEN, owner_label="research-account")
