import random

import pytest

from profile_scraper.models import ScrapeTask, SessionCookie
from profile_scraper.tests.fakes import RecordingSleep, RecordingStore


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def events():
    recorded = []

    def hook(event_type, data):
        recorded.append((event_type, data))

    hook.recorded = recorded
    return hook


@pytest.fixture
def make_task():
    def _make(target_url="https://www.linkedin.com/in/jane-doe/", **overrides):
        data = dict(
            target_url=target_url,
            session_credential=(SessionCookie(name="li_at", value="token", domain=".linkedin.com"),),
            retry_budget=3,
            page_budget=50,
            delay_range=(3000, 11000),
        )
        data.update(overrides)
        return ScrapeTask(**data)
    return _make
