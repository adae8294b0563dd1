import pytest

from profile_scraper.config import COOKIE_ORIGIN, ENTRY_URL
from profile_scraper.detection import DetectionMonitor
from profile_scraper.extractor import FieldExtractor
from profile_scraper.linkedin_scraper import LinkedInScraper
from profile_scraper.linkedin_selectors import Selectors as S
from profile_scraper.models import Exhausted, Success
from profile_scraper.tests.fakes import FakeDriver, FakeElement, FakePage

TARGET = "https://www.linkedin.com/in/jane-doe/"
SEARCH = "https://www.linkedin.com/search/results/people/?keywords=data"
SEARCH_2 = SEARCH + "&page=2"
AUTHWALL = "https://www.linkedin.com/authwall?trk=bf&sessionRedirect=x"

NO_BACKOFF = {"block_backoff": 0, "block_jitter": 0, "error_backoff": 0}


def _profile_page(url=TARGET):
    return FakePage(url, {
        S.NAME: [FakeElement("Jane Doe")],
        S.HEADLINE: [FakeElement("Data Engineer at Acme")],
        S.PROFILE_CARD: [FakeElement()],
    }, title="Jane Doe | LinkedIn")


def _card(name, slug):
    return FakeElement(children={
        S.CARD_NAME: [FakeElement(name)],
        S.CARD_LINK: [FakeElement(attrs={"href": f"https://www.linkedin.com/in/{slug}?miniProfileUrn=x"})],
    })


def _search_page(url, names):
    return FakePage(url, {
        S.RESULT_CARDS: [_card(n, n.lower().replace(" ", "-")) for n in names],
        S.RESULTS_LIST: [FakeElement()],
    })


def _pages(**extra):
    pages = {COOKIE_ORIGIN: FakePage(COOKIE_ORIGIN), ENTRY_URL: FakePage(ENTRY_URL), TARGET: _profile_page()}
    pages.update(extra)
    return pages


class SpyExtractor(FieldExtractor):
    def __init__(self, order):
        self.order = order

    def extract(self, document, rule_set, source_url, **extra):
        self.order.append("extract")
        return super().extract(document, rule_set, source_url, **extra)


class ScriptedMonitor(DetectionMonitor):
    def __init__(self, order, verdicts):
        super().__init__(probe_timeout=0, poll_frequency=0.01)
        self.order = order
        self.verdicts = list(verdicts)

    def probe(self, document, current_url=None):
        self.order.append("detect")
        return self.verdicts.pop(0) if self.verdicts else None


def _scraper(driver, rng, sleep, events, **kw):
    kw.setdefault("monitor", DetectionMonitor(probe_timeout=0, poll_frequency=0.01))
    return LinkedInScraper(driver=driver, rng=rng, sleep=sleep, content_timeout=0, next_page_timeout=0,
                           retry_options=NO_BACKOFF, on_event=events, **kw)


def test_profile_success_pushes_one_record(make_task, rng, sleep, events, store):
    driver = FakeDriver(_pages())
    with _scraper(driver, rng, sleep, events) as scraper:
        outcome = scraper.scrape_profile(make_task(TARGET), store)

    assert isinstance(outcome, Success)
    assert len(store.records) == 1
    record = store.records[0]
    assert record.name == "Jane Doe"
    assert record.headline == "Data Engineer at Acme"
    assert record.status == "ok"
    assert record.source_url == TARGET
    assert driver.visited == [COOKIE_ORIGIN, ENTRY_URL, TARGET]
    assert driver.quit_calls == 1
    assert "extracted" in [name for name, _ in events.recorded]


def test_detection_runs_before_extraction(make_task, rng, sleep, events, store):
    order = []
    driver = FakeDriver(_pages())
    scraper = _scraper(driver, rng, sleep, events, monitor=ScriptedMonitor(order, [None]),
                       extractor=SpyExtractor(order))
    with scraper:
        scraper.scrape_profile(make_task(TARGET), store)
    assert order == ["detect", "extract"]


def test_blocked_attempts_never_reach_the_extractor(make_task, rng, sleep, events, store):
    order = []
    driver = FakeDriver(_pages())
    scraper = _scraper(driver, rng, sleep, events, monitor=ScriptedMonitor(order, ["captcha"] * 3),
                       extractor=SpyExtractor(order))
    with scraper:
        outcome = scraper.scrape_profile(make_task(TARGET), store)

    assert order == ["detect", "detect", "detect"]
    assert isinstance(outcome, Exhausted)
    assert outcome.attempts == 3
    assert len(store.records) == 1
    assert store.records[0].status == "exhausted"
    assert store.records[0].error.startswith("blocked:")
    assert store.records[0].name is None


def test_block_then_clean_page_succeeds_on_retry(make_task, rng, sleep, events, store):
    order = []
    driver = FakeDriver(_pages())
    scraper = _scraper(driver, rng, sleep, events, monitor=ScriptedMonitor(order, ["challenge", None]))
    with scraper:
        outcome = scraper.scrape_profile(make_task(TARGET), store)
    assert isinstance(outcome, Success)
    assert len(store.records) == 1
    assert store.records[0].name == "Jane Doe"


def test_authwall_redirect_is_blocked_not_transient(make_task, rng, sleep, events, store):
    driver = FakeDriver(_pages(**{TARGET: FakePage(AUTHWALL)}))
    scraper = _scraper(driver, rng, sleep, events)
    with scraper:
        outcome = scraper.scrape_profile(make_task(TARGET, retry_budget=2), store)

    assert isinstance(outcome, Exhausted)
    states = [data["state"] for name, data in events.recorded if name == "retry_state"]
    assert "transient_error" not in states
    assert states.count("blocked") == 2
    assert store.records[0].error.startswith("blocked:")
    assert store.records[0].source_url == TARGET


def test_navigation_timeouts_exhaust_as_transient(make_task, rng, sleep, events, store):
    driver = FakeDriver(_pages(), fail_urls=(TARGET,))
    scraper = _scraper(driver, rng, sleep, events)
    with scraper:
        outcome = scraper.scrape_profile(make_task(TARGET), store)

    assert isinstance(outcome, Exhausted)
    assert driver.visited.count(TARGET) == 3
    assert len(store.records) == 1
    assert store.records[0].error.startswith("TransientNavigationError")


def test_credential_is_applied_once_across_retries(make_task, rng, sleep, events, store):
    driver = FakeDriver(_pages(), fail_urls=(TARGET,))
    with _scraper(driver, rng, sleep, events) as scraper:
        scraper.scrape_profile(make_task(TARGET), store)
    assert driver.visited.count(COOKIE_ORIGIN) == 1
    assert len(driver.cookies) == 1


def test_browser_quits_once_even_when_body_raises(rng, sleep, events):
    driver = FakeDriver(_pages())
    scraper = _scraper(driver, rng, sleep, events)
    with pytest.raises(KeyError):
        with scraper:
            raise KeyError("boom")
    scraper.close()
    assert driver.quit_calls == 1


def test_search_single_page_without_next_control(make_task, rng, sleep, events, store):
    names = [f"Person {i}" for i in range(12)]
    driver = FakeDriver(_pages(**{SEARCH: _search_page(SEARCH, names)}))
    with _scraper(driver, rng, sleep, events) as scraper:
        result = scraper.scrape_search(make_task(SEARCH), store)

    assert result.pages_processed == 1
    assert result.exhausted is False
    assert len(store.records) == 1
    page = store.records[0]
    assert page.page_number == 1
    assert len(page.results) == 10
    assert page.results[0].profile_url == "https://www.linkedin.com/in/person-0"


def test_search_follows_next_without_renavigating(make_task, rng, sleep, events, store, monkeypatch):
    driver = FakeDriver(_pages(**{
        SEARCH: _search_page(SEARCH, ["Ada Lovelace"]),
        SEARCH_2: _search_page(SEARCH_2, ["Grace Hopper"]),
    }))
    scraper = _scraper(driver, rng, sleep, events)
    clicks = iter([True, False])

    def fake_next():
        if next(clicks):
            driver.get(SEARCH_2)
            return True
        return False

    monkeypatch.setattr(scraper, "_click_next_page", fake_next)
    with scraper:
        result = scraper.scrape_search(make_task(SEARCH), store)

    assert result.pages_processed == 2
    assert [r.page_number for r in store.records] == [1, 2]
    assert store.records[1].results[0].name == "Grace Hopper"
    assert store.records[1].source_url == SEARCH_2
    assert driver.visited.count(ENTRY_URL) == 1


def test_search_stops_at_page_budget(make_task, rng, sleep, events, store, monkeypatch):
    driver = FakeDriver(_pages(**{SEARCH: _search_page(SEARCH, ["Ada Lovelace"])}))
    scraper = _scraper(driver, rng, sleep, events)
    advanced = []
    monkeypatch.setattr(scraper, "_click_next_page", lambda: advanced.append(1) or True)
    with scraper:
        result = scraper.scrape_search(make_task(SEARCH, page_budget=3), store)

    assert result.pages_processed == 3
    assert len(store.records) == 3
    assert len(advanced) == 2


def test_failed_next_click_ends_search_cleanly(make_task, rng, sleep, events, store, monkeypatch):
    driver = FakeDriver(_pages(**{SEARCH: _search_page(SEARCH, ["Ada Lovelace"])}))
    scraper = _scraper(driver, rng, sleep, events)

    def broken_next():
        raise RuntimeError("element click intercepted")

    monkeypatch.setattr(scraper, "_click_next_page", broken_next)
    with scraper:
        result = scraper.scrape_search(make_task(SEARCH), store)
    assert result.pages_processed == 1
    assert result.exhausted is False
    assert driver.quit_calls == 1


def test_slug_resembling_login_path_is_scraped(make_task, rng, sleep, events, store):
    loginov = "https://www.linkedin.com/in/loginov-ivan-1a2b3c/"
    driver = FakeDriver(_pages(**{loginov: _profile_page(loginov)}))
    with _scraper(driver, rng, sleep, events) as scraper:
        outcome = scraper.scrape_profile(make_task(loginov), store)

    assert isinstance(outcome, Success)
    assert store.records[0].name == "Jane Doe"
    assert driver.visited.count(loginov) == 1


class SnapshotMonitor(DetectionMonitor):
    """Clean verdict; remembers what had happened by the time each page was checked."""

    def __init__(self, snapshot):
        super().__init__(probe_timeout=0, poll_frequency=0.01)
        self.snapshot = snapshot
        self.seen = []

    def probe(self, document, current_url=None):
        self.seen.append(self.snapshot())
        return None


def test_pause_and_simulation_between_pages(make_task, rng, sleep, events, store, monkeypatch):
    driver = FakeDriver(_pages(**{
        SEARCH: _search_page(SEARCH, ["Ada Lovelace"]),
        SEARCH_2: _search_page(SEARCH_2, ["Grace Hopper"]),
    }))

    def snapshot():
        return len(sleep.calls), len(driver.scripts)

    monitor = SnapshotMonitor(snapshot)
    scraper = _scraper(driver, rng, sleep, events, monitor=monitor)
    advanced_at = []

    def fake_next():
        driver.get(SEARCH_2)
        advanced_at.append(snapshot())
        return True

    monkeypatch.setattr(scraper, "_click_next_page", fake_next)
    task = make_task(SEARCH, page_budget=2, delay_range=(20000, 30000))
    with scraper:
        result = scraper.scrape_search(task, store)

    assert result.pages_processed == 2
    assert len(advanced_at) == 1 and len(monitor.seen) == 2
    (sleeps_before, scripts_before), (sleeps_after, scripts_after) = advanced_at[0], monitor.seen[1]

    gap_sleeps = sleep.calls[sleeps_before:sleeps_after]
    lo, hi = task.delay_range[0] / 1000, task.delay_range[1] / 1000
    assert gap_sleeps and lo <= gap_sleeps[0] <= hi
    assert sum(lo <= s <= hi for s in gap_sleeps) == 1
    gap_scripts = driver.scripts[scripts_before:scripts_after]
    assert any(s.startswith("window.scrollTo") for s in gap_scripts)
