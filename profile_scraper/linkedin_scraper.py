from __future__ import annotations
import random, time
from pathlib import Path
from typing import Callable

from selenium.common.exceptions import TimeoutException
from selenium.webdriver.common.action_chains import ActionChains
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webelement import WebElement
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from .config import HEADLESS, CACHE_DIR, CONTENT_WAIT_SECONDS, NEXT_PAGE_TIMEOUT_SECONDS
from .detection import DetectionMonitor
from .exceptions import DetectionBlock, SessionInvalid
from .extractor import FieldExtractor, RuleSet
from .humanize import HumanBehaviorSimulator, random_delay
from .io_utils import log_event
from .linkedin_selectors import Selectors as S, build_profile_rules, build_search_rules
from .models import AttemptOutcome, ExtractedRecord, ProfileRecord, ScrapeTask, Success
from .pagination import PaginationDriver, PaginationResult
from .retry import RetryDriver
from .session import SessionController, SessionState


class LinkedInScraper:
    """
    Owns the browser for one task and runs the profile or search variant.

    Use as a context manager: the browser is acquired on entry and quit exactly
    once on exit, whatever happened in between.
    """

    def __init__(self, headless: bool = HEADLESS, driver=None, rng: random.Random | None = None,
                 sleep: Callable[[float], None] = time.sleep, monitor: DetectionMonitor | None = None,
                 extractor: FieldExtractor | None = None, profile_rules: RuleSet | None = None,
                 search_rules: RuleSet | None = None, content_timeout: float = CONTENT_WAIT_SECONDS,
                 next_page_timeout: float = NEXT_PAGE_TIMEOUT_SECONDS, retry_options: dict | None = None,
                 on_event: Callable[[str, dict], None] = log_event):
        self.headless = headless
        self.driver = driver
        self.rng = rng or random.Random()
        self.sleep = sleep
        self.monitor = monitor or DetectionMonitor()
        self.extractor = extractor or FieldExtractor()
        self.profile_rules = profile_rules or build_profile_rules()
        self.search_rules = search_rules or build_search_rules()
        self.content_timeout = content_timeout
        self.next_page_timeout = next_page_timeout
        self.retry_options = retry_options or {}
        self._log_event = on_event

        self.session: SessionController | None = None
        self.simulator: HumanBehaviorSimulator | None = None
        self._credential_applied = False
        self._closed = False

    # ---------- lifecycle ----------
    def __enter__(self) -> "LinkedInScraper":
        if self.driver is None:
            from .driver_manager import build_driver
            self.driver = build_driver(self.headless)
        self.session = SessionController(self.driver, rng=self.rng, sleep=self.sleep)
        self.simulator = HumanBehaviorSimulator(self.driver, rng=self.rng, sleep=self.sleep)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    def close(self):
        if self._closed or self.driver is None:
            return
        self._closed = True
        try:
            self.driver.quit()
        except Exception as e:
            print(f"⚠️  Browser did not quit cleanly: {e}")

    # ---------- variants ----------
    def scrape_profile(self, task: ScrapeTask, store) -> AttemptOutcome:
        """Single profile: exactly one record (data or terminal error) reaches ``store``."""
        rules = self.profile_rules
        print(f"✅ Starting LinkedIn profile scraping: {task.target_url}")
        retry = self._retry_driver(task)
        outcome = retry.run(
            lambda n: self._attempt(task, rules, task.target_url),
            lambda err: rules.record_model(source_url=task.target_url, status="exhausted", error=err),
        )
        store.push(outcome.record)
        if isinstance(outcome, Success):
            self._summarize(outcome.record)
        return outcome

    def scrape_search(self, task: ScrapeTask, store) -> PaginationResult:
        """Result pages from ``task.target_url`` on: one record per page reaches ``store``."""
        rules = self.search_rules
        page_url = task.target_url
        print(f"✅ Starting LinkedIn search scraping: {page_url}")

        def run_page(page_number: int) -> AttemptOutcome:
            print(f"📄 Page {page_number}")
            retry = self._retry_driver(task)

            def attempt(n: int) -> ExtractedRecord:
                # later pages are reached through "Next"; only retries navigate again
                navigate = page_number == 1 or n > 1
                return self._attempt(task, rules, page_url, navigate=navigate, page_number=page_number)

            return retry.run(
                attempt,
                lambda err: rules.record_model(source_url=page_url, status="exhausted", error=err,
                                               page_number=page_number),
            )

        def advance() -> bool:
            nonlocal page_url
            try:
                if not self._click_next_page():
                    return False
            except Exception as e:
                print(f"⚠️ Could not advance to next page ({type(e).__name__}); stopping here.")
                return False
            page_url = self.driver.current_url
            return True

        def between_pages() -> None:
            self.sleep(random_delay(self.rng, task.delay_range))
            self.simulator.simulate()

        result = PaginationDriver(task.page_budget, advance, between_pages).run(run_page, store.push)
        print(f"✅ Finished harvesting {result.pages_processed} page(s)")
        return result

    # ---------- one attempt ----------
    def _attempt(self, task: ScrapeTask, rules: RuleSet, target_url: str, navigate: bool = True,
                 **extra) -> ExtractedRecord:
        """navigate -> detect -> simulate -> extract, in that order."""
        if not self._credential_applied:
            self.session.apply_credential(task.session_credential)
            self._credential_applied = True

        if navigate:
            state = self.session.establish(task, target_url)
            if state is SessionState.UNESTABLISHED:
                raise SessionInvalid(f"session not established ({self.driver.current_url})")

        current_url = self.driver.current_url
        reason = self.monitor.probe(self.driver, current_url)
        self._log_page_state(rules.name, reason)
        if reason:
            self._debug_dump(f"blocked_{reason}")
            raise DetectionBlock(f"{reason} marker on {current_url}")

        print("📖 Reading page...")
        self.simulator.simulate()
        self._wait_for_content(rules.ready_locator)

        record = self.extractor.extract(self.driver, rules, source_url=self.driver.current_url, **extra)
        self._log_event("extracted", {
            "rule_set": rules.name,
            "found_keys": [f for f in rules.fields if getattr(record, f, None)],
            "field_errors": record.field_errors,
        })
        return record

    def _wait_for_content(self, locator) -> None:
        if locator is None:
            return
        try:
            WebDriverWait(self.driver, self.content_timeout, poll_frequency=0.25).until(
                lambda d: d.find_elements(*locator)
            )
        except TimeoutException:
            print("    ⚠️  Content not found - page may not be fully loaded, continuing anyway...")

    # ---------- pagination helpers ----------
    def _current_results_marker(self) -> str:
        """Fingerprint current results (first card urn or first profile href)."""
        try:
            first_card = self.driver.find_element(By.XPATH, "(//div[@data-chameleon-result-urn])[1]")
            urn = first_card.get_attribute("data-chameleon-result-urn") or ""
            if urn:
                return urn
        except Exception:
            pass
        try:
            first_link = self.driver.find_element(By.XPATH, "(//a[contains(@href,'/in/')])[1]")
            return first_link.get_attribute("href") or ""
        except Exception:
            return ""

    def _click_next_page(self) -> bool:
        """
        Click Next and wait until either the URL or the first result changes.
        False when there is no enabled Next control or the click went nowhere.
        """
        old_url = self.driver.current_url
        old_mark = self._current_results_marker()

        try:
            next_btn = WebDriverWait(self.driver, self.monitor.probe_timeout, poll_frequency=0.25).until(
                EC.element_to_be_clickable(S.PAGINATION_NEXT)
            )
        except TimeoutException:
            return False

        try:
            self.driver.execute_script("arguments[0].scrollIntoView({block:'center'});", next_btn)
        except Exception:
            pass
        self.sleep(self.rng.uniform(0.05, 0.15))
        self._human_click(next_btn)

        def page_or_results_changed(_):
            now = self._current_results_marker()
            return (old_mark and now and now != old_mark) or (self.driver.current_url != old_url)

        try:
            WebDriverWait(self.driver, self.next_page_timeout).until(page_or_results_changed)
            self.sleep(self.rng.uniform(0.8, 1.6))
            return True
        except TimeoutException:
            print("⚠️ Next click didn't change results; staying on this page.")
            return False

    def _human_click(self, element: WebElement):
        """Moves to a random location within an element, pauses, and clicks."""
        try:
            width, height = element.size['width'], element.size['height']
            x_offset = self.rng.randint(-width // 4, width // 4)
            y_offset = self.rng.randint(-height // 4, height // 4)
            ActionChains(self.driver).move_to_element(element).move_by_offset(x_offset, y_offset) \
                .pause(self.rng.uniform(0.1, 0.4)).click().perform()
        except Exception:
            # plain element click still produces trusted events
            element.click()

    # ---------- diagnostics ----------
    def _retry_driver(self, task: ScrapeTask) -> RetryDriver:
        return RetryDriver(task.retry_budget, task.delay_range, rng=self.rng, sleep=self.sleep,
                           on_event=self._log_event, **self.retry_options)

    def _log_page_state(self, rule_set: str, blocked_reason: str | None) -> None:
        try:
            self._log_event("page_state", {
                "rule_set": rule_set,
                "url": self.driver.current_url,
                "title": self.driver.title,
                "h1_count": len(self.driver.find_elements(By.TAG_NAME, "h1")),
                "blocked": blocked_reason,
            })
        except Exception:
            pass

    def _summarize(self, record: ExtractedRecord) -> None:
        if isinstance(record, ProfileRecord):
            print("✅ Profile scraped successfully!")
            print(f"📊 Found: {record.name} - {record.headline}")
            print(f"📈 Experiences: {len(record.experiences)}")
            print(f"🎓 Education: {len(record.education)}")
            print(f"💪 Skills: {len(record.skills)}")
        if record.field_errors:
            print(f"    ⚠️  Field errors: {record.field_errors}")

    def _debug_dump(self, tag: str):
        try:
            debug_dir = CACHE_DIR / "debug"
            debug_dir.mkdir(parents=True, exist_ok=True)
            ts = str(int(time.time()))
            self.driver.save_screenshot(str(debug_dir / f"{ts}_{tag}.png"))
            Path(debug_dir / f"{ts}_{tag}.html").write_text(self.driver.page_source, encoding="utf-8")
        except Exception:
            pass
