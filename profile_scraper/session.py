from __future__ import annotations

import enum
import random
import time
from typing import Callable, Iterable

from selenium.common.exceptions import WebDriverException

from .config import ENTRY_URL, COOKIE_ORIGIN
from .cookie_bridge import inject_cookies
from .detection import has_auth_marker
from .exceptions import TransientNavigationError, describe
from .humanize import random_delay
from .linkedin_selectors import Selectors as S
from .models import ScrapeTask, SessionCookie


class SessionState(enum.Enum):
    ESTABLISHED = "established"
    UNESTABLISHED = "unestablished"


class SessionController:
    """
    Two-hop navigation: neutral authenticated page first, then the target.

    Landing straight on a deep URL with fresh cookies is flagged far more
    readily than arriving there from the feed.
    """

    def __init__(self, driver, rng: random.Random | None = None, sleep: Callable[[float], None] = time.sleep,
                 entry_url: str = ENTRY_URL, cookie_origin: str = COOKIE_ORIGIN):
        self.driver = driver
        self.rng = rng or random.Random()
        self.sleep = sleep
        self.entry_url = entry_url
        self.cookie_origin = cookie_origin

    def apply_credential(self, cookies: Iterable[SessionCookie]) -> int:
        """Install the session cookies once, before the first attempt."""
        try:
            accepted = inject_cookies(self.driver, cookies, self.cookie_origin)
        except WebDriverException as e:
            raise TransientNavigationError(f"could not open {self.cookie_origin}: {describe(e)}") from e
        print(f"✅ {accepted} cookies applied")
        return accepted

    def establish(self, task: ScrapeTask, target_url: str | None = None) -> SessionState:
        target = target_url or task.target_url

        self._navigate(self.entry_url)
        self.sleep(random_delay(self.rng, task.delay_range))
        if not self.is_live():
            print(f"⚠️  Session not live on entry page ({self.driver.current_url})")
            return SessionState.UNESTABLISHED

        self.sleep(random_delay(self.rng, task.delay_range))
        self._navigate(target)
        if has_auth_marker(self.driver.current_url):
            print(f"⚠️  Redirected to auth-wall: {self.driver.current_url}")
            return SessionState.UNESTABLISHED
        return SessionState.ESTABLISHED

    def is_live(self) -> bool:
        if has_auth_marker(self.driver.current_url):
            return False
        return not (self.driver.find_elements(*S.SIGN_IN_CONTROL) or self.driver.find_elements(*S.SIGN_IN_TEXT))

    def _navigate(self, url: str) -> None:
        try:
            self.driver.get(url)
        except WebDriverException as e:
            raise TransientNavigationError(f"navigation to {url} failed: {describe(e)}") from e
