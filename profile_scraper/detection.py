from __future__ import annotations

from typing import Optional, Sequence, Tuple
from urllib.parse import urlparse

from selenium.common.exceptions import TimeoutException
from selenium.webdriver.common.by import By
from selenium.webdriver.support.ui import WebDriverWait

from .config import PROBE_TIMEOUT_SECONDS

# first path segment of the pages LinkedIn bounces a dead session to
AUTH_WALL_SEGMENTS = frozenset({"authwall", "login", "signup", "checkpoint"})
AUTH_WALL_PREFIXES = ("/uas/login",)


def _text_xpath(tag: str, phrase: str) -> str:
    lower = "abcdefghijklmnopqrstuvwxyz"
    return (
        f"//{tag}[contains(translate(normalize-space(.), '{lower.upper()}', '{lower}'), '{phrase.lower()}')]"
    )


class Probe:
    """Named locator whose presence means we are looking at an interstitial."""

    def __init__(self, name: str, locator: Tuple[str, str]):
        self.name = name
        self.locator = locator

    def fires(self, document) -> bool:
        return bool(document.find_elements(*self.locator))

    def __repr__(self):
        return f"Probe({self.name!r})"


DEFAULT_PROBES: Tuple[Probe, ...] = (
    Probe("challenge", (By.CSS_SELECTOR, '.challenge-page, form#challenge, [data-test-id="challenge"], #challenge-container')),
    Probe("captcha", (By.CSS_SELECTOR, 'iframe[src*="captcha"], #captcha-internal, form[action*="captcha"], .g-recaptcha, iframe[title*="CAPTCHA"]')),
    Probe("security_check", (By.XPATH, _text_xpath("h1", "security verification") + " | " + _text_xpath("h1", "quick security check"))),
    Probe("restricted", (By.XPATH, _text_xpath("h1", "account has been restricted") + " | " + _text_xpath("h2", "account has been restricted"))),
    Probe("blocked", (By.XPATH, _text_xpath("h1", "access denied") + " | " + _text_xpath("h1", "been blocked"))),
)


def has_auth_marker(url: str | None) -> bool:
    """Whole-segment match, so a slug like ``/in/loginov-...`` is not an auth-wall."""
    path = urlparse(url or "").path.lower()
    segments = [s for s in path.split("/") if s]
    if segments and segments[0] in AUTH_WALL_SEGMENTS:
        return True
    return path.startswith(AUTH_WALL_PREFIXES)


class DetectionMonitor:
    """
    Decides whether the freshly navigated page is an interstitial.

    All probes share one bounded wait so a clean page costs at most
    ``probe_timeout`` seconds, never an indefinite hang.
    """

    def __init__(self, probes: Sequence[Probe] = DEFAULT_PROBES, probe_timeout: float = PROBE_TIMEOUT_SECONDS,
                 poll_frequency: float = 0.25):
        self.probes = tuple(probes)
        self.probe_timeout = probe_timeout
        self.poll_frequency = poll_frequency

    def probe(self, document, current_url: str | None = None) -> Optional[str]:
        """Return the name of the first marker that fired, or None for a clean page."""
        url = current_url if current_url is not None else getattr(document, "current_url", "")
        if has_auth_marker(url):
            return "authwall"
        if not self.probes:
            return None

        def any_probe(doc):
            for p in self.probes:
                if p.fires(doc):
                    return p.name
            return False

        try:
            return WebDriverWait(document, self.probe_timeout, poll_frequency=self.poll_frequency).until(any_probe)
        except TimeoutException:
            return None

    def check_blocked(self, document, current_url: str | None = None) -> bool:
        return self.probe(document, current_url) is not None
