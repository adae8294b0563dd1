from __future__ import annotations
import platform, subprocess, shlex
from typing import Optional

import undetected_chromedriver as uc

from .config import CHROME_USER_DATA_DIR, CHROME_PROFILE_DIRECTORY, PAGE_LOAD_TIMEOUT

__all__ = ["build_driver", "detect_chrome_version"]

HIDE_WEBDRIVER_JS = """
    Object.defineProperty(navigator, 'webdriver', {
        get: () => undefined,
        configurable: true,
    });
"""


def detect_chrome_version() -> Optional[str]:
    if platform.system() == "Windows":
        import winreg
        for root in (winreg.HKEY_CURRENT_USER, winreg.HKEY_LOCAL_MACHINE):
            try:
                key = winreg.OpenKey(root, r"SOFTWARE\Google\Chrome\BLBeacon")
                return winreg.QueryValueEx(key, "version")[0]
            except FileNotFoundError:
                continue
        return None
    cmds = ("google-chrome --version", "chromium-browser --version", "chromium --version")
    if platform.system() == "Darwin":
        cmds = ("'/Applications/Google Chrome.app/Contents/MacOS/Google Chrome' --version",) + cmds
    for cmd in cmds:
        try:
            out = subprocess.check_output(shlex.split(cmd), stderr=subprocess.DEVNULL).decode().strip()
            return out.split()[-1]
        except (OSError, subprocess.CalledProcessError):
            continue
    return None


def build_driver(headless: bool):
    """Launch undetected Chrome with the stealth tweaks the scraper relies on."""
    options = uc.ChromeOptions()
    if CHROME_USER_DATA_DIR:
        options.add_argument(f'--user-data-dir={CHROME_USER_DATA_DIR}')
        options.add_argument(f'--profile-directory={CHROME_PROFILE_DIRECTORY}')
    options.add_argument('--disable-blink-features=AutomationControlled')
    options.add_argument('--no-sandbox')
    options.add_argument('--disable-dev-shm-usage')
    options.add_argument('--log-level=3')
    if headless:
        options.add_argument('--headless=new')

    version = detect_chrome_version()
    if version:
        driver = uc.Chrome(options=options, version_main=int(version.split(".")[0]))
    else:
        driver = uc.Chrome(options=options)

    try:
        driver.execute_cdp_cmd("Network.enable", {})
        driver.execute_cdp_cmd("Network.setExtraHTTPHeaders", {
            "headers": {"Accept-Language": "en-US,en;q=0.9"}
        })
        driver.execute_cdp_cmd('Page.addScriptToEvaluateOnNewDocument', {'source': HIDE_WEBDRIVER_JS})
    except Exception as e:
        print(f"⚠️  Stealth setup skipped (non-critical): {e}")

    driver.set_page_load_timeout(PAGE_LOAD_TIMEOUT)
    # probes rely on explicit bounded waits, an implicit wait would stretch every miss
    driver.implicitly_wait(0)
    return driver
