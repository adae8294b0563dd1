from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List

from selenium.common.exceptions import WebDriverException

from .models import SessionCookie


def load_cookie_file(path: Path) -> List[Dict[str, Any]]:
    """Read an exported cookie jar: a JSON list, or an object with a ``cookies`` list."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("cookies") or []
    return data if isinstance(data, list) else []


def to_selenium_cookie(cookie: SessionCookie) -> Dict[str, Any]:
    item: Dict[str, Any] = {
        "name": cookie.name,
        "value": cookie.value,
        "domain": cookie.domain,
        "path": cookie.path or "/",
    }
    if cookie.expiry is not None:
        item["expiry"] = cookie.expiry
    if cookie.http_only is not None:
        item["httpOnly"] = cookie.http_only
    if cookie.secure is not None:
        item["secure"] = cookie.secure
    if cookie.same_site is not None:
        item["sameSite"] = cookie.same_site
    return item


def inject_cookies(driver, cookies: Iterable[SessionCookie], origin: str) -> int:
    """Open ``origin`` and add every cookie the browser accepts. Returns how many stuck."""
    driver.get(origin)
    accepted = 0
    for ck in cookies:
        try:
            driver.add_cookie(to_selenium_cookie(ck))
            accepted += 1
        except WebDriverException as e:
            print(f"    ⚠️  Cookie {ck.name!r} rejected by the browser: {type(e).__name__}")
    return accepted
