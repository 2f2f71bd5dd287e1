"""Session snapshot replay: cookies plus localStorage entries.

A snapshot folder holds two independent JSON documents:

``cookies.json``
    Array of cookie objects.  Cookies exported by Puppeteer
    (``page.cookies()``) are accepted as-is and normalised to the shape
    Playwright's ``BrowserContext.add_cookies`` expects.

``localStorage.json``
    Object mapping storage keys to values.  Non-string values are stored as
    their JSON encoding.

Storage entries cannot be written into a document that does not exist yet,
so they are registered as an init script that runs on the next document
construction.  That is why a snapshot must be applied before the first
navigation.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from playwright.async_api import Page

from pagerunner.services.errors import SnapshotError

logger = logging.getLogger(__name__)

COOKIES_FILE = "cookies.json"
LOCAL_STORAGE_FILE = "localStorage.json"

# Keys understood by BrowserContext.add_cookies; everything else is dropped
_COOKIE_KEYS = ("name", "value", "url", "domain", "path", "expires", "httpOnly", "secure")

_SAME_SITE = {
    "strict": "Strict",
    "lax": "Lax",
    "none": "None",
    "no_restriction": "None",
}

_STORAGE_SCRIPT = """
(entries => {
  try {
    for (const [key, value] of Object.entries(entries)) {
      window.localStorage.setItem(key, value);
    }
  } catch (e) {}
})(%s);
"""


@dataclass(frozen=True)
class SessionSnapshot:
    cookies: List[Dict[str, Any]] = field(default_factory=list)
    local_storage: Dict[str, str] = field(default_factory=dict)


def _read_json(path: Path) -> Any:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SnapshotError(f"Cannot read {path}: {exc.strerror or exc}") from exc
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SnapshotError(f"{path} is not valid JSON: {exc}") from exc


def _normalise_cookie(raw: Any) -> Dict[str, Any]:
    """Return *raw* reduced to a cookie Playwright will accept."""
    if not isinstance(raw, dict) or "name" not in raw or "value" not in raw:
        raise SnapshotError(f"Malformed cookie entry: {raw!r}")

    cookie = {key: raw[key] for key in _COOKIE_KEYS if raw.get(key) is not None}
    cookie["value"] = str(cookie["value"])

    if "url" in cookie:
        # Playwright rejects url combined with domain/path
        cookie.pop("domain", None)
        cookie.pop("path", None)
    elif "domain" in cookie:
        cookie.setdefault("path", "/")
    else:
        raise SnapshotError(f"Cookie {raw['name']!r} has neither a url nor a domain")

    expires = cookie.get("expires")
    if raw.get("session") or (isinstance(expires, (int, float)) and expires < 0):
        cookie.pop("expires", None)

    same_site = raw.get("sameSite")
    if isinstance(same_site, str) and same_site.lower() in _SAME_SITE:
        cookie["sameSite"] = _SAME_SITE[same_site.lower()]

    return cookie


def load_snapshot(folder: str | Path) -> SessionSnapshot:
    """Read and validate the snapshot stored in *folder*.

    Raises:
        SnapshotError: if either document is missing, unreadable, not JSON,
            or of the wrong JSON type.
    """
    folder = Path(folder)

    cookies = _read_json(folder / COOKIES_FILE)
    if not isinstance(cookies, list):
        raise SnapshotError(f"{COOKIES_FILE} must contain a JSON array")

    storage = _read_json(folder / LOCAL_STORAGE_FILE)
    if not isinstance(storage, dict):
        raise SnapshotError(f"{LOCAL_STORAGE_FILE} must contain a JSON object")

    local_storage = {
        str(key): value if isinstance(value, str) else json.dumps(value)
        for key, value in storage.items()
    }

    return SessionSnapshot(
        cookies=[_normalise_cookie(raw) for raw in cookies],
        local_storage=local_storage,
    )


async def apply_snapshot(page: Page, snapshot: SessionSnapshot) -> None:
    """Stage *snapshot* on *page*'s context ahead of the first navigation."""
    logger.info(
        "Loading session data",
        extra={"cookies": len(snapshot.cookies), "storage_keys": len(snapshot.local_storage)},
    )
    if snapshot.cookies:
        await page.context.add_cookies(snapshot.cookies)
    if snapshot.local_storage:
        await page.add_init_script(
            script=_STORAGE_SCRIPT % json.dumps(snapshot.local_storage)
        )
