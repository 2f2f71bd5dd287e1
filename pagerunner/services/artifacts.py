"""Persist screenshots and raw HTML next to each other under one content root.

Directory creation and file writes run in a worker thread.

Files are named by their millisecond capture timestamp (``{ms}.png`` /
``{ms}.html``); there is no manifest.  Two artifacts of the same kind captured
within the same millisecond overwrite each other.
"""

import asyncio
import logging
import time
from pathlib import Path

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from pagerunner.services.errors import ArtifactError

logger = logging.getLogger(__name__)


def _timestamp_ms() -> int:
    return time.time_ns() // 1_000_000


class ArtifactWriter:
    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    async def _path_for(self, suffix: str) -> Path:
        try:
            await asyncio.to_thread(self.root.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            raise ArtifactError(f"Cannot create {self.root}: {exc.strerror or exc}") from exc
        return self.root / f"{_timestamp_ms()}{suffix}"

    async def write_screenshot(self, page: Page) -> Path:
        """Capture the visible viewport of *page* as PNG."""
        path = await self._path_for(".png")
        logger.info("Taking screenshot", extra={"path": str(path)})
        try:
            await page.screenshot(path=str(path), full_page=False)
        except PlaywrightError as exc:
            raise ArtifactError(f"Screenshot failed: {exc.message}") from exc
        logger.info("Screenshot saved at %s", path)
        return path

    async def write_html(self, content: str) -> Path:
        path = await self._path_for(".html")
        try:
            await asyncio.to_thread(path.write_text, content, encoding="utf-8")
        except OSError as exc:
            raise ArtifactError(f"Cannot write {path}: {exc.strerror or exc}") from exc
        logger.info("HTML content saved at %s", path)
        return path
