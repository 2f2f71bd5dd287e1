"""Per-request page-action pipeline.

One call to :func:`run` drives one fresh browser through a fixed sequence of
stages::

    session restore → navigation → interaction/extraction → forced settle
    → Markdown conversion → screenshot → HTML artifact → teardown

Optional stages are toggled independently by the request.  Every stage is
gated on the previous one succeeding; the first failure aborts the run with a
:class:`PipelineError` naming the stage, and the browser is torn down exactly
once on every exit path.  Artifacts written before a failure stay on disk.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from pagerunner.config import Settings, get_settings
from pagerunner.models.request import NavigateRequest
from pagerunner.models.response import NavigateResult
from pagerunner.services.actions import READY_SIGNAL, execute
from pagerunner.services.artifacts import ArtifactWriter
from pagerunner.services.browser import open_page
from pagerunner.services.converter import html_to_markdown
from pagerunner.services.errors import NavigationError, PipelineError
from pagerunner.services.session import SessionSnapshot, apply_snapshot, load_snapshot

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _stage(name: str) -> AsyncIterator[None]:
    """Tag any non-pipeline failure raised inside the block with *name*."""
    try:
        yield
    except PipelineError:
        raise
    except Exception as exc:
        raise PipelineError(name, str(exc) or type(exc).__name__) from exc


async def run(request: NavigateRequest, settings: Optional[Settings] = None) -> NavigateResult:
    """Execute *request* and return its result.

    *request* is already validated; nothing here launches a browser for a
    request pydantic rejected.

    Raises:
        PipelineError: a stage failed (see :mod:`pagerunner.services.errors`).
    """
    settings = settings or get_settings()
    url = str(request.url)
    logger.info("Navigate request", extra={"url": url, "mode": request.mode})

    snapshot = None
    if request.session_state_folder:
        snapshot = await asyncio.to_thread(load_snapshot, request.session_state_folder)

    async with _stage("browser"):
        async with open_page(settings) as page:
            return await _drive(page, request, snapshot, settings)


async def _drive(
    page: Page,
    request: NavigateRequest,
    snapshot: Optional[SessionSnapshot],
    settings: Settings,
) -> NavigateResult:
    url = str(request.url)
    timeout_ms = request.navigation_timeout_ms or settings.page_load_timeout_ms

    if snapshot is not None:
        async with _stage("session-restore"):
            await apply_snapshot(page, snapshot)

    logger.info("Navigating to %s", url)
    try:
        await page.goto(url, wait_until=READY_SIGNAL, timeout=timeout_ms)
    except PlaywrightError as exc:
        raise NavigationError("initial-load", exc.message) from exc

    async with _stage("interaction"):
        content = await execute(page, request.action, timeout_ms)

    if request.force_wait.enabled:
        interval_ms = request.force_wait.interval_ms
        if interval_ms is None:
            interval_ms = settings.force_wait_interval_ms
        logger.info("Force waiting for %d ms", interval_ms)
        await asyncio.sleep(interval_ms / 1000)

    body = content.html
    if request.output_mode == "markdown":
        async with _stage("convert"):
            body = html_to_markdown(content.html)

    writer = ArtifactWriter(settings.downloads_folder)
    artifact_uri = None
    if request.screenshot:
        artifact_uri = str(await writer.write_screenshot(page))

    html_file_path = None
    if request.html:
        # The artifact keeps the raw markup even when the body was converted
        html_file_path = str(await writer.write_html(content.html))

    return NavigateResult(
        url=content.url,
        title=content.title,
        body=body,
        content_type=request.output_mode,
        artifact_uri=artifact_uri,
        html_file_path=html_file_path,
    )
