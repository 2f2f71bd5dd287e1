import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from slowapi import Limiter
from slowapi.util import get_remote_address

from pagerunner.models.request import NavigateRequest
from pagerunner.models.response import ArtifactResponse, NavigateResult, StructuredResponse
from pagerunner.services.errors import InteractionError, PipelineError
from pagerunner.services.pipeline import run

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()

_MEDIA_TYPES = {
    "html": "text/html; charset=utf-8",
    "markdown": "text/markdown; charset=utf-8",
}


@router.post(
    "/navigate",
    summary="Load a page, interact with it, and return its content",
    description=(
        "Opens *url* in a fresh headless Chromium, optionally replays a saved "
        "session, performs the interaction selected by `mode`, and returns the "
        "extracted markup as HTML or Markdown.\n\n"
        "* `structured_output=true` → JSON `{url, title, body, ...}`\n"
        "* `screenshot` / `html` requested → JSON `{artifact_uri, html_file_path, html_body}`\n"
        "* otherwise → the bare body as `text/html` or `text/markdown`"
    ),
    responses={
        200: {
            "content": {"text/html": {}, "text/markdown": {}},
            "description": "Extracted content in the requested shape.",
        }
    },
)
@limiter.limit("10/minute")
async def navigate(request: Request, body: NavigateRequest) -> Response:
    try:
        result = await run(body)
    except PipelineError as exc:
        logger.error("Pipeline failed at %s for %s: %s", exc.stage, body.url, exc.message)
        raise HTTPException(status_code=502, detail=_error_detail(exc))

    logger.info("Sending response", extra={"url": result.url, "chars": len(result.body)})
    return _shape_response(body, result)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _error_detail(exc: PipelineError) -> dict:
    detail = {"error": "An error occurred", "stage": exc.stage, "message": exc.message}
    if isinstance(exc, InteractionError):
        detail["reason"] = exc.reason
    return detail


def _shape_response(body: NavigateRequest, result: NavigateResult) -> Response:
    """Pick the response shape the request asked for."""
    if body.structured_output:
        payload = StructuredResponse(
            url=result.url,
            title=result.title,
            body=result.body,
            artifact_uri=result.artifact_uri,
            html_file_path=result.html_file_path,
        )
        return JSONResponse(payload.model_dump())

    if body.screenshot or body.html:
        payload = ArtifactResponse(
            artifact_uri=result.artifact_uri,
            html_file_path=result.html_file_path,
            html_body=result.body,
        )
        return JSONResponse(payload.model_dump())

    return Response(content=result.body, media_type=_MEDIA_TYPES[result.content_type])
