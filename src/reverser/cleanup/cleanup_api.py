"""HTTP routes for cleanup signals."""

from __future__ import annotations

import asyncio
import json
import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from ..exceptions import TransportError
from .cleanup_schemas import CleanupAllResponse, CleanupRequest
from .cleanup_service import CleanupService

router = APIRouter(tags=["cleanup"])
logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = frozenset({"application/x-www-form-urlencoded", "multipart/form-data"})


def get_cleanup_service(request: Request) -> CleanupService:
    """Fetch cleanup service from application state."""
    try:
        return request.app.state.cleanup_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - wiring error
        raise RuntimeError("CleanupService is not configured") from exc


async def read_cleanup_request(request: Request) -> CleanupRequest:
    """Decode a cleanup payload.

    Browsers send it either as ``fetch`` JSON or, while the page unloads, as a
    ``navigator.sendBeacon`` text/plain string holding the same JSON.
    """
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type in FORM_CONTENT_TYPES:
        form = await request.form()
        data: object = {key: value for key, value in form.items() if isinstance(value, str)}
    else:
        raw = await request.body()
        if not raw.strip():
            data = {}
        else:
            try:
                data = json.loads(raw)
            except (UnicodeDecodeError, json.JSONDecodeError) as exc:
                raise TransportError("cleanup body is not valid JSON") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise TransportError("cleanup body must be a JSON object")
    try:
        return CleanupRequest.model_validate(data)
    except ValidationError as exc:
        raise TransportError(str(exc)) from exc


@router.post("/cleanup-video", response_class=PlainTextResponse)
async def cleanup_video(
    request: Request,
    service: CleanupService = Depends(get_cleanup_service),
) -> PlainTextResponse:
    """Delete the artifacts a client is done with; always acknowledged."""
    try:
        payload = await read_cleanup_request(request)
    except TransportError as exc:
        logger.warning("cleanup.invalid_body", extra={"error": str(exc)})
        return PlainTextResponse("Invalid request body", status_code=status.HTTP_400_BAD_REQUEST)

    await asyncio.to_thread(service.request_cleanup, payload.original_video_url, payload.reversed_video_url)
    return PlainTextResponse("Cleanup request received.", status_code=status.HTTP_200_OK)


@router.post("/cleanup-all", response_model=CleanupAllResponse)
async def cleanup_all(service: CleanupService = Depends(get_cleanup_service)) -> CleanupAllResponse:
    """Operator reset: remove every stored artifact."""
    report = await asyncio.to_thread(service.cleanup_all)
    return CleanupAllResponse(
        success=True,
        message="All files deleted from uploads and reversed_videos.",
        deleted=report.deleted_count,
        failed=report.failed_count,
    )
