"""HTTP routes for video uploads."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from fastapi import APIRouter, Depends, File, Request, UploadFile

from ..api_errors import from_domain_error
from ..exceptions import ReverserError
from .upload_schemas import UploadResponse
from .upload_service import UploadCoordinator

router = APIRouter(tags=["upload"])
logger = logging.getLogger(__name__)

DISCONNECT_POLL_SECONDS = 1.0


def get_upload_coordinator(request: Request) -> UploadCoordinator:
    """Fetch the upload coordinator from application state."""
    try:
        return request.app.state.upload_coordinator  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - wiring error
        raise RuntimeError("UploadCoordinator is not configured") from exc


async def _watch_disconnect(request: Request, cancel_event: asyncio.Event) -> None:
    while not cancel_event.is_set():
        if await request.is_disconnected():
            logger.info("upload.client_disconnected", extra={"path": request.url.path})
            cancel_event.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


@router.post("/upload", response_model=UploadResponse)
async def upload_video(
    request: Request,
    video: UploadFile | None = File(None),
    coordinator: UploadCoordinator = Depends(get_upload_coordinator),
) -> UploadResponse:
    """Store the upload, reverse it and return both public locators."""
    config = getattr(request.app.state, "config", None)
    cancel_event: asyncio.Event | None = None
    watcher: asyncio.Task[None] | None = None
    if config is not None and config.cancel_on_disconnect:
        cancel_event = asyncio.Event()
        watcher = asyncio.create_task(_watch_disconnect(request, cancel_event))

    try:
        outcome = await coordinator.handle_upload(video, cancel_event=cancel_event)
    except ReverserError as exc:
        raise from_domain_error(exc) from exc
    finally:
        if watcher is not None:
            watcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await watcher

    return UploadResponse(
        success=True,
        message="Video reversed successfully!",
        original_video_url=outcome.original_url,
        reversed_video_url=outcome.derived_url,
    )
