"""Dependency wiring helpers."""

from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api_errors import (
    ApiError,
    api_error_handler,
    http_exception_handler,
    unhandled_exception_handler,
    validation_error_handler,
)
from .cleanup.cleanup_api import router as cleanup_router
from .cleanup.cleanup_service import CleanupService
from .config import AppConfig
from .jobs.upload_api import router as upload_router
from .jobs.upload_service import UploadCoordinator
from .retention.retention_sweeper import RetentionSweeper
from .storage.artifact_store import ArtifactStore
from .transcode.transcode_runner import FFmpegTranscodeRunner, TranscodeRunner

FRONTEND_ROOT = Path(__file__).resolve().parents[2] / "public"


def build_sweeper(store: ArtifactStore, config: AppConfig) -> RetentionSweeper:
    return RetentionSweeper(
        store=store,
        age_threshold_seconds=config.age_threshold_seconds,
        age_interval_seconds=config.age_sweep_interval_seconds,
        full_interval_seconds=config.full_sweep_interval_seconds,
        sweep_all_on_start=config.startup_full_sweep,
    )


def include_routers(app: FastAPI, config: AppConfig, *, runner: TranscodeRunner | None = None) -> None:
    """Mount routers, static artifact directories and attach services."""
    paths = config.artifact_paths
    store = ArtifactStore(paths)
    store.ensure_structure()
    transcode_runner = runner or FFmpegTranscodeRunner(
        ffmpeg_path=config.ffmpeg_path,
        timeout_seconds=config.transcode_timeout_seconds,
    )
    coordinator = UploadCoordinator(
        store=store,
        runner=transcode_runner,
        limits=config.upload_limits,
    )
    cleanup_service = CleanupService(store=store)

    app.state.config = config
    app.state.artifact_store = store
    app.state.upload_coordinator = coordinator
    app.state.cleanup_service = cleanup_service
    app.state.sweeper = build_sweeper(store, config)

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(upload_router)
    app.include_router(cleanup_router)

    app.mount(store.upload_prefix, StaticFiles(directory=paths.uploads), name="uploads")
    app.mount(store.derived_prefix, StaticFiles(directory=paths.derived), name="reversed-videos")

    if FRONTEND_ROOT.exists():
        app.mount("/", StaticFiles(directory=FRONTEND_ROOT, html=True), name="ui-static")
