"""FastAPI application entry point."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from .config import AppConfig, load_config
from .dependencies import include_routers
from .logging import configure_logging
from .transcode.transcode_runner import TranscodeRunner

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    sweeper = app.state.sweeper
    if getattr(app.state, "disable_retention", False):
        logger.info("Retention sweeper startup skipped: disabled via app state")
    else:
        await sweeper.start()
    try:
        yield
    finally:
        await sweeper.stop()


def create_app(
    config: AppConfig | None = None,
    *,
    runner: TranscodeRunner | None = None,
    start_retention: bool = True,
) -> FastAPI:
    """Build FastAPI instance with configured dependencies."""
    cfg = config or load_config()
    configure_logging(cfg.log_level)
    app = FastAPI(title="Video Reverser", lifespan=lifespan)
    app.state.disable_retention = not start_retention
    include_routers(app, cfg, runner=runner)
    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn."""
    config = app.state.config
    uvicorn.run(app, host=config.host, port=config.port, log_config=None)


if __name__ == "__main__":
    run()
