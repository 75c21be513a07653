"""Lifecycle helpers for background tasks tied to FastAPI startup."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

MIN_INTERVAL_SECONDS = 0.01


async def run_periodic(
    action: Callable[[], object],
    *,
    shutdown_event: asyncio.Event,
    interval_seconds: float,
    run_immediately: bool = True,
    name: str = "periodic",
) -> None:
    """Call ``action`` every ``interval_seconds`` until ``shutdown_event`` is set.

    ``action`` may be a plain callable or return an awaitable, which is awaited
    before the next tick is scheduled. A failing iteration is logged and the
    loop carries on with the next tick.
    """

    interval = max(MIN_INTERVAL_SECONDS, float(interval_seconds))
    first = True
    while not shutdown_event.is_set():
        if run_immediately or not first:
            try:
                result = action()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("%s iteration failed", name)
        first = False
        try:
            await asyncio.wait_for(shutdown_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            continue


__all__ = ["run_periodic"]
