"""Periodic sweeps reclaiming artifact disk space.

Two independent policies run on their own timers:

* the age sweep deletes artifacts whose mtime is older than a threshold;
* the full sweep deletes every artifact at rest.

They are not reconciled. With the default intervals the full sweep fires more
often than the age threshold can elapse, so no artifact outlives the
full-sweep interval; set ``full_interval_seconds`` to 0 to make the age
threshold the operative policy. Artifacts leased by an in-flight job,
including uploads still being written, are never touched; an abandoned
``.partial`` upload is reclaimed like any other file.
"""

from __future__ import annotations

import asyncio
import contextlib
import functools
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

import structlog

from ..cleanup.cleanup_models import SweepReport
from ..cleanup.cleanup_service import purge_artifacts
from ..lifecycle import run_periodic
from ..storage.artifact_models import Artifact
from ..storage.artifact_store import ArtifactStore

logger = structlog.get_logger(__name__)


class SweepPolicy(StrEnum):
    AGE = "age"
    FULL = "full"


class SweeperState(StrEnum):
    IDLE = "idle"
    SCANNING = "scanning"


@dataclass(slots=True)
class RetentionSweeper:
    """Background sweeper with an explicit start/stop lifecycle."""

    store: ArtifactStore
    age_threshold_seconds: float
    age_interval_seconds: float
    full_interval_seconds: float
    sweep_all_on_start: bool = True
    clock: Callable[[], float] = time.time
    states: dict[SweepPolicy, SweeperState] = field(
        default_factory=lambda: {policy: SweeperState.IDLE for policy in SweepPolicy}
    )
    last_reports: dict[SweepPolicy, SweepReport] = field(default_factory=dict)
    _tasks: list[asyncio.Task[None]] = field(default_factory=list)
    _shutdown_event: asyncio.Event | None = None

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def sweep_expired(self, now: float | None = None) -> SweepReport:
        """Delete artifacts older than the age threshold."""
        current = self.clock() if now is None else now
        threshold = self.age_threshold_seconds
        return self._sweep(
            SweepPolicy.AGE,
            lambda artifact: artifact.age_seconds(current) > threshold,
        )

    def sweep_all(self) -> SweepReport:
        """Delete every artifact at rest."""
        return self._sweep(SweepPolicy.FULL, lambda _: True)

    async def run_sweep(self, policy: SweepPolicy) -> SweepReport:
        """Run one sweep in a worker thread so the event loop keeps serving."""
        action = self.sweep_all if policy is SweepPolicy.FULL else self.sweep_expired
        return await asyncio.to_thread(action)

    def _sweep(self, policy: SweepPolicy, predicate: Callable[[Artifact], bool]) -> SweepReport:
        self.states[policy] = SweeperState.SCANNING
        try:
            report = purge_artifacts(self.store, predicate)
        finally:
            self.states[policy] = SweeperState.IDLE
        self.last_reports[policy] = report
        if report.deleted or report.failed:
            logger.info(
                "retention.sweep.done",
                policy=policy.value,
                deleted=report.deleted_count,
                failed=report.failed_count,
                skipped=len(report.skipped),
            )
        return report

    async def start(self) -> None:
        """Run both sweeps once and schedule them on their timers."""
        if self.running:
            return
        shutdown_event = asyncio.Event()
        self._shutdown_event = shutdown_event
        if self.sweep_all_on_start:
            await self.run_sweep(SweepPolicy.FULL)
        await self.run_sweep(SweepPolicy.AGE)

        self._tasks.append(
            asyncio.create_task(
                run_periodic(
                    functools.partial(self.run_sweep, SweepPolicy.AGE),
                    shutdown_event=shutdown_event,
                    interval_seconds=self.age_interval_seconds,
                    run_immediately=False,
                    name="retention.age_sweep",
                ),
                name="reverser-age-sweep",
            )
        )
        if self.full_interval_seconds > 0:
            self._tasks.append(
                asyncio.create_task(
                    run_periodic(
                        functools.partial(self.run_sweep, SweepPolicy.FULL),
                        shutdown_event=shutdown_event,
                        interval_seconds=self.full_interval_seconds,
                        run_immediately=False,
                        name="retention.full_sweep",
                    ),
                    name="reverser-full-sweep",
                )
            )
        logger.info(
            "retention.started",
            age_interval_seconds=self.age_interval_seconds,
            age_threshold_seconds=self.age_threshold_seconds,
            full_interval_seconds=self.full_interval_seconds,
        )

    async def stop(self) -> None:
        if self._shutdown_event is not None:
            self._shutdown_event.set()
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._shutdown_event = None
        logger.info("retention.stopped")
