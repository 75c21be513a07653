import asyncio

import pytest

from src.reverser.lifecycle import run_periodic


@pytest.mark.asyncio
async def test_run_periodic_survives_failing_iterations():
    shutdown = asyncio.Event()
    calls = []

    def action():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("first tick fails")
        if len(calls) >= 3:
            shutdown.set()

    await asyncio.wait_for(
        run_periodic(action, shutdown_event=shutdown, interval_seconds=0.01),
        timeout=2,
    )

    assert len(calls) == 3


@pytest.mark.asyncio
async def test_run_periodic_can_defer_first_iteration():
    shutdown = asyncio.Event()
    calls = []

    task = asyncio.create_task(
        run_periodic(lambda: calls.append(1), shutdown_event=shutdown, interval_seconds=10, run_immediately=False)
    )
    await asyncio.sleep(0.05)
    shutdown.set()
    await asyncio.wait_for(task, timeout=1)

    assert calls == []


@pytest.mark.asyncio
async def test_run_periodic_awaits_coroutine_actions():
    shutdown = asyncio.Event()
    finished = []

    async def action():
        await asyncio.sleep(0)
        finished.append(1)
        shutdown.set()

    await asyncio.wait_for(
        run_periodic(action, shutdown_event=shutdown, interval_seconds=0.01),
        timeout=2,
    )

    assert finished == [1]
