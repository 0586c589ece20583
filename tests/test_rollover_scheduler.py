# tests/test_rollover_scheduler.py

from __future__ import annotations

import asyncio

import pytest

from dayroll.core.state import AppState
from dayroll.tasks.rollover_scheduler import run_rollover_scheduler, start_rollover_in_background


class CountingEngine:
    """Stand-in engine that fails on the first call, then succeeds."""

    def __init__(self) -> None:
        self.calls = 0

    def check_and_rollover(self, today=None):
        self.calls += 1
        if self.calls == 1:
            raise RuntimeError("boom")
        return None


@pytest.mark.asyncio
async def test_scheduler_checks_on_start(state: AppState) -> None:
    pid = state.profiles.current_profile_id
    state.tasks.add_task("carry", "2024-01-01", pid)

    runner = asyncio.create_task(run_rollover_scheduler(state.rollover, interval_seconds=0.01))

    await asyncio.sleep(0.05)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert [t.text for t in state.tasks.list_tasks(pid, "2024-01-02")] == ["carry"]


@pytest.mark.asyncio
async def test_scheduler_survives_failures_and_stops_on_event() -> None:
    engine = CountingEngine()
    stop = asyncio.Event()

    runner = asyncio.create_task(
        run_rollover_scheduler(engine, interval_seconds=0.5, stop_event=stop)  # type: ignore[arg-type]
    )
    await asyncio.sleep(0.8)
    stop.set()
    await asyncio.wait_for(runner, timeout=2.0)

    assert engine.calls >= 2


def test_background_runner_runs_first_check(state: AppState) -> None:
    pid = state.profiles.current_profile_id
    state.tasks.add_task("bg", "2024-01-01", pid)

    runner = start_rollover_in_background(state)
    assert runner is not None
    try:
        for _ in range(100):
            if state.tasks.list_tasks(pid, "2024-01-02"):
                break
            runner.thread.join(timeout=0.02)
    finally:
        runner.stop()
        runner.join(timeout=5.0)

    assert not runner.thread.is_alive()
    assert [t.text for t in state.tasks.list_tasks(pid, "2024-01-02")] == ["bg"]


def test_background_runner_disabled(state: AppState) -> None:
    state.settings.rollover_enabled = False
    assert start_rollover_in_background(state) is None
