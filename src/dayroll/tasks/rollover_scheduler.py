# src/dayroll/tasks/rollover_scheduler.py

from __future__ import annotations

"""
Rollover scheduler.

A small polling loop that runs the rollover check once immediately (check on load) and
then every interval. The engine is idempotent per calendar day, so the interval only
bounds how late after midnight the carry-over happens.
"""

import asyncio
import contextlib
import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .rollover import RolloverEngine

if TYPE_CHECKING:
    from ..core.state import AppState

logger = logging.getLogger(__name__)


async def run_rollover_scheduler(
    engine: RolloverEngine,
    *,
    interval_seconds: float = 3600.0,
    stop_event: asyncio.Event | None = None,
) -> None:
    """
    Every interval_seconds:
    - call engine.check_and_rollover()
    - log and keep going on failure (bookkeeping was not advanced, the next tick retries)

    Stops when stop_event is set, or when the coroutine/task is cancelled.
    """
    sleep_s = max(0.5, float(interval_seconds))

    while True:
        try:
            engine.check_and_rollover()
        except Exception:
            logger.exception("Rollover check failed; will retry in %.0fs", sleep_s)

        if stop_event is None:
            await asyncio.sleep(sleep_s)
            continue

        try:
            await asyncio.wait_for(stop_event.wait(), timeout=sleep_s)
        except asyncio.TimeoutError:
            continue
        logger.info("Rollover scheduler stopped.")
        return


@dataclass(slots=True)
class RolloverBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except RuntimeError:
            logger.debug("Rollover loop already closed.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_rollover_in_background(state: AppState) -> RolloverBackgroundRunner | None:
    """
    Start the rollover scheduler in a background thread with its own event loop,
    so the blocking console REPL or the Flask server can own the main thread.
    """
    settings = state.settings
    if not getattr(settings, "rollover_enabled", True):
        logger.info("Rollover disabled, not starting.")
        return None

    interval = float(getattr(settings, "rollover_interval_seconds", 3600.0))
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(
                run_rollover_scheduler(
                    state.rollover, interval_seconds=interval, stop_event=stop_event
                )
            )
        finally:
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="dayroll-rollover", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Rollover thread did not initialize properly.")
        return None

    logger.info("Rollover background thread started (interval=%.0fs).", interval)
    return RolloverBackgroundRunner(thread=t, loop=loop, stop_event=stop_event)
