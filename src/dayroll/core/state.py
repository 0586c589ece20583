# src/dayroll/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from ..profiles.profile_store import ProfileStore
from ..tasks.rollover import RolloverEngine
from ..tasks.task_store import TaskStore
from .dates import Clock, canonical_day, shift_day, system_today
from .ports import KeyValueStore


@dataclass
class AppState:
    """
    Explicit application state, built once by the composition root and passed around.

    `lock` is the single mutex shared by every store and the rollover engine, so the
    periodic rollover and ordinary mutations never interleave.
    `selected_date` is view state only: it drives filtering and is never persisted.
    """

    settings: Any
    kv: KeyValueStore
    lock: threading.RLock
    profiles: ProfileStore
    tasks: TaskStore
    rollover: RolloverEngine
    clock: Clock = system_today
    selected_date: str = field(default="")

    def __post_init__(self) -> None:
        if not self.selected_date:
            self.selected_date = self.today()

    def today(self) -> str:
        return canonical_day(self.clock())

    def select_date(self, value: str | date) -> str:
        self.selected_date = canonical_day(value)
        return self.selected_date

    def shift_date(self, days: int) -> str:
        """Date navigator: move the selected day forward (+) or back (-)."""
        self.selected_date = shift_day(self.selected_date, days)
        return self.selected_date

    def visible_tasks(self) -> list[Any]:
        """Tasks of the current profile on the selected day."""
        return self.tasks.list_tasks(self.profiles.current_profile_id, self.selected_date)


def build_state(settings: Any, kv: KeyValueStore, *, clock: Clock = system_today) -> AppState:
    """Wire the stores around one key-value adapter and one shared lock."""
    lock = threading.RLock()

    profiles = ProfileStore(
        kv,
        lock=lock,
        default_name=getattr(settings, "default_profile_name", "Personal"),
    )
    tasks = TaskStore(kv, lock=lock, profile_exists=profiles.exists)
    if getattr(settings, "cascade_delete_tasks", True):
        profiles.on_delete = tasks.delete_tasks_for_profile

    rollover = RolloverEngine(
        kv,
        tasks,
        profiles,
        lock=lock,
        clock=clock,
        catch_up=getattr(settings, "rollover_catch_up", False),
        max_catch_up_days=getattr(settings, "rollover_max_catch_up_days", 30),
    )

    return AppState(
        settings=settings,
        kv=kv,
        lock=lock,
        profiles=profiles,
        tasks=tasks,
        rollover=rollover,
        clock=clock,
    )
