# src/dayroll/tasks/task_store.py

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import date
from typing import Any

from ..core.dates import canonical_day
from ..core.errors import ValidationError
from ..core.ports import KeyValueStore
from ..core.validation import coerce_id, require_text
from .task_models import Task, task_sort_key

logger = logging.getLogger(__name__)

TASKS_KEY = "tasks"
NEXT_TASK_ID_KEY = "nextTaskId"

TaskDraft = tuple[str, str, int]
# (text, canonical date, profile_id) for bulk inserts.


def _raw_id(item: Any) -> int | None:
    if not isinstance(item, dict):
        return None
    try:
        return int(item["id"])
    except (KeyError, TypeError, ValueError):
        return None


class TaskStore:
    """
    Task collection persisted under the "tasks" key.

    Write-through:
    - every mutation builds the new collection, writes it to the key-value store,
      and only then swaps it in memory
    - if the write raises PersistenceFailure, memory is untouched

    Thread-safety:
    - all methods run under one re-entrant lock (shared with the other stores
      when the app state passes it in)
    """

    def __init__(
        self,
        kv: KeyValueStore,
        *,
        lock: threading.RLock | None = None,
        profile_exists: Callable[[int], bool] | None = None,
    ) -> None:
        self._kv = kv
        self._lock = lock if lock is not None else threading.RLock()
        self._profile_exists = profile_exists
        self._tasks: list[Task] = []
        self._next_id = 1
        self.reload()
        logger.info("TaskStore ready total=%s next_id=%s", len(self._tasks), self._next_id)

    # ---- low-level helpers ----

    def reload(self) -> None:
        """Re-read the collection from storage (the persisted copy is the source of truth)."""
        with self._lock:
            raw = self._kv.get(TASKS_KEY)
            items = raw if isinstance(raw, list) else []
            tasks: list[Task] = []
            for item in items:
                task = self._parse_stored(item)
                if task is not None:
                    tasks.append(task)

            dropped = len(items) - len(tasks)
            if dropped:
                logger.warning(
                    "Dropped %d malformed stored tasks; the next write removes them from storage",
                    dropped,
                )

            seq = self._kv.get(NEXT_TASK_ID_KEY)
            next_id = seq if isinstance(seq, int) and not isinstance(seq, bool) else 1
            # Dropped rows keep their ids reserved.
            raw_ids = [_raw_id(item) for item in items]
            next_id = max([next_id, *(i + 1 for i in raw_ids if i is not None)])

            self._tasks = tasks
            self._next_id = next_id

    @staticmethod
    def _parse_stored(item: Any) -> Task | None:
        if not isinstance(item, dict):
            logger.warning("Skipping stored task that is not an object: %r", item)
            return None
        try:
            task = Task.from_dict(item)
            return replace(task, date=canonical_day(task.date))
        except (KeyError, TypeError, ValueError, ValidationError):
            logger.warning("Skipping malformed stored task: %r", item)
            return None

    def _allocate_ids(self, n: int) -> int:
        """Reserve n ids and persist the counter. Gaps after a failed write are harmless."""
        first = self._next_id
        self._kv.set(NEXT_TASK_ID_KEY, first + n)
        self._next_id = first + n
        return first

    def _commit(self, tasks: list[Task]) -> None:
        self._kv.set(TASKS_KEY, [t.to_dict() for t in tasks])
        self._tasks = tasks

    def _index_of(self, task_id: int) -> int | None:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        return None

    # ---- public API ----

    def count(self) -> int:
        with self._lock:
            return len(self._tasks)

    def list_all(self) -> list[Task]:
        """Every task, in insertion order."""
        with self._lock:
            return list(self._tasks)

    def get_task(self, task_id: int) -> Task | None:
        task_id = coerce_id(task_id, "task id")
        with self._lock:
            idx = self._index_of(task_id)
            return None if idx is None else self._tasks[idx]

    def add_task(self, text: str, day: str | date, profile_id: int) -> Task:
        clean_text = require_text(text, "text")
        canonical = canonical_day(day)
        pid = coerce_id(profile_id, "profileId")

        with self._lock:
            if self._profile_exists is not None and not self._profile_exists(pid):
                raise ValidationError(f"unknown profile id {pid}")

            task = Task(
                id=self._allocate_ids(1),
                text=clean_text,
                completed=False,
                profile_id=pid,
                date=canonical,
            )
            self._commit([*self._tasks, task])

        logger.debug("Task added id=%s profile=%s date=%s", task.id, pid, canonical)
        return task

    def insert_many(self, drafts: Iterable[TaskDraft]) -> list[Task]:
        """
        Create several incomplete tasks with a single collection write.

        Used by the rollover engine; profile existence is the caller's concern.
        """
        clean = [
            (require_text(text, "text"), canonical_day(day), coerce_id(pid, "profileId"))
            for text, day, pid in drafts
        ]
        if not clean:
            return []

        with self._lock:
            first = self._allocate_ids(len(clean))
            created = [
                Task(id=first + i, text=text, completed=False, profile_id=pid, date=day)
                for i, (text, day, pid) in enumerate(clean)
            ]
            self._commit([*self._tasks, *created])

        logger.debug("Inserted %d tasks ids=%s..%s", len(created), created[0].id, created[-1].id)
        return created

    def toggle_task(self, task_id: int) -> Task | None:
        """
        Flip `completed`. Unknown id -> None (no error, no write).

        Double taps racing a delete must not crash the caller.
        """
        task_id = coerce_id(task_id, "task id")
        with self._lock:
            idx = self._index_of(task_id)
            if idx is None:
                logger.debug("toggle_task: id=%s not found", task_id)
                return None
            old = self._tasks[idx]
            new = replace(old, completed=not old.completed)
            tasks = list(self._tasks)
            tasks[idx] = new
            self._commit(tasks)

        logger.debug("Task toggled id=%s completed=%s", new.id, new.completed)
        return new

    def update_task(
        self,
        task_id: int,
        *,
        completed: bool | None = None,
        text: str | None = None,
    ) -> Task | None:
        """Partial update. Unknown id -> None. Nothing to change -> current task, no write."""
        task_id = coerce_id(task_id, "task id")
        clean_text = require_text(text, "text") if text is not None else None
        if completed is not None and not isinstance(completed, bool):
            raise ValidationError("completed must be a boolean")

        with self._lock:
            idx = self._index_of(task_id)
            if idx is None:
                return None
            old = self._tasks[idx]
            new = replace(
                old,
                text=old.text if clean_text is None else clean_text,
                completed=old.completed if completed is None else completed,
            )
            if new == old:
                return old
            tasks = list(self._tasks)
            tasks[idx] = new
            self._commit(tasks)

        logger.debug("Task updated id=%s", new.id)
        return new

    def delete_task(self, task_id: int) -> bool:
        """Remove by id. Returns whether a task matched."""
        task_id = coerce_id(task_id, "task id")
        with self._lock:
            idx = self._index_of(task_id)
            if idx is None:
                return False
            tasks = list(self._tasks)
            del tasks[idx]
            self._commit(tasks)

        logger.debug("Task deleted id=%s", task_id)
        return True

    def delete_tasks_for_profile(self, profile_id: int) -> int:
        pid = coerce_id(profile_id, "profileId")
        with self._lock:
            keep = [t for t in self._tasks if t.profile_id != pid]
            removed = len(self._tasks) - len(keep)
            if removed:
                self._commit(keep)

        if removed:
            logger.info("Deleted %d tasks of profile id=%s", removed, pid)
        return removed

    def list_tasks(self, profile_id: int, day: str | date) -> list[Task]:
        """
        Tasks of one profile on one day.

        Ordering: incomplete before completed, then creation order, so finished items
        sink to the bottom instead of disappearing.
        """
        pid = coerce_id(profile_id, "profileId")
        canonical = canonical_day(day)
        with self._lock:
            matching = [t for t in self._tasks if t.profile_id == pid and t.date == canonical]
        return sorted(matching, key=task_sort_key)

    def list_tasks_for_profile(self, profile_id: int) -> list[Task]:
        """All days of one profile, by date then the same per-day ordering."""
        pid = coerce_id(profile_id, "profileId")
        with self._lock:
            matching = [t for t in self._tasks if t.profile_id == pid]
        return sorted(matching, key=lambda t: (t.date, *task_sort_key(t)))
