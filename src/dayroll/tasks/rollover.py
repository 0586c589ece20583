# src/dayroll/tasks/rollover.py

from __future__ import annotations

"""
Daily rollover.

Once per calendar day, every incomplete task dated "yesterday" gets a fresh copy dated
"today" in the same profile. The original stays where it was (history is not rewritten).

Idempotence comes from the "lastRolloverDate" bookkeeping key:
- a pass is skipped when lastRolloverDate is already today
- the key is written only AFTER the new tasks are durably stored

Optional catch-up: when the app was dormant for several days, sweep every day from the
last pass up to yesterday instead of only yesterday (off by default).
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import date, timedelta

from ..core.dates import Clock, canonical_day, days_between, parse_day, previous_day, system_today
from ..core.errors import ValidationError
from ..core.ports import KeyValueStore, ProfileRepo, TaskRepo
from .task_models import Task

logger = logging.getLogger(__name__)

LAST_ROLLOVER_KEY = "lastRolloverDate"


@dataclass(slots=True, frozen=True)
class RolloverResult:
    ran: bool
    today: str
    source_dates: tuple[str, ...] = ()
    created: tuple[Task, ...] = field(default_factory=tuple)


class RolloverEngine:
    def __init__(
        self,
        kv: KeyValueStore,
        tasks: TaskRepo,
        profiles: ProfileRepo,
        *,
        lock: threading.RLock | None = None,
        clock: Clock = system_today,
        catch_up: bool = False,
        max_catch_up_days: int = 30,
    ) -> None:
        self._kv = kv
        self._tasks = tasks
        self._profiles = profiles
        self._lock = lock if lock is not None else threading.RLock()
        self._clock = clock
        self.catch_up = bool(catch_up)
        self.max_catch_up_days = max(1, int(max_catch_up_days))

    def last_rollover_date(self) -> str | None:
        raw = self._kv.get(LAST_ROLLOVER_KEY)
        if raw in (None, ""):
            return None
        try:
            return canonical_day(raw)
        except ValidationError:
            logger.warning("Ignoring malformed %s=%r", LAST_ROLLOVER_KEY, raw)
            return None

    def _source_dates(self, today: str, last: str | None) -> list[str]:
        yesterday = previous_day(today)
        if not self.catch_up or last is None or last >= yesterday:
            return [yesterday]
        floor = (parse_day(today) - timedelta(days=self.max_catch_up_days)).isoformat()
        return days_between(max(last, floor), yesterday)

    def check_and_rollover(self, today: str | date | None = None) -> RolloverResult:
        """
        Run one rollover pass if it has not run today.

        Safe to call any number of times; only the first call of a calendar day does work.
        PersistenceFailure propagates and leaves the bookkeeping untouched, so the next
        call retries the whole pass.
        """
        with self._lock:
            today_s = canonical_day(today if today is not None else self._clock())
            last = self.last_rollover_date()

            if last is not None and last >= today_s:
                if last > today_s:
                    logger.warning(
                        "lastRolloverDate %s is ahead of today %s (clock moved back?); skipping",
                        last,
                        today_s,
                    )
                return RolloverResult(ran=False, today=today_s)

            sources = self._source_dates(today_s, last)
            wanted = set(sources)
            dedupe = len(sources) > 1

            all_tasks = self._tasks.list_all()
            drafts: list[tuple[str, str, int]] = []
            for profile in self._profiles.list_profiles():
                seen: set[str] = set()
                candidates = sorted(
                    (
                        t
                        for t in all_tasks
                        if t.profile_id == profile.id and not t.completed and t.date in wanted
                    ),
                    key=lambda t: (t.date, t.id),
                )
                for t in candidates:
                    if dedupe:
                        if t.text in seen:
                            continue
                        seen.add(t.text)
                    drafts.append((t.text, today_s, profile.id))

            created = self._tasks.insert_many(drafts) if drafts else []
            self._kv.set(LAST_ROLLOVER_KEY, today_s)

        if created:
            logger.info(
                "Rollover %s: carried %d tasks from %s", today_s, len(created), ",".join(sources)
            )
        else:
            logger.debug("Rollover %s: nothing to carry from %s", today_s, ",".join(sources))
        return RolloverResult(
            ran=True,
            today=today_s,
            source_dates=tuple(sources),
            created=tuple(created),
        )
