# src/dayroll/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True, frozen=True)
class Task:
    """
    One to-do item on one calendar day.

    `id` comes from a monotonic counter, so it doubles as the creation-order sort key.
    `date` is always canonical YYYY-MM-DD (validated by the store).
    """

    id: int
    text: str
    completed: bool
    profile_id: int
    date: str

    def to_dict(self) -> dict[str, Any]:
        # camelCase on the wire and on disk, matching the client payloads.
        return {
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
            "profileId": self.profile_id,
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Task:
        """Strict parse of a stored record. Raises ValueError on anything malformed."""
        text = raw.get("text")
        if not isinstance(text, str) or not text.strip():
            raise ValueError("task text must be a non-blank string")
        completed = raw.get("completed", False)
        if not isinstance(completed, bool):
            raise ValueError("task completed must be a boolean")
        return cls(
            id=int(raw["id"]),
            text=text.strip(),
            completed=completed,
            profile_id=int(raw["profileId"]),
            date=str(raw["date"]),
        )


def task_sort_key(task: Task) -> tuple[bool, int]:
    """Incomplete first, then creation order."""
    return (task.completed, task.id)
