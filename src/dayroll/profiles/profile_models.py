# src/dayroll/profiles/profile_models.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True, frozen=True)
class Profile:
    """A named bucket of tasks ("Personal", "Work", ...)."""

    id: int
    name: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Profile:
        return cls(id=int(raw["id"]), name=str(raw.get("name") or ""))
