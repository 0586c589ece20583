# src/dayroll/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The stores depend on Protocols instead of concrete implementations.
This keeps persistence backends swappable and makes testing easier.
"""

from typing import Any, Protocol

JSONValue = Any
# Anything json.dumps accepts: dict / list / str / int / float / bool / None.


class KeyValueStore(Protocol):
    """
    Durable storage keyed by string.

    Contract:
    - get() returns None for an absent key
    - set() returns only after the value is durably stored
    - any backend failure is raised as PersistenceFailure
    """

    def get(self, key: str) -> JSONValue | None: ...
    def set(self, key: str, value: JSONValue) -> None: ...
    def delete(self, key: str) -> None: ...
    def clear(self) -> None: ...


class TaskRepo(Protocol):
    # Rollover API
    def list_all(self) -> list[Any]: ...
    def insert_many(self, drafts: list[tuple[str, str, int]]) -> list[Any]: ...

    # Cascade hook used by profile deletion
    def delete_tasks_for_profile(self, profile_id: int) -> int: ...


class ProfileRepo(Protocol):
    def list_profiles(self) -> list[Any]: ...
    def exists(self, profile_id: int) -> bool: ...
