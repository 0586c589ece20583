# src/dayroll/profiles/profile_store.py

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from ..core.errors import InvariantViolation, ValidationError
from ..core.ports import KeyValueStore
from ..core.validation import coerce_id, require_text
from .profile_models import Profile

logger = logging.getLogger(__name__)

PROFILES_KEY = "profiles"
CURRENT_PROFILE_KEY = "currentProfileId"
NEXT_PROFILE_ID_KEY = "nextProfileId"


class ProfileStore:
    """
    Profile collection persisted under the "profiles" key, plus the current selection.

    Invariants:
    - the collection is never empty (a default profile is created on load if needed,
      and deleting the last profile is refused)
    - current_profile_id always resolves to an existing profile

    Writes follow the same write-through order as TaskStore: storage first, memory second.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        *,
        lock: threading.RLock | None = None,
        default_name: str = "Personal",
        on_delete: Callable[[int], Any] | None = None,
    ) -> None:
        self._kv = kv
        self._lock = lock if lock is not None else threading.RLock()
        self._default_name = require_text(default_name, "default profile name")
        # Called with the deleted profile id after the profile is gone (cascade hook).
        self.on_delete = on_delete

        self._profiles: list[Profile] = []
        self._current_id: int | None = None
        self._next_id = 1

        self.reload()
        self._ensure_default()
        logger.info(
            "ProfileStore ready total=%s current=%s", len(self._profiles), self._current_id
        )

    # ---- low-level helpers ----

    def reload(self) -> None:
        with self._lock:
            raw = self._kv.get(PROFILES_KEY)
            profiles: list[Profile] = []
            seen: set[int] = set()
            for item in raw if isinstance(raw, list) else []:
                try:
                    profile = Profile.from_dict(item)
                except (KeyError, TypeError, ValueError):
                    logger.warning("Skipping malformed stored profile: %r", item)
                    continue
                if not profile.name.strip() or profile.id in seen:
                    logger.warning("Skipping invalid stored profile: %r", item)
                    continue
                seen.add(profile.id)
                profiles.append(profile)

            current = self._kv.get(CURRENT_PROFILE_KEY)
            try:
                current_id = coerce_id(current, "currentProfileId") if current not in (None, "") else None
            except ValidationError:
                current_id = None

            seq = self._kv.get(NEXT_PROFILE_ID_KEY)
            next_id = seq if isinstance(seq, int) and not isinstance(seq, bool) else 1
            if profiles:
                next_id = max(next_id, max(p.id for p in profiles) + 1)

            self._profiles = profiles
            self._current_id = current_id
            self._next_id = next_id

    def _allocate_id(self) -> int:
        pid = self._next_id
        self._kv.set(NEXT_PROFILE_ID_KEY, pid + 1)
        self._next_id = pid + 1
        return pid

    def _commit(self, profiles: list[Profile]) -> None:
        self._kv.set(PROFILES_KEY, [p.to_dict() for p in profiles])
        self._profiles = profiles

    def _commit_current(self, profile_id: int) -> None:
        # Stored as a string, like the client kept it.
        self._kv.set(CURRENT_PROFILE_KEY, str(profile_id))
        self._current_id = profile_id

    def _find(self, profile_id: int) -> Profile | None:
        for p in self._profiles:
            if p.id == profile_id:
                return p
        return None

    def _ensure_default(self) -> Profile:
        """Create the default profile if the collection is empty; repair a stale selection."""
        with self._lock:
            if not self._profiles:
                profile = Profile(id=self._allocate_id(), name=self._default_name)
                self._commit([profile])
                self._commit_current(profile.id)
                logger.info("Created default profile id=%s name=%s", profile.id, profile.name)
                return profile

            current = self._find(self._current_id) if self._current_id is not None else None
            if current is None:
                current = self._profiles[0]
                logger.info(
                    "Current profile %s is stale; falling back to id=%s",
                    self._current_id,
                    current.id,
                )
                self._commit_current(current.id)
            return current

    # ---- public API ----

    def list_profiles(self) -> list[Profile]:
        """All profiles in insertion order."""
        with self._lock:
            return list(self._profiles)

    def get_profile(self, profile_id: int) -> Profile | None:
        pid = coerce_id(profile_id, "profile id")
        with self._lock:
            return self._find(pid)

    def exists(self, profile_id: int) -> bool:
        return self.get_profile(profile_id) is not None

    @property
    def current_profile_id(self) -> int:
        return self.current_profile().id

    def current_profile(self) -> Profile:
        return self._ensure_default()

    def set_current_profile(self, profile_id: int) -> Profile:
        pid = coerce_id(profile_id, "profile id")
        with self._lock:
            profile = self._find(pid)
            if profile is None:
                raise ValidationError(f"unknown profile id {pid}")
            if self._current_id != pid:
                self._commit_current(pid)
        logger.debug("Current profile -> id=%s", pid)
        return profile

    def add_profile(self, name: str) -> Profile:
        clean = require_text(name, "name")
        with self._lock:
            first_ever = not self._profiles
            profile = Profile(id=self._allocate_id(), name=clean)
            self._commit([*self._profiles, profile])
            if first_ever or self._find(self._current_id or -1) is None:
                self._commit_current(profile.id)
        logger.info("Profile added id=%s name=%s", profile.id, profile.name)
        return profile

    def rename_profile(self, profile_id: int, new_name: str) -> Profile | None:
        """
        Rename. Blank name -> no-op (returns the profile unchanged).
        Unknown id -> None.
        """
        pid = coerce_id(profile_id, "profile id")
        with self._lock:
            idx = next((i for i, p in enumerate(self._profiles) if p.id == pid), None)
            if idx is None:
                return None
            old = self._profiles[idx]
            if not isinstance(new_name, str) or not new_name.strip():
                return old
            new = replace(old, name=new_name.strip())
            if new == old:
                return old
            profiles = list(self._profiles)
            profiles[idx] = new
            self._commit(profiles)
        logger.info("Profile renamed id=%s name=%s", pid, new.name)
        return new

    def delete_profile(self, profile_id: int) -> bool:
        """
        Delete a profile. Returns False for an unknown id.

        Raises InvariantViolation for the last remaining profile (nothing is written).
        If the deleted profile was current, the first remaining profile becomes current.
        """
        pid = coerce_id(profile_id, "profile id")
        with self._lock:
            if self._find(pid) is None:
                return False
            if len(self._profiles) <= 1:
                raise InvariantViolation("cannot delete the last remaining profile")

            remaining = [p for p in self._profiles if p.id != pid]
            self._commit(remaining)
            if self._current_id == pid:
                self._commit_current(remaining[0].id)
                logger.info("Current profile reassigned to id=%s", remaining[0].id)

            logger.info("Profile deleted id=%s", pid)
            if self.on_delete is not None:
                self.on_delete(pid)
        return True
