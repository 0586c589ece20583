# tests/test_profile_store.py

from __future__ import annotations

import pytest

from dayroll.core.errors import InvariantViolation, PersistenceFailure, ValidationError
from dayroll.core.state import AppState, build_state
from dayroll.profiles.profile_store import ProfileStore
from dayroll.storage.kv_store import MemoryKeyValueStore


def test_default_profile_created_and_current() -> None:
    kv = MemoryKeyValueStore()
    store = ProfileStore(kv, default_name="Personal")

    profiles = store.list_profiles()
    assert [p.name for p in profiles] == ["Personal"]
    assert store.current_profile_id == profiles[0].id
    assert kv.get("currentProfileId") == str(profiles[0].id)

    # Reopening must not create a second default.
    assert [p.name for p in ProfileStore(kv).list_profiles()] == ["Personal"]


def test_first_profile_ever_becomes_current() -> None:
    kv = MemoryKeyValueStore({"profiles": [], "currentProfileId": ""})
    store = ProfileStore(kv, default_name="Inbox")
    # The auto-created default is the first profile.
    assert store.current_profile().name == "Inbox"

    work = store.add_profile("Work")
    assert store.current_profile_id != work.id


def test_add_profile_validates_name(state: AppState) -> None:
    before = state.profiles.list_profiles()
    with pytest.raises(ValidationError):
        state.profiles.add_profile("   ")
    assert state.profiles.list_profiles() == before


def test_list_profiles_insertion_order(state: AppState) -> None:
    state.profiles.add_profile("Work")
    state.profiles.add_profile("Gym")
    assert [p.name for p in state.profiles.list_profiles()] == ["Personal", "Work", "Gym"]


def test_rename_profile(state: AppState) -> None:
    work = state.profiles.add_profile("Work")

    renamed = state.profiles.rename_profile(work.id, "  Office ")
    assert renamed is not None and renamed.name == "Office"

    unchanged = state.profiles.rename_profile(work.id, "   ")
    assert unchanged is not None and unchanged.name == "Office"

    assert state.profiles.rename_profile(999, "Nope") is None


def test_delete_last_profile_is_refused(state: AppState) -> None:
    work = state.profiles.add_profile("Work")
    gym = state.profiles.add_profile("Gym")
    default_id = state.profiles.current_profile_id

    assert state.profiles.delete_profile(work.id) is True
    assert state.profiles.delete_profile(gym.id) is True

    before = state.profiles.list_profiles()
    with pytest.raises(InvariantViolation):
        state.profiles.delete_profile(default_id)
    assert state.profiles.list_profiles() == before


def test_delete_current_profile_reassigns_selection(state: AppState) -> None:
    first_id = state.profiles.current_profile_id
    work = state.profiles.add_profile("Work")
    state.profiles.set_current_profile(work.id)

    assert state.profiles.delete_profile(work.id) is True
    assert state.profiles.current_profile_id == first_id


def test_delete_unknown_profile_returns_false(state: AppState) -> None:
    state.profiles.add_profile("Work")
    assert state.profiles.delete_profile(4242) is False


def test_delete_profile_cascades_to_tasks(state: AppState) -> None:
    home = state.profiles.current_profile_id
    work = state.profiles.add_profile("Work").id
    state.tasks.add_task("home", "2024-01-02", home)
    state.tasks.add_task("work", "2024-01-02", work)

    state.profiles.delete_profile(work)

    assert [t.text for t in state.tasks.list_all()] == ["home"]


def test_delete_profile_without_cascade_keeps_orphans(settings, kv, clock) -> None:
    settings.cascade_delete_tasks = False
    state = build_state(settings, kv, clock=clock)
    work = state.profiles.add_profile("Work").id
    state.tasks.add_task("orphan", "2024-01-02", work)

    state.profiles.delete_profile(work)

    assert [t.text for t in state.tasks.list_all()] == ["orphan"]


def test_stale_current_profile_falls_back_to_first() -> None:
    kv = MemoryKeyValueStore(
        {
            "profiles": [{"id": 3, "name": "Home"}, {"id": 5, "name": "Work"}],
            "currentProfileId": "99",
        }
    )
    store = ProfileStore(kv)
    assert store.current_profile_id == 3
    assert kv.get("currentProfileId") == "3"
    assert store.add_profile("Next").id == 6


def test_set_current_profile_unknown_id(state: AppState) -> None:
    with pytest.raises(ValidationError):
        state.profiles.set_current_profile(31337)


def test_failed_delete_write_keeps_profile(state: AppState, kv) -> None:
    work = state.profiles.add_profile("Work")
    kv.fail_keys.add("profiles")

    with pytest.raises(PersistenceFailure):
        state.profiles.delete_profile(work.id)
    assert state.profiles.exists(work.id)
