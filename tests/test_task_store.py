# tests/test_task_store.py

from __future__ import annotations

import threading
from datetime import date

import pytest

from dayroll.core.errors import PersistenceFailure, ValidationError
from dayroll.core.state import AppState
from dayroll.storage.kv_store import MemoryKeyValueStore
from dayroll.tasks.task_store import TaskStore


def test_add_task_assigns_fresh_ids_and_defaults(state: AppState) -> None:
    pid = state.profiles.current_profile_id
    a = state.tasks.add_task("  Buy milk ", "2024-01-02", pid)
    b = state.tasks.add_task("Call mom", date(2024, 1, 2), pid)

    assert a.text == "Buy milk"
    assert a.completed is False
    assert a.date == "2024-01-02"
    assert b.date == "2024-01-02"
    assert a.id != b.id
    assert b.id > a.id


def test_ids_are_never_reused_after_delete(state: AppState) -> None:
    pid = state.profiles.current_profile_id
    a = state.tasks.add_task("one", "2024-01-02", pid)
    b = state.tasks.add_task("two", "2024-01-02", pid)
    assert state.tasks.delete_task(b.id) is True

    c = state.tasks.add_task("three", "2024-01-02", pid)
    assert c.id not in {a.id, b.id}


@pytest.mark.parametrize("text", ["", "   ", None])
def test_add_task_rejects_blank_text_without_writing(state: AppState, kv, text) -> None:
    writes_before = list(kv.writes)
    with pytest.raises(ValidationError):
        state.tasks.add_task(text, "2024-01-02", state.profiles.current_profile_id)
    assert kv.writes == writes_before
    assert state.tasks.count() == 0


@pytest.mark.parametrize("day", ["2024-1-2", "20240102", "2024-02-30", "2024-01-02T10:00:00", ""])
def test_add_task_rejects_non_canonical_dates(state: AppState, day) -> None:
    with pytest.raises(ValidationError):
        state.tasks.add_task("x", day, state.profiles.current_profile_id)


def test_add_task_rejects_unknown_profile(state: AppState) -> None:
    with pytest.raises(ValidationError):
        state.tasks.add_task("x", "2024-01-02", 999)


def test_toggle_is_its_own_inverse(state: AppState) -> None:
    task = state.tasks.add_task("x", "2024-01-02", state.profiles.current_profile_id)

    first = state.tasks.toggle_task(task.id)
    second = state.tasks.toggle_task(task.id)

    assert first is not None and first.completed is True
    assert second is not None and second.completed is False
    assert state.tasks.get_task(task.id) == task


def test_toggle_after_delete_is_noop(state: AppState, kv) -> None:
    task = state.tasks.add_task("x", "2024-01-02", state.profiles.current_profile_id)
    assert state.tasks.delete_task(task.id) is True

    writes_before = list(kv.writes)
    before = state.tasks.list_all()
    assert state.tasks.toggle_task(task.id) is None
    assert state.tasks.delete_task(task.id) is False
    assert state.tasks.list_all() == before
    assert kv.writes == writes_before


def test_list_tasks_filters_by_profile_and_date(state: AppState) -> None:
    home = state.profiles.current_profile_id
    work = state.profiles.add_profile("Work").id

    state.tasks.add_task("home today", "2024-01-02", home)
    state.tasks.add_task("home tomorrow", "2024-01-03", home)
    state.tasks.add_task("work today", "2024-01-02", work)

    listed = state.tasks.list_tasks(home, "2024-01-02")
    assert [t.text for t in listed] == ["home today"]
    assert all(t.profile_id == home and t.date == "2024-01-02" for t in listed)


def test_list_tasks_puts_completed_last_then_creation_order(state: AppState) -> None:
    pid = state.profiles.current_profile_id
    a = state.tasks.add_task("A", "2024-01-02", pid)
    b = state.tasks.add_task("B", "2024-01-02", pid)
    c = state.tasks.add_task("C", "2024-01-02", pid)
    state.tasks.toggle_task(a.id)

    listed = state.tasks.list_tasks(pid, "2024-01-02")
    assert [t.id for t in listed] == [b.id, c.id, a.id]


def test_update_task_partial(state: AppState) -> None:
    task = state.tasks.add_task("draft", "2024-01-02", state.profiles.current_profile_id)

    updated = state.tasks.update_task(task.id, text="final")
    assert updated is not None
    assert updated.text == "final"
    assert updated.completed is False

    done = state.tasks.update_task(task.id, completed=True)
    assert done is not None and done.completed is True and done.text == "final"

    assert state.tasks.update_task(12345, completed=True) is None
    with pytest.raises(ValidationError):
        state.tasks.update_task(task.id, text="  ")
    with pytest.raises(ValidationError):
        state.tasks.update_task(task.id, completed="yes")  # type: ignore[arg-type]


def test_failed_write_leaves_memory_unchanged(state: AppState, kv) -> None:
    pid = state.profiles.current_profile_id
    task = state.tasks.add_task("keep me", "2024-01-02", pid)
    kv.fail_keys.add("tasks")

    with pytest.raises(PersistenceFailure):
        state.tasks.add_task("lost", "2024-01-02", pid)
    with pytest.raises(PersistenceFailure):
        state.tasks.toggle_task(task.id)
    with pytest.raises(PersistenceFailure):
        state.tasks.delete_task(task.id)

    assert state.tasks.list_all() == [task]


def test_reload_reads_persisted_collection() -> None:
    kv = MemoryKeyValueStore()
    store = TaskStore(kv)
    a = store.add_task("persisted", "2024-01-02", 1)
    store.toggle_task(a.id)

    reopened = TaskStore(kv)
    assert reopened.list_all() == store.list_all()
    b = reopened.add_task("next", "2024-01-02", 1)
    assert b.id > a.id


def test_reload_skips_malformed_records() -> None:
    kv = MemoryKeyValueStore(
        {
            "tasks": [
                {"id": 1, "text": "ok", "completed": False, "profileId": 1, "date": "2024-01-02"},
                {"id": 2, "text": "bad date", "completed": False, "profileId": 1, "date": "yesterday"},
                {"text": "no id", "profileId": 1, "date": "2024-01-02"},
                "garbage",
            ]
        }
    )
    store = TaskStore(kv)
    assert [t.id for t in store.list_all()] == [1]
    # The dropped row keeps id 2 reserved.
    assert store.add_task("new", "2024-01-02", 1).id == 3


@pytest.mark.parametrize(
    "record",
    [
        {"id": 2, "text": "", "completed": False, "profileId": 1, "date": "2024-01-02"},
        {"id": 2, "text": "   ", "completed": False, "profileId": 1, "date": "2024-01-02"},
        {"id": 2, "completed": False, "profileId": 1, "date": "2024-01-02"},
        {"id": 2, "text": "str flag", "completed": "false", "profileId": 1, "date": "2024-01-02"},
        {"id": 2, "text": "int flag", "completed": 0, "profileId": 1, "date": "2024-01-02"},
    ],
)
def test_reload_rejects_blank_text_and_non_boolean_completed(record, caplog) -> None:
    ok = {"id": 1, "text": "ok", "completed": False, "profileId": 1, "date": "2024-01-02"}
    kv = MemoryKeyValueStore({"tasks": [ok, record]})

    with caplog.at_level("WARNING", logger="dayroll.tasks.task_store"):
        store = TaskStore(kv)

    assert [t.text for t in store.list_all()] == ["ok"]
    assert "Dropped 1 malformed stored tasks" in caplog.text


def test_delete_tasks_for_profile(state: AppState) -> None:
    home = state.profiles.current_profile_id
    work = state.profiles.add_profile("Work").id
    state.tasks.add_task("h", "2024-01-02", home)
    state.tasks.add_task("w1", "2024-01-02", work)
    state.tasks.add_task("w2", "2024-01-03", work)

    assert state.tasks.delete_tasks_for_profile(work) == 2
    assert [t.text for t in state.tasks.list_all()] == ["h"]
    assert state.tasks.delete_tasks_for_profile(work) == 0


def test_concurrent_adds_are_serialized(state: AppState, kv) -> None:
    pid = state.profiles.current_profile_id
    workers, per_worker = 8, 50
    start = threading.Barrier(workers)
    errors: list[BaseException] = []

    def worker(n: int) -> None:
        start.wait()
        try:
            for i in range(per_worker):
                state.tasks.add_task(f"w{n}-{i}", "2024-01-02", pid)
        except BaseException as e:  # surfaced by the assertion below
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    total = workers * per_worker
    assert errors == []
    assert state.tasks.count() == total
    assert len(kv.get("tasks")) == total
    assert len({t.id for t in state.tasks.list_all()}) == total
    assert kv.get("nextTaskId") == total + 1
