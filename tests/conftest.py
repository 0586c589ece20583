# tests/conftest.py

from __future__ import annotations

from datetime import date
from pathlib import Path
from types import SimpleNamespace

import pytest

from dayroll.core.state import AppState, build_state

from .fakes import FixedClock, FlakyKeyValueStore


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the stores.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="dayroll-test",
        data_dir=tmp_path,
        storage_backend="memory",
        kv_db_path=tmp_path / "dayroll.sqlite3",
        kv_json_path=tmp_path / "dayroll.json",
        default_profile_name="Personal",
        cascade_delete_tasks=True,
        rollover_enabled=True,
        rollover_interval_seconds=3600.0,
        rollover_catch_up=False,
        rollover_max_catch_up_days=30,
    )


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(date(2024, 1, 2))


@pytest.fixture()
def kv() -> FlakyKeyValueStore:
    return FlakyKeyValueStore()


@pytest.fixture()
def state(settings: SimpleNamespace, kv: FlakyKeyValueStore, clock: FixedClock) -> AppState:
    """
    AppState wired with an in-memory key-value store and a fixed clock (2024-01-02).

    The stores are real; only persistence and time are faked.
    """
    return build_state(settings, kv, clock=clock)
