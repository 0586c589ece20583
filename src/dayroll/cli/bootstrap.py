# src/dayroll/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- opens the configured key-value backend and wires the stores into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.dates import Clock, system_today
from ..core.state import AppState, build_state
from ..storage.kv_store import open_kv_store

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    backend = getattr(settings, "storage_backend", "sqlite")
    if backend == "sqlite":
        settings.kv_db_path.parent.mkdir(parents=True, exist_ok=True)
    elif backend == "json":
        settings.kv_json_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, clock: Clock = system_today) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    kv = open_kv_store(settings)
    state = build_state(settings, kv, clock=clock)
    logger.info(
        "State ready backend=%s profiles=%d tasks=%d current_profile=%s",
        getattr(settings, "storage_backend", "sqlite"),
        len(state.profiles.list_profiles()),
        state.tasks.count(),
        state.profiles.current_profile_id,
    )
    return state
