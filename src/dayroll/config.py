# src/dayroll/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Nothing is required at import time; bad values fall back to defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "DAYROLL"

STORAGE_BACKENDS = ("sqlite", "json", "memory")


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


# Real environment variables always win over .env entries.
load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Surfaces ----
    console_enabled: bool
    http_enabled: bool
    http_host: str
    http_port: int

    # ---- Storage ----
    data_dir: Path
    storage_backend: str
    kv_db_path: Path
    kv_json_path: Path

    # ---- Profiles ----
    default_profile_name: str
    cascade_delete_tasks: bool

    # ---- Rollover ----
    rollover_enabled: bool
    rollover_interval_seconds: float
    rollover_catch_up: bool
    rollover_max_catch_up_days: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "dayroll").strip() or "dayroll"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        http_enabled = _env_bool(_k("HTTP_ENABLED"), False)
        http_host = _env(_k("HTTP_HOST"), "127.0.0.1").strip() or "127.0.0.1"
        http_port = _env_int(_k("HTTP_PORT"), 5000)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/dayroll"))
        storage_backend = _env(_k("STORAGE_BACKEND"), "sqlite").strip().lower()
        if storage_backend not in STORAGE_BACKENDS:
            storage_backend = "sqlite"
        kv_db_path = _env_path(_k("KV_DB_PATH"), data_dir / "dayroll.sqlite3")
        kv_json_path = _env_path(_k("KV_JSON_PATH"), data_dir / "dayroll.json")

        default_profile_name = _env(_k("DEFAULT_PROFILE_NAME"), "Personal").strip() or "Personal"
        cascade_delete_tasks = _env_bool(_k("CASCADE_DELETE_TASKS"), True)

        rollover_enabled = _env_bool(_k("ROLLOVER_ENABLED"), True)
        # The unit of rollover is a calendar day; polling faster than a minute buys nothing.
        rollover_interval_seconds = max(60.0, _env_float(_k("ROLLOVER_INTERVAL_SECONDS"), 3600.0))
        rollover_catch_up = _env_bool(_k("ROLLOVER_CATCH_UP"), False)
        rollover_max_catch_up_days = max(1, _env_int(_k("ROLLOVER_MAX_CATCH_UP_DAYS"), 30))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            http_enabled=http_enabled,
            http_host=http_host,
            http_port=http_port,
            data_dir=data_dir,
            storage_backend=storage_backend,
            kv_db_path=kv_db_path,
            kv_json_path=kv_json_path,
            default_profile_name=default_profile_name,
            cascade_delete_tasks=cascade_delete_tasks,
            rollover_enabled=rollover_enabled,
            rollover_interval_seconds=rollover_interval_seconds,
            rollover_catch_up=rollover_catch_up,
            rollover_max_catch_up_days=rollover_max_catch_up_days,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
