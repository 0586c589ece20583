# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "DAYROLL_APP_NAME": "App display name (default: dayroll).",
    "DAYROLL_LOG_LEVEL": "Console logging level (default: INFO).",
    # Surfaces
    "DAYROLL_CONSOLE_ENABLED": "Default to the console when no sub-command is given (true/false).",
    "DAYROLL_HTTP_ENABLED": "Default to the HTTP API when the console is disabled (true/false).",
    "DAYROLL_HTTP_HOST": "HTTP bind host (default: 127.0.0.1).",
    "DAYROLL_HTTP_PORT": "HTTP port (default: 5000).",
    # Storage (gitignored)
    "DAYROLL_DATA_DIR": "Local data directory (default: .local/dayroll).",
    "DAYROLL_STORAGE_BACKEND": "sqlite | json | memory (default: sqlite).",
    "DAYROLL_KV_DB_PATH": "SQLite key-value path (default: <data_dir>/dayroll.sqlite3).",
    "DAYROLL_KV_JSON_PATH": "JSON key-value path (default: <data_dir>/dayroll.json).",
    # Profiles
    "DAYROLL_DEFAULT_PROFILE_NAME": "Name of the auto-created profile (default: Personal).",
    "DAYROLL_CASCADE_DELETE_TASKS": "Delete a profile's tasks with it (default: true).",
    # Rollover
    "DAYROLL_ROLLOVER_ENABLED": "Run the background rollover scheduler (default: true).",
    "DAYROLL_ROLLOVER_INTERVAL_SECONDS": "Seconds between rollover checks (default: 3600, min 60).",
    "DAYROLL_ROLLOVER_CATCH_UP": "Sweep every missed day, not just yesterday (default: false).",
    "DAYROLL_ROLLOVER_MAX_CATCH_UP_DAYS": "Catch-up window in days (default: 30).",
}
