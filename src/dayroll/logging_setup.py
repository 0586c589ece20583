# src/dayroll/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Minimum level a third-party logger needs to reach the console, per mode.
# In the REPL, werkzeug request lines would interleave with the prompt.
_THIRD_PARTY_FLOORS: dict[str, dict[str, int]] = {
    "console": {"werkzeug": logging.WARNING, "py.warnings": logging.ERROR},
    "serve": {"werkzeug": logging.INFO, "py.warnings": logging.WARNING},
}


def parse_level(value: str | int | None, default: int = logging.INFO) -> int:
    """'debug' / 'INFO' / 10 -> logging level; unknown names fall back to `default`."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    level = logging.getLevelName(str(value or "").strip().upper())
    return level if isinstance(level, int) else default


class _ConsoleNoiseFilter(logging.Filter):
    """
    Console filter:
    - dayroll.* always passes (the handler level still applies)
    - known third-party loggers pass from their per-mode floor
    - everything else only at ERROR+
    """

    def __init__(self, mode: str = "console") -> None:
        super().__init__()
        self.floors = _THIRD_PARTY_FLOORS.get(mode, _THIRD_PARTY_FLOORS["console"])

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name == "dayroll" or name.startswith("dayroll."):
            return True

        root_name = name.split(".", 1)[0]
        floor = self.floors.get(name, self.floors.get(root_name, logging.ERROR))
        return record.levelno >= floor


def setup_logging(
    *,
    log_dir: str | Path = ".local/dayroll",
    console_level: str | int = logging.INFO,
    file_level: str | int = logging.DEBUG,
    mode: str = "console",
) -> Path:
    """
    Configure root logging once, before the first store is built:
    - stderr handler, filtered by `mode` ("console" for the REPL, "serve" for the HTTP API)
    - dayroll.log in `log_dir` with everything at `file_level`

    Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "dayroll.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(parse_level(console_level))
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter(mode))
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(parse_level(file_level, logging.DEBUG))
    fh.setFormatter(fmt)
    root.addHandler(fh)

    logging.captureWarnings(True)
    return log_file
