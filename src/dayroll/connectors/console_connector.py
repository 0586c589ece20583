# src/dayroll/connectors/console_connector.py

from __future__ import annotations

import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.errors import DayrollError
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def handle_line(state: AppState, line: str) -> str | None:
    """
    One REPL step. Slash commands go to the registry; any other text is a new task
    on the selected date. Returns the reply, or None for blank input.
    """
    line = line.strip()
    if not line:
        return None
    reply = command_registry.handle(state, line)
    if reply is not None:
        return reply
    try:
        task = state.tasks.add_task(line, state.selected_date, state.profiles.current_profile_id)
    except DayrollError as exc:
        return f"Error: {exc}"
    return f"Added #{task.id}: {task.text} ({task.date})"


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Type a task to add it. Use /help for commands. Use /exit to quit.\n")
    print(command_registry.handle(state, "/list"))

    while True:
        try:
            user_input = input(f"{state.selected_date} > ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = handle_line(state, user_input)
        except Exception:
            logger.exception("Console command failed: %r", user_input)
            print("Internal error (see logs).")
            continue

        if reply:
            print(reply)
