# src/dayroll/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable

from ..core.errors import DayrollError
from ..core.state import AppState

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        Domain errors become a one-line reply instead of escaping to the REPL.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            return handler(state, args)
        except DayrollError as exc:
            logger.debug("/%s failed: %s", name, exc)
            return f"Error: {exc}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _format_tasks(state: AppState, day: str) -> str:
    profile = state.profiles.current_profile()
    tasks = state.tasks.list_tasks(profile.id, day)
    header = f"{profile.name} - {day}" + (" (today)" if day == state.today() else "")
    if not tasks:
        return f"{header}\n  (no tasks)"
    lines = [header]
    for t in tasks:
        mark = "x" if t.completed else " "
        lines.append(f"  [{mark}] #{t.id} {t.text}")
    return "\n".join(lines)


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    profile = state.profiles.current_profile()
    last = state.rollover.last_rollover_date() or "never"
    backend = getattr(state.settings, "storage_backend", "sqlite")
    return (
        "Status:\n"
        f"  Profile: {profile.name} (#{profile.id})\n"
        f"  Selected date: {state.selected_date} (today {state.today()})\n"
        f"  Tasks stored: {state.tasks.count()}\n"
        f"  Last rollover: {last}\n"
        f"  Storage: {backend}"
    )


def cmd_list(state: AppState, args: list[str]) -> str:
    if args:
        state.select_date(args[0])
    return _format_tasks(state, state.selected_date)


def cmd_add(state: AppState, args: list[str]) -> str:
    task = state.tasks.add_task(
        " ".join(args), state.selected_date, state.profiles.current_profile_id
    )
    return f"Added #{task.id}: {task.text} ({task.date})"


def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <task id>"
    task = state.tasks.toggle_task(args[0])
    if task is None:
        return f"No task #{args[0]}."
    return f"#{task.id} {'done' if task.completed else 'not done'}: {task.text}"


def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /del <task id>"
    if state.tasks.delete_task(args[0]):
        return f"Deleted #{args[0]}."
    return f"No task #{args[0]}."


def cmd_date(state: AppState, args: list[str]) -> str:
    if args:
        target = state.today() if args[0].lower() == "today" else args[0]
        state.select_date(target)
    return _format_tasks(state, state.selected_date)


def cmd_next(state: AppState, args: list[str]) -> str:
    state.shift_date(1)
    return _format_tasks(state, state.selected_date)


def cmd_prev(state: AppState, args: list[str]) -> str:
    state.shift_date(-1)
    return _format_tasks(state, state.selected_date)


def cmd_profiles(state: AppState, args: list[str]) -> str:
    current = state.profiles.current_profile_id
    lines = ["Profiles:"]
    for p in state.profiles.list_profiles():
        marker = "*" if p.id == current else " "
        lines.append(f"  {marker} #{p.id} {p.name}")
    return "\n".join(lines)


def cmd_profile(state: AppState, args: list[str]) -> str:
    usage = "Usage: /profile add <name> | rename <id> <name> | delete <id> | use <id>"
    if not args:
        return usage

    action, rest = args[0].lower(), args[1:]
    if action == "add":
        p = state.profiles.add_profile(" ".join(rest))
        return f"Profile #{p.id} {p.name} created."
    if action == "rename" and len(rest) >= 2:
        p = state.profiles.rename_profile(rest[0], " ".join(rest[1:]))
        return f"No profile #{rest[0]}." if p is None else f"Profile #{p.id} is now {p.name}."
    if action == "delete" and rest:
        if not state.profiles.delete_profile(rest[0]):
            return f"No profile #{rest[0]}."
        return f"Profile #{rest[0]} deleted. Current: {state.profiles.current_profile().name}."
    if action == "use" and rest:
        p = state.profiles.set_current_profile(rest[0])
        return f"Switched to {p.name}."
    return usage


def cmd_rollover(state: AppState, args: list[str]) -> str:
    result = state.rollover.check_and_rollover()
    if not result.ran:
        return f"Rollover already done for {result.today}."
    return f"Rollover {result.today}: carried {len(result.created)} task(s)."


registry.register("help", cmd_help, "Show this help.", aliases=["h", "?"])
registry.register("status", cmd_status, "Current profile, date and storage info.")
registry.register("list", cmd_list, "List tasks for the selected date (or /list YYYY-MM-DD).", aliases=["ls"])
registry.register("add", cmd_add, "Add a task on the selected date (plain text works too).")
registry.register("done", cmd_done, "Toggle a task complete/incomplete.", aliases=["toggle"])
registry.register("del", cmd_delete, "Delete a task.", aliases=["rm"])
registry.register("date", cmd_date, "Select a date (YYYY-MM-DD or 'today').")
registry.register("next", cmd_next, "Select the next day.")
registry.register("prev", cmd_prev, "Select the previous day.")
registry.register("profiles", cmd_profiles, "List profiles (* = current).")
registry.register("profile", cmd_profile, "add | rename | delete | use a profile.")
registry.register("rollover", cmd_rollover, "Carry yesterday's unfinished tasks to today now.")
