# src/dayroll/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, starts the rollover scheduler in a background
thread (it runs the first check immediately), then runs one foreground surface:
- `console`: interactive REPL,
- `serve`: Flask HTTP API.
"""

from __future__ import annotations

import argparse
import logging

from ..api.app import create_app
from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..tasks.rollover_scheduler import start_rollover_in_background

logger = logging.getLogger(__name__)


def _build_parser(settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dayroll", description="Daily to-do list with rollover.")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default=settings.http_host)
    serve.add_argument("--port", type=int, default=settings.http_port)

    sub.add_parser("console", help="Run the interactive console.")
    return parser


def main(argv: list[str] | None = None) -> None:
    settings = get_settings()
    args = _build_parser(settings).parse_args(argv)

    command = args.command
    if command is None:
        command = "serve" if settings.http_enabled and not settings.console_enabled else "console"

    setup_logging(log_dir=settings.data_dir, console_level=settings.log_level, mode=command)

    logger.info("Starting %s (%s)...", settings.app_name, command)

    state = create_initial_state(settings=settings)
    runner = start_rollover_in_background(state)

    try:
        if command == "serve":
            app = create_app(state)
            host = getattr(args, "host", settings.http_host)
            port = getattr(args, "port", settings.http_port)
            logger.info("HTTP API on http://%s:%s", host, port)
            # The reloader would fork a second process with a second rollover thread.
            app.run(host=host, port=port, use_reloader=False)
        else:
            run_console_loop(state)
    finally:
        if runner is not None:
            runner.stop()
            runner.join(timeout=10.0)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
