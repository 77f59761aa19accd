# src/tasksync/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..cli.commands import render_categories, render_stat, render_tasks
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def _print_notices(state: AppState) -> None:
    for notice in state.sync.drain_notices():
        _print_ts(f"[{notice.level.value.upper()}] {notice.operation}: {notice.message}")


async def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (device=%s).", state.layout.device.value)

    await state.sync.start()
    await state.sync.settle()

    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")
    if state.layout.menu_opened:
        print(render_categories(state))
    print(render_tasks(state))
    if state.layout.show_stat:
        print(render_stat(state))
    _print_notices(state)

    def emit(text: str) -> None:
        print(f"[{_ts_local()}] {text}", flush=True)

    while True:
        try:
            user_input = (await asyncio.to_thread(input, ">>> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = await command_registry.handle(state, user_input, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is None:
            # Bare text is a task search.
            reply = await command_registry.handle(state, f"/find {user_input}", emit=emit)

        _print_ts(reply or "")
        _print_notices(state)

    await state.sync.settle()
    logger.info("Console connector finished.")
