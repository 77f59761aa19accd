# src/tasksync/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from typing import cast

from ..core.models import Category, Priority, Task
from ..core.state import AppState

CommandEmitter = Callable[[str], None]
CommandResult = str | Awaitable[str]
CommandHandler2 = Callable[[AppState, list[str]], CommandResult]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], CommandResult]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

STATUS_WORDS: dict[str, bool | None] = {
    "all": None,
    "done": True,
    "completed": True,
    "open": False,
    "uncompleted": False,
}


class CommandRegistry:
    """Slash-command registry used by the console connector (/help, /add, ...)."""

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

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
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
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        if nparams >= 3:
            result = cast(CommandHandler3, handler)(state, args, emit)
        else:
            result = cast(CommandHandler2, handler)(state, args)

        if inspect.isawaitable(result):
            result = await result
        return cast(str, result)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- rendering ----

def render_tasks(state: AppState) -> str:
    tasks = state.sync.tasks
    if not tasks:
        return "No tasks match the current filters."
    lines = []
    for t in tasks:
        mark = "x" if t.completed else " "
        cat = f" #{t.category.title}" if t.category else ""
        prio = f" !{t.priority.title}" if t.priority else ""
        lines.append(f"  [{mark}] {t.id}: {t.title}{cat}{prio}")
    return "\n".join(lines)


def render_categories(state: AppState) -> str:
    sync = state.sync
    selected = sync.filters.selected_category
    marker = "*" if selected is None else " "
    lines = [f" {marker} All ({sync.statistics.uncompleted_total})"]
    for c in sync.categories:
        count = sync.index.get(c)
        marker = "*" if selected is not None and selected.id == c.id else " "
        shown = "…" if count is None else str(count)
        lines.append(f" {marker} {c.id}: {c.title} ({shown})")
    return "\n".join(lines)


def render_stat(state: AppState) -> str:
    s = state.sync.statistics
    return (
        "Statistics:\n"
        f"  Total in category: {s.total_in_category}\n"
        f"  Completed: {s.completed_in_category}\n"
        f"  Uncompleted: {s.uncompleted_in_category}\n"
        f"  Uncompleted (all categories): {s.uncompleted_total}"
    )


def _find_category(state: AppState, name: str) -> Category | None:
    key = name.strip().lstrip("#").casefold()
    for c in state.sync.categories:
        if c.title.casefold() == key or str(c.id) == key:
            return c
    return None


def _find_priority(state: AppState, name: str) -> Priority | None:
    key = name.strip().lstrip("!").casefold()
    for p in state.sync.priorities:
        if p.title.casefold() == key or str(p.id) == key:
            return p
    return None


def _find_task(state: AppState, raw: str) -> Task | None:
    try:
        task_id = int(raw)
    except ValueError:
        return None
    for t in state.sync.tasks:
        if t.id == task_id:
            return t
    return None


def _parse_id(args: list[str]) -> int | None:
    if not args:
        return None
    try:
        return int(args[0])
    except ValueError:
        return None


# ---- commands ----

def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_tasks(state: AppState, args: list[str]) -> str:
    await state.sync.settle()
    return render_tasks(state)


async def cmd_cats(state: AppState, args: list[str]) -> str:
    await state.sync.settle()
    return render_categories(state)


async def cmd_stat(state: AppState, args: list[str]) -> str:
    await state.sync.settle()
    return render_stat(state)


async def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <title words> [#category] [!priority]
    """
    words: list[str] = []
    category: Category | None = None
    priority: Priority | None = None
    for a in args:
        if a.startswith("#") and len(a) > 1:
            category = _find_category(state, a)
            if category is None:
                return f"Unknown category: {a[1:]}"
        elif a.startswith("!") and len(a) > 1:
            priority = _find_priority(state, a)
            if priority is None:
                return f"Unknown priority: {a[1:]}"
        else:
            words.append(a)

    title = " ".join(words).strip()
    if not title:
        return "Usage: /add <title> [#category] [!priority]"

    # New tasks land in the selected category unless one is given.
    if category is None:
        category = state.sync.filters.selected_category

    created = await state.sync.add_task(Task(id=None, title=title, priority=priority, category=category))
    await state.sync.settle()
    if created is None:
        return "Task was not added."
    return f"Added task {created.id}.\n{render_tasks(state)}"


async def _set_completed(state: AppState, args: list[str], completed: bool) -> str:
    task = _find_task(state, args[0]) if args else None
    if task is None:
        return "Task not found in the current list."
    ok = await state.sync.update_task(replace(task, completed=completed))
    await state.sync.settle()
    return render_tasks(state) if ok else "Task was not updated."


async def cmd_done(state: AppState, args: list[str]) -> str:
    return await _set_completed(state, args, True)


async def cmd_undone(state: AppState, args: list[str]) -> str:
    return await _set_completed(state, args, False)


async def cmd_rename(state: AppState, args: list[str]) -> str:
    task = _find_task(state, args[0]) if args else None
    title = " ".join(args[1:]).strip()
    if task is None or not title:
        return "Usage: /rename <task id> <new title>"
    ok = await state.sync.update_task(replace(task, title=title))
    await state.sync.settle()
    return render_tasks(state) if ok else "Task was not updated."


async def cmd_move(state: AppState, args: list[str]) -> str:
    """
    /move <task id> <category|none>
    """
    task = _find_task(state, args[0]) if args else None
    if task is None or len(args) < 2:
        return "Usage: /move <task id> <category|none>"
    category = None if args[1].lower() == "none" else _find_category(state, args[1])
    if category is None and args[1].lower() != "none":
        return f"Unknown category: {args[1]}"
    ok = await state.sync.update_task(replace(task, category=category))
    await state.sync.settle()
    return render_tasks(state) if ok else "Task was not updated."


async def cmd_del(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args)
    if task_id is None:
        return "Usage: /del <task id>"
    deleted = await state.sync.delete_task(task_id)
    await state.sync.settle()
    if deleted is None:
        return "Task was not deleted."
    return f"Deleted task {deleted.id}.\n{render_tasks(state)}"


async def cmd_cat(state: AppState, args: list[str]) -> str:
    """
    /cat all      -> show all categories
    /cat <name>   -> select category by title or id
    """
    if not args:
        return "Usage: /cat <name|id|all>"
    name = " ".join(args)
    if name.lower() == "all":
        category = None
    else:
        category = _find_category(state, name)
        if category is None:
            return f"Unknown category: {name}"

    state.sync.select_category(category)
    if state.sync.filters.take_collapse_request():
        state.layout.close_menu()
    await state.sync.settle()
    return render_tasks(state)


async def cmd_find(state: AppState, args: list[str]) -> str:
    state.sync.search_tasks(" ".join(args))
    await state.sync.settle()
    return render_tasks(state)


async def cmd_findcat(state: AppState, args: list[str]) -> str:
    state.sync.search_categories(" ".join(args))
    await state.sync.settle()
    return render_categories(state)


async def cmd_status(state: AppState, args: list[str]) -> str:
    word = args[0].lower() if args else ""
    if word not in STATUS_WORDS:
        return "Usage: /status all|done|open"
    state.sync.filter_by_status(STATUS_WORDS[word])
    await state.sync.settle()
    return render_tasks(state)


async def cmd_prio(state: AppState, args: list[str]) -> str:
    if not args:
        names = ", ".join(p.title for p in state.sync.priorities)
        return f"Usage: /prio <name|any>. Priorities: {names}"
    if args[0].lower() == "any":
        priority = None
    else:
        priority = _find_priority(state, args[0])
        if priority is None:
            return f"Unknown priority: {args[0]}"
    state.sync.filter_by_priority(priority)
    await state.sync.settle()
    return render_tasks(state)


async def cmd_addcat(state: AppState, args: list[str]) -> str:
    title = " ".join(args).strip()
    if not title:
        return "Usage: /addcat <title>"
    created = await state.sync.add_category(title)
    await state.sync.settle()
    if created is None:
        return "Category was not added."
    return render_categories(state)


async def cmd_renamecat(state: AppState, args: list[str]) -> str:
    category_id = _parse_id(args)
    title = " ".join(args[1:]).strip()
    if category_id is None or not title:
        return "Usage: /renamecat <category id> <new title>"
    ok = await state.sync.update_category(Category(id=category_id, title=title))
    await state.sync.settle()
    return render_categories(state) if ok else "Category was not updated."


async def cmd_delcat(state: AppState, args: list[str]) -> str:
    category_id = _parse_id(args)
    if category_id is None:
        return "Usage: /delcat <category id>"
    deleted = await state.sync.delete_category(category_id)
    await state.sync.settle()
    if deleted is None:
        return "Category was not deleted."
    return f"Deleted category {deleted.title}.\n{render_categories(state)}"


def cmd_menu(state: AppState, args: list[str]) -> str:
    opened = state.layout.toggle_menu()
    return f"Menu {'opened' if opened else 'closed'} ({state.layout.menu_mode.value}, {state.layout.menu_position})."


async def cmd_togglestat(state: AppState, args: list[str]) -> str:
    shown = state.layout.toggle_stat()
    if not shown:
        return "Statistics hidden."
    await state.sync.settle()
    return render_stat(state)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("tasks", cmd_tasks, help_text="Show the current task list.", aliases=["ls"])
registry.register("cats", cmd_cats, help_text="Show categories with uncompleted counts.")
registry.register("stat", cmd_stat, help_text="Show statistics for the selected category.")
registry.register("add", cmd_add, help_text="Add a task: /add <title> [#category] [!priority].")
registry.register("done", cmd_done, help_text="Mark a task completed: /done <id>.")
registry.register("undone", cmd_undone, help_text="Mark a task uncompleted: /undone <id>.")
registry.register("rename", cmd_rename, help_text="Rename a task: /rename <id> <title>.")
registry.register("move", cmd_move, help_text="Move a task: /move <id> <category|none>.")
registry.register("del", cmd_del, help_text="Delete a task: /del <id>.")
registry.register("cat", cmd_cat, help_text="Select a category: /cat <name|id|all>.")
registry.register("find", cmd_find, help_text="Search tasks by title: /find <text>.")
registry.register("findcat", cmd_findcat, help_text="Search categories: /findcat <text>.")
registry.register("status", cmd_status, help_text="Filter by status: /status all|done|open.")
registry.register("prio", cmd_prio, help_text="Filter by priority: /prio <name|any>.")
registry.register("addcat", cmd_addcat, help_text="Add a category: /addcat <title>.")
registry.register("renamecat", cmd_renamecat, help_text="Rename a category: /renamecat <id> <title>.")
registry.register("delcat", cmd_delcat, help_text="Delete a category: /delcat <id>.")
registry.register("menu", cmd_menu, help_text="Open/close the category drawer.")
registry.register("togglestat", cmd_togglestat, help_text="Show/hide the statistics panel.")
