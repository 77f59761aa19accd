# tests/fakes.py

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Any

from tasksync.core.errors import DataAccessError
from tasksync.core.models import Category, Priority, Task


@dataclass(slots=True)
class HeldCall:
    name: str
    args: tuple[Any, ...]
    future: asyncio.Future[None]


@dataclass(slots=True)
class FakeDataHandler:
    """
    In-memory DataHandler with controllable latency.

    - Results are computed when the call is issued (a snapshot of storage at that moment).
    - Operations listed in `hold` park until the test releases them, in any order.
    - Operations listed in `fail` raise DataAccessError after being released.
    - `fail_if(name, args)` does the same for individual calls.
    """

    priorities: list[Priority] = field(default_factory=list)
    categories: dict[int, Category] = field(default_factory=dict)
    tasks: dict[int, Task] = field(default_factory=dict)

    hold: set[str] = field(default_factory=set)
    fail: set[str] = field(default_factory=set)
    fail_if: Callable[[str, tuple[Any, ...]], bool] | None = None
    held: list[HeldCall] = field(default_factory=list)
    calls: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)

    _ids: Any = field(default_factory=lambda: itertools.count(100))

    # ---- test helpers ----

    def seed_category(self, title: str) -> Category:
        c = Category(id=next(self._ids), title=title)
        self.categories[c.id] = c
        return c

    def seed_task(
        self,
        title: str,
        *,
        category: Category | None = None,
        completed: bool = False,
        priority: Priority | None = None,
    ) -> Task:
        t = Task(
            id=next(self._ids),
            title=title,
            completed=completed,
            created_at=float(len(self.tasks)),
            priority=priority,
            category=category,
        )
        self.tasks[t.id] = t
        return t

    def category(self, title: str) -> Category:
        for c in self.categories.values():
            if c.title == title:
                return c
        raise KeyError(title)

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def held_names(self) -> list[str]:
        return [h.name for h in self.held]

    def release(self, predicate: Callable[[HeldCall], bool] | None = None) -> int:
        """Release held calls matching predicate (all if None). Returns how many."""
        keep: list[HeldCall] = []
        released = 0
        for h in self.held:
            if predicate is None or predicate(h):
                if not h.future.done():
                    h.future.set_result(None)
                released += 1
            else:
                keep.append(h)
        self.held = keep
        return released

    def release_name(self, name: str) -> int:
        return self.release(lambda h: h.name == name)

    async def _run(self, name: str, args: tuple[Any, ...], fn: Callable[[], Any]) -> Any:
        self.calls.append((name, args))
        failing = name in self.fail or (self.fail_if is not None and self.fail_if(name, args))
        result = None if failing else fn()
        if name in self.hold:
            fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
            self.held.append(HeldCall(name=name, args=args, future=fut))
            await fut
        if failing:
            raise DataAccessError(name, "simulated failure")
        return result

    # ---- queries ----

    def _matches(self, t: Task, category, text, status, priority) -> bool:
        if category is not None and (t.category is None or t.category.id != category.id):
            return False
        if text and text.lower() not in t.title.lower():
            return False
        if status is not None and t.completed != status:
            return False
        if priority is not None and (t.priority is None or t.priority.id != priority.id):
            return False
        return True

    def _count(self, category: Category | None, completed: bool | None) -> int:
        n = 0
        for t in self.tasks.values():
            if category is not None and (t.category is None or t.category.id != category.id):
                continue
            if completed is not None and t.completed != completed:
                continue
            n += 1
        return n

    # ---- DataHandler ----

    async def list_priorities(self) -> list[Priority]:
        return await self._run("list_priorities", (), lambda: list(self.priorities))

    async def list_categories(self) -> list[Category]:
        return await self._run("list_categories", (), lambda: list(self.categories.values()))

    async def search_categories(self, text: str) -> list[Category]:
        return await self._run(
            "search_categories",
            (text,),
            lambda: [c for c in self.categories.values() if (text or "").lower() in c.title.lower()],
        )

    async def add_category(self, title: str) -> Category:
        return await self._run("add_category", (title,), lambda: self.seed_category(title))

    async def update_category(self, category: Category) -> None:
        def _do() -> None:
            self.categories[category.id] = category
            for tid, t in list(self.tasks.items()):
                if t.category is not None and t.category.id == category.id:
                    self.tasks[tid] = replace(t, category=category)

        return await self._run("update_category", (category,), _do)

    async def delete_category(self, category_id: int) -> Category:
        def _do() -> Category:
            deleted = self.categories.pop(category_id)
            for tid, t in list(self.tasks.items()):
                if t.category is not None and t.category.id == category_id:
                    self.tasks[tid] = replace(t, category=None)
            return deleted

        return await self._run("delete_category", (category_id,), _do)

    async def search_tasks(self, category, text, status, priority) -> list[Task]:
        return await self._run(
            "search_tasks",
            (category, text, status, priority),
            lambda: [t for t in self.tasks.values() if self._matches(t, category, text, status, priority)],
        )

    async def add_task(self, task: Task) -> Task:
        def _do() -> Task:
            created = replace(task, id=next(self._ids))
            self.tasks[created.id] = created
            return created

        return await self._run("add_task", (task,), _do)

    async def update_task(self, task: Task) -> None:
        def _do() -> None:
            self.tasks[task.id] = task

        return await self._run("update_task", (task,), _do)

    async def delete_task(self, task_id: int) -> Task:
        return await self._run("delete_task", (task_id,), lambda: self.tasks.pop(task_id))

    async def count_total_in_category(self, category: Category | None) -> int:
        return await self._run("count_total_in_category", (category,), lambda: self._count(category, None))

    async def count_completed_in_category(self, category: Category | None) -> int:
        return await self._run("count_completed_in_category", (category,), lambda: self._count(category, True))

    async def count_uncompleted_in_category(self, category: Category | None) -> int:
        return await self._run(
            "count_uncompleted_in_category", (category,), lambda: self._count(category, False)
        )

    async def count_uncompleted_total(self) -> int:
        return await self._run("count_uncompleted_total", (), lambda: self._count(None, False))


async def spin(n: int = 20) -> None:
    """Let scheduled tasks run up to their next await point."""
    for _ in range(n):
        await asyncio.sleep(0)
