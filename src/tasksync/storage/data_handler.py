# src/tasksync/storage/data_handler.py

from __future__ import annotations

"""
Async data facade over TaskStore.

Each call runs the blocking SQLite work in a worker thread, so calls issued
back-to-back overlap and may complete in any order. Store errors are
re-raised as DataAccessError with the facade operation name.
"""

import asyncio
import logging
import sqlite3
from collections.abc import Callable
from typing import TypeVar

from ..core.errors import DataAccessError
from ..core.models import Category, Priority, Task
from .task_store import TaskStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StoreDataHandler:
    def __init__(self, store: TaskStore) -> None:
        self._store = store

    async def _call(self, operation: str, fn: Callable[..., T], *args, **kwargs) -> T:
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except (sqlite3.Error, LookupError, ValueError, RuntimeError) as e:
            logger.debug("Store call %s failed", operation, exc_info=True)
            raise DataAccessError(operation, str(e)) from e

    # ---- reference data ----

    async def list_priorities(self) -> list[Priority]:
        return await self._call("list_priorities", self._store.list_priorities)

    # ---- categories ----

    async def list_categories(self) -> list[Category]:
        return await self._call("list_categories", self._store.list_categories)

    async def search_categories(self, text: str) -> list[Category]:
        return await self._call("search_categories", self._store.search_categories, text)

    async def add_category(self, title: str) -> Category:
        return await self._call("add_category", self._store.add_category, title)

    async def update_category(self, category: Category) -> None:
        await self._call("update_category", self._store.update_category, category.id, category.title)

    async def delete_category(self, category_id: int) -> Category:
        return await self._call("delete_category", self._store.delete_category, category_id)

    # ---- tasks ----

    async def search_tasks(
        self,
        category: Category | None,
        text: str,
        status: bool | None,
        priority: Priority | None,
    ) -> list[Task]:
        return await self._call(
            "search_tasks",
            self._store.search_tasks,
            category_id=category.id if category is not None else None,
            text=text,
            completed=status,
            priority_id=priority.id if priority is not None else None,
        )

    async def add_task(self, task: Task) -> Task:
        return await self._call(
            "add_task",
            self._store.add_task,
            title=task.title,
            completed=task.completed,
            priority_id=task.priority.id if task.priority is not None else None,
            category_id=task.category.id if task.category is not None else None,
            created_at=task.created_at or None,
        )

    async def update_task(self, task: Task) -> None:
        if task.id is None:
            raise DataAccessError("update_task", "task has no id")
        await self._call(
            "update_task",
            self._store.update_task,
            task.id,
            title=task.title,
            completed=task.completed,
            priority_id=task.priority.id if task.priority is not None else None,
            category_id=task.category.id if task.category is not None else None,
        )

    async def delete_task(self, task_id: int) -> Task:
        return await self._call("delete_task", self._store.delete_task, task_id)

    # ---- counters ----

    async def count_total_in_category(self, category: Category | None) -> int:
        return await self._call("count_total_in_category", self._store.count_total, _cid(category))

    async def count_completed_in_category(self, category: Category | None) -> int:
        return await self._call("count_completed_in_category", self._store.count_completed, _cid(category))

    async def count_uncompleted_in_category(self, category: Category | None) -> int:
        return await self._call("count_uncompleted_in_category", self._store.count_uncompleted, _cid(category))

    async def count_uncompleted_total(self) -> int:
        return await self._call("count_uncompleted_total", self._store.count_uncompleted, None)


def _cid(category: Category | None) -> int | None:
    return category.id if category is not None else None
