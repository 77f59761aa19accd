# src/tasksync/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The synchronizer depends on this Protocol instead of a concrete store.
Every call is a coroutine; calls issued back-to-back may complete in any order.
"""

from typing import Protocol

from .models import Category, Priority, Task


class DataHandler(Protocol):
    """Data-access facade: CRUD + count queries over tasks, categories and priorities."""

    # Reference data
    async def list_priorities(self) -> list[Priority]: ...

    # Categories
    async def list_categories(self) -> list[Category]: ...
    async def search_categories(self, text: str) -> list[Category]: ...
    async def add_category(self, title: str) -> Category: ...
    async def update_category(self, category: Category) -> None: ...
    async def delete_category(self, category_id: int) -> Category: ...

    # Tasks
    async def search_tasks(
            self,
            category: Category | None,
            text: str,
            status: bool | None,
            priority: Priority | None,
    ) -> list[Task]: ...
    async def add_task(self, task: Task) -> Task: ...
    async def update_task(self, task: Task) -> None: ...
    async def delete_task(self, task_id: int) -> Task: ...

    # Counters (category=None means "all categories")
    async def count_total_in_category(self, category: Category | None) -> int: ...
    async def count_completed_in_category(self, category: Category | None) -> int: ...
    async def count_uncompleted_in_category(self, category: Category | None) -> int: ...
    async def count_uncompleted_total(self) -> int: ...
