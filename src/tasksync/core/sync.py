# src/tasksync/core/sync.py

from __future__ import annotations

"""
View synchronizer.

Owns the derived views (task list, category index, statistics) and decides,
for every mutation or filter change, which of them to recompute and in what
order.

Rules:
- A mutation is awaited first. Follow-up reads that depend on its outcome
  are issued only after the confirmation arrives.
- Follow-ups run as background asyncio tasks; settle() waits for all of them.
- Add/delete task: point recount of the affected category.
  Update task: full recount, the affected categories are unknown.
- Task list and statistics use "last issued wins": a late result from an
  older query is dropped.
- A failed read leaves its view untouched and queues a Notice.
"""

import asyncio
import logging
from collections import deque
from collections.abc import Callable, Coroutine, Iterable
from typing import Any

from .category_index import CategoryIndex
from .errors import Notice, NoticeLevel, friendly_error_message
from .filters import FilterSnapshot, FilterState
from .models import Category, Priority, StatsSnapshot, Task
from .ports import DataHandler
from .stats import StatisticsAggregator

logger = logging.getLogger(__name__)

NoticeListener = Callable[[Notice], None]


class ViewSynchronizer:
    def __init__(
        self,
        data: DataHandler,
        *,
        filters: FilterState | None = None,
        max_notices: int = 50,
        on_notice: NoticeListener | None = None,
    ) -> None:
        self._data = data
        self.filters = filters or FilterState()
        self.index = CategoryIndex(data.count_uncompleted_in_category)
        self.stats = StatisticsAggregator(data)

        self._tasks: tuple[Task, ...] = ()
        self._priorities: tuple[Priority, ...] = ()
        self._notices: deque[Notice] = deque(maxlen=max(1, int(max_notices)))
        self._on_notice = on_notice

        self._pending: set[asyncio.Task[None]] = set()
        self._task_ticket = 0
        self._category_ticket = 0

    # ---- read-only views ----

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self._tasks

    @property
    def priorities(self) -> tuple[Priority, ...]:
        return self._priorities

    @property
    def categories(self) -> tuple[Category, ...]:
        return self.index.categories

    @property
    def category_counts(self) -> list[tuple[Category, int]]:
        return self.index.items()

    @property
    def statistics(self) -> StatsSnapshot:
        return self.stats.snapshot

    @property
    def current_filters(self) -> FilterSnapshot:
        return self.filters.snapshot()

    @property
    def busy(self) -> bool:
        return bool(self._pending)

    def drain_notices(self) -> list[Notice]:
        out = list(self._notices)
        self._notices.clear()
        return out

    # ---- background work ----

    def _spawn(self, coro: Coroutine[Any, Any, Any], operation: str) -> asyncio.Task[None]:
        task = asyncio.create_task(self._guard(coro, operation))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _guard(self, coro: Coroutine[Any, Any, Any], operation: str) -> None:
        try:
            await coro
        except Exception as e:
            self._notify(operation, e)

    def _notify(self, operation: str, exc: BaseException, level: NoticeLevel = NoticeLevel.ERROR) -> None:
        logger.warning("%s failed: %s", operation, exc)
        notice = Notice(operation=operation, message=friendly_error_message(exc), level=level)
        self._notices.append(notice)
        if self._on_notice is not None:
            try:
                self._on_notice(notice)
            except Exception:
                logger.exception("Notice listener crashed.")

    async def settle(self) -> None:
        """Wait until every follow-up chain (including ones spawned meanwhile) has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def _mutate(self, coro: Coroutine[Any, Any, Any], operation: str) -> Any:
        try:
            return await coro
        except Exception as e:
            self._notify(operation, e)
            return None

    # ---- refreshers ----

    async def _refresh_tasks(self) -> None:
        self._task_ticket += 1
        ticket = self._task_ticket
        applied = self.filters.snapshot()

        tasks = await self._data.search_tasks(
            applied.category,
            applied.task_text,
            applied.status,
            applied.priority,
        )
        if ticket != self._task_ticket:
            logger.debug("Dropping stale task list ticket=%s latest=%s", ticket, self._task_ticket)
            return

        self._tasks = tuple(tasks)
        self.filters.mark_fresh(applied)

    async def _refresh_stats(self) -> None:
        await self.stats.recompute(self.filters.selected_category)

    async def _refresh_categories(self) -> None:
        """Re-run the category search with the current text, then rebuild the index."""
        self._category_ticket += 1
        ticket = self._category_ticket

        categories = await self._data.search_categories(self.filters.search_category_text)
        if ticket != self._category_ticket:
            logger.debug("Dropping stale category search ticket=%s", ticket)
            return
        await self._rebuild(categories)

    async def _rebuild(self, categories: Iterable[Category]) -> None:
        try:
            await self.index.rebuild(categories)
        except Exception as e:
            # Counts that did land stay in the index.
            level = NoticeLevel.WARNING if len(self.index) else NoticeLevel.ERROR
            self._notify("category_counts", e, level=level)

    def update_tasks(self) -> None:
        self._spawn(self._refresh_tasks(), "search_tasks")

    def update_stat(self) -> None:
        self._spawn(self._refresh_stats(), "statistics")

    def update_tasks_and_stat(self) -> None:
        self.update_tasks()
        self.update_stat()

    # ---- lifecycle ----

    async def start(self) -> None:
        """Load reference data, fill the category index and show "All"."""
        priorities, categories = await asyncio.gather(
            self._data.list_priorities(),
            self._data.list_categories(),
            return_exceptions=True,
        )
        if isinstance(priorities, Exception):
            self._notify("list_priorities", priorities)
        else:
            self._priorities = tuple(sorted(priorities, key=lambda p: p.order))

        if isinstance(categories, Exception):
            self._notify("list_categories", categories)
        else:
            self._spawn(self._rebuild(categories), "category_counts")

        self.filters.reset_category()
        self.update_tasks_and_stat()
        logger.info(
            "Synchronizer started priorities=%d categories=%d",
            len(self._priorities),
            0 if isinstance(categories, Exception) else len(categories),
        )

    # ---- filter changes ----

    def select_category(self, category: Category | None) -> None:
        self.filters.set_category(category)
        self.update_tasks_and_stat()

    def search_tasks(self, text: str) -> None:
        self.filters.set_task_text(text)
        self.update_tasks_and_stat()

    def filter_by_status(self, status: bool | None) -> None:
        self.filters.set_status(status)
        self.update_tasks_and_stat()

    def filter_by_priority(self, priority: Priority | None) -> None:
        self.filters.set_priority(priority)
        self.update_tasks_and_stat()

    def search_categories(self, text: str) -> None:
        self.filters.set_category_text(text)
        self._spawn(self._refresh_categories(), "search_categories")

    # ---- task mutations ----

    async def add_task(self, task: Task) -> Task | None:
        created = await self._mutate(self._data.add_task(task), "add_task")
        if created is None:
            return None
        logger.info("Task added id=%s category=%s", created.id, getattr(created.category, "title", None))

        # Recount must use the category of the stored task.
        if created.category is not None:
            self._spawn(self.index.recount(created.category), "count_category")
        self.update_tasks_and_stat()
        return created

    async def delete_task(self, task_id: int) -> Task | None:
        deleted = await self._mutate(self._data.delete_task(task_id), "delete_task")
        if deleted is None:
            return None
        logger.info("Task deleted id=%s", task_id)

        if deleted.category is not None:
            self._spawn(self.index.recount(deleted.category), "count_category")
        self.update_tasks_and_stat()
        return deleted

    async def update_task(self, task: Task) -> bool:
        ok = await self._mutate(self._confirm(self._data.update_task(task)), "update_task")
        if not ok:
            return False
        logger.info("Task updated id=%s", task.id)

        self._spawn(self._rebuild(self.index.categories), "category_counts")
        self.update_tasks_and_stat()
        return True

    # ---- category mutations ----

    async def add_category(self, title: str) -> Category | None:
        created = await self._mutate(self._data.add_category(title), "add_category")
        if created is None:
            return None
        logger.info("Category added id=%s title=%s", created.id, created.title)
        self._spawn(self._refresh_categories(), "search_categories")
        return created

    async def update_category(self, category: Category) -> bool:
        ok = await self._mutate(self._confirm(self._data.update_category(category)), "update_category")
        if not ok:
            return False
        logger.info("Category updated id=%s", category.id)
        self._spawn(self._refresh_categories(), "search_categories")
        return True

    async def delete_category(self, category_id: int) -> Category | None:
        deleted = await self._mutate(self._data.delete_category(category_id), "delete_category")
        if deleted is None:
            return None
        logger.info("Category deleted id=%s title=%s", deleted.id, deleted.title)

        self.filters.reset_category()
        self.index.delete(deleted)
        self._spawn(self._refresh_categories(), "search_categories")
        self.update_tasks_and_stat()
        return deleted

    @staticmethod
    async def _confirm(coro: Coroutine[Any, Any, Any]) -> bool:
        await coro
        return True
