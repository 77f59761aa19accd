# src/tasksync/core/category_index.py

from __future__ import annotations

"""
Category index: category -> number of uncompleted tasks.

Two ways to keep it current:
- point updates (set/delete) when the affected category is known,
- rebuild() when it is not, which re-counts every category.

Entries are keyed by category id, so a renamed category keeps its slot.

Counts computed asynchronously carry a ticket taken when the query was
issued. A result is applied only if no later-issued count for the same
category has landed and no rebuild started after it was issued. Deleted ids
are remembered; late writes for them are dropped.
"""

import asyncio
import locale
import logging
from collections.abc import Awaitable, Callable, Iterable

from .models import Category

logger = logging.getLogger(__name__)

CountFn = Callable[[Category], Awaitable[int]]


def sort_categories(categories: Iterable[Category]) -> list[Category]:
    """
    Locale-aware ascending by title, case-insensitive first (so "archive" < "Home"
    even under the C locale). sorted() is stable so equal titles keep input order.
    """
    return sorted(
        categories,
        key=lambda c: (locale.strxfrm(c.title.casefold()), locale.strxfrm(c.title)),
    )


class CategoryIndex:
    def __init__(self, count_uncompleted: CountFn) -> None:
        self._count = count_uncompleted
        self._order: list[Category] = []
        self._counts: dict[int, int] = {}
        self._deleted: set[int] = set()

        self._seq = 0
        self._floor = 0
        self._applied: dict[int, int] = {}

    # ---- read side ----

    def __contains__(self, category: object) -> bool:
        return isinstance(category, Category) and category.id in self._counts

    def __len__(self) -> int:
        return len(self._counts)

    @property
    def categories(self) -> tuple[Category, ...]:
        """Sorted category list, including entries whose count has not arrived yet."""
        return tuple(self._order)

    def get(self, category: Category) -> int | None:
        return self._counts.get(category.id)

    def items(self) -> list[tuple[Category, int]]:
        return [(c, self._counts[c.id]) for c in self._order if c.id in self._counts]

    def is_deleted(self, category: Category) -> bool:
        return category.id in self._deleted

    # ---- point updates ----

    def set(self, category: Category, count: int) -> bool:
        """
        Store `count` for `category`, inserting it if absent.

        Returns False (and stores nothing) for a category deleted earlier.
        """
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")
        if category.id in self._deleted:
            logger.debug("Dropping count for deleted category id=%s", category.id)
            return False

        for i, known in enumerate(self._order):
            if known.id == category.id:
                if known != category:
                    self._order[i] = category
                    self._order = sort_categories(self._order)
                break
        else:
            self._order = sort_categories([*self._order, category])

        self._counts[category.id] = int(count)
        return True

    def delete(self, category: Category) -> None:
        self._deleted.add(category.id)
        self._counts.pop(category.id, None)
        self._applied.pop(category.id, None)
        self._order = [c for c in self._order if c.id != category.id]

    # ---- async counts ----

    def reserve(self) -> int:
        """Ticket for a count query about to be issued."""
        self._seq += 1
        return self._seq

    def apply(self, category: Category, count: int, ticket: int) -> bool:
        """set() guarded by the ticket order; returns whether the count was stored."""
        if ticket <= self._floor or ticket <= self._applied.get(category.id, 0):
            logger.debug("Dropping stale count category=%s ticket=%s", category.title, ticket)
            return False
        if not self.set(category, count):
            return False
        self._applied[category.id] = ticket
        return True

    async def recount(self, category: Category) -> bool:
        """Point update: re-count one category and store the result."""
        ticket = self.reserve()
        count = await self._count(category)
        return self.apply(category, count, ticket)

    async def rebuild(self, categories: Iterable[Category]) -> list[Category]:
        """
        Clear the index and re-count every category concurrently.

        Entries appear one by one as counts arrive; anything issued before
        this call is dropped when it lands. If some counts fail, the rest
        still land and the first error is raised at the end.
        """
        ordered = sort_categories(c for c in categories if c.id not in self._deleted)

        self._floor = self._seq
        self._order = list(ordered)
        self._counts.clear()
        self._applied.clear()

        async def _count_one(category: Category, ticket: int) -> None:
            count = await self._count(category)
            self.apply(category, count, ticket)

        # Tickets are taken now so a rebuild started later supersedes this one.
        jobs = [_count_one(c, self.reserve()) for c in ordered]
        results = await asyncio.gather(*jobs, return_exceptions=True)
        errors = [r for r in results if isinstance(r, Exception)]
        for err in errors:
            logger.warning("Category recount failed: %s", err)
        if errors:
            raise errors[0]

        logger.debug("Category index rebuilt: %d/%d counted", len(self._counts), len(ordered))
        return ordered
