# src/tasksync/core/filters.py

from __future__ import annotations

"""
Filter state: what the user currently wants to see.

Setters only record values and raise the `stale` flag; the synchronizer
issues the actual queries and clears the flag once a refresh for the
current combination has been applied.
"""

from dataclasses import dataclass

from .models import Category, Priority


@dataclass(frozen=True, slots=True)
class FilterSnapshot:
    category: Category | None = None  # None -> "All"
    task_text: str = ""
    category_text: str = ""
    status: bool | None = None  # None -> all, True -> completed, False -> uncompleted
    priority: Priority | None = None


class FilterState:
    def __init__(self, *, compact: bool = False) -> None:
        self._compact = compact
        self._current = FilterSnapshot()
        self.stale = True
        self.collapse_drawer = False

    @property
    def compact(self) -> bool:
        return self._compact

    @property
    def selected_category(self) -> Category | None:
        return self._current.category

    @property
    def search_task_text(self) -> str:
        return self._current.task_text

    @property
    def search_category_text(self) -> str:
        return self._current.category_text

    @property
    def status_filter(self) -> bool | None:
        return self._current.status

    @property
    def priority_filter(self) -> Priority | None:
        return self._current.priority

    def snapshot(self) -> FilterSnapshot:
        return self._current

    def _replace(self, **changes) -> None:
        self._current = FilterSnapshot(
            category=changes.get("category", self._current.category),
            task_text=changes.get("task_text", self._current.task_text),
            category_text=changes.get("category_text", self._current.category_text),
            status=changes.get("status", self._current.status),
            priority=changes.get("priority", self._current.priority),
        )

    def set_category(self, category: Category | None) -> None:
        self._replace(category=category)
        self.stale = True
        # Compact layouts close the drawer once a category is picked.
        if self._compact:
            self.collapse_drawer = True

    def reset_category(self) -> None:
        """Back to "All" without a drawer instruction (the user did not pick anything)."""
        self._replace(category=None)
        self.stale = True

    def set_task_text(self, text: str) -> None:
        self._replace(task_text=text or "")
        self.stale = True

    def set_category_text(self, text: str) -> None:
        # Narrows the category list only; the task list is unaffected.
        self._replace(category_text=text or "")

    def set_status(self, status: bool | None) -> None:
        self._replace(status=status)
        self.stale = True

    def set_priority(self, priority: Priority | None) -> None:
        self._replace(priority=priority)
        self.stale = True

    def take_collapse_request(self) -> bool:
        """Return and clear the pending drawer-collapse instruction."""
        pending = self.collapse_drawer
        self.collapse_drawer = False
        return pending

    def mark_fresh(self, applied: FilterSnapshot) -> None:
        """Clear `stale` if the refresh that just landed matches the current filters."""
        if _task_key(applied) == _task_key(self._current):
            self.stale = False


def _task_key(f: FilterSnapshot) -> tuple:
    return (f.category, f.task_text, f.status, f.priority)
