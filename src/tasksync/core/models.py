# src/tasksync/core/models.py

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Priority:
    id: int
    title: str
    color: str = ""
    order: int = 0


@dataclass(frozen=True, slots=True)
class Category:
    id: int
    title: str


@dataclass(frozen=True, slots=True)
class Task:
    """
    Transient copy of a stored task.

    The core never edits these in place; updates go through the data facade
    with a new Task built via dataclasses.replace().
    """

    id: int | None
    title: str
    completed: bool = False
    created_at: float = 0.0
    priority: Priority | None = None
    category: Category | None = None


@dataclass(frozen=True, slots=True)
class StatsSnapshot:
    """All four counters of one statistics barrier; published only as a whole."""

    total_in_category: int = 0
    completed_in_category: int = 0
    uncompleted_in_category: int = 0
    uncompleted_total: int = 0
