# src/tasksync/storage/seed.py

from __future__ import annotations

import logging
import time

from .task_store import TaskStore

logger = logging.getLogger(__name__)

DEMO_PRIORITIES: list[tuple[str, str, int]] = [
    ("Low", "#e5e5e5", 1),
    ("Medium", "#85D1B2", 2),
    ("High", "#F1828D", 3),
    ("Urgent", "#F1128D", 4),
]

DEMO_CATEGORIES: list[str] = [
    "Work",
    "Family",
    "Study",
    "Leisure",
    "Sport",
    "Food",
    "Finance",
    "Gadgets",
    "Health",
    "Car",
    "Repairs",
]

# (title, completed, priority title, category title)
DEMO_TASKS: list[tuple[str, bool, str | None, str | None]] = [
    ("Fill up the car", False, "High", "Car"),
    ("Hand over the report to the boss", False, "Urgent", "Work"),
    ("Tidy up the room", True, "Medium", "Family"),
    ("Go hiking in the mountains", True, "Low", "Leisure"),
    ("Pay the utility bills", False, None, "Finance"),
    ("Review the quarterly plan", False, "Medium", "Work"),
    ("Sign up for a course", False, "Low", "Study"),
    ("Buy groceries for the week", False, None, "Food"),
    ("Book a dentist appointment", False, "High", None),
]


def seed_demo_data(store: TaskStore) -> bool:
    """Populate an empty database with demo data. Returns True if anything was written."""
    if not store.is_empty():
        return False

    priorities = {
        title: store.add_priority(title, color=color, order=order) for title, color, order in DEMO_PRIORITIES
    }
    categories = {title: store.add_category(title) for title in DEMO_CATEGORIES}

    now = time.time()
    for i, (title, completed, prio, cat) in enumerate(DEMO_TASKS):
        store.add_task(
            title=title,
            completed=completed,
            priority_id=priorities[prio].id if prio else None,
            category_id=categories[cat].id if cat else None,
            created_at=now - i * 3600,
        )

    logger.info(
        "Seeded demo data priorities=%d categories=%d tasks=%d",
        len(priorities),
        len(categories),
        len(DEMO_TASKS),
    )
    return True
