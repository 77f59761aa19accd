# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from tasksync.core.models import Priority
from tasksync.core.sync import ViewSynchronizer

from .fakes import FakeDataHandler


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="tasksync-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        db_path=tmp_path / "tasks.sqlite3",
        device="desktop",
        show_stat=None,
        max_notices=10,
        seed_demo=False,
    )


@pytest.fixture()
def data() -> FakeDataHandler:
    """
    Fake facade with two categories:
    - Work: 3 uncompleted + 1 completed
    - Home: 1 uncompleted
    plus one uncategorized uncompleted task.
    """
    fake = FakeDataHandler(
        priorities=[
            Priority(id=2, title="High", order=2),
            Priority(id=1, title="Low", order=1),
        ]
    )
    work = fake.seed_category("Work")
    home = fake.seed_category("Home")
    high = fake.priorities[0]

    fake.seed_task("Write report", category=work, priority=high)
    fake.seed_task("Review PR", category=work)
    fake.seed_task("Plan sprint", category=work)
    fake.seed_task("Expense claim", category=work, completed=True)
    fake.seed_task("Fix the sink", category=home, priority=high)
    fake.seed_task("Call the bank")
    return fake


@pytest.fixture()
def sync(data: FakeDataHandler) -> ViewSynchronizer:
    return ViewSynchronizer(data, max_notices=10)
