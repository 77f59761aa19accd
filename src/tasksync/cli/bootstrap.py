# src/tasksync/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the SQLite store, the async facade, the synchronizer and the layout into AppState.
"""

from __future__ import annotations

import contextlib
import locale
import logging

from ..config import get_settings
from ..core.filters import FilterState
from ..core.state import AppState
from ..core.sync import ViewSynchronizer
from ..layout import DeviceClass, LayoutState
from ..storage.data_handler import StoreDataHandler
from ..storage.seed import seed_demo_data
from ..storage.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    # Category titles are sorted with the user's collation.
    with contextlib.suppress(locale.Error):
        locale.setlocale(locale.LC_COLLATE, "")

    store = TaskStore(settings.db_path)
    if getattr(settings, "seed_demo", False):
        try:
            seed_demo_data(store)
        except Exception:
            logger.exception("Failed to seed demo data into %s", settings.db_path)

    device = DeviceClass.parse(getattr(settings, "device", None))
    layout = LayoutState.for_device(device, show_stat=getattr(settings, "show_stat", None))

    data = StoreDataHandler(store)
    sync = ViewSynchronizer(
        data,
        filters=FilterState(compact=layout.compact),
        max_notices=int(getattr(settings, "max_notices", 50)),
    )

    return AppState(settings=settings, data=data, sync=sync, layout=layout)
