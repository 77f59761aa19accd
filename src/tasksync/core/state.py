# src/tasksync/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..layout import LayoutState
from .ports import DataHandler
from .sync import ViewSynchronizer


@dataclass
class AppState:
    # Settings kept on the state for easy access in connectors/commands.
    settings: object

    data: DataHandler
    sync: ViewSynchronizer

    # UI chrome lives next to the core, not inside it.
    layout: LayoutState
