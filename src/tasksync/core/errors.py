# src/tasksync/core/errors.py

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import StrEnum


class DataAccessError(RuntimeError):
    """A facade operation failed (storage/network). Terminal for that invocation."""

    def __init__(self, operation: str, message: str = "") -> None:
        self.operation = operation
        super().__init__(f"{operation} failed" + (f": {message}" if message else ""))


class NoticeLevel(StrEnum):
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Notice:
    """A failure surfaced to the presentation layer. The affected view keeps its old value."""

    operation: str
    message: str
    level: NoticeLevel = NoticeLevel.ERROR
    created_at: float = field(default_factory=time.time)


def friendly_error_message(exc: BaseException) -> str:
    """Short, user-facing text for a facade failure."""
    if isinstance(exc, DataAccessError):
        return str(exc)
    text = str(exc).strip()
    name = exc.__class__.__name__
    return f"{name}: {text}" if text else name
