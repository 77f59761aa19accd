# src/tasksync/core/stats.py

from __future__ import annotations

"""
Statistics aggregator.

One recompute = four count queries dispatched together and joined by
asyncio.gather (fan-out/fan-in). The snapshot is replaced only when all four
succeed, and only if no newer recompute was issued in the meantime.
"""

import asyncio
import logging

from .models import Category, StatsSnapshot
from .ports import DataHandler

logger = logging.getLogger(__name__)


class StatisticsAggregator:
    def __init__(self, data: DataHandler) -> None:
        self._data = data
        self._snapshot = StatsSnapshot()
        self._issued = 0

    @property
    def snapshot(self) -> StatsSnapshot:
        return self._snapshot

    async def recompute(self, category: Category | None) -> StatsSnapshot | None:
        """
        Refresh all four counters for `category` (None -> all categories).

        Returns the published snapshot, or None when the result was dropped
        because a newer recompute had been issued. Any query failure
        propagates and leaves the previous snapshot in place.
        """
        self._issued += 1
        ticket = self._issued

        results = await asyncio.gather(
            self._data.count_total_in_category(category),
            self._data.count_completed_in_category(category),
            self._data.count_uncompleted_in_category(category),
            self._data.count_uncompleted_total(),
            return_exceptions=True,
        )
        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            logger.warning("Statistics withheld ticket=%s: %s", ticket, errors[0])
            raise errors[0]
        total, completed, uncompleted, uncompleted_total = results

        if ticket != self._issued:
            logger.debug("Dropping stale statistics ticket=%s latest=%s", ticket, self._issued)
            return None

        self._snapshot = StatsSnapshot(
            total_in_category=int(total),
            completed_in_category=int(completed),
            uncompleted_in_category=int(uncompleted),
            uncompleted_total=int(uncompleted_total),
        )
        return self._snapshot
