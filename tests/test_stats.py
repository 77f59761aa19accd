# tests/test_stats.py

from __future__ import annotations

import asyncio

import pytest

from tasksync.core.errors import DataAccessError
from tasksync.core.models import StatsSnapshot
from tasksync.core.stats import StatisticsAggregator

from .fakes import FakeDataHandler, spin


@pytest.mark.asyncio
async def test_recompute_publishes_all_four_counts(data: FakeDataHandler) -> None:
    agg = StatisticsAggregator(data)
    work = data.category("Work")

    snap = await agg.recompute(work)

    assert snap == StatsSnapshot(
        total_in_category=4,
        completed_in_category=1,
        uncompleted_in_category=3,
        uncompleted_total=5,
    )
    assert agg.snapshot == snap


@pytest.mark.asyncio
async def test_recompute_for_all_categories(data: FakeDataHandler) -> None:
    agg = StatisticsAggregator(data)
    snap = await agg.recompute(None)
    assert snap == StatsSnapshot(6, 1, 5, 5)


@pytest.mark.asyncio
async def test_snapshot_is_not_published_until_all_four_arrive(data: FakeDataHandler) -> None:
    agg = StatisticsAggregator(data)
    data.hold.update(
        {
            "count_total_in_category",
            "count_completed_in_category",
            "count_uncompleted_in_category",
            "count_uncompleted_total",
        }
    )

    runner = asyncio.create_task(agg.recompute(data.category("Work")))
    await spin()
    assert len(data.held) == 4

    data.release(lambda h: h.name != "count_uncompleted_total")
    await spin()
    assert agg.snapshot == StatsSnapshot()

    data.release()
    await runner
    assert agg.snapshot.total_in_category == 4


@pytest.mark.asyncio
async def test_failed_query_withholds_the_whole_tuple(data: FakeDataHandler) -> None:
    agg = StatisticsAggregator(data)
    before = await agg.recompute(None)

    data.seed_task("New one")
    data.fail.add("count_completed_in_category")
    with pytest.raises(DataAccessError):
        await agg.recompute(None)

    assert agg.snapshot == before


@pytest.mark.asyncio
async def test_last_issued_recompute_wins(data: FakeDataHandler) -> None:
    agg = StatisticsAggregator(data)
    work = data.category("Work")
    home = data.category("Home")
    data.hold.update({"count_total_in_category", "count_completed_in_category"})

    first = asyncio.create_task(agg.recompute(work))
    await spin()
    second = asyncio.create_task(agg.recompute(home))
    await spin()

    # Newer barrier resolves first, older one afterwards.
    data.release(lambda h: h.args[0] == home)
    assert (await second).total_in_category == 1
    data.release()
    assert await first is None

    assert agg.snapshot.total_in_category == 1
    assert agg.snapshot.uncompleted_in_category == 1
