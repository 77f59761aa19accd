# tests/test_category_index.py

from __future__ import annotations

import asyncio

import pytest

from tasksync.core.category_index import CategoryIndex, sort_categories
from tasksync.core.errors import DataAccessError
from tasksync.core.models import Category

from .fakes import FakeDataHandler, spin


def _index(data: FakeDataHandler) -> CategoryIndex:
    return CategoryIndex(data.count_uncompleted_in_category)


def test_set_inserts_and_replaces(data: FakeDataHandler) -> None:
    index = _index(data)
    work = data.category("Work")

    assert index.set(work, 3) is True
    assert index.get(work) == 3
    assert work in index

    index.set(work, 4)
    assert index.get(work) == 4
    assert len(index) == 1


def test_set_rejects_negative_count(data: FakeDataHandler) -> None:
    index = _index(data)
    with pytest.raises(ValueError):
        index.set(data.category("Work"), -1)


def test_set_keeps_renamed_category_slot(data: FakeDataHandler) -> None:
    index = _index(data)
    work = data.category("Work")
    index.set(work, 2)

    renamed = Category(id=work.id, title="Job")
    index.set(renamed, 2)

    assert index.categories == (renamed,)
    assert index.get(work) == 2


def test_delete_is_noop_when_absent_and_blocks_late_writes(data: FakeDataHandler) -> None:
    index = _index(data)
    work = data.category("Work")
    home = data.category("Home")

    index.delete(home)  # absent: nothing happens
    assert len(index) == 0

    index.set(work, 3)
    index.delete(work)
    assert work not in index
    assert index.set(work, 5) is False
    assert work not in index
    assert index.is_deleted(work)


def test_sort_is_by_title_and_stable_for_ties() -> None:
    a1 = Category(id=1, title="Beta")
    b = Category(id=2, title="Alpha")
    a2 = Category(id=3, title="Beta")
    assert sort_categories([a1, b, a2]) == [b, a1, a2]
    assert sort_categories([a2, b, a1]) == [b, a2, a1]


def test_sort_ignores_case_before_comparing_titles() -> None:
    work = Category(id=1, title="work")
    home = Category(id=2, title="Home")
    archive = Category(id=3, title="archive")
    zoo = Category(id=4, title="Zoo")

    ordered = sort_categories([work, home, archive, zoo])

    assert [c.title for c in ordered] == ["archive", "Home", "work", "Zoo"]


@pytest.mark.asyncio
async def test_rebuild_counts_every_category_in_sorted_order(data: FakeDataHandler) -> None:
    index = _index(data)
    ordered = await index.rebuild(list(data.categories.values()))

    assert [c.title for c in ordered] == ["Home", "Work"]
    assert [(c.title, n) for c, n in index.items()] == [("Home", 1), ("Work", 3)]


@pytest.mark.asyncio
async def test_rebuild_populates_incrementally(data: FakeDataHandler) -> None:
    index = _index(data)
    work = data.category("Work")
    home = data.category("Home")
    data.hold.add("count_uncompleted_in_category")

    runner = asyncio.create_task(index.rebuild([work, home]))
    await spin()
    assert len(index) == 0
    assert index.categories == (home, work)

    data.release(lambda h: h.args[0] == work)
    await spin()
    assert index.items() == [(work, 3)]

    data.release()
    await runner
    assert index.items() == [(home, 1), (work, 3)]


@pytest.mark.asyncio
async def test_superseded_rebuild_results_are_dropped(data: FakeDataHandler) -> None:
    index = _index(data)
    work = data.category("Work")
    home = data.category("Home")
    data.hold.add("count_uncompleted_in_category")

    first = asyncio.create_task(index.rebuild([work, home]))
    await spin()
    second = asyncio.create_task(index.rebuild([home]))
    await spin()

    # The newer pass lands first, the older one last; Work must not come back.
    newest = data.held[-1]
    data.release(lambda h: h is newest)
    await second
    data.release()
    await first

    assert index.items() == [(home, 1)]
    assert work not in index


@pytest.mark.asyncio
async def test_rebuild_keeps_successful_counts_when_one_fails(data: FakeDataHandler) -> None:
    work = data.category("Work")
    home = data.category("Home")

    async def flaky(category: Category) -> int:
        if category.id == home.id:
            raise DataAccessError("count_uncompleted_in_category", "down")
        return await data.count_uncompleted_in_category(category)

    index = CategoryIndex(flaky)
    with pytest.raises(DataAccessError):
        await index.rebuild([work, home])

    assert index.items() == [(work, 3)]
    assert index.categories == (home, work)


@pytest.mark.asyncio
async def test_older_point_recount_does_not_overwrite_newer(data: FakeDataHandler) -> None:
    index = _index(data)
    work = data.category("Work")
    data.hold.add("count_uncompleted_in_category")

    older = asyncio.create_task(index.recount(work))
    await spin()
    data.seed_task("Late addition", category=work)
    newer = asyncio.create_task(index.recount(work))
    await spin()

    first, second = data.held
    second.future.set_result(None)
    await newer
    first.future.set_result(None)
    data.held.clear()

    assert await older is False
    assert index.get(work) == 4
