from __future__ import annotations

import asyncio

import pytest

from core.entities import Item
from core.errors import DecodeError, ExhaustedError
from ingestion.base import ItemSource
from processing.collector import FanOutCollector

from conftest import StubItemSource, make_item


@pytest.mark.asyncio
async def test_partial_failures_are_dropped() -> None:
    ids = list(range(1, 11))
    failing = {3, 6, 9}
    table = {
        i: (ExhaustedError(f"item {i}", attempts=2) if i in failing else make_item(i, score=i))
        for i in ids
    }
    collector = FanOutCollector(StubItemSource(table), max_concurrency=4)

    items = await collector.collect(ids)

    assert len(items) == len(ids) - len(failing)
    assert {item.id for item in items} == set(ids) - failing


@pytest.mark.asyncio
async def test_every_id_is_requested_once() -> None:
    source = StubItemSource({1: make_item(1), 2: DecodeError("bad"), 3: make_item(3)})

    await FanOutCollector(source).collect([1, 2, 3])

    assert sorted(source.requested) == [1, 2, 3]


@pytest.mark.asyncio
async def test_empty_id_list() -> None:
    assert await FanOutCollector(StubItemSource({})).collect([]) == []


class SlowSource(ItemSource):
    def __init__(self):
        self.in_flight = 0
        self.peak = 0

    async def fetch_item(self, item_id: int) -> Item:
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            return make_item(item_id)
        finally:
            self.in_flight -= 1


@pytest.mark.asyncio
async def test_concurrency_is_bounded() -> None:
    source = SlowSource()

    items = await FanOutCollector(source, max_concurrency=3).collect(list(range(20)))

    assert len(items) == 20
    assert source.peak == 3


@pytest.mark.asyncio
async def test_cancelling_collection_cancels_in_flight_fetches() -> None:
    class HangingSource(ItemSource):
        def __init__(self):
            self.in_flight = 0
            self.cancelled = 0

        async def fetch_item(self, item_id: int) -> Item:
            self.in_flight += 1
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                self.cancelled += 1
                raise
            finally:
                self.in_flight -= 1

    source = HangingSource()
    task = asyncio.create_task(FanOutCollector(source, max_concurrency=5).collect(list(range(5))))
    await asyncio.sleep(0.01)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert source.cancelled == 5
    assert source.in_flight == 0


def test_rejects_non_positive_concurrency() -> None:
    with pytest.raises(ValueError):
        FanOutCollector(StubItemSource({}), max_concurrency=0)


@pytest.mark.asyncio
async def test_unexpected_error_cancels_and_awaits_siblings() -> None:
    class BrokenSource(ItemSource):
        def __init__(self):
            self.in_flight = 0
            self.cleaned_up = 0

        async def fetch_item(self, item_id: int) -> Item:
            if item_id == 0:
                await asyncio.sleep(0.01)
                raise RuntimeError("bug in fetch")
            self.in_flight += 1
            try:
                await asyncio.Event().wait()
            finally:
                await asyncio.sleep(0)
                self.cleaned_up += 1
                self.in_flight -= 1

    source = BrokenSource()

    with pytest.raises(RuntimeError):
        await FanOutCollector(source, max_concurrency=10).collect(list(range(5)))

    assert source.cleaned_up == 4
    assert source.in_flight == 0
