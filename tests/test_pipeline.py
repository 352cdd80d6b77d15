from __future__ import annotations

import random
from datetime import timedelta

import pytest

from core.errors import DecodeError, NetworkError
from processing.collector import FanOutCollector
from workflows.top_items import TopItemsPipeline

from conftest import StubIdSource, StubItemSource, make_item

NOW = 1_700_000_000


def _pipeline(ids, table) -> TopItemsPipeline:
    return TopItemsPipeline(
        StubIdSource(ids),
        FanOutCollector(StubItemSource(table), max_concurrency=8),
        clock=lambda: float(NOW),
    )


@pytest.mark.asyncio
async def test_decode_failure_is_dropped_and_rest_ranked() -> None:
    table = {
        1: make_item(1, score=10, created_at=NOW),
        2: DecodeError("Malformed record"),
        3: make_item(3, score=30, created_at=NOW),
    }

    snapshot = await _pipeline([1, 2, 3], table).run(50, timedelta(hours=24), version=1)

    assert [item.id for item in snapshot.items] == [3, 1]
    assert [item.score for item in snapshot.items] == [30, 10]
    assert snapshot.version == 1
    assert snapshot.generated_at == NOW


@pytest.mark.asyncio
async def test_snapshot_is_bounded_sorted_and_recent() -> None:
    rng = random.Random(7)
    window = timedelta(hours=24)
    ids = list(range(1, 201))
    table = {
        i: make_item(i, score=rng.randint(0, 500), created_at=NOW - rng.randint(0, 3 * 86400))
        for i in ids
    }

    snapshot = await _pipeline(ids, table).run(50, window, version=1)

    assert len(snapshot) <= 50
    scores = [item.score for item in snapshot.items]
    assert scores == sorted(scores, reverse=True)
    assert all(NOW - 86400 <= item.created_at <= NOW for item in snapshot.items)


@pytest.mark.asyncio
async def test_recency_filter_is_optional() -> None:
    table = {1: make_item(1, score=5, created_at=0), 2: make_item(2, score=1, created_at=NOW)}

    unfiltered = await _pipeline([1, 2], table).run(50, None, version=1)
    filtered = await _pipeline([1, 2], table).run(50, timedelta(hours=1), version=1)

    assert [item.id for item in unfiltered.items] == [1, 2]
    assert [item.id for item in filtered.items] == [2]


@pytest.mark.asyncio
async def test_id_list_failure_propagates() -> None:
    pipeline = TopItemsPipeline(
        StubIdSource([], error=NetworkError("down")),
        FanOutCollector(StubItemSource({})),
    )

    with pytest.raises(NetworkError):
        await pipeline.run(50, None, version=1)
