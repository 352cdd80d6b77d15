from __future__ import annotations

import time
from typing import Dict, List, Optional

import pytest

from core.entities import Item, ItemType
from core.errors import DecodeError, FetchError
from ingestion.base import IdSource, ItemSource


def make_item(item_id: int, score: int = 0, created_at: Optional[int] = None, **kwargs) -> Item:
    return Item(
        id=item_id,
        type=kwargs.pop("type", ItemType.STORY),
        created_at=int(time.time()) if created_at is None else created_at,
        score=score,
        title=kwargs.pop("title", f"Item {item_id}"),
        display_url=f"https://news.ycombinator.com/item?id={item_id}",
        **kwargs,
    )


class StubIdSource(IdSource):
    def __init__(self, ids: List[int], error: Optional[FetchError] = None):
        self.ids = ids
        self.error = error
        self.calls = 0

    async def fetch_top_ids(self) -> List[int]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.ids)


class StubItemSource(ItemSource):
    """Resolves ids from a table; ids mapped to an exception raise it."""

    def __init__(self, table: Dict[int, object]):
        self.table = table
        self.requested: List[int] = []

    async def fetch_item(self, item_id: int) -> Item:
        self.requested.append(item_id)
        outcome = self.table.get(item_id)
        if outcome is None:
            raise DecodeError("Empty item record", {"item_id": item_id})
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeClock:
    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.now += delay


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
