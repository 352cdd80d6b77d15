from __future__ import annotations

import json

import pytest

from core.entities import Snapshot
from delivery.file_delivery import SnapshotFileWriter

from conftest import make_item


@pytest.mark.asyncio
async def test_writes_snapshot_as_json(tmp_path) -> None:
    path = tmp_path / "nested" / "snapshot.json"
    writer = SnapshotFileWriter(str(path))
    snapshot = Snapshot(items=(make_item(2, score=30), make_item(1, score=10)), version=3, generated_at=123.0)

    await writer.deliver(snapshot)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["version"] == 3
    assert [item["id"] for item in data["items"]] == [2, 1]
    assert data["items"][0]["type"] == "story"
    assert data["items"][0]["display_url"] == "https://news.ycombinator.com/item?id=2"
    assert not path.with_suffix(".json.tmp").exists()
