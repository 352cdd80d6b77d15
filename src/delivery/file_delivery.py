"""
File delivery: JSON dump of the latest snapshot
"""
import json
import os
from pathlib import Path

from core.entities import Snapshot
from delivery.base import SnapshotSink


class SnapshotFileWriter(SnapshotSink):
    name = "file"

    def __init__(self, path: str):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    async def deliver(self, snapshot: Snapshot) -> None:
        # Write-then-rename so a reader of the file never sees half a dump
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(
            json.dumps(snapshot.to_dict(), indent=1),
            encoding="utf-8",
        )
        os.replace(tmp_path, self.path)
