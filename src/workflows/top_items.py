# src/workflows/top_items.py
import logging
import time
from datetime import timedelta
from typing import Callable, Optional

from core.entities import Snapshot, snapshot_from_items
from core.scoring import filter_recent, rank_items, top_n as truncate
from ingestion.base import IdSource
from processing.collector import FanOutCollector
from workflows.base import SnapshotPipeline

logger = logging.getLogger(__name__)


class TopItemsPipeline(SnapshotPipeline):
    name = "top_items"

    def __init__(
        self,
        id_source: IdSource,
        collector: FanOutCollector,
        *,
        clock: Callable[[], float] = time.time,
    ):
        self.id_source = id_source
        self.collector = collector
        self._clock = clock

    async def run(
        self,
        top_n: int,
        recency_window: Optional[timedelta],
        *,
        version: int,
    ) -> Snapshot:
        started = time.perf_counter()

        # An id list failure propagates: the caller decides whether it is fatal
        ids = await self.id_source.fetch_top_ids()

        items = await self.collector.collect(ids)

        # Recency is judged against the moment the items were collected
        now = self._clock()
        recent = filter_recent(items, now=now, window=recency_window)
        if recency_window is not None:
            logger.info(f"[{self.name}] Recency filter: {len(items)} -> {len(recent)} items")

        ranked = truncate(rank_items(recent), top_n)

        snapshot = snapshot_from_items(ranked, version=version, generated_at=now)
        logger.info(
            f"[{self.name}] Built snapshot v{version} with {len(snapshot)} items "
            f"in {time.perf_counter() - started:.2f}s"
        )
        return snapshot
