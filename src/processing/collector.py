"""
Concurrent fan-out / fan-in of per-id item fetches
"""
import asyncio
import logging
from typing import List, Optional, Sequence

from core.entities import Item
from core.errors import FetchError
from ingestion.base import ItemSource

logger = logging.getLogger(__name__)


class FanOutCollector:
    """
    Launches one fetch task per id and waits for all of them.

    At most `max_concurrency` requests are in flight at once. A failed id
    is logged and dropped; it never aborts the collection. Result order
    follows completion and is not meaningful.
    """

    def __init__(self, source: ItemSource, max_concurrency: int = 32):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self.source = source
        self.max_concurrency = max_concurrency

    async def collect(self, ids: Sequence[int]) -> List[Item]:
        gate = asyncio.Semaphore(self.max_concurrency)
        results: List[Item] = []

        async def _fetch_one(item_id: int) -> Optional[Item]:
            async with gate:
                try:
                    item = await self.source.fetch_item(item_id)
                except FetchError as e:
                    logger.warning(f"Dropping item {item_id}: {e}")
                    return None
            results.append(item)
            return item

        tasks = [asyncio.ensure_future(_fetch_one(item_id)) for item_id in ids]
        try:
            outcomes = await asyncio.gather(*tasks)
        except BaseException:
            # Cancellation or an unexpected error: no fetch may outlive the run
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        failed = sum(1 for outcome in outcomes if outcome is None)
        logger.info(
            f"Collected {len(results)}/{len(tasks)} items ({failed} dropped)"
        )
        return results
