"""
Pipeline Factory - Wires the refresh pipeline from configuration.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from core.entities import EMPTY_SNAPSHOT, Snapshot
from delivery.base import SnapshotSink
from delivery.file_delivery import SnapshotFileWriter
from ingestion.client import RemoteClient
from ingestion.hackernews import IdListFetcher, ItemFetcher
from processing.collector import FanOutCollector
from services.config import Config
from services.scheduler import Refresher
from services.snapshot_store import SnapshotStore
from workflows.top_items import TopItemsPipeline

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Everything one serving process shares."""
    client: RemoteClient
    pipeline: TopItemsPipeline
    store: SnapshotStore
    refresher: Refresher

    async def aclose(self) -> None:
        await self.client.aclose()


def create_pipeline_from_config(config: Config, client: RemoteClient) -> TopItemsPipeline:
    """
    Create the ids → items → snapshot pipeline.

    Args:
        config: Loaded configuration
        client: Shared HTTP client

    Returns:
        Configured TopItemsPipeline instance
    """
    id_source = IdListFetcher(client, config.upstream)
    item_source = ItemFetcher(client, config.upstream, config.retry)
    collector = FanOutCollector(item_source, max_concurrency=config.pipeline.max_concurrency)
    return TopItemsPipeline(id_source, collector)


def create_sinks_from_config(config: Config) -> List[SnapshotSink]:
    sinks: List[SnapshotSink] = []
    if config.refresh.dump_path:
        sinks.append(SnapshotFileWriter(config.refresh.dump_path))
        logger.info(f"Snapshot dump enabled: {config.refresh.dump_path}")
    return sinks


def build_runtime(
    config: Config,
    client: Optional[RemoteClient] = None,
    initial: Snapshot = EMPTY_SNAPSHOT,
) -> Runtime:
    client = client or RemoteClient(
        config.upstream.user_agent,
        timeout=config.upstream.request_timeout,
    )
    pipeline = create_pipeline_from_config(config, client)
    store = SnapshotStore(initial)
    refresher = Refresher(
        pipeline,
        store,
        interval=config.refresh.interval_seconds,
        top_n=config.pipeline.top_n,
        recency_window=config.pipeline.recency_window,
        sinks=create_sinks_from_config(config),
    )
    return Runtime(client=client, pipeline=pipeline, store=store, refresher=refresher)
