"""
Workflows module - Pipeline orchestration for snapshot generation.
"""
from workflows.base import SnapshotPipeline
from workflows.top_items import TopItemsPipeline

__all__ = [
    "SnapshotPipeline",
    "TopItemsPipeline",
]
