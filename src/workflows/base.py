"""
Contains base class for snapshot pipelines
"""
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Optional

from core.entities import Snapshot


class SnapshotPipeline(ABC):
    """
    Orchestrates ids → items → filter → rank → truncate
    for a single refresh cycle.
    """

    name: str

    @abstractmethod
    async def run(
        self,
        top_n: int,
        recency_window: Optional[timedelta],
        *,
        version: int,
    ) -> Snapshot:
        """
        Build one snapshot.
        Raises NetworkError / DecodeError when the id list cannot be fetched.
        """
        raise NotImplementedError
