"""
Module to contain base class for snapshot sinks
"""
from abc import ABC, abstractmethod

from core.entities import Snapshot


class SnapshotSink(ABC):
    """
    Receives every snapshot after it has been published.
    """

    name: str

    @abstractmethod
    async def deliver(self, snapshot: Snapshot) -> None:
        """
        Deliver the snapshot.
        Must raise exceptions on failure (handled upstream).
        """
        raise NotImplementedError
