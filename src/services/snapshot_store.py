"""
In-memory holder of the current snapshot
"""
import logging
from threading import Lock

from core.entities import EMPTY_SNAPSHOT, Snapshot
from core.errors import StaleSnapshotError

logger = logging.getLogger(__name__)


class SnapshotStore:
    """
    Single-writer / many-reader handoff for the current Snapshot.

    Readers get the reference without taking the lock: rebinding one
    attribute is atomic, and snapshots are immutable, so a reader sees
    either the old or the new snapshot in full. The lock only orders
    writers so that versions never go backwards.
    """

    def __init__(self, initial: Snapshot = EMPTY_SNAPSHOT):
        self._current = initial
        self._lock = Lock()

    def current(self) -> Snapshot:
        return self._current

    @property
    def version(self) -> int:
        return self._current.version

    def publish(self, snapshot: Snapshot) -> None:
        with self._lock:
            if snapshot.version <= self._current.version:
                raise StaleSnapshotError(
                    f"Refusing snapshot v{snapshot.version}; current is v{self._current.version}"
                )
            self._current = snapshot
        logger.info(f"Published snapshot v{snapshot.version} ({len(snapshot)} items)")
