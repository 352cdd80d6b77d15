"""
Periodic snapshot refresher
"""
import asyncio
import logging
import time
from datetime import timedelta
from enum import Enum
from typing import Awaitable, Callable, Optional, Sequence

from core.entities import Snapshot
from core.errors import FetchError
from delivery.base import SnapshotSink
from services.snapshot_store import SnapshotStore
from workflows.base import SnapshotPipeline

logger = logging.getLogger(__name__)


class RefresherState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


def next_tick(previous_tick: float, interval: float, now: float) -> float:
    """
    Next deadline on the fixed cadence. Ticks that already passed
    collapse into a single immediate one (`now`).
    """
    scheduled = previous_tick + interval
    return scheduled if scheduled > now else now


class Refresher:
    """
    Runs the pipeline once up front, then again every `interval` seconds.

    Runs never overlap: a tick that fires while a run is in progress is
    deferred until that run completes, and any number of such ticks
    collapse into one immediate re-run.
    """

    def __init__(
        self,
        pipeline: SnapshotPipeline,
        store: SnapshotStore,
        *,
        interval: float,
        top_n: int,
        recency_window: Optional[timedelta],
        sinks: Sequence[SnapshotSink] = (),
        clock: Callable[[], float] = time.monotonic,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.pipeline = pipeline
        self.store = store
        self.interval = interval
        self.top_n = top_n
        self.recency_window = recency_window
        self.sinks = list(sinks)

        self.state = RefresherState.IDLE
        self.runs = 0
        self.failures = 0

        self._clock = clock
        self._sleep = sleep or self._wait_for_stop
        self._stopped = False
        self._stop_event = asyncio.Event()

    def stop(self) -> None:
        self._stopped = True
        self._stop_event.set()

    async def _wait_for_stop(self, delay: float) -> None:
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def refresh_once(self, *, initial: bool = False) -> bool:
        """
        One Idle → Running → Idle cycle. Returns True when a new snapshot
        was published.

        On the initial cycle any failure propagates: there is nothing to
        serve yet. Later failures keep the previous snapshot.
        """
        if self.state is RefresherState.RUNNING:
            raise RuntimeError("A refresh is already in progress")

        self.state = RefresherState.RUNNING
        self.runs += 1
        try:
            snapshot = await self.pipeline.run(
                self.top_n,
                self.recency_window,
                version=self.store.version + 1,
            )
            self.store.publish(snapshot)

        except FetchError as e:
            self.failures += 1
            if initial:
                raise
            logger.warning(
                f"Skipping refresh cycle, keeping snapshot v{self.store.version}: {e}"
            )
            return False

        except Exception as e:
            self.failures += 1
            if initial:
                raise
            logger.exception(f"Refresh cycle failed unexpectedly: {e}")
            return False

        finally:
            self.state = RefresherState.IDLE

        await self._deliver(snapshot)
        return True

    async def _deliver(self, snapshot: Snapshot) -> None:
        for sink in self.sinks:
            try:
                await sink.deliver(snapshot)
            except Exception as e:
                logger.error(f"Snapshot delivery failed: channel={sink.name}, error={e}")

    async def run(self, *, include_initial: bool = True) -> None:
        """
        Refresh forever (until stop()). With include_initial=False the caller
        has already performed the startup refresh.
        """
        deadline = self._clock() + self.interval
        if include_initial:
            await self.refresh_once(initial=True)

        while not self._stopped:
            now = self._clock()
            if deadline <= now:
                missed = int((now - deadline) // self.interval) + 1
                logger.info(f"Refresh overran {missed} tick(s), re-running now")
            else:
                await self._sleep(deadline - now)
                if self._stopped:
                    break

            started = self._clock()
            await self.refresh_once()
            deadline = next_tick(max(deadline, started), self.interval, self._clock())

        logger.info("Refresher stopped")
