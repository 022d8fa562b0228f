"""Collection loop driving periodic zram sampling.

The loop is a single sequential control flow. It waits on a shutdown event
with the sampling interval as timeout, so it resumes either on the next
tick or as soon as shutdown is requested. Each tick reads one sample,
folds it into the owned stats instance and saves it. Shutdown performs one
final save before the loop stops.
"""

from __future__ import annotations

import logging
import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from typing import Any

from zram_metrics.core.exceptions import DeviceError, StatsIOError
from zram_metrics.core.schemas import ZramStats
from zram_metrics.monitoring.base import SampleSource
from zram_metrics.storage.stats_storage import StatsStorage
from zram_metrics.utils.units import bytes_to_gb

logger = logging.getLogger(__name__)


class LoopState(str, Enum):
    """Lifecycle of the collection loop."""

    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


def open_stats(source: SampleSource, storage: StatsStorage) -> ZramStats:
    """Create or load the stats baseline for ``source``.

    Reads the live device configuration, makes sure a durable file exists,
    then loads it so historical counters are kept across restarts.

    Raises:
        DeviceError: If the device configuration cannot be read
        StatsIOError: If storage cannot be prepared
        StatsFormatError: If no stored generation can be parsed
    """
    algorithm = source.read_algorithm()
    initial_size = source.read_size()
    logger.info(f"{source.name}: algorithm={algorithm} disksize={bytes_to_gb(initial_size):.2f} GiB")

    storage.initialize(algorithm, initial_size)
    stats = storage.load()

    if stats.config.algorithm != algorithm or stats.config.initial_size != initial_size:
        logger.warning(
            f"{source.name} configuration changed since stats were created "
            f"(stored {stats.config.algorithm}/{stats.config.initial_size}, "
            f"live {algorithm}/{initial_size}); keeping stored configuration"
        )

    logger.info(f"Loaded stats with {stats.sample_count} samples from {storage.stats_path}")
    return stats


class CollectionLoop:
    """Periodic collector that owns a single ZramStats instance.

    Example:
        ```python
        loop = CollectionLoop(ZramDevice(0), storage, stats, interval_seconds=60)
        with loop.handle_signals():
            loop.run()
        ```
    """

    def __init__(
        self,
        source: SampleSource,
        storage: StatsStorage,
        stats: ZramStats,
        interval_seconds: float = 60.0,
    ) -> None:
        """Initialize the loop.

        Args:
            source: Device to sample
            storage: Durable storage the stats are saved to
            stats: Aggregates to update; owned by this loop from now on
            interval_seconds: Time between ticks
        """
        self.source = source
        self.storage = storage
        self.stats = stats
        self.interval_seconds = interval_seconds
        self.state = LoopState.RUNNING
        self.shutdown_event = threading.Event()
        self.ticks = 0
        self.failed_ticks = 0

    def request_shutdown(self) -> None:
        """Ask the loop to stop after the current cycle. Signal-handler safe."""
        self.shutdown_event.set()

    def tick(self, now: datetime | None = None) -> bool:
        """Run one collect-update-save cycle.

        Failures are logged and never raised; the loop keeps running.

        Returns:
            True if the sample was collected and saved
        """
        self.ticks += 1
        try:
            sample = self.source.collect()
        except DeviceError as e:
            self.failed_ticks += 1
            logger.warning(f"Skipping sample: {e}")
            return False

        logger.debug(
            f"Collected {self.source.name}: original={bytes_to_gb(sample.original_bytes):.2f} GiB "
            f"compressed={bytes_to_gb(sample.compressed_bytes):.2f} GiB "
            f"mem_used={bytes_to_gb(sample.memory_used_bytes):.2f} GiB"
        )

        self.stats.update(sample, now)

        try:
            self.storage.save(self.stats)
        except StatsIOError as e:
            self.failed_ticks += 1
            logger.error(f"Saving stats failed, will retry next cycle: {e}")
            return False

        return True

    def run(self) -> LoopState:
        """Collect until shutdown is requested.

        Always finishes with one final save attempt.

        Returns:
            The final state, LoopState.STOPPED
        """
        logger.info(
            f"Starting metrics collection for {self.source.name} every {self.interval_seconds:g}s"
        )
        while self.state is LoopState.RUNNING:
            if self.shutdown_event.wait(self.interval_seconds):
                break
            self.tick()

        self._stop()
        return self.state

    def _stop(self) -> None:
        self.state = LoopState.STOPPING
        logger.info("Saving stats and shutting down")
        try:
            self.storage.save(self.stats)
        except StatsIOError as e:
            logger.error(f"Saving final stats failed: {e}")
        self.state = LoopState.STOPPED
        logger.info(
            f"Stopped after {self.ticks} ticks ({self.failed_ticks} failed), "
            f"{self.stats.sample_count} samples total"
        )

    @contextmanager
    def handle_signals(self) -> Iterator[None]:
        """Map SIGINT and SIGTERM to :meth:`request_shutdown` while active.

        Original handlers are restored on exit. Must be entered from the
        main thread.
        """

        def _on_signal(signum: int, frame: Any) -> None:
            logger.info(f"Received signal {signal.Signals(signum).name}")
            self.request_shutdown()

        previous = {sig: signal.signal(sig, _on_signal) for sig in (signal.SIGINT, signal.SIGTERM)}
        try:
            yield
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)
