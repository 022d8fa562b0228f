"""Tests for the collection loop."""

import signal
import threading
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from zram_metrics.core.exceptions import DeviceError, StatsFormatError, StatsIOError
from zram_metrics.core.schemas import RawSample, ZramStats
from zram_metrics.daemon import CollectionLoop, LoopState, open_stats
from zram_metrics.monitoring.base import SampleSource
from zram_metrics.storage.stats_storage import StatsStorage

DEVICE_SIZE = 8_589_934_592


class FakeSource(SampleSource):
    """In-memory device returning queued samples or errors."""

    def __init__(self, results=None, algorithm="zstd", size=DEVICE_SIZE, on_drained=None):
        self.results = list(results or [])
        self.algorithm = algorithm
        self.size = size
        self.on_drained = on_drained

    @property
    def name(self) -> str:
        return "zram9"

    def exists(self) -> bool:
        return True

    def read_algorithm(self) -> str:
        if isinstance(self.algorithm, Exception):
            raise self.algorithm
        return self.algorithm

    def read_size(self) -> int:
        return self.size

    def collect(self) -> RawSample:
        result = self.results.pop(0)
        if not self.results and self.on_drained is not None:
            self.on_drained()
        if isinstance(result, Exception):
            raise result
        return result


def sample(used: int = 1_000_000) -> RawSample:
    return RawSample(original_bytes=4_000_000, compressed_bytes=1_000_000, memory_used_bytes=used)


class TestOpenStats:
    """Tests for open_stats."""

    def test_first_run_creates(self, storage: StatsStorage):
        stats = open_stats(FakeSource(), storage)

        assert storage.stats_path.exists()
        assert stats.config.algorithm == "zstd"
        assert stats.config.initial_size == DEVICE_SIZE
        assert stats.sample_count == 0

    def test_restart_keeps_history(self, storage: StatsStorage):
        """Test a restart reuses the stored counters."""
        stats = open_stats(FakeSource(), storage)
        stats.update(sample())
        stats.update(sample())
        storage.save(stats)

        reopened = open_stats(FakeSource(), storage)

        assert reopened.sample_count == 2
        assert reopened.system_info.start_time == stats.system_info.start_time

    def test_config_change_keeps_stored(self, storage: StatsStorage, caplog):
        open_stats(FakeSource(algorithm="zstd"), storage)

        with caplog.at_level("WARNING"):
            reopened = open_stats(FakeSource(algorithm="lz4"), storage)

        assert reopened.config.algorithm == "zstd"
        assert "configuration changed" in caplog.text

    def test_device_error_is_fatal(self, storage: StatsStorage):
        with pytest.raises(DeviceError):
            open_stats(FakeSource(algorithm=DeviceError("gone")), storage)
        assert not storage.stats_path.exists()

    def test_corrupt_storage_is_fatal(self, storage: StatsStorage):
        open_stats(FakeSource(), storage)
        storage.stats_path.write_text("nope")
        storage.backup_path.write_text("nope")

        with pytest.raises(StatsFormatError):
            open_stats(FakeSource(), storage)


class TestCollectionLoop:
    """Tests for CollectionLoop."""

    @pytest.fixture
    def stats(self, storage: StatsStorage) -> ZramStats:
        return open_stats(FakeSource(), storage)

    def test_tick_updates_and_saves(self, storage: StatsStorage, stats: ZramStats):
        loop = CollectionLoop(FakeSource([sample(6_000_000_000)]), storage, stats, 60)

        assert loop.tick(datetime(2026, 1, 1, 7)) is True

        assert stats.sample_count == 1
        assert stats.memory_stats.high_count == 1
        assert stats.time_analysis.hourly_samples[7] == 1
        assert storage.load().sample_count == 1

    def test_tick_device_error_skips(self, storage: StatsStorage, stats: ZramStats):
        """Test a failed read skips the cycle without touching stats."""
        loop = CollectionLoop(FakeSource([DeviceError("read failed")]), storage, stats, 60)

        assert loop.tick() is False

        assert stats.sample_count == 0
        assert loop.failed_ticks == 1
        assert loop.state is LoopState.RUNNING

    def test_tick_save_error_keeps_running(self, stats: ZramStats):
        storage = MagicMock(spec=StatsStorage)
        storage.save.side_effect = StatsIOError("disk full")
        loop = CollectionLoop(FakeSource([sample()]), storage, stats, 60)

        assert loop.tick() is False

        assert stats.sample_count == 1
        assert loop.state is LoopState.RUNNING

    def test_run_until_shutdown(self, storage: StatsStorage, stats: ZramStats):
        """Test run collects each tick and finishes with a final save."""
        source = FakeSource([sample(), DeviceError("blip"), sample()])
        loop = CollectionLoop(source, storage, stats, interval_seconds=0.01)
        source.on_drained = loop.request_shutdown

        assert loop.run() is LoopState.STOPPED

        assert loop.ticks == 3
        assert loop.failed_ticks == 1
        assert storage.load().sample_count == 2

    def test_shutdown_before_tick(self, stats: ZramStats):
        """Test shutdown requested up front saves once and stops."""
        storage = MagicMock(spec=StatsStorage)
        loop = CollectionLoop(FakeSource(), storage, stats, interval_seconds=3600)
        loop.request_shutdown()

        assert loop.run() is LoopState.STOPPED

        assert loop.ticks == 0
        storage.save.assert_called_once_with(stats)

    def test_shutdown_from_other_thread(self, storage: StatsStorage, stats: ZramStats):
        """Test shutdown interrupts the wait instead of sleeping a full interval."""
        loop = CollectionLoop(FakeSource(), storage, stats, interval_seconds=3600)
        timer = threading.Timer(0.05, loop.request_shutdown)
        timer.start()
        try:
            assert loop.run() is LoopState.STOPPED
        finally:
            timer.cancel()
        assert loop.ticks == 0

    def test_final_save_error_is_reported(self, stats: ZramStats, caplog):
        storage = MagicMock(spec=StatsStorage)
        storage.save.side_effect = StatsIOError("read-only filesystem")
        loop = CollectionLoop(FakeSource(), storage, stats, 60)
        loop.request_shutdown()

        with caplog.at_level("ERROR"):
            assert loop.run() is LoopState.STOPPED

        assert "Saving final stats failed" in caplog.text

    def test_handle_signals(self, storage: StatsStorage, stats: ZramStats):
        """Test SIGTERM maps to shutdown and handlers are restored."""
        loop = CollectionLoop(FakeSource(), storage, stats, 60)
        before = signal.getsignal(signal.SIGTERM)

        with loop.handle_signals():
            signal.raise_signal(signal.SIGTERM)
            assert loop.shutdown_event.is_set()

        assert signal.getsignal(signal.SIGTERM) is before
