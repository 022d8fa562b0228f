"""Durable storage for aggregate zram statistics.

The stats document lives at ``<metrics_dir>/zram_stats.json`` with a backup
copy at ``zram_stats.json.bak``. Every save writes the backup first and the
canonical file second, each through a temp file and an atomic rename, so an
interrupted save always leaves at least one complete, current-or-previous
generation on disk.
"""

from __future__ import annotations

import errno
import logging
import os
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from zram_metrics.core.constants import (
    BACKUP_SUFFIX,
    DEFAULT_METRICS_DIR,
    METRICS_DIR_MODE,
    METRICS_FILE_MODE,
    STATS_FILE_NAME,
    TEMP_SUFFIX,
)
from zram_metrics.core.exceptions import StatsFormatError, StatsIOError, StatsNotFoundError
from zram_metrics.core.schemas import DeviceConfig, SystemInfo, ZramStats
from zram_metrics.monitoring.host import HostFacts

logger = logging.getLogger(__name__)


class StatsStorage:
    """Storage manager for the zram stats document.

    Handles creating the metrics directory, writing the initial document,
    backup-then-commit saves, and loading with backup recovery.
    """

    def __init__(self, metrics_dir: Path = DEFAULT_METRICS_DIR, host: HostFacts | None = None) -> None:
        """Initialize storage.

        Args:
            metrics_dir: Directory holding the stats file and its backup
            host: Host facts reader (default: live /proc)
        """
        self.metrics_dir = Path(metrics_dir)
        self.host = host or HostFacts()

    @property
    def stats_path(self) -> Path:
        return self.metrics_dir / STATS_FILE_NAME

    @property
    def backup_path(self) -> Path:
        return self.stats_path.with_name(STATS_FILE_NAME + BACKUP_SUFFIX)

    def exists(self) -> bool:
        """True if any durable generation (canonical or backup) is on disk."""
        return self.stats_path.exists() or self.backup_path.exists()

    def initialize(self, algorithm: str, initial_size: int) -> ZramStats:
        """Prepare storage and return fresh stats for the given device config.

        Writes the fresh document only when no durable file exists yet. An
        existing file is left alone and is not loaded here; use :meth:`load`.

        Args:
            algorithm: Compression algorithm configured on the device
            initial_size: Device disksize in bytes

        Returns:
            Newly built ZramStats with system info and config populated

        Raises:
            StatsIOError: If the directory, host facts, or initial write fail
        """
        self._ensure_dir()

        stats = ZramStats(
            system_info=SystemInfo(
                total_memory=self.host.read_total_memory(),
                kernel_version=self.host.read_kernel_version(),
                start_time=datetime.now().astimezone(),
            ),
            config=DeviceConfig(algorithm=algorithm, initial_size=initial_size),
        )

        if not self.exists():
            self._write(stats, self.stats_path)
            logger.info(f"Created stats file {self.stats_path}")
        else:
            logger.debug(f"Stats file already present at {self.stats_path}")

        return stats

    def load(self) -> ZramStats:
        """Load the stats document, recovering from the backup if needed.

        The backup is used when the canonical file is missing or unreadable,
        or when it holds more samples than the canonical file, which means a
        save was interrupted between the two writes.

        Returns:
            The most recent complete ZramStats on disk

        Raises:
            StatsNotFoundError: If neither file exists
            StatsFormatError: If no existing file can be parsed
        """
        if not self.exists():
            raise StatsNotFoundError(f"Stats file not found at {self.stats_path}, initialize first")

        primary, primary_error = self._try_read(self.stats_path)
        backup, backup_error = self._try_read(self.backup_path)

        if primary is not None and backup is not None:
            if backup.sample_count > primary.sample_count:
                logger.warning(
                    f"Backup is ahead of {self.stats_path.name} "
                    f"({backup.sample_count} vs {primary.sample_count} samples), "
                    "recovering interrupted save"
                )
                return backup
            return primary

        if primary is not None:
            return primary

        if backup is not None:
            logger.warning(f"Recovered stats from backup {self.backup_path}: {primary_error}")
            return backup

        errors = "; ".join(str(e) for e in (primary_error, backup_error) if e is not None)
        raise StatsFormatError(f"No readable stats file in {self.metrics_dir}: {errors}")

    def save(self, stats: ZramStats) -> None:
        """Write stats durably: backup first, then the canonical file.

        Raises:
            StatsIOError: If either write fails. A failed backup write leaves
                the canonical file untouched.
        """
        try:
            self._write(stats, self.backup_path)
        except StatsIOError as e:
            raise StatsIOError(f"writing backup: {e}") from e

        try:
            self._write(stats, self.stats_path)
        except StatsIOError as e:
            raise StatsIOError(f"writing stats: {e}") from e

    def _ensure_dir(self) -> None:
        if self.metrics_dir.is_dir():
            return
        try:
            self.metrics_dir.mkdir(mode=METRICS_DIR_MODE, parents=True, exist_ok=True)
            # mkdir mode is filtered by the umask
            os.chmod(self.metrics_dir, METRICS_DIR_MODE)
        except OSError as e:
            raise StatsIOError(f"creating metrics directory {self.metrics_dir}: {e}") from e

    def _write(self, stats: ZramStats, path: Path) -> None:
        """Atomically replace ``path`` with the serialized stats."""
        data = stats.model_dump_json(indent=2).encode("utf-8")
        tmp = path.with_name(path.name + TEMP_SUFFIX)
        try:
            fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, METRICS_FILE_MODE)
            try:
                _write_all(fd, data)
                os.fsync(fd)
            finally:
                os.close(fd)
            os.replace(tmp, path)
            self._sync_dir()
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise StatsIOError(f"writing {path}: {e}") from e

    def _sync_dir(self) -> None:
        # Persist the rename itself, not only the file contents
        fd = os.open(self.metrics_dir, os.O_RDONLY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)

    def _try_read(self, path: Path) -> tuple[ZramStats | None, Exception | None]:
        """Read one generation; returns (stats, None) or (None, error)."""
        try:
            raw = path.read_bytes()
        except FileNotFoundError as e:
            return None, e
        except OSError as e:
            logger.warning(f"Cannot read {path}: {e}")
            return None, e

        try:
            return ZramStats.model_validate_json(raw), None
        except ValidationError as e:
            logger.warning(f"Cannot parse {path}: {e.error_count()} validation error(s)")
            return None, StatsFormatError(f"parsing {path}: {e}")


def _write_all(fd: int, data: bytes) -> None:
    """Write every byte of ``data``; os.write may return a short count."""
    view = memoryview(data)
    while view:
        written = os.write(fd, view)
        if written == 0:
            raise OSError(errno.ENOSPC, "no progress writing stats")
        view = view[written:]
