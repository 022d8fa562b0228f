"""Host facts read from /proc, captured once when stats are created."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from zram_metrics.core.constants import PROC_MEMINFO, PROC_VERSION, UNKNOWN_KERNEL_VERSION
from zram_metrics.core.exceptions import StatsIOError

logger = logging.getLogger(__name__)

_MEMTOTAL_RE = re.compile(r"^MemTotal:\s+(\d+)\s*kB", re.MULTILINE)


class HostFacts:
    """Reader for host memory size and kernel version."""

    def __init__(self, meminfo_path: Path = PROC_MEMINFO, version_path: Path = PROC_VERSION) -> None:
        self.meminfo_path = Path(meminfo_path)
        self.version_path = Path(version_path)

    def read_total_memory(self) -> int:
        """Return physical memory in bytes from the MemTotal line.

        Raises:
            StatsIOError: If meminfo cannot be read or has no valid MemTotal
        """
        try:
            text = self.meminfo_path.read_text(encoding="utf-8")
        except OSError as e:
            raise StatsIOError(f"reading {self.meminfo_path}: {e}") from e

        match = _MEMTOTAL_RE.search(text)
        if match is None:
            raise StatsIOError(f"MemTotal not found in {self.meminfo_path}")
        return int(match.group(1)) * 1024

    def read_kernel_version(self) -> str:
        """Return the kernel version banner, or "unknown" if unreadable."""
        try:
            return self.version_path.read_text(encoding="utf-8").strip()
        except OSError as e:
            logger.debug(f"Cannot read {self.version_path}: {e}")
            return UNKNOWN_KERNEL_VERSION
