"""zram sysfs sample source.

Reads counters directly from the block device attributes under
``/sys/block/zram<N>``.

Files read:
- mm_stat: orig_data_size compr_data_size mem_used_total ... (newer kernels)
- orig_data_size, compr_data_size, mem_used_total: per-counter files (older kernels)
- comp_algorithm: "lzo [zstd] lz4", the bracketed entry is active
- disksize: configured uncompressed capacity
"""

from __future__ import annotations

import logging
from pathlib import Path

from zram_metrics.core.constants import DEFAULT_MODULE_ROOT, DEFAULT_SYSFS_ROOT
from zram_metrics.core.exceptions import DeviceError
from zram_metrics.core.schemas import RawSample
from zram_metrics.monitoring.base import SampleSource

logger = logging.getLogger(__name__)

# Leading mm_stat columns, in kernel order
MM_STAT_FIELDS = ("orig_data_size", "compr_data_size", "mem_used_total")


def zram_module_loaded(module_root: Path = DEFAULT_MODULE_ROOT) -> bool:
    """Check whether the zram kernel module is loaded (or built in)."""
    return (module_root / "zram").is_dir()


class ZramDevice(SampleSource):
    """Sample source backed by the zram sysfs attributes of one device."""

    def __init__(self, device_id: int = 0, sysfs_root: Path = DEFAULT_SYSFS_ROOT) -> None:
        """Initialize the device reader.

        Args:
            device_id: zram device number (0 for /sys/block/zram0)
            sysfs_root: Directory holding the block device entries
        """
        self.device_id = device_id
        self._path = Path(sysfs_root) / f"zram{device_id}"

    @property
    def name(self) -> str:
        return f"zram{self.device_id}"

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_dir()

    def read_algorithm(self) -> str:
        algorithms = self._read_text("comp_algorithm").split()
        for algo in algorithms:
            if algo.startswith("[") and algo.endswith("]"):
                return algo.strip("[]")

        # No algorithm marked as selected, use the first one
        if algorithms:
            return algorithms[0]

        raise DeviceError(f"{self.name}: no compression algorithm found", device=self.name)

    def read_size(self) -> int:
        return self.read_value("disksize")

    def read_value(self, attribute: str) -> int:
        """Read a single integer attribute such as ``disksize``.

        Raises:
            DeviceError: If the file is missing or does not hold an integer
        """
        text = self._read_text(attribute).strip()
        try:
            return int(text)
        except ValueError as e:
            raise DeviceError(
                f"{self.name}: cannot parse {attribute}: {text!r}", device=self.name
            ) from e

    def collect(self) -> RawSample:
        try:
            original, compressed, used = self._read_mm_stat()
        except DeviceError as e:
            logger.debug(f"mm_stat unavailable ({e}), falling back to legacy attributes")
            original, compressed, used = (self.read_value(field) for field in MM_STAT_FIELDS)

        return RawSample(
            original_bytes=original,
            compressed_bytes=compressed,
            memory_used_bytes=used,
        )

    def _read_mm_stat(self) -> tuple[int, int, int]:
        """Parse the first three columns of mm_stat."""
        fields = self._read_text("mm_stat").split()
        if len(fields) < len(MM_STAT_FIELDS):
            raise DeviceError(f"{self.name}: short mm_stat line: {fields}", device=self.name)
        try:
            original, compressed, used = (int(f) for f in fields[: len(MM_STAT_FIELDS)])
        except ValueError as e:
            raise DeviceError(f"{self.name}: cannot parse mm_stat: {e}", device=self.name) from e
        return original, compressed, used

    def _read_text(self, attribute: str) -> str:
        path = self._path / attribute
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise DeviceError(f"{self.name}: cannot read {path}: {e}", device=self.name) from e
