"""Base sample source abstract class.

The collection loop only depends on this interface, so the sysfs reader can
be swapped for a fake in tests or for another kernel interface later.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from zram_metrics.core.schemas import RawSample


class SampleSource(ABC):
    """Abstract source of raw zram samples for a single device.

    Implementations:
    - ZramDevice: reads /sys/block/zram<N>
    """

    @abstractmethod
    def exists(self) -> bool:
        """Check if the device is present and readable."""
        pass

    @abstractmethod
    def read_algorithm(self) -> str:
        """Return the active compression algorithm.

        Raises:
            DeviceError: If the algorithm cannot be read
        """
        pass

    @abstractmethod
    def read_size(self) -> int:
        """Return the configured device size (disksize) in bytes.

        Raises:
            DeviceError: If the size cannot be read
        """
        pass

    @abstractmethod
    def collect(self) -> RawSample:
        """Read one sample of (original, compressed, memory used) bytes.

        Raises:
            DeviceError: If the counters cannot be read
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable device name."""
        pass
