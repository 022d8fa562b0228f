"""Exception types raised by the collector.

Storage errors also subclass the matching builtin so callers that only
care about ``OSError`` / ``FileNotFoundError`` / ``ValueError`` keep working.
"""

from __future__ import annotations


class ZramMetricsError(Exception):
    """Base class for all collector errors."""


class DeviceError(ZramMetricsError):
    """Reading from the zram device (sysfs) failed.

    Treated as transient by the collection loop: the cycle is skipped.
    """

    def __init__(self, message: str, device: str | None = None) -> None:
        super().__init__(message)
        self.device = device


class StatsIOError(ZramMetricsError, OSError):
    """Durable storage could not be prepared or written."""


class StatsNotFoundError(ZramMetricsError, FileNotFoundError):
    """No durable stats file exists yet; initialize first."""


class StatsFormatError(ZramMetricsError, ValueError):
    """The durable stats file exists but cannot be parsed."""
