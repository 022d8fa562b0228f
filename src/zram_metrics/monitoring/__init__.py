"""Monitoring module - zram device and host readers.

Provides:
- SampleSource: interface consumed by the collection loop
- ZramDevice: sysfs-backed implementation
- HostFacts: /proc readers for memory size and kernel version
"""

from __future__ import annotations

from zram_metrics.monitoring.base import SampleSource
from zram_metrics.monitoring.host import HostFacts
from zram_metrics.monitoring.sysfs import ZramDevice, zram_module_loaded

__all__ = [
    "HostFacts",
    "SampleSource",
    "ZramDevice",
    "zram_module_loaded",
]
