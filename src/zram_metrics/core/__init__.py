"""Core module - configuration, schemas and the stats update algorithm."""

from __future__ import annotations

from zram_metrics.core.config import load_config
from zram_metrics.core.exceptions import (
    DeviceError,
    StatsFormatError,
    StatsIOError,
    StatsNotFoundError,
    ZramMetricsError,
)
from zram_metrics.core.schemas import (
    CollectorConfig,
    CompressionBucket,
    CompressionStats,
    DeviceConfig,
    MemoryStats,
    RawSample,
    SystemImpact,
    SystemInfo,
    TimeAnalysis,
    UsageBucket,
    ZramStats,
    update_stats,
)

__all__ = [
    "CollectorConfig",
    "CompressionBucket",
    "CompressionStats",
    "DeviceConfig",
    "DeviceError",
    "load_config",
    "MemoryStats",
    "RawSample",
    "StatsFormatError",
    "StatsIOError",
    "StatsNotFoundError",
    "SystemImpact",
    "SystemInfo",
    "TimeAnalysis",
    "UsageBucket",
    "update_stats",
    "ZramMetricsError",
    "ZramStats",
]
