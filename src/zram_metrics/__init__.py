"""zram metrics - aggregate statistics collector for Linux zram devices."""

from __future__ import annotations

from zram_metrics.core.schemas import (
    CollectorConfig,
    RawSample,
    ZramStats,
    update_stats,
)
from zram_metrics.daemon import CollectionLoop, LoopState
from zram_metrics.storage.stats_storage import StatsStorage

__version__ = "0.1.0"

__all__ = [
    "CollectionLoop",
    "CollectorConfig",
    "LoopState",
    "RawSample",
    "StatsStorage",
    "ZramStats",
    "update_stats",
    "__version__",
]
