"""Storage module - durable persistence of aggregate stats."""

from __future__ import annotations

from zram_metrics.storage.stats_storage import StatsStorage

__all__ = ["StatsStorage"]
