"""Utils module - Shared utilities."""

from __future__ import annotations

from zram_metrics.utils.logging import setup_logging
from zram_metrics.utils.units import bytes_to_gb, human_bytes

__all__ = ["bytes_to_gb", "human_bytes", "setup_logging"]
