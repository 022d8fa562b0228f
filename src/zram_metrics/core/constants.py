"""Shared constants for zram metrics collection.

Centralized constants to keep paths, file modes and bucket boundaries
consistent between the stats model, storage and CLI.
"""

from __future__ import annotations

from pathlib import Path

# Durable storage location
DEFAULT_METRICS_DIR = Path("/var/log/zramd/metrics")
STATS_FILE_NAME = "zram_stats.json"
BACKUP_SUFFIX = ".bak"
TEMP_SUFFIX = ".tmp"
METRICS_DIR_MODE = 0o755
METRICS_FILE_MODE = 0o644

# Kernel interfaces
DEFAULT_SYSFS_ROOT = Path("/sys/block")
DEFAULT_MODULE_ROOT = Path("/sys/module")
PROC_MEMINFO = Path("/proc/meminfo")
PROC_VERSION = Path("/proc/version")
UNKNOWN_KERNEL_VERSION = "unknown"

# Sampling
DEFAULT_INTERVAL_SECONDS = 60.0
HOURS_PER_DAY = 24

# Compression ratio buckets (compressed / original, lower is better).
# Inclusive upper bounds: excellent, good, fair; anything above is poor.
RATIO_EXCELLENT_MAX = 0.2
RATIO_GOOD_MAX = 0.3
RATIO_FAIR_MAX = 0.4

# Ratio used when nothing has been stored yet (no compression benefit)
EMPTY_DEVICE_RATIO = 1.0

# Memory usage buckets as a fraction of the configured device size.
USAGE_LOW_MAX = 0.25
USAGE_MEDIUM_MAX = 0.50
USAGE_HIGH_MAX = 0.75
