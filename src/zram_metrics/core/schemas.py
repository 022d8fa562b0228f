"""Pydantic schemas for zram metrics collection.

This module defines the durable aggregate statistics document written to
``zram_stats.json``, the transient raw sample read from the device on each
tick, and the collector configuration. It also holds the update algorithm
that folds one raw sample into the running aggregates.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

from zram_metrics.core.constants import (
    DEFAULT_INTERVAL_SECONDS,
    DEFAULT_METRICS_DIR,
    DEFAULT_SYSFS_ROOT,
    EMPTY_DEVICE_RATIO,
    HOURS_PER_DAY,
    RATIO_EXCELLENT_MAX,
    RATIO_FAIR_MAX,
    RATIO_GOOD_MAX,
    USAGE_HIGH_MAX,
    USAGE_LOW_MAX,
    USAGE_MEDIUM_MAX,
)


class CompressionBucket(str, Enum):
    """Compression ratio classification (compressed / original)."""

    EXCELLENT = "excellent"  # ratio <= 0.2
    GOOD = "good"  # 0.2 < ratio <= 0.3
    FAIR = "fair"  # 0.3 < ratio <= 0.4
    POOR = "poor"  # ratio > 0.4


class UsageBucket(str, Enum):
    """Memory usage classification as a fraction of the device size."""

    LOW = "low"  # 0-25%
    MEDIUM = "medium"  # 25-50%
    HIGH = "high"  # 50-75%
    CRITICAL = "critical"  # >75%


class RawSample(BaseModel):
    """Single reading of the zram device counters. Never persisted."""

    original_bytes: int = Field(ge=0, description="Uncompressed data stored (orig_data_size)")
    compressed_bytes: int = Field(ge=0, description="Compressed data size (compr_data_size)")
    memory_used_bytes: int = Field(ge=0, description="RAM consumed incl. overhead (mem_used_total)")

    @property
    def ratio(self) -> float:
        """Compression ratio for this sample; 1.0 when nothing is stored."""
        if self.original_bytes == 0:
            return EMPTY_DEVICE_RATIO
        return self.compressed_bytes / self.original_bytes


# =============================================================================
# DURABLE STATS DOCUMENT
# =============================================================================


class SystemInfo(BaseModel):
    """Host facts captured once when the stats file is created."""

    total_memory: int = Field(default=0, ge=0, description="Physical RAM in bytes")
    kernel_version: str = Field(default="unknown")
    start_time: datetime = Field(default_factory=lambda: datetime.now().astimezone())


class DeviceConfig(BaseModel):
    """Device configuration captured once when the stats file is created."""

    algorithm: str = Field(default="", description="Compression algorithm")
    initial_size: int = Field(default=0, ge=0, description="Device disksize in bytes")


class CompressionStats(BaseModel):
    """Running compression ratio aggregates.

    ``best_ratio`` and ``worst_ratio`` are ``None`` until the first sample.
    """

    best_ratio: float | None = Field(default=None, ge=0)
    worst_ratio: float | None = Field(default=None, ge=0)
    total_ratio: float = Field(default=0.0, ge=0, description="Sum of ratios, for averaging")
    sample_count: int = Field(default=0, ge=0)
    excellent_count: int = Field(default=0, ge=0)
    good_count: int = Field(default=0, ge=0)
    fair_count: int = Field(default=0, ge=0)
    poor_count: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def clear_unset_ratios(self) -> CompressionStats:
        """Older files store 0 for best/worst before any sample was taken."""
        if self.sample_count == 0:
            self.best_ratio = None
            self.worst_ratio = None
        return self

    @property
    def average_ratio(self) -> float | None:
        if self.sample_count == 0:
            return None
        return self.total_ratio / self.sample_count

    @property
    def bucket_total(self) -> int:
        return self.excellent_count + self.good_count + self.fair_count + self.poor_count

    def bucket_counts(self) -> dict[CompressionBucket, int]:
        return {
            CompressionBucket.EXCELLENT: self.excellent_count,
            CompressionBucket.GOOD: self.good_count,
            CompressionBucket.FAIR: self.fair_count,
            CompressionBucket.POOR: self.poor_count,
        }


class MemoryStats(BaseModel):
    """Running memory usage aggregates (bytes of RAM used by zram)."""

    peak_usage: int = Field(default=0, ge=0)
    min_usage: int = Field(default=0, ge=0)
    total_usage: int = Field(default=0, ge=0, description="Sum of usage, for averaging")
    low_count: int = Field(default=0, ge=0)
    medium_count: int = Field(default=0, ge=0)
    high_count: int = Field(default=0, ge=0)
    critical_count: int = Field(default=0, ge=0)

    @property
    def sample_count(self) -> int:
        """Number of samples folded in, derived from the bucket counters."""
        return self.low_count + self.medium_count + self.high_count + self.critical_count

    @property
    def average_usage(self) -> float | None:
        count = self.sample_count
        if count == 0:
            return None
        return self.total_usage / count

    def bucket_counts(self) -> dict[UsageBucket, int]:
        return {
            UsageBucket.LOW: self.low_count,
            UsageBucket.MEDIUM: self.medium_count,
            UsageBucket.HIGH: self.high_count,
            UsageBucket.CRITICAL: self.critical_count,
        }


class SystemImpact(BaseModel):
    """Reserved counters; not populated by the sampler, carried through saves."""

    oom_events: int = Field(default=0, ge=0)
    max_swap_used: int = Field(default=0, ge=0)
    swap_pressure_time: int = Field(default=0, ge=0, description="Minutes under swap pressure")


def _zero_hours() -> list[int]:
    return [0] * HOURS_PER_DAY


class TimeAnalysis(BaseModel):
    """Per-hour-of-day usage totals and sample counts (local time)."""

    hourly_usage: list[int] = Field(default_factory=_zero_hours)
    hourly_samples: list[int] = Field(default_factory=_zero_hours)

    @field_validator("hourly_usage", "hourly_samples")
    @classmethod
    def validate_hours(cls, v: list[int]) -> list[int]:
        """Ensure exactly one non-negative slot per hour of day."""
        if len(v) != HOURS_PER_DAY:
            raise ValueError(f"expected {HOURS_PER_DAY} hourly entries, got {len(v)}")
        if any(x < 0 for x in v):
            raise ValueError("hourly entries must be non-negative")
        return v

    def hourly_average(self, hour: int) -> float | None:
        """Average usage recorded during ``hour``, or None if never sampled."""
        samples = self.hourly_samples[hour]
        if samples == 0:
            return None
        return self.hourly_usage[hour] / samples

    def busiest_hour(self) -> int | None:
        """Hour of day with the highest average usage."""
        averages = [
            (avg, hour)
            for hour in range(HOURS_PER_DAY)
            if (avg := self.hourly_average(hour)) is not None
        ]
        if not averages:
            return None
        return max(averages)[1]


class ZramStats(BaseModel):
    """Complete aggregate statistics for one zram device.

    This is the only durable state of the collector. Averages are derived
    from running totals and never stored.
    """

    system_info: SystemInfo = Field(default_factory=SystemInfo)
    config: DeviceConfig = Field(default_factory=DeviceConfig)
    compression_stats: CompressionStats = Field(default_factory=CompressionStats)
    memory_stats: MemoryStats = Field(default_factory=MemoryStats)
    system_impact: SystemImpact = Field(default_factory=SystemImpact)
    time_analysis: TimeAnalysis = Field(default_factory=TimeAnalysis)

    @property
    def sample_count(self) -> int:
        return self.compression_stats.sample_count

    def uptime(self, now: datetime | None = None) -> timedelta:
        """Time elapsed since the stats file was first created."""
        start = self.system_info.start_time
        if now is None:
            now = datetime.now(start.tzinfo)
        return now - start

    def update(self, sample: RawSample, now: datetime | None = None) -> None:
        """Fold ``sample`` into the running aggregates. See :func:`update_stats`."""
        update_stats(self, sample, now)


# =============================================================================
# UPDATE ALGORITHM
# =============================================================================


def classify_ratio(ratio: float) -> CompressionBucket:
    if ratio <= RATIO_EXCELLENT_MAX:
        return CompressionBucket.EXCELLENT
    if ratio <= RATIO_GOOD_MAX:
        return CompressionBucket.GOOD
    if ratio <= RATIO_FAIR_MAX:
        return CompressionBucket.FAIR
    return CompressionBucket.POOR


def usage_fraction(memory_used: int, device_size: int) -> float:
    """Fraction of the configured device size in use.

    A zero device size counts any usage as full, and zero usage as empty.
    """
    if device_size <= 0:
        return 1.0 if memory_used > 0 else 0.0
    return memory_used / device_size


def classify_usage(fraction: float) -> UsageBucket:
    if fraction <= USAGE_LOW_MAX:
        return UsageBucket.LOW
    if fraction <= USAGE_MEDIUM_MAX:
        return UsageBucket.MEDIUM
    if fraction <= USAGE_HIGH_MAX:
        return UsageBucket.HIGH
    return UsageBucket.CRITICAL


def update_stats(stats: ZramStats, sample: RawSample, now: datetime | None = None) -> None:
    """Fold one raw sample into ``stats`` in place.

    Never fails. Min/max seeding is keyed on the sample count rather than on
    stored zeros, so a legitimate zero reading on the first sample is kept.

    Args:
        stats: Aggregates to mutate (single writer)
        sample: Raw device reading
        now: Sample time used for the hour-of-day bucket (default: local now)
    """
    if now is None:
        now = datetime.now().astimezone()

    comp = stats.compression_stats
    mem = stats.memory_stats
    first_sample = comp.sample_count == 0

    # Compression
    ratio = sample.ratio
    if first_sample:
        comp.best_ratio = ratio
        comp.worst_ratio = ratio
    else:
        comp.best_ratio = min(comp.best_ratio if comp.best_ratio is not None else ratio, ratio)
        comp.worst_ratio = max(comp.worst_ratio if comp.worst_ratio is not None else ratio, ratio)
    comp.total_ratio += ratio
    comp.sample_count += 1

    bucket = classify_ratio(ratio)
    if bucket is CompressionBucket.EXCELLENT:
        comp.excellent_count += 1
    elif bucket is CompressionBucket.GOOD:
        comp.good_count += 1
    elif bucket is CompressionBucket.FAIR:
        comp.fair_count += 1
    else:
        comp.poor_count += 1

    # Memory
    used = sample.memory_used_bytes
    if first_sample:
        mem.min_usage = used
        mem.peak_usage = used
    else:
        mem.min_usage = min(mem.min_usage, used)
        mem.peak_usage = max(mem.peak_usage, used)
    mem.total_usage += used

    usage_bucket = classify_usage(usage_fraction(used, stats.config.initial_size))
    if usage_bucket is UsageBucket.LOW:
        mem.low_count += 1
    elif usage_bucket is UsageBucket.MEDIUM:
        mem.medium_count += 1
    elif usage_bucket is UsageBucket.HIGH:
        mem.high_count += 1
    else:
        mem.critical_count += 1

    # Time of day
    hour = now.hour
    stats.time_analysis.hourly_usage[hour] += used
    stats.time_analysis.hourly_samples[hour] += 1


# =============================================================================
# COLLECTOR CONFIGURATION
# =============================================================================


class CollectorConfig(BaseModel):
    """Collector process configuration, loaded from YAML/JSON or CLI flags."""

    device_id: int = Field(default=0, ge=0, description="zram device number to monitor")
    interval_seconds: float = Field(
        default=DEFAULT_INTERVAL_SECONDS, ge=1, description="Sampling interval"
    )
    metrics_dir: Path = Field(default=DEFAULT_METRICS_DIR, description="Durable stats directory")
    sysfs_root: Path = Field(default=DEFAULT_SYSFS_ROOT, description="Block device sysfs root")
    require_root: bool = Field(default=True, description="Refuse to start unless run as root")
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and check the log level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def device_name(self) -> str:
        return f"zram{self.device_id}"
