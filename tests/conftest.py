"""Shared fixtures: fake /proc and /sys trees and a temp metrics directory."""

from pathlib import Path

import pytest

from zram_metrics.monitoring.host import HostFacts
from zram_metrics.storage.stats_storage import StatsStorage

GIB = 1024 * 1024 * 1024


@pytest.fixture
def fake_proc(tmp_path: Path) -> Path:
    proc = tmp_path / "proc"
    proc.mkdir()
    (proc / "meminfo").write_text(
        "MemTotal:       16384000 kB\n"
        "MemFree:         1024000 kB\n"
        "MemAvailable:    8192000 kB\n"
    )
    (proc / "version").write_text("Linux version 6.8.0-test (gcc 13.2) #1 SMP\n")
    return proc


@pytest.fixture
def host(fake_proc: Path) -> HostFacts:
    return HostFacts(meminfo_path=fake_proc / "meminfo", version_path=fake_proc / "version")


@pytest.fixture
def storage(tmp_path: Path, host: HostFacts) -> StatsStorage:
    return StatsStorage(tmp_path / "metrics", host=host)


@pytest.fixture
def sysfs_root(tmp_path: Path) -> Path:
    """A /sys/block lookalike holding a configured zram0."""
    root = tmp_path / "sys" / "block"
    dev = root / "zram0"
    dev.mkdir(parents=True)
    (dev / "comp_algorithm").write_text("lzo lzo-rle lz4 [zstd]\n")
    (dev / "disksize").write_text(f"{8 * GIB}\n")
    (dev / "mm_stat").write_text(
        f"{2 * GIB} {GIB // 2} {GIB // 2 + 4096} 0 {GIB} 12 0 3 0\n"
    )
    return root
