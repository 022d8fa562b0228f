"""Byte unit helpers for log lines and reports."""

from __future__ import annotations

_SUFFIXES = ("B", "KiB", "MiB", "GiB", "TiB", "PiB")


def bytes_to_gb(byte_count: int | float) -> float:
    """Convert bytes to gigabytes (GiB)."""
    return byte_count / (1024 * 1024 * 1024)


def human_bytes(byte_count: int | float | None) -> str:
    """Return a concise size description, e.g. ``1.5 GiB``.

    None renders as ``n/a`` so unset aggregates print cleanly.
    """
    if byte_count is None:
        return "n/a"
    if byte_count <= 0:
        return "0 B"
    value = float(byte_count)
    for suffix in _SUFFIXES[:-1]:
        if value < 1024:
            return f"{int(value)} B" if suffix == "B" else f"{value:.1f} {suffix}"
        value /= 1024
    return f"{value:.1f} {_SUFFIXES[-1]}"
