"""Configuration loading utilities.

The collector is configured from an optional YAML or JSON file, with
command-line flags layered on top. Built-in defaults apply to anything
neither source sets.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from zram_metrics.core.schemas import CollectorConfig


def read_config_file(path: Path | str) -> dict[str, Any]:
    """Read the raw settings mapping from a YAML or JSON file.

    An empty file yields an empty mapping.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If file format is unsupported or the top level is not a mapping
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    suffix = path.suffix.lower()
    with open(path, encoding="utf-8") as f:
        if suffix in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        elif suffix == ".json":
            data = json.load(f)
        else:
            raise ValueError(f"Unsupported config format: {suffix}. Use .yaml, .yml, or .json")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration in {path} must be a mapping, got {type(data).__name__}")
    return data


def load_config(
    path: Path | str | None = None,
    overrides: dict[str, Any] | None = None,
) -> CollectorConfig:
    """Build the collector configuration.

    Args:
        path: Optional YAML or JSON configuration file
        overrides: Settings taking precedence over the file (CLI flags).
            Keys whose value is None are treated as unset.

    Returns:
        Validated CollectorConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If file format is unsupported
        pydantic.ValidationError: If the merged settings are invalid
    """
    data = read_config_file(path) if path is not None else {}
    data.update({k: v for k, v in (overrides or {}).items() if v is not None})
    return CollectorConfig.model_validate(data)
