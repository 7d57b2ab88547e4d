"""Size/duration parsing, config file reading and dict deep merge."""

from __future__ import annotations

import re
from datetime import timedelta
from pathlib import Path

import yaml

_SIZE_UNITS = {"": 1, "B": 1, "K": 1024, "M": 1024**2, "G": 1024**3, "T": 1024**4}
_DURATION_UNITS = {"": 1, "S": 1, "M": 60, "H": 3600, "D": 86400, "W": 604800}


def parse_size(value: str | int) -> int:
    """Parse ``512``, ``10K``, ``5MB`` or ``1g`` into a byte count."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid size: {value!r}")
    if isinstance(value, int):
        return value
    m = re.fullmatch(r"\s*(\d+)\s*([KMGT]?)(?:I?B)?\s*", str(value), re.IGNORECASE)
    if not m:
        raise ValueError(f"Invalid size: {value!r}")
    number, unit = m.groups()
    return int(number) * _SIZE_UNITS[unit.upper()]


def parse_duration(value: str | int | float | timedelta) -> timedelta:
    """Parse ``30s``, ``15m``, ``1h``, ``2d`` or plain seconds into a timedelta."""
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)
    m = re.fullmatch(r"\s*(\d+(?:\.\d+)?)\s*([smhdw]?)\s*", str(value), re.IGNORECASE)
    if not m:
        raise ValueError(f"Invalid duration: {value!r}")
    number, unit = m.groups()
    return timedelta(seconds=float(number) * _DURATION_UNITS[unit.upper()])


def load_config_file(path: Path) -> dict:
    """Load a YAML or JSON config file. A missing or empty file gives {}."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return data


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base, returning a new dict."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result
