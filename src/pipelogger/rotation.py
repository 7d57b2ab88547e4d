"""Rotation policies: decide when the active file must be rotated.

Each policy answers three questions the engine asks around every append:

- ``should_rotate_before(current_size, incoming_line_len)``
- ``should_rotate_after(current_size)``
- ``should_rotate_on_time(last_rotation_time, now)``

Policies are pure: the same sequence of sizes and timestamps always gives
the same decisions.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(frozen=True)
class NoRotation:
    """The active file grows unbounded."""

    def should_rotate_before(self, current_size: int, incoming_line_len: int) -> bool:
        return False

    def should_rotate_after(self, current_size: int) -> bool:
        return False

    def should_rotate_on_time(self, last_rotation_time: datetime, now: datetime) -> bool:
        return False


@dataclass(frozen=True)
class FileSize:
    """Rotate once the active file reaches ``max_bytes``.

    By default the check runs after the append: the line that reaches the
    threshold is the last line of the rotated file. With ``strict=True`` the
    check runs before the append instead: a line that would push the file past
    ``max_bytes`` starts the next file. A strict policy never splits a line
    longer than ``max_bytes``; that line ends up alone in its own file.
    """

    max_bytes: int
    strict: bool = False

    def should_rotate_before(self, current_size: int, incoming_line_len: int) -> bool:
        if not self.strict or current_size == 0:
            return False
        # +1 for the line terminator
        return current_size + incoming_line_len + 1 > self.max_bytes

    def should_rotate_after(self, current_size: int) -> bool:
        return not self.strict and current_size >= self.max_bytes

    def should_rotate_on_time(self, last_rotation_time: datetime, now: datetime) -> bool:
        return False


@dataclass(frozen=True)
class Duration:
    """Rotate when the active file is older than ``interval``."""

    interval: timedelta

    def should_rotate_before(self, current_size: int, incoming_line_len: int) -> bool:
        return False

    def should_rotate_after(self, current_size: int) -> bool:
        return False

    def should_rotate_on_time(self, last_rotation_time: datetime, now: datetime) -> bool:
        return now - last_rotation_time > self.interval


RotationMethod = NoRotation | FileSize | Duration


def validate_rotation(method: RotationMethod) -> list[str]:
    """Return a list of problems with a rotation method (empty if valid)."""
    errors: list[str] = []
    if isinstance(method, FileSize):
        if method.max_bytes < 2:
            errors.append(f"Rotation file size must be at least 2 bytes, got {method.max_bytes}")
    elif isinstance(method, Duration):
        if method.interval <= timedelta(0):
            errors.append(f"Rotation interval must be positive, got {method.interval}")
    elif not isinstance(method, NoRotation):
        errors.append(f"Unknown rotation method: {method!r}")
    return errors
