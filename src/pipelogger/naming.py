"""Rotated file naming schemes and discovery of existing rotated files."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class Naming(str, Enum):
    TIMESTAMP = "timestamp"
    INDEX = "index"


@dataclass(frozen=True)
class RotatedFile:
    """A historical log file produced by a rotation.

    ``order`` is the scheme's sort key: milliseconds since the epoch for the
    timestamp scheme, the rotation index for the index scheme.
    """

    path: Path
    order: int
    compressed: bool = False


def split_name(name: str) -> tuple[str, str]:
    """Split ``mylog.txt`` into ``("mylog", ".txt")`` at the last dot."""
    point = name.rfind(".")
    if point <= 0:
        return name, ""
    return name[:point], name[point:]


class NamingScheme:
    """Base class for deterministic rotated-file names."""

    def name_for(self, base_name: str, order: int) -> str:
        raise NotImplementedError

    def parse(self, base_name: str, candidate: str) -> int | None:
        """Return the order key if ``candidate`` is a rotated name, else None."""
        raise NotImplementedError

    def next_order(self, history: list[RotatedFile], now: datetime) -> int:
        raise NotImplementedError

    def next_path(
        self,
        base_path: Path,
        history: list[RotatedFile],
        now: datetime,
        compressed_suffixes: tuple[str, ...] = (),
    ) -> tuple[Path, int]:
        """Pick a fresh rotated path, strictly after everything in ``history``."""
        order = self.next_order(history, now)
        target = base_path.parent / self.name_for(base_path.name, order)
        while target.exists() or any(
            target.with_name(target.name + suffix).exists() for suffix in compressed_suffixes
        ):
            order += 1
            target = base_path.parent / self.name_for(base_path.name, order)
        return target, order

    def scan(self, base_path: Path, compressed_suffixes: tuple[str, ...] = ()) -> list[RotatedFile]:
        """Find rotated files of ``base_path`` already on disk, oldest first."""
        folder = base_path.parent
        if not folder.is_dir():
            return []
        found: list[RotatedFile] = []
        for entry in folder.iterdir():
            if not entry.is_file() or entry == base_path:
                continue
            name = entry.name
            compressed = False
            for suffix in compressed_suffixes:
                if name.endswith(suffix):
                    name = name[: -len(suffix)]
                    compressed = True
                    break
            order = self.parse(base_path.name, name)
            if order is None:
                continue
            found.append(RotatedFile(path=entry, order=order, compressed=compressed))
        found.sort(key=lambda f: f.order)
        return found


class TimestampNaming(NamingScheme):
    """``mylog-2024-01-31-23-59-59-123.txt`` (UTC, millisecond precision)."""

    def name_for(self, base_name: str, order: int) -> str:
        stem, ext = split_name(base_name)
        stamp = _EPOCH + timedelta(milliseconds=order)
        return f"{stem}-{stamp:%Y-%m-%d-%H-%M-%S}-{order % 1000:03d}{ext}"

    def parse(self, base_name: str, candidate: str) -> int | None:
        stem, ext = split_name(base_name)
        pattern = (
            rf"^{re.escape(stem)}-(\d{{4}})-(\d{{2}})-(\d{{2}})"
            rf"-(\d{{2}})-(\d{{2}})-(\d{{2}})-(\d{{3}}){re.escape(ext)}$"
        )
        m = re.match(pattern, candidate)
        if not m:
            return None
        year, month, day, hour, minute, second, millis = (int(g) for g in m.groups())
        try:
            stamp = datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)
        except ValueError:
            return None
        return (stamp - _EPOCH) // timedelta(seconds=1) * 1000 + millis

    def next_order(self, history: list[RotatedFile], now: datetime) -> int:
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        order = (now - _EPOCH) // timedelta(milliseconds=1)
        # two rotations in the same millisecond still get increasing names
        if history and order <= history[-1].order:
            order = history[-1].order + 1
        return order


class IndexNaming(NamingScheme):
    """``mylog.txt.1``, ``mylog.txt.2``, ... growing, never reused."""

    def name_for(self, base_name: str, order: int) -> str:
        return f"{base_name}.{order}"

    def parse(self, base_name: str, candidate: str) -> int | None:
        m = re.match(rf"^{re.escape(base_name)}\.(\d+)$", candidate)
        if not m:
            return None
        return int(m.group(1))

    def next_order(self, history: list[RotatedFile], now: datetime) -> int:
        if not history:
            return 1
        return max(f.order for f in history) + 1


SCHEMES: dict[Naming, type[NamingScheme]] = {
    Naming.TIMESTAMP: TimestampNaming,
    Naming.INDEX: IndexNaming,
}


def get_scheme(naming: Naming | str) -> NamingScheme:
    return SCHEMES[Naming(naming)]()
