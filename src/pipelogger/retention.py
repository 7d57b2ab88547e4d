"""Retention: delete the oldest rotated files beyond a configured count."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from pipelogger.naming import RotatedFile

logger = logging.getLogger(__name__)


@dataclass
class PruneReport:
    kept: list[RotatedFile] = field(default_factory=list)
    deleted: list[RotatedFile] = field(default_factory=list)
    errors: list[tuple[Path, OSError]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def prune(rotated_files: Sequence[RotatedFile], retain_count: int | None) -> PruneReport:
    """Delete all but the newest ``retain_count`` rotated files.

    Files are ordered oldest first by their naming-scheme order. A file that
    cannot be deleted is reported in ``errors`` and stays in ``kept`` so a
    later prune retries it; the remaining files are still processed.
    """
    ordered = sorted(rotated_files, key=lambda f: f.order)
    if retain_count is None or len(ordered) <= retain_count:
        return PruneReport(kept=ordered)

    cut = len(ordered) - retain_count
    report = PruneReport()
    for rotated in ordered[:cut]:
        try:
            rotated.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Failed to delete rotated log %s: %s", rotated.path, exc)
            report.errors.append((rotated.path, exc))
            report.kept.append(rotated)
            continue
        logger.info("Pruned rotated log %s", rotated.path.name)
        report.deleted.append(rotated)
    report.kept.extend(ordered[cut:])
    return report
