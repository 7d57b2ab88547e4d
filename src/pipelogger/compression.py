"""Compressors for rotated log files.

Two interchangeable codecs are provided: xz (high ratio, slower) and gzip
(fast, lower ratio). The engine only sees the ``Compressor`` protocol; the
codec is chosen once when the logger is composed.
"""

from __future__ import annotations

import gzip
import logging
import lzma
import os
import shutil
from enum import Enum
from pathlib import Path
from typing import IO, Protocol

from pipelogger.errors import CompressionError

logger = logging.getLogger(__name__)

BUFFER_SIZE = 4096 * 4


class Codec(str, Enum):
    XZ = "xz"
    GZIP = "gzip"


class Compressor(Protocol):
    suffix: str

    def compress(self, path: Path) -> Path:
        ...


class _StreamCompressor:
    """Shared compress-to-temp, fsync, rename, then unlink sequence."""

    suffix = ""

    def _open(self, target: Path) -> IO[bytes]:
        raise NotImplementedError

    def compress(self, path: Path) -> Path:
        """Compress ``path`` into ``path + suffix`` and remove ``path``.

        The original is only removed once the compressed file is fully
        written and in place. On failure the original is left untouched and
        CompressionError is raised.
        """
        path = Path(path)
        target = path.with_name(path.name + self.suffix)
        partial = path.with_name(path.name + self.suffix + ".part")
        try:
            with open(path, "rb") as src, self._open(partial) as dst:
                shutil.copyfileobj(src, dst, BUFFER_SIZE)
            with open(partial, "rb+") as f:
                os.fsync(f.fileno())
            os.replace(partial, target)
        except (OSError, lzma.LZMAError) as exc:
            partial.unlink(missing_ok=True)
            raise CompressionError(f"Failed to compress {path}: {exc}", path) from exc

        try:
            path.unlink()
        except OSError as exc:
            target.unlink(missing_ok=True)
            raise CompressionError(f"Failed to remove {path} after compression: {exc}", path) from exc

        logger.info("Compressed %s -> %s", path.name, target.name)
        return target


class XzCompressor(_StreamCompressor):
    suffix = ".xz"

    def __init__(self, preset: int = 9) -> None:
        self.preset = preset

    def _open(self, target: Path) -> IO[bytes]:
        return lzma.open(target, "wb", format=lzma.FORMAT_XZ, preset=self.preset)


class GzipCompressor(_StreamCompressor):
    suffix = ".gz"

    def __init__(self, compresslevel: int = 6) -> None:
        self.compresslevel = compresslevel

    def _open(self, target: Path) -> IO[bytes]:
        return gzip.open(target, "wb", compresslevel=self.compresslevel)


COMPRESSORS: dict[Codec, type[_StreamCompressor]] = {
    Codec.XZ: XzCompressor,
    Codec.GZIP: GzipCompressor,
}

COMPRESSED_SUFFIXES: tuple[str, ...] = tuple(c.suffix for c in COMPRESSORS.values())


def get_compressor(codec: Codec | str) -> Compressor:
    return COMPRESSORS[Codec(codec)]()
