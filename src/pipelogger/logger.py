"""PipeLogger: appends lines to the active file and rotates it by policy.

A PipeLogger is single-writer. It does no internal locking, so calls must
be serialized by the owner, and only one instance may point at a given base
path: rotation naming and retention both rely on a single view of history.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import IO, Callable

from pipelogger.compression import COMPRESSED_SUFFIXES, Compressor, get_compressor
from pipelogger.config import Configuration
from pipelogger.errors import CompressionError, LoggerIOError
from pipelogger.naming import RotatedFile, get_scheme
from pipelogger.retention import prune
from pipelogger.tee import TeeSink

logger = logging.getLogger(__name__)

ENCODING = "utf-8"


class LoggerState(str, Enum):
    OPEN = "open"
    ROTATING = "rotating"
    CLOSED = "closed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PipeLogger:
    """Stores, rotates and compresses lines piped from a process."""

    def __init__(
        self,
        config: Configuration,
        compressor: Compressor | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config
        self.path = Path(config.path).absolute()
        self._clock = clock or _utcnow
        self._scheme = get_scheme(config.naming)
        if compressor is None and config.compress:
            compressor = get_compressor(config.codec)
        self._compressor = compressor if config.compress else None
        self._tee = TeeSink(config.tee)
        self.retention_errors: list[tuple[Path, OSError]] = []

        if config.create_dirs:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise LoggerIOError("Cannot create log directory", self.path.parent, exc) from exc

        self._rotated = self._scheme.scan(self.path, COMPRESSED_SUFFIXES)
        self._file: IO[bytes] | None = None
        self._size = 0
        self._open(truncate=not config.append)
        self._opened_at = self._clock()
        self._state = LoggerState.OPEN
        logger.debug(
            "Opened %s (%d bytes, %d rotated files found)", self.path, self._size, len(self._rotated)
        )

    @classmethod
    def builder(cls, path: str | os.PathLike[str]):
        from pipelogger.config import PipeLoggerBuilder

        return PipeLoggerBuilder(path)

    # -- properties --------------------------------------------------------

    @property
    def state(self) -> LoggerState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is LoggerState.CLOSED

    @property
    def size(self) -> int:
        """Bytes currently in the active file."""
        return self._size

    @property
    def rotated_files(self) -> list[RotatedFile]:
        """Known rotated files, oldest first."""
        return list(self._rotated)

    @property
    def tee_errors(self) -> list[Exception]:
        return list(self._tee.errors)

    # -- writing -----------------------------------------------------------

    def write_line(self, text: str) -> Path | None:
        """Append ``text`` and a newline to the active file.

        Returns the rotated file's path if a rotation happened during this
        call, otherwise None. Raises LoggerIOError if the active file cannot
        be written. If compressing the rotated file fails, the line is still
        written and CompressionError is raised afterwards. If the rotation
        that follows the append fails, the LoggerIOError carries
        ``line_written=True`` and the call must not be retried; the next
        write retries the rotation.
        """
        return self._write(text + "\n")

    def write(self, text: str) -> Path | None:
        """Append ``text`` as-is, with no line terminator added.

        Chunks of a line may be written across several calls. Rotation is
        checked the same way as for ``write_line``. Empty text is a no-op.
        """
        if not text:
            return None
        return self._write(text)

    def _write(self, text: str) -> Path | None:
        self._check_open()
        data = text.encode(ENCODING, errors="replace")
        policy = self.config.rotate
        rotated: Path | None = None
        deferred: CompressionError | None = None

        now = self._clock()
        due = policy.should_rotate_on_time(self._opened_at, now)
        if due and self._size == 0:
            # nothing to archive, restart the interval instead
            self._opened_at = now
        elif due or policy.should_rotate_before(self._size, len(data) - 1):
            rotated, deferred = self._rotate_deferring(now)

        self._append(data)
        self._tee.write(text)

        if rotated is None and deferred is None and policy.should_rotate_after(self._size):
            try:
                rotated, deferred = self._rotate_deferring(self._clock())
            except LoggerIOError as exc:
                exc.line_written = True
                raise

        if deferred is not None:
            raise deferred
        return rotated

    def flush(self) -> None:
        self._check_open()
        try:
            self._file.flush()
        except OSError as exc:
            raise LoggerIOError("Failed to flush log file", self.path, exc) from exc

    def rotate(self) -> Path:
        """Rotate the active file now, even if it is empty."""
        self._check_open()
        return self._rotate(self._clock())

    def close(self) -> None:
        """Flush and close the active file. No rotation happens on close."""
        if self._state is LoggerState.CLOSED:
            return
        self._state = LoggerState.CLOSED
        if self._file is None:
            return
        file, self._file = self._file, None
        try:
            file.flush()
            os.fsync(file.fileno())
        except OSError as exc:
            raise LoggerIOError("Failed to flush log file on close", self.path, exc) from exc
        finally:
            file.close()
        logger.debug("Closed %s", self.path)

    def __enter__(self) -> PipeLogger:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -- internals ---------------------------------------------------------

    def _check_open(self) -> None:
        if self._state is LoggerState.CLOSED:
            raise LoggerIOError("Logger is closed", self.path)
        if self._file is None:
            # a previous rotation failed after the old file was closed
            self._open(truncate=False)
            self._opened_at = self._clock()
            self._state = LoggerState.OPEN

    def _open(self, truncate: bool) -> None:
        try:
            self._file = open(self.path, "wb" if truncate else "ab")
            self._size = os.fstat(self._file.fileno()).st_size
        except OSError as exc:
            self._file = None
            raise LoggerIOError("Cannot open log file", self.path, exc) from exc

    def _append(self, data: bytes) -> None:
        try:
            # the file or its directory was removed from under us
            if os.fstat(self._file.fileno()).st_nlink == 0:
                raise FileNotFoundError(2, "Active log file was removed", str(self.path))
            self._file.write(data)
            self._file.flush()
        except OSError as exc:
            raise LoggerIOError("Failed to write log file", self.path, exc) from exc
        self._size += len(data)

    def _rotate_deferring(self, now: datetime) -> tuple[Path | None, CompressionError | None]:
        try:
            return self._rotate(now), None
        except CompressionError as exc:
            return exc.path, exc

    def _rotate(self, now: datetime) -> Path:
        """Close, rename, reopen, then compress and prune.

        The base path is renamed away and immediately recreated empty, so it
        always names the one active file. Compression and pruning run after
        the new active file is open.
        """
        self._state = LoggerState.ROTATING
        file, self._file = self._file, None
        try:
            file.flush()
            os.fsync(file.fileno())
        except OSError as exc:
            raise LoggerIOError("Failed to flush log file before rotation", self.path, exc) from exc
        finally:
            file.close()

        target, order = self._scheme.next_path(self.path, self._rotated, now, COMPRESSED_SUFFIXES)
        try:
            os.rename(self.path, target)
        except OSError as exc:
            raise LoggerIOError("Failed to rename log file", self.path, exc) from exc
        self._rotated.append(RotatedFile(path=target, order=order))

        try:
            self._open(truncate=True)
        except LoggerIOError as exc:
            # the renamed file is history now, whatever happens to the new one
            self._prune()
            raise
        self._opened_at = now
        self._state = LoggerState.OPEN
        logger.info("Rotated %s -> %s", self.path.name, target.name)

        failure: CompressionError | None = None
        if self._compressor is not None:
            try:
                compressed = self._compressor.compress(target)
            except CompressionError as exc:
                logger.warning("Keeping %s uncompressed: %s", target.name, exc)
                failure = exc
            else:
                self._rotated[-1] = RotatedFile(path=compressed, order=order, compressed=True)

        rotated_path = self._rotated[-1].path
        self._prune()

        if failure is not None:
            raise failure
        return rotated_path

    def _prune(self) -> None:
        report = prune(self._rotated, self.config.count)
        self._rotated = report.kept
        self.retention_errors.extend(report.errors)
