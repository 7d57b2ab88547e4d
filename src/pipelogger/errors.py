"""Exception hierarchy for pipelogger."""

from __future__ import annotations

from pathlib import Path


class PipeLoggerError(Exception):
    """Base exception for all pipelogger errors."""


class ConfigurationError(PipeLoggerError):
    """The builder holds an invalid configuration. No file has been opened."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "invalid configuration")


class LoggerIOError(PipeLoggerError):
    """Opening, writing, flushing, renaming or deleting a log file failed.

    ``line_written`` is True when the line had already been appended before
    the failing rotation, so the write must not be repeated.
    """

    def __init__(self, message: str, path: Path | None = None, cause: OSError | None = None) -> None:
        self.path = path
        self.cause = cause
        self.line_written = False
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class CompressionError(PipeLoggerError):
    """A codec failed. The uncompressed file at ``path`` is left intact."""

    def __init__(self, message: str, path: Path) -> None:
        self.path = path
        super().__init__(message)
