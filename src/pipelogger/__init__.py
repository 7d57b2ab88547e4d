"""pipelogger - store, rotate and compress logs piped from a process."""

from __future__ import annotations

__version__ = "0.1.0"

from pipelogger.config import Configuration, PipeLoggerBuilder
from pipelogger.errors import (
    CompressionError,
    ConfigurationError,
    LoggerIOError,
    PipeLoggerError,
)
from pipelogger.logger import PipeLogger
from pipelogger.rotation import Duration, FileSize, NoRotation
from pipelogger.tee import Tee

__all__ = [
    "CompressionError",
    "Configuration",
    "ConfigurationError",
    "Duration",
    "FileSize",
    "LoggerIOError",
    "NoRotation",
    "PipeLogger",
    "PipeLoggerBuilder",
    "PipeLoggerError",
    "Tee",
    "__version__",
]
