"""Configuration value, validating builder and config-file loading."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Callable

import yaml

from pipelogger.compression import Codec, Compressor
from pipelogger.errors import ConfigurationError
from pipelogger.naming import Naming
from pipelogger.rotation import Duration, FileSize, NoRotation, RotationMethod, validate_rotation
from pipelogger.tee import Tee
from pipelogger.utils import deep_merge, load_config_file, parse_duration, parse_size

if TYPE_CHECKING:
    from pipelogger.logger import PipeLogger

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict = {
    "rotate": {
        "method": "none",
        "size": None,
        "strict": False,
        "interval": None,
    },
    "count": None,
    "compress": False,
    "codec": "xz",
    "tee": "none",
    "naming": "timestamp",
    "append": True,
    "create_dirs": False,
}


@dataclass(frozen=True)
class Configuration:
    """Immutable logger configuration, shared read-only for the logger's lifetime."""

    path: Path
    rotate: RotationMethod = NoRotation()
    count: int | None = None
    compress: bool = False
    codec: Codec = Codec.XZ
    tee: Tee = Tee.NONE
    naming: Naming = Naming.TIMESTAMP
    append: bool = True
    create_dirs: bool = False


class PipeLoggerBuilder:
    """Assemble a Configuration through chained setters, then build a PipeLogger.

    Validation happens before any file is opened::

        logger = (
            PipeLoggerBuilder("logs/app.log")
            .set_rotate(FileSize(10 * 1024 * 1024))
            .set_count(10)
            .set_compress(True)
            .build()
        )
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self.rotate: RotationMethod = NoRotation()
        self.count: int | None = None
        self.compress = False
        self.codec = Codec.XZ
        self.tee = Tee.NONE
        self.naming = Naming.TIMESTAMP
        self.append = True
        self.create_dirs = False

    def set_rotate(self, rotate: RotationMethod | None) -> PipeLoggerBuilder:
        self.rotate = rotate if rotate is not None else NoRotation()
        return self

    def set_count(self, count: int | None) -> PipeLoggerBuilder:
        self.count = count
        return self

    def set_compress(self, compress: bool) -> PipeLoggerBuilder:
        """Whether to compress rotated files."""
        self.compress = compress
        return self

    def set_codec(self, codec: Codec | str) -> PipeLoggerBuilder:
        self.codec = codec  # type: ignore[assignment]
        return self

    def set_tee(self, tee: Tee | str | None) -> PipeLoggerBuilder:
        self.tee = tee if tee is not None else Tee.NONE  # type: ignore[assignment]
        return self

    def set_naming(self, naming: Naming | str) -> PipeLoggerBuilder:
        self.naming = naming  # type: ignore[assignment]
        return self

    def set_append(self, append: bool) -> PipeLoggerBuilder:
        """Append to an existing active file (True) or truncate it (False)."""
        self.append = append
        return self

    def set_create_dirs(self, create_dirs: bool) -> PipeLoggerBuilder:
        self.create_dirs = create_dirs
        return self

    def validate(self) -> list[str]:
        """Validate the builder state, returning error messages (empty if valid)."""
        errors = validate_rotation(self.rotate)

        if self.count is not None and (
            not isinstance(self.count, int) or isinstance(self.count, bool) or self.count < 1
        ):
            errors.append(f"Retained file count must be at least 1, got {self.count}")
        for enum_type, value, label in (
            (Codec, self.codec, "codec"),
            (Tee, self.tee, "tee"),
            (Naming, self.naming, "naming"),
        ):
            try:
                enum_type(value)
            except ValueError:
                errors.append(f"Unknown {label} '{value}'")

        errors.extend(self._validate_path())
        return errors

    def _validate_path(self) -> list[str]:
        path = self.path.absolute()
        if path.is_dir():
            return [f"Log file cannot be a directory: {path}"]
        if path.exists() and not os.access(path, os.W_OK):
            return [f"Log file is read-only: {path}"]

        parent = path.parent
        if not parent.exists():
            if self.create_dirs:
                return []
            return [f"Parent directory does not exist: {parent}"]
        if not parent.is_dir():
            return [f"Parent path is not a directory: {parent}"]
        if not os.access(parent, os.W_OK | os.X_OK):
            return [f"Parent directory is read-only: {parent}"]
        return []

    def configuration(self) -> Configuration:
        """Return the validated, frozen Configuration or raise ConfigurationError."""
        errors = self.validate()
        if errors:
            raise ConfigurationError(errors)
        return Configuration(
            path=self.path.absolute(),
            rotate=self.rotate,
            count=self.count,
            compress=self.compress,
            codec=Codec(self.codec),
            tee=Tee(self.tee),
            naming=Naming(self.naming),
            append=self.append,
            create_dirs=self.create_dirs,
        )

    def build(
        self,
        compressor: Compressor | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> PipeLogger:
        from pipelogger.logger import PipeLogger

        return PipeLogger(self.configuration(), compressor=compressor, clock=clock)


def rotation_from_config(rotate: dict) -> RotationMethod:
    method = str(rotate.get("method") or "none").lower()
    if method == "none":
        return NoRotation()
    if method in ("file_size", "size"):
        if rotate.get("size") is None:
            raise ValueError("rotate.size is required for file_size rotation")
        return FileSize(parse_size(rotate["size"]), strict=bool(rotate.get("strict", False)))
    if method in ("duration", "interval", "time"):
        if rotate.get("interval") is None:
            raise ValueError("rotate.interval is required for duration rotation")
        return Duration(parse_duration(rotate["interval"]))
    raise ValueError(f"Unknown rotation method '{method}'")


def validate_config(config: dict) -> list[str]:
    """Validate a config dict, returning error messages (empty if valid)."""
    errors = []
    rotate = config.get("rotate", {})
    if not isinstance(rotate, dict):
        errors.append("'rotate' must be a mapping")
    else:
        try:
            errors.extend(validate_rotation(rotation_from_config(rotate)))
        except ValueError as exc:
            errors.append(str(exc))

    count = config.get("count")
    if count is not None and (not isinstance(count, int) or isinstance(count, bool) or count < 1):
        errors.append(f"'count' must be a positive integer, got {count!r}")
    for key in ("compress", "append", "create_dirs"):
        if not isinstance(config.get(key, False), bool):
            errors.append(f"'{key}' must be true or false")
    for key, enum_type in (("codec", Codec), ("tee", Tee), ("naming", Naming)):
        try:
            enum_type(config.get(key))
        except ValueError:
            errors.append(f"Unknown {key} '{config.get(key)}'")
    return errors


def builder_from_config(path: str | os.PathLike[str], config: dict) -> PipeLoggerBuilder:
    """Create a builder for ``path`` from a config dict merged over the defaults."""
    merged = deep_merge(DEFAULT_CONFIG, config)
    errors = validate_config(merged)
    if errors:
        raise ConfigurationError(errors)
    return (
        PipeLoggerBuilder(path)
        .set_rotate(rotation_from_config(merged["rotate"]))
        .set_count(merged["count"])
        .set_compress(merged["compress"])
        .set_codec(merged["codec"])
        .set_tee(merged["tee"])
        .set_naming(merged["naming"])
        .set_append(merged["append"])
        .set_create_dirs(merged["create_dirs"])
    )


def load_config(config_path: Path) -> dict:
    """Load a YAML/JSON config file merged with DEFAULT_CONFIG."""
    try:
        user_config = load_config_file(config_path)
    except (yaml.YAMLError, ValueError) as exc:
        raise ConfigurationError([f"Could not load config {config_path}: {exc}"]) from exc
    if not config_path.exists():
        logger.warning("Config file not found: %s. Using defaults.", config_path)
    return deep_merge(DEFAULT_CONFIG, user_config)
