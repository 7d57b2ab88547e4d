"""Builder, configuration and config-file tests."""

import dataclasses
import json
from datetime import timedelta
from pathlib import Path

import pytest

from pipelogger.compression import Codec
from pipelogger.config import (
    DEFAULT_CONFIG,
    Configuration,
    PipeLoggerBuilder,
    builder_from_config,
    load_config,
    validate_config,
)
from pipelogger.errors import ConfigurationError
from pipelogger.naming import Naming
from pipelogger.rotation import Duration, FileSize, NoRotation
from pipelogger.tee import Tee


class TestBuilder:
    def test_defaults(self, tmp_path: Path) -> None:
        config = PipeLoggerBuilder(tmp_path / "app.log").configuration()
        assert config.path == tmp_path / "app.log"
        assert config.rotate == NoRotation()
        assert config.count is None
        assert config.compress is False
        assert config.tee is Tee.NONE
        assert config.naming is Naming.TIMESTAMP
        assert config.append is True

    def test_chained_setters(self, tmp_path: Path) -> None:
        config = (
            PipeLoggerBuilder(tmp_path / "app.log")
            .set_tee("stdout")
            .set_rotate(FileSize(30))
            .set_count(10)
            .set_compress(True)
            .set_codec("gzip")
            .set_naming("index")
            .configuration()
        )
        assert config.tee is Tee.STDOUT
        assert config.rotate == FileSize(30)
        assert config.count == 10
        assert config.compress is True
        assert config.codec is Codec.GZIP
        assert config.naming is Naming.INDEX

    def test_configuration_is_frozen(self, tmp_path: Path) -> None:
        config = PipeLoggerBuilder(tmp_path / "app.log").configuration()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.count = 3  # type: ignore[misc]

    def test_relative_path_made_absolute(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        config = PipeLoggerBuilder("app.log").configuration()
        assert config.path.is_absolute()
        assert config.path == Path.cwd() / "app.log"


class TestBuilderValidation:
    def test_rotate_size_too_small(self, tmp_path: Path) -> None:
        builder = PipeLoggerBuilder(tmp_path / "app.log").set_rotate(FileSize(1))
        with pytest.raises(ConfigurationError) as exc_info:
            builder.build()
        assert any("at least 2" in e for e in exc_info.value.errors)
        assert not (tmp_path / "app.log").exists()

    def test_zero_interval(self, tmp_path: Path) -> None:
        builder = PipeLoggerBuilder(tmp_path / "app.log").set_rotate(Duration(timedelta(0)))
        assert builder.validate()

    def test_count_too_small(self, tmp_path: Path) -> None:
        builder = PipeLoggerBuilder(tmp_path / "app.log").set_count(0)
        errors = builder.validate()
        assert any("count" in e for e in errors)

    def test_count_wrong_type(self, tmp_path: Path) -> None:
        builder = PipeLoggerBuilder(tmp_path / "app.log").set_count("3")
        errors = builder.validate()
        assert any("count" in e for e in errors)

    def test_unknown_enums(self, tmp_path: Path) -> None:
        builder = (
            PipeLoggerBuilder(tmp_path / "app.log")
            .set_codec("zip")
            .set_tee("printer")
            .set_naming("random")
        )
        errors = builder.validate()
        assert len(errors) == 3

    def test_path_is_directory(self, tmp_path: Path) -> None:
        errors = PipeLoggerBuilder(tmp_path).validate()
        assert any("directory" in e for e in errors)

    def test_missing_parent(self, tmp_path: Path) -> None:
        builder = PipeLoggerBuilder(tmp_path / "missing" / "app.log")
        with pytest.raises(ConfigurationError):
            builder.configuration()

    def test_missing_parent_with_create_dirs(self, tmp_path: Path) -> None:
        path = tmp_path / "missing" / "nested" / "app.log"
        with PipeLoggerBuilder(path).set_create_dirs(True).build() as logger:
            logger.write_line("hi")
        assert path.read_text() == "hi\n"

    def test_multiple_errors_reported(self, tmp_path: Path) -> None:
        builder = PipeLoggerBuilder(tmp_path / "app.log").set_rotate(FileSize(0)).set_count(0)
        with pytest.raises(ConfigurationError) as exc_info:
            builder.configuration()
        assert len(exc_info.value.errors) == 2


class TestValidateConfig:
    def test_defaults_valid(self) -> None:
        assert validate_config(DEFAULT_CONFIG) == []

    def test_invalid_values(self) -> None:
        config = {
            **DEFAULT_CONFIG,
            "rotate": {"method": "file_size", "size": "lots"},
            "count": -1,
            "compress": "yes",
            "codec": "rar",
        }
        errors = validate_config(config)
        assert any("size" in e.lower() for e in errors)
        assert any("count" in e for e in errors)
        assert any("compress" in e for e in errors)
        assert any("codec" in e for e in errors)

    def test_missing_size(self) -> None:
        errors = validate_config({**DEFAULT_CONFIG, "rotate": {"method": "file_size"}})
        assert any("rotate.size" in e for e in errors)

    def test_unknown_method(self) -> None:
        errors = validate_config({**DEFAULT_CONFIG, "rotate": {"method": "weekly"}})
        assert any("weekly" in e for e in errors)


class TestBuilderFromConfig:
    def test_file_size(self, tmp_path: Path) -> None:
        builder = builder_from_config(
            tmp_path / "app.log",
            {"rotate": {"method": "file_size", "size": "10K", "strict": True}, "count": 3},
        )
        config = builder.configuration()
        assert config.rotate == FileSize(10 * 1024, strict=True)
        assert config.count == 3

    def test_duration(self, tmp_path: Path) -> None:
        builder = builder_from_config(
            tmp_path / "app.log", {"rotate": {"method": "duration", "interval": "1h"}}
        )
        assert builder.configuration().rotate == Duration(timedelta(hours=1))

    def test_invalid_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            builder_from_config(tmp_path / "app.log", {"tee": "printer"})


class TestLoadConfig:
    def test_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "pipelogger.yaml"
        path.write_text("rotate:\n  method: file_size\n  size: 5M\ncount: 4\ncompress: true\n")
        config = load_config(path)
        assert config["rotate"]["size"] == "5M"
        assert config["rotate"]["strict"] is False  # merged from defaults
        assert config["count"] == 4
        assert config["compress"] is True
        assert config["codec"] == "xz"

    def test_json(self, tmp_path: Path) -> None:
        path = tmp_path / "pipelogger.json"
        path.write_text(json.dumps({"tee": "stderr", "naming": "index"}))
        config = load_config(path)
        assert config["tee"] == "stderr"
        assert config["naming"] == "index"

    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        assert load_config(tmp_path / "nope.yaml") == DEFAULT_CONFIG

    def test_malformed(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("rotate: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_defaults_not_mutated(self, tmp_path: Path) -> None:
        path = tmp_path / "c.yaml"
        path.write_text("rotate:\n  method: duration\n  interval: 30s\n")
        load_config(path)
        assert DEFAULT_CONFIG["rotate"]["method"] == "none"
