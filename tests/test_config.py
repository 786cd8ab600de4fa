"""Tests for interpreter configuration loading."""

import logging

import pytest
from zemscript.config import (
    ZEMSCRIPT_CONFIG, InterpreterConfig, load_config, config_from_environment,
)


def _write(tmp_path, text, name="zemscript.yaml"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


class TestInterpreterConfig:
    """Defaults and validation."""

    def test_defaults(self):
        config = InterpreterConfig()
        assert config.max_exponent == 99999
        assert config.max_call_depth == 200
        assert config.log_level == "WARNING"
        assert config.load_builtins is True

    def test_log_level_normalised(self):
        config = InterpreterConfig(log_level="debug")
        assert config.log_level == "DEBUG"
        assert config.logging_level == logging.DEBUG

    @pytest.mark.parametrize("kwargs", [
        {"max_exponent": 0},
        {"max_call_depth": -5},
        {"max_call_depth": 2.5},
        {"max_exponent": True},
        {"log_level": "LOUD"},
        {"load_builtins": "yes"},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            InterpreterConfig(**kwargs)

    def test_from_mapping(self):
        config = InterpreterConfig.from_mapping({"max_call_depth": 50})
        assert config.max_call_depth == 50
        assert config.max_exponent == 99999

    def test_unknown_keys(self):
        with pytest.raises(ValueError) as exc_info:
            InterpreterConfig.from_mapping({"max_depth": 1, "colour": "red"})
        assert "colour, max_depth" in str(exc_info.value)

    def test_to_dict_round_trip(self):
        config = InterpreterConfig(max_exponent=10, log_level="INFO")
        assert InterpreterConfig.from_mapping(config.to_dict()) == config


class TestLoadConfig:
    """Reading YAML configuration files."""

    def test_load(self, tmp_path):
        path = _write(tmp_path, "max_exponent: 500\nmax_call_depth: 64\nlog_level: info\n")
        config = load_config(path)
        assert config.max_exponent == 500
        assert config.max_call_depth == 64
        assert config.log_level == "INFO"

    def test_load_from_string_path(self, tmp_path):
        path = _write(tmp_path, "load_builtins: false\n")
        assert load_config(str(path)).load_builtins is False

    def test_empty_file_gives_defaults(self, tmp_path):
        path = _write(tmp_path, "")
        assert load_config(path) == InterpreterConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml")

    def test_not_a_mapping(self, tmp_path):
        path = _write(tmp_path, "- 1\n- 2\n")
        with pytest.raises(ValueError) as exc_info:
            load_config(path)
        assert "must be a mapping" in str(exc_info.value)

    def test_bad_limit(self, tmp_path):
        path = _write(tmp_path, "max_call_depth: 0\n")
        with pytest.raises(ValueError):
            load_config(path)


class TestEnvironment:
    """The ZEMSCRIPT_CONFIG environment variable."""

    def test_unset(self, monkeypatch):
        monkeypatch.delenv(ZEMSCRIPT_CONFIG, raising=False)
        assert config_from_environment() is None

    def test_set(self, tmp_path, monkeypatch):
        path = _write(tmp_path, "max_exponent: 7\n")
        monkeypatch.setenv(ZEMSCRIPT_CONFIG, str(path))
        assert config_from_environment().max_exponent == 7
