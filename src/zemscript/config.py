"""Interpreter configuration, loadable from a YAML file."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

logger = logging.getLogger(__name__)

__all__ = [
    "ZEMSCRIPT_CONFIG",
    "InterpreterConfig",
    "load_config",
    "config_from_environment",
]

# Environment variable naming a default configuration file
ZEMSCRIPT_CONFIG = "ZEMSCRIPT_CONFIG"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class InterpreterConfig:
    """Limits and start-up options for an ``Interpreter``."""

    max_exponent: int = 99999
    max_call_depth: int = 200
    log_level: str = "WARNING"
    load_builtins: bool = True

    def __post_init__(self) -> None:
        for name in ("max_exponent", "max_call_depth"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        self.log_level = str(self.log_level).upper()
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level {self.log_level!r}")
        if not isinstance(self.load_builtins, bool):
            raise ValueError(f"load_builtins must be true or false, got {self.load_builtins!r}")

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "InterpreterConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown configuration keys: {', '.join(unknown)}")
        return cls(**dict(data))

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def load_config(path: Path | str) -> InterpreterConfig:
    """Load a YAML configuration file; an empty file gives the defaults."""

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"configuration file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    if not isinstance(data, dict):
        raise ValueError(f"configuration must be a mapping, got {type(data)!r}")
    logger.debug("loaded configuration from %s", config_path)
    return InterpreterConfig.from_mapping(data)


def config_from_environment() -> Optional[InterpreterConfig]:
    """Load the file named by ``ZEMSCRIPT_CONFIG``, if that variable is set."""
    path = os.environ.get(ZEMSCRIPT_CONFIG)
    if not path:
        return None
    return load_config(path)
