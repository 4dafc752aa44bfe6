"""Interpreter configuration loaded from YAML files.

Settings for the `monkey` front end live in a small YAML mapping:

    prompt: "monkey> "
    extension: ".mky"
    recursion_limit: 20000
    show_ast: false
    greeting: true

Search order (unless an explicit path is given):
    1. $MONKEY_CONFIG
    2. User config file (~/.config/monkey/config.yaml)
    3. Built-in defaults

Environment Variables:
    MONKEY_CONFIG: Path to a YAML configuration file.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError

__all__ = [
    "MONKEY_CONFIG",
    "InterpreterConfig",
    "find_config_file",
    "load_config",
]

logger = logging.getLogger(__name__)

# Environment variable name for an explicit config file
MONKEY_CONFIG = "MONKEY_CONFIG"


@dataclass
class InterpreterConfig:
    """Front-end settings for the REPL and file runner."""
    prompt: str = ">> "
    extension: str = ".mky"
    recursion_limit: int = 10000
    show_ast: bool = False
    greeting: bool = True


def _user_config_path() -> Path:
    if sys.platform == "win32":
        config_base = Path(os.environ.get("APPDATA", "~")).expanduser()
    else:
        config_base = Path.home() / ".config"
    return config_base / "monkey" / "config.yaml"


def find_config_file(path: Optional[Path] = None) -> Optional[Path]:
    """Return the config file to use, or None to use defaults.

    An explicit `path` must exist; the environment variable and the user
    config file are used only when present.
    """
    if path is not None:
        path = Path(path).expanduser()
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
        return path

    env_path = os.environ.get(MONKEY_CONFIG)
    if env_path:
        candidate = Path(env_path).expanduser()
        if candidate.is_file():
            return candidate
        logger.debug("%s points at missing file %s", MONKEY_CONFIG, candidate)

    user_config = _user_config_path()
    if user_config.is_file():
        return user_config
    return None


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load and validate a YAML config file."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Could not read config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config format in {path}: expected a mapping at root")
    return data


def _coerce(name: str, value: Any, default: Any, path: Path) -> Any:
    # bool is a subclass of int; keep them apart
    expected = type(default)
    if isinstance(value, bool) != (expected is bool) or not isinstance(value, expected):
        raise ConfigError(
            f"Config key '{name}' in {path} must be {expected.__name__}, "
            f"got {type(value).__name__}"
        )
    return value


def load_config(path: Optional[Path] = None) -> InterpreterConfig:
    """Load interpreter settings.

    Args:
        path: Optional explicit path to a YAML file (overrides search)

    Returns:
        InterpreterConfig with file values applied over the defaults

    Raises:
        ConfigError: If the file is missing (explicit path only), is not a
                     YAML mapping, has unknown keys or badly typed values
    """
    config_path = find_config_file(path)
    if config_path is None:
        logger.debug("no config file found, using defaults")
        return InterpreterConfig()

    logger.debug("loading config from %s", config_path)
    data = _load_yaml(config_path)

    defaults = InterpreterConfig()
    known = {f.name for f in fields(InterpreterConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(
            f"Unknown config key(s) in {config_path}: {', '.join(map(str, unknown))}. "
            f"Available: {sorted(known)}"
        )

    values = {
        name: _coerce(name, value, getattr(defaults, name), config_path)
        for name, value in data.items()
    }
    config = InterpreterConfig(**values)
    if config.recursion_limit <= 0:
        raise ConfigError(f"Config key 'recursion_limit' in {config_path} must be positive")
    return config
