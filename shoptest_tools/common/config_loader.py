"""
================================================================================
Configuration Loader
================================================================================

Settings for the shop harness: `config/config.yaml`, overridden per key by
environment variables.

    links.max_links      ->  LINKS_MAX_LINKS
    retry.backoff_seconds ->  RETRY_BACKOFF_SECONDS

Environment values are strings; they are converted to the type of the
default the caller passes (bool, int, float), so `get("ui.headless", True)`
with UI_HEADLESS=false yields False.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger


# Repo root /config/config.yaml
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "config.yaml"

# Points the harness at another YAML file (e.g. a staging shop)
CONFIG_PATH_ENV = "SHOPTEST_CONFIG"

_TRUE_VALUES = ("true", "1", "yes", "on")


class ConfigurationError(Exception):
    """Raised when the configuration file cannot be parsed."""
    pass


def env_key(key: str) -> str:
    """Environment variable overriding a dotted key."""
    return key.replace(".", "_").upper()


def _coerce(raw: str, like: Any) -> Any:
    if isinstance(like, bool):
        return raw.strip().lower() in _TRUE_VALUES
    for kind in (int, float):
        if isinstance(like, kind):
            try:
                return kind(raw)
            except ValueError:
                logger.warning(f"Cannot read '{raw}' as {kind.__name__}; using it as text")
                return raw
    return raw


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        logger.warning(f"Configuration file not found: {path}; using defaults")
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    logger.debug(f"Loaded configuration from: {path}")
    return data or {}


class ConfigLoader:
    """
    Process-wide settings (singleton).

    Lookup order: environment variable, YAML value, caller default.

    Usage:
        >>> ConfigLoader().get("links.max_links", 20)
        20
    """

    _instance: Optional["ConfigLoader"] = None

    def __new__(cls, config_path: Optional[Path] = None) -> "ConfigLoader":
        if cls._instance is None:
            instance = super().__new__(cls)
            path = config_path or os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH
            instance._values = _read_yaml(Path(path))
            cls._instance = instance
        return cls._instance

    def get(self, key: str, default: Any = None) -> Any:
        """Value of a dotted key such as "links.max_links"."""
        raw = os.environ.get(env_key(key))
        if raw is not None:
            return raw if default is None else _coerce(raw, default)

        node: Any = self._values
        for part in key.split("."):
            if not isinstance(node, dict) or node.get(part) is None:
                return default
            node = node[part]
        return node

    @classmethod
    def reset(cls) -> None:
        """Forget the loaded file; the next ConfigLoader() reads it again."""
        cls._instance = None


__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "DEFAULT_CONFIG_PATH",
    "env_key",
]
