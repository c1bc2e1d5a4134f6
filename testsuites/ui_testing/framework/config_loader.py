"""
================================================================================
Configuration Loader
================================================================================

Settings of the Practical Law UI suite.

Sources, merged in this order (later wins):
    1. config/config.yaml
    2. config/<environment>.yaml, deep-merged (qed, prod, ci, ...)
    3. Environment variables named after the dotted key:
       timeouts.page_load -> TIMEOUTS_PAGE_LOAD
    4. Short switches: ENVIRONMENT, BROWSER, HEADLESS

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger


CONFIG_DIR = Path(__file__).resolve().parents[3] / "config"
DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.yaml"
DEFAULT_ENVIRONMENT = "qed"
DEFAULT_BASE_URL = "https://uk.practicallaw.qed.thomsonreuters.com"

_TRUE_VALUES = ("true", "1", "yes", "on")


class ConfigurationError(Exception):
    """Raised when a settings file cannot be parsed."""
    pass


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_VALUES
    return bool(value)


def coerce(raw: str, like: Any) -> Any:
    """
    Convert an environment string to the type of `like`.

    >>> coerce("25", 10)
    25
    >>> coerce("yes", False)
    True

    Unparseable numbers stay strings so the caller sees the bad value.
    """
    if isinstance(like, bool):
        return _as_bool(raw)
    for kind in (int, float):
        if isinstance(like, kind):
            try:
                return kind(raw)
            except ValueError:
                return raw
    return raw


def _dig(tree: Any, dotted: str) -> Any:
    node = tree
    for part in dotted.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    return data if isinstance(data, dict) else {}


class ConfigLoader:
    """
    Process-wide settings object.

    Usage:
        >>> config = get_config()
        >>> config.timeout("page_load")
        30000
        >>> config.get_section("test_users")["User1"]["username"]
        'automation.user1@example.com'
    """

    _instance: Optional["ConfigLoader"] = None
    _config: Dict[str, Any] = {}

    def __new__(cls, config_path: Optional[Path] = None, environment: Optional[str] = None) -> "ConfigLoader":
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._initialized = False
            cls._instance = instance
        return cls._instance

    def __init__(self, config_path: Optional[Path] = None, environment: Optional[str] = None) -> None:
        """
        Args:
            config_path: Base settings file (config/config.yaml by default)
            environment: Overlay name, wins over ENVIRONMENT and the
                `environment` key of the base file
        """
        if self._initialized:
            return
        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._requested_environment = environment
        self._load_config()
        self._initialized = True

    def _load_config(self) -> None:
        if self._config_path.exists():
            self._config = _read_yaml(self._config_path)
            logger.debug(f"📄 Settings loaded: {self._config_path}")
        else:
            logger.warning(f"⚠️ No settings file at {self._config_path}, running on defaults and env vars")
            self._config = {}

        overlay = self._config_path.with_name(f"{self.environment}.yaml")
        if overlay != self._config_path and overlay.exists():
            self._config = _deep_merge(self._config, _read_yaml(overlay))
            logger.debug(f"📄 Overlay merged: {overlay.name}")

    @property
    def environment(self) -> str:
        return (
            self._requested_environment
            or os.environ.get("ENVIRONMENT")
            or self._config.get("environment")
            or DEFAULT_ENVIRONMENT
        )

    def get(self, key: str, default: Any = None) -> Any:
        """
        Value at dotted `key`.

        An environment variable named after the key wins and is converted
        to the type of `default`.
        """
        raw = os.environ.get(key.upper().replace(".", "_"))
        if raw is not None:
            return raw if default is None else coerce(raw, default)
        value = _dig(self._config, key)
        return default if value is None else value

    def get_section(self, section: str) -> Dict[str, Any]:
        """Top-level mapping `section`; {} when missing or not a mapping."""
        value = self._config.get(section)
        return value if isinstance(value, dict) else {}

    @property
    def base_url(self) -> str:
        return str(self.get("app.base_url", DEFAULT_BASE_URL)).rstrip("/")

    @property
    def browser_name(self) -> str:
        return str(os.environ.get("BROWSER") or self.get("browser.name", "chromium")).strip().lower()

    @property
    def headless(self) -> bool:
        switch = os.environ.get("HEADLESS")
        if switch is not None:
            return _as_bool(switch)
        return _as_bool(self.get("browser.headless", False))

    def timeout(self, name: str = "default") -> int:
        """Milliseconds of the `timeouts.<name>` profile."""
        return int(self.get(f"timeouts.{name}", 10000))

    def path(self, name: str) -> Path:
        """Output directory `paths.<name>`, relative paths anchored at the repo root."""
        value = Path(str(self.get(f"paths.{name}", name)))
        return value if value.is_absolute() else self._config_path.parent.parent / value

    def reload(self) -> None:
        self._load_config()
        logger.info(f"🔄 Settings reloaded ({self.environment})")

    @classmethod
    def reset(cls) -> None:
        """Forget the loaded settings; the next ConfigLoader() reads the files again."""
        cls._instance = None
        cls._config = {}


def get_config() -> ConfigLoader:
    return ConfigLoader()


__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "coerce",
    "get_config",
]
