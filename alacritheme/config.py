"""Configuration loading for alacritheme."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml


class ConfigError(Exception):
    """Raised when the configuration cannot be resolved."""


THEMES_DIR_ENV = "THEMES_DIR"
CONFIG_FILE_ENV = "CONFIG_FILE"
SETTINGS_ENV = "ALACRITHEME_CONFIG"
LOG_FILE_ENV = "ALACRITHEME_LOG"
LOG_LEVEL_ENV = "ALACRITHEME_LOG_LEVEL"

DEFAULT_THEME_SUFFIXES = (".toml",)
DEFAULT_LOG_LEVEL = "WARNING"
_DEFAULT_SETTINGS_PATH = (
    Path.home() / ".config" / "alacritheme" / "config.yaml"
)
_DEFAULT_LOG_FILE = Path.home() / ".cache" / "alacritheme" / "alacritheme.log"


@dataclass(frozen=True)
class AppConfig:
    """Resolved settings injected into every component at startup."""

    themes_dir: Path
    config_file: Path
    settings_path: Path
    theme_suffixes: tuple[str, ...] = DEFAULT_THEME_SUFFIXES
    log_file: Path = _DEFAULT_LOG_FILE
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def settings_exist(self) -> bool:
        """Return ``True`` if the optional YAML settings file exists."""

        return self.settings_path.exists()


def default_settings_path(env: Mapping[str, str] | None = None) -> Path:
    """Return the settings path, honoring ``ALACRITHEME_CONFIG``."""

    source = os.environ if env is None else env
    env_value = source.get(SETTINGS_ENV)
    if env_value:
        return Path(env_value).expanduser()
    return _DEFAULT_SETTINGS_PATH


def load_config(
    env: Mapping[str, str] | None = None,
    settings_path: Path | None = None,
) -> AppConfig:
    """Resolve configuration from the environment and the settings file.

    Environment variables take precedence over values from the YAML file.
    ``THEMES_DIR`` and ``CONFIG_FILE`` must be provided by one of them.
    """

    source = dict(os.environ if env is None else env)
    path = (settings_path or default_settings_path(source)).expanduser()
    raw = _read_settings(path)

    themes_dir = _coerce_path(
        source.get(THEMES_DIR_ENV) or raw.get("themes_dir"),
        "themes_dir",
    )
    config_file = _coerce_path(
        source.get(CONFIG_FILE_ENV) or raw.get("config_file"),
        "config_file",
    )
    if themes_dir is None:
        raise ConfigError(
            f"{THEMES_DIR_ENV} is not set and {path} has no 'themes_dir'."
        )
    if config_file is None:
        raise ConfigError(
            f"{CONFIG_FILE_ENV} is not set and {path} has no 'config_file'."
        )

    log_file = _coerce_path(
        source.get(LOG_FILE_ENV) or raw.get("log_file"),
        "log_file",
    )
    log_level = source.get(LOG_LEVEL_ENV) or raw.get(
        "log_level", DEFAULT_LOG_LEVEL
    )
    if not isinstance(log_level, str):
        raise ConfigError(
            f"Config key 'log_level' must be a string (file: {path})."
        )

    return AppConfig(
        themes_dir=themes_dir,
        config_file=config_file,
        settings_path=path,
        theme_suffixes=_coerce_suffixes(raw.get("theme_suffixes"), path),
        log_file=log_file or _DEFAULT_LOG_FILE,
        log_level=log_level.upper(),
    )


def _read_settings(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}

    try:
        with path.open("r", encoding="utf-8") as handle:
            raw: Any = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        message = f"Failed to parse YAML settings {path}: {exc}"
        raise ConfigError(message) from exc
    except OSError as exc:
        message = f"Failed to read settings {path}: {exc}"
        raise ConfigError(message) from exc

    if not isinstance(raw, dict):
        expected = type(raw).__name__
        message = (
            f"Expected a mapping at the top level of {path}, "
            f"got {expected}."
        )
        raise ConfigError(message)
    return raw


def _coerce_path(value: Any, key: str) -> Optional[Path]:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return Path(value).expanduser()
    typename = type(value).__name__
    raise ConfigError(
        f"Expected a string path for '{key}', got {typename}."
    )


def _coerce_suffixes(value: Any, path: Path) -> tuple[str, ...]:
    if value is None:
        return DEFAULT_THEME_SUFFIXES
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not value:
        raise ConfigError(
            "Config key 'theme_suffixes' must be a non-empty list "
            f"(file: {path})."
        )
    suffixes: list[str] = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise ConfigError(
                "Config key 'theme_suffixes' must contain strings "
                f"(file: {path})."
            )
        suffix = item.strip().lower()
        if not suffix.startswith("."):
            suffix = f".{suffix}"
        suffixes.append(suffix)
    return tuple(suffixes)
