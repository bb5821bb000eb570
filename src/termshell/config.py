"""
Reading settings from environment variables and ``termshell.config.yaml``.

Values from the YAML file are passed to ``Settings`` as init arguments; any
field not set there can be supplied through ``TERMSHELL_``-prefixed
environment variables (nested with ``__``, e.g.
``TERMSHELL_SUGGESTIONS__MAX_SUGGESTIONS=5``).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from termshell.core.exceptions import ConfigError

CONFIG_FILENAME = "termshell.config.yaml"


class HistorySettings(BaseModel):
    """Usage ledger settings."""

    model_config = ConfigDict(extra="ignore")

    max_history_size: int = Field(default=200, gt=0)
    """Maximum number of distinct entries kept in the ledger"""

    path: Path | None = None
    """JSON file used to persist history; in-memory only when unset"""

    analytics_top_n: int = Field(default=10, gt=0)
    """Number of commands reported in top-command and error rankings"""


class SuggestionSettings(BaseModel):
    """Suggestion engine settings."""

    model_config = ConfigDict(extra="ignore")

    max_suggestions: int = Field(default=8, gt=0)
    debounce_ms: int = Field(default=50, ge=0)
    min_query_length: int = Field(default=1, ge=0)
    show_on_empty: bool = True
    enable_cache: bool = True
    enable_learning: bool = True

    recent_window: int = Field(default=10, gt=0)
    """How many of the newest ledger entries count as recent"""

    popular_top_n: int = Field(default=5, gt=0)
    """How many of the most frequent commands count as popular"""

    cache_size: int = Field(default=100, gt=0)
    """Maximum number of cached queries"""


class RegistrySettings(BaseModel):
    """Command registry settings."""

    model_config = ConfigDict(extra="ignore")

    strict_registration: bool = False
    """Reject name/alias collisions instead of letting the last registration win"""


class LoggerSettings(BaseModel):
    """Logger settings."""

    model_config = ConfigDict(extra="ignore")

    level: Literal["debug", "info", "warning", "error"] = "warning"
    show_path: bool = False


class Settings(BaseSettings):
    """Top-level termshell settings."""

    model_config = SettingsConfigDict(
        env_prefix="TERMSHELL_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    history: HistorySettings = Field(default_factory=HistorySettings)
    suggestions: SuggestionSettings = Field(default_factory=SuggestionSettings)
    registry: RegistrySettings = Field(default_factory=RegistrySettings)
    logger: LoggerSettings = Field(default_factory=LoggerSettings)


def find_config_file(start: Path | None = None) -> Path | None:
    """Search ``start`` and its parents for ``termshell.config.yaml``."""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def _load_yaml(path: Path) -> dict[str, Any]:
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError("Unable to read config file", f"{path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError("Invalid YAML in config file", f"{path}: {exc}") from exc

    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ConfigError(
            "Invalid config file",
            f"{path} must contain a mapping at the top level.",
        )
    return payload


def get_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from an explicit file, a discovered file, or the environment."""
    if config_path is not None:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigError("Config file not found", str(path))
    else:
        path = find_config_file()

    if path is None:
        return Settings()

    payload = _load_yaml(path)
    settings = Settings(**payload)

    history_path = settings.history.path
    if history_path is not None and not history_path.is_absolute():
        settings.history.path = (path.parent / history_path).resolve()
    return settings
