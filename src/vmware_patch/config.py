"""Run configuration for the terminal migration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .patching import DEFAULT_BACKUP_DIR

__all__ = [
    "ConfigError",
    "MigrationConfig",
    "TERMINAL_ENV_VAR",
    "load_config",
]

TERMINAL_ENV_VAR = "TERMINAL_CMD"
DEFAULT_TERMINAL = "ghostty"


class ConfigError(ValueError):
    """Raised when the configuration file cannot be loaded or validated."""


class MigrationConfig(BaseModel):
    """Settings shared by every step of a migration run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    terminal: str = DEFAULT_TERMINAL
    source_terminal: str = "alacritty"
    renderer: str = "cairo"
    home: Path = Field(default_factory=Path.home)
    backup_dir: Path = DEFAULT_BACKUP_DIR
    package_manager: str = "yay"
    install: bool = True
    verify: bool = True

    @field_validator("terminal", "source_terminal", "renderer", "package_manager")
    @classmethod
    def _require_token(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned or any(char.isspace() for char in cleaned):
            raise ValueError("must be a single non-empty word")
        return cleaned

    @field_validator("home", "backup_dir")
    @classmethod
    def _expand_path(cls, value: Path) -> Path:
        return value.expanduser()

    @property
    def env_file(self) -> Path:
        return self.home / ".config" / "uwsm" / "env"

    @property
    def bindings_file(self) -> Path:
        return self.home / ".config" / "hypr" / "bindings.conf"

    @property
    def menu_file(self) -> Path:
        return self.home / ".local" / "share" / "omarchy" / "bin" / "omarchy-menu"


def _read_yaml(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as error:
        raise ConfigError(f"Failed to parse config: {error}") from error
    except (OSError, UnicodeDecodeError) as error:
        raise ConfigError(f"Unable to read config {config_path}: {error}") from error
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping at the top level.")
    section = data.get("migration", data)
    if not isinstance(section, dict):
        raise ConfigError("The 'migration' section must be a mapping.")
    return dict(section)


def load_config(
    config_path: Path | str | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
    environ: Optional[Mapping[str, str]] = None,
) -> MigrationConfig:
    """Build a :class:`MigrationConfig` from YAML, environment, and overrides.

    Explicit ``overrides`` win, then ``TERMINAL_CMD`` (terminal only), then the
    file, then built-in defaults. ``None`` override values are ignored.
    """
    data: Dict[str, Any] = _read_yaml(Path(config_path)) if config_path else {}

    env = os.environ if environ is None else environ
    terminal_from_env = (env.get(TERMINAL_ENV_VAR) or "").strip()
    if terminal_from_env:
        data["terminal"] = terminal_from_env

    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value

    try:
        return MigrationConfig.model_validate(data)
    except ValidationError as error:
        raise ConfigError(f"Invalid configuration: {error}") from error
