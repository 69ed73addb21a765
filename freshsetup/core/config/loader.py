"""
Configuration loader — optional settings file + CLI flags -> RunConfiguration.

The settings file is a small YAML mapping of defaults (paths, retry
policy, plugin/colour-scheme lists). It is looked up in order:

    --config PATH  >  FRESH_SETUP_CONFIG  >  ~/.config/fresh_setup/settings.yml

CLI flags always win over the file; the file wins over built-ins.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from freshsetup.core.models.config import RetryPolicy, RunConfiguration

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "FRESH_SETUP_CONFIG"
ZSH_CUSTOM_ENV_VAR = "ZSH_CUSTOM"
DEFAULT_SETTINGS_PATH = Path(".config") / "fresh_setup" / "settings.yml"


class ConfigError(Exception):
    """Raised when the settings file is unreadable or invalid."""


class Settings(BaseModel):
    """Validated content of the settings file. Every key is optional."""

    model_config = ConfigDict(extra="forbid")

    retry: RetryPolicy | None = None
    brewfile: Path | None = None
    colors_dir: Path | None = None
    fonts_dir: Path | None = None
    install_path: Path | None = None
    r_source: Path | None = None
    r_target: Path | None = None
    zsh_plugins: list[str] | None = None
    color_schemes: list[str] | None = None


def find_settings_file(
    explicit: Path | None = None,
    home: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Path | None:
    """Resolve which settings file applies, if any.

    An explicit path or the env var must point to an existing file
    (ConfigError otherwise); the per-user default is optional.
    """
    env = os.environ if environ is None else environ

    if explicit is not None:
        if not explicit.is_file():
            raise ConfigError(f"Config file not found: {explicit}")
        return explicit

    from_env = env.get(CONFIG_ENV_VAR)
    if from_env:
        path = Path(from_env).expanduser()
        if not path.is_file():
            raise ConfigError(f"{CONFIG_ENV_VAR} points to a missing file: {path}")
        return path

    candidate = (home or Path.home()) / DEFAULT_SETTINGS_PATH
    return candidate if candidate.is_file() else None


def load_settings(path: Path | None) -> Settings:
    """Load and validate a settings file (None -> empty settings).

    Raises:
        ConfigError: If the file cannot be read or is not valid.
    """
    if path is None:
        return Settings()

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {path}: {e}") from e


def _expand(path: Path | None) -> Path | None:
    return path.expanduser() if path is not None else None


def build_run_configuration(
    workflow: str,
    settings: Settings | None = None,
    log_name: str | None = None,
    home: Path | None = None,
    environ: Mapping[str, str] | None = None,
    **flags: Any,
) -> RunConfiguration:
    """Merge CLI flags over settings over defaults, exactly once.

    ``flags`` are RunConfiguration field names as parsed by the CLI;
    ``None`` means "not given on the command line". ``$ZSH_CUSTOM``
    relocates the Oh My Zsh custom directory, as it does for Oh My Zsh.
    """
    env = os.environ if environ is None else environ
    settings = settings or Settings()
    home = home or Path.home()

    values: dict[str, Any] = {"workflow": workflow, "home": home}

    for key in ("brewfile", "colors_dir", "fonts_dir", "install_path", "r_source", "r_target"):
        cli_value = flags.pop(key, None)
        chosen = cli_value if cli_value is not None else getattr(settings, key)
        if chosen is not None:
            values[key] = _expand(Path(chosen))

    zsh_custom = env.get(ZSH_CUSTOM_ENV_VAR)
    if zsh_custom:
        values["zsh_custom"] = _expand(Path(zsh_custom))

    if settings.retry is not None:
        values["retry"] = settings.retry
    if settings.zsh_plugins:
        values["zsh_plugins"] = tuple(settings.zsh_plugins)
    if settings.color_schemes:
        values["color_schemes"] = tuple(settings.color_schemes)

    for key, value in flags.items():
        if value is not None:
            values[key] = value

    if log_name:
        values["log_file"] = home / log_name

    return RunConfiguration(**values)
