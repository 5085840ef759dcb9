"""
Configuration loader — reads settings and manifests into domain models.

Both file kinds are YAML, validated against the pydantic models.  Any
problem (missing file, bad YAML, schema violation) surfaces as a
ConfigError with the file path in the message.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from laptop_setup.core.models.settings import Settings
from laptop_setup.core.models.tool import Manifest

logger = logging.getLogger(__name__)

ENV_CONFIG = "LAPTOP_SETUP_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/laptop-setup/config.yml")


class ConfigError(Exception):
    """Raised when a settings file or manifest is invalid or missing."""


def find_config_file(explicit: Path | None = None) -> Path | None:
    """Locate the settings file.

    Order: ``explicit`` (--config), then ``$LAPTOP_SETUP_CONFIG``, then
    ``~/.config/laptop-setup/config.yml`` when it exists.

    Returns:
        The path to load, or None to use built-in defaults.
    """
    if explicit is not None:
        return explicit
    from_env = os.environ.get(ENV_CONFIG, "").strip()
    if from_env:
        return Path(from_env).expanduser()
    default = DEFAULT_CONFIG_PATH.expanduser()
    return default if default.is_file() else None


def _read_yaml(path: Path) -> Any:
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e


def load_settings(path: Path | None = None) -> Settings:
    """Load the optional settings file.

    Args:
        path: Explicit path (--config). If None, see find_config_file().

    Raises:
        ConfigError: If the file is unreadable or invalid.
    """
    path = find_config_file(path)
    if path is None:
        logger.debug("No settings file, using defaults")
        return Settings()

    logger.debug("Loading settings from %s", path)
    data = _read_yaml(path)
    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {path}: {e}") from e


def load_manifest(path: Path) -> Manifest:
    """Load and validate a tool manifest.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    logger.debug("Loading manifest from %s", path)
    data = _read_yaml(path)
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        manifest = Manifest.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid manifest {path}: {e}") from e

    logger.info("Loaded %s manifest with %d tools", manifest.platform, len(manifest.tools))
    return manifest
