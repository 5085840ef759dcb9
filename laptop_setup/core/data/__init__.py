"""
Shipped manifests — one YAML tool list per platform.

Loads ``laptop_setup/core/data/manifests/<platform>.yml`` on first
access and caches the validated Manifest for the process lifetime.

Usage::

    from laptop_setup.core.data import ManifestRegistry

    registry = ManifestRegistry()
    manifest = registry.get("macos")
"""

from __future__ import annotations

import logging
from functools import cached_property
from pathlib import Path

from laptop_setup.core.config.loader import ConfigError, load_manifest
from laptop_setup.core.models.tool import Manifest

logger = logging.getLogger(__name__)

MANIFEST_DIR = Path(__file__).parent / "manifests"


class ManifestRegistry:
    """Lazy, cached access to the shipped manifests."""

    def __init__(self, directory: Path = MANIFEST_DIR):
        self.directory = directory
        self._cache: dict[str, Manifest] = {}

    @cached_property
    def platforms(self) -> list[str]:
        """Platforms that ship a manifest."""
        names = sorted(p.stem for p in self.directory.glob("*.yml"))
        logger.debug("Shipped manifests: %s", names)
        return names

    def path_for(self, platform: str) -> Path:
        return self.directory / f"{platform}.yml"

    def get(self, platform: str) -> Manifest:
        """Return the validated manifest for ``platform``.

        Raises:
            ConfigError: If no manifest ships for the platform, or it is invalid.
        """
        if platform not in self._cache:
            path = self.path_for(platform)
            if not path.is_file():
                raise ConfigError(f"No manifest for platform '{platform}'")
            self._cache[platform] = load_manifest(path)
        return self._cache[platform]
