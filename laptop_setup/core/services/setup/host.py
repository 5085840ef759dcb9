"""
Host — the executor and platform a run operates on.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from laptop_setup.adapters.base import CommandExecutor
from laptop_setup.core.services.setup.platforms import Platform


@dataclass(frozen=True)
class Host:
    """Capabilities handed to every verifier and installer."""

    executor: CommandExecutor
    platform: Platform

    @property
    def home(self) -> Path:
        return self.executor.home

    def expand(self, path: str) -> Path:
        """Expand a leading ``~`` against the executor's home."""
        if path == "~":
            return self.home
        if path.startswith("~/"):
            return self.home / path[2:]
        return Path(path)
