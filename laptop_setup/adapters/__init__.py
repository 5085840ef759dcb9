"""Adapters — host capabilities used by the setup logic.

Public re-exports for convenient access.
"""

from laptop_setup.adapters.base import CommandExecutor, CommandResult
from laptop_setup.adapters.mock import MockExecutor
from laptop_setup.adapters.shell.command import SubprocessExecutor

__all__ = [
    "CommandExecutor",
    "CommandResult",
    "MockExecutor",
    "SubprocessExecutor",
]
