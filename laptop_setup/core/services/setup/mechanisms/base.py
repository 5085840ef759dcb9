"""
Mechanism handler base — verify/install contract shared by all mechanisms.

Handlers report through VerifyResult / InstallOutcome and never raise
for expected failures (missing tool, failed command, unreachable URL).
The orchestrator still guards every call, so a bug in one handler only
costs that tool.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from laptop_setup.adapters.base import CommandResult
from laptop_setup.core.context import RunContext
from laptop_setup.core.models.report import InstallOutcome, VerifyResult
from laptop_setup.core.models.tool import Mechanism, ToolDefinition
from laptop_setup.core.services.setup.host import Host

logger = logging.getLogger(__name__)


class MechanismHandler(ABC):
    """Verifier and installer for one Mechanism."""

    mechanism: Mechanism

    @abstractmethod
    def verify(self, tool: ToolDefinition, ctx: RunContext, host: Host) -> VerifyResult:
        """Decide whether ``tool`` is present on the host."""

    def install(self, tool: ToolDefinition, ctx: RunContext, host: Host) -> InstallOutcome:
        """Install ``tool`` unless verification says it is already there."""
        before = self.verify(tool, ctx, host)
        if before.installed:
            reason = "already installed"
            if before.detail:
                reason += f" ({before.detail})"
            logger.info("%s: %s", tool.display_name, reason)
            return InstallOutcome.skip(tool.id, tool.display_name, reason)
        logger.info("Installing %s (%s)", tool.display_name, self.mechanism.value)
        return self._install(tool, ctx, host)

    @abstractmethod
    def _install(self, tool: ToolDefinition, ctx: RunContext, host: Host) -> InstallOutcome:
        """Install a tool that verification reported as not installed."""

    def _confirm(
        self,
        tool: ToolDefinition,
        ctx: RunContext,
        host: Host,
        result: CommandResult,
        action: str = "install",
    ) -> InstallOutcome:
        """Turn the install command's result into an outcome.

        A zero exit status is not trusted on its own: the tool must
        also verify afterwards.
        """
        if not result.ok:
            return InstallOutcome.failure(
                tool.id, tool.display_name,
                f"{action} failed: {result.summary()}",
                duration_ms=result.duration_ms,
            )
        after = self.verify(tool, ctx, host)
        if not after.installed:
            return InstallOutcome.failure(
                tool.id, tool.display_name,
                f"{action} finished but {tool.display_name} is still not detected",
                duration_ms=result.duration_ms,
            )
        return InstallOutcome.success(
            tool.id, tool.display_name,
            after.detail,
            notes=list(tool.post_install_notes),
            duration_ms=result.duration_ms,
        )
