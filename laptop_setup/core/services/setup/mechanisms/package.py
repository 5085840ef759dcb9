"""
Package-manager mechanisms — CLI packages, GUI casks and the manager itself.
"""

from __future__ import annotations

from laptop_setup.adapters.base import CommandResult
from laptop_setup.core.context import RunContext
from laptop_setup.core.models.report import InstallOutcome, VerifyResult
from laptop_setup.core.models.tool import Mechanism, ToolDefinition
from laptop_setup.core.services.setup.host import Host
from laptop_setup.core.services.setup.mechanisms.base import MechanismHandler


class CliPackageHandler(MechanismHandler):
    """Command-line tool installed through the platform package manager."""

    mechanism = Mechanism.PACKAGE_MANAGER_CLI

    def verify(self, tool: ToolDefinition, ctx: RunContext, host: Host) -> VerifyResult:
        if tool.verification_command:
            path = host.executor.which(tool.verification_command)
            if path:
                return VerifyResult.found(tool.id, tool.display_name, path)
        if tool.package_name and host.platform.package_installed(tool.package_name):
            return VerifyResult.found(
                tool.id, tool.display_name, f"via {host.platform.package_manager}",
            )
        return VerifyResult.not_found(tool.id, tool.display_name)

    def _install(self, tool: ToolDefinition, ctx: RunContext, host: Host) -> InstallOutcome:
        if not tool.package_name:
            return InstallOutcome.failure(
                tool.id, tool.display_name,
                "no package name configured; install it manually",
            )
        if not host.platform.manager_available():
            return InstallOutcome.failure(
                tool.id, tool.display_name,
                f"{host.platform.package_manager} is not available",
            )
        result = host.platform.install_package(tool.package_name)
        return self._confirm(tool, ctx, host, result)


class CaskPackageHandler(MechanismHandler):
    """GUI application installed through the manager's cask channel.

    Applications dragged in by hand are accepted too, via the
    platform's application check on ``app_name``.
    """

    mechanism = Mechanism.PACKAGE_MANAGER_CASK

    def verify(self, tool: ToolDefinition, ctx: RunContext, host: Host) -> VerifyResult:
        platform = host.platform
        if tool.package_name and platform.package_installed(tool.package_name, cask=True):
            return VerifyResult.found(
                tool.id, tool.display_name, f"via {platform.package_manager}",
            )
        if tool.app_name and platform.app_installed(tool.app_name):
            return VerifyResult.found(tool.id, tool.display_name, "direct installation")
        return VerifyResult.not_found(tool.id, tool.display_name)

    def _install(self, tool: ToolDefinition, ctx: RunContext, host: Host) -> InstallOutcome:
        if not host.platform.manager_available():
            return InstallOutcome.failure(
                tool.id, tool.display_name,
                f"{host.platform.package_manager} is not available",
            )
        result = host.platform.install_package(tool.package_name or tool.id, cask=True)
        return self._confirm(tool, ctx, host, result)


class FoundationalManagerHandler(MechanismHandler):
    """The package manager every other package tool depends on."""

    mechanism = Mechanism.FOUNDATIONAL_PACKAGE_MANAGER

    def verify(self, tool: ToolDefinition, ctx: RunContext, host: Host) -> VerifyResult:
        if host.platform.manager_available():
            return VerifyResult.found(tool.id, tool.display_name)
        return VerifyResult.not_found(tool.id, tool.display_name)

    def _install(self, tool: ToolDefinition, ctx: RunContext, host: Host) -> InstallOutcome:
        result: CommandResult = host.platform.bootstrap_manager()
        return self._confirm(tool, ctx, host, result, action="bootstrap")
