"""
Security agent mechanisms — endpoint agents installed with a secret.

Both agents need a secret (a registration token or an access key)
that only comes from the command line or the environment.  Without it
the install is Skipped before any download is attempted, and the run
reports what to supply next time.
"""

from __future__ import annotations

import logging
import secrets
import tempfile
from pathlib import Path
from urllib.parse import quote

from laptop_setup.core.context import AUTOMOX_KEY, SENTINELONE_TOKEN, RunContext
from laptop_setup.core.models.report import InstallOutcome, VerifyResult
from laptop_setup.core.models.tool import Mechanism, ToolDefinition
from laptop_setup.core.services.setup.host import Host
from laptop_setup.core.services.setup.mechanisms.base import MechanismHandler

logger = logging.getLogger(__name__)

# Command-line option that supplies each secret
SECRET_OPTIONS = {
    AUTOMOX_KEY: "--automox-key",
    SENTINELONE_TOKEN: "--sentinelone-token",
}

# File name the SentinelOne installer reads the site token from
REGISTRATION_TOKEN_FILE = "com.sentinelone.registration-token"


def _missing_secret(tool: ToolDefinition, name: str) -> InstallOutcome:
    option = SECRET_OPTIONS.get(name, name)
    logger.info("%s: no %s supplied, skipping install", tool.display_name, name)
    return InstallOutcome.skip(
        tool.id, tool.display_name,
        f"{option} not provided",
        notes=[f"Re-run with {option} <value> to install {tool.display_name}."],
    )


def _temp_dir(ctx: RunContext, host: Host) -> Path:
    configured = ctx.settings.temp_dir
    return host.expand(configured) if configured else Path(tempfile.gettempdir())


class PathAgentHandler(MechanismHandler):
    """Agent detected by a file or bundle on disk, installed from a .pkg."""

    mechanism = Mechanism.PATH_BASED_SECURITY_AGENT

    def _candidates(self, tool: ToolDefinition, host: Host) -> list[Path]:
        path = tool.verification_path or ""
        if path.startswith("/") or path.startswith("~"):
            return [host.expand(path)]
        bundle = path if path.endswith(".app") else f"{path}.app"
        return [d / bundle for d in host.platform.app_dirs()]

    def verify(self, tool: ToolDefinition, ctx: RunContext, host: Host) -> VerifyResult:
        candidates = self._candidates(tool, host)
        for candidate in candidates:
            if host.executor.exists(candidate):
                return VerifyResult.found(tool.id, tool.display_name, str(candidate))
        if not candidates and host.platform.app_installed(tool.app_name or tool.display_name):
            return VerifyResult.found(tool.id, tool.display_name, "registered application")
        return VerifyResult.not_found(tool.id, tool.display_name)

    def _install(self, tool: ToolDefinition, ctx: RunContext, host: Host) -> InstallOutcome:
        secret_name = tool.secret or SENTINELONE_TOKEN
        token = ctx.secret(secret_name)
        if not token:
            return _missing_secret(tool, secret_name)

        url = ctx.sentinelone_link or tool.installer_url
        if not url:
            return InstallOutcome.skip(
                tool.id, tool.display_name, "no installer configured on this platform",
                notes=[f"Install {tool.display_name} through IT."],
            )

        ex = host.executor
        tmp = _temp_dir(ctx, host)
        package = tmp / ctx.sentinelone_pkg_name
        staged = tmp / f"{REGISTRATION_TOKEN_FILE}.{secrets.token_hex(4)}"
        token_file = tmp / REGISTRATION_TOKEN_FILE
        token_staged = False

        try:
            download = ex.download(url, package)
            if not download.ok:
                return InstallOutcome.failure(
                    tool.id, tool.display_name, f"download failed: {download.summary()}",
                )

            written = ex.write_text(staged, token + "\n", mode=0o600)
            if not written.ok:
                return InstallOutcome.failure(tool.id, tool.display_name, written.summary())
            moved = ex.run(
                ["mv", str(staged), str(token_file)],
                sudo=True, timeout=ctx.settings.command_timeout,
            )
            if not moved.ok:
                return InstallOutcome.failure(
                    tool.id, tool.display_name,
                    f"cannot stage registration token: {moved.summary()}",
                )
            token_staged = True
            for cmd in (
                ["chmod", "644", str(token_file)],
                ["chown", "root", str(token_file)],
            ):
                result = ex.run(cmd, sudo=True, timeout=ctx.settings.command_timeout)
                if not result.ok:
                    return InstallOutcome.failure(
                        tool.id, tool.display_name,
                        f"cannot stage registration token: {result.summary()}",
                    )

            result = host.platform.install_package_file(package)
            if not result.ok:
                return InstallOutcome.failure(
                    tool.id, tool.display_name, f"installer failed: {result.summary()}",
                    duration_ms=result.duration_ms,
                )

            ex.sleep(ctx.settings.agent_grace_seconds)
            after = self.verify(tool, ctx, host)
            warnings = []
            if not after.installed:
                warnings.append(
                    f"Installer finished but {tool.display_name} is not detected yet; verify manually",
                )
            return InstallOutcome.success(
                tool.id, tool.display_name, after.detail,
                notes=list(tool.post_install_notes),
                warnings=warnings,
                duration_ms=result.duration_ms,
            )
        finally:
            ex.remove(staged)
            if token_staged:
                ex.remove(token_file, sudo=True)
            ex.remove(package)


class ProcessAgentHandler(MechanismHandler):
    """Agent detected by its running service or process."""

    mechanism = Mechanism.PROCESS_BASED_SECURITY_AGENT

    def verify(self, tool: ToolDefinition, ctx: RunContext, host: Host) -> VerifyResult:
        if host.platform.process_running(tool.verification_command or tool.id, tool.service_name):
            return VerifyResult.found(tool.id, tool.display_name, "running")
        return VerifyResult.not_found(tool.id, tool.display_name, "not installed or not running")

    def _install(self, tool: ToolDefinition, ctx: RunContext, host: Host) -> InstallOutcome:
        if not tool.installer_url:
            return InstallOutcome.skip(
                tool.id, tool.display_name, "verification only on this platform",
                notes=[f"Install {tool.display_name} through IT."],
            )

        secret_name = tool.secret or AUTOMOX_KEY
        key = ctx.secret(secret_name)
        if not key:
            return _missing_secret(tool, secret_name)

        ex = host.executor
        script = ex.fetch_text(tool.installer_url.replace("{secret}", quote(key, safe="")))
        if not script.ok:
            # the URL carries the key; keep it out of the report
            logger.warning("%s installer download failed: %s", tool.display_name, script.error)
            return InstallOutcome.failure(
                tool.id, tool.display_name, "cannot download the installer",
            )
        result = ex.run(
            ["bash"],
            sudo=True,
            input_text=script.stdout,
            timeout=ctx.settings.install_timeout,
            capture=False,
        )
        return self._confirm(tool, ctx, host, result)
