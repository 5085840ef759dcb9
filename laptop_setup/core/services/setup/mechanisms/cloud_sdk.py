"""
Cloud SDK mechanisms — the Google Cloud SDK and files installed next to it.

The SDK is found on PATH or at one of a few well-known install
locations.  A hit at a known location that is not on PATH repairs the
shell profile, so the next shell finds ``gcloud`` too.

Installation follows the vendor flow: fetch the install script, run it
non-interactively into the SDK parent directory, then add the
components and the ``kubectl`` symlink.
"""

from __future__ import annotations

import logging
from pathlib import Path

from laptop_setup.core.context import RunContext
from laptop_setup.core.models.report import InstallOutcome, VerifyResult
from laptop_setup.core.models.tool import Mechanism, ToolDefinition
from laptop_setup.core.services.setup.host import Host
from laptop_setup.core.services.setup.mechanisms.base import MechanismHandler
from laptop_setup.core.services.setup.shell_profile import ensure_cloud_sdk_on_path

logger = logging.getLogger(__name__)

SDK_DIRNAME = "google-cloud-sdk"
INSTALL_MARKER = ".installed_by_laptop_setup"

# Install roots of package-manager and manual installs, in lookup order
_WELL_KNOWN_SDK_DIRS = (
    "/usr/local/google-cloud-sdk",
    "/opt/homebrew/share/google-cloud-sdk",
    "/usr/lib/google-cloud-sdk",
)


def sdk_dir(ctx: RunContext, host: Host) -> Path:
    """Directory this tool installs the SDK into."""
    parent = ctx.settings.cloud_sdk_parent
    base = host.expand(parent) if parent else host.platform.cloud_sdk_parent()
    return base / SDK_DIRNAME


def known_gcloud_locations(ctx: RunContext, host: Host) -> list[Path]:
    """Candidate ``gcloud`` binaries, first match wins."""
    dirs = [sdk_dir(ctx, host), host.home / SDK_DIRNAME]
    dirs += [Path(d) for d in _WELL_KNOWN_SDK_DIRS]
    locations: list[Path] = []
    for d in dirs:
        candidate = d / "bin" / "gcloud"
        if candidate not in locations:
            locations.append(candidate)
    return locations


def locate_gcloud(tool: ToolDefinition, ctx: RunContext, host: Host) -> tuple[Path | None, bool]:
    """Find ``gcloud``.

    Returns:
        ``(path, on_path)``; ``path`` is None when nothing was found.
    """
    found = host.executor.which(tool.verification_command or "gcloud")
    if found:
        return Path(found), True
    for candidate in known_gcloud_locations(ctx, host):
        if host.executor.is_file(candidate):
            return candidate, False
    return None, False


class CloudSdkBaseHandler(MechanismHandler):
    """The Google Cloud SDK itself (``gcloud``, ``gsutil``, components)."""

    mechanism = Mechanism.CLOUD_SDK_BASE

    def verify(self, tool: ToolDefinition, ctx: RunContext, host: Host) -> VerifyResult:
        gcloud, on_path = locate_gcloud(tool, ctx, host)
        if gcloud is None:
            return VerifyResult.not_found(tool.id, tool.display_name)
        if on_path:
            return VerifyResult.found(tool.id, tool.display_name, str(gcloud))

        written = ensure_cloud_sdk_on_path(host, gcloud.parent.parent)
        detail = f"{gcloud}, not on PATH"
        if written:
            detail += "; shell profile updated, open a new terminal"
        return VerifyResult.found(tool.id, tool.display_name, detail)

    def install(self, tool: ToolDefinition, ctx: RunContext, host: Host) -> InstallOutcome:
        # An existing SDK still gets its components and symlink checked.
        gcloud, _on_path = locate_gcloud(tool, ctx, host)
        if gcloud is None:
            return self._install(tool, ctx, host)

        self.verify(tool, ctx, host)
        warnings = self._check_marker(gcloud, ctx, host)
        warnings += self._install_components(gcloud, ctx, host)
        warnings += self._link_component(gcloud, ctx, host)
        return InstallOutcome.skip(
            tool.id, tool.display_name, f"already installed ({gcloud})", warnings=warnings,
        )

    def _install(self, tool: ToolDefinition, ctx: RunContext, host: Host) -> InstallOutcome:
        logger.info("Installing %s into %s", tool.display_name, sdk_dir(ctx, host).parent)
        gcloud, error = self._run_installer(ctx, host)
        if gcloud is None:
            return InstallOutcome.failure(tool.id, tool.display_name, error)
        warnings = self._install_components(gcloud, ctx, host)
        warnings += self._link_component(gcloud, ctx, host)
        return InstallOutcome.success(
            tool.id, tool.display_name, str(gcloud),
            notes=list(tool.post_install_notes),
            warnings=warnings,
        )

    def _run_installer(self, ctx: RunContext, host: Host) -> tuple[Path | None, str]:
        ex = host.executor
        target = sdk_dir(ctx, host)
        parent = target.parent

        mkdir = ex.make_dirs(parent)
        if not mkdir.ok:
            return None, f"cannot create {parent}: {mkdir.summary()}"

        script = ex.fetch_text(ctx.settings.cloud_sdk_installer_url)
        if not script.ok:
            return None, f"cannot download the installer: {script.summary()}"

        result = ex.run(
            ["bash", "-s", "--", "--disable-prompts", f"--install-dir={parent}"],
            input_text=script.stdout,
            cwd=parent,
            timeout=ctx.settings.install_timeout,
            capture=False,
        )
        if not result.ok:
            return None, f"installer failed: {result.summary()}"

        gcloud = target / "bin" / "gcloud"
        if not ex.is_file(gcloud):
            return None, f"installer finished but {gcloud} does not exist"
        version = ex.run([str(gcloud), "--version"], timeout=ctx.settings.command_timeout)
        if not version.ok:
            return None, f"{gcloud} does not run: {version.summary()}"

        ex.write_text(target / INSTALL_MARKER, f"{target}\n")
        ensure_cloud_sdk_on_path(host, target)
        return gcloud, ""

    def _check_marker(self, gcloud: Path, ctx: RunContext, host: Host) -> list[str]:
        target = sdk_dir(ctx, host)
        ex = host.executor
        if ex.exists(target / INSTALL_MARKER) and not ex.is_file(target / "bin" / "gcloud"):
            return [
                f"Cloud SDK previously installed to {target} is incomplete; using {gcloud}",
            ]
        return []

    def _install_components(self, gcloud: Path, ctx: RunContext, host: Host) -> list[str]:
        warnings = []
        for component in ctx.settings.cloud_sdk_components:
            result = host.executor.run(
                [str(gcloud), "components", "install", component, "--quiet"],
                timeout=ctx.settings.install_timeout,
                capture=False,
            )
            if not result.ok:
                logger.warning("gcloud component %s: %s", component, result.summary())
                warnings.append(f"Could not install gcloud component '{component}'")
        return warnings

    def _link_component(self, gcloud: Path, ctx: RunContext, host: Host) -> list[str]:
        """Symlink the SDK's kubectl into the bin dir, never clobbering."""
        ex = host.executor
        component = ctx.settings.cloud_sdk_symlinked_component
        if not component:
            return []
        target = gcloud.parent / component
        link = Path(ctx.settings.bin_dir) / component

        if target == link:
            return []
        if not ex.exists(target):
            return [f"{component} not found next to {gcloud}; no symlink created"]
        if ex.is_symlink(link):
            current = ex.readlink(link)
            if current != str(target):
                return [f"{link} points to {current}, not {target}; left unchanged"]
            return []
        if ex.exists(link):
            return [f"{link} exists and is not a symlink; left unchanged"]

        result = ex.symlink(target, link, sudo=True)
        if not result.ok:
            return [f"Could not link {link}: {result.summary()}"]
        logger.info("Linked %s -> %s", link, target)
        return []


class CloudSdkUtilityHandler(MechanismHandler):
    """A file copied from a storage bucket into the SDK tree (e.g. gkc.sh)."""

    mechanism = Mechanism.CLOUD_SDK_UTILITY

    def _target(self, tool: ToolDefinition, ctx: RunContext, host: Host) -> Path:
        rel = tool.verification_path or tool.id
        if rel.startswith("/") or rel.startswith("~"):
            return host.expand(rel)
        return sdk_dir(ctx, host) / rel

    def verify(self, tool: ToolDefinition, ctx: RunContext, host: Host) -> VerifyResult:
        target = self._target(tool, ctx, host)
        if host.executor.is_file(target):
            return VerifyResult.found(tool.id, tool.display_name, str(target))
        return VerifyResult.not_found(tool.id, tool.display_name)

    def _gsutil(self, ctx: RunContext, host: Host) -> str | None:
        found = host.executor.which("gsutil")
        if found:
            return found
        bundled = sdk_dir(ctx, host) / "bin" / "gsutil"
        if host.executor.is_file(bundled):
            return str(bundled)
        return None

    def _install(self, tool: ToolDefinition, ctx: RunContext, host: Host) -> InstallOutcome:
        ex = host.executor
        gsutil = self._gsutil(ctx, host)
        if gsutil is None:
            return InstallOutcome.failure(
                tool.id, tool.display_name,
                "gsutil not found; install the Google Cloud SDK first",
            )
        if not tool.installer_url:
            return InstallOutcome.failure(
                tool.id, tool.display_name, "no source object configured",
            )

        target = self._target(tool, ctx, host)
        ex.make_dirs(target.parent)
        copy = ex.run(
            [gsutil, "cp", tool.installer_url, f"{target.parent}/"],
            timeout=ctx.settings.install_timeout,
        )
        if not copy.ok:
            return InstallOutcome.failure(
                tool.id, tool.display_name, f"gsutil cp failed: {copy.summary()}",
            )
        chmod = ex.make_executable(target)
        if not chmod.ok:
            return InstallOutcome.failure(tool.id, tool.display_name, chmod.summary())

        outcome = self._confirm(tool, ctx, host, copy, action="copy")
        if outcome.failed:
            return outcome

        link = Path(ctx.settings.bin_dir) / target.name
        if ex.is_symlink(link) or not ex.exists(link):
            result = ex.symlink(target, link, sudo=True)
            if not result.ok:
                outcome.warnings.append(f"Could not link {link}: {result.summary()}")
        else:
            outcome.warnings.append(f"{link} exists and is not a symlink; left unchanged")
        return outcome
