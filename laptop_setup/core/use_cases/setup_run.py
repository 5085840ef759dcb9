"""
Setup run use case — certify and/or install the laptop's tool set.

Resolves everything fatal up front (settings, profile, platform,
manifest, preflight) so that per-tool problems are the only thing
left once the loops start.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import SecretStr

from laptop_setup.adapters.base import CommandExecutor
from laptop_setup.core.config.loader import ConfigError, load_manifest, load_settings
from laptop_setup.core.context import RunContext
from laptop_setup.core.data import ManifestRegistry
from laptop_setup.core.models.report import CertificationReport, InstallReport
from laptop_setup.core.models.settings import Settings
from laptop_setup.core.models.tool import Manifest, ToolDefinition
from laptop_setup.core.services.setup import (
    Host,
    InvalidProfile,
    PreflightError,
    UnsupportedPlatform,
    certify,
    detect_platform,
    filter_manifest,
    get_platform,
    install,
    resolve_profile,
    run_preflight,
)

logger = logging.getLogger(__name__)

NO_ACTION = "Nothing to do: specify -c/--certification and/or -i/--install."


@dataclass
class SetupRunResult:
    """Everything one invocation produced."""

    profile: str = ""
    platform: str = ""
    error: str | None = None
    certification: CertificationReport | None = None
    installation: InstallReport | None = None
    tools: list[ToolDefinition] = field(default_factory=list)
    # invalid command line; the CLI prints usage with the error
    usage_error: bool = False

    @property
    def exit_code(self) -> int:
        """0 on success; 1 on a fatal error or a failed certification-only run."""
        if self.error:
            return 1
        if self.installation is not None:
            return 0
        if self.certification is not None and not self.certification.ok:
            return 1
        return 0

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        if self.error:
            return {"error": self.error}
        result: dict = {"profile": self.profile, "platform": self.platform}
        if self.tools:
            result["tools"] = [
                {"id": t.id, "display_name": t.display_name, "mechanism": t.mechanism.value}
                for t in self.tools
            ]
        if self.certification is not None:
            result["certification"] = self.certification.to_dict()
        if self.installation is not None:
            result["installation"] = self.installation.to_dict()
        return result


def run_setup(
    make_executor: Callable[[Settings], CommandExecutor],
    *,
    certification: bool = False,
    installation: bool = False,
    list_only: bool = False,
    profile: str | None = None,
    automox_key: str = "",
    sentinelone_token: str = "",
    sentinelone_link: str | None = None,
    sentinelone_pkg_name: str | None = None,
    platform_name: str | None = None,
    manifest_path: Path | None = None,
    config_path: Path | None = None,
    registry: ManifestRegistry | None = None,
) -> SetupRunResult:
    """Run certification and/or installation.

    When both modes are requested, certification runs first.

    Args:
        make_executor: Builds the host executor from the loaded settings;
            tests pass a factory returning a MockExecutor.
        certification: Verify the in-scope tools and report.
        installation: Install the missing in-scope tools.
        list_only: Only resolve and return the in-scope tools.
        platform_name: Force a platform instead of detecting it.
        manifest_path: Use this manifest instead of the shipped one.
        config_path: Explicit settings file.

    Returns:
        SetupRunResult; fatal problems are in ``error``.
    """
    result = SetupRunResult()
    if profile:
        try:
            resolve_profile(profile)
        except InvalidProfile as e:
            result.error = str(e)
            result.usage_error = True
            return result
    if not (certification or installation or list_only):
        result.error = NO_ACTION
        result.usage_error = True
        return result

    try:
        settings = load_settings(config_path)
        selected = resolve_profile(profile or settings.default_profile)
        result.profile = selected.value
        executor = make_executor(settings)

        if platform_name:
            platform = get_platform(platform_name, executor, settings.install_timeout)
        else:
            platform = detect_platform(executor, settings.install_timeout)
        result.platform = platform.name

        manifest = _load_manifest(platform.name, manifest_path, registry)
        if not list_only:
            run_preflight(platform)
    except (ConfigError, InvalidProfile, UnsupportedPlatform, PreflightError) as e:
        result.error = str(e)
        return result

    if list_only:
        result.tools = filter_manifest(manifest.tools, selected)
        return result

    ctx = RunContext(
        certify=certification,
        install=installation,
        profile=selected,
        automox_key=SecretStr(automox_key or ""),
        sentinelone_token=SecretStr(sentinelone_token or ""),
        sentinelone_link=sentinelone_link or None,
        sentinelone_pkg_name=sentinelone_pkg_name or settings.sentinelone_pkg_name,
        settings=settings,
    )
    host = Host(executor=executor, platform=platform)
    logger.info("Profile '%s' on %s", selected.value, platform.label)

    if certification:
        result.certification = certify(manifest, ctx, host)
    if installation:
        result.installation = install(manifest, ctx, host)
    return result


def _load_manifest(
    platform: str,
    manifest_path: Path | None,
    registry: ManifestRegistry | None,
) -> Manifest:
    if manifest_path is not None:
        return load_manifest(manifest_path)
    return (registry or ManifestRegistry()).get(platform)
