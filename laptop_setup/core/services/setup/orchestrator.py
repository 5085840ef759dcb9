"""
Orchestrator — run verification or installation over a manifest.

Tools are processed strictly in manifest order, one at a time.  A tool
that fails (or whose handler blows up) is recorded and the run moves
on; nothing rolls back what earlier tools did.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping

from laptop_setup.core.context import RunContext
from laptop_setup.core.models.report import (
    CertificationReport,
    InstallOutcome,
    InstallReport,
    VerifyResult,
)
from laptop_setup.core.models.tool import Manifest, Mechanism, ToolDefinition
from laptop_setup.core.services.setup.host import Host
from laptop_setup.core.services.setup.mechanisms import HANDLERS, MechanismHandler
from laptop_setup.core.services.setup.profiles import filter_manifest
from laptop_setup.core.services.setup.security_posture import check_forbidden_apps

logger = logging.getLogger(__name__)

Handlers = Mapping[Mechanism, MechanismHandler]

RESTART_TERMINAL = "Restart your terminal so PATH changes take effect."
RERUN_AFTER_FAILURES = "Fix the failures above and run the install again; installed tools are skipped."


def verify_tool(
    tool: ToolDefinition,
    ctx: RunContext,
    host: Host,
    handlers: Handlers = HANDLERS,
) -> VerifyResult:
    """Verify one tool, never raising."""
    handler = handlers.get(tool.mechanism)
    if handler is None:
        logger.warning("No verification rule for %s (%s)", tool.display_name, tool.mechanism.value)
        return VerifyResult.undetermined(
            tool.id, tool.display_name, f"no verification rule for '{tool.mechanism.value}'",
        )
    try:
        return handler.verify(tool, ctx, host)
    except Exception as e:
        logger.exception("Verification of %s crashed", tool.display_name)
        return VerifyResult.undetermined(tool.id, tool.display_name, f"check failed: {e}")


def install_tool(
    tool: ToolDefinition,
    ctx: RunContext,
    host: Host,
    handlers: Handlers = HANDLERS,
) -> InstallOutcome:
    """Install one tool, never raising."""
    handler = handlers.get(tool.mechanism)
    if handler is None:
        logger.warning("No installation rule for %s (%s)", tool.display_name, tool.mechanism.value)
        return InstallOutcome.failure(
            tool.id, tool.display_name, f"no installation rule for '{tool.mechanism.value}'",
        )

    start = time.monotonic()
    try:
        outcome = handler.install(tool, ctx, host)
    except Exception as e:
        logger.exception("Installation of %s crashed", tool.display_name)
        outcome = InstallOutcome.failure(tool.id, tool.display_name, str(e) or type(e).__name__)

    if not outcome.duration_ms:
        outcome.duration_ms = int((time.monotonic() - start) * 1000)
    return outcome


def certify(
    manifest: Manifest,
    ctx: RunContext,
    host: Host,
    handlers: Handlers = HANDLERS,
) -> CertificationReport:
    """Verify every in-scope tool exactly once and check forbidden apps."""
    tools = filter_manifest(manifest.tools, ctx.profile)
    logger.info("Certifying %d tool(s) for profile '%s'", len(tools), ctx.profile.value)

    results = [verify_tool(tool, ctx, host, handlers) for tool in tools]
    return CertificationReport(
        profile=ctx.profile.value,
        platform=host.platform.name,
        results=results,
        findings=check_forbidden_apps(manifest, host),
    )


def install(
    manifest: Manifest,
    ctx: RunContext,
    host: Host,
    handlers: Handlers = HANDLERS,
) -> InstallReport:
    """Install every in-scope tool, continuing past failures."""
    tools = filter_manifest(manifest.tools, ctx.profile)
    logger.info("Installing %d tool(s) for profile '%s'", len(tools), ctx.profile.value)

    outcomes: list[InstallOutcome] = []
    for tool in tools:
        outcome = install_tool(tool, ctx, host, handlers)
        if outcome.failed:
            logger.error("%s: %s", tool.display_name, outcome.reason)
        for warning in outcome.warnings:
            logger.warning("%s: %s", tool.display_name, warning)
        outcomes.append(outcome)

    return InstallReport(
        profile=ctx.profile.value,
        platform=host.platform.name,
        outcomes=outcomes,
        findings=check_forbidden_apps(manifest, host),
        follow_ups=_follow_ups(outcomes),
    )


def _follow_ups(outcomes: list[InstallOutcome]) -> list[str]:
    steps: list[str] = []
    if any(o.ok for o in outcomes):
        steps.append(RESTART_TERMINAL)
    for o in outcomes:
        if o.failed:
            continue
        for note in o.notes:
            if note not in steps:
                steps.append(note)
    if any(o.failed for o in outcomes):
        steps.append(RERUN_AFTER_FAILURES)
    return steps
