"""
Security posture — applications that must not be on the laptop.

Detection only: findings carry removal steps for the user, nothing is
uninstalled automatically.
"""

from __future__ import annotations

import logging

from laptop_setup.core.models.report import SecurityFinding
from laptop_setup.core.models.tool import Manifest
from laptop_setup.core.services.setup.host import Host

logger = logging.getLogger(__name__)


def check_forbidden_apps(manifest: Manifest, host: Host) -> list[SecurityFinding]:
    """Return one finding per forbidden application present on the host."""
    findings: list[SecurityFinding] = []
    for app in manifest.forbidden:
        try:
            present = host.platform.app_installed(app.app_name)
        except Exception:
            logger.exception("Could not check for %s", app.display_name)
            continue
        if present:
            logger.warning("Forbidden application found: %s", app.display_name)
            findings.append(SecurityFinding(
                id=app.id,
                display_name=app.display_name,
                message=f"{app.display_name} is installed and is not permitted on company laptops",
                removal_steps=list(app.removal_steps),
            ))
    return findings
