"""
Domain models — Pydantic types for laptop-setup.

All models are re-exported here for convenient access:

    from laptop_setup.core.models import Manifest, ToolDefinition, CertificationReport
"""

from laptop_setup.core.models.report import (
    CertificationReport,
    InstallOutcome,
    InstallReport,
    SecurityFinding,
    VerifyResult,
)
from laptop_setup.core.models.settings import Settings
from laptop_setup.core.models.tool import (
    ALL_PROFILES,
    LEGACY_MECHANISM_NAMES,
    ForbiddenApp,
    Manifest,
    Mechanism,
    Profile,
    ToolDefinition,
)

__all__ = [
    "ALL_PROFILES",
    # report.py
    "CertificationReport",
    # tool.py
    "ForbiddenApp",
    "InstallOutcome",
    "InstallReport",
    "LEGACY_MECHANISM_NAMES",
    "Manifest",
    "Mechanism",
    "Profile",
    "SecurityFinding",
    # settings.py
    "Settings",
    "ToolDefinition",
    "VerifyResult",
]
