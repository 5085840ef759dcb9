"""
Setup service — certify or install a platform manifest.

Re-exports the entry points used by the use case and the tests.
"""

from laptop_setup.core.services.setup.host import Host
from laptop_setup.core.services.setup.orchestrator import (
    certify,
    install,
    install_tool,
    verify_tool,
)
from laptop_setup.core.services.setup.platforms import (
    PLATFORMS,
    Platform,
    UnsupportedPlatform,
    detect_platform,
    get_platform,
)
from laptop_setup.core.services.setup.preflight import PreflightError, run_preflight
from laptop_setup.core.services.setup.profiles import (
    InvalidProfile,
    filter_manifest,
    resolve_profile,
)

__all__ = [
    "Host",
    "certify",
    "install",
    "install_tool",
    "verify_tool",
    "PLATFORMS",
    "Platform",
    "UnsupportedPlatform",
    "detect_platform",
    "get_platform",
    "PreflightError",
    "run_preflight",
    "InvalidProfile",
    "filter_manifest",
    "resolve_profile",
]
