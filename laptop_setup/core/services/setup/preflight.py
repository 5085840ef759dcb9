"""
Preflight — fatal checks before any tool is touched.

Each check raises PreflightError; the use case turns it into an error
message and exit status 1.
"""

from __future__ import annotations

from laptop_setup.core.services.setup.platforms import Platform


class PreflightError(Exception):
    """The run cannot proceed on this host."""


def check_not_root(platform: Platform) -> None:
    """Refuse to run as root; installers escalate with sudo themselves."""
    if platform.executor.is_root():
        raise PreflightError(
            "Do not run laptop-setup as root or with sudo. "
            "It asks for your password when it needs elevated access."
        )


def check_host(platform: Platform) -> None:
    """The selected manifest must match the running operating system."""
    if not platform.matches_host():
        raise PreflightError(
            f"The {platform.label} setup cannot run on this host "
            f"({platform.executor.host_os})."
        )


def check_requirements(platform: Platform) -> None:
    """All base commands the platform relies on must be on PATH."""
    missing = [c for c in platform.required_commands if not platform.executor.which(c)]
    if missing:
        raise PreflightError(
            "Required command(s) not found: " + ", ".join(missing)
            + ". Install them and run laptop-setup again."
        )


def run_preflight(platform: Platform) -> None:
    """Run every preflight check; the first failure wins."""
    check_not_root(platform)
    check_host(platform)
    check_requirements(platform)
