"""
Shell profile lines — put the Cloud SDK on PATH for future shells.

Writes are IDEMPOTENT: a line is appended only when no existing line
of the profile has the same (stripped) content, so repeated installs
and repeated PATH repairs never duplicate ``source`` lines.
"""

from __future__ import annotations

import logging
from pathlib import Path

from laptop_setup.adapters.base import CommandExecutor
from laptop_setup.core.services.setup.host import Host

logger = logging.getLogger(__name__)

_MARKER = "# Added by laptop-setup"


def cloud_sdk_profile_lines(sdk_dir: Path, shell: str) -> list[str]:
    """``source`` lines for the SDK's PATH and completion snippets."""
    return [
        f"source '{sdk_dir}/path.{shell}.inc'",
        f"source '{sdk_dir}/completion.{shell}.inc'",
    ]


def append_source_lines(executor: CommandExecutor, path: Path, lines: list[str]) -> int:
    """Append the lines not already present in ``path``.

    Returns:
        Number of lines written (0 when everything was present).
    """
    existing = {ln.strip() for ln in executor.read_text(path).splitlines()}
    new_lines = [ln for ln in lines if ln.strip() and ln.strip() not in existing]
    if not new_lines:
        logger.debug("%s already has all %d line(s)", path, len(lines))
        return 0

    current = executor.read_text(path)
    prefix = "" if not current or current.endswith("\n") else "\n"
    block = prefix + "\n".join([_MARKER, *new_lines]) + "\n"
    result = executor.append_text(path, block)
    if not result.ok:
        logger.warning("Could not update %s: %s", path, result.summary())
        return 0

    logger.info("Added %d line(s) to %s", len(new_lines), path)
    return len(new_lines)


def ensure_cloud_sdk_on_path(host: Host, sdk_dir: Path) -> int:
    """Source the SDK from the bash profile, and from ~/.zshrc when it exists.

    Returns:
        Total number of lines written.
    """
    ex = host.executor
    written = append_source_lines(
        ex, host.platform.bash_profile(), cloud_sdk_profile_lines(sdk_dir, "bash"),
    )
    zshrc = ex.home / ".zshrc"
    if ex.is_file(zshrc):
        written += append_source_lines(ex, zshrc, cloud_sdk_profile_lines(sdk_dir, "zsh"))
    return written
