"""
Subprocess executor — the real host implementation.

This is the SINGLE PLACE where ``subprocess.run`` is called and where
installers are downloaded.  All sudo handling, logging, timeouts and
error capture are centralised here.

Sudo policy:
    - ``sudo`` is prefixed only when the step needs it and we are not
      already root; the password prompt goes to the terminal (sudo reads
      /dev/tty), it is never piped or stored.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import subprocess
import sys
import time
import urllib.error
import urllib.parse
import urllib.request
from pathlib import Path

from laptop_setup import __version__
from laptop_setup.adapters.base import CommandExecutor, CommandResult

logger = logging.getLogger(__name__)

_USER_AGENT = f"laptop-setup/{__version__}"
_CHUNK = 64 * 1024


def _redact_url(url: str) -> str:
    """Hide query-string values (access keys) from log output."""
    parts = urllib.parse.urlsplit(url)
    if not parts.query:
        return url
    query = "&".join(
        f"{k}=***" for k, _ in urllib.parse.parse_qsl(parts.query, keep_blank_values=True)
    )
    return urllib.parse.urlunsplit(parts._replace(query=query))


class SubprocessExecutor(CommandExecutor):
    """Run commands and touch files on the real machine.

    Args:
        default_timeout: Timeout for commands that don't pass one.
        download_timeout: Socket timeout for downloads.
    """

    def __init__(self, default_timeout: int | None = 60, download_timeout: int = 60):
        self._default_timeout = default_timeout
        self._download_timeout = download_timeout

    @property
    def name(self) -> str:
        return "subprocess"

    @property
    def home(self) -> Path:
        return Path.home()

    @property
    def host_os(self) -> str:
        return sys.platform

    # ── Processes ───────────────────────────────────────────────

    def run(
        self,
        cmd: list[str],
        *,
        sudo: bool = False,
        input_text: str | None = None,
        cwd: Path | None = None,
        timeout: int | None = None,
        capture: bool = True,
    ) -> CommandResult:
        if sudo and not self.is_root():
            cmd = ["sudo"] + list(cmd)

        effective_timeout = timeout if timeout is not None else self._default_timeout
        logger.debug("Executing: %s (cwd=%s)", " ".join(cmd), cwd)
        start = time.monotonic()

        try:
            result = subprocess.run(
                cmd,
                capture_output=capture,
                text=True,
                input=input_text,
                cwd=str(cwd) if cwd else None,
                timeout=effective_timeout,
            )
        except subprocess.TimeoutExpired:
            return CommandResult.failure(
                f"Command timed out after {effective_timeout}s",
                duration_ms=int((time.monotonic() - start) * 1000),
            )
        except FileNotFoundError:
            return CommandResult.failure(f"Command not found: {cmd[0]}", returncode=127)
        except OSError as e:
            return CommandResult.failure(f"Command execution error: {e}")

        elapsed_ms = int((time.monotonic() - start) * 1000)
        stdout = result.stdout or ""
        stderr = result.stderr or ""

        if result.returncode == 0:
            return CommandResult.success(stdout, stderr=stderr, duration_ms=elapsed_ms)

        logger.debug("Command failed (exit %d): %s", result.returncode, stderr[-500:])
        return CommandResult(
            ok=False,
            returncode=result.returncode,
            stdout=stdout,
            stderr=stderr,
            error=f"Command failed (exit {result.returncode})",
            duration_ms=elapsed_ms,
        )

    def which(self, command: str) -> str | None:
        return shutil.which(command)

    def is_root(self) -> bool:
        # Windows has no euid; the root check only applies to POSIX hosts
        return hasattr(os, "geteuid") and os.geteuid() == 0

    # ── Filesystem ──────────────────────────────────────────────

    def exists(self, path: Path) -> bool:
        return path.exists() or path.is_symlink()

    def is_file(self, path: Path) -> bool:
        return path.is_file()

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def is_symlink(self, path: Path) -> bool:
        return path.is_symlink()

    def readlink(self, path: Path) -> str | None:
        try:
            return os.readlink(path)
        except OSError:
            return None

    def read_text(self, path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return ""

    def write_text(self, path: Path, text: str, *, mode: int = 0o644) -> CommandResult:
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.chmod(path, mode)
        except OSError as e:
            return CommandResult.failure(f"Cannot write {path}: {e}")
        return CommandResult.success()

    def append_text(self, path: Path, text: str) -> CommandResult:
        try:
            with open(path, "a", encoding="utf-8") as f:
                f.write(text)
        except OSError as e:
            return CommandResult.failure(f"Cannot append to {path}: {e}")
        return CommandResult.success()

    def make_dirs(self, path: Path) -> CommandResult:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return CommandResult.failure(f"Cannot create {path}: {e}")
        return CommandResult.success()

    def make_executable(self, path: Path) -> CommandResult:
        try:
            path.chmod(path.stat().st_mode | stat.S_IXUSR)
        except OSError as e:
            return CommandResult.failure(f"Cannot chmod {path}: {e}")
        return CommandResult.success()

    def symlink(self, target: Path, link: Path, *, sudo: bool = False) -> CommandResult:
        if sudo:
            return self.run(["ln", "-sf", str(target), str(link)], sudo=True)
        try:
            if link.is_symlink() or link.exists():
                link.unlink()
            link.symlink_to(target)
        except OSError as e:
            return CommandResult.failure(f"Cannot link {link} -> {target}: {e}")
        return CommandResult.success()

    def remove(self, path: Path, *, sudo: bool = False) -> CommandResult:
        if sudo:
            return self.run(["rm", "-f", str(path)], sudo=True)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            return CommandResult.failure(f"Cannot remove {path}: {e}")
        return CommandResult.success()

    # ── Network ─────────────────────────────────────────────────

    def download(self, url: str, dest: Path) -> CommandResult:
        logger.info("Downloading %s -> %s", _redact_url(url), dest)
        start = time.monotonic()
        req = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            with urllib.request.urlopen(req, timeout=self._download_timeout) as resp, \
                    open(dest, "wb") as f:
                for chunk in iter(lambda: resp.read(_CHUNK), b""):
                    f.write(chunk)
        except (urllib.error.URLError, OSError) as e:
            return CommandResult.failure(f"Download failed for {_redact_url(url)}: {e}")
        return CommandResult.success(
            str(dest), duration_ms=int((time.monotonic() - start) * 1000),
        )

    def fetch_text(self, url: str) -> CommandResult:
        logger.info("Fetching %s", _redact_url(url))
        req = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
        try:
            with urllib.request.urlopen(req, timeout=self._download_timeout) as resp:
                body = resp.read().decode("utf-8", errors="replace")
        except (urllib.error.URLError, OSError) as e:
            return CommandResult.failure(f"Fetch failed for {_redact_url(url)}: {e}")
        return CommandResult.success(body)

    # ── Misc ────────────────────────────────────────────────────

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)
