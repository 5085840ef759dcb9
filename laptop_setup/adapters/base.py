"""
Executor base — the capability contract between setup logic and the host.

Every external effect of laptop-setup (running a package manager,
probing a path, downloading an installer, writing a shell profile)
goes through a CommandExecutor.  The verifiers and installers never
touch ``subprocess``, ``os`` or the network directly, so the whole
dispatch layer runs against the in-memory MockExecutor in tests.

Executors NEVER raise for an external failure: a failed command or
download comes back as a CommandResult with ``ok=False``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel


class CommandResult(BaseModel):
    """Outcome of one command, download or fetch."""

    ok: bool
    returncode: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None
    duration_ms: int = 0

    @classmethod
    def success(cls, stdout: str = "", **kwargs) -> CommandResult:
        """Create a success result."""
        return cls(ok=True, returncode=kwargs.pop("returncode", 0), stdout=stdout, **kwargs)

    @classmethod
    def failure(cls, error: str, **kwargs) -> CommandResult:
        """Create a failure result."""
        return cls(ok=False, error=error, **kwargs)

    def summary(self) -> str:
        """One-line description of a failure, for reports."""
        if self.ok:
            return "ok"
        detail = self.stderr.strip().splitlines()[-1] if self.stderr.strip() else ""
        if self.error and detail:
            return f"{self.error}: {detail}"
        return self.error or detail or f"exit {self.returncode}"


class CommandExecutor(ABC):
    """Abstract host capabilities.

    To add a new executor:
        1. Subclass CommandExecutor
        2. Implement every abstract method
        3. Hand it to ``Host`` (see ``core.services.setup.mechanisms.base``)
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Executor identifier (e.g. 'subprocess', 'mock')."""

    @property
    @abstractmethod
    def home(self) -> Path:
        """Home directory of the invoking user."""

    @property
    @abstractmethod
    def host_os(self) -> str:
        """``sys.platform`` of the host (darwin, linux, win32)."""

    # ── Processes ───────────────────────────────────────────────

    @abstractmethod
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
        """Run a command.  ``capture=False`` streams output to the terminal."""

    @abstractmethod
    def which(self, command: str) -> str | None:
        """Resolve a command on the search path."""

    @abstractmethod
    def is_root(self) -> bool:
        """Whether the process runs with root privileges."""

    # ── Filesystem ──────────────────────────────────────────────

    @abstractmethod
    def exists(self, path: Path) -> bool:
        """Whether anything (file, dir, symlink) exists at ``path``."""

    @abstractmethod
    def is_file(self, path: Path) -> bool: ...

    @abstractmethod
    def is_dir(self, path: Path) -> bool: ...

    @abstractmethod
    def is_symlink(self, path: Path) -> bool: ...

    @abstractmethod
    def readlink(self, path: Path) -> str | None:
        """Target of a symlink, or None if ``path`` is not one."""

    @abstractmethod
    def read_text(self, path: Path) -> str:
        """File contents, or "" when the file is missing or unreadable."""

    @abstractmethod
    def write_text(self, path: Path, text: str, *, mode: int = 0o644) -> CommandResult: ...

    @abstractmethod
    def append_text(self, path: Path, text: str) -> CommandResult: ...

    @abstractmethod
    def make_dirs(self, path: Path) -> CommandResult: ...

    @abstractmethod
    def make_executable(self, path: Path) -> CommandResult:
        """``chmod u+x``."""

    @abstractmethod
    def symlink(self, target: Path, link: Path, *, sudo: bool = False) -> CommandResult:
        """Create or replace ``link`` -> ``target`` (``ln -sf``)."""

    @abstractmethod
    def remove(self, path: Path, *, sudo: bool = False) -> CommandResult:
        """Remove a file; a missing file is not an error."""

    # ── Network ─────────────────────────────────────────────────

    @abstractmethod
    def download(self, url: str, dest: Path) -> CommandResult:
        """Download ``url`` into ``dest``."""

    @abstractmethod
    def fetch_text(self, url: str) -> CommandResult:
        """Fetch ``url``; the body is returned in ``stdout``."""

    # ── Misc ────────────────────────────────────────────────────

    @abstractmethod
    def sleep(self, seconds: float) -> None: ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
