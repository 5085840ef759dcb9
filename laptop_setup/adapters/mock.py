"""
Mock executor — in-memory test double for the host.

Simulates a filesystem, the search path, command responses and
remote URLs without touching the real machine.  Every call is
recorded so tests can assert what was (or was NOT) attempted, e.g.
"no download happened when the secret was missing".

Scripted responses match on a command prefix and may carry a side
effect, which is how tests make an install "take":

    mock.set_response(["brew", "install", "jq"], effect=lambda m, cmd: m.add_command("jq"))
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from laptop_setup.adapters.base import CommandExecutor, CommandResult

Effect = Callable[["MockExecutor", list[str]], None]


@dataclass
class MockCall:
    """One recorded executor call."""

    kind: str                       # run, download, fetch, symlink, write, remove, ...
    args: tuple[str, ...]
    sudo: bool = False
    input_text: str | None = None


@dataclass
class _Response:
    prefix: tuple[str, ...]
    result: CommandResult
    effect: Effect | None = None


@dataclass
class _FakeFS:
    files: dict[str, str] = field(default_factory=dict)
    modes: dict[str, int] = field(default_factory=dict)
    dirs: set[str] = field(default_factory=set)
    links: dict[str, str] = field(default_factory=dict)


def _key(path: Path | str) -> str:
    return str(Path(path))


class MockExecutor(CommandExecutor):
    """Universal fake host for testing.

    It starts as a bare host: unscripted commands fail as "not found",
    every filesystem probe is negative and every URL is unreachable.
    """

    def __init__(
        self,
        home: str = "/home/tester",
        host_os: str = "darwin",
        root: bool = False,
    ):
        self._home = Path(home)
        self._host_os = host_os
        self._root = root
        self.fs = _FakeFS()
        self.commands: dict[str, str] = {}
        self.urls: dict[str, str] = {}
        self.sleeps: list[float] = []
        self._responses: list[_Response] = []
        self._call_log: list[MockCall] = []
        self.add_dir(self._home)

    @property
    def name(self) -> str:
        return "mock"

    @property
    def home(self) -> Path:
        return self._home

    @property
    def host_os(self) -> str:
        return self._host_os

    # ── Configuration helpers ───────────────────────────────────

    def add_dir(self, path: Path | str) -> None:
        p = Path(path)
        for parent in [p, *p.parents]:
            self.fs.dirs.add(_key(parent))

    def add_file(self, path: Path | str, content: str = "", mode: int = 0o644) -> None:
        p = Path(path)
        self.add_dir(p.parent)
        self.fs.files[_key(p)] = content
        self.fs.modes[_key(p)] = mode

    def add_command(self, command: str, path: str | None = None) -> str:
        """Make ``command`` resolvable on the search path."""
        resolved = path or f"/usr/local/bin/{command}"
        self.commands[command] = resolved
        self.add_file(resolved, mode=0o755)
        return resolved

    def remove_command(self, command: str) -> None:
        self.commands.pop(command, None)

    def add_url(self, url: str, body: str = "") -> None:
        self.urls[url] = body

    def set_response(
        self,
        prefix: list[str],
        result: CommandResult | None = None,
        *,
        stdout: str = "",
        effect: Effect | None = None,
    ) -> None:
        """Script the response for commands starting with ``prefix``.

        Later registrations win over earlier ones.
        """
        self._responses.append(_Response(
            prefix=tuple(prefix),
            result=result or CommandResult.success(stdout),
            effect=effect,
        ))

    def set_failure(self, prefix: list[str], error: str = "Mock failure", returncode: int = 1) -> None:
        """Configure commands starting with ``prefix`` to fail."""
        self.set_response(prefix, CommandResult(ok=False, returncode=returncode, error=error))

    # ── Call log ────────────────────────────────────────────────

    @property
    def call_log(self) -> list[MockCall]:
        """All calls this mock has received."""
        return self._call_log

    def calls(self, kind: str) -> list[MockCall]:
        return [c for c in self._call_log if c.kind == kind]

    def ran(self, prefix: list[str]) -> bool:
        """Whether any run() call started with ``prefix``."""
        p = tuple(prefix)
        return any(c.args[:len(p)] == p for c in self.calls("run"))

    def reset(self) -> None:
        self._call_log.clear()
        self.sleeps.clear()

    def _log(self, kind: str, *args: str, sudo: bool = False, input_text: str | None = None) -> None:
        self._call_log.append(MockCall(kind=kind, args=tuple(args), sudo=sudo, input_text=input_text))

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
        self._log("run", *cmd, sudo=sudo, input_text=input_text)
        for response in reversed(self._responses):
            if tuple(cmd[:len(response.prefix)]) == response.prefix:
                if response.effect is not None:
                    response.effect(self, list(cmd))
                return response.result
        return CommandResult(
            ok=False,
            returncode=127,
            error=f"Command not found: {cmd[0] if cmd else ''}",
        )

    def which(self, command: str) -> str | None:
        return self.commands.get(command)

    def is_root(self) -> bool:
        return self._root

    # ── Filesystem ──────────────────────────────────────────────

    def _resolve(self, path: Path) -> str:
        key = _key(path)
        for _ in range(10):
            if key not in self.fs.links:
                break
            key = self.fs.links[key]
        return key

    def exists(self, path: Path) -> bool:
        key = _key(path)
        return key in self.fs.files or key in self.fs.dirs or key in self.fs.links

    def is_file(self, path: Path) -> bool:
        return self._resolve(path) in self.fs.files

    def is_dir(self, path: Path) -> bool:
        return self._resolve(path) in self.fs.dirs

    def is_symlink(self, path: Path) -> bool:
        return _key(path) in self.fs.links

    def readlink(self, path: Path) -> str | None:
        return self.fs.links.get(_key(path))

    def read_text(self, path: Path) -> str:
        return self.fs.files.get(self._resolve(path), "")

    def write_text(self, path: Path, text: str, *, mode: int = 0o644) -> CommandResult:
        self._log("write", _key(path))
        self.add_file(path, text, mode)
        return CommandResult.success()

    def append_text(self, path: Path, text: str) -> CommandResult:
        self._log("append", _key(path))
        key = _key(path)
        self.add_file(path, self.fs.files.get(key, "") + text, self.fs.modes.get(key, 0o644))
        return CommandResult.success()

    def make_dirs(self, path: Path) -> CommandResult:
        self._log("mkdir", _key(path))
        self.add_dir(path)
        return CommandResult.success()

    def make_executable(self, path: Path) -> CommandResult:
        self._log("chmod", _key(path))
        key = self._resolve(path)
        if key not in self.fs.files:
            return CommandResult.failure(f"Cannot chmod {path}: no such file")
        self.fs.modes[key] = self.fs.modes.get(key, 0o644) | 0o100
        return CommandResult.success()

    def symlink(self, target: Path, link: Path, *, sudo: bool = False) -> CommandResult:
        self._log("symlink", _key(target), _key(link), sudo=sudo)
        self.add_dir(Path(link).parent)
        self.fs.files.pop(_key(link), None)
        self.fs.links[_key(link)] = _key(target)
        return CommandResult.success()

    def remove(self, path: Path, *, sudo: bool = False) -> CommandResult:
        self._log("remove", _key(path), sudo=sudo)
        key = _key(path)
        self.fs.files.pop(key, None)
        self.fs.links.pop(key, None)
        return CommandResult.success()

    def mode_of(self, path: Path | str) -> int | None:
        return self.fs.modes.get(_key(path))

    # ── Network ─────────────────────────────────────────────────

    def download(self, url: str, dest: Path) -> CommandResult:
        self._log("download", url, _key(dest))
        if url not in self.urls:
            return CommandResult.failure(f"Download failed for {url}: unreachable")
        self.add_file(dest, self.urls[url])
        return CommandResult.success(_key(dest))

    def fetch_text(self, url: str) -> CommandResult:
        self._log("fetch", url)
        if url not in self.urls:
            return CommandResult.failure(f"Fetch failed for {url}: unreachable")
        return CommandResult.success(self.urls[url])

    @property
    def network_calls(self) -> list[MockCall]:
        return [c for c in self._call_log if c.kind in ("download", "fetch")]

    # ── Misc ────────────────────────────────────────────────────

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
