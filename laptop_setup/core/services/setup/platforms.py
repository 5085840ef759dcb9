"""
Platforms — per-OS package manager and probe commands.

The mechanisms are platform-neutral: "install this CLI package",
"is this app present", "is this agent running".  A Platform turns
those questions into the host's concrete commands:

    macos    Homebrew formulae and casks, /Applications, ``ps -ef``
    wsl      apt inside Linux, winget + registry through powershell.exe
    windows  Chocolatey, registry and services through powershell

All probes go through the injected CommandExecutor.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from laptop_setup.adapters.base import CommandExecutor, CommandResult

logger = logging.getLogger(__name__)

HOMEBREW_INSTALL_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
CHOCOLATEY_INSTALL_URL = "https://community.chocolatey.org/install.ps1"

# Where brew lives before the shell profile puts it on PATH
_BREW_LOCATIONS = ("/opt/homebrew/bin/brew", "/usr/local/bin/brew")

_UNINSTALL_KEYS = (
    r"HKLM:\Software\Microsoft\Windows\CurrentVersion\Uninstall\*",
    r"HKLM:\Software\Wow6432Node\Microsoft\Windows\CurrentVersion\Uninstall\*",
    r"HKCU:\Software\Microsoft\Windows\CurrentVersion\Uninstall\*",
)


class UnsupportedPlatform(Exception):
    """Raised when the host OS has no manifest/platform support."""


class Platform(ABC):
    """Abstract per-OS operations.

    Subclasses declare ``name``, ``label``, ``package_manager`` and
    ``required_commands`` and implement the probes.
    """

    name: str = ""
    label: str = ""
    package_manager: str = ""
    required_commands: tuple[str, ...] = ()

    def __init__(self, executor: CommandExecutor, install_timeout: int | None = 3600):
        self.executor = executor
        self.install_timeout = install_timeout

    @abstractmethod
    def matches_host(self) -> bool:
        """Whether the running host is this platform."""

    # ── Package manager ─────────────────────────────────────────

    @abstractmethod
    def manager_available(self) -> bool:
        """Whether the package manager's version command succeeds."""

    @abstractmethod
    def bootstrap_manager(self) -> CommandResult:
        """Install the package manager itself."""

    @abstractmethod
    def package_installed(self, package: str, *, cask: bool = False) -> bool:
        """Whether the package manager reports ``package`` installed."""

    @abstractmethod
    def install_package(self, package: str, *, cask: bool = False) -> CommandResult:
        """Run the package manager's install subcommand."""

    # ── Applications and processes ──────────────────────────────

    def app_dirs(self) -> list[Path]:
        """Directories holding GUI application bundles."""
        return []

    @abstractmethod
    def app_installed(self, app_name: str) -> bool:
        """Fallback check for an application installed outside the manager."""

    @abstractmethod
    def process_running(self, process: str, service: str | None = None) -> bool:
        """Whether a service named ``service`` or a ``process`` is running."""

    def install_package_file(self, path: Path) -> CommandResult:
        """Run the OS installer against a downloaded package file."""
        return CommandResult.failure(f"Package file installs are not supported on {self.label}")

    # ── Cloud SDK layout ────────────────────────────────────────

    def cloud_sdk_parent(self) -> Path:
        """Directory the Cloud SDK installer unpacks into."""
        return self.executor.home

    def bash_profile(self) -> Path:
        """Profile file that receives bash PATH lines."""
        return self.executor.home / ".bashrc"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


# ── macOS ───────────────────────────────────────────────────────


class MacOSPlatform(Platform):
    """Homebrew on macOS."""

    name = "macos"
    label = "MacOS"
    package_manager = "Homebrew"
    required_commands = ("bash", "ps", "sudo")

    def matches_host(self) -> bool:
        return self.executor.host_os == "darwin"

    def _brew(self) -> str:
        found = self.executor.which("brew")
        if found:
            return found
        for candidate in _BREW_LOCATIONS:
            if self.executor.is_file(Path(candidate)):
                return candidate
        return "brew"

    def manager_available(self) -> bool:
        return self.executor.run([self._brew(), "--version"]).ok

    def bootstrap_manager(self) -> CommandResult:
        script = self.executor.fetch_text(HOMEBREW_INSTALL_URL)
        if not script.ok:
            return script
        return self.executor.run(
            ["/bin/bash", "-c", script.stdout],
            timeout=self.install_timeout,
            capture=False,
        )

    def package_installed(self, package: str, *, cask: bool = False) -> bool:
        kind = "--cask" if cask else "--formula"
        return self.executor.run([self._brew(), "list", kind, package]).ok

    def install_package(self, package: str, *, cask: bool = False) -> CommandResult:
        cmd = [self._brew(), "install"]
        if cask:
            cmd.append("--cask")
        cmd.append(package)
        return self.executor.run(cmd, timeout=self.install_timeout, capture=False)

    def app_dirs(self) -> list[Path]:
        return [Path("/Applications"), self.executor.home / "Applications"]

    def app_installed(self, app_name: str) -> bool:
        bundle = app_name if app_name.endswith(".app") else f"{app_name}.app"
        return any(self.executor.is_dir(d / bundle) for d in self.app_dirs())

    def process_running(self, process: str, service: str | None = None) -> bool:
        result = self.executor.run(["ps", "-ef"])
        if not result.ok:
            return False
        for line in result.stdout.splitlines():
            if process in line and "grep" not in line:
                return True
        return False

    def install_package_file(self, path: Path) -> CommandResult:
        return self.executor.run(
            ["/usr/sbin/installer", "-pkg", str(path), "-target", "/"],
            sudo=True,
            timeout=self.install_timeout,
            capture=False,
        )

    def cloud_sdk_parent(self) -> Path:
        return self.executor.home / "Applications"

    def bash_profile(self) -> Path:
        return self.executor.home / ".bash_profile"


# ── Windows (shared PowerShell probes) ──────────────────────────


def _ps_quote(value: str) -> str:
    """Quote a value for a single-quoted PowerShell string."""
    return "'" + value.replace("'", "''") + "'"


class _PowerShellPlatform(Platform):
    """Registry, Appx, service and process probes via PowerShell."""

    powershell = "powershell"

    def _ps(self, script: str, *, timeout: int | None = None, capture: bool = True) -> CommandResult:
        return self.executor.run(
            [self.powershell, "-NoProfile", "-NonInteractive", "-Command", script],
            timeout=timeout,
            capture=capture,
        )

    def app_installed(self, app_name: str) -> bool:
        pattern = _ps_quote(f"*{app_name}*")
        registry = self._ps(
            "Get-ItemProperty "
            + ", ".join(_UNINSTALL_KEYS)
            + " -ErrorAction SilentlyContinue"
            + f" | Where-Object {{ $_.DisplayName -like {pattern} }}"
            + " | Select-Object -ExpandProperty DisplayName"
        )
        if registry.ok and registry.stdout.strip():
            return True
        appx = self._ps(f"Get-AppxPackage -Name {pattern} | Select-Object -ExpandProperty PackageFullName")
        return appx.ok and bool(appx.stdout.strip())

    def process_running(self, process: str, service: str | None = None) -> bool:
        if service:
            status = self._ps(
                f"Get-Service -Name {_ps_quote(service)} -ErrorAction SilentlyContinue"
                " | Select-Object -ExpandProperty Status"
            )
            if status.ok and "Running" in status.stdout:
                return True
        proc = self._ps(
            f"Get-Process -Name {_ps_quote(process + '*')} -ErrorAction SilentlyContinue"
            " | Select-Object -ExpandProperty ProcessName"
        )
        return proc.ok and bool(proc.stdout.strip())


# ── WSL ─────────────────────────────────────────────────────────


class WSLPlatform(_PowerShellPlatform):
    """apt inside WSL; Windows GUI apps through winget."""

    name = "wsl"
    label = "Windows WSL"
    package_manager = "apt"
    required_commands = ("bash", "sudo", "dpkg", "powershell.exe")
    powershell = "powershell.exe"

    def __init__(self, executor: CommandExecutor, install_timeout: int | None = 3600):
        super().__init__(executor, install_timeout)
        self._apt_updated = False

    def matches_host(self) -> bool:
        if not self.executor.host_os.startswith("linux"):
            return False
        return "microsoft" in self.executor.read_text(Path("/proc/version")).lower()

    def manager_available(self) -> bool:
        return self.executor.run(["apt-get", "--version"]).ok

    def bootstrap_manager(self) -> CommandResult:
        return CommandResult.failure("apt ships with the distribution and cannot be bootstrapped")

    def package_installed(self, package: str, *, cask: bool = False) -> bool:
        if cask:
            result = self._ps(f"winget list --exact --id {package} --accept-source-agreements")
            return result.ok and package.lower() in result.stdout.lower()
        result = self.executor.run(["dpkg", "-s", package])
        return result.ok and "install ok installed" in result.stdout

    def install_package(self, package: str, *, cask: bool = False) -> CommandResult:
        if cask:
            return self._ps(
                f"winget install -e --id {package}"
                " --accept-package-agreements --accept-source-agreements",
                timeout=self.install_timeout,
                capture=False,
            )
        if not self._apt_updated:
            update = self.executor.run(
                ["apt-get", "update"], sudo=True, timeout=self.install_timeout, capture=False,
            )
            if not update.ok:
                logger.warning("apt-get update failed: %s", update.summary())
            self._apt_updated = True
        return self.executor.run(
            ["apt-get", "install", "-y", package],
            sudo=True,
            timeout=self.install_timeout,
            capture=False,
        )


# ── Windows ─────────────────────────────────────────────────────


class WindowsPlatform(_PowerShellPlatform):
    """Chocolatey on native Windows."""

    name = "windows"
    label = "Windows"
    package_manager = "Chocolatey"
    required_commands = ("powershell",)

    def matches_host(self) -> bool:
        return self.executor.host_os == "win32"

    def manager_available(self) -> bool:
        return self.executor.run(["choco", "--version"]).ok

    def bootstrap_manager(self) -> CommandResult:
        return self._ps(
            "Set-ExecutionPolicy Bypass -Scope Process -Force; "
            "[System.Net.ServicePointManager]::SecurityProtocol = "
            "[System.Net.ServicePointManager]::SecurityProtocol -bor 3072; "
            f"iex ((New-Object System.Net.WebClient).DownloadString('{CHOCOLATEY_INSTALL_URL}'))",
            timeout=self.install_timeout,
            capture=False,
        )

    def package_installed(self, package: str, *, cask: bool = False) -> bool:
        result = self.executor.run(["choco", "list", "--exact", "--limit-output", package])
        if not result.ok:
            return False
        prefix = f"{package.lower()}|"
        return any(line.lower().startswith(prefix) for line in result.stdout.splitlines())

    def install_package(self, package: str, *, cask: bool = False) -> CommandResult:
        return self.executor.run(
            ["choco", "install", package, "-y"],
            timeout=self.install_timeout,
            capture=False,
        )


# ── Lookup ──────────────────────────────────────────────────────

PLATFORMS: dict[str, type[Platform]] = {
    MacOSPlatform.name: MacOSPlatform,
    WSLPlatform.name: WSLPlatform,
    WindowsPlatform.name: WindowsPlatform,
}


def get_platform(
    name: str,
    executor: CommandExecutor,
    install_timeout: int | None = 3600,
) -> Platform:
    """Build the named platform.

    Raises:
        UnsupportedPlatform: If ``name`` is not a known platform.
    """
    cls = PLATFORMS.get(name)
    if cls is None:
        choices = ", ".join(sorted(PLATFORMS))
        raise UnsupportedPlatform(f"Unknown platform '{name}'. Choose one of: {choices}.")
    return cls(executor, install_timeout)


def detect_platform(executor: CommandExecutor, install_timeout: int | None = 3600) -> Platform:
    """Pick the platform matching the running host.

    WSL is checked before plain Linux; plain Linux is unsupported.

    Raises:
        UnsupportedPlatform: If no platform matches the host.
    """
    for cls in (MacOSPlatform, WindowsPlatform, WSLPlatform):
        platform = cls(executor, install_timeout)
        if platform.matches_host():
            logger.debug("Detected platform: %s", platform.name)
            return platform
    raise UnsupportedPlatform(
        f"Unsupported operating system: {executor.host_os}. "
        "laptop-setup supports MacOS, Windows and Windows WSL."
    )
