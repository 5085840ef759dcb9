"""
Tests for the per-OS platform probes and platform detection.
"""

from pathlib import Path

import pytest

from laptop_setup.adapters.mock import MockExecutor
from laptop_setup.core.services.setup.platforms import (
    MacOSPlatform,
    UnsupportedPlatform,
    WindowsPlatform,
    WSLPlatform,
    detect_platform,
    get_platform,
)

BREW = "/opt/homebrew/bin/brew"
PS = ["powershell.exe", "-NoProfile", "-NonInteractive", "-Command"]
WSL_VERSION = "Linux version 5.15.153.1-microsoft-standard-WSL2 (gcc) #1 SMP"


def _wsl_mock() -> MockExecutor:
    mock = MockExecutor(home="/home/tester", host_os="linux")
    mock.add_file("/proc/version", WSL_VERSION)
    return mock


class TestMacOSPlatform:
    def test_brew_found_outside_path(self):
        mock = MockExecutor()
        mock.add_file(BREW, mode=0o755)
        mock.set_response([BREW, "--version"], stdout="Homebrew 4.3.0")
        assert MacOSPlatform(mock).manager_available()

    def test_no_brew(self):
        assert not MacOSPlatform(MockExecutor()).manager_available()

    def test_package_installed_formula_vs_cask(self):
        mock = MockExecutor()
        mock.add_command("brew", BREW)
        mock.set_response([BREW, "list", "--formula", "jq"])
        platform = MacOSPlatform(mock)
        assert platform.package_installed("jq")
        assert not platform.package_installed("jq", cask=True)

    def test_install_cask(self):
        mock = MockExecutor()
        mock.add_command("brew", BREW)
        mock.set_response([BREW, "install"])
        assert MacOSPlatform(mock).install_package("slack", cask=True).ok
        assert mock.ran([BREW, "install", "--cask", "slack"])

    def test_bootstrap_runs_install_script(self):
        mock = MockExecutor()
        mock.add_url("https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh", "echo brew")
        mock.set_response(["/bin/bash", "-c"])
        assert MacOSPlatform(mock).bootstrap_manager().ok
        assert mock.ran(["/bin/bash", "-c", "echo brew"])

    def test_app_installed_in_either_dir(self):
        mock = MockExecutor(home="/Users/tester")
        mock.add_dir("/Users/tester/Applications/Slack.app")
        platform = MacOSPlatform(mock)
        assert platform.app_installed("Slack")
        assert not platform.app_installed("Docker")

    def test_process_running_ignores_grep(self):
        mock = MockExecutor()
        mock.set_response(["ps", "-ef"], stdout="  501 77 1 0 grep amagent\n")
        assert not MacOSPlatform(mock).process_running("amagent")
        mock.set_response(["ps", "-ef"], stdout="    0 61 1 0 /usr/local/bin/amagent\n")
        assert MacOSPlatform(mock).process_running("amagent")

    def test_install_package_file_uses_sudo(self):
        mock = MockExecutor()
        mock.set_response(["/usr/sbin/installer"])
        assert MacOSPlatform(mock).install_package_file(Path("/tmp/agent.pkg")).ok
        call = mock.calls("run")[-1]
        assert call.args == ("/usr/sbin/installer", "-pkg", "/tmp/agent.pkg", "-target", "/")
        assert call.sudo

    def test_layout(self):
        platform = MacOSPlatform(MockExecutor(home="/Users/tester"))
        assert platform.cloud_sdk_parent() == Path("/Users/tester/Applications")
        assert platform.bash_profile() == Path("/Users/tester/.bash_profile")


class TestWSLPlatform:
    def test_matches_only_wsl(self):
        assert WSLPlatform(_wsl_mock()).matches_host()
        assert not WSLPlatform(MockExecutor(host_os="linux")).matches_host()

    def test_dpkg_status(self):
        mock = _wsl_mock()
        mock.set_response(["dpkg", "-s", "jq"], stdout="Package: jq\nStatus: install ok installed\n")
        mock.set_response(["dpkg", "-s", "gh"], stdout="Package: gh\nStatus: deinstall ok config-files\n")
        platform = WSLPlatform(mock)
        assert platform.package_installed("jq")
        assert not platform.package_installed("gh")

    def test_apt_update_runs_once(self):
        mock = _wsl_mock()
        mock.set_response(["apt-get"])
        platform = WSLPlatform(mock)
        platform.install_package("jq")
        platform.install_package("gh")
        updates = [c for c in mock.calls("run") if c.args[:2] == ("apt-get", "update")]
        assert len(updates) == 1
        assert updates[0].sudo
        assert mock.ran(["apt-get", "install", "-y", "gh"])

    def test_winget_for_gui_apps(self):
        mock = _wsl_mock()
        mock.set_response(PS, stdout="Name  Id                       Version\nSlack SlackTechnologies.Slack 4.41\n")
        assert WSLPlatform(mock).package_installed("SlackTechnologies.Slack", cask=True)

    def test_service_running(self):
        mock = _wsl_mock()
        mock.set_response(PS, stdout="Running\n")
        assert WSLPlatform(mock).process_running("Automox", "Automox")

    def test_nothing_running(self):
        mock = _wsl_mock()
        mock.set_response(PS, stdout="")
        assert not WSLPlatform(mock).process_running("Automox", "Automox")

    def test_apt_cannot_be_bootstrapped(self):
        assert not WSLPlatform(_wsl_mock()).bootstrap_manager().ok


class TestWindowsPlatform:
    def test_choco_list_exact(self):
        mock = MockExecutor(host_os="win32")
        mock.set_response(["choco", "list"], stdout="jquery|3.7.1\n")
        assert not WindowsPlatform(mock).package_installed("jq")
        mock.set_response(["choco", "list"], stdout="jq|1.7.1\n")
        assert WindowsPlatform(mock).package_installed("jq")

    def test_install(self):
        mock = MockExecutor(host_os="win32")
        mock.set_response(["choco", "install"])
        assert WindowsPlatform(mock).install_package("slack", cask=True).ok
        assert mock.ran(["choco", "install", "slack", "-y"])


class TestDetection:
    def test_macos(self):
        assert detect_platform(MockExecutor(host_os="darwin")).name == "macos"

    def test_windows(self):
        assert detect_platform(MockExecutor(host_os="win32")).name == "windows"

    def test_wsl(self):
        assert detect_platform(_wsl_mock()).name == "wsl"

    def test_plain_linux_unsupported(self):
        with pytest.raises(UnsupportedPlatform, match="Unsupported operating system"):
            detect_platform(MockExecutor(host_os="linux"))

    def test_get_platform(self):
        assert isinstance(get_platform("wsl", MockExecutor()), WSLPlatform)
        with pytest.raises(UnsupportedPlatform, match="Choose one of"):
            get_platform("freebsd", MockExecutor())
