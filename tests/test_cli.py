"""
Tests for the laptop-setup command line.

The executor factory is patched so every run goes against a
MockExecutor; a small manifest and a settings file live in tmp_path.
"""

import json
import logging
import textwrap
from pathlib import Path

import pytest
from click.testing import CliRunner

from laptop_setup import main as main_module
from laptop_setup.adapters.base import CommandResult
from laptop_setup.adapters.mock import MockExecutor
from laptop_setup.main import cli

HOME = "/Users/tester"
BREW = "/opt/homebrew/bin/brew"

MANIFEST = textwrap.dedent("""\
    platform: macos
    tools:
      - id: jq
        display_name: jq
        mechanism: package-manager-cli
        package_name: jq
        verification_command: jq
      - id: gh
        display_name: GitHub CLI
        mechanism: package-manager-cli
        package_name: gh
        verification_command: gh
        profiles: [engineering]
        post_install_notes:
          - "Run 'gh auth login' to sign in."
      - id: automox
        display_name: Automox
        mechanism: process-based-security-agent
        verification_command: amagent
        installer_url: "https://console.example.com/installer?accesskey={secret}"
        secret: automox_key
    forbidden:
      - id: teamviewer
        display_name: TeamViewer
        app_name: TeamViewer
        removal_steps:
          - "Quit TeamViewer."
""")


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def files(tmp_path: Path, monkeypatch) -> dict[str, str]:
    monkeypatch.delenv("LAPTOP_SETUP_AUTOMOX_KEY", raising=False)
    monkeypatch.delenv("LAPTOP_SETUP_SENTINELONE_TOKEN", raising=False)
    manifest = tmp_path / "macos.yml"
    manifest.write_text(MANIFEST)
    config = tmp_path / "config.yml"
    config.write_text("agent_grace_seconds: 0\n")
    return {"manifest": str(manifest), "config": str(config)}


@pytest.fixture
def laptop(monkeypatch) -> MockExecutor:
    """A macOS laptop with Homebrew and the base commands."""
    mock = MockExecutor(home=HOME, host_os="darwin")
    for command in ("bash", "ps", "sudo"):
        mock.add_command(command, f"/bin/{command}")
    mock.add_command("brew", BREW)
    mock.set_response([BREW, "--version"], stdout="Homebrew 4.3.0\n")
    mock.set_response(["ps", "-ef"], stdout="root 12 1 0 /usr/libexec/launchd\n")
    monkeypatch.setattr(main_module, "_make_executor", lambda settings: mock)
    return mock


def _invoke(files, *args):
    return CliRunner().invoke(
        cli, ["--platform", "macos", "--manifest", files["manifest"], "--config", files["config"], *args],
    )


def _fully_installed(mock: MockExecutor) -> None:
    mock.add_command("jq")
    mock.add_command("gh")
    mock.set_response(["ps", "-ef"], stdout="root 61 1 0 /usr/local/bin/amagent\n")


class TestGlobal:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "--certification" in result.output
        assert "--sentinelone-token" in result.output

    def test_short_help(self):
        result = CliRunner().invoke(cli, ["-h"])
        assert result.exit_code == 0

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_unknown_option_exits_1(self):
        result = CliRunner().invoke(cli, ["--frobnicate"])
        assert result.exit_code == 1
        assert "No such option" in result.output

    def test_unknown_platform_exits_1(self):
        result = CliRunner().invoke(cli, ["-c", "--platform", "amiga"])
        assert result.exit_code == 1

    def test_no_action_exits_1(self, files, laptop):
        result = _invoke(files)
        assert result.exit_code == 1
        assert "Nothing to do" in result.output
        assert "Usage:" in result.output
        assert laptop.call_log == []

    def test_bad_profile_exits_1(self, files, laptop):
        result = _invoke(files, "-c", "--profile", "marketing")
        assert result.exit_code == 1
        assert "marketing" in result.output
        assert "Usage:" in result.output

    def test_bad_profile_reported_before_missing_action(self, files, laptop):
        result = _invoke(files, "--profile", "marketing")
        assert result.exit_code == 1
        assert "Invalid profile 'marketing'" in result.output
        assert "Nothing to do" not in result.output
        assert "Usage:" in result.output

    def test_runtime_error_has_no_usage(self, files, monkeypatch):
        mock = MockExecutor(home=HOME, host_os="darwin", root=True)
        monkeypatch.setattr(main_module, "_make_executor", lambda settings: mock)
        result = _invoke(files, "-c")
        assert result.exit_code == 1
        assert "Usage:" not in result.output


class TestCertification:
    def test_all_installed(self, files, laptop):
        _fully_installed(laptop)
        result = _invoke(files, "-c", "--profile", "engineering")
        assert result.exit_code == 0, result.output
        assert "All required tools for profile 'engineering' are installed" in result.output

    def test_missing_tools_exit_1(self, files, laptop):
        laptop.add_command("jq")
        result = _invoke(files, "-c", "--profile", "engineering")
        assert result.exit_code == 1
        assert "2 missing tool(s)" in result.output
        assert "❌ GitHub CLI" in result.output

    def test_profile_scopes_tools(self, files, laptop):
        laptop.add_command("jq")
        result = _invoke(files, "-c", "--profile", "data")
        assert "1 missing tool(s)" in result.output
        assert "GitHub CLI" not in result.output

    def test_security_warning_fails_certification(self, files, laptop):
        _fully_installed(laptop)
        laptop.add_dir("/Applications/TeamViewer.app")
        result = _invoke(files, "-c")
        assert result.exit_code == 1
        assert "TeamViewer is installed" in result.output
        assert "1. Quit TeamViewer." in result.output
        assert "1 security warning(s)" in result.output

    def test_certification_never_installs(self, files, laptop):
        _invoke(files, "-c", "--profile", "engineering")
        assert not laptop.ran([BREW, "install"])
        assert laptop.network_calls == []

    def test_json_output(self, files, laptop):
        laptop.add_command("jq")
        result = _invoke(files, "-c", "--json")
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["profile"] == "other"
        assert data["certification"]["missing_count"] == 1
        assert [t["tool_id"] for t in data["certification"]["tools"]] == ["jq", "automox"]

    def test_quiet_prints_summary_only(self, files, laptop):
        result = _invoke(files, "-c", "-q")
        assert "Summary" in result.output
        assert "Certification for profile" not in result.output


class TestInstall:
    def test_install_exit_0_with_failures(self, files, laptop):
        laptop.set_response([BREW, "install", "jq"], effect=lambda m, cmd: m.add_command("jq"))
        laptop.set_failure([BREW, "install", "gh"], error="network down")

        result = _invoke(files, "-i", "--profile", "engineering")

        assert result.exit_code == 0, result.output
        assert "Installed: 1  Skipped: 1  Failed: 1" in result.output
        assert "GitHub CLI: install failed" in result.output
        assert "--automox-key not provided" in result.output
        assert "Next steps" in result.output

    def test_secret_from_environment(self, files, laptop, monkeypatch):
        _fully_installed(laptop)
        laptop.set_response(["ps", "-ef"], stdout="")
        laptop.add_url("https://console.example.com/installer?accesskey=env-key", "echo install\n")
        monkeypatch.setenv("LAPTOP_SETUP_AUTOMOX_KEY", "env-key")

        result = _invoke(files, "-i")

        assert result.exit_code == 0
        assert laptop.ran(["bash"])
        assert "env-key" not in result.output

    def test_both_modes_certify_first(self, files, laptop):
        laptop.set_response([BREW, "install", "jq"], effect=lambda m, cmd: m.add_command("jq"))
        result = _invoke(files, "-c", "-i", "--json")
        data = json.loads(result.stdout)
        assert data["certification"]["tools"][0]["status"] == "missing"
        assert data["installation"]["tools"][0]["status"] == "ok"
        assert result.exit_code == 0


class TestPreflightAndList:
    def test_root_refused(self, files, monkeypatch):
        mock = MockExecutor(home=HOME, host_os="darwin", root=True)
        monkeypatch.setattr(main_module, "_make_executor", lambda settings: mock)
        result = _invoke(files, "-c")
        assert result.exit_code == 1
        assert "Do not run laptop-setup as root" in result.output
        assert mock.calls("run") == []

    def test_wrong_host(self, files, monkeypatch):
        mock = MockExecutor(home="/home/tester", host_os="linux")
        monkeypatch.setattr(main_module, "_make_executor", lambda settings: mock)
        result = _invoke(files, "-c")
        assert result.exit_code == 1
        assert "cannot run on this host" in result.output

    def test_list(self, files, laptop):
        result = _invoke(files, "--list", "--profile", "engineering")
        assert result.exit_code == 0
        assert "3 tool(s) for profile 'engineering'" in result.output
        assert laptop.calls("run") == []

    def test_bad_manifest(self, files, laptop, tmp_path):
        bad = tmp_path / "bad.yml"
        bad.write_text("platform: macos\ntools:\n  - id: x\n    display_name: X\n    mechanism: teleport\n")
        result = CliRunner().invoke(cli, ["-c", "--platform", "macos", "--manifest", str(bad),
                                          "--config", files["config"]])
        assert result.exit_code == 1
        assert "Invalid manifest" in result.output


def test_command_result_failure_summary_in_output(files, laptop):
    laptop.set_response([BREW, "install", "jq"], CommandResult(ok=False, returncode=1, stderr="boom"))
    result = _invoke(files, "-i")
    assert "jq: install failed" in result.output
