"""
Tests for the Cloud SDK mechanisms and shell profile updates.
"""

from pathlib import Path

from laptop_setup.core.models.tool import Mechanism, ToolDefinition
from laptop_setup.core.services.setup.mechanisms import CloudSdkBaseHandler, CloudSdkUtilityHandler
from laptop_setup.core.services.setup.mechanisms.cloud_sdk import INSTALL_MARKER, known_gcloud_locations
from laptop_setup.core.services.setup.shell_profile import append_source_lines

HOME = Path("/Users/tester")
SDK = HOME / "Applications" / "google-cloud-sdk"
GCLOUD = SDK / "bin" / "gcloud"
KUBECTL_LINK = Path("/usr/local/bin/kubectl")
INSTALLER_URL = "https://sdk.cloud.google.com"

SDK_TOOL = ToolDefinition(id="google-cloud-sdk", display_name="Google Cloud SDK",
                          mechanism=Mechanism.CLOUD_SDK_BASE, verification_command="gcloud")
GKC = ToolDefinition(id="gkc", display_name="gkc.sh", mechanism=Mechanism.CLOUD_SDK_UTILITY,
                     verification_path="bin/gkc.sh", installer_url="gs://adh-tools/gkc.sh")


def _existing_sdk(mock):
    mock.add_file(GCLOUD, mode=0o755)
    mock.add_file(SDK / "bin" / "kubectl", mode=0o755)
    mock.set_response([str(GCLOUD)])


def _sdk_installer(mock):
    def _unpack(m, cmd):
        m.add_file(GCLOUD, mode=0o755)
        m.add_file(SDK / "bin" / "kubectl", mode=0o755)

    mock.add_url(INSTALLER_URL, "#!/bin/bash\necho installing sdk\n")
    mock.set_response(["bash", "-s"], effect=_unpack)
    mock.set_response([str(GCLOUD)])


class TestCloudSdkVerify:
    def test_on_path(self, host, ctx, mock):
        mock.add_command("gcloud")
        result = CloudSdkBaseHandler().verify(SDK_TOOL, ctx, host)
        assert result.installed
        assert mock.calls("append") == []

    def test_missing(self, host, ctx):
        assert not CloudSdkBaseHandler().verify(SDK_TOOL, ctx, host).installed

    def test_known_location_repairs_profile(self, host, ctx, mock):
        _existing_sdk(mock)
        result = CloudSdkBaseHandler().verify(SDK_TOOL, ctx, host)
        assert result.installed
        assert "not on PATH" in result.detail
        profile = mock.read_text(HOME / ".bash_profile")
        assert f"source '{SDK}/path.bash.inc'" in profile
        assert f"source '{SDK}/completion.bash.inc'" in profile

    def test_repair_is_idempotent(self, host, ctx, mock):
        _existing_sdk(mock)
        handler = CloudSdkBaseHandler()
        handler.verify(SDK_TOOL, ctx, host)
        second = handler.verify(SDK_TOOL, ctx, host)
        assert "shell profile updated" not in second.detail
        assert mock.read_text(HOME / ".bash_profile").count("path.bash.inc") == 1

    def test_zshrc_updated_when_present(self, host, ctx, mock):
        _existing_sdk(mock)
        mock.add_file(HOME / ".zshrc", "export EDITOR=vim")
        CloudSdkBaseHandler().verify(SDK_TOOL, ctx, host)
        zshrc = mock.read_text(HOME / ".zshrc")
        assert zshrc.startswith("export EDITOR=vim\n")
        assert f"source '{SDK}/path.zsh.inc'" in zshrc

    def test_homebrew_location(self, host, ctx, mock):
        mock.add_file("/opt/homebrew/share/google-cloud-sdk/bin/gcloud")
        result = CloudSdkBaseHandler().verify(SDK_TOOL, ctx, host)
        assert result.installed
        assert result.detail.startswith("/opt/homebrew/share/google-cloud-sdk/bin/gcloud")

    def test_location_order(self, host, ctx):
        locations = known_gcloud_locations(ctx, host)
        assert locations[0] == GCLOUD
        assert locations[1] == HOME / "google-cloud-sdk" / "bin" / "gcloud"


class TestCloudSdkInstall:
    def test_fresh_install(self, host, ctx, mock):
        _sdk_installer(mock)
        outcome = CloudSdkBaseHandler().install(SDK_TOOL, ctx, host)

        assert outcome.ok, outcome.reason
        assert outcome.warnings == []
        run = next(c for c in mock.calls("run") if c.args[:2] == ("bash", "-s"))
        assert f"--install-dir={HOME / 'Applications'}" in run.args
        assert "--disable-prompts" in run.args
        assert run.input_text == "#!/bin/bash\necho installing sdk\n"
        assert mock.is_file(SDK / INSTALL_MARKER)
        assert mock.ran([str(GCLOUD), "--version"])
        assert mock.ran([str(GCLOUD), "components", "install", "kubectl", "--quiet"])
        assert mock.ran([str(GCLOUD), "components", "install", "gke-gcloud-auth-plugin", "--quiet"])
        assert mock.readlink(KUBECTL_LINK) == str(SDK / "bin" / "kubectl")
        assert mock.calls("symlink")[0].sudo
        assert f"source '{SDK}/path.bash.inc'" in mock.read_text(HOME / ".bash_profile")

    def test_second_install_skips_download(self, host, ctx, mock):
        _sdk_installer(mock)
        handler = CloudSdkBaseHandler()
        handler.install(SDK_TOOL, ctx, host)
        mock.reset()

        outcome = handler.install(SDK_TOOL, ctx, host)
        assert outcome.skipped
        assert outcome.warnings == []
        assert mock.network_calls == []
        assert not mock.ran(["bash", "-s"])
        assert mock.calls("symlink") == []
        assert mock.read_text(HOME / ".bash_profile").count("path.bash.inc") == 1

    def test_on_path_goes_straight_to_components(self, host, ctx, mock):
        mock.add_command("gcloud", str(GCLOUD))
        mock.add_file(SDK / "bin" / "kubectl", mode=0o755)
        mock.set_response([str(GCLOUD)])
        outcome = CloudSdkBaseHandler().install(SDK_TOOL, ctx, host)
        assert outcome.skipped
        assert mock.network_calls == []
        assert mock.ran([str(GCLOUD), "components", "install", "kubectl", "--quiet"])

    def test_installer_unreachable(self, host, ctx, mock):
        outcome = CloudSdkBaseHandler().install(SDK_TOOL, ctx, host)
        assert outcome.failed
        assert "cannot download the installer" in outcome.reason
        assert not mock.ran(["bash"])

    def test_installer_leaves_no_gcloud(self, host, ctx, mock):
        mock.add_url(INSTALLER_URL, "echo broken")
        mock.set_response(["bash", "-s"])
        outcome = CloudSdkBaseHandler().install(SDK_TOOL, ctx, host)
        assert outcome.failed
        assert "does not exist" in outcome.reason

    def test_existing_kubectl_file_left_alone(self, host, ctx, mock):
        _existing_sdk(mock)
        mock.add_file(KUBECTL_LINK, "#!/bin/sh\n", mode=0o755)
        outcome = CloudSdkBaseHandler().install(SDK_TOOL, ctx, host)
        assert outcome.skipped
        assert any("not a symlink" in w for w in outcome.warnings)
        assert not mock.is_symlink(KUBECTL_LINK)

    def test_foreign_kubectl_symlink_left_alone(self, host, ctx, mock):
        _existing_sdk(mock)
        mock.add_file("/opt/other/kubectl", mode=0o755)
        mock.symlink(Path("/opt/other/kubectl"), KUBECTL_LINK)
        outcome = CloudSdkBaseHandler().install(SDK_TOOL, ctx, host)
        assert any("left unchanged" in w for w in outcome.warnings)
        assert mock.readlink(KUBECTL_LINK) == "/opt/other/kubectl"

    def test_component_failure_is_a_warning(self, host, ctx, mock):
        _existing_sdk(mock)
        mock.set_failure([str(GCLOUD), "components", "install", "gke-gcloud-auth-plugin"])
        outcome = CloudSdkBaseHandler().install(SDK_TOOL, ctx, host)
        assert outcome.skipped
        assert outcome.warnings == ["Could not install gcloud component 'gke-gcloud-auth-plugin'"]


class TestCloudSdkUtility:
    def test_verify(self, host, ctx, mock):
        handler = CloudSdkUtilityHandler()
        assert not handler.verify(GKC, ctx, host).installed
        mock.add_file(SDK / "bin" / "gkc.sh")
        assert handler.verify(GKC, ctx, host).installed

    def test_needs_gsutil(self, host, ctx, mock):
        outcome = CloudSdkUtilityHandler().install(GKC, ctx, host)
        assert outcome.failed
        assert "gsutil not found" in outcome.reason
        assert mock.calls("run") == []

    def test_install_then_skip(self, host, ctx, mock):
        gsutil = SDK / "bin" / "gsutil"
        mock.add_file(gsutil, mode=0o755)
        mock.set_response(
            [str(gsutil), "cp"],
            effect=lambda m, cmd: m.add_file(SDK / "bin" / "gkc.sh"),
        )
        handler = CloudSdkUtilityHandler()

        outcome = handler.install(GKC, ctx, host)
        assert outcome.ok, outcome.reason
        assert mock.ran([str(gsutil), "cp", "gs://adh-tools/gkc.sh", f"{SDK / 'bin'}/"])
        assert mock.mode_of(SDK / "bin" / "gkc.sh") & 0o100
        assert mock.readlink(Path("/usr/local/bin/gkc.sh")) == str(SDK / "bin" / "gkc.sh")

        assert handler.install(GKC, ctx, host).skipped

    def test_copy_failure(self, host, ctx, mock):
        mock.add_command("gsutil")
        mock.set_failure(["/usr/local/bin/gsutil", "cp"], error="AccessDeniedException: 403")
        outcome = CloudSdkUtilityHandler().install(GKC, ctx, host)
        assert outcome.failed
        assert "403" in outcome.reason

    def test_regular_file_in_bin_dir_kept(self, host, ctx, mock):
        mock.add_command("gsutil")
        mock.set_response(["/usr/local/bin/gsutil", "cp"],
                          effect=lambda m, cmd: m.add_file(SDK / "bin" / "gkc.sh"))
        mock.add_file("/usr/local/bin/gkc.sh", "old copy")
        outcome = CloudSdkUtilityHandler().install(GKC, ctx, host)
        assert outcome.ok
        assert outcome.warnings == ["/usr/local/bin/gkc.sh exists and is not a symlink; left unchanged"]


class TestAppendSourceLines:
    def test_dedup_by_stripped_content(self, mock):
        path = HOME / ".bash_profile"
        mock.add_file(path, "  source '/sdk/path.bash.inc'  \n")
        written = append_source_lines(mock, path, [
            "source '/sdk/path.bash.inc'",
            "source '/sdk/completion.bash.inc'",
        ])
        assert written == 1
        text = mock.read_text(path)
        assert text.count("path.bash.inc") == 1
        assert "# Added by laptop-setup" in text

    def test_nothing_to_add(self, mock):
        path = HOME / ".bashrc"
        mock.add_file(path, "source '/sdk/path.bash.inc'\n")
        assert append_source_lines(mock, path, ["source '/sdk/path.bash.inc'"]) == 0
        assert mock.calls("append") == []
