"""
Settings model — tunables loaded from the optional config file.

Every field has a default, so an empty (or absent) config file is
valid.  Secrets never live here; they only come from the command
line or the environment.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Settings(BaseModel):
    """Run-wide knobs for installers and probes."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    default_profile: str = "other"

    # Well-known directory for tool symlinks (kubectl, gkc.sh)
    bin_dir: str = "/usr/local/bin"

    # Cloud SDK
    cloud_sdk_parent: str | None = None          # None = platform default
    cloud_sdk_installer_url: str = "https://sdk.cloud.google.com"
    cloud_sdk_components: tuple[str, ...] = ("kubectl", "gke-gcloud-auth-plugin")
    cloud_sdk_symlinked_component: str = "kubectl"

    # Security agents
    sentinelone_pkg_name: str = "SentinelOneInstaller.pkg"
    agent_grace_seconds: float = 15.0

    # Timeouts (seconds).  None = wait forever.
    command_timeout: int | None = 60
    install_timeout: int | None = 3600

    temp_dir: str | None = None                  # None = system temp dir
