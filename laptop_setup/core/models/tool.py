"""
Tool models — the manifest rows and their enums.

A manifest is a static, ordered list of ToolDefinitions for one
platform.  It is loaded once at startup and never mutated, so every
model here is frozen.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Profile tag that puts a tool in scope for everybody.
ALL_PROFILES = "all"

# Names of the RunContext secrets a tool can require.
SecretName = Literal["automox_key", "sentinelone_token"]


class Profile(str, Enum):
    """User category that decides which tools are in scope."""

    ENGINEERING = "engineering"
    DATA = "data"
    OTHER = "other"


class Mechanism(str, Enum):
    """Installation/verification strategy of a tool."""

    PACKAGE_MANAGER_CLI = "package-manager-cli"
    PACKAGE_MANAGER_CASK = "package-manager-cask"
    FOUNDATIONAL_PACKAGE_MANAGER = "foundational-package-manager"
    CLOUD_SDK_BASE = "cloud-sdk-base"
    CLOUD_SDK_UTILITY = "cloud-sdk-utility"
    PATH_BASED_SECURITY_AGENT = "path-based-security-agent"
    PROCESS_BASED_SECURITY_AGENT = "process-based-security-agent"


# Short type names used by the shell-script manifests.
LEGACY_MECHANISM_NAMES: dict[str, Mechanism] = {
    "cli": Mechanism.PACKAGE_MANAGER_CLI,
    "cask": Mechanism.PACKAGE_MANAGER_CASK,
    "core_tool": Mechanism.FOUNDATIONAL_PACKAGE_MANAGER,
    "core_packagemanager": Mechanism.FOUNDATIONAL_PACKAGE_MANAGER,
    "gcloud_sdk_base": Mechanism.CLOUD_SDK_BASE,
    "gcloud_util": Mechanism.CLOUD_SDK_UTILITY,
    "security_verify_path": Mechanism.PATH_BASED_SECURITY_AGENT,
    "security_verify_ps": Mechanism.PROCESS_BASED_SECURITY_AGENT,
}


class ToolDefinition(BaseModel):
    """One manifest row.

    Which of the optional fields matter depends on ``mechanism``:

        package-manager-cli           package_name and/or verification_command
        package-manager-cask          package_name (+ app_name for the fallback)
        foundational-package-manager  nothing extra
        cloud-sdk-base                verification_command (default ``gcloud``)
        cloud-sdk-utility             verification_path (relative to the SDK)
                                      + installer_url (bucket object)
        path-based-security-agent     verification_path (+ installer_url)
        process-based-security-agent  verification_command (+ service_name,
                                      installer_url)

    ``secret`` names the RunContext secret an installer needs; without it
    the install is skipped, never attempted.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    mechanism: Mechanism
    profiles: tuple[str, ...] = (ALL_PROFILES,)
    package_name: str | None = None
    verification_path: str | None = None
    verification_command: str | None = None
    app_name: str | None = None
    service_name: str | None = None
    installer_url: str | None = None
    secret: SecretName | None = None
    post_install_notes: tuple[str, ...] = ()

    @field_validator("mechanism", mode="before")
    @classmethod
    def _normalise_mechanism(cls, value: object) -> object:
        if isinstance(value, str) and value in LEGACY_MECHANISM_NAMES:
            return LEGACY_MECHANISM_NAMES[value]
        return value

    @field_validator("profiles", mode="before")
    @classmethod
    def _split_profiles(cls, value: object) -> object:
        # "engineering,data" is how the shell manifests spelled it
        if isinstance(value, str):
            return tuple(p.strip() for p in value.split(",") if p.strip())
        return value

    @model_validator(mode="after")
    def _check_required_fields(self) -> ToolDefinition:
        if not self.profiles:
            raise ValueError(f"tool '{self.id}' has no profiles")

        m = self.mechanism
        if m == Mechanism.PACKAGE_MANAGER_CLI:
            if not (self.package_name or self.verification_command):
                raise ValueError(
                    f"tool '{self.id}': {m.value} needs package_name or verification_command"
                )
        elif m == Mechanism.PACKAGE_MANAGER_CASK:
            if not self.package_name:
                raise ValueError(f"tool '{self.id}': {m.value} needs package_name")
        elif m in (Mechanism.CLOUD_SDK_UTILITY, Mechanism.PATH_BASED_SECURITY_AGENT):
            if not self.verification_path:
                raise ValueError(f"tool '{self.id}': {m.value} needs verification_path")
        elif m == Mechanism.PROCESS_BASED_SECURITY_AGENT:
            if not self.verification_command:
                raise ValueError(
                    f"tool '{self.id}': {m.value} needs verification_command"
                )
        return self


class ForbiddenApp(BaseModel):
    """An application that must NOT be present on the laptop."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    app_name: str
    removal_steps: tuple[str, ...] = ()


class Manifest(BaseModel):
    """The ordered tool list for one platform."""

    model_config = ConfigDict(frozen=True)

    platform: str
    description: str = ""
    tools: tuple[ToolDefinition, ...] = Field(default_factory=tuple)
    forbidden: tuple[ForbiddenApp, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _unique_ids(self) -> Manifest:
        seen: set[str] = set()
        for tool in self.tools:
            if tool.id in seen:
                raise ValueError(f"duplicate tool id '{tool.id}' in {self.platform} manifest")
            seen.add(tool.id)
        return self

    def get_tool(self, tool_id: str) -> ToolDefinition | None:
        """Look up a tool by id."""
        for tool in self.tools:
            if tool.id == tool_id:
                return tool
        return None
