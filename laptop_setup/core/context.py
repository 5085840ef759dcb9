"""
Run context — everything one invocation decided up front.

Built once by the use case from the command line (and environment),
then passed explicitly to every verifier and installer.  It is frozen:
nothing downstream may change the profile, the mode flags or the
secrets mid-run.

Secrets are ``SecretStr`` so they never show up in reprs, logs or
JSON output.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from laptop_setup.core.models.settings import Settings
from laptop_setup.core.models.tool import Profile

# Secret names understood by ``RunContext.secret``.
AUTOMOX_KEY = "automox_key"
SENTINELONE_TOKEN = "sentinelone_token"


class RunContext(BaseModel):
    """Immutable per-run context."""

    model_config = ConfigDict(frozen=True)

    certify: bool = False
    install: bool = False
    profile: Profile = Profile.OTHER

    automox_key: SecretStr = SecretStr("")
    sentinelone_token: SecretStr = SecretStr("")
    sentinelone_link: str | None = None
    sentinelone_pkg_name: str = "SentinelOneInstaller.pkg"

    settings: Settings = Field(default_factory=Settings)

    def secret(self, name: str) -> str:
        """Return the plain value of a secret ("" when not supplied)."""
        value = getattr(self, name, None)
        if not isinstance(value, SecretStr):
            raise KeyError(f"Unknown secret: {name}")
        return value.get_secret_value().strip()

    def has_secret(self, name: str) -> bool:
        """Whether a non-empty secret was supplied."""
        return bool(self.secret(name))
