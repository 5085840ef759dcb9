"""
Report models — what verification and installation hand back.

Verifiers return VerifyResults, installers return InstallOutcomes.
Like the receipts they are modelled on, they carry failures as data:
nothing in the per-tool loop is signalled with an exception.

The two reports aggregate those results.  Counters are derived from
the result lists, never accumulated in mutable globals.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class VerifyResult(BaseModel):
    """Outcome of checking one tool."""

    tool_id: str
    display_name: str
    status: Literal["installed", "missing", "unknown"] = "missing"
    detail: str = ""

    @property
    def installed(self) -> bool:
        return self.status == "installed"

    @classmethod
    def found(cls, tool_id: str, display_name: str, detail: str = "") -> VerifyResult:
        return cls(tool_id=tool_id, display_name=display_name, status="installed", detail=detail)

    @classmethod
    def not_found(cls, tool_id: str, display_name: str, detail: str = "") -> VerifyResult:
        return cls(tool_id=tool_id, display_name=display_name, status="missing", detail=detail)

    @classmethod
    def undetermined(cls, tool_id: str, display_name: str, detail: str = "") -> VerifyResult:
        return cls(tool_id=tool_id, display_name=display_name, status="unknown", detail=detail)


class InstallOutcome(BaseModel):
    """Outcome of installing one tool."""

    tool_id: str
    display_name: str
    status: Literal["ok", "skipped", "failed"] = "ok"
    reason: str = ""
    notes: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, tool_id: str, display_name: str, reason: str = "", **kwargs: Any) -> InstallOutcome:
        """Create a success outcome."""
        return cls(tool_id=tool_id, display_name=display_name, status="ok", reason=reason, **kwargs)

    @classmethod
    def skip(cls, tool_id: str, display_name: str, reason: str = "", **kwargs: Any) -> InstallOutcome:
        """Create a skip outcome."""
        return cls(tool_id=tool_id, display_name=display_name, status="skipped", reason=reason, **kwargs)

    @classmethod
    def failure(cls, tool_id: str, display_name: str, reason: str, **kwargs: Any) -> InstallOutcome:
        """Create a failure outcome."""
        return cls(tool_id=tool_id, display_name=display_name, status="failed", reason=reason, **kwargs)


class SecurityFinding(BaseModel):
    """A forbidden application found on the laptop."""

    id: str
    display_name: str
    message: str
    removal_steps: list[str] = Field(default_factory=list)


class CertificationReport(BaseModel):
    """Result of a certification run."""

    profile: str
    platform: str
    results: list[VerifyResult] = Field(default_factory=list)
    findings: list[SecurityFinding] = Field(default_factory=list)

    @property
    def missing(self) -> list[VerifyResult]:
        """Tools that are missing or could not be checked."""
        return [r for r in self.results if not r.installed]

    @property
    def missing_count(self) -> int:
        return len(self.missing)

    @property
    def warning_count(self) -> int:
        return len(self.findings)

    @property
    def ok(self) -> bool:
        return self.missing_count == 0 and self.warning_count == 0

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        return {
            "mode": "certification",
            "profile": self.profile,
            "platform": self.platform,
            "ok": self.ok,
            "missing_count": self.missing_count,
            "warning_count": self.warning_count,
            "tools": [r.model_dump() for r in self.results],
            "security_warnings": [f.model_dump() for f in self.findings],
        }


class InstallReport(BaseModel):
    """Result of an installation run."""

    profile: str
    platform: str
    outcomes: list[InstallOutcome] = Field(default_factory=list)
    findings: list[SecurityFinding] = Field(default_factory=list)
    follow_ups: list[str] = Field(default_factory=list)

    def _with_status(self, status: str) -> list[InstallOutcome]:
        return [o for o in self.outcomes if o.status == status]

    @property
    def installed(self) -> list[InstallOutcome]:
        return self._with_status("ok")

    @property
    def skipped(self) -> list[InstallOutcome]:
        return self._with_status("skipped")

    @property
    def failed(self) -> list[InstallOutcome]:
        return self._with_status("failed")

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        return {
            "mode": "install",
            "profile": self.profile,
            "platform": self.platform,
            "installed_count": len(self.installed),
            "skipped_count": len(self.skipped),
            "failed_count": len(self.failed),
            "tools": [o.model_dump() for o in self.outcomes],
            "security_warnings": [f.model_dump() for f in self.findings],
            "follow_ups": list(self.follow_ups),
        }
