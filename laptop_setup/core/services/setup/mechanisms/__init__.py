"""
Mechanism handlers — one verifier/installer per Mechanism.

    HANDLERS[tool.mechanism].verify(tool, ctx, host)
    HANDLERS[tool.mechanism].install(tool, ctx, host)

The table is checked at import time: adding a Mechanism without a
handler fails loudly instead of silently reporting "unknown".
"""

from __future__ import annotations

from laptop_setup.core.models.tool import Mechanism
from laptop_setup.core.services.setup.mechanisms.base import MechanismHandler
from laptop_setup.core.services.setup.mechanisms.cloud_sdk import (
    CloudSdkBaseHandler,
    CloudSdkUtilityHandler,
)
from laptop_setup.core.services.setup.mechanisms.package import (
    CaskPackageHandler,
    CliPackageHandler,
    FoundationalManagerHandler,
)
from laptop_setup.core.services.setup.mechanisms.security import (
    PathAgentHandler,
    ProcessAgentHandler,
)

HANDLERS: dict[Mechanism, MechanismHandler] = {
    handler.mechanism: handler
    for handler in (
        CliPackageHandler(),
        CaskPackageHandler(),
        FoundationalManagerHandler(),
        CloudSdkBaseHandler(),
        CloudSdkUtilityHandler(),
        PathAgentHandler(),
        ProcessAgentHandler(),
    )
}

_missing = [m.value for m in Mechanism if m not in HANDLERS]
if _missing:
    raise RuntimeError(f"No handler registered for mechanism(s): {', '.join(_missing)}")


__all__ = [
    "HANDLERS",
    "MechanismHandler",
    "CliPackageHandler",
    "CaskPackageHandler",
    "FoundationalManagerHandler",
    "CloudSdkBaseHandler",
    "CloudSdkUtilityHandler",
    "PathAgentHandler",
    "ProcessAgentHandler",
]
