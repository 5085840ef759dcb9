"""
Profile filter — which manifest rows apply to the selected profile.

Pure functions, no I/O.  The selected profile is validated once, up
front, so filtering never sees an unknown profile.
"""

from __future__ import annotations

from collections.abc import Iterable

from laptop_setup.core.models.tool import ALL_PROFILES, Profile, ToolDefinition

# Older script revisions and team habits; mapped onto the canonical set.
LEGACY_PROFILE_ALIASES: dict[str, Profile] = {
    "eng": Profile.ENGINEERING,
    "engineer": Profile.ENGINEERING,
    "analytics": Profile.DATA,
    "default": Profile.OTHER,
    "general": Profile.OTHER,
}


class InvalidProfile(ValueError):
    """Raised when the selected profile is not a known profile name."""

    def __init__(self, name: str):
        self.name = name
        choices = ", ".join(p.value for p in Profile)
        super().__init__(f"Invalid profile '{name}'. Choose one of: {choices}.")


def resolve_profile(name: str | Profile) -> Profile:
    """Validate a profile name and return the canonical Profile.

    Raises:
        InvalidProfile: If ``name`` is neither a profile nor a legacy alias.
    """
    if isinstance(name, Profile):
        return name
    try:
        return Profile(name)
    except ValueError:
        pass
    if name in LEGACY_PROFILE_ALIASES:
        return LEGACY_PROFILE_ALIASES[name]
    raise InvalidProfile(name)


def is_in_scope(profiles: Iterable[str], selected: Profile) -> bool:
    """Whether a tool tagged with ``profiles`` applies to ``selected``.

    True iff the tags contain ``"all"`` or the selected profile's value.
    Tags are compared case-sensitively.
    """
    tags = set(profiles)
    return ALL_PROFILES in tags or selected.value in tags


def filter_manifest(tools: Iterable[ToolDefinition], selected: Profile) -> list[ToolDefinition]:
    """Keep the in-scope tools, preserving manifest order."""
    return [tool for tool in tools if is_in_scope(tool.profiles, selected)]
