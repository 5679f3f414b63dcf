"""Initial settings for newly created child organizations."""

from collections.abc import Mapping
from typing import Any


def resolve_initial_settings(
    parent_settings: Mapping[str, Any] | None,
    explicit_overrides: Mapping[str, Any] | None,
    inherit: bool,
) -> dict[str, Any]:
    """Compute the settings bag a new child starts with.

    With ``inherit`` the parent's keys are copied and overlaid by the
    overrides (shallow: a nested object in the overrides replaces the
    parent's value for that key wholesale). Without it only the overrides
    are kept. The result is always a new dict; neither input is modified.
    """
    overrides = dict(explicit_overrides or {})
    if not inherit:
        return overrides
    return {**(parent_settings or {}), **overrides}
