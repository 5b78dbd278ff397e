from __future__ import annotations

from typing import Any, Mapping


def resolve_capabilities(
    defaults: Mapping[str, Any] | None,
    config_capabilities: Mapping[str, Any] | None,
    session_capabilities: Mapping[str, Any] | None,
) -> dict[str, Any]:
    """
    Merge three capability sources into the effective capability set.

    Precedence, lowest to highest: ``defaults``, ``config_capabilities``, ``session_capabilities``.
    A key set by a higher source replaces the value of a lower one, including ``None`` values.
    The merge is shallow and the result is a new dict, none of the inputs is modified.
    """
    resolved: dict[str, Any] = {}
    for layer in (defaults, config_capabilities, session_capabilities):
        if layer:
            resolved.update(layer)
    return resolved
