"""Parsing of ``x.y.z=foo`` command line value overrides."""

from __future__ import annotations

from typing import Any, Dict


class ValuesError(RuntimeError):
    """Raised when values files or overrides cannot be loaded."""


def is_value_override(source: str) -> bool:
    return "=" in source


def parse_value_override(override: str) -> Dict[str, Any]:
    """Turn ``"x.y.z=foo"`` into ``{"x": {"y": {"z": "foo"}}}``.

    The leaf is always kept as a string.

    Raises:
        ValuesError: If there is no ``=`` or the key path is empty.
    """

    key_path, separator, value = override.partition("=")
    if not separator:
        raise ValuesError(
            f"Failed to split YAML string: {override}, must be the format x.y.z=foo"
        )
    if not key_path:
        raise ValuesError(
            f"Failed to find yaml key for string {override}, must be the format x.y.z=foo."
        )

    keys = key_path.split(".")
    root: Dict[str, Any] = {}
    nested = root
    for key in keys[:-1]:
        child: Dict[str, Any] = {}
        nested[key] = child
        nested = child
    nested[keys[-1]] = value
    return root
