"""Load and merge layered values files into a single template context."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, MutableMapping

import yaml

from .overrides import ValuesError, is_value_override, parse_value_override

LOGGER = logging.getLogger(__name__)


def read_values_file(path: str | Path) -> Any:
    """Return the parsed YAML document stored at ``path``."""

    values_path = Path(path)
    LOGGER.debug("Loading file: %s", values_path)
    try:
        text = values_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ValuesError(f"Could not read values file {values_path}: {exc}") from exc
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValuesError(f"Invalid YAML in values file {values_path}") from exc


def merge_mappings(existing: MutableMapping[Any, Any], new: MutableMapping[Any, Any]) -> None:
    """Merge ``new`` into ``existing`` in place.

    Nested mappings are merged recursively, lists are concatenated and any
    other value is replaced by the one from ``new``.
    """

    for key, new_value in new.items():
        if key not in existing:
            existing[key] = new_value
            continue
        current = existing[key]
        if isinstance(current, MutableMapping) and isinstance(new_value, MutableMapping):
            merge_mappings(current, new_value)
        elif isinstance(current, list) and isinstance(new_value, list):
            current.extend(new_value)
        else:
            existing[key] = new_value


def load_values(sources: Iterable[str]) -> Dict[Any, Any]:
    """Load values files and ``x.y.z=foo`` overrides, later sources winning."""

    merged: Dict[Any, Any] = {}
    for source in sources:
        if is_value_override(source):
            document = parse_value_override(source)
        else:
            try:
                document = read_values_file(source)
            except ValuesError as exc:
                raise ValuesError(f"Failed to read values YAML file: {source}") from exc

        if not isinstance(document, MutableMapping):
            raise ValuesError("Expected top-level YAML structure to be a mapping.")
        merge_mappings(merged, document)

    return merged
