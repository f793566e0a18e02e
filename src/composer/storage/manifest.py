"""Loader for the ``app.yaml`` manifest shipped with an application."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import MutableMapping

import yaml

from .models import StorageError

MANIFEST_FILENAME = "app.yaml"


@dataclass(frozen=True)
class AppManifest:
    name: str
    version: str


def load_app_manifest(path: str | Path) -> AppManifest:
    """Read ``name`` and ``version`` from an application manifest.

    Unknown keys are ignored.
    """

    manifest_path = Path(path)
    try:
        contents = manifest_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise StorageError(f"Failed to open YAML file {manifest_path}") from exc

    try:
        data = yaml.safe_load(contents)
    except yaml.YAMLError as exc:
        raise StorageError(f"Failed to deserialize YAML data in {manifest_path}") from exc

    if not isinstance(data, MutableMapping):
        raise StorageError(f"Application manifest {manifest_path} must be a mapping")

    missing = [key for key in ("name", "version") if data.get(key) is None]
    if missing:
        raise StorageError(
            f"Application manifest {manifest_path} is missing: {', '.join(missing)}"
        )
    return AppManifest(name=str(data["name"]), version=str(data["version"]))
