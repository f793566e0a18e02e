"""Serialise release configuration into the files semantic-release reads."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import yaml

from composer.release.config import ReleaseConfig, ReleaseConfigError

LOGGER = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("json", "yaml", "js")

FILENAME_FORMATS = {
    ".releaserc": "json",
    ".releaserc.json": "json",
    ".releaserc.yaml": "yaml",
    ".releaserc.yml": "yaml",
    "release.config.js": "js",
    "release.config.cjs": "js",
}


def render_release_config(config: ReleaseConfig, fmt: str = "json") -> str:
    """Render ``config`` as JSON, YAML or a CommonJS ``release.config.js`` module."""

    payload = config.to_dict()
    if fmt == "json":
        return json.dumps(payload, indent=2) + "\n"
    if fmt == "yaml":
        return yaml.safe_dump(payload, sort_keys=False, default_flow_style=False)
    if fmt == "js":
        body = json.dumps(payload, indent=4)
        return f"module.exports = {body};\n"
    raise ReleaseConfigError(
        f"Unsupported release config format '{fmt}'. Expected one of: "
        + ", ".join(SUPPORTED_FORMATS)
    )


def format_for_path(path: Path) -> str:
    fmt = FILENAME_FORMATS.get(path.name)
    if fmt is None:
        suffix = path.suffix.lower()
        fmt = {".json": "json", ".yaml": "yaml", ".yml": "yaml", ".js": "js", ".cjs": "js"}.get(suffix)
    if fmt is None:
        raise ReleaseConfigError(f"Cannot infer release config format from '{path.name}'")
    return fmt


def write_release_config(
    config: ReleaseConfig,
    path: Path,
    fmt: Optional[str] = None,
) -> Path:
    """Write ``config`` to ``path``, inferring the format from the file name."""

    path = Path(path)
    resolved_format = fmt or format_for_path(path)
    content = render_release_config(config, resolved_format)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    LOGGER.info("Wrote %s release configuration to %s", resolved_format, path)
    return path
