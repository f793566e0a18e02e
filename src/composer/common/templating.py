"""Jinja2 rendering of application templates."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from jinja2 import Environment, TemplateError

LOGGER = logging.getLogger(__name__)

TEMPLATE_EXTENSION = "jinja2"


class TemplateRenderError(RuntimeError):
    """Raised when a template cannot be loaded or rendered."""


def render_template(path: str | Path, values: Mapping[str, Any]) -> str:
    """Render the template stored at ``path`` with ``values`` as its context."""

    template_path = Path(path)
    try:
        source = template_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise TemplateRenderError(f"Could not read template {template_path}: {exc}") from exc

    return render_template_string(source, values, name=str(template_path))


def render_template_string(source: str, values: Mapping[str, Any], *, name: str = "template") -> str:
    environment = Environment(autoescape=False)
    try:
        template = environment.from_string(source)
        return template.render(dict(values))
    except TemplateError as exc:
        raise TemplateRenderError(
            f"Failed to render template {name}: due to an error in the template. Error: {exc}"
        ) from exc


def rendered_output_path(template_path: Path) -> Path:
    """Return where the rendered output of ``template_path`` is written.

    ``docker-compose.yml.jinja2`` becomes ``docker-compose.yml`` and a template
    without an inner suffix gets ``.yaml``.
    """

    stripped = template_path.with_suffix("")
    if not stripped.suffix:
        stripped = stripped.with_suffix(".yaml")
    return stripped
