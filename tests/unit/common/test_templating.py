from __future__ import annotations

from pathlib import Path

import pytest

from composer.common.templating import (
    TemplateRenderError,
    render_template,
    render_template_string,
    rendered_output_path,
)

NESTED_DEFAULT = (
    "test {{ nested.missing | default('default_str') }} "
    "{{ nested.second_level.bool_val | lower }}"
)


def test_render_basic_template(tmp_path: Path) -> None:
    template = tmp_path / "world.jinja2"
    template.write_text("Hello, {{ val }}!", encoding="utf-8")

    assert render_template(template, {"val": "world"}) == "Hello, world!"


def test_render_nested_template_with_default() -> None:
    values = {"val": "world", "nested": {"second_level": {"bool_val": True}}}

    assert render_template_string(NESTED_DEFAULT, values) == "test default_str true"


def test_render_invalid_template_reports_path(tmp_path: Path) -> None:
    template = tmp_path / "nested-default.jinja2"
    template.write_text(NESTED_DEFAULT, encoding="utf-8")

    with pytest.raises(TemplateRenderError) as exc:
        render_template(template, {"val": "world", "nested": {"some": "other_value"}})

    message = str(exc.value)
    assert message.startswith(f"Failed to render template {template}: due to an error in the template.")


def test_render_syntax_error() -> None:
    with pytest.raises(TemplateRenderError):
        render_template_string("{% if %}", {})


def test_render_missing_template(tmp_path: Path) -> None:
    with pytest.raises(TemplateRenderError):
        render_template(tmp_path / "absent.jinja2", {})


@pytest.mark.parametrize(
    "template, expected",
    [
        ("app/docker-compose.jinja2", "app/docker-compose.yaml"),
        ("app/docker-compose.yml.jinja2", "app/docker-compose.yml"),
        ("app/sub/template.jinja2", "app/sub/template.yaml"),
    ],
)
def test_rendered_output_path(template: str, expected: str) -> None:
    assert rendered_output_path(Path(template)) == Path(expected)


def test_render_template_rejects_undecodable_file(tmp_path: Path) -> None:
    template = tmp_path / "binary.jinja2"
    template.write_bytes(b"\xff\xfe{{ val }}")

    with pytest.raises(TemplateRenderError) as exc:
        render_template(template, {"val": "x"})

    assert "Could not read template" in str(exc.value)
