"""Tests for writing and loading release configuration files."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path

import pytest
import yaml

from composer.release import (
    BranchRule,
    CommitAnalyzerOptions,
    ReleaseConfigError,
    build_release_config,
    load_release_config,
    render_release_config,
    write_release_config,
)


def test_render_json_round_trips_through_json_module() -> None:
    config = build_release_config(environ={})

    rendered = render_release_config(config, "json")

    assert json.loads(rendered) == config.to_dict()


def test_render_js_exports_module() -> None:
    config = build_release_config(environ={})

    rendered = render_release_config(config, "js")

    assert rendered.startswith("module.exports = {")
    assert rendered.rstrip().endswith("};")
    assert "@semantic-release/exec" in rendered


def test_render_rejects_unknown_format() -> None:
    with pytest.raises(ReleaseConfigError):
        render_release_config(build_release_config(environ={}), "toml")


@pytest.mark.parametrize(
    "filename, loader",
    [
        (".releaserc.json", json.loads),
        (".releaserc.yaml", yaml.safe_load),
        (".releaserc", json.loads),
    ],
)
def test_write_infers_format_from_filename(tmp_path: Path, filename: str, loader) -> None:
    config = build_release_config("conventional", environ={})

    path = write_release_config(config, tmp_path / filename)

    assert loader(path.read_text(encoding="utf-8")) == config.to_dict()


def test_write_then_load_preserves_records(tmp_path: Path) -> None:
    config = build_release_config("conventional", environ={})
    path = write_release_config(config, tmp_path / ".releaserc.yml")

    loaded = load_release_config(path)

    assert loaded == config
    assert isinstance(loaded.commit_analyzer_options, CommitAnalyzerOptions)


def test_load_reads_pip_index_url_from_environ(tmp_path: Path) -> None:
    path = write_release_config(build_release_config(environ={}), tmp_path / ".releaserc.json")

    loaded = load_release_config(path, environ={"EXTERNAL_PIP_INDEX_URL": "https://idx"})

    assert loaded.external_pip_index_url == "https://idx"
    assert loaded.branches[2] == BranchRule("fix-build", prerelease="rc")


def _write(tmp_path: Path, body: str, name: str = ".releaserc.yaml") -> Path:
    path = tmp_path / name
    path.write_text(textwrap.dedent(body).strip() + "\n", encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "body, expected_message",
    [
        ("[]", "must be a mapping"),
        ("plugins: []", "at least one branch"),
        (
            """
            branches:
              - master
              - master
            """,
            "declared more than once",
        ),
        (
            """
            branches:
              - prerelease: true
            """,
            "must include a name",
        ),
        (
            """
            branches:
              - name: beta
                prerelease: 3
            """,
            "prerelease must be a boolean",
        ),
        (
            """
            branches: [master]
            plugins:
              - ["@semantic-release/exec"]
            """,
            "Unsupported plugin declaration",
        ),
        (
            """
            branches: [master]
            plugins:
              - ["@semantic-release/commit-analyzer", {preset: angular, releaseRules: [{type: docs}]}]
            """,
            "must define 'release'",
        ),
        (
            """
            branches: [master]
            plugins:
              - ["@semantic-release/commit-analyzer", {preset: angular, releaseRules: {type: docs, release: patch}}]
            """,
            "releaseRules must be a list",
        ),
        (
            """
            branches: [master]
            plugins:
              - ["@semantic-release/commit-analyzer", {preset: angular, parserOpts: {noteKeywords: BREAKING}}]
            """,
            "noteKeywords must be a list of strings",
        ),
    ],
)
def test_invalid_release_configs_raise(tmp_path: Path, body: str, expected_message: str) -> None:
    path = _write(tmp_path, body)

    with pytest.raises(ReleaseConfigError) as exc:
        load_release_config(path)

    assert expected_message in str(exc.value)


def test_load_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ReleaseConfigError) as exc:
        load_release_config(tmp_path / ".releaserc.json")

    assert "not found" in str(exc.value)


def test_load_invalid_json_raises(tmp_path: Path) -> None:
    path = _write(tmp_path, "{branches: [", name=".releaserc.json")

    with pytest.raises(ReleaseConfigError) as exc:
        load_release_config(path)

    assert "Invalid JSON" in str(exc.value)


def test_load_refuses_javascript(tmp_path: Path) -> None:
    path = _write(tmp_path, "module.exports = {};", name="release.config.js")

    with pytest.raises(ReleaseConfigError):
        load_release_config(path)


def test_load_keeps_unmodelled_analyzer_options(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
        branches: [master]
        plugins:
          - - "@semantic-release/commit-analyzer"
            - preset: conventionalcommits
              presetConfig:
                types:
                  - {type: feat, section: Features}
              releaseRules:
                - {type: docs, scope: README, release: patch}
                - {breaking: true, release: major}
                - {type: chore, release: false}
              parserOpts:
                headerPattern: "^(\\\\w*)(?:\\\\((.*)\\\\))?: (.*)$"
                noteKeywords: ["BREAKING CHANGE"]
        """,
    )
    original = yaml.safe_load(path.read_text(encoding="utf-8"))

    loaded = load_release_config(path, environ={})
    rewritten = write_release_config(loaded, tmp_path / ".releaserc.json")

    assert json.loads(rewritten.read_text(encoding="utf-8")) == original
    options = loaded.commit_analyzer_options
    assert options is not None
    assert options.note_keywords == ("BREAKING CHANGE",)
    assert options.release_rules[1].type is None


def test_bare_releaserc_accepts_yaml(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
        branches:
          - master
          - name: beta
            prerelease: true
        plugins:
          - "@semantic-release/git"
        """,
        name=".releaserc",
    )

    loaded = load_release_config(path, environ={})

    assert loaded.branch_names == ("master", "beta")


def test_bare_releaserc_accepts_json(tmp_path: Path) -> None:
    path = write_release_config(build_release_config(environ={}), tmp_path / ".releaserc")

    assert load_release_config(path, environ={}) == build_release_config(environ={})


def test_load_reports_undecodable_file(tmp_path: Path) -> None:
    path = tmp_path / ".releaserc.yaml"
    path.write_bytes(b"branches: [\xff\xfe]\n")

    with pytest.raises(ReleaseConfigError) as exc:
        load_release_config(path)

    assert "Could not read release configuration" in str(exc.value)
