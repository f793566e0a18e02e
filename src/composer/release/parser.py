"""Parser for ``.releaserc`` files written in JSON or YAML."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

import yaml

from composer.release.config import (
    COMMIT_ANALYZER,
    BranchRule,
    CommitAnalyzerOptions,
    PIP_INDEX_URL_ENV_VAR,
    PluginInvocation,
    ReleaseConfig,
    ReleaseConfigError,
    ReleaseRule,
)
from composer.release.writer import format_for_path

BARE_RELEASERC = ".releaserc"

ANALYZER_KEYS = ("preset", "releaseRules", "parserOpts")


def load_release_config(
    path: Path,
    environ: Optional[Mapping[str, str]] = None,
) -> ReleaseConfig:
    """Load and validate a release configuration file.

    A bare ``.releaserc`` may hold JSON or YAML, as semantic-release allows.
    """

    path = Path(path)
    if not path.exists():
        raise ReleaseConfigError(f"Release configuration file not found at {path}")

    fmt = format_for_path(path)
    if fmt == "js":
        raise ReleaseConfigError("JavaScript release configuration cannot be loaded; use JSON or YAML")

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ReleaseConfigError(f"Could not read release configuration {path}: {exc}") from exc

    if path.name == BARE_RELEASERC:
        data = _load_json_or_yaml(text, path)
    else:
        try:
            data = json.loads(text) if fmt == "json" else yaml.safe_load(text)
        except (ValueError, yaml.YAMLError) as exc:
            raise ReleaseConfigError(f"Invalid {fmt.upper()} in release configuration {path}") from exc

    return parse_release_config(data, environ=environ)


def _load_json_or_yaml(text: str, path: Path) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        pass
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ReleaseConfigError(f"Invalid JSON or YAML in release configuration {path}") from exc


def parse_release_config(
    data: Any,
    environ: Optional[Mapping[str, str]] = None,
) -> ReleaseConfig:
    if not isinstance(data, MutableMapping):
        raise ReleaseConfigError("Release configuration must be a mapping")

    branches_section = data.get("branches")
    if not isinstance(branches_section, list) or not branches_section:
        raise ReleaseConfigError("Release configuration must define at least one branch")

    branches = [_parse_branch(entry) for entry in branches_section]
    seen: set[str] = set()
    for branch in branches:
        if branch.name in seen:
            raise ReleaseConfigError(f"Branch '{branch.name}' is declared more than once")
        seen.add(branch.name)

    plugins_section = data.get("plugins", [])
    if not isinstance(plugins_section, list):
        raise ReleaseConfigError("Release configuration 'plugins' must be a list")
    plugins = [_parse_plugin(entry) for entry in plugins_section]

    env = os.environ if environ is None else environ
    return ReleaseConfig(
        branches=tuple(branches),
        plugins=tuple(plugins),
        external_pip_index_url=env.get(PIP_INDEX_URL_ENV_VAR),
    )


def _parse_branch(entry: Any) -> BranchRule:
    if isinstance(entry, str):
        if not entry.strip():
            raise ReleaseConfigError("Branch names must not be empty")
        return BranchRule(entry)
    if isinstance(entry, MutableMapping):
        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ReleaseConfigError(f"Branch rule must include a name: {entry!r}")
        prerelease = entry.get("prerelease")
        if prerelease is not None and not isinstance(prerelease, (bool, str)):
            raise ReleaseConfigError(
                f"Branch '{name}' prerelease must be a boolean or a channel tag"
            )
        return BranchRule(name, prerelease=prerelease)
    raise ReleaseConfigError(f"Unsupported branch declaration: {entry!r}")


def _parse_plugin(entry: Any) -> PluginInvocation:
    if isinstance(entry, str):
        return PluginInvocation(entry)
    if isinstance(entry, list) and len(entry) == 2:
        identifier, options = entry
        if not isinstance(identifier, str) or not isinstance(options, MutableMapping):
            raise ReleaseConfigError(
                f"Plugin pair must be [identifier, options]: {entry!r}"
            )
        if identifier == COMMIT_ANALYZER and "preset" in options:
            return PluginInvocation(identifier, _parse_analyzer_options(options))
        return PluginInvocation(identifier, dict(options))
    raise ReleaseConfigError(f"Unsupported plugin declaration: {entry!r}")


def _parse_analyzer_options(options: Mapping[str, Any]) -> CommitAnalyzerOptions:
    preset = options["preset"]
    if not isinstance(preset, str):
        raise ReleaseConfigError("Commit analyzer preset must be a string")

    raw_rules = options.get("releaseRules")
    if raw_rules is None:
        raw_rules = []
    if not isinstance(raw_rules, list):
        raise ReleaseConfigError("Commit analyzer releaseRules must be a list")
    rules = [_parse_release_rule(raw_rule) for raw_rule in raw_rules]

    parser_opts = options.get("parserOpts") or {}
    if not isinstance(parser_opts, MutableMapping):
        raise ReleaseConfigError("Commit analyzer parserOpts must be a mapping")
    keywords = parser_opts.get("noteKeywords")
    if keywords is None:
        keywords = []
    if not isinstance(keywords, list) or not all(isinstance(keyword, str) for keyword in keywords):
        raise ReleaseConfigError("parserOpts.noteKeywords must be a list of strings")

    return CommitAnalyzerOptions(
        preset=preset,
        release_rules=tuple(rules),
        note_keywords=tuple(keywords),
        parser_options={key: value for key, value in parser_opts.items() if key != "noteKeywords"},
        extra={key: value for key, value in options.items() if key not in ANALYZER_KEYS},
    )


def _parse_release_rule(raw_rule: Any) -> ReleaseRule:
    if not isinstance(raw_rule, MutableMapping):
        raise ReleaseConfigError(f"Release rule must be a mapping: {raw_rule!r}")

    rule_type = raw_rule.get("type")
    if rule_type is not None and not isinstance(rule_type, str):
        raise ReleaseConfigError(f"Release rule type must be a string: {raw_rule!r}")
    release = raw_rule.get("release")
    extra = {key: value for key, value in raw_rule.items() if key not in ("type", "release")}
    # semantic-release accepts ``release: false`` to suppress a release.
    if not (isinstance(release, str) or release is False) or (rule_type is None and not extra):
        raise ReleaseConfigError(
            f"Release rule must define 'release' and a 'type' or another matcher: {raw_rule!r}"
        )
    return ReleaseRule(type=rule_type, release=release, extra=extra)
