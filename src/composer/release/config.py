"""Release-automation configuration consumed by semantic-release."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

PIP_INDEX_URL_ENV_VAR = "EXTERNAL_PIP_INDEX_URL"

COMMIT_ANALYZER = "@semantic-release/commit-analyzer"
GIT = "@semantic-release/git"
EXEC = "@semantic-release/exec"

EXPORT_VERSION_CMD = 'echo "RELEASE_VERSION=${nextRelease.version}" >> $GITHUB_ENV'

BREAKING_CHANGE_KEYWORDS = ("BREAKING CHANGE", "BREAKING CHANGES", "breaking:")

DEFAULT_PROFILE = "default"


class ReleaseConfigError(RuntimeError):
    """Raised when a release configuration is unknown or malformed."""


@dataclass(frozen=True)
class BranchRule:
    """A branch that releases are cut from, optionally on a pre-release channel."""

    name: str
    prerelease: Union[bool, str, None] = None

    def to_value(self) -> Union[str, Dict[str, Any]]:
        if self.prerelease is None:
            return self.name
        return {"name": self.name, "prerelease": self.prerelease}


@dataclass(frozen=True)
class ReleaseRule:
    """Commit analyzer override; ``extra`` holds matchers such as ``scope``."""

    type: Optional[str]
    release: Union[str, bool]
    extra: Mapping[str, Any] = field(default_factory=dict)

    def to_value(self) -> Dict[str, Any]:
        value: Dict[str, Any] = {}
        if self.type is not None:
            value["type"] = self.type
        value.update(_plain(self.extra))
        value["release"] = self.release
        return value

    def __hash__(self) -> int:
        return _stable_hash(self.to_value())


@dataclass(frozen=True)
class CommitAnalyzerOptions:
    """Options for the commit analyzer plugin.

    Keys other than ``preset``, ``releaseRules`` and ``parserOpts.noteKeywords``
    are kept in ``extra`` and ``parser_options`` so they survive a rewrite.
    """

    preset: str
    release_rules: Sequence[ReleaseRule] = ()
    note_keywords: Sequence[str] = BREAKING_CHANGE_KEYWORDS
    parser_options: Mapping[str, Any] = field(default_factory=dict)
    extra: Mapping[str, Any] = field(default_factory=dict)

    def to_value(self) -> Dict[str, Any]:
        value: Dict[str, Any] = {"preset": self.preset}
        if self.release_rules:
            value["releaseRules"] = [rule.to_value() for rule in self.release_rules]
        parser_opts = _plain(self.parser_options)
        if self.note_keywords:
            parser_opts["noteKeywords"] = list(self.note_keywords)
        if parser_opts:
            value["parserOpts"] = parser_opts
        value.update(_plain(self.extra))
        return value

    def __hash__(self) -> int:
        return _stable_hash(self.to_value())


@dataclass(frozen=True)
class PluginInvocation:
    """A plugin identifier with optional options, run in listed order."""

    identifier: str
    options: Union[Mapping[str, Any], CommitAnalyzerOptions, None] = None

    def to_value(self) -> Union[str, List[Any]]:
        if self.options is None:
            return self.identifier
        return [self.identifier, _plain(self.options)]

    def __hash__(self) -> int:
        return _stable_hash(self.to_value())


@dataclass(frozen=True)
class ReleaseConfig:
    """The record handed to the release tool at startup."""

    branches: Sequence[BranchRule]
    plugins: Sequence[PluginInvocation]
    external_pip_index_url: Optional[str] = field(default=None, compare=False)

    @property
    def branch_names(self) -> Tuple[str, ...]:
        return tuple(branch.name for branch in self.branches)

    def plugin(self, identifier: str) -> Optional[PluginInvocation]:
        for plugin in self.plugins:
            if plugin.identifier == identifier:
                return plugin
        return None

    @property
    def commit_analyzer_options(self) -> Optional[CommitAnalyzerOptions]:
        analyzer = self.plugin(COMMIT_ANALYZER)
        if analyzer is not None and isinstance(analyzer.options, CommitAnalyzerOptions):
            return analyzer.options
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "branches": [branch.to_value() for branch in self.branches],
            "plugins": [plugin.to_value() for plugin in self.plugins],
        }


def _plain(value: Any) -> Any:
    if isinstance(value, CommitAnalyzerOptions):
        return value.to_value()
    if isinstance(value, Mapping):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


def _stable_hash(value: Any) -> int:
    return hash(json.dumps(value, sort_keys=True, default=repr))


def _exec_plugin() -> PluginInvocation:
    return PluginInvocation(EXEC, {"prepareCmd": EXPORT_VERSION_CMD})


def _default_profile() -> Tuple[Tuple[BranchRule, ...], Tuple[PluginInvocation, ...]]:
    branches = (
        BranchRule("master"),
        BranchRule("alpha", prerelease=True),
        BranchRule("fix-build", prerelease="rc"),
    )
    plugins = (
        PluginInvocation(COMMIT_ANALYZER),
        PluginInvocation(GIT),
        _exec_plugin(),
    )
    return branches, plugins


def _conventional_profile() -> Tuple[Tuple[BranchRule, ...], Tuple[PluginInvocation, ...]]:
    branches = (
        BranchRule("master"),
        BranchRule("alpha", prerelease=True),
        BranchRule("update-release-config"),
    )
    analyzer_options = CommitAnalyzerOptions(
        preset="angular",
        release_rules=(
            ReleaseRule(type="breaking", release="major"),
            ReleaseRule(type="docs", release="patch"),
            ReleaseRule(type="refactor", release="patch"),
            ReleaseRule(type="style", release="patch"),
        ),
    )
    plugins = (
        PluginInvocation(COMMIT_ANALYZER, analyzer_options),
        PluginInvocation(GIT),
        _exec_plugin(),
    )
    return branches, plugins


PROFILES = {
    DEFAULT_PROFILE: _default_profile,
    "conventional": _conventional_profile,
}


def build_release_config(
    profile: str = DEFAULT_PROFILE,
    environ: Mapping[str, str] | None = None,
) -> ReleaseConfig:
    """Return the release configuration for ``profile``.

    ``EXTERNAL_PIP_INDEX_URL`` is read from ``environ`` (``os.environ`` by
    default) and kept on the record; it is not part of the exported shape.
    """

    try:
        factory = PROFILES[profile]
    except KeyError as exc:
        known = ", ".join(sorted(PROFILES))
        raise ReleaseConfigError(
            f"Unknown release profile '{profile}'. Expected one of: {known}"
        ) from exc

    env = os.environ if environ is None else environ
    branches, plugins = factory()
    return ReleaseConfig(
        branches=branches,
        plugins=plugins,
        external_pip_index_url=env.get(PIP_INDEX_URL_ENV_VAR),
    )
