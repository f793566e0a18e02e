"""Release-automation configuration for the composer repository."""

from .config import (
    BREAKING_CHANGE_KEYWORDS,
    COMMIT_ANALYZER,
    DEFAULT_PROFILE,
    EXEC,
    GIT,
    PIP_INDEX_URL_ENV_VAR,
    PROFILES,
    BranchRule,
    CommitAnalyzerOptions,
    PluginInvocation,
    ReleaseConfig,
    ReleaseConfigError,
    ReleaseRule,
    build_release_config,
)
from .parser import load_release_config, parse_release_config
from .writer import SUPPORTED_FORMATS, render_release_config, write_release_config

__all__ = [
    "BREAKING_CHANGE_KEYWORDS",
    "COMMIT_ANALYZER",
    "DEFAULT_PROFILE",
    "EXEC",
    "GIT",
    "PIP_INDEX_URL_ENV_VAR",
    "PROFILES",
    "SUPPORTED_FORMATS",
    "BranchRule",
    "CommitAnalyzerOptions",
    "PluginInvocation",
    "ReleaseConfig",
    "ReleaseConfigError",
    "ReleaseRule",
    "build_release_config",
    "load_release_config",
    "parse_release_config",
    "render_release_config",
    "write_release_config",
]
