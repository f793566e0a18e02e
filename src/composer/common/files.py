"""Filesystem helpers for copying application sources."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional

import pathspec

LOGGER = logging.getLogger(__name__)

IGNORE_FILENAME = ".composerignore"


class IgnoreRules:
    """``.composerignore`` patterns with gitignore semantics; the last match wins."""

    def __init__(self, spec: Optional[pathspec.GitIgnoreSpec] = None) -> None:
        self._spec = spec if spec is not None else pathspec.GitIgnoreSpec.from_lines([])

    @classmethod
    def from_file(cls, path: Path) -> "IgnoreRules":
        return cls.parse(path.read_text(encoding="utf-8").splitlines())

    @classmethod
    def parse(cls, lines: Iterable[str]) -> "IgnoreRules":
        return cls(pathspec.GitIgnoreSpec.from_lines(lines))

    def is_excluded(self, relative_path: PurePosixPath, is_dir: bool = False) -> bool:
        candidate = PurePosixPath(relative_path).as_posix()
        if is_dir:
            candidate += "/"
        return self._spec.match_file(candidate)


def find_files_with_extension(directory: str | Path, extension: str) -> List[str]:
    """Recursively list files under ``directory`` ending in ``.extension``.

    ``extension`` is given without the leading dot. Results are sorted.
    """

    root = Path(directory)
    suffix = f".{extension.lstrip('.')}"
    return sorted(
        str(path) for path in root.rglob(f"*{suffix}") if path.is_file() and path.suffix == suffix
    )


def copy_with_ignore_file(
    source: Path,
    destination: Path,
    ignore_file: Optional[Path] = None,
) -> List[Path]:
    """Copy ``source`` into ``destination`` skipping ignored files.

    Returns the destination paths of the copied files.
    """

    source = Path(source)
    destination = Path(destination)
    LOGGER.debug("Copying files: Src: %s, Dest: %s", source, destination)

    rules = IgnoreRules()
    if ignore_file is not None and Path(ignore_file).is_file():
        LOGGER.debug("Using ignorefile: %s", ignore_file)
        rules = IgnoreRules.from_file(Path(ignore_file))

    destination.mkdir(parents=True, exist_ok=True)
    copied: List[Path] = []
    _copy_tree(source, destination, PurePosixPath(), rules, copied)
    return copied


def _copy_tree(
    current: Path,
    destination: Path,
    relative: PurePosixPath,
    rules: IgnoreRules,
    copied: List[Path],
) -> None:
    for entry in sorted(current.iterdir()):
        entry_relative = relative / entry.name
        if entry.is_dir():
            if rules.is_excluded(entry_relative, is_dir=True):
                LOGGER.debug("Skipping ignored directory %s", entry_relative)
                continue
            target_dir = destination / entry.name
            target_dir.mkdir(parents=True, exist_ok=True)
            _copy_tree(entry, target_dir, entry_relative, rules, copied)
        elif entry.is_file():
            if rules.is_excluded(entry_relative):
                LOGGER.debug("Skipping ignored file %s", entry_relative)
                continue
            target = destination / entry.name
            LOGGER.debug("Copying file: %s to %s", entry, target)
            shutil.copy2(entry, target)
            copied.append(target)
