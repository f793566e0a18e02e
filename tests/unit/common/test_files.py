from __future__ import annotations

import textwrap
from pathlib import Path, PurePosixPath

import pytest

from composer.common.files import (
    IgnoreRules,
    copy_with_ignore_file,
    find_files_with_extension,
)


def touch(root: Path, relative: str, content: str = "x") -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture()
def simple_app(tmp_path: Path) -> Path:
    source = tmp_path / "simple"
    touch(source, "template.jinja2")
    touch(source, ".ignoreme")
    touch(source, ".composerignore", ".ignore*\n")
    return source


@pytest.fixture()
def complex_app(tmp_path: Path) -> Path:
    source = tmp_path / "complex"
    for relative in (
        "template.jinja2",
        "notFound",
        "subDir/template.jinja2",
        "subDir/notFound",
        "subDir/subDir2/aFile.txt",
        "subDir/subDir2/notFound2",
        "subDir/subDir2/alsoIgnored",
    ):
        touch(source, relative)
    touch(
        source,
        ".composerignore",
        textwrap.dedent(
            """
            # files that never ship
            notFound*
            alsoIgnored
            """
        ),
    )
    return source


def test_copy_respects_ignore_file(simple_app: Path, tmp_path: Path) -> None:
    destination = tmp_path / "out"

    copy_with_ignore_file(simple_app, destination, simple_app / ".composerignore")

    assert (destination / "template.jinja2").exists()
    assert not (destination / ".ignoreme").exists()


def test_copy_without_ignore_file_copies_everything(simple_app: Path, tmp_path: Path) -> None:
    destination = tmp_path / "out"

    copied = copy_with_ignore_file(simple_app, destination)

    assert (destination / ".ignoreme").exists()
    assert len(copied) == 3


def test_copy_complex_tree(complex_app: Path, tmp_path: Path) -> None:
    destination = tmp_path / "out"

    copy_with_ignore_file(complex_app, destination, complex_app / ".composerignore")

    assert (destination / "subDir/template.jinja2").exists()
    assert (destination / "template.jinja2").exists()
    assert (destination / "subDir/subDir2/aFile.txt").exists()
    assert not (destination / "notFound").exists()
    assert not (destination / "subDir/notFound").exists()
    assert not (destination / "subDir/subDir2/notFound2").exists()
    assert not (destination / "subDir/subDir2/alsoIgnored").exists()


def test_missing_ignore_file_is_treated_as_empty(simple_app: Path, tmp_path: Path) -> None:
    destination = tmp_path / "out"

    copy_with_ignore_file(simple_app, destination, simple_app / "absent-ignore")

    assert (destination / ".ignoreme").exists()


@pytest.mark.parametrize(
    "lines, path, is_dir, expected",
    [
        (["*.log"], "logs/app.log", False, True),
        (["/build"], "build", True, True),
        (["/build"], "src/build", True, False),
        (["cache/"], "cache", False, False),
        (["cache/"], "nested/cache", True, True),
        (["*.log", "!keep.log"], "keep.log", False, False),
        (["docs/*.md"], "docs/readme.md", False, True),
        (["docs/*.md"], "docs/guides/setup.md", False, False),
        (["**/secret.env"], "secret.env", False, True),
        (["**/secret.env"], "config/prod/secret.env", False, True),
        (["logs/**"], "logs/2024/app.log", False, True),
        (["", "# comment"], "anything", False, False),
    ],
)
def test_ignore_rules(lines: list[str], path: str, is_dir: bool, expected: bool) -> None:
    rules = IgnoreRules.parse(lines)

    assert rules.is_excluded(PurePosixPath(path), is_dir=is_dir) is expected


def test_ignored_directory_is_not_descended(tmp_path: Path) -> None:
    source = tmp_path / "app"
    touch(source, "secrets/key.pem")
    touch(source, "compose.jinja2")
    touch(source, ".composerignore", "secrets/\n")

    copy_with_ignore_file(source, tmp_path / "out", source / ".composerignore")

    assert not (tmp_path / "out" / "secrets").exists()


def test_single_star_does_not_cross_directories(tmp_path: Path) -> None:
    source = tmp_path / "app"
    touch(source, "docs/index.md")
    touch(source, "docs/guides/setup.md")
    touch(source, ".composerignore", "docs/*.md\n")

    copy_with_ignore_file(source, tmp_path / "out", source / ".composerignore")

    assert not (tmp_path / "out" / "docs" / "index.md").exists()
    assert (tmp_path / "out" / "docs" / "guides" / "setup.md").exists()


def test_find_files_with_extension(tmp_path: Path) -> None:
    touch(tmp_path, "complex/subDir/template.jinja2")
    touch(tmp_path, "complex/template.jinja2")
    touch(tmp_path, "simple/template.jinja2")
    touch(tmp_path, "simple/values.yaml")
    touch(tmp_path, "simple/template.jinja2.bak")

    found = find_files_with_extension(tmp_path, "jinja2")

    relative = [Path(path).relative_to(tmp_path).as_posix() for path in found]
    assert relative == [
        "complex/subDir/template.jinja2",
        "complex/template.jinja2",
        "simple/template.jinja2",
    ]
