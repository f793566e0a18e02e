"""docker-compose wrapper used to start and stop installed applications."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import MutableMapping, Sequence

import yaml

LOGGER = logging.getLogger(__name__)


class ComposeError(RuntimeError):
    """Raised when a compose file is invalid or docker-compose fails."""


@dataclass(frozen=True)
class ComposeResult:
    """Result returned after running a docker-compose command."""

    success: bool
    output: str
    return_code: int | None = None
    skipped: bool = False


class ComposeRunner:
    """Runs docker-compose against rendered compose files."""

    def __init__(self, compose_binary: str = "docker-compose") -> None:
        self._compose_binary = compose_binary

    def is_installed(self) -> bool:
        try:
            completed = subprocess.run(
                [self._compose_binary, "version"],
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError:
            return False
        return completed.returncode == 0

    def validate(self, compose_path: Path) -> None:
        """Compose files are invalid if they are missing, empty or not YAML."""

        compose_path = Path(compose_path)
        if not compose_path.exists():
            raise ComposeError(
                f"The provided compose file path '{compose_path}' does not exist."
            )
        try:
            contents = compose_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ComposeError(f"Could not read compose file '{compose_path}': {exc}") from exc
        if not contents.strip():
            raise ComposeError(f"The provided compose file '{compose_path}' is empty.")
        try:
            yaml.safe_load(contents)
        except yaml.YAMLError as exc:
            raise ComposeError(
                f"The provided compose file '{compose_path}' is not a valid YAML file"
            ) from exc

    def has_no_services(self, compose_path: Path) -> bool:
        try:
            data = yaml.safe_load(Path(compose_path).read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, yaml.YAMLError):
            return False
        if not isinstance(data, MutableMapping):
            return True
        services = data.get("services")
        return not services

    def up(self, compose_path: Path) -> ComposeResult:
        self.validate(compose_path)
        if self.has_no_services(compose_path):
            # Sub-compose files without services are valid and skipped.
            LOGGER.debug(
                "Compose file %s has been skipped due to having no services defined.",
                compose_path,
            )
            return ComposeResult(success=True, output="", return_code=0, skipped=True)
        return self._run(["-f", str(compose_path), "up", "-d"])

    def down(self, compose_path: Path) -> ComposeResult:
        return self._run(["-f", str(compose_path), "down"])

    def pull(self, compose_path: Path) -> ComposeResult:
        LOGGER.info(
            "Always pull is enabled. Pulling latest images. Will ignore failures of local images."
        )
        return self._run(["-f", str(compose_path), "pull", "--ignore-pull-failures"])

    def _run(self, arguments: Sequence[str]) -> ComposeResult:
        command = [self._compose_binary, *arguments]
        LOGGER.debug("[EXEC] %s", " ".join(command))
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            LOGGER.exception("docker-compose binary not found when running %s", arguments)
            return ComposeResult(success=False, output=f"docker-compose binary not found: {exc}\n")

        logs: list[str] = []
        for stream in (completed.stdout, completed.stderr):
            if not stream:
                continue
            for line in stream.splitlines():
                LOGGER.info("%s", line)
            logs.append(stream if stream.endswith("\n") else f"{stream}\n")

        success = completed.returncode == 0
        if not success:
            logs.append(f"Command exited with code {completed.returncode}\n")

        return ComposeResult(
            success=success,
            output="".join(logs),
            return_code=completed.returncode,
        )


__all__ = ["ComposeError", "ComposeResult", "ComposeRunner"]
