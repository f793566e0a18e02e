"""JSON file storage for installed applications."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Callable, List, Optional

from .models import ApplicationState, PersistedApplication, StorageError

LOGGER = logging.getLogger(__name__)

COMPOSER_HOME_ENV_VAR = "COMPOSER_HOME"
DEFAULT_COMPOSER_DIRECTORY = Path.home() / ".composer"
CONFIG_FILENAME = "config.json"
BACKUP_FILENAME = "backup-config.json"


def get_composer_directory() -> Path:
    """Return the directory composer keeps its state and applications in."""

    override = os.getenv(COMPOSER_HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return DEFAULT_COMPOSER_DIRECTORY


class ApplicationStore:
    """Small wrapper around ``config.json`` for application persistence."""

    def __init__(self, directory: str | Path | None = None) -> None:
        self.directory = Path(directory) if directory is not None else get_composer_directory()
        self.config_path = self.directory / CONFIG_FILENAME

    def list_applications(self) -> List[PersistedApplication]:
        try:
            contents = self.config_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"Could not open file '{self.config_path}'") from exc

        if not contents.strip():
            return []
        try:
            payload = json.loads(contents)
        except ValueError as exc:
            raise StorageError(f"Could not parse JSON in {CONFIG_FILENAME}") from exc
        if not isinstance(payload, list):
            raise StorageError(f"{CONFIG_FILENAME} must contain a list of applications")
        return [PersistedApplication.from_dict(entry) for entry in payload]

    def get(self, app_id: str) -> Optional[PersistedApplication]:
        for application in self.list_applications():
            if application.id == app_id:
                return application
        return None

    def append(self, application: PersistedApplication) -> None:
        """Store ``application``, replacing any existing entry with the same id."""

        applications = [app for app in self.list_applications() if app.id != application.id]
        applications.append(application)
        self._write(applications)

    def update(
        self,
        app_id: str,
        modify: Callable[[PersistedApplication], PersistedApplication],
    ) -> PersistedApplication:
        updated: Optional[PersistedApplication] = None
        applications: List[PersistedApplication] = []
        for application in self.list_applications():
            if application.id == app_id:
                application = modify(application)
                updated = application
            applications.append(application)
        if updated is None:
            raise StorageError(f"No application with id '{app_id}' is installed")
        self._write(applications)
        return updated

    def update_state(self, app_id: str, state: ApplicationState) -> PersistedApplication:
        LOGGER.debug("Setting application %s state to %s", app_id, state.value)
        return self.update(app_id, lambda application: replace(application, state=state))

    def remove(self, app_id: str) -> PersistedApplication:
        applications = self.list_applications()
        remaining = [app for app in applications if app.id != app_id]
        if len(remaining) == len(applications):
            raise StorageError(f"No application with id '{app_id}' is installed")
        removed = next(app for app in applications if app.id == app_id)
        self._write(remaining)
        return removed

    def backup(self) -> tuple[Path, Path]:
        """Move ``config.json`` aside, returning ``(config_path, backup_path)``."""

        self.directory.mkdir(parents=True, exist_ok=True)
        if not self.config_path.exists():
            self.config_path.write_text("[]", encoding="utf-8")
        backup_path = self.directory / BACKUP_FILENAME
        self.config_path.replace(backup_path)
        LOGGER.debug("Moved file %s to %s", self.config_path, backup_path)
        return self.config_path, backup_path

    def _write(self, applications: List[PersistedApplication]) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            self.config_path.write_text(
                json.dumps([app.to_dict() for app in applications]),
                encoding="utf-8",
            )
        except OSError as exc:
            raise StorageError(f"Could not write JSON to {self.config_path}") from exc
