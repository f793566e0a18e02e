"""Application installer responsible for the install/upgrade/delete lifecycle."""

from __future__ import annotations

import logging
import shutil
import time
from dataclasses import replace
from pathlib import Path
from typing import Iterable, List, Protocol, Sequence
from uuid import uuid4

from composer.common import console
from composer.common.files import IGNORE_FILENAME, copy_with_ignore_file, find_files_with_extension
from composer.common.templating import TEMPLATE_EXTENSION, render_template, rendered_output_path
from composer.compose import ComposeError, ComposeResult, ComposeRunner
from composer.storage import (
    MANIFEST_FILENAME,
    AppManifest,
    ApplicationState,
    ApplicationStore,
    PersistedApplication,
    StorageError,
    load_app_manifest,
)
from composer.values import ValuesError, load_values

LOGGER = logging.getLogger(__name__)

DEFAULT_VERSION = "latest"


class InstallError(RuntimeError):
    """Raised when an application source cannot be installed."""


class ComposeBackend(Protocol):
    """Protocol describing the compose operations used by the installer."""

    def up(self, compose_path: Path) -> ComposeResult:
        ...

    def down(self, compose_path: Path) -> ComposeResult:
        ...

    def pull(self, compose_path: Path) -> ComposeResult:
        ...


class ApplicationInstaller:
    """Render application templates and drive docker-compose for them."""

    def __init__(
        self,
        store: ApplicationStore,
        runner: ComposeBackend | None = None,
        *,
        always_pull: bool = False,
        no_run: bool = False,
    ) -> None:
        self._store = store
        self._runner = runner or ComposeRunner()
        self._always_pull = always_pull
        self._no_run = no_run

    def install(
        self,
        directory: Path,
        value_sources: Sequence[str],
        app_id: str | None = None,
    ) -> PersistedApplication:
        directory = self._require_directory(directory)
        if not value_sources:
            raise ValuesError("You cannot install an application with no values file.")

        manifest = self._read_manifest(directory)
        install_id = app_id or self._readable_id(manifest.name)
        if self._store.get(install_id) is not None:
            raise InstallError(
                f"Application '{install_id}' is already installed. Use upgrade to change it."
            )
        LOGGER.debug("Installing application with ID: %s", install_id)

        values = load_values(value_sources)
        target = self._store.directory / install_id
        compose_files = self._prepare_fresh(directory, target, values)

        application = PersistedApplication(
            id=install_id,
            version=manifest.version,
            timestamp=int(time.time()),
            state=ApplicationState.STARTING,
            app_name=manifest.name,
            compose_path=str(target),
        )
        self._store.append(application)
        return self._start(application, compose_files)

    def upgrade(
        self,
        app_id: str,
        directory: Path,
        value_sources: Sequence[str],
    ) -> PersistedApplication:
        directory = self._require_directory(directory)
        existing = self._store.get(app_id)
        if existing is None:
            raise StorageError(f"No application with id '{app_id}' is installed")
        if not value_sources:
            raise ValuesError("You cannot upgrade an application with no values file.")

        manifest = self._read_manifest(directory)
        values = load_values(value_sources)
        compose_files = self._replace_install(existing, directory, values)

        application = self._store.update(
            app_id,
            lambda current: replace(
                current,
                version=manifest.version,
                timestamp=int(time.time()),
                state=ApplicationState.STARTING,
            ),
        )
        LOGGER.info("Upgrading application %s to version %s", app_id, manifest.version)
        return self._start(application, compose_files)

    def delete(
        self,
        app_ids: Sequence[str] | None = None,
        *,
        all_apps: bool = False,
    ) -> List[PersistedApplication]:
        if all_apps:
            targets = self._store.list_applications()
        else:
            if not app_ids:
                raise InstallError("Provide at least one application id or use --all.")
            targets = []
            for app_id in app_ids:
                application = self._store.get(app_id)
                if application is None:
                    raise StorageError(f"No application with id '{app_id}' is installed")
                targets.append(application)

        removed: List[PersistedApplication] = []
        failed: List[str] = []
        for application in targets:
            if self._stop(application):
                self._store.remove(application.id)
                shutil.rmtree(application.compose_path, ignore_errors=True)
                console.success(f"Deleted application {application.id}")
                removed.append(application)
            else:
                failed.append(application.id)

        if failed:
            raise ComposeError(
                "docker-compose down has failed for app(s) "
                + ", ".join(failed)
                + ". Some containers may still persist."
            )
        return removed

    def _prepare_fresh(self, source: Path, target: Path, values: dict) -> List[Path]:
        if target.exists():
            shutil.rmtree(target)
        try:
            return self._prepare(source, target, values)
        except Exception:
            shutil.rmtree(target, ignore_errors=True)
            raise

    def _replace_install(
        self, application: PersistedApplication, source: Path, values: dict
    ) -> List[Path]:
        """Render the new source beside the install, then swap it in.

        Compose files that the new source no longer produces are brought
        down before their directory is replaced.
        """

        target = Path(application.compose_path)
        staging = target.with_name(f"{target.name}.upgrade")
        staged_files = self._prepare_fresh(source, staging, values)
        kept = {path.relative_to(staging) for path in staged_files}

        stale = [
            compose_file
            for compose_file in self._compose_files(application)
            if compose_file.relative_to(target) not in kept
        ]
        if stale and not self._down(stale):
            LOGGER.warning(
                "docker-compose down has failed for removed files of app %s. "
                "Some containers may still persist.",
                application.id,
            )

        if target.exists():
            shutil.rmtree(target)
        staging.rename(target)
        return [target / path.relative_to(staging) for path in staged_files]

    def _prepare(self, source: Path, target: Path, values: dict) -> List[Path]:
        copy_with_ignore_file(source, target, source / IGNORE_FILENAME)
        compose_files = self._render_templates(target, values)
        if not compose_files:
            raise InstallError(f"No *.{TEMPLATE_EXTENSION} templates found in {source}")
        return compose_files

    def _render_templates(self, target: Path, values: dict) -> List[Path]:
        rendered: List[Path] = []
        for template in find_files_with_extension(target, TEMPLATE_EXTENSION):
            template_path = Path(template)
            output_path = rendered_output_path(template_path)
            output_path.write_text(render_template(template_path, values), encoding="utf-8")
            LOGGER.debug("Rendered %s to %s", template_path, output_path)
            rendered.append(output_path)
        return rendered

    def _compose_files(self, application: PersistedApplication) -> List[Path]:
        target = Path(application.compose_path)
        if not target.exists():
            return []
        return [
            rendered_output_path(Path(template))
            for template in find_files_with_extension(target, TEMPLATE_EXTENSION)
        ]

    def _start(
        self, application: PersistedApplication, compose_files: Sequence[Path]
    ) -> PersistedApplication:
        if self._no_run:
            LOGGER.info("Not running application %s (--no-run)", application.id)
            return application

        if self._always_pull:
            for compose_file in compose_files:
                self._runner.pull(compose_file)

        for compose_file in compose_files:
            console.waiting(f"Starting {compose_file.name} for {application.id}")
            try:
                result = self._runner.up(compose_file)
            except ComposeError:
                self._store.update_state(application.id, ApplicationState.ERROR)
                raise
            if not result.success:
                self._store.update_state(application.id, ApplicationState.ERROR)
                LOGGER.error("docker-compose up has failed for app %s", application.id)
                raise ComposeError(
                    f"docker-compose up has failed for app {application.id} "
                    f"(exit code {result.return_code})"
                )

        running = self._store.update_state(application.id, ApplicationState.RUNNING)
        console.success(f"Application {application.id} is running")
        return running

    def _stop(self, application: PersistedApplication) -> bool:
        stopped = self._down(reversed(self._compose_files(application)))
        if not stopped:
            self._store.update_state(application.id, ApplicationState.ERROR)
            LOGGER.error(
                "docker-compose down has failed for app %s. Some containers may still persist.",
                application.id,
            )
        return stopped

    def _down(self, compose_files: Iterable[Path]) -> bool:
        if self._no_run:
            return True
        stopped = True
        for compose_file in compose_files:
            if not compose_file.exists():
                continue
            if not self._runner.down(compose_file).success:
                stopped = False
        return stopped

    def _read_manifest(self, directory: Path) -> AppManifest:
        manifest_path = directory / MANIFEST_FILENAME
        if not manifest_path.exists():
            return AppManifest(name=directory.resolve().name, version=DEFAULT_VERSION)
        return load_app_manifest(manifest_path)

    @staticmethod
    def _require_directory(directory: Path) -> Path:
        directory = Path(directory)
        if not directory.is_dir():
            raise InstallError(f"Application directory '{directory}' does not exist.")
        return directory

    @staticmethod
    def _readable_id(name: str) -> str:
        return f"{name}-{uuid4().hex[:8]}"


__all__ = ["ApplicationInstaller", "ComposeBackend", "InstallError"]
