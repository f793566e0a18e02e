"""Command line interface for composer."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional, Tuple

import click

from composer import __version__
from composer.common import console
from composer.common.formatting import format_application_summary
from composer.common.templating import TemplateRenderError, render_template
from composer.compose import ComposeError, ComposeRunner
from composer.installer import ApplicationInstaller, InstallError
from composer.release import (
    DEFAULT_PROFILE,
    PROFILES,
    SUPPORTED_FORMATS,
    ReleaseConfigError,
    build_release_config,
    load_release_config,
    render_release_config,
    write_release_config,
)
from composer.storage import ApplicationStore, StorageError
from composer.values import ValuesError, load_values

LOGGER = logging.getLogger(__name__)

LOG_LEVEL_ENV_VAR = "COMPOSER_LOG_LEVEL"
DEFAULT_RELEASE_CONFIG_PATH = Path("release.config.js")

COMPOSE_MISSING_MESSAGE = (
    "Docker-compose is not installed. Please install it before using composer."
)
NO_TEMPLATE_MESSAGE = (
    "You have not provided a template file. Use -t <template path> to specify a template file."
)
NO_TEMPLATE_VALUES_MESSAGE = (
    "You cannot create a template with no values file. Use -v <values path> to specify values file."
)

HANDLED_ERRORS = (
    ComposeError,
    InstallError,
    ReleaseConfigError,
    StorageError,
    TemplateRenderError,
    ValuesError,
)

COMMAND_ALIASES = {
    "i": "install",
    "add": "install",
    "u": "upgrade",
    "update": "upgrade",
    "ls": "list",
    "ps": "list",
    "t": "template",
    "d": "delete",
    "uninstall": "delete",
}


@dataclass
class CliState:
    """Global options shared by every subcommand."""

    log_level: int = logging.INFO
    always_pull: bool = False
    no_run: bool = False
    _runner: Optional[ComposeRunner] = field(default=None, repr=False)

    @property
    def runner(self) -> ComposeRunner:
        if self._runner is None:
            self._runner = ComposeRunner()
        return self._runner

    def store(self) -> ApplicationStore:
        return ApplicationStore()

    def installer(self) -> ApplicationInstaller:
        return ApplicationInstaller(
            self.store(),
            self.runner,
            always_pull=self.always_pull,
            no_run=self.no_run,
        )

    def require_compose(self) -> None:
        if self.no_run:
            return
        if not self.runner.is_installed():
            raise click.ClickException(COMPOSE_MISSING_MESSAGE)


class AliasedGroup(click.Group):
    """Group that resolves the short command aliases."""

    def get_command(self, ctx: click.Context, cmd_name: str) -> Optional[click.Command]:
        return super().get_command(ctx, COMMAND_ALIASES.get(cmd_name, cmd_name))

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> Tuple[Optional[str], Optional[click.Command], list[str]]:
        _, command, remaining = super().resolve_command(ctx, args)
        return (command.name if command else None), command, remaining


@contextmanager
def _handle_errors() -> Iterator[None]:
    try:
        yield
    except HANDLED_ERRORS as exc:
        LOGGER.debug("Command failed", exc_info=True)
        raise click.ClickException(str(exc)) from exc


def _parse_log_level(ctx: click.Context, param: click.Parameter, value: str) -> int:
    try:
        return console.parse_log_level(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc), ctx=ctx, param=param) from exc


@click.group(cls=AliasedGroup)
@click.version_option(__version__, prog_name="composer")
@click.option(
    "-l",
    "--log-level",
    "--log_level",
    envvar=LOG_LEVEL_ENV_VAR,
    default="INFO",
    show_default=True,
    callback=_parse_log_level,
    help="Verbosity level settings, values can be INFO, ERROR, TRACE, WARN.",
)
@click.option(
    "-a",
    "--always-pull",
    is_flag=True,
    help="Pull every image referenced by the templates before installing or upgrading.",
)
@click.option(
    "--no-run",
    is_flag=True,
    help="Render and record applications without running docker-compose.",
)
@click.pass_context
def cli(ctx: click.Context, log_level: int, always_pull: bool, no_run: bool) -> None:
    """Install docker-compose applications from Jinja2 templates."""

    console.configure_logging(log_level)
    ctx.obj = CliState(log_level=log_level, always_pull=always_pull, no_run=no_run)


@cli.command("install")
@click.argument("directory", type=click.Path(path_type=Path, file_okay=False))
@click.option("-i", "--id", "app_id", help="Identifier for the installed application.")
@click.option(
    "-v",
    "--value-files",
    "value_files",
    multiple=True,
    help="Values file or x.y.z=foo override. May be repeated.",
)
@click.pass_obj
def install(state: CliState, directory: Path, app_id: Optional[str], value_files: Tuple[str, ...]) -> None:
    """Install a docker-compose application using a given jinja2 template."""

    state.require_compose()
    with _handle_errors():
        application = state.installer().install(directory, list(value_files), app_id=app_id)
    click.echo(application.id)


@cli.command("upgrade")
@click.argument("app_id")
@click.argument("directory", type=click.Path(path_type=Path, file_okay=False))
@click.option("-v", "--value-files", "value_files", multiple=True)
@click.pass_obj
def upgrade(state: CliState, app_id: str, directory: Path, value_files: Tuple[str, ...]) -> None:
    """Upgrade an installed application by running docker-compose up again.

    Existing services remain and only deltas are applied.
    """

    state.require_compose()
    with _handle_errors():
        application = state.installer().upgrade(app_id, directory, list(value_files))
    click.echo(f"{application.id} upgraded to {application.version}")


@cli.command("list")
@click.option("-q", "--quiet", is_flag=True, help="Print only the ids of the installed applications.")
@click.pass_obj
def list_applications(state: CliState, quiet: bool) -> None:
    """List installed composer applications."""

    with _handle_errors():
        applications = state.store().list_applications()

    if not applications:
        if not quiet:
            click.echo("No applications installed.")
        return

    for application in applications:
        if quiet:
            click.echo(application.id)
        else:
            click.echo(format_application_summary(application))


@cli.command("template")
@click.option("-t", "--template", "template_path", type=click.Path(path_type=Path))
@click.option("-v", "--value-files", "value_files", multiple=True)
@click.option("-o", "--output-file", "output_file", type=click.Path(path_type=Path))
@click.pass_obj
def template(
    state: CliState,
    template_path: Optional[Path],
    value_files: Tuple[str, ...],
    output_file: Optional[Path],
) -> None:
    """Print the rendered compose file once the values have been applied.

    Useful for producing a compose file for use outside composer or for
    debugging templates.
    """

    if template_path is None or not template_path.exists():
        raise click.ClickException(NO_TEMPLATE_MESSAGE)
    if not value_files:
        raise click.ClickException(NO_TEMPLATE_VALUES_MESSAGE)

    with _handle_errors():
        values = load_values(value_files)
        LOGGER.debug("Consolidated values: %r", values)
        rendered = render_template(template_path, values)

    if output_file is None:
        click.echo(rendered)
        return
    try:
        output_file.write_text(rendered, encoding="utf-8")
    except OSError as exc:
        raise click.ClickException(f"Could not write {output_file}: {exc}") from exc


@cli.command("delete")
@click.option("-i", "--ids", "--id", "app_ids", multiple=True, help="Application ids to delete.")
@click.option("--all", "all_apps", is_flag=True, help="Delete every composer application.")
@click.pass_obj
def delete(state: CliState, app_ids: Tuple[str, ...], all_apps: bool) -> None:
    """Delete applications by id (or all of them), removing them completely."""

    if app_ids and all_apps:
        raise click.UsageError("--ids cannot be used together with --all")
    if not app_ids and not all_apps:
        raise click.UsageError("Provide at least one --ids value or use --all")

    state.require_compose()
    with _handle_errors():
        removed = state.installer().delete(list(app_ids), all_apps=all_apps)
    if not removed:
        click.echo("No applications deleted.")


@cli.command("test", hidden=True)
@click.argument("text")
def test_output(text: str) -> None:
    """Emit a line at every output level."""

    LOGGER.debug("trace %s", text)
    LOGGER.debug("debug %s", text)
    LOGGER.info("info %s", text)
    console.success(f"success {text}")
    console.waiting(f"waiting {text}")
    LOGGER.warning("warn %s", text)
    LOGGER.error("error %s", text)
    console.display(f"display {text}")
    console.critical(f"critical {text}")


@cli.group()
def release() -> None:
    """Inspect and write the release-automation configuration."""


_profile_option = click.option(
    "-p",
    "--profile",
    type=click.Choice(sorted(PROFILES)),
    default=DEFAULT_PROFILE,
    show_default=True,
)


@release.command("show")
@_profile_option
@click.option("-f", "--format", "fmt", type=click.Choice(SUPPORTED_FORMATS), default="json", show_default=True)
def release_show(profile: str, fmt: str) -> None:
    """Print the release configuration."""

    with _handle_errors():
        config = build_release_config(profile)
        click.echo(render_release_config(config, fmt), nl=False)


@release.command("write")
@_profile_option
@click.option("-f", "--format", "fmt", type=click.Choice(SUPPORTED_FORMATS), default=None)
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path, dir_okay=False),
    default=DEFAULT_RELEASE_CONFIG_PATH,
    show_default=True,
)
def release_write(profile: str, fmt: Optional[str], output: Path) -> None:
    """Write the release configuration to a file."""

    with _handle_errors():
        config = build_release_config(profile)
        path = write_release_config(config, output, fmt)
    click.echo(f"Release configuration written to {path}")


@release.command("check")
@click.argument("path", type=click.Path(path_type=Path, dir_okay=False))
def release_check(path: Path) -> None:
    """Validate a .releaserc JSON or YAML file."""

    with _handle_errors():
        config = load_release_config(path)
    click.echo(
        f"{path}: {len(config.branches)} branches ({', '.join(config.branch_names)}), "
        f"{len(config.plugins)} plugins"
    )


def main() -> None:
    cli(prog_name="composer")
