"""Console logging setup and styled status lines."""

from __future__ import annotations

import logging

import click

LOG_LEVELS = {
    "TRACE": logging.DEBUG,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

LEVEL_STYLES = {
    logging.DEBUG: {"italic": True},
    logging.INFO: {"bold": True},
    logging.WARNING: {"fg": "bright_yellow"},
    logging.ERROR: {"fg": "bright_red"},
    logging.CRITICAL: {"fg": "bright_red", "bold": True},
}

_LOGGER = logging.getLogger("composer")


class StyledFormatter(logging.Formatter):
    """Render records as ``[LEVEL] message`` styled by level."""

    def __init__(self, *, color: bool = True) -> None:
        super().__init__("[%(levelname)s] %(message)s")
        self._color = color

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if not self._color:
            return message
        return click.style(message, **LEVEL_STYLES.get(record.levelno, {}))


class ClickHandler(logging.Handler):
    """Write records to whatever stderr click currently targets."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.echo(self.format(record), err=True)
        except Exception:  # noqa: BLE001
            self.handleError(record)


def parse_log_level(name: str) -> int:
    try:
        return LOG_LEVELS[name.strip().upper()]
    except KeyError as exc:
        choices = ", ".join(LOG_LEVELS)
        raise ValueError(f"Unknown log level '{name}'. Expected one of: {choices}") from exc


def configure_logging(level: int, *, color: bool = True) -> None:
    """Attach a single stderr handler to the ``composer`` logger."""

    for handler in list(_LOGGER.handlers):
        if isinstance(handler, ClickHandler):
            _LOGGER.removeHandler(handler)

    handler = ClickHandler()
    handler.setFormatter(StyledFormatter(color=color))
    _LOGGER.addHandler(handler)
    _LOGGER.setLevel(level)


def success(message: str) -> None:
    if _LOGGER.isEnabledFor(logging.INFO):
        click.secho(message, fg="bright_cyan", err=True)


def waiting(message: str) -> None:
    if _LOGGER.isEnabledFor(logging.INFO):
        click.secho(message, fg="bright_magenta", err=True)


def display(message: str) -> None:
    click.secho(message, bold=True)


def critical(message: str) -> None:
    click.secho(message, fg="bright_red", err=True)
