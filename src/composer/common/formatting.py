"""Formatting helpers for presenting installed applications on the console."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import click

from composer.storage.models import ApplicationState, PersistedApplication

STATE_COLOR_MAP = {
    ApplicationState.RUNNING: "green",
    ApplicationState.STARTING: "yellow",
    ApplicationState.ERROR: "red",
}


def format_timestamp(value: Optional[int]) -> str:
    """Convert a Unix timestamp to a human friendly string."""

    if value is None:
        return "-"
    try:
        dt = datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return str(value)
    return dt.strftime("%Y-%m-%d %H:%M:%S UTC")


def humanize_state(state: Optional[ApplicationState]) -> str:
    if state is None:
        return "Unknown"
    return state.value.replace("_", " ").title()


def styled_state(state: ApplicationState) -> str:
    return click.style(humanize_state(state), fg=STATE_COLOR_MAP.get(state))


def format_application_summary(application: PersistedApplication, *, color: bool = True) -> str:
    state = styled_state(application.state) if color else humanize_state(application.state)
    return (
        f"{application.id} [{application.app_name} {application.version}] "
        f"state: {state} (installed {format_timestamp(application.timestamp)}) "
        f"at {application.compose_path}"
    )
