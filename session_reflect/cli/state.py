"""Shared CLI state helpers."""

from __future__ import annotations

from dataclasses import dataclass

import click

from session_reflect.core.utils.config import Settings


@dataclass
class CLIState:
    """Holds shared objects for CLI commands."""

    settings: Settings


def get_cli_state(ctx: click.Context) -> CLIState:
    """Retrieve CLIState from context, ensuring it exists."""
    state = ctx.obj.get("cli_state") if ctx.obj else None
    if state is None:
        raise click.ClickException("CLI state missing; CLI not initialised correctly.")
    return state
