"""CLI main entrypoint preparing shared state and delegating to commands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from session_reflect.core.utils.config import load_settings
from session_reflect.core.utils.logger import configure_logging, get_logger

from .state import CLIState

LOGGER = get_logger(__name__)


def _resolve_log_level(verbose: int, quiet: bool, default: str) -> str:
    """Resolve log level based on verbosity flags."""
    if quiet:
        return "WARNING"
    if verbose >= 2:
        return "DEBUG"
    if verbose == 1:
        return "INFO"
    return default


def _initialise_state(config_path: Optional[Path], *, verbose: int, quiet: bool) -> CLIState:
    """Load settings, configure logging, and prepare shared state."""
    try:
        settings = load_settings(config_path)
    except ValueError as exc:
        raise click.ClickException(f"Invalid configuration: {exc}") from exc

    settings.log_level = _resolve_log_level(verbose, quiet, settings.log_level)
    configure_logging(settings.log_level, structured=settings.structured_logging)

    LOGGER.debug("CLI state initialised with store %s", settings.store_path)
    return CLIState(settings=settings)


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    help="Path to configuration file.",
)
@click.option("-v", "--verbose", count=True, help="Verbosity: -v (info), -vv (debug)")
@click.option("-q", "--quiet", is_flag=True, help="Only log warnings and errors")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: int, quiet: bool) -> None:
    """session-reflect - keep durable learnings from agent sessions.

    Scans a conversation transcript for corrections, approved patterns and
    observations, and appends the ones not already known to a Markdown log.

    Examples:
      session-reflect run transcript.json
      session-reflect run --dry-run --json transcript.jsonl
      session-reflect list
    """
    ctx.ensure_object(dict)
    state = _initialise_state(config_path, verbose=verbose, quiet=quiet)
    ctx.obj.update({"cli_state": state, "settings": state.settings})


def _register_commands() -> None:
    """Register CLI commands (lazy import to avoid cycles)."""
    from .commands import list_command, run_command

    for command in (run_command, list_command):
        if command.name not in cli.commands:
            cli.add_command(command)


_register_commands()
