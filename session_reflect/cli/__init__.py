"""CLI package exposing the session-reflect command entry points."""

from __future__ import annotations

from .commands import execute_run, list_command, run_command
from .main import cli
from .state import CLIState, get_cli_state


def main() -> None:
    """Invoke the CLI entry point."""
    cli(prog_name="session-reflect")


__all__ = ["CLIState", "cli", "execute_run", "get_cli_state", "list_command", "main", "run_command"]
