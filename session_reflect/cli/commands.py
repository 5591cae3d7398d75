"""Reflection CLI commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import click

from session_reflect.core.utils.logger import get_logger
from session_reflect.errors import StoreReadError, TranscriptError
from session_reflect.memory.store import MemoryStore
from session_reflect.reflection.session import ReflectionReport, ReflectionSession
from session_reflect.reflection.transcript import Transcript

from .state import CLIState, get_cli_state

LOGGER = get_logger(__name__)


def _resolve_store(state: CLIState, store_path: Optional[Path]) -> MemoryStore:
    return MemoryStore(store_path or state.settings.store_path)


def execute_run(
    state: CLIState, transcript_path: Path, *, store_path: Optional[Path], dry_run: bool
) -> ReflectionReport:
    """Shared run implementation: load the transcript and reflect on it."""
    try:
        transcript = Transcript.load(transcript_path)
    except TranscriptError as exc:
        raise click.ClickException(str(exc)) from exc
    LOGGER.debug("Loaded %d turns from %s", len(transcript), transcript_path)

    store = _resolve_store(state, store_path)
    session = ReflectionSession.from_settings(state.settings, store=store)
    try:
        return session.run(transcript, dry_run=dry_run)
    except StoreReadError as exc:
        raise click.ClickException(str(exc)) from exc


@click.command("run")
@click.argument("transcript_path", metavar="TRANSCRIPT", type=click.Path(path_type=Path))
@click.option("--store", "store_path", type=click.Path(path_type=Path), help="Learnings file to use.")
@click.option("--json", "json_output", is_flag=True, help="Emit the report as JSON")
@click.option("--dry-run", is_flag=True, help="Show what would be added without writing")
@click.pass_context
def run_command(
    ctx: click.Context,
    transcript_path: Path,
    store_path: Optional[Path],
    json_output: bool,
    dry_run: bool,
) -> None:
    """Reflect on TRANSCRIPT and append new learnings."""
    state = get_cli_state(ctx)
    report = execute_run(state, transcript_path, store_path=store_path, dry_run=dry_run)

    if json_output:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        click.echo(report.render())

    if report.failed:
        ctx.exit(1)


@click.command("list")
@click.option("--store", "store_path", type=click.Path(path_type=Path), help="Learnings file to read.")
@click.option("--json", "json_output", is_flag=True, help="Emit entries as JSON")
@click.pass_context
def list_command(ctx: click.Context, store_path: Optional[Path], json_output: bool) -> None:
    """Show stored learnings in the order they were added."""
    state = get_cli_state(ctx)
    store = _resolve_store(state, store_path)
    try:
        entries = store.load_all()
    except StoreReadError as exc:
        raise click.ClickException(str(exc)) from exc

    if json_output:
        click.echo(json.dumps([entry.to_dict() for entry in entries], indent=2))
        return

    if not entries:
        status = "" if store.exists() else " (the file does not exist yet)"
        click.echo(f"No learnings stored in {store.path}{status}.")
        return
    for entry in entries:
        click.echo(
            f"{entry.date.isoformat()}  [{entry.confidence.value}] "
            f"{entry.category.label}: {entry.title}"
        )
