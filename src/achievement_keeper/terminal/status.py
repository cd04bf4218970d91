# SPDX-License-Identifier: MIT

from typing import Annotated, Optional

import typer
from rich.console import Console

from achievement_keeper.model.timestamp import TIMESTAMP_FIELDS
from achievement_keeper.repository.configuration import CONFIGURATION_REPO
from achievement_keeper.repository.status_cache import STATUS_CACHE_REPO
from achievement_keeper.service.achievement import scan_configured_roots
from achievement_keeper.service.reconcile import find_snapshot
from achievement_keeper.terminal.custom_typer import AliasedTyperGroup
from achievement_keeper.terminal.parse import parse_source, parse_timestamp
from achievement_keeper.view.views.status import status_view

app = typer.Typer(cls=AliasedTyperGroup, no_args_is_help=True)

EntityArgument = Annotated[str, typer.Argument(help="Entity (game) id")]
RecordArgument = Annotated[str, typer.Argument(help="Record (achievement) id")]
RootOption = Annotated[
    Optional[str],
    typer.Option(
        "--root", "-r", help="Root path or catalog source (default: unresolved)"
    ),
]


@app.command("view, v")
def view(
    entity_id: Annotated[
        Optional[str], typer.Argument(help="Only show this entity")
    ] = None,
) -> None:
    """Show pending unlock selections."""
    buckets = STATUS_CACHE_REPO.get_all_buckets()
    if entity_id is not None:
        buckets = {
            key: bucket for key, bucket in buckets.items() if key.entity_id == entity_id
        }
    status_view(buckets)


@app.command("toggle, t")
def toggle(
    entity_id: EntityArgument, record_id: RecordArgument, root: RootOption = None
) -> None:
    """Mark a record achieved, or back to locked."""
    entry = STATUS_CACHE_REPO.toggle(entity_id, record_id, parse_source(root))
    console = Console()
    state = "[green]achieved[/green]" if entry["achieved"] else "[red]locked[/red]"
    console.print(f"{record_id}: {state}")


@app.command("set-time, st")
def set_time(
    entity_id: EntityArgument,
    record_id: RecordArgument,
    at: Annotated[
        Optional[str],
        typer.Option("--at", help="Full timestamp, 'YYYY-MM-DD HH:MM [AM|PM]'"),
    ] = None,
    field: Annotated[
        Optional[str],
        typer.Option("--field", help="Single field: " + ", ".join(TIMESTAMP_FIELDS)),
    ] = None,
    value: Annotated[
        Optional[str], typer.Option("--value", help="Value for --field")
    ] = None,
    root: RootOption = None,
) -> None:
    """Set the unlock time of a record marked achieved."""
    source = parse_source(root)
    if (at is None) == (field is None):
        raise typer.BadParameter("Pass either --at or --field with --value")

    updated = True
    if at is not None:
        time_format = CONFIGURATION_REPO.get_config()["time_format"]
        timestamp = parse_timestamp(at, time_format)
        for name in TIMESTAMP_FIELDS:
            updated = updated and STATUS_CACHE_REPO.set_timestamp_field(
                entity_id, record_id, name, timestamp.get(name, ""), source
            )
    elif field is not None:
        if value is None:
            raise typer.BadParameter("--field requires --value")
        try:
            updated = STATUS_CACHE_REPO.set_timestamp_field(
                entity_id, record_id, field, value, source
            )
        except ValueError as error:
            raise typer.BadParameter(str(error)) from error

    console = Console()
    if not updated:
        console.print(f"[red]Mark '{record_id}' as achieved before timing it[/red]")
        raise typer.Exit(1)
    console.print(f"Updated unlock time of {record_id}")


@app.command("clear-time, ct")
def clear_time(
    entity_id: EntityArgument, record_id: RecordArgument, root: RootOption = None
) -> None:
    """Forget the unlock time so the unlock mode picks one."""
    console = Console()
    if not STATUS_CACHE_REPO.clear_timestamp(entity_id, record_id, parse_source(root)):
        console.print(f"[red]No pending selection for '{record_id}'[/red]")
        raise typer.Exit(1)
    console.print(f"Cleared unlock time of {record_id}")


@app.command("seed, sd")
def seed(entity_id: EntityArgument, root: RootOption = None) -> None:
    """Copy the achieved records on disk into the pending selections."""
    source = parse_source(root)
    snapshot = find_snapshot(scan_configured_roots(), entity_id, source)
    console = Console()
    if snapshot is None:
        console.print(f"[red]No achievement file found for '{entity_id}'[/red]")
        raise typer.Exit(1)

    seeded = STATUS_CACHE_REPO.seed_from_records(
        entity_id,
        snapshot["root_path"],
        snapshot["records"],
        CONFIGURATION_REPO.get_config()["time_format"],
    )
    console.print(f"Seeded {seeded} records from {snapshot['record_path']}")


@app.command("reset, r")
def reset(
    entity_id: EntityArgument,
    root: Annotated[
        Optional[str],
        typer.Option("--root", "-r", help="Only reset this source"),
    ] = None,
) -> None:
    """Drop pending selections of an entity."""
    removed = STATUS_CACHE_REPO.reset(entity_id, parse_source(root))
    console = Console()
    console.print(f"Removed {removed} pending buckets for {entity_id}")
