# SPDX-License-Identifier: MIT

from typing import Annotated, Optional

import typer
from rich.console import Console

from achievement_keeper.model.unlock import UnlockFailed, UnlockMode
from achievement_keeper.repository.configuration import CONFIGURATION_REPO
from achievement_keeper.repository.status_cache import STATUS_CACHE_REPO
from achievement_keeper.service.achievement import load_achievements
from achievement_keeper.service.reconcile import find_snapshot, known_roots
from achievement_keeper.service.unlock import UnlockOrchestrator, run_unlock
from achievement_keeper.terminal.parse import (
    parse_source,
    parse_timestamp,
    parse_unlock_mode,
)


def unlock(
    entity_id: Annotated[str, typer.Argument(help="Entity (game) id")],
    root: Annotated[
        Optional[str],
        typer.Option(
            "--root",
            "-r",
            help="Root to write to (default: the newest copy on disk)",
        ),
    ] = None,
    mode: Annotated[
        Optional[str],
        typer.Option(
            "--mode",
            "-m",
            help="Time for records without one: current, random or custom",
        ),
    ] = None,
    at: Annotated[
        Optional[str],
        typer.Option(
            "--at", help="Timestamp for custom mode, 'YYYY-MM-DD HH:MM [AM|PM]'"
        ),
    ] = None,
) -> None:
    """Write the pending selections of an entity to disk and verify them."""
    config = CONFIGURATION_REPO.get_config()
    unlock_mode = parse_unlock_mode(mode or config["default_unlock_mode"])
    custom_timestamp = (
        parse_timestamp(at, config["time_format"]) if at is not None else None
    )
    if unlock_mode is UnlockMode.USE_EXPLICIT_TIMESTAMP and custom_timestamp is None:
        raise typer.BadParameter("Custom mode requires --at")

    snapshots, unique, _ = load_achievements()
    source = parse_source(root)
    if source is None:
        snapshot = find_snapshot(unique, entity_id)
        if snapshot is None:
            raise typer.BadParameter(
                f"No achievement file found for '{entity_id}', pass --root"
            )
        source = snapshot["root_path"]

    result = run_unlock(
        STATUS_CACHE_REPO,
        UnlockOrchestrator(),
        entity_id,
        source,
        unlock_mode,
        config["time_format"],
        custom_timestamp=custom_timestamp,
        known_roots=known_roots(snapshots, entity_id),
    )

    console = Console()
    if isinstance(result, UnlockFailed):
        console.print(
            f"[red]Unlock failed while {result.phase.value}: {result.reason}[/red]"
        )
        raise typer.Exit(1)

    achieved = sum(1 for record in result.records if record["achieved"])
    console.print(
        f"[green]Unlocked {achieved} achievements for {entity_id}[/green]"
        f" ({result.path or result.root_path})"
    )
