# SPDX-License-Identifier: MIT

from typing import Annotated, Optional

import typer
from rich.console import Console

from achievement_keeper.repository.status_cache import STATUS_CACHE_REPO
from achievement_keeper.service.achievement import load_achievements
from achievement_keeper.service.reconcile import (
    apply_source_overrides,
    find_snapshot,
    known_roots,
)
from achievement_keeper.service.unlock import resolve_status_bucket
from achievement_keeper.terminal.custom_typer import AliasedTyperGroup
from achievement_keeper.terminal.parse import parse_source
from achievement_keeper.view.views.achievement import (
    achievement_view,
    achievements_view,
    duplicates_view,
)

app = typer.Typer(cls=AliasedTyperGroup, no_args_is_help=True)


@app.command("list, ls")
def list_achievements() -> None:
    """Scan the enabled directories and list every entity found."""
    _, unique, duplicates = load_achievements()
    achievements_view(unique, duplicates)


@app.command("show, sh")
def show(
    entity_id: Annotated[str, typer.Argument(help="Entity (game) id")],
    root: Annotated[
        Optional[str],
        typer.Option("--root", "-r", help="Read this root instead of the newest copy"),
    ] = None,
) -> None:
    """Show the records of one entity with any pending changes."""
    snapshots, unique, duplicates = load_achievements()
    source = parse_source(root)

    if source is not None:
        chosen = apply_source_overrides(unique, duplicates, {entity_id: source})
        snapshot = find_snapshot(chosen, entity_id, source) or find_snapshot(
            snapshots, entity_id, source
        )
    else:
        snapshot = find_snapshot(unique, entity_id)

    if snapshot is None:
        console = Console()
        console.print(f"[red]No achievement file found for '{entity_id}'[/red]")
        raise typer.Exit(1)

    pending, _ = resolve_status_bucket(
        STATUS_CACHE_REPO,
        entity_id,
        snapshot["root_path"],
        known_roots(snapshots, entity_id),
    )
    achievement_view(snapshot, pending)


@app.command("duplicates, dup")
def duplicates() -> None:
    """List entities found under more than one root."""
    _, _, duplicate_groups = load_achievements()
    duplicates_view(duplicate_groups)
