# SPDX-License-Identifier: MIT

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from achievement_keeper.model.backup import Backup
from achievement_keeper.service.achievement import scan_configured_roots
from achievement_keeper.service.backup import (
    RESTORE_STRATEGIES,
    BackupFormatError,
    apply_restore,
    create_backup,
    preview_restore,
    read_backup,
)
from achievement_keeper.terminal.custom_typer import AliasedTyperGroup
from achievement_keeper.view.views.backup import restore_preview_view

app = typer.Typer(cls=AliasedTyperGroup, no_args_is_help=True)

BackupPathArgument = Annotated[Path, typer.Argument(help="Backup file path")]


def _read(path: Path) -> Backup:
    try:
        return read_backup(path)
    except BackupFormatError as error:
        console = Console()
        console.print(f"[red]{error}[/red]")
        raise typer.Exit(1)


@app.command("create, c")
def create(path: BackupPathArgument) -> None:
    """Save the records of every entity in the enabled directories."""
    backup = create_backup(scan_configured_roots(), path)
    console = Console()
    console.print(f"Backed up {len(backup['games'])} entities to {path}")


@app.command("preview, p")
def preview(path: BackupPathArgument) -> None:
    """Compare a backup with what is on disk now."""
    restore_preview_view(preview_restore(_read(path)))


@app.command("restore, r")
def restore(
    path: BackupPathArgument,
    strategy: Annotated[
        str,
        typer.Option(
            "--strategy",
            "-s",
            help="For entries that differ on disk: replace or skip",
        ),
    ] = "replace",
) -> None:
    """Write the records of a backup back to their directories."""
    if strategy not in RESTORE_STRATEGIES:
        raise typer.BadParameter(
            f"Strategy must be one of: {', '.join(RESTORE_STRATEGIES)}"
        )
    backup = _read(path)
    restored = apply_restore(backup, strategy)  # type: ignore[arg-type]
    console = Console()
    console.print(f"Restored {restored} of {len(backup['games'])} entries")
