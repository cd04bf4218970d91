# SPDX-License-Identifier: MIT

import sys
from typing import Annotated

import typer
from rich.console import Console

from achievement_keeper.repository.configuration import CONFIGURATION_REPO
from achievement_keeper.service.directory import (
    add_directory,
    find_directory,
    remove_directory,
    set_wine_prefix,
    toggle_directory,
)
from achievement_keeper.terminal.custom_typer import AliasedTyperGroup
from achievement_keeper.view.views.directory import directories_view

app = typer.Typer(cls=AliasedTyperGroup, no_args_is_help=True)

PathArgument = Annotated[str, typer.Argument(help="Directory path")]


def _ensure_configured(path: str) -> None:
    if find_directory(CONFIGURATION_REPO.get_directories(), path) is None:
        console = Console()
        console.print(f"[red]Directory '{path}' is not configured[/red]")
        raise typer.Exit(1)


@app.command("list, ls")
def list_directories() -> None:
    """List monitored directories."""
    directories_view(CONFIGURATION_REPO.get_directories())


@app.command("add, a")
def add(path: PathArgument) -> None:
    """Add a custom directory to monitor."""
    directories = CONFIGURATION_REPO.get_directories()
    updated = add_directory(directories, path)
    if updated == directories:
        console = Console()
        console.print(f"[yellow]Directory '{path}' is already configured[/yellow]")
        return
    CONFIGURATION_REPO.update_config(directories=updated)
    directories_view(updated)


@app.command("toggle, t")
def toggle(path: PathArgument) -> None:
    """Enable or disable a monitored directory."""
    _ensure_configured(path)
    updated = toggle_directory(CONFIGURATION_REPO.get_directories(), path)
    CONFIGURATION_REPO.update_config(directories=updated)
    directories_view(updated)


@app.command("remove, rm")
def remove(path: PathArgument) -> None:
    """Remove a custom directory. Default directories can only be disabled."""
    _ensure_configured(path)
    directories = CONFIGURATION_REPO.get_directories()
    updated = remove_directory(directories, path)
    if updated == directories:
        console = Console()
        console.print(
            f"[red]'{path}' is a default directory, disable it instead[/red]"
        )
        raise typer.Exit(1)
    CONFIGURATION_REPO.update_config(directories=updated)
    directories_view(updated)


@app.command("wine-prefix, wp")
def wine_prefix(path: Annotated[str, typer.Argument(help="Wine prefix path")]) -> None:
    """Rebuild the default directories under a wine prefix."""
    if sys.platform.startswith("win"):
        raise typer.BadParameter("Wine prefix path is not used on Windows")
    if not path.strip():
        raise typer.BadParameter("Wine prefix path cannot be empty")

    updated = set_wine_prefix(CONFIGURATION_REPO.get_directories(), path)
    CONFIGURATION_REPO.update_config(
        wine_prefix_path=path.strip(), directories=updated
    )
    directories_view(updated)
