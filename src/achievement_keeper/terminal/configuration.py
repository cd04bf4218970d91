# SPDX-License-Identifier: MIT

from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from achievement_keeper import configuration
from achievement_keeper.configuration import UnlockModeName
from achievement_keeper.repository.configuration import CONFIGURATION_REPO
from achievement_keeper.repository.status_cache import STATUS_CACHE_REPO
from achievement_keeper.terminal.custom_typer import AliasedTyperGroup
from achievement_keeper.terminal.parse import parse_time_format, parse_unlock_mode

app = typer.Typer(cls=AliasedTyperGroup, no_args_is_help=True)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _settings_table(title: Optional[str] = None) -> Table:
    config = CONFIGURATION_REPO.get_config()

    table = Table(title=title)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="magenta")

    table.add_row("time_format", config["time_format"])
    table.add_row("debounce_ms", str(config["debounce_ms"]))
    table.add_row("log_level", config["log_level"])
    table.add_row("log_file", "✓ Enabled" if config["log_file"] else "✗ Disabled")
    table.add_row("default_unlock_mode", config["default_unlock_mode"])
    table.add_row("wine_prefix_path", config["wine_prefix_path"] or "None")
    table.add_row("data_path", str(configuration.DATA_PATH))
    table.add_row("config_path", str(configuration.APP_CONFIG_PATH))
    table.add_row("directories", str(len(config["directories"])))
    return table


@app.command("view, v")
def view() -> None:
    """Display current configuration settings."""
    console = Console()
    console.print(_settings_table())


@app.command("set, s")
def set(
    time_format: Annotated[
        Optional[str],
        typer.Option(
            "--time-format",
            help="Clock used for editable timestamps: 12h or 24h",
        ),
    ] = None,
    debounce_ms: Annotated[
        Optional[int],
        typer.Option(
            "--debounce-ms",
            min=0,
            help="Quiet period in milliseconds before a rescan while watching",
        ),
    ] = None,
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="DEBUG, INFO, WARNING, ERROR or CRITICAL"),
    ] = None,
    log_file: Annotated[
        Optional[bool],
        typer.Option(
            "--log-file/--no-log-file",
            help="Enable/disable writing a log file in the data directory",
        ),
    ] = None,
    default_unlock_mode: Annotated[
        Optional[str],
        typer.Option(
            "--default-unlock-mode",
            help="Unlock time for records without one: current, random or custom",
        ),
    ] = None,
    data_path: Annotated[
        Optional[str],
        typer.Option(
            "--data-path",
            help="Directory path for storing data files",
        ),
    ] = None,
    remove_data_path: Annotated[
        bool,
        typer.Option(
            "--remove-data-path",
            help="Reset data path to the platform default",
        ),
    ] = False,
) -> None:
    """
    Update configuration settings.

    Changing the time format converts every pending timestamp in the
    status cache to the new clock.
    """
    parsed_time_format = (
        parse_time_format(time_format) if time_format is not None else None
    )
    if log_level is not None and log_level.upper() not in _LOG_LEVELS:
        raise typer.BadParameter(f"Unknown log level '{log_level}'")
    mode_name: Optional[UnlockModeName] = None
    if default_unlock_mode is not None:
        mode_name = parse_unlock_mode(default_unlock_mode).value

    previous_time_format = CONFIGURATION_REPO.get_config()["time_format"]
    CONFIGURATION_REPO.update_config(
        time_format=parsed_time_format,
        debounce_ms=debounce_ms,
        log_level=log_level,
        log_file=log_file,
        default_unlock_mode=mode_name,
        data_path=data_path,
        remove_data_path=remove_data_path,
    )

    console = Console()
    if parsed_time_format is not None and parsed_time_format != previous_time_format:
        converted = STATUS_CACHE_REPO.migrate_time_format(parsed_time_format)
        console.print(
            f"Converted {converted} pending timestamps to {parsed_time_format}"
        )

    console.print("[green]Configuration updated successfully![/green]\n")
    console.print(_settings_table(title="Updated Configuration"))
