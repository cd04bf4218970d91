# SPDX-License-Identifier: MIT

from rich import box
from rich.console import Console
from rich.table import Table

from achievement_keeper import configuration
from achievement_keeper.configuration import DirectoryConfig
from achievement_keeper.view.views.header import header


def directories_view(directories: list[DirectoryConfig]) -> None:
    header("directories")

    table = Table(box=box.SIMPLE)
    table.add_column("name")
    table.add_column("enabled")
    table.add_column("default")
    table.add_column("exists")
    table.add_column("path")

    for directory in directories:
        exists = configuration.expand_path(directory["path"]).is_dir()
        table.add_row(
            directory["name"],
            "✓" if directory["enabled"] else "✗",
            "✓" if directory["is_default"] else "",
            "✓" if exists else "[red]✗[/red]",
            directory["path"],
        )

    console = Console()
    console.print(table)
