# SPDX-License-Identifier: MIT

from rich import box
from rich.console import Console
from rich.table import Table

from achievement_keeper.model.backup import RestorePreviewItem
from achievement_keeper.view.views.header import header


def restore_preview_view(items: list[RestorePreviewItem]) -> None:
    header("restore preview")

    table = Table(box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("entity")
    table.add_column("backup", justify="right")
    table.add_column("on disk", justify="right")
    table.add_column("changed", justify="right")
    table.add_column("unchanged", justify="right")
    table.add_column("new", justify="right")
    table.add_column("root")

    for item in items:
        changed = str(item["changed_records"])
        if item["changed_records"]:
            changed = f"[yellow]{changed}[/yellow]"
        table.add_row(
            str(item["index"]),
            item["entity_id"],
            str(item["backup_records"]),
            str(item["existing_records"]),
            changed,
            str(item["unchanged_records"]),
            str(item["new_records"]),
            item["root_path"],
        )

    console = Console()
    console.print(table)
