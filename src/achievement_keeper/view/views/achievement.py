# SPDX-License-Identifier: MIT

from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from achievement_keeper import time
from achievement_keeper.model.snapshot import DuplicateGroup, EntitySnapshot
from achievement_keeper.model.status import StatusBucket
from achievement_keeper.model.timestamp import Timestamp
from achievement_keeper.view.views.header import header


def _achieved_count(snapshot: EntitySnapshot) -> int:
    return sum(1 for record in snapshot["records"] if record["achieved"])


def achievements_view(
    snapshots: list[EntitySnapshot], duplicates: list[DuplicateGroup]
) -> None:
    header("achievements")

    duplicated = {group["entity_id"] for group in duplicates}

    table = Table(box=box.SIMPLE)
    table.add_column("entity")
    table.add_column("achieved", justify="right")
    table.add_column("format")
    table.add_column("modified")
    table.add_column("root")

    for snapshot in snapshots:
        entity = snapshot["entity_id"]
        if entity in duplicated:
            entity = f"{entity} [yellow]*[/yellow]"
        table.add_row(
            entity,
            f"{_achieved_count(snapshot)}/{len(snapshot['records'])}",
            snapshot["file_format"],
            time.datetime_to_display_local_datetime_str(snapshot["last_modified"]),
            snapshot["root_path"],
        )

    console = Console()
    console.print(table)
    if duplicated:
        console.print(
            "[yellow]*[/yellow] found under more than one root, "
            "showing the most recently modified"
        )


def achievement_view(
    snapshot: EntitySnapshot, pending: Optional[StatusBucket] = None
) -> None:
    header(f"{snapshot['entity_id']} @ {snapshot['root_path']}")

    pending = pending or {}
    on_disk = {record["id"] for record in snapshot["records"]}

    table = Table(box=box.SIMPLE)
    table.add_column("record")
    table.add_column("achieved")
    table.add_column("unlock time")
    table.add_column("pending")

    for record in snapshot["records"]:
        entry = pending.get(record["id"])
        table.add_row(
            record["id"],
            "X" if record["achieved"] else " ",
            time.unix_to_display_local_datetime_str(record["unlock_time"])
            if record["achieved"]
            else "-",
            _pending_str(entry["achieved"], entry["timestamp"]) if entry else "",
        )
    for record_id, entry in pending.items():
        if record_id not in on_disk:
            table.add_row(
                record_id,
                " ",
                "-",
                _pending_str(entry["achieved"], entry["timestamp"]),
            )

    console = Console()
    console.print(table)


def _pending_str(achieved: bool, timestamp: Timestamp) -> str:
    if not achieved:
        return "[red]locked[/red]"
    if not any(timestamp.values()):
        return "[green]unlock[/green]"
    return f"[green]unlock[/green] {time.timestamp_to_display_str(timestamp)}"


def duplicates_view(duplicates: list[DuplicateGroup]) -> None:
    header("duplicates")

    table = Table(box=box.SIMPLE)
    table.add_column("entity")
    table.add_column("root")
    table.add_column("modified")
    table.add_column("achieved", justify="right")

    for group in duplicates:
        for position, member in enumerate(group["members"]):
            table.add_row(
                group["display_name"] if position == 0 else "",
                f"[bold]{member['root_path']}[/bold]"
                if position == 0
                else member["root_path"],
                time.datetime_to_display_local_datetime_str(member["last_modified"]),
                f"{_achieved_count(member)}/{len(member['records'])}",
            )

    console = Console()
    console.print(table)
