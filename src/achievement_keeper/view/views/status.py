# SPDX-License-Identifier: MIT

from rich import box
from rich.console import Console
from rich.table import Table

from achievement_keeper import time
from achievement_keeper.model.status import StatusBucket, StatusKey
from achievement_keeper.view.views.header import header


def status_view(buckets: dict[StatusKey, StatusBucket]) -> None:
    header("pending status")

    table = Table(box=box.SIMPLE)
    table.add_column("entity")
    table.add_column("source")
    table.add_column("record")
    table.add_column("achieved")
    table.add_column("timestamp")

    for key in sorted(buckets):
        for record_id, entry in sorted(buckets[key].items()):
            timestamp = entry["timestamp"]
            table.add_row(
                key.entity_id,
                key.source,
                record_id,
                "X" if entry["achieved"] else " ",
                time.timestamp_to_display_str(timestamp)
                if any(timestamp.values())
                else "-",
            )

    console = Console()
    console.print(table)
