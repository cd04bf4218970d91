# SPDX-License-Identifier: MIT

import threading

from rich.console import Console

from achievement_keeper.model.snapshot import EntitySnapshot
from achievement_keeper.repository.configuration import CONFIGURATION_REPO
from achievement_keeper.service.achievement import configured_roots
from achievement_keeper.service.monitor import ChangeMonitor
from achievement_keeper.service.reconcile import reconcile
from achievement_keeper.view.views.achievement import achievements_view


def _render(snapshots: list[EntitySnapshot]) -> None:
    unique, duplicates = reconcile(snapshots)
    achievements_view(unique, duplicates)


def watch() -> None:
    """Watch the enabled directories and reprint whenever a record file changes."""
    config = CONFIGURATION_REPO.get_config()
    monitor = ChangeMonitor(
        configured_roots(), debounce_seconds=config["debounce_ms"] / 1000
    )
    monitor.subscribe(_render)

    console = Console()
    monitor.start()
    console.print("[dim]Watching for changes, press Ctrl+C to stop[/dim]")
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        pass
    finally:
        monitor.stop()
