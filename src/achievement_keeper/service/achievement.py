# SPDX-License-Identifier: MIT

from achievement_keeper.model.snapshot import DuplicateGroup, EntitySnapshot
from achievement_keeper.repository.configuration import CONFIGURATION_REPO
from achievement_keeper.repository.scanner import scan
from achievement_keeper.service.directory import enabled_roots
from achievement_keeper.service.reconcile import reconcile


def configured_roots() -> list[str]:
    return enabled_roots(CONFIGURATION_REPO.get_directories())


def scan_configured_roots() -> list[EntitySnapshot]:
    return scan(configured_roots())


def load_achievements() -> tuple[
    list[EntitySnapshot], list[EntitySnapshot], list[DuplicateGroup]
]:
    """Scan every enabled root; returns all snapshots, the winners, and duplicates."""
    snapshots = scan_configured_roots()
    unique, duplicates = reconcile(snapshots)
    return snapshots, unique, duplicates
