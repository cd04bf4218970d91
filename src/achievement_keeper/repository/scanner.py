# SPDX-License-Identifier: MIT

from collections.abc import Iterable
from pathlib import Path
from typing import Optional

from achievement_keeper import configuration, time
from achievement_keeper.logger import LOGGER
from achievement_keeper.model.entity_id import EntityId
from achievement_keeper.model.snapshot import EntitySnapshot
from achievement_keeper.repository.record_file import (
    file_format_for,
    read_record_file,
    resolve_record_path,
)


def scan_entity(root: str | Path, entity_id: EntityId) -> Optional[EntitySnapshot]:
    """Parse one entity's record file, or ``None`` when it holds no records."""
    record_path = resolve_record_path(root, entity_id)
    if not record_path.is_file():
        return None

    records = read_record_file(record_path)
    if not records:
        return None

    try:
        modified = record_path.stat().st_mtime
    except OSError as error:
        LOGGER.warning("Failed to stat %s: %s", record_path, error)
        return None

    return {
        "entity_id": entity_id,
        "records": records,
        "root_path": str(root),
        "record_path": record_path,
        "file_format": file_format_for(record_path),
        "last_modified": time.datetime_from_unix(modified),
    }


def scan_root(root: str | Path) -> list[EntitySnapshot]:
    root_path = configuration.expand_path(root)
    if not root_path.is_dir():
        LOGGER.warning("Scan directory does not exist: %s", root_path)
        return []

    try:
        entity_dirs = sorted(
            (child for child in root_path.iterdir() if child.is_dir()),
            key=lambda child: child.name,
        )
    except OSError as error:
        LOGGER.warning("Failed to read directory %s: %s", root_path, error)
        return []

    snapshots: list[EntitySnapshot] = []
    for entity_dir in entity_dirs:
        snapshot = scan_entity(root, entity_dir.name)
        if snapshot is not None:
            LOGGER.debug(
                "Found %d achievements for %s in %s",
                len(snapshot["records"]),
                snapshot["entity_id"],
                root,
            )
            snapshots.append(snapshot)

    LOGGER.info("Scan finished for %s. Found %d entities.", root_path, len(snapshots))
    return snapshots


def scan(roots: Iterable[str | Path]) -> list[EntitySnapshot]:
    snapshots: list[EntitySnapshot] = []
    for root in roots:
        snapshots.extend(scan_root(root))
    return snapshots
