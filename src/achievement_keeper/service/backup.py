# SPDX-License-Identifier: MIT

import json
from copy import deepcopy
from pathlib import Path
from typing import Any, Optional

import pendulum

from achievement_keeper import configuration, time
from achievement_keeper.logger import LOGGER
from achievement_keeper.model.backup import (
    Backup,
    BackupEntry,
    RestorePreviewItem,
    RestoreStrategy,
)
from achievement_keeper.model.record import Record
from achievement_keeper.model.snapshot import EntitySnapshot
from achievement_keeper.repository.record_file import (
    read_record_file,
    resolve_record_path,
    resolve_write_path,
    write_record_file,
)

BACKUP_FORMAT_VERSION = 1
RESTORE_STRATEGIES: tuple[RestoreStrategy, ...] = ("replace", "skip")


class BackupFormatError(Exception):
    pass


def create_backup(
    snapshots: list[EntitySnapshot], path: Path, now: Optional[pendulum.DateTime] = None
) -> Backup:
    created_at = now if now is not None else time.now_utc()
    backup: Backup = {
        "format_version": BACKUP_FORMAT_VERSION,
        "created_at": time.datetime_to_iso_str(created_at),
        "games": [
            {
                "entity_id": snapshot["entity_id"],
                "root_path": snapshot["root_path"],
                "file_format": snapshot["file_format"],
                "last_modified": time.datetime_to_iso_str(snapshot["last_modified"]),
                "records": deepcopy(snapshot["records"]),
            }
            for snapshot in snapshots
        ],
    }

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(backup, indent=2), encoding="utf-8")
    LOGGER.info("Backup written to %s with %d entries", path, len(backup["games"]))
    return backup


def __parse_record(raw: Any) -> Record:
    if not isinstance(raw, dict) or not isinstance(raw.get("id"), str):
        raise BackupFormatError(f"Invalid record entry: {raw!r}")
    return {
        "id": raw["id"],
        "achieved": bool(raw.get("achieved", False)),
        "unlock_time": int(raw.get("unlock_time", 0)),
    }


def __parse_entry(raw: Any) -> BackupEntry:
    if not isinstance(raw, dict):
        raise BackupFormatError(f"Invalid backup entry: {raw!r}")
    try:
        entity_id = str(raw["entity_id"])
        root_path = str(raw["root_path"])
        raw_records = raw["records"]
    except KeyError as error:
        raise BackupFormatError(f"Backup entry is missing {error}") from error
    if not isinstance(raw_records, list):
        raise BackupFormatError(f"Records of {entity_id} are not a list")

    return {
        "entity_id": entity_id,
        "root_path": root_path,
        "file_format": "json" if raw.get("file_format") == "json" else "ini",
        "last_modified": str(raw.get("last_modified", "")),
        "records": [__parse_record(record) for record in raw_records],
    }


def read_backup(path: Path) -> Backup:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as error:
        raise BackupFormatError(f"Cannot read backup {path}: {error}") from error
    except ValueError as error:
        raise BackupFormatError(
            f"Backup {path} is not valid JSON: {error}"
        ) from error

    if not isinstance(raw, dict) or not isinstance(raw.get("games"), list):
        raise BackupFormatError(f"Backup {path} has no games list")

    version = raw.get("format_version", BACKUP_FORMAT_VERSION)
    if version != BACKUP_FORMAT_VERSION:
        raise BackupFormatError(f"Unsupported backup version: {version}")

    try:
        games = [__parse_entry(entry) for entry in raw["games"]]
    except (TypeError, ValueError) as error:
        raise BackupFormatError(f"Backup {path} is malformed: {error}") from error

    return {
        "format_version": version,
        "created_at": str(raw.get("created_at", "")),
        "games": games,
    }


def __existing_records(entry: BackupEntry) -> list[Record]:
    path = resolve_record_path(entry["root_path"], entry["entity_id"])
    if not path.is_file():
        return []
    return read_record_file(path)


def preview_entry(index: int, entry: BackupEntry) -> RestorePreviewItem:
    existing = {record["id"]: record for record in __existing_records(entry)}

    overlapping = changed = unchanged = new = 0
    for record in entry["records"]:
        current = existing.get(record["id"])
        if current is None:
            new += 1
            continue
        overlapping += 1
        if (
            current["achieved"] != record["achieved"]
            or current["unlock_time"] != record["unlock_time"]
        ):
            changed += 1
        else:
            unchanged += 1

    return {
        "index": index,
        "entity_id": entry["entity_id"],
        "root_path": entry["root_path"],
        "file_format": entry["file_format"],
        "backup_records": len(entry["records"]),
        "existing_records": len(existing),
        "overlapping_records": overlapping,
        "changed_records": changed,
        "unchanged_records": unchanged,
        "new_records": new,
        "will_replace": overlapping > 0,
    }


def preview_restore(backup: Backup) -> list[RestorePreviewItem]:
    return [
        preview_entry(index, entry) for index, entry in enumerate(backup["games"])
    ]


def __restore_path(entry: BackupEntry) -> Path:
    entity_dir = configuration.expand_path(entry["root_path"]) / entry["entity_id"]
    if (
        entry["file_format"] == "json"
        and not (entity_dir / configuration.RECORD_FILE_NAME).exists()
    ):
        return entity_dir / configuration.GSE_RECORD_FILE_NAME
    return resolve_write_path(entry["root_path"], entry["entity_id"])


def apply_restore(backup: Backup, strategy: RestoreStrategy = "replace") -> int:
    """
    Write the backed-up records back to their roots.

    ``strategy`` decides what happens to entries whose on-disk records
    differ from the backup: "replace" overwrites them, "skip" leaves
    them. Returns the number of entries written.
    """
    if strategy not in RESTORE_STRATEGIES:
        raise ValueError(f"Invalid restore strategy: {strategy}")

    restored = 0
    for index, entry in enumerate(backup["games"]):
        preview = preview_entry(index, entry)
        if preview["changed_records"] > 0 and strategy == "skip":
            LOGGER.info(
                "Skipping restore of %s, on-disk state differs", entry["entity_id"]
            )
            continue

        path = __restore_path(entry)
        try:
            write_record_file(path, entry["records"])
        except OSError as error:
            LOGGER.error(
                "Failed to restore %s to %s: %s", entry["entity_id"], path, error
            )
            continue
        restored += 1

    LOGGER.info("Restored %d of %d backup entries", restored, len(backup["games"]))
    return restored
