# SPDX-License-Identifier: MIT

from typing import Literal, TypedDict

from achievement_keeper.model.entity_id import EntityId
from achievement_keeper.model.record import Record
from achievement_keeper.model.snapshot import RecordFileFormat

RestoreStrategy = Literal["replace", "skip"]


class BackupEntry(TypedDict):
    entity_id: EntityId
    root_path: str
    file_format: RecordFileFormat
    last_modified: str  # ISO 8601
    records: list[Record]


class Backup(TypedDict):
    format_version: int
    created_at: str  # ISO 8601
    games: list[BackupEntry]


class RestorePreviewItem(TypedDict):
    index: int
    entity_id: EntityId
    root_path: str
    file_format: RecordFileFormat
    backup_records: int
    existing_records: int
    overlapping_records: int
    changed_records: int
    unchanged_records: int
    new_records: int
    will_replace: bool
