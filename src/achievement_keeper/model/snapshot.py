# SPDX-License-Identifier: MIT

from pathlib import Path
from typing import Literal, TypedDict

import pendulum

from achievement_keeper.model.entity_id import EntityId
from achievement_keeper.model.record import Record

RecordFileFormat = Literal["ini", "json"]


class EntitySnapshot(TypedDict):
    entity_id: EntityId
    records: list[Record]
    root_path: str
    record_path: Path
    file_format: RecordFileFormat
    last_modified: pendulum.DateTime


class DuplicateGroup(TypedDict):
    entity_id: EntityId
    display_name: str
    members: list[EntitySnapshot]  # most recently modified first
