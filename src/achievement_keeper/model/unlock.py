# SPDX-License-Identifier: MIT

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, TypeAlias, TypedDict

from achievement_keeper.model.entity_id import EntityId, RecordId
from achievement_keeper.model.record import Record
from achievement_keeper.model.timestamp import Timestamp


class UnlockMode(Enum):
    USE_CURRENT_TIME = "current"
    USE_RANDOM_PAST_YEAR = "random"
    USE_EXPLICIT_TIMESTAMP = "custom"


class UnlockPhase(Enum):
    COMPOSING = "composing"
    WRITING = "writing"
    VERIFYING = "verifying"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class UnlockItem(TypedDict):
    record_id: RecordId
    achieved: bool
    timestamp: Optional[Timestamp]


class UnlockTarget(TypedDict):
    entity_id: EntityId
    root_path: str
    items: list[UnlockItem]
    mode: UnlockMode
    custom_timestamp: Optional[Timestamp]


@dataclass(frozen=True)
class UnlockCommitted:
    entity_id: EntityId
    root_path: str
    path: Optional[Path]
    records: list[Record] = field(default_factory=list)
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class UnlockFailed:
    entity_id: EntityId
    root_path: str
    reason: str
    phase: UnlockPhase
    ok: bool = field(default=False, init=False)


UnlockResult: TypeAlias = UnlockCommitted | UnlockFailed
