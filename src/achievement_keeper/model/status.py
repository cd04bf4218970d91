# SPDX-License-Identifier: MIT

from typing import NamedTuple, TypeAlias, TypedDict

from achievement_keeper.model.entity_id import (
    AUTO_SOURCE,
    EntityId,
    RecordId,
    SourceKey,
)
from achievement_keeper.model.timestamp import Timestamp


class StatusKey(NamedTuple):
    entity_id: EntityId
    source: SourceKey = AUTO_SOURCE


class StatusEntry(TypedDict):
    achieved: bool
    timestamp: Timestamp


StatusBucket: TypeAlias = dict[RecordId, StatusEntry]
