# SPDX-License-Identifier: MIT

from typing import TypedDict

from achievement_keeper.model.entity_id import RecordId


class Record(TypedDict):
    id: RecordId
    achieved: bool
    unlock_time: int  # unix seconds, 0 when not achieved
