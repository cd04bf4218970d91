# SPDX-License-Identifier: MIT

from achievement_keeper.model.status import StatusEntry
from achievement_keeper.template.timestamp import get_empty_timestamp_template


def get_status_entry_template() -> StatusEntry:
    return {
        "achieved": False,
        "timestamp": get_empty_timestamp_template(),
    }
