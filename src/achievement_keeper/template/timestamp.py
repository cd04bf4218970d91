# SPDX-License-Identifier: MIT

from achievement_keeper.model.timestamp import Timestamp


def get_empty_timestamp_template() -> Timestamp:
    return {
        "day": "",
        "month": "",
        "year": "",
        "hour": "",
        "minute": "",
    }
