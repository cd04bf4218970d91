# SPDX-License-Identifier: MIT

from achievement_keeper.configuration import Configuration


def get_configuration_template() -> Configuration:
    return {
        "time_format": "24h",
        "debounce_ms": 500,
        "log_level": "WARNING",
        "log_file": False,
        "data_path": None,
        "wine_prefix_path": None,
        "default_unlock_mode": "current",
        "directories": [],
    }
