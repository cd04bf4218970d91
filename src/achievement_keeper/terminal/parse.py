# SPDX-License-Identifier: MIT

import re
from typing import Optional

import typer

from achievement_keeper import configuration, time
from achievement_keeper.configuration import TimeFormat
from achievement_keeper.model.entity_id import SourceKey
from achievement_keeper.model.timestamp import Timestamp
from achievement_keeper.model.unlock import UnlockMode
from achievement_keeper.repository.record_file import is_catalog_source

_TIMESTAMP_P = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{1,2})-(?P<day>\d{1,2})"
    r"[ T](?P<hour>\d{1,2}):(?P<minute>\d{2})"
    r"(?: ?(?P<meridiem>[AaPp][Mm]))?$"
)

_UNLOCK_MODES = {
    "current": UnlockMode.USE_CURRENT_TIME,
    "now": UnlockMode.USE_CURRENT_TIME,
    "random": UnlockMode.USE_RANDOM_PAST_YEAR,
    "custom": UnlockMode.USE_EXPLICIT_TIMESTAMP,
}


def parse_timestamp(value: str, time_format: TimeFormat) -> Timestamp:
    """
    Parse ``YYYY-MM-DD HH:MM`` with an optional ``AM``/``PM`` suffix.

    The result is converted to ``time_format`` and must name a real
    moment, otherwise ``typer.BadParameter`` is raised.
    """
    match = _TIMESTAMP_P.match(value.strip())
    if match is None:
        raise typer.BadParameter(
            f"Expected 'YYYY-MM-DD HH:MM [AM|PM]', got '{value}'"
        )

    timestamp: Timestamp = {
        "day": f"{int(match['day']):02d}",
        "month": f"{int(match['month']):02d}",
        "year": match["year"],
        "hour": f"{int(match['hour']):02d}",
        "minute": match["minute"],
    }
    if match["meridiem"] is not None:
        hour = int(match["hour"])
        if not 1 <= hour <= 12:
            raise typer.BadParameter(f"Hour must be between 1 and 12, got {hour}")
        timestamp["meridiem"] = "PM" if match["meridiem"].upper() == "PM" else "AM"
    elif int(match["hour"]) > 23:
        raise typer.BadParameter(f"Hour must be between 0 and 23, got {match['hour']}")

    if time.timestamp_to_unix(timestamp) <= 0:
        raise typer.BadParameter(f"'{value}' is not a valid date and time")
    return time.convert_timestamp_format(timestamp, time_format)


def parse_unlock_mode(value: str) -> UnlockMode:
    mode = _UNLOCK_MODES.get(value.strip().lower())
    if mode is None:
        raise typer.BadParameter(
            f"Unlock mode must be one of: current, random, custom (got '{value}')"
        )
    return mode


def parse_time_format(value: str) -> TimeFormat:
    normalized = value.strip().lower()
    if normalized in ("12", "12h"):
        return "12h"
    if normalized in ("24", "24h"):
        return "24h"
    raise typer.BadParameter(f"Time format must be 12h or 24h, got '{value}'")


def parse_source(root: Optional[str]) -> Optional[SourceKey]:
    """Normalize a ``--root`` value the way the scanner reports roots."""
    if root is None:
        return None
    if is_catalog_source(root):
        return root
    return str(configuration.expand_path(root))
