# SPDX-License-Identifier: MIT

import random
from typing import Optional, cast

import pendulum

from achievement_keeper.configuration import TimeFormat
from achievement_keeper.model.timestamp import Meridiem, Timestamp

SECONDS_PER_YEAR = 365 * 24 * 60 * 60

_DATE_FIELDS = ("day", "month", "year", "hour", "minute")


def now_utc() -> pendulum.DateTime:
    return pendulum.now("UTC")


def datetime_from_unix(unix_seconds: float) -> pendulum.DateTime:
    return pendulum.from_timestamp(unix_seconds, tz="UTC")


def datetime_to_unix(datetime: pendulum.DateTime) -> int:
    return datetime.int_timestamp


def datetime_to_iso_str(datetime: pendulum.DateTime) -> str:
    return datetime.isoformat()


def datetime_from_str(datetime: str) -> pendulum.DateTime:
    return cast(pendulum.DateTime, pendulum.parse(datetime))


def datetime_to_display_local_datetime_str(datetime: pendulum.DateTime) -> str:
    return datetime.in_tz("local").format("YYYY-MM-DD HH:mm")


def unix_to_display_local_datetime_str(unix_seconds: int) -> str:
    if unix_seconds <= 0:
        return "-"
    return datetime_to_display_local_datetime_str(datetime_from_unix(unix_seconds))


def random_past_year(
    now: pendulum.DateTime, rng: Optional[random.Random] = None
) -> pendulum.DateTime:
    """Uniformly random instant in the 365 days before ``now``."""
    generator = rng if rng is not None else random.Random()
    offset = generator.uniform(0, SECONDS_PER_YEAR)
    return datetime_from_unix(now.timestamp() - offset)


def is_timestamp_complete(timestamp: Optional[Timestamp]) -> bool:
    if timestamp is None:
        return False
    for field in _DATE_FIELDS:
        value = timestamp.get(field, "")
        if not isinstance(value, str) or not value.strip().isdigit():
            return False
    meridiem = timestamp.get("meridiem")
    if meridiem is not None and meridiem not in ("AM", "PM"):
        return False
    return True


def _hour_to_24(hour: int, meridiem: Optional[Meridiem]) -> int:
    if meridiem == "PM" and hour < 12:
        return hour + 12
    if meridiem == "AM" and hour == 12:
        return 0
    return hour


def _hour_to_12(hour: int) -> tuple[int, Meridiem]:
    meridiem: Meridiem = "PM" if hour >= 12 else "AM"
    return hour % 12 or 12, meridiem


def timestamp_to_unix(timestamp: Optional[Timestamp]) -> int:
    """
    Convert an editable timestamp, read in local time, to unix seconds.

    Incomplete or impossible values (e.g. February 30th) yield the 0
    sentinel rather than a partially parsed date.
    """
    if timestamp is None or not is_timestamp_complete(timestamp):
        return 0

    hour = _hour_to_24(int(timestamp["hour"]), timestamp.get("meridiem"))
    try:
        datetime = pendulum.datetime(
            int(timestamp["year"]),
            int(timestamp["month"]),
            int(timestamp["day"]),
            hour,
            int(timestamp["minute"]),
            tz="local",
        )
    except ValueError:
        return 0
    return datetime.int_timestamp


def timestamp_from_datetime(
    datetime: pendulum.DateTime, time_format: TimeFormat
) -> Timestamp:
    local = datetime.in_tz("local")
    timestamp: Timestamp = {
        "day": f"{local.day:02d}",
        "month": f"{local.month:02d}",
        "year": str(local.year),
        "hour": f"{local.hour:02d}",
        "minute": f"{local.minute:02d}",
    }
    if time_format == "12h":
        return timestamp_to_12_hour(timestamp)
    return timestamp


def timestamp_from_unix(unix_seconds: int, time_format: TimeFormat) -> Timestamp:
    return timestamp_from_datetime(datetime_from_unix(unix_seconds), time_format)


def timestamp_to_12_hour(timestamp: Timestamp) -> Timestamp:
    converted = cast(Timestamp, dict(timestamp))
    if not is_timestamp_complete(timestamp) or "meridiem" in timestamp:
        return converted
    hour, meridiem = _hour_to_12(int(timestamp["hour"]))
    converted["hour"] = f"{hour:02d}"
    converted["meridiem"] = meridiem
    return converted


def timestamp_to_24_hour(timestamp: Timestamp) -> Timestamp:
    converted = cast(Timestamp, dict(timestamp))
    if not is_timestamp_complete(timestamp) or "meridiem" not in timestamp:
        return converted
    meridiem = converted.pop("meridiem")
    converted["hour"] = f"{_hour_to_24(int(timestamp['hour']), meridiem):02d}"
    return converted


def timestamp_with_default_meridiem(
    timestamp: Timestamp, time_format: TimeFormat
) -> Timestamp:
    """On the 12-hour clock a missing meridiem reads as AM."""
    filled = cast(Timestamp, dict(timestamp))
    if time_format == "12h" and "meridiem" not in filled:
        filled["meridiem"] = "AM"
    return filled


def convert_timestamp_format(
    timestamp: Timestamp, time_format: TimeFormat
) -> Timestamp:
    if time_format == "12h":
        return timestamp_to_12_hour(timestamp)
    return timestamp_to_24_hour(timestamp)


def timestamp_to_display_str(timestamp: Timestamp) -> str:
    if not is_timestamp_complete(timestamp):
        parts = [timestamp.get(field, "") or "--" for field in _DATE_FIELDS]
        return "{2}-{1}-{0} {3}:{4} (incomplete)".format(*parts)
    text = (
        f"{timestamp['year']}-{timestamp['month']}-{timestamp['day']} "
        f"{timestamp['hour']}:{timestamp['minute']}"
    )
    meridiem = timestamp.get("meridiem")
    if meridiem is not None:
        text += f" {meridiem}"
    return text
