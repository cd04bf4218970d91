# SPDX-License-Identifier: MIT

from typing import Literal, NotRequired, TypedDict

Meridiem = Literal["AM", "PM"]
TimestampField = Literal["day", "month", "year", "hour", "minute", "meridiem"]

TIMESTAMP_FIELDS: tuple[TimestampField, ...] = (
    "day",
    "month",
    "year",
    "hour",
    "minute",
    "meridiem",
)


class Timestamp(TypedDict):
    """
    Editable form of an unlock time, one string of digits per field.

    ``meridiem`` is only present while the 12-hour clock is active.
    """

    day: str
    month: str
    year: str
    hour: str
    minute: str
    meridiem: NotRequired[Meridiem]
