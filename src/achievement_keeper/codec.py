# SPDX-License-Identifier: MIT

import json
import re
from typing import Any, Optional

from achievement_keeper.logger import LOGGER
from achievement_keeper.model.record import Record

_SECTION_P = re.compile(r"^\[(.*)\]$")

ACHIEVED_KEY = "Achieved"
UNLOCK_TIME_KEY = "UnlockTime"

GSE_EARNED_KEY = "earned"
GSE_EARNED_TIME_KEY = "earned_time"


def _decode(content: bytes | str) -> str:
    if isinstance(content, str):
        return content.lstrip("\ufeff")
    return content.decode("utf-8-sig", errors="replace")


def _parse_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        return 0


def _append_record(records: list[Record], record: Optional[Record]) -> None:
    if record is None or record["id"] == "":
        return
    for index, existing in enumerate(records):
        # A repeated section replaces the earlier one in place
        if existing["id"] == record["id"]:
            records[index] = record
            return
    records.append(record)


def parse_records(content: bytes | str) -> list[Record]:
    """
    Parse the INI-like achievement format.

    Never raises: anything that is not a ``[id]`` section header or a
    ``key=value`` line inside a section is skipped. Keys other than
    ``Achieved`` and ``UnlockTime`` are dropped.
    """
    records: list[Record] = []
    current: Optional[Record] = None
    skipped = 0

    for raw_line in _decode(content).splitlines():
        line = raw_line.strip()
        if line == "":
            continue

        section = _SECTION_P.match(line)
        if section is not None:
            _append_record(records, current)
            current = {
                "id": section.group(1),
                "achieved": False,
                "unlock_time": 0,
            }
            continue

        if current is None or "=" not in line:
            skipped += 1
            continue

        key, value = (part.strip() for part in line.split("=", 1))
        if key == ACHIEVED_KEY:
            current["achieved"] = value == "1"
        elif key == UNLOCK_TIME_KEY:
            current["unlock_time"] = _parse_int(value)

    _append_record(records, current)

    if skipped:
        LOGGER.debug("Skipped %d unrecognized line(s) while parsing records", skipped)
    if not records and skipped:
        LOGGER.warning("Record content contained no achievement sections")
    return records


def serialize_records(records: list[Record]) -> str:
    lines: list[str] = []
    for record in records:
        lines.append(f"[{record['id']}]")
        lines.append(f"{ACHIEVED_KEY}={1 if record['achieved'] else 0}")
        lines.append(f"{UNLOCK_TIME_KEY}={int(record['unlock_time'])}")
        lines.append("")
    return "".join(f"{line}\n" for line in lines)


def _load_gse_object(content: bytes | str) -> Optional[dict[str, Any]]:
    text = _decode(content)
    if text.strip() == "":
        return {}
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as error:
        LOGGER.warning("Invalid GSE achievements JSON: %s", error)
        return None
    if not isinstance(payload, dict):
        LOGGER.warning("GSE achievements JSON is not an object")
        return None
    return payload


def parse_gse_records(content: bytes | str) -> list[Record]:
    payload = _load_gse_object(content)
    if payload is None:
        return []

    records: list[Record] = []
    for record_id, entry in payload.items():
        if not isinstance(entry, dict):
            continue
        earned_time = entry.get(GSE_EARNED_TIME_KEY, 0)
        _append_record(
            records,
            {
                "id": str(record_id),
                "achieved": entry.get(GSE_EARNED_KEY) is True,
                "unlock_time": earned_time if isinstance(earned_time, int) else 0,
            },
        )
    return records


def serialize_gse_records(
    records: list[Record], previous_content: Optional[bytes | str] = None
) -> str:
    """
    Serialize records as a GSE ``achievements.json`` document.

    The record set is replaced as a whole; extra keys a record already
    carried in ``previous_content`` survive for ids that are still present.
    """
    previous = _load_gse_object(previous_content) if previous_content else None
    document: dict[str, Any] = {}
    for record in records:
        entry: dict[str, Any] = {}
        if previous is not None and isinstance(previous.get(record["id"]), dict):
            entry.update(previous[record["id"]])
        entry[GSE_EARNED_KEY] = record["achieved"]
        entry[GSE_EARNED_TIME_KEY] = (
            record["unlock_time"] if record["achieved"] else 0
        )
        document[record["id"]] = entry
    return json.dumps(document, indent=2) + "\n"
