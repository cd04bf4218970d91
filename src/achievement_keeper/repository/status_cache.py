# SPDX-License-Identifier: MIT

import json
from copy import deepcopy
from pathlib import Path
from typing import Any, Optional

from achievement_keeper import configuration, time
from achievement_keeper.configuration import TimeFormat
from achievement_keeper.logger import LOGGER
from achievement_keeper.model.entity_id import (
    AUTO_SOURCE,
    EntityId,
    RecordId,
    SourceKey,
)
from achievement_keeper.model.record import Record
from achievement_keeper.model.status import StatusBucket, StatusEntry, StatusKey
from achievement_keeper.model.timestamp import TIMESTAMP_FIELDS
from achievement_keeper.template.status import get_status_entry_template
from achievement_keeper.template.timestamp import get_empty_timestamp_template

STATUS_CACHE_VERSION = 1
LEGACY_KEY_SEPARATOR = "::"


def _key(entity_id: EntityId, source: Optional[SourceKey]) -> StatusKey:
    return StatusKey(entity_id, source or AUTO_SOURCE)


class StatusCacheRepository:
    """
    Locally persisted overlay of unlock selections not yet written to disk.

    Buckets are keyed by ``StatusKey(entity_id, source)`` where ``source``
    is a root path, a catalog source, or ``AUTO_SOURCE`` before a concrete
    source is known. The whole cache is written after every mutation.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path
        self._buckets: Optional[dict[StatusKey, StatusBucket]] = None
        self.is_dirty = False

    @property
    def path(self) -> Path:
        if self._path is not None:
            return self._path
        return configuration.DATA_STATUS_CACHE_PATH

    @property
    def buckets(self) -> dict[StatusKey, StatusBucket]:
        if self._buckets is None:
            self.__load_data()
        if self._buckets is None:
            raise ValueError()
        return self._buckets

    def __load_data(self) -> None:
        self._buckets = {}
        if not self.path.is_file():
            return

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            self._buckets = self.__convert_for_deserialization(raw)
        except (OSError, ValueError, TypeError, KeyError, AttributeError) as error:
            LOGGER.warning(
                "Status cache at %s is unreadable, starting empty: %s", self.path, error
            )
            self._buckets = {}

    def __save_data(self) -> None:
        payload = self.__convert_for_serialization(self.buckets)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as error:
            LOGGER.error("Failed to persist status cache to %s: %s", self.path, error)
            return
        self.is_dirty = False

    def __mutated(self) -> None:
        self.is_dirty = True
        self.__save_data()

    def flush(self) -> bool:
        if self._buckets is not None and self.is_dirty:
            self.__save_data()
            return True
        return False

    def reload(self) -> None:
        self._buckets = None
        self.is_dirty = False

    def __convert_for_serialization(
        self, buckets: dict[StatusKey, StatusBucket]
    ) -> dict[str, Any]:
        return {
            "version": STATUS_CACHE_VERSION,
            "entries": [
                {
                    "entity_id": key.entity_id,
                    "source": key.source,
                    "records": deepcopy(bucket),
                }
                for key, bucket in buckets.items()
            ],
        }

    def __convert_for_deserialization(
        self, raw: Any
    ) -> dict[StatusKey, StatusBucket]:
        buckets: dict[StatusKey, StatusBucket] = {}
        if isinstance(raw, dict) and isinstance(raw.get("entries"), list):
            for entry in raw["entries"]:
                key = StatusKey(str(entry["entity_id"]), str(entry["source"]))
                buckets[key] = self.__convert_bucket(entry["records"])
            return buckets

        if not isinstance(raw, dict):
            raise ValueError("status cache payload is not an object")

        # Migration: string keys of the form "<entity>::<source>"
        for raw_key, raw_bucket in raw.items():
            entity_id, _, source = str(raw_key).partition(LEGACY_KEY_SEPARATOR)
            buckets[_key(entity_id, source)] = self.__convert_bucket(raw_bucket)
        return buckets

    def __convert_bucket(self, raw_bucket: Any) -> StatusBucket:
        bucket: StatusBucket = {}
        for record_id, raw_entry in dict(raw_bucket).items():
            timestamp = get_empty_timestamp_template()
            raw_timestamp = raw_entry.get("timestamp") or {}
            for field in TIMESTAMP_FIELDS:
                value = raw_timestamp.get(field)
                if field == "meridiem":
                    # Migration: older caches stored the meridiem as "ampm"
                    value = value or raw_timestamp.get("ampm")
                    if not value:
                        continue
                timestamp[field] = str(value or "")  # type: ignore[literal-required]
            bucket[str(record_id)] = {
                "achieved": bool(
                    raw_entry.get("achieved", raw_entry.get("completed", False))
                ),
                "timestamp": timestamp,
            }
        return bucket

    def __entry(
        self, entity_id: EntityId, record_id: RecordId, source: Optional[SourceKey]
    ) -> Optional[StatusEntry]:
        bucket = self.buckets.get(_key(entity_id, source))
        if bucket is None:
            return None
        return bucket.get(record_id)

    def get_bucket(
        self, entity_id: EntityId, source: Optional[SourceKey] = None
    ) -> StatusBucket:
        return deepcopy(self.buckets.get(_key(entity_id, source), {}))

    def get_all_buckets(self) -> dict[StatusKey, StatusBucket]:
        return deepcopy(self.buckets)

    def has_bucket(
        self, entity_id: EntityId, source: Optional[SourceKey] = None
    ) -> bool:
        return bool(self.buckets.get(_key(entity_id, source)))

    def toggle(
        self,
        entity_id: EntityId,
        record_id: RecordId,
        source: Optional[SourceKey] = None,
    ) -> StatusEntry:
        """Flip ``achieved``; the timestamp starts over empty either way."""
        bucket = self.buckets.setdefault(_key(entity_id, source), {})
        current = bucket.get(record_id)
        entry = get_status_entry_template()
        entry["achieved"] = not current["achieved"] if current is not None else True
        bucket[record_id] = entry
        self.__mutated()
        return deepcopy(entry)

    def set_status(
        self,
        entity_id: EntityId,
        record_id: RecordId,
        status: StatusEntry,
        source: Optional[SourceKey] = None,
    ) -> None:
        bucket = self.buckets.setdefault(_key(entity_id, source), {})
        bucket[record_id] = deepcopy(status)
        self.__mutated()

    def set_timestamp_field(
        self,
        entity_id: EntityId,
        record_id: RecordId,
        field: str,
        value: str,
        source: Optional[SourceKey] = None,
    ) -> bool:
        """
        Edit one timestamp field of an existing entry.

        Returns ``False`` without changing anything when the record has no
        entry yet: an achievement must be marked before it can be timed.
        """
        if field not in TIMESTAMP_FIELDS:
            raise ValueError(f"Unknown timestamp field: {field}")
        entry = self.__entry(entity_id, record_id, source)
        if entry is None:
            return False
        if field == "meridiem" and value == "":
            entry["timestamp"].pop("meridiem", None)
        else:
            entry["timestamp"][field] = value  # type: ignore[literal-required]
        self.__mutated()
        return True

    def clear_timestamp(
        self,
        entity_id: EntityId,
        record_id: RecordId,
        source: Optional[SourceKey] = None,
    ) -> bool:
        entry = self.__entry(entity_id, record_id, source)
        if entry is None:
            return False
        entry["timestamp"] = get_empty_timestamp_template()
        self.__mutated()
        return True

    def replace_bucket(
        self, entity_id: EntityId, source: Optional[SourceKey], bucket: StatusBucket
    ) -> None:
        key = _key(entity_id, source)
        if bucket:
            self.buckets[key] = deepcopy(bucket)
        else:
            self.buckets.pop(key, None)
        self.__mutated()

    def reset(self, entity_id: EntityId, source: Optional[SourceKey] = None) -> int:
        """Drop one bucket, or every bucket of the entity when ``source`` is None."""
        keys = [
            key
            for key in self.buckets
            if key.entity_id == entity_id and (source is None or key.source == source)
        ]
        for key in keys:
            del self.buckets[key]
        if keys:
            self.__mutated()
        return len(keys)

    def seed_from_records(
        self,
        entity_id: EntityId,
        source: SourceKey,
        records: list[Record],
        time_format: TimeFormat,
    ) -> int:
        """
        Mirror achieved on-disk records into a bucket.

        Entries the user already touched (achieved, or any timestamp field
        filled in) are left alone.
        """
        bucket = self.buckets.setdefault(StatusKey(entity_id, source), {})
        seeded = 0
        for record in records:
            if not record["achieved"]:
                continue
            current = bucket.get(record["id"])
            if current is not None and (
                current["achieved"] or any(current["timestamp"].values())
            ):
                continue
            bucket[record["id"]] = {
                "achieved": True,
                "timestamp": (
                    time.timestamp_from_unix(record["unlock_time"], time_format)
                    if record["unlock_time"] > 0
                    else get_empty_timestamp_template()
                ),
            }
            seeded += 1
        if not bucket:
            del self.buckets[StatusKey(entity_id, source)]
        if seeded:
            self.__mutated()
        return seeded

    def migrate_time_format(self, time_format: TimeFormat) -> int:
        """Convert every complete stored timestamp to ``time_format``."""
        converted = 0
        for bucket in self.buckets.values():
            for entry in bucket.values():
                migrated = time.convert_timestamp_format(
                    entry["timestamp"], time_format
                )
                if migrated != entry["timestamp"]:
                    entry["timestamp"] = migrated
                    converted += 1
        if converted:
            self.__mutated()
        return converted


STATUS_CACHE_REPO = StatusCacheRepository()
