# SPDX-License-Identifier: MIT

import random
import threading
from collections.abc import Callable, Sequence
from typing import Optional, Protocol

import pendulum

from achievement_keeper import time
from achievement_keeper.configuration import TimeFormat
from achievement_keeper.logger import LOGGER
from achievement_keeper.model.entity_id import (
    AUTO_SOURCE,
    EntityId,
    RecordId,
    SourceKey,
)
from achievement_keeper.model.record import Record
from achievement_keeper.model.status import StatusBucket
from achievement_keeper.model.timestamp import Timestamp
from achievement_keeper.model.unlock import (
    UnlockCommitted,
    UnlockFailed,
    UnlockItem,
    UnlockMode,
    UnlockPhase,
    UnlockResult,
    UnlockTarget,
)
from achievement_keeper.repository.record_file import (
    is_catalog_source,
    resolve_write_path,
    write_record_file,
)
from achievement_keeper.repository.scanner import scan_entity
from achievement_keeper.repository.status_cache import StatusCacheRepository
from achievement_keeper.template.timestamp import get_empty_timestamp_template


class UnlockCompositionError(Exception):
    pass


class CatalogWriter(Protocol):
    def write_records(self, entity_id: EntityId, records: list[Record]) -> None: ...

    def read_records(self, entity_id: EntityId) -> list[Record]: ...


def resolve_unlock_time(
    timestamp: Optional[Timestamp],
    mode: UnlockMode,
    custom_timestamp: Optional[Timestamp],
    now: pendulum.DateTime,
    rng: Optional[random.Random] = None,
) -> int:
    if time.is_timestamp_complete(timestamp):
        return time.timestamp_to_unix(timestamp)

    match mode:
        case UnlockMode.USE_CURRENT_TIME:
            return time.datetime_to_unix(now)
        case UnlockMode.USE_RANDOM_PAST_YEAR:
            return time.datetime_to_unix(time.random_past_year(now, rng))
        case UnlockMode.USE_EXPLICIT_TIMESTAMP:
            if not time.is_timestamp_complete(custom_timestamp):
                raise UnlockCompositionError("custom timestamp is incomplete")
            return time.timestamp_to_unix(custom_timestamp)


def compose_records(
    target: UnlockTarget,
    now: pendulum.DateTime,
    rng: Optional[random.Random] = None,
    catalog_ids: Optional[Sequence[RecordId]] = None,
) -> list[Record]:
    """
    Compute the full record set to write for an unlock target.

    Local roots only store achieved records. A catalog source needs every
    known id, so ids from ``catalog_ids`` missing from the target are
    written as not achieved.
    """
    catalog = is_catalog_source(target["root_path"])
    items: dict[RecordId, UnlockItem] = {}
    for item in target["items"]:
        items[item["record_id"]] = item

    record_ids = list(items)
    if catalog and catalog_ids is not None:
        record_ids = list(dict.fromkeys([*catalog_ids, *record_ids]))

    records: list[Record] = []
    for record_id in record_ids:
        item = items.get(record_id)
        if item is None or not item["achieved"]:
            if catalog:
                records.append({"id": record_id, "achieved": False, "unlock_time": 0})
            continue
        unlock_time = resolve_unlock_time(
            item["timestamp"], target["mode"], target["custom_timestamp"], now, rng
        )
        records.append({"id": record_id, "achieved": True, "unlock_time": unlock_time})
    return records


def _record_set(records: list[Record]) -> set[tuple[str, bool, int]]:
    return {
        (record["id"], record["achieved"], record["unlock_time"])
        for record in records
        if record["achieved"]
    }


class UnlockOrchestrator:
    """
    Writes a user-authored unlock state and verifies it by re-reading.

    Each call moves through composing, writing and verifying, and ends
    committed or rolled back. Failures come back as ``UnlockFailed``;
    the caller is expected to revert its optimistic state then. Only one
    unlock per entity may be in flight at a time.
    """

    def __init__(
        self,
        now: Callable[[], pendulum.DateTime] = time.now_utc,
        rng: Optional[random.Random] = None,
        catalog: Optional[CatalogWriter] = None,
    ) -> None:
        self._now = now
        self._rng = rng if rng is not None else random.Random()
        self._catalog = catalog
        self._lock = threading.Lock()
        self._in_flight: set[EntityId] = set()

    def is_in_flight(self, entity_id: EntityId) -> bool:
        with self._lock:
            return entity_id in self._in_flight

    def unlock(
        self, target: UnlockTarget, catalog_ids: Optional[Sequence[RecordId]] = None
    ) -> UnlockResult:
        entity_id = target["entity_id"]
        root = target["root_path"]

        if root in ("", AUTO_SOURCE):
            return self.__failed(
                target, "no concrete source selected", UnlockPhase.COMPOSING
            )

        with self._lock:
            if entity_id in self._in_flight:
                return self.__failed(
                    target, "an unlock is already in progress", UnlockPhase.COMPOSING
                )
            self._in_flight.add(entity_id)

        try:
            return self.__run(target, catalog_ids)
        finally:
            with self._lock:
                self._in_flight.discard(entity_id)

    def __run(
        self, target: UnlockTarget, catalog_ids: Optional[Sequence[RecordId]]
    ) -> UnlockResult:
        entity_id = target["entity_id"]
        root = target["root_path"]
        LOGGER.info("Unlocking achievements for %s (source: %s)", entity_id, root)

        try:
            records = compose_records(target, self._now(), self._rng, catalog_ids)
        except UnlockCompositionError as error:
            return self.__failed(target, str(error), UnlockPhase.COMPOSING)

        if is_catalog_source(root):
            return self.__unlock_catalog(target, records)

        path = resolve_write_path(root, entity_id)
        try:
            write_record_file(path, records)
        except OSError as error:
            LOGGER.error("Failed to write %s: %s", path, error)
            return self.__failed(target, f"write failed: {error}", UnlockPhase.WRITING)

        snapshot = scan_entity(root, entity_id)
        verified = snapshot["records"] if snapshot is not None else []
        if _record_set(verified) != _record_set(records):
            return self.__failed(
                target,
                "file content differs from what was written",
                UnlockPhase.VERIFYING,
            )

        LOGGER.info("Unlock committed for %s: %d records", entity_id, len(verified))
        return UnlockCommitted(entity_id, root, path, verified)

    def __unlock_catalog(
        self, target: UnlockTarget, records: list[Record]
    ) -> UnlockResult:
        if self._catalog is None:
            return self.__failed(
                target, "catalog source is not available", UnlockPhase.WRITING
            )

        entity_id = target["entity_id"]
        try:
            self._catalog.write_records(entity_id, records)
        except Exception as error:
            LOGGER.exception("Catalog write failed for %s", entity_id)
            return self.__failed(target, f"write failed: {error}", UnlockPhase.WRITING)

        try:
            verified = self._catalog.read_records(entity_id)
        except Exception as error:
            LOGGER.exception("Catalog read-back failed for %s", entity_id)
            return self.__failed(
                target, f"verification failed: {error}", UnlockPhase.VERIFYING
            )
        return UnlockCommitted(entity_id, target["root_path"], None, verified)

    def __failed(
        self, target: UnlockTarget, reason: str, phase: UnlockPhase
    ) -> UnlockFailed:
        LOGGER.warning(
            "Unlock for %s rolled back during %s: %s",
            target["entity_id"],
            phase.value,
            reason,
        )
        return UnlockFailed(target["entity_id"], target["root_path"], reason, phase)


def resolve_status_bucket(
    store: StatusCacheRepository,
    entity_id: EntityId,
    root: SourceKey,
    known_roots: Sequence[str] = (),
) -> tuple[StatusBucket, SourceKey]:
    """
    Pick the selections to write for ``root``.

    Prefers the bucket of ``root`` itself, then the bucket of the entity's
    only known local root, then the unresolved "auto" bucket. Returns the
    bucket and the source it came from.
    """
    if store.has_bucket(entity_id, root):
        return store.get_bucket(entity_id, root), root

    local_roots = [known for known in known_roots if not is_catalog_source(known)]
    if len(local_roots) == 1 and store.has_bucket(entity_id, local_roots[0]):
        return store.get_bucket(entity_id, local_roots[0]), local_roots[0]

    return store.get_bucket(entity_id, AUTO_SOURCE), AUTO_SOURCE


def build_unlock_target(
    entity_id: EntityId,
    root: SourceKey,
    bucket: StatusBucket,
    mode: UnlockMode,
    custom_timestamp: Optional[Timestamp] = None,
    time_format: TimeFormat = "24h",
) -> UnlockTarget:
    """Turn pending selections into a target, read on the ``time_format`` clock."""
    return {
        "entity_id": entity_id,
        "root_path": root,
        "items": [
            {
                "record_id": record_id,
                "achieved": entry["achieved"],
                "timestamp": time.timestamp_with_default_meridiem(
                    entry["timestamp"], time_format
                ),
            }
            for record_id, entry in bucket.items()
        ],
        "mode": mode,
        "custom_timestamp": (
            time.timestamp_with_default_meridiem(custom_timestamp, time_format)
            if custom_timestamp is not None
            else None
        ),
    }


def statuses_from_records(
    records: list[Record], time_format: TimeFormat
) -> StatusBucket:
    bucket: StatusBucket = {}
    for record in records:
        if not record["achieved"]:
            continue
        bucket[record["id"]] = {
            "achieved": True,
            "timestamp": (
                time.timestamp_from_unix(record["unlock_time"], time_format)
                if record["unlock_time"] > 0
                else get_empty_timestamp_template()
            ),
        }
    return bucket


def run_unlock(
    store: StatusCacheRepository,
    orchestrator: UnlockOrchestrator,
    entity_id: EntityId,
    root: SourceKey,
    mode: UnlockMode,
    time_format: TimeFormat,
    custom_timestamp: Optional[Timestamp] = None,
    known_roots: Sequence[str] = (),
    catalog_ids: Optional[Sequence[RecordId]] = None,
) -> UnlockResult:
    """
    Unlock with an optimistic status update that is reverted on failure.

    On success the root's bucket is replaced by the verified on-disk
    records, and a consumed "auto" bucket is dropped.
    """
    bucket, consumed_source = resolve_status_bucket(
        store, entity_id, root, known_roots
    )
    previous = store.get_bucket(entity_id, root)
    store.replace_bucket(entity_id, root, bucket)

    target = build_unlock_target(
        entity_id, root, bucket, mode, custom_timestamp, time_format
    )
    result = orchestrator.unlock(target, catalog_ids)

    if isinstance(result, UnlockFailed):
        store.replace_bucket(entity_id, root, previous)
        return result

    store.replace_bucket(
        entity_id, root, statuses_from_records(result.records, time_format)
    )
    if consumed_source == AUTO_SOURCE and root != AUTO_SOURCE:
        store.reset(entity_id, AUTO_SOURCE)
    return result
