# SPDX-License-Identifier: MIT

import json
import random
import time as stdlib_time
from pathlib import Path
from typing import Optional

import pendulum
import pytest

from achievement_keeper.model.record import Record
from achievement_keeper.model.status import StatusBucket
from achievement_keeper.model.timestamp import Timestamp
from achievement_keeper.model.unlock import (
    UnlockCommitted,
    UnlockFailed,
    UnlockMode,
    UnlockPhase,
    UnlockTarget,
)
from achievement_keeper.repository.status_cache import StatusCacheRepository
from achievement_keeper.service.unlock import (
    CatalogWriter,
    UnlockOrchestrator,
    build_unlock_target,
    resolve_status_bucket,
    run_unlock,
)

NOW = pendulum.datetime(2024, 6, 1, 12, 0, tz="UTC")
EMPTY: Timestamp = {"day": "", "month": "", "year": "", "hour": "", "minute": ""}
NEW_YEAR: Timestamp = {
    "day": "01",
    "month": "01",
    "year": "2023",
    "hour": "09",
    "minute": "15",
}


def _target(
    root: Path | str,
    bucket: StatusBucket,
    mode: UnlockMode = UnlockMode.USE_CURRENT_TIME,
    custom: Optional[Timestamp] = None,
) -> UnlockTarget:
    return build_unlock_target("440", str(root), bucket, mode, custom)


def _orchestrator(catalog: Optional[CatalogWriter] = None) -> UnlockOrchestrator:
    return UnlockOrchestrator(now=lambda: NOW, rng=random.Random(3), catalog=catalog)


class FakeCatalog:
    def __init__(self) -> None:
        self.written: dict[str, list[Record]] = {}

    def write_records(self, entity_id: str, records: list[Record]) -> None:
        self.written[entity_id] = records

    def read_records(self, entity_id: str) -> list[Record]:
        return self.written[entity_id]


@pytest.fixture
def store(tmp_path: Path) -> StatusCacheRepository:
    return StatusCacheRepository(tmp_path / "status_cache.json")


def test_simple_unlock_writes_one_section(
    tmp_path: Path, store: StatusCacheRepository
) -> None:
    root = tmp_path / "R"
    root.mkdir()
    store.toggle("440", "WIN_GAME")

    result = run_unlock(
        store,
        UnlockOrchestrator(),
        "440",
        str(root),
        UnlockMode.USE_CURRENT_TIME,
        "24h",
    )

    assert isinstance(result, UnlockCommitted)
    content = (root / "440" / "achievements.ini").read_text()
    lines = content.splitlines()
    assert lines[:2] == ["[WIN_GAME]", "Achieved=1"]
    assert lines[3:] == [""]
    unlock_time = int(lines[2].removeprefix("UnlockTime="))
    assert abs(unlock_time - stdlib_time.time()) <= 5
    assert result.path == root / "440" / "achievements.ini"
    assert result.records == [
        {"id": "WIN_GAME", "achieved": True, "unlock_time": unlock_time}
    ]

    assert not store.has_bucket("440")
    assert store.get_bucket("440", str(root))["WIN_GAME"]["achieved"] is True


def test_locked_records_are_not_written_to_local_roots(tmp_path: Path) -> None:
    bucket: StatusBucket = {
        "A": {"achieved": True, "timestamp": NEW_YEAR},
        "B": {"achieved": False, "timestamp": EMPTY},
    }

    result = _orchestrator().unlock(_target(tmp_path, bucket))

    assert isinstance(result, UnlockCommitted)
    expected_time = pendulum.datetime(2023, 1, 1, 9, 15, tz="local").int_timestamp
    assert result.records == [
        {"id": "A", "achieved": True, "unlock_time": expected_time}
    ]


def test_existing_file_is_fully_replaced(tmp_path: Path) -> None:
    entity_dir = tmp_path / "440"
    entity_dir.mkdir()
    (entity_dir / "achievements.ini").write_text(
        "[OLD]\nAchieved=1\nUnlockTime=5\nExtra=1\n"
    )

    _orchestrator().unlock(
        _target(tmp_path, {"NEW": {"achieved": True, "timestamp": EMPTY}})
    )

    assert (entity_dir / "achievements.ini").read_text() == (
        f"[NEW]\nAchieved=1\nUnlockTime={NOW.int_timestamp}\n\n"
    )


def test_random_mode_picks_a_time_in_the_past_year(tmp_path: Path) -> None:
    bucket: StatusBucket = {
        record_id: {"achieved": True, "timestamp": EMPTY} for record_id in "ABC"
    }

    result = _orchestrator().unlock(
        _target(tmp_path, bucket, UnlockMode.USE_RANDOM_PAST_YEAR)
    )

    assert isinstance(result, UnlockCommitted)
    for record in result.records:
        assert (
            NOW.subtract(days=365).int_timestamp
            <= record["unlock_time"]
            <= NOW.int_timestamp
        )


def test_custom_mode_uses_custom_timestamp(tmp_path: Path) -> None:
    bucket: StatusBucket = {"A": {"achieved": True, "timestamp": EMPTY}}
    custom: Timestamp = {**NEW_YEAR, "hour": "09", "meridiem": "PM"}

    result = _orchestrator().unlock(
        _target(tmp_path, bucket, UnlockMode.USE_EXPLICIT_TIMESTAMP, custom)
    )

    assert isinstance(result, UnlockCommitted)
    expected = pendulum.datetime(2023, 1, 1, 21, 15, tz="local").int_timestamp
    assert result.records[0]["unlock_time"] == expected


def test_custom_mode_without_complete_timestamp_fails(tmp_path: Path) -> None:
    bucket: StatusBucket = {"A": {"achieved": True, "timestamp": EMPTY}}

    result = _orchestrator().unlock(
        _target(tmp_path, bucket, UnlockMode.USE_EXPLICIT_TIMESTAMP, EMPTY)
    )

    assert isinstance(result, UnlockFailed)
    assert result.phase is UnlockPhase.COMPOSING
    assert not (tmp_path / "440").exists()


def test_unresolved_source_is_rejected() -> None:
    result = _orchestrator().unlock(_target("auto", {}))
    assert isinstance(result, UnlockFailed)
    assert result.phase is UnlockPhase.COMPOSING


def test_write_failure_reverts_optimistic_state(
    tmp_path: Path, store: StatusCacheRepository
) -> None:
    root = tmp_path / "not-a-directory"
    root.write_text("")
    store.toggle("440", "A", str(root))
    store.set_timestamp_field("440", "A", "day", "07", str(root))
    before = store.get_all_buckets()

    result = run_unlock(
        store,
        _orchestrator(),
        "440",
        str(root),
        UnlockMode.USE_CURRENT_TIME,
        "24h",
    )

    assert isinstance(result, UnlockFailed)
    assert result.phase is UnlockPhase.WRITING
    assert store.get_all_buckets() == before


def test_gse_root_writes_json(tmp_path: Path) -> None:
    root = tmp_path / "GSE Saves"

    result = _orchestrator().unlock(
        _target(root, {"A": {"achieved": True, "timestamp": EMPTY}})
    )

    assert isinstance(result, UnlockCommitted)
    assert result.path == root / "440" / "achievements.json"
    assert json.loads(result.path.read_text()) == {
        "A": {"earned": True, "earned_time": NOW.int_timestamp}
    }


def test_ini_next_to_json_is_the_file_rewritten(tmp_path: Path) -> None:
    entity_dir = tmp_path / "440"
    entity_dir.mkdir()
    (entity_dir / "achievements.ini").write_text("[OLD]\nAchieved=1\nUnlockTime=1\n")
    stale_json = '{"OLD": {"earned": true, "earned_time": 1}}\n'
    (entity_dir / "achievements.json").write_text(stale_json)

    result = _orchestrator().unlock(
        _target(tmp_path, {"A": {"achieved": True, "timestamp": NEW_YEAR}})
    )

    assert isinstance(result, UnlockCommitted)
    assert result.path == entity_dir / "achievements.ini"
    assert [record["id"] for record in result.records] == ["A"]
    assert (entity_dir / "achievements.json").read_text() == stale_json


def test_existing_ini_under_gse_root_is_kept(tmp_path: Path) -> None:
    root = tmp_path / "GSE Saves"
    entity_dir = root / "440"
    entity_dir.mkdir(parents=True)
    (entity_dir / "achievements.ini").write_text("[OLD]\nAchieved=1\nUnlockTime=1\n")

    result = _orchestrator().unlock(
        _target(root, {"A": {"achieved": True, "timestamp": NEW_YEAR}})
    )

    assert isinstance(result, UnlockCommitted)
    assert result.path == entity_dir / "achievements.ini"
    assert not (entity_dir / "achievements.json").exists()


def test_catalog_source_receives_every_known_record() -> None:
    catalog = FakeCatalog()
    bucket: StatusBucket = {
        "A": {"achieved": True, "timestamp": EMPTY},
        "B": {"achieved": False, "timestamp": EMPTY},
    }

    result = _orchestrator(catalog=catalog).unlock(
        _target("steam://440", bucket), catalog_ids=["A", "B", "C"]
    )

    assert isinstance(result, UnlockCommitted)
    assert result.path is None
    assert catalog.written["440"] == [
        {"id": "A", "achieved": True, "unlock_time": NOW.int_timestamp},
        {"id": "B", "achieved": False, "unlock_time": 0},
        {"id": "C", "achieved": False, "unlock_time": 0},
    ]


def test_catalog_source_without_writer_fails() -> None:
    result = _orchestrator().unlock(_target("steam://440", {}))
    assert isinstance(result, UnlockFailed)
    assert result.phase is UnlockPhase.WRITING


def test_second_unlock_for_same_entity_is_rejected_while_in_flight() -> None:
    orchestrator: UnlockOrchestrator
    nested: list[object] = []

    class ReentrantCatalog(FakeCatalog):
        def write_records(self, entity_id: str, records: list[Record]) -> None:
            nested.append(orchestrator.unlock(_target("steam://440", {})))
            super().write_records(entity_id, records)

    orchestrator = _orchestrator(catalog=ReentrantCatalog())
    result = orchestrator.unlock(_target("steam://440", {}))

    assert isinstance(result, UnlockCommitted)
    assert isinstance(nested[0], UnlockFailed)
    assert not orchestrator.is_in_flight("440")


def test_status_bucket_folding_priority(store: StatusCacheRepository) -> None:
    store.toggle("440", "AUTO")
    assert resolve_status_bucket(store, "440", "/R", ["/R"]) == (
        {"AUTO": {"achieved": True, "timestamp": EMPTY}},
        "auto",
    )

    store.toggle("440", "LOCAL", "/R")
    bucket, source = resolve_status_bucket(store, "440", "/other", ["/R"])
    assert (list(bucket), source) == (["LOCAL"], "/R")
    bucket, source = resolve_status_bucket(store, "440", "/other", ["/R", "/S"])
    assert source == "auto"

    store.toggle("440", "EXPLICIT", "/other")
    bucket, source = resolve_status_bucket(store, "440", "/other", ["/R"])
    assert (list(bucket), source) == (["EXPLICIT"], "/other")


def test_12_hour_selection_without_meridiem_unlocks_as_am(
    tmp_path: Path, store: StatusCacheRepository
) -> None:
    store.toggle("440", "A", str(tmp_path))
    for field, value in {**NEW_YEAR, "hour": "12"}.items():
        store.set_timestamp_field("440", "A", field, value, str(tmp_path))

    result = run_unlock(
        store,
        _orchestrator(),
        "440",
        str(tmp_path),
        UnlockMode.USE_CURRENT_TIME,
        "12h",
    )

    assert isinstance(result, UnlockCommitted)
    expected = pendulum.datetime(2023, 1, 1, 0, 15, tz="local").int_timestamp
    assert result.records == [{"id": "A", "achieved": True, "unlock_time": expected}]
