# SPDX-License-Identifier: MIT

import json
from pathlib import Path

import pytest
from conftest import RecordFileWriter

from achievement_keeper import codec
from achievement_keeper.repository.scanner import scan
from achievement_keeper.service.backup import (
    BackupFormatError,
    apply_restore,
    create_backup,
    preview_restore,
    read_backup,
)

ORIGINAL = [
    {"id": "A", "achieved": True, "unlock_time": 100},
    {"id": "B", "achieved": True, "unlock_time": 200},
]


@pytest.fixture
def root(tmp_path: Path, write_records: RecordFileWriter) -> Path:
    root = tmp_path / "RUNE"
    write_records(root, "440", ORIGINAL)
    write_records(root, "441", ORIGINAL[:1])
    return root


def test_backup_contains_every_snapshot(root: Path, tmp_path: Path) -> None:
    path = tmp_path / "backup" / "achievements.json"

    created = create_backup(scan([root]), path)
    loaded = read_backup(path)

    assert loaded == created
    assert loaded["format_version"] == 1
    assert [entry["entity_id"] for entry in loaded["games"]] == ["440", "441"]
    assert loaded["games"][0]["records"] == ORIGINAL
    assert loaded["games"][0]["file_format"] == "ini"


def test_preview_counts_differences(root: Path, tmp_path: Path) -> None:
    path = tmp_path / "backup.json"
    create_backup(scan([root]), path)
    (root / "440" / "achievements.ini").write_text(
        codec.serialize_records(
            [
                {"id": "A", "achieved": True, "unlock_time": 999},
                {"id": "C", "achieved": True, "unlock_time": 1},
            ]
        )
    )
    (root / "441" / "achievements.ini").unlink()

    changed, removed = preview_restore(read_backup(path))

    assert changed["existing_records"] == 2
    assert changed["overlapping_records"] == 1
    assert changed["changed_records"] == 1
    assert changed["unchanged_records"] == 0
    assert changed["new_records"] == 1
    assert changed["will_replace"] is True
    assert removed["existing_records"] == 0
    assert removed["new_records"] == 1
    assert removed["will_replace"] is False


def test_restore_strategies(root: Path, tmp_path: Path) -> None:
    path = tmp_path / "backup.json"
    create_backup(scan([root]), path)
    modified = "[A]\nAchieved=0\nUnlockTime=0\n\n"
    (root / "440" / "achievements.ini").write_text(modified)
    (root / "441" / "achievements.ini").unlink()
    backup = read_backup(path)

    assert apply_restore(backup, "skip") == 1
    assert (root / "440" / "achievements.ini").read_text() == modified
    assert (root / "441" / "achievements.ini").is_file()

    assert apply_restore(backup, "replace") == 2
    assert codec.parse_records((root / "440" / "achievements.ini").read_text()) == (
        ORIGINAL
    )


def test_restore_of_json_entry_writes_gse_file(tmp_path: Path) -> None:
    root = tmp_path / "emu"
    path = tmp_path / "backup.json"
    path.write_text(
        json.dumps(
            {
                "format_version": 1,
                "created_at": "2024-01-01T00:00:00+00:00",
                "games": [
                    {
                        "entity_id": "7",
                        "root_path": str(root),
                        "file_format": "json",
                        "last_modified": "2024-01-01T00:00:00+00:00",
                        "records": ORIGINAL,
                    }
                ],
            }
        )
    )

    assert apply_restore(read_backup(path)) == 1
    assert json.loads((root / "7" / "achievements.json").read_text()) == {
        "A": {"earned": True, "earned_time": 100},
        "B": {"earned": True, "earned_time": 200},
    }


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        "[]",
        '{"format_version": 1}',
        '{"format_version": 9, "games": []}',
        '{"games": [{"entity_id": "1"}]}',
        '{"games": [{"entity_id": "1", "root_path": "/r", "records": [{"x": 1}]}]}',
    ],
)
def test_malformed_backup_is_rejected(tmp_path: Path, content: str) -> None:
    path = tmp_path / "backup.json"
    path.write_text(content)

    with pytest.raises(BackupFormatError):
        read_backup(path)


def test_missing_backup_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(BackupFormatError):
        read_backup(tmp_path / "absent.json")


def test_unknown_strategy_is_rejected(root: Path, tmp_path: Path) -> None:
    backup = create_backup(scan([root]), tmp_path / "backup.json")
    with pytest.raises(ValueError):
        apply_restore(backup, "merge")  # type: ignore[arg-type]
