# SPDX-License-Identifier: MIT

import os
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Optional, TypeAlias

import pendulum
import pytest
from yaml import dump

from achievement_keeper import codec, configuration
from achievement_keeper.model.record import Record
from achievement_keeper.model.snapshot import EntitySnapshot
from achievement_keeper.repository.configuration import CONFIGURATION_REPO
from achievement_keeper.repository.status_cache import STATUS_CACHE_REPO
from achievement_keeper.template.configuration import get_configuration_template

RecordFileWriter: TypeAlias = Callable[..., Path]


@pytest.fixture(autouse=True)
def app_paths(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    config_dir = tmp_path / "config"
    data_dir = tmp_path / "data"
    config_dir.mkdir()
    data_dir.mkdir()

    monkeypatch.setattr(configuration, "CONFIG_PATH", config_dir)
    monkeypatch.setattr(configuration, "APP_CONFIG_PATH", config_dir / "config.yaml")
    monkeypatch.setattr(configuration, "DATA_PATH", data_dir)
    monkeypatch.setattr(
        configuration, "DATA_STATUS_CACHE_PATH", data_dir / "status_cache.json"
    )
    monkeypatch.setattr(
        configuration, "DATA_LOG_PATH", data_dir / "achievement-keeper.log"
    )
    (config_dir / "config.yaml").write_text(dump(get_configuration_template()))

    CONFIGURATION_REPO.reload()
    STATUS_CACHE_REPO.reload()
    yield tmp_path
    CONFIGURATION_REPO.reload()
    STATUS_CACHE_REPO.reload()


@pytest.fixture
def write_records() -> RecordFileWriter:
    def write(
        root: Path,
        entity_id: str,
        records: list[Record],
        modified: Optional[int] = None,
        nested: bool = False,
    ) -> Path:
        entity_dir = root / entity_id
        if nested:
            entity_dir = entity_dir / configuration.NESTED_STATS_DIR_NAME
        entity_dir.mkdir(parents=True, exist_ok=True)
        path = entity_dir / configuration.RECORD_FILE_NAME
        path.write_text(codec.serialize_records(records))
        if modified is not None:
            os.utime(path, (modified, modified))
        return path

    return write


def make_snapshot(
    entity_id: str,
    root_path: str,
    modified: int,
    records: Optional[list[Record]] = None,
) -> EntitySnapshot:
    return {
        "entity_id": entity_id,
        "records": records or [{"id": "ACH", "achieved": True, "unlock_time": 1}],
        "root_path": root_path,
        "record_path": Path(root_path) / entity_id / configuration.RECORD_FILE_NAME,
        "file_format": "ini",
        "last_modified": pendulum.from_timestamp(modified, tz="UTC"),
    }
