# SPDX-License-Identifier: MIT

import os
import tempfile
from pathlib import Path
from typing import Optional

from achievement_keeper import codec, configuration
from achievement_keeper.logger import LOGGER
from achievement_keeper.model.entity_id import EntityId, SourceKey
from achievement_keeper.model.record import Record
from achievement_keeper.model.snapshot import RecordFileFormat


def is_nested_stats_root(root: str | Path) -> bool:
    return configuration.expand_path(root).name in configuration.NESTED_STATS_MARKERS


def is_gse_root(root: str | Path) -> bool:
    return configuration.GSE_ROOT_MARKER in str(root).lower()


def is_catalog_source(source: SourceKey) -> bool:
    return source.startswith(configuration.CATALOG_SOURCE_PREFIX)


def file_format_for(path: Path) -> RecordFileFormat:
    return "json" if path.suffix.lower() == ".json" else "ini"


def resolve_record_path(root: str | Path, entity_id: EntityId) -> Path:
    """
    Locate the record file to read for an entity under a root.

    Nested-stats roots keep an INI file under ``<entity>/Stats``. Every
    other root prefers ``achievements.ini`` and falls back to the GSE
    ``achievements.json``; when neither exists the INI path is returned.
    """
    entity_dir = configuration.expand_path(root) / entity_id
    if is_nested_stats_root(root):
        return (
            entity_dir
            / configuration.NESTED_STATS_DIR_NAME
            / configuration.RECORD_FILE_NAME
        )

    ini_path = entity_dir / configuration.RECORD_FILE_NAME
    json_path = entity_dir / configuration.GSE_RECORD_FILE_NAME
    if not ini_path.exists() and json_path.exists():
        return json_path
    return ini_path


def resolve_write_path(root: str | Path, entity_id: EntityId) -> Path:
    """
    Locate the record file to write for an entity under a root.

    An existing record file is always the one that is read back, so it is
    rewritten in place. Only a first write under a GSE root creates
    ``achievements.json``.
    """
    record_path = resolve_record_path(root, entity_id)
    if record_path.exists() or is_nested_stats_root(root):
        return record_path
    if is_gse_root(root):
        return record_path.with_name(configuration.GSE_RECORD_FILE_NAME)
    return record_path


def read_record_file(path: Path) -> list[Record]:
    try:
        content = path.read_bytes()
    except OSError as error:
        LOGGER.warning("Failed to read achievement file %s: %s", path, error)
        return []

    if file_format_for(path) == "json":
        return codec.parse_gse_records(content)
    return codec.parse_records(content)


def write_record_file(path: Path, records: list[Record]) -> None:
    """
    Replace the record file at ``path`` with ``records``.

    The old file is deleted first, then the new content is written to a
    temporary sibling and moved into place. Raises ``OSError`` on failure.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    previous_content: Optional[bytes] = None
    if path.exists():
        if file_format_for(path) == "json":
            previous_content = path.read_bytes()
        path.unlink()
        LOGGER.info("Old achievement file deleted: %s", path)

    if file_format_for(path) == "json":
        content = codec.serialize_gse_records(records, previous_content)
    else:
        content = codec.serialize_records(records)

    file_descriptor, temp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
    )
    try:
        with os.fdopen(file_descriptor, "w", encoding="utf-8", newline="\n") as file:
            file.write(content)
        os.replace(temp_name, path)
    except OSError:
        Path(temp_name).unlink(missing_ok=True)
        raise

    LOGGER.info("Achievement file written: %s", path)
