# SPDX-License-Identifier: MIT

from collections.abc import Mapping
from typing import Optional

from achievement_keeper.logger import LOGGER
from achievement_keeper.model.entity_id import EntityId
from achievement_keeper.model.snapshot import DuplicateGroup, EntitySnapshot


def _recency_key(snapshot: EntitySnapshot) -> tuple[float, str]:
    # Sorted ascending, so newer files and then lower root paths come first
    return (-snapshot["last_modified"].timestamp(), snapshot["root_path"])


def order_by_recency(snapshots: list[EntitySnapshot]) -> list[EntitySnapshot]:
    return sorted(snapshots, key=_recency_key)


def reconcile(
    snapshots: list[EntitySnapshot],
    display_names: Optional[Mapping[EntityId, str]] = None,
) -> tuple[list[EntitySnapshot], list[DuplicateGroup]]:
    """
    Split an aggregate snapshot into unique entities and duplicate groups.

    An entity found under two or more distinct roots becomes a duplicate
    group, members ordered most recently modified first with equal times
    ordered by root path. The first member is also placed in ``unique``
    as the default choice. Both lists are sorted by entity id so the
    result does not depend on input order.
    """
    names = display_names or {}
    grouped: dict[EntityId, dict[str, EntitySnapshot]] = {}
    for snapshot in snapshots:
        by_root = grouped.setdefault(snapshot["entity_id"], {})
        existing = by_root.get(snapshot["root_path"])
        # The same root listed twice yields the same entity twice; keep one
        if existing is None or _recency_key(snapshot) < _recency_key(existing):
            by_root[snapshot["root_path"]] = snapshot

    unique: list[EntitySnapshot] = []
    duplicates: list[DuplicateGroup] = []
    for entity_id in sorted(grouped):
        members = order_by_recency(list(grouped[entity_id].values()))
        unique.append(members[0])
        if len(members) > 1:
            duplicates.append(
                {
                    "entity_id": entity_id,
                    "display_name": names.get(entity_id, entity_id),
                    "members": members,
                }
            )

    if duplicates:
        LOGGER.debug("Found %d entities under more than one root", len(duplicates))
    return unique, duplicates


def apply_source_overrides(
    unique: list[EntitySnapshot],
    duplicates: list[DuplicateGroup],
    overrides: Mapping[EntityId, str],
) -> list[EntitySnapshot]:
    """
    Swap the default winner of a duplicate group for an explicitly chosen root.

    Overrides naming an entity without duplicates, or a root that is not
    one of the group's members, are ignored.
    """
    chosen: dict[EntityId, EntitySnapshot] = {}
    for group in duplicates:
        root = overrides.get(group["entity_id"])
        if root is None:
            continue
        for member in group["members"]:
            if member["root_path"] == root:
                chosen[group["entity_id"]] = member
                break
        else:
            LOGGER.warning(
                "Ignoring source override for %s: %s holds no copy",
                group["entity_id"],
                root,
            )

    return [chosen.get(snapshot["entity_id"], snapshot) for snapshot in unique]


def find_snapshot(
    snapshots: list[EntitySnapshot], entity_id: EntityId, root: Optional[str] = None
) -> Optional[EntitySnapshot]:
    candidates = [
        snapshot
        for snapshot in snapshots
        if snapshot["entity_id"] == entity_id
        and (root is None or snapshot["root_path"] == root)
    ]
    if not candidates:
        return None
    return order_by_recency(candidates)[0]


def known_roots(snapshots: list[EntitySnapshot], entity_id: EntityId) -> list[str]:
    return sorted(
        {
            snapshot["root_path"]
            for snapshot in snapshots
            if snapshot["entity_id"] == entity_id
        }
    )
