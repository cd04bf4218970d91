# SPDX-License-Identifier: MIT

import itertools

from conftest import make_snapshot

from achievement_keeper.service.reconcile import (
    apply_source_overrides,
    find_snapshot,
    known_roots,
    reconcile,
)


def test_duplicate_sources_most_recent_wins() -> None:
    a = make_snapshot("100", "/roots/A", modified=2_000)
    b = make_snapshot("100", "/roots/B", modified=1_000)
    single = make_snapshot("200", "/roots/B", modified=500)

    unique, duplicates = reconcile([b, single, a], {"100": "Game 100"})

    assert unique == [a, single]
    assert len(duplicates) == 1
    assert duplicates[0]["entity_id"] == "100"
    assert duplicates[0]["display_name"] == "Game 100"
    assert duplicates[0]["members"] == [a, b]


def test_equal_times_are_ordered_by_root_path() -> None:
    z = make_snapshot("100", "/roots/Z", modified=1_000)
    a = make_snapshot("100", "/roots/A", modified=1_000)

    unique, duplicates = reconcile([z, a])

    assert unique == [a]
    assert duplicates[0]["members"] == [a, z]


def test_result_does_not_depend_on_input_order() -> None:
    snapshots = [
        make_snapshot("100", "/roots/A", modified=3_000),
        make_snapshot("100", "/roots/B", modified=3_000),
        make_snapshot("100", "/roots/C", modified=4_000),
        make_snapshot("200", "/roots/A", modified=10),
        make_snapshot("300", "/roots/C", modified=10),
        make_snapshot("300", "/roots/A", modified=20),
    ]
    expected = reconcile(snapshots)

    for permutation in itertools.permutations(snapshots):
        assert reconcile(list(permutation)) == expected


def test_same_root_listed_twice_is_not_a_duplicate() -> None:
    snapshot = make_snapshot("100", "/roots/A", modified=1)

    unique, duplicates = reconcile([snapshot, snapshot])

    assert unique == [snapshot]
    assert duplicates == []


def test_source_override_replaces_winner() -> None:
    a = make_snapshot("100", "/roots/A", modified=2)
    b = make_snapshot("100", "/roots/B", modified=1)
    unique, duplicates = reconcile([a, b])

    assert apply_source_overrides(unique, duplicates, {"100": "/roots/B"}) == [b]
    assert apply_source_overrides(unique, duplicates, {"100": "/roots/X"}) == [a]
    assert apply_source_overrides(unique, duplicates, {}) == [a]


def test_lookup_helpers() -> None:
    a = make_snapshot("100", "/roots/A", modified=1)
    b = make_snapshot("100", "/roots/B", modified=2)

    assert find_snapshot([a, b], "100") == b
    assert find_snapshot([a, b], "100", "/roots/A") == a
    assert find_snapshot([a, b], "999") is None
    assert known_roots([b, a, b], "100") == ["/roots/A", "/roots/B"]
