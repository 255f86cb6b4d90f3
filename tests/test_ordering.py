"""Ordering engine: dense, stable ranks from a drag gesture."""

import pytest

from folio.services.ordering import compute_ranks, densify, move


def test_move_last_to_front():
    assert compute_ranks(["A", "B", "C"], "C", 2, 0) == [("C", 0), ("A", 1), ("B", 2)]


def test_move_front_to_back():
    assert compute_ranks(["A", "B", "C", "D"], "A", 0, 3) == [("B", 0), ("C", 1), ("D", 2), ("A", 3)]


def test_elements_outside_span_keep_their_place():
    ranks = dict(compute_ranks(["A", "B", "C", "D", "E"], "B", 1, 3))
    assert ranks["A"] == 0
    assert ranks["E"] == 4
    assert [k for k, _ in sorted(ranks.items(), key=lambda kv: kv[1])] == ["A", "C", "D", "B", "E"]


def test_ranks_are_dense_for_every_gesture():
    items = list("ABCDEF")
    for src in range(len(items)):
        for dst in range(len(items)):
            ranks = compute_ranks(items, items[src], src, dst)
            assert sorted(r for _, r in ranks) == list(range(len(items)))
            assert {k for k, _ in ranks} == set(items)


def test_same_position_is_identity():
    assert compute_ranks(["A", "B"], "B", 1, 1) == [("A", 0), ("B", 1)]


def test_moved_id_must_be_at_from_index():
    with pytest.raises(ValueError):
        compute_ranks(["A", "B", "C"], "A", 2, 0)


def test_out_of_range_index():
    with pytest.raises(ValueError):
        move(["A", "B"], 0, 5)


def test_duplicate_ids_rejected():
    with pytest.raises(ValueError):
        compute_ranks(["A", "A"], "A", 0, 1)


def test_densify():
    assert densify(["x", "y"]) == [("x", 0), ("y", 1)]
    assert densify([]) == []
