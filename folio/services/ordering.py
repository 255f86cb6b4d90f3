"""Ordering engine: dense 0..N-1 ranks for an owner's photo sequence."""

from typing import Hashable, Sequence, TypeVar

K = TypeVar("K", bound=Hashable)


def move(items: Sequence[K], from_index: int, to_index: int) -> list[K]:
    """Return a copy of ``items`` with one element moved from one index to another."""
    n = len(items)
    if not (0 <= from_index < n and 0 <= to_index < n):
        raise ValueError(f"index out of range for sequence of {n}: {from_index} -> {to_index}")
    result = list(items)
    result.insert(to_index, result.pop(from_index))
    return result


def densify(ids: Sequence[K]) -> list[tuple[K, int]]:
    """Assign contiguous ranks 0..N-1 in the given order."""
    return [(item, rank) for rank, item in enumerate(ids)]


def compute_ranks(
    current_order: Sequence[K],
    moved_id: K,
    from_index: int,
    to_index: int,
) -> list[tuple[K, int]]:
    """New rank for every element after a drag moves ``moved_id``.

    Every element between the two positions shifts by one, so the whole
    sequence is re-ranked. Elements outside the moved span keep their
    relative order.
    """
    if len(set(current_order)) != len(current_order):
        raise ValueError("current order contains duplicate ids")
    if not (0 <= from_index < len(current_order)) or current_order[from_index] != moved_id:
        raise ValueError(f"{moved_id!r} is not at index {from_index}")
    return densify(move(current_order, from_index, to_index))

