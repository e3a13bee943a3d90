"""Pure ranking functions — no I/O, no framework imports.

An ordered list is a sequence of ``RankedItem`` whose ranks are exactly
``1..n`` in iteration order. Every function here returns a new list and
leaves its input untouched.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace

from app.exceptions import PreconditionViolationError


@dataclass(frozen=True)
class RankedItem:
    """One entry of an ordered list. Only ``id`` and ``rank`` matter for ordering."""

    id: str
    rank: int
    name: str | None = None
    estimated_minutes: int | None = None


def rerank(items: Iterable[RankedItem]) -> list[RankedItem]:
    """Assign ``rank = position + 1`` to every item, keeping iteration order."""
    return [
        item if item.rank == pos else replace(item, rank=pos)
        for pos, item in enumerate(items, start=1)
    ]


def is_contiguous(items: Sequence[RankedItem]) -> bool:
    return [item.rank for item in items] == list(range(1, len(items) + 1))


def index_of(items: Sequence[RankedItem], item_id: str, container_id: str = "") -> int:
    for idx, item in enumerate(items):
        if item.id == item_id:
            return idx
    raise PreconditionViolationError(item_id, container_id)


def move(
    items: Sequence[RankedItem],
    source_id: str,
    target_id: str,
    *,
    container_id: str = "",
) -> list[RankedItem]:
    """Move ``source_id`` into the slot currently held by ``target_id``.

    Items between the two positions shift by one toward the vacated slot,
    so dragging down lands after the target and dragging up lands before it.
    Moving an item onto itself returns an unchanged copy.
    """
    old_index = index_of(items, source_id, container_id)
    new_index = index_of(items, target_id, container_id)
    working = list(items)
    if old_index == new_index:
        return working
    working.insert(new_index, working.pop(old_index))
    return rerank(working)


def remove(
    items: Sequence[RankedItem],
    item_id: str,
    *,
    container_id: str = "",
) -> list[RankedItem]:
    idx = index_of(items, item_id, container_id)
    return rerank([*items[:idx], *items[idx + 1:]])


def changed_ranks(
    before: Sequence[RankedItem],
    after: Sequence[RankedItem],
) -> dict[str, int]:
    """Return ``{id: new_rank}`` for items of ``after`` whose rank differs from ``before``.

    Items absent from ``before`` always count as changed. Keys follow the
    order of ``after``.
    """
    previous = {item.id: item.rank for item in before}
    return {
        item.id: item.rank
        for item in after
        if previous.get(item.id) != item.rank
    }
