"""Remote store boundary for ordered lists.

A store is anything that can load an ordered list and write single ranks.
Stores that can update many rows atomically also expose ``apply_ranking``;
the reorder service prefers it when present.

Implementations raise on failure; the cause is not classified further.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from app.ordering.ranking import RankedItem


@runtime_checkable
class RankStore(Protocol):
    async def fetch_ordered_list(self, container_id: str) -> list[RankedItem]:
        """Return the authoritative order for ``container_id``, rank ascending."""
        ...

    async def set_rank(self, item_id: str, rank: int) -> None:
        """Write one rank. Reapplying the same rank to the same id is safe."""
        ...

    async def delete_item(self, item_id: str) -> None:
        ...


@runtime_checkable
class BatchRankStore(RankStore, Protocol):
    async def apply_ranking(self, container_id: str, ranks: dict[str, int]) -> None:
        """Write every ``id -> rank`` pair in one transaction, or none of them."""
        ...
