"""Ordered collection with optimistic reordering and rollback-by-reload.

State machine::

    UNLOADED --load--> SYNCED
    SYNCED --move/remove--> PENDING --all writes ok--> SYNCED
    PENDING --any write fails--> RELOADING --fetch ok--> SYNCED
    RELOADING --fetch fails--> STALE --load--> SYNCED

A move or removal is only accepted in SYNCED. The new order is visible on
``items`` before the first await; persistence then runs concurrently and is
bounded by ``persist_timeout`` (a timeout counts as a failure).

A completed fetch always ends in SYNCED. If repairing the fetched ranks
fails, ``items`` keep the stored ranks and the next mutation rewrites them all.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from app.exceptions import (
    PersistenceFailureError,
    ReorderInProgressError,
    StaleOrderError,
)
from app.ordering import ranking
from app.ordering.ranking import RankedItem
from app.ordering.store import BatchRankStore, RankStore

logger = logging.getLogger(__name__)

DEFAULT_PERSIST_TIMEOUT_SECS = 10.0


class OrderState(str, enum.Enum):
    UNLOADED = "UNLOADED"
    SYNCED = "SYNCED"
    PENDING = "PENDING"
    RELOADING = "RELOADING"
    STALE = "STALE"


class ReorderOutcome(str, enum.Enum):
    APPLIED = "applied"
    ROLLED_BACK = "rolled_back"
    NOOP = "noop"


@dataclass
class ReorderResult:
    outcome: ReorderOutcome
    items: list[RankedItem] = field(default_factory=list)


class OrderedCollection:
    """One ordered list bound to its remote store.

    ``on_reload`` is called with the container id when a failed write sends
    the collection into RELOADING; it is a notification hook only.
    """

    def __init__(
        self,
        store: RankStore,
        container_id: str,
        *,
        persist_timeout: float = DEFAULT_PERSIST_TIMEOUT_SECS,
        on_reload: Callable[[str], None] | None = None,
    ) -> None:
        self._store = store
        self.container_id = container_id
        self._persist_timeout = persist_timeout
        self._on_reload = on_reload
        self._items: list[RankedItem] = []
        self.state = OrderState.UNLOADED
        self._unrepaired = False

    @property
    def items(self) -> list[RankedItem]:
        return list(self._items)

    @property
    def ids(self) -> list[str]:
        return [item.id for item in self._items]

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self) -> list[RankedItem]:
        """Fetch the authoritative order, repairing non-contiguous remote ranks."""
        if self.state in (OrderState.PENDING, OrderState.RELOADING):
            raise ReorderInProgressError(self.container_id)
        self.state = OrderState.RELOADING
        try:
            await self._fetch_and_heal()
        except PersistenceFailureError:
            self.state = OrderState.STALE
            raise
        return self.items

    async def _fetch_and_heal(self) -> None:
        """Replace ``items`` with the fetched order, then try to repair its ranks.

        Only the fetch can fail this step. A failed repair keeps the stored
        ranks as fetched and marks them so the next mutation rewrites every rank.
        """
        fetched = await self._bounded(
            "fetch_ordered_list", self._store.fetch_ordered_list(self.container_id),
        )
        self._items = list(fetched)
        self._unrepaired = False
        healed = ranking.rerank(fetched)
        repairs = ranking.changed_ranks(fetched, healed)
        if repairs:
            logger.warning(
                "Non-contiguous ranks in container=%s, re-persisting %s",
                self.container_id,
                repairs,
            )
            try:
                await self._write_ranks(repairs)
            except PersistenceFailureError:
                logger.warning(
                    "Rank repair failed for container=%s, keeping stored ranks",
                    self.container_id,
                    exc_info=True,
                )
                self._unrepaired = True
            else:
                self._items = healed
        self.state = OrderState.SYNCED

    def _changes(
        self,
        before: list[RankedItem],
        after: list[RankedItem],
    ) -> dict[str, int]:
        if self._unrepaired:
            return {item.id: item.rank for item in after}
        return ranking.changed_ranks(before, after)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def move(self, source_id: str, target_id: str) -> ReorderResult:
        self._ensure_ready()
        before = self._items
        after = ranking.move(before, source_id, target_id, container_id=self.container_id)
        if source_id == target_id:
            return ReorderResult(ReorderOutcome.NOOP, self.items)

        self._items = after
        self.state = OrderState.PENDING
        changes = self._changes(before, after)
        logger.info(
            "move container=%s source=%s target=%s before=%s after=%s",
            self.container_id,
            source_id,
            target_id,
            [i.id for i in before],
            [i.id for i in after],
        )
        return await self._settle(self._write_ranks(changes))

    async def remove_and_reindex(self, item_id: str) -> ReorderResult:
        self._ensure_ready()
        before = self._items
        after = ranking.remove(before, item_id, container_id=self.container_id)

        self._items = after
        self.state = OrderState.PENDING
        changes = self._changes(before, after)
        logger.info(
            "remove container=%s item=%s reranked=%s",
            self.container_id,
            item_id,
            changes,
        )
        return await self._settle(self._delete_then_write(item_id, changes))

    def _ensure_ready(self) -> None:
        if self.state in (OrderState.PENDING, OrderState.RELOADING):
            raise ReorderInProgressError(self.container_id)
        if self.state is not OrderState.SYNCED:
            raise StaleOrderError(self.container_id)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def _settle(self, persist: Awaitable[None]) -> ReorderResult:
        try:
            await persist
        except PersistenceFailureError as exc:
            await self._rollback(exc)
            return ReorderResult(ReorderOutcome.ROLLED_BACK, self.items)
        self._unrepaired = False
        self.state = OrderState.SYNCED
        return ReorderResult(ReorderOutcome.APPLIED, self.items)

    async def _rollback(self, cause: PersistenceFailureError) -> None:
        logger.warning(
            "Persistence failed for container=%s, reloading: %s",
            self.container_id,
            cause,
            exc_info=cause,
        )
        self.state = OrderState.RELOADING
        if self._on_reload is not None:
            self._on_reload(self.container_id)
        try:
            await self._fetch_and_heal()
        except PersistenceFailureError:
            logger.error(
                "Reload failed for container=%s, list is stale",
                self.container_id,
                exc_info=True,
            )
            self.state = OrderState.STALE

    async def _delete_then_write(self, item_id: str, changes: dict[str, int]) -> None:
        await self._bounded("delete_item", self._store.delete_item(item_id))
        await self._write_ranks(changes)

    async def _write_ranks(self, changes: dict[str, int]) -> None:
        if not changes:
            return
        if isinstance(self._store, BatchRankStore):
            await self._bounded(
                "apply_ranking", self._store.apply_ranking(self.container_id, changes),
            )
            return
        results = await self._bounded(
            "set_rank",
            asyncio.gather(
                *(self._store.set_rank(item_id, rank) for item_id, rank in changes.items()),
                return_exceptions=True,
            ),
        )
        failures = _failures(changes, results)
        if failures:
            raise PersistenceFailureError("set_rank", "; ".join(failures))

    async def _bounded(self, operation: str, awaitable: Awaitable):
        try:
            return await asyncio.wait_for(awaitable, timeout=self._persist_timeout)
        except PersistenceFailureError:
            raise
        except TimeoutError as exc:
            raise PersistenceFailureError(
                operation, f"timed out after {self._persist_timeout}s",
            ) from exc
        except Exception as exc:
            raise PersistenceFailureError(operation, repr(exc)) from exc


def _failures(changes: dict[str, int], results: Sequence[object]) -> list[str]:
    return [
        f"{item_id}->{rank}: {result!r}"
        for (item_id, rank), result in zip(changes.items(), results)
        if isinstance(result, BaseException)
    ]
