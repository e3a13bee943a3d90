import asyncio

import pytest

from app.exceptions import (
    PersistenceFailureError,
    PreconditionViolationError,
    ReorderInProgressError,
    StaleOrderError,
)
from app.ordering import OrderedCollection, OrderState, ReorderOutcome, is_contiguous
from tests.conftest import FakeBatchRankStore, FakeRankStore


def _pairs(collection: OrderedCollection) -> list[tuple[str, int]]:
    return [(i.id, i.rank) for i in collection.items]


async def _loaded(store: FakeRankStore, **kwargs) -> OrderedCollection:
    collection = OrderedCollection(store, "module-1", persist_timeout=0.2, **kwargs)
    await collection.load()
    store.calls.clear()
    return collection


@pytest.mark.asyncio
async def test_move_persists_every_changed_rank(abc_store: FakeRankStore) -> None:
    collection = await _loaded(abc_store)
    result = await collection.move("C", "A")
    assert result.outcome is ReorderOutcome.APPLIED
    assert _pairs(collection) == [("C", 1), ("A", 2), ("B", 3)]
    assert abc_store.set_rank_calls == [("C", 1), ("A", 2), ("B", 3)]
    assert abc_store.snapshot() == [("C", 1), ("A", 2), ("B", 3)]
    assert collection.state is OrderState.SYNCED


@pytest.mark.asyncio
async def test_move_onto_self_issues_no_calls(abc_store: FakeRankStore) -> None:
    collection = await _loaded(abc_store)
    result = await collection.move("B", "B")
    assert result.outcome is ReorderOutcome.NOOP
    assert _pairs(collection) == [("A", 1), ("B", 2), ("C", 3)]
    assert abc_store.calls == []


@pytest.mark.asyncio
async def test_move_unknown_id_fails_loudly(abc_store: FakeRankStore) -> None:
    collection = await _loaded(abc_store)
    with pytest.raises(PreconditionViolationError):
        await collection.move("Z", "A")
    assert collection.state is OrderState.SYNCED
    assert abc_store.calls == []


@pytest.mark.asyncio
async def test_new_order_is_visible_before_persistence_settles(abc_store: FakeRankStore) -> None:
    collection = await _loaded(abc_store)
    task = asyncio.ensure_future(collection.move("C", "A"))
    # The move has not been awaited yet; give it one step to run synchronously.
    await asyncio.sleep(0)
    assert collection.ids == ["C", "A", "B"]
    await task


@pytest.mark.asyncio
async def test_remove_and_reindex(abc_store: FakeRankStore) -> None:
    collection = await _loaded(abc_store)
    result = await collection.remove_and_reindex("B")
    assert result.outcome is ReorderOutcome.APPLIED
    assert _pairs(collection) == [("A", 1), ("C", 2)]
    assert abc_store.calls == [("delete", "B"), ("set_rank", "C", 2)]


@pytest.mark.asyncio
async def test_remove_unknown_id_fails_loudly(abc_store: FakeRankStore) -> None:
    collection = await _loaded(abc_store)
    with pytest.raises(PreconditionViolationError):
        await collection.remove_and_reindex("Z")


@pytest.mark.asyncio
async def test_partial_failure_reloads_from_store(abc_store: FakeRankStore) -> None:
    abc_store.fail_set_rank = {("B", 3)}
    abc_store.fail_times = 1
    reloads: list[str] = []
    collection = await _loaded(abc_store, on_reload=reloads.append)

    result = await collection.move("C", "A")

    assert result.outcome is ReorderOutcome.ROLLED_BACK
    assert reloads == ["module-1"]
    assert abc_store.fetch_count == 1
    # Remote was C:1 A:2 B:2 after the failed batch; the reload re-ranks and heals it.
    assert collection.ids == ["C", "A", "B"]
    assert is_contiguous(collection.items)
    assert abc_store.snapshot() == _pairs(collection)
    assert collection.state is OrderState.SYNCED


@pytest.mark.asyncio
async def test_persistent_write_failure_settles_on_fetched_order(abc_store: FakeRankStore) -> None:
    abc_store.fail_set_rank = {("B", 3)}
    collection = await _loaded(abc_store)

    result = await collection.move("C", "A")

    assert result.outcome is ReorderOutcome.ROLLED_BACK
    assert collection.state is OrderState.SYNCED
    fresh = await abc_store.fetch_ordered_list("module-1")
    assert collection.items == fresh
    assert _pairs(collection) == [("C", 1), ("A", 2), ("B", 2)]

    # Once the store recovers, the next move rewrites every rank
    abc_store.fail_set_rank = set()
    abc_store.calls.clear()
    result = await collection.move("A", "C")
    assert result.outcome is ReorderOutcome.APPLIED
    assert abc_store.set_rank_calls == [("A", 1), ("C", 2), ("B", 3)]
    assert abc_store.snapshot() == [("A", 1), ("C", 2), ("B", 3)]


@pytest.mark.asyncio
async def test_load_keeps_stored_ranks_when_repair_fails() -> None:
    store = FakeRankStore([("A", 1), ("C", 3)])
    store.fail_set_rank = {("C", 2)}
    collection = OrderedCollection(store, "module-1")
    items = await collection.load()
    assert collection.state is OrderState.SYNCED
    assert [(i.id, i.rank) for i in items] == [("A", 1), ("C", 3)]


@pytest.mark.asyncio
async def test_total_failure_restores_last_durable_order(abc_store: FakeRankStore) -> None:
    abc_store.fail_set_rank = {("C", 1), ("A", 2), ("B", 3)}
    collection = await _loaded(abc_store)

    result = await collection.move("C", "A")

    assert result.outcome is ReorderOutcome.ROLLED_BACK
    fresh = await abc_store.fetch_ordered_list("module-1")
    assert collection.items == fresh
    assert _pairs(collection) == [("A", 1), ("B", 2), ("C", 3)]


@pytest.mark.asyncio
async def test_failed_delete_reloads(abc_store: FakeRankStore) -> None:
    abc_store.fail_delete = True
    collection = await _loaded(abc_store)
    result = await collection.remove_and_reindex("A")
    assert result.outcome is ReorderOutcome.ROLLED_BACK
    assert collection.ids == ["A", "B", "C"]
    assert abc_store.set_rank_calls == []


@pytest.mark.asyncio
async def test_hung_write_times_out_into_rollback(abc_store: FakeRankStore) -> None:
    abc_store.hang_set_rank = {("A", 2)}
    collection = await _loaded(abc_store)
    result = await collection.move("C", "A")
    assert result.outcome is ReorderOutcome.ROLLED_BACK
    assert abc_store.fetch_count == 1


@pytest.mark.asyncio
async def test_failed_reload_marks_list_stale(abc_store: FakeRankStore) -> None:
    abc_store.fail_set_rank = {("C", 1)}
    collection = await _loaded(abc_store)
    abc_store.fail_fetch = True

    result = await collection.move("C", "A")

    assert result.outcome is ReorderOutcome.ROLLED_BACK
    assert collection.state is OrderState.STALE
    with pytest.raises(StaleOrderError):
        await collection.move("A", "B")

    abc_store.fail_fetch = False
    abc_store.fail_set_rank = set()
    await collection.load()
    assert collection.state is OrderState.SYNCED


@pytest.mark.asyncio
async def test_load_failure_raises() -> None:
    store = FakeRankStore([("A", 1)])
    store.fail_fetch = True
    collection = OrderedCollection(store, "module-1")
    with pytest.raises(PersistenceFailureError):
        await collection.load()
    assert collection.state is OrderState.STALE


@pytest.mark.asyncio
async def test_unloaded_collection_rejects_moves(abc_store: FakeRankStore) -> None:
    collection = OrderedCollection(abc_store, "module-1")
    with pytest.raises(StaleOrderError):
        await collection.move("A", "B")


@pytest.mark.asyncio
async def test_concurrent_move_is_rejected(abc_store: FakeRankStore) -> None:
    abc_store.hang_set_rank = {("C", 1)}
    collection = await _loaded(abc_store)
    first = asyncio.ensure_future(collection.move("C", "A"))
    await asyncio.sleep(0)
    assert collection.state is OrderState.PENDING
    with pytest.raises(ReorderInProgressError):
        await collection.move("A", "B")
    with pytest.raises(ReorderInProgressError):
        await collection.remove_and_reindex("A")
    await first


@pytest.mark.asyncio
async def test_load_heals_non_contiguous_ranks() -> None:
    store = FakeRankStore([("A", 1), ("C", 3)])
    collection = OrderedCollection(store, "module-1")
    await collection.load()
    assert _pairs(collection) == [("A", 1), ("C", 2)]
    assert store.set_rank_calls == [("C", 2)]


@pytest.mark.asyncio
async def test_reapplying_ranks_is_idempotent(abc_store: FakeRankStore) -> None:
    collection = await _loaded(abc_store)
    await collection.move("C", "A")
    first = abc_store.snapshot()
    for item_id, rank in abc_store.set_rank_calls:
        await abc_store.set_rank(item_id, rank)
    assert abc_store.snapshot() == first


@pytest.mark.asyncio
async def test_batch_store_gets_one_atomic_call() -> None:
    store = FakeBatchRankStore([("A", 1), ("B", 2), ("C", 3)])
    collection = await _loaded(store)
    await collection.move("C", "A")
    assert store.calls == [("apply_ranking", "module-1", {"C": 1, "A": 2, "B": 3})]
    assert store.set_rank_calls == []


@pytest.mark.asyncio
async def test_batch_failure_reloads_untouched_order() -> None:
    store = FakeBatchRankStore([("A", 1), ("B", 2), ("C", 3)])
    store.fail_batch = True
    collection = await _loaded(store)
    result = await collection.move("C", "A")
    assert result.outcome is ReorderOutcome.ROLLED_BACK
    assert _pairs(collection) == [("A", 1), ("B", 2), ("C", 3)]
