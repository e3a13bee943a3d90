from app.ordering.ranking import RankedItem, changed_ranks, is_contiguous, move, remove, rerank
from app.ordering.service import OrderedCollection, OrderState, ReorderOutcome, ReorderResult
from app.ordering.store import BatchRankStore, RankStore

__all__ = [
    "BatchRankStore",
    "OrderState",
    "OrderedCollection",
    "RankStore",
    "RankedItem",
    "ReorderOutcome",
    "ReorderResult",
    "changed_ranks",
    "is_contiguous",
    "move",
    "remove",
    "rerank",
]
