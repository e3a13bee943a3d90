"""SQLAlchemy-backed rank stores.

Every call opens its own session from the factory, so concurrent
``set_rank`` calls never share a connection. ``apply_ranking`` writes all
ranks in one transaction.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import delete, select, update

from app.exceptions import PersistenceFailureError
from app.models.chapter import Chapter
from app.models.learning_module import LearningModule
from app.ordering.ranking import RankedItem
from shared.database import AsyncSessionFactory

logger = logging.getLogger(__name__)

CATALOGUE_CONTAINER = "catalogue"


class ChapterRankStore:
    """Chapters of one module, ranked by ``order_index``. Container id is the module id."""

    def __init__(self, session_factory: AsyncSessionFactory) -> None:
        self._session_factory = session_factory

    async def fetch_ordered_list(self, container_id: str) -> list[RankedItem]:
        stmt = (
            select(Chapter)
            .where(Chapter.module_id == UUID(container_id))
            .order_by(Chapter.order_index, Chapter.created_at)
        )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [
            RankedItem(
                id=str(c.chapter_id),
                rank=c.order_index,
                name=c.name,
                estimated_minutes=c.estimated_time_minutes,
            )
            for c in rows
        ]

    async def set_rank(self, item_id: str, rank: int) -> None:
        async with self._session_factory.begin() as session:
            result = await session.execute(
                update(Chapter)
                .where(Chapter.chapter_id == UUID(item_id))
                .values(order_index=rank)
            )
        if result.rowcount == 0:
            raise PersistenceFailureError("set_rank", f"chapter {item_id} no longer exists")

    async def delete_item(self, item_id: str) -> None:
        async with self._session_factory.begin() as session:
            result = await session.execute(
                delete(Chapter).where(Chapter.chapter_id == UUID(item_id))
            )
        if result.rowcount == 0:
            raise PersistenceFailureError("delete_item", f"chapter {item_id} no longer exists")

    async def apply_ranking(self, container_id: str, ranks: dict[str, int]) -> None:
        module_id = UUID(container_id)
        async with self._session_factory.begin() as session:
            for item_id, rank in ranks.items():
                result = await session.execute(
                    update(Chapter)
                    .where(Chapter.chapter_id == UUID(item_id), Chapter.module_id == module_id)
                    .values(order_index=rank)
                )
                if result.rowcount == 0:
                    # Raising inside begin() rolls the whole batch back
                    raise PersistenceFailureError(
                        "apply_ranking", f"chapter {item_id} not in module {container_id}",
                    )
        logger.info("apply_ranking chapters module=%s ranks=%s", container_id, ranks)


class ModuleRankStore:
    """The module catalogue, ranked by ``order_index``. There is a single container."""

    def __init__(self, session_factory: AsyncSessionFactory) -> None:
        self._session_factory = session_factory

    async def fetch_ordered_list(self, container_id: str = CATALOGUE_CONTAINER) -> list[RankedItem]:
        stmt = select(LearningModule).order_by(
            LearningModule.order_index, LearningModule.created_at,
        )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [RankedItem(id=str(m.module_id), rank=m.order_index, name=m.title) for m in rows]

    async def set_rank(self, item_id: str, rank: int) -> None:
        async with self._session_factory.begin() as session:
            result = await session.execute(
                update(LearningModule)
                .where(LearningModule.module_id == UUID(item_id))
                .values(order_index=rank)
            )
        if result.rowcount == 0:
            raise PersistenceFailureError("set_rank", f"module {item_id} no longer exists")

    async def delete_item(self, item_id: str) -> None:
        async with self._session_factory.begin() as session:
            result = await session.execute(
                delete(LearningModule).where(LearningModule.module_id == UUID(item_id))
            )
        if result.rowcount == 0:
            raise PersistenceFailureError("delete_item", f"module {item_id} no longer exists")

    async def apply_ranking(self, container_id: str, ranks: dict[str, int]) -> None:
        async with self._session_factory.begin() as session:
            for item_id, rank in ranks.items():
                result = await session.execute(
                    update(LearningModule)
                    .where(LearningModule.module_id == UUID(item_id))
                    .values(order_index=rank)
                )
                if result.rowcount == 0:
                    raise PersistenceFailureError(
                        "apply_ranking", f"module {item_id} no longer exists",
                    )
        logger.info("apply_ranking modules ranks=%s", ranks)
