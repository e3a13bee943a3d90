"""Backoffice service — pure business logic, no FastAPI imports.

Handles category and module/chapter authoring. Anything that changes ranks
(reorder, delete) goes through ``OrderedCollection`` so the catalogue and
each module's chapters keep contiguous 1-based ``order_index`` values.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.context import ServiceContext
from app.exceptions import (
    CategoryNotFoundError,
    ChapterNotFoundError,
    ModuleNotFoundError,
)
from app.models.category import Category
from app.models.chapter import Chapter
from app.models.enums import Difficulty
from app.models.learning_module import LearningModule
from app.models.module_registration import ModuleRegistration
from app.ordering import OrderedCollection, ReorderOutcome, ReorderResult
from app.ordering.lock import reorder_lock
from app.ordering.sql_store import CATALOGUE_CONTAINER, ChapterRankStore, ModuleRankStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


async def list_categories(db: AsyncSession) -> list[Category]:
    result = await db.execute(select(Category).order_by(Category.name))
    return list(result.scalars().all())


async def create_category(db: AsyncSession, *, name: str) -> Category:
    category = Category(name=name)
    db.add(category)
    await db.flush()
    await db.refresh(category)
    return category


async def _ensure_category(db: AsyncSession, category_id: UUID | None) -> None:
    if category_id is not None and await db.get(Category, category_id) is None:
        raise CategoryNotFoundError(str(category_id))


# ---------------------------------------------------------------------------
# Module CRUD
# ---------------------------------------------------------------------------


def _chapter_count_subquery():
    return (
        select(Chapter.module_id, func.count().label("chapter_count"))
        .group_by(Chapter.module_id)
        .subquery()
    )


def _registration_count_subquery():
    return (
        select(ModuleRegistration.module_id, func.count().label("registration_count"))
        .group_by(ModuleRegistration.module_id)
        .subquery()
    )


async def list_modules(
    db: AsyncSession,
    *,
    search: str | None = None,
) -> list[tuple[LearningModule, int, int]]:
    """All modules in catalogue order with ``(module, chapter_count, registration_count)``.

    ``search`` matches title, category name or difficulty, case-insensitive.
    """
    chapters = _chapter_count_subquery()
    registrations = _registration_count_subquery()
    stmt = (
        select(
            LearningModule,
            func.coalesce(chapters.c.chapter_count, 0),
            func.coalesce(registrations.c.registration_count, 0),
        )
        .outerjoin(chapters, chapters.c.module_id == LearningModule.module_id)
        .outerjoin(registrations, registrations.c.module_id == LearningModule.module_id)
        .outerjoin(Category, Category.category_id == LearningModule.category_id)
        .order_by(LearningModule.order_index)
    )
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(
                LearningModule.title.ilike(pattern),
                Category.name.ilike(pattern),
                cast(LearningModule.difficulty, String).ilike(pattern),
            )
        )
    result = await db.execute(stmt)
    return [(m, int(cc), int(rc)) for m, cc, rc in result.all()]


async def get_module_by_id(db: AsyncSession, module_id: UUID) -> LearningModule:
    module = await db.get(LearningModule, module_id)
    if module is None:
        raise ModuleNotFoundError(str(module_id))
    return module


async def create_module(
    db: AsyncSession,
    *,
    title: str,
    description: str | None,
    category_id: UUID | None,
    picture_url: str | None,
    notes: str | None,
    difficulty: Difficulty,
    is_published: bool,
) -> LearningModule:
    await _ensure_category(db, category_id)
    last_rank = await db.scalar(select(func.coalesce(func.max(LearningModule.order_index), 0)))
    module = LearningModule(
        title=title,
        description=description,
        category_id=category_id,
        picture_url=picture_url,
        notes=notes,
        difficulty=difficulty,
        is_published=is_published,
        order_index=int(last_rank or 0) + 1,
    )
    db.add(module)
    await db.flush()
    await db.refresh(module)
    logger.info("Created module %s at rank %s", module.module_id, module.order_index)
    return module


async def get_module_detail(
    db: AsyncSession,
    module_id: UUID,
) -> tuple[LearningModule, int, list[Chapter]]:
    """Return ``(module, registration_count, chapters in rank order)``."""
    module = await get_module_by_id(db, module_id)
    registration_count = await db.scalar(
        select(func.count())
        .select_from(ModuleRegistration)
        .where(ModuleRegistration.module_id == module_id)
    ) or 0
    result = await db.execute(
        select(Chapter)
        .where(Chapter.module_id == module_id)
        .order_by(Chapter.order_index)
    )
    return module, int(registration_count), list(result.scalars().all())


async def update_module(
    db: AsyncSession,
    module_id: UUID,
    **fields: object,
) -> LearningModule:
    module = await get_module_by_id(db, module_id)
    if "category_id" in fields:
        await _ensure_category(db, fields["category_id"])  # type: ignore[arg-type]
    for key, value in fields.items():
        if value is not None:
            setattr(module, key, value)
    await db.flush()
    await db.refresh(module)
    return module


async def toggle_publish(db: AsyncSession, module_id: UUID) -> LearningModule:
    module = await get_module_by_id(db, module_id)
    module.is_published = not module.is_published
    await db.flush()
    logger.info("Module %s is_published=%s", module_id, module.is_published)
    return module


# ---------------------------------------------------------------------------
# Chapter CRUD
# ---------------------------------------------------------------------------


async def get_chapter_by_id(db: AsyncSession, chapter_id: UUID) -> Chapter:
    chapter = await db.get(Chapter, chapter_id)
    if chapter is None:
        raise ChapterNotFoundError(str(chapter_id))
    return chapter


async def create_chapter(
    db: AsyncSession,
    module_id: UUID,
    *,
    name: str,
    estimated_time_minutes: int,
) -> Chapter:
    await get_module_by_id(db, module_id)
    last_rank = await db.scalar(
        select(func.coalesce(func.max(Chapter.order_index), 0))
        .where(Chapter.module_id == module_id)
    )
    chapter = Chapter(
        module_id=module_id,
        name=name,
        estimated_time_minutes=estimated_time_minutes,
        order_index=int(last_rank or 0) + 1,
    )
    db.add(chapter)
    await db.flush()
    await db.refresh(chapter)
    return chapter


# ---------------------------------------------------------------------------
# Rank-changing operations
# ---------------------------------------------------------------------------


def _catalogue(context: ServiceContext) -> OrderedCollection:
    return context.ordered_collection(
        CATALOGUE_CONTAINER, lambda: ModuleRankStore(context.session_factory),
    )


def _module_chapters(context: ServiceContext, module_id: UUID) -> OrderedCollection:
    return context.ordered_collection(
        str(module_id), lambda: ChapterRankStore(context.session_factory),
    )


async def _run_move(
    context: ServiceContext,
    collection: OrderedCollection,
    source_id: UUID,
    target_id: UUID,
) -> ReorderResult:
    async with reorder_lock(
        context.redis, collection.container_id, context.settings.reorder_lock_ttl_secs,
    ):
        await collection.load()
        return await collection.move(str(source_id), str(target_id))


async def _run_remove(
    context: ServiceContext,
    collection: OrderedCollection,
    item_id: UUID,
) -> ReorderResult:
    async with reorder_lock(
        context.redis, collection.container_id, context.settings.reorder_lock_ttl_secs,
    ):
        await collection.load()
        return await collection.remove_and_reindex(str(item_id))


async def reorder_modules(
    context: ServiceContext,
    *,
    source_id: UUID,
    target_id: UUID,
) -> ReorderResult:
    return await _run_move(context, _catalogue(context), source_id, target_id)


async def delete_module(context: ServiceContext, module_id: UUID) -> ReorderResult:
    result = await _run_remove(context, _catalogue(context), module_id)
    if result.outcome is ReorderOutcome.APPLIED:
        # Its chapters went with it
        context.forget_collection(str(module_id))
    return result


async def reorder_chapters(
    db: AsyncSession,
    context: ServiceContext,
    module_id: UUID,
    *,
    source_id: UUID,
    target_id: UUID,
) -> ReorderResult:
    await get_module_by_id(db, module_id)
    return await _run_move(context, _module_chapters(context, module_id), source_id, target_id)


async def delete_chapter(
    db: AsyncSession,
    context: ServiceContext,
    chapter_id: UUID,
) -> ReorderResult:
    chapter = await get_chapter_by_id(db, chapter_id)
    return await _run_remove(context, _module_chapters(context, chapter.module_id), chapter_id)
