"""Learner service — pure business logic, no FastAPI imports.

Loads profile, registration and chapter-progress rows and hands them to
``app.learner.progress`` for aggregation.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timezone
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    AlreadyRegisteredError,
    ChapterNotFoundError,
    ModuleNotFoundError,
    ModuleNotPublishedError,
    NotRegisteredError,
    SubscriptionRequiredError,
    UserProfileNotFoundError,
)
from app.learner import progress
from app.learner.progress import (
    CatalogueSort,
    ChapterState,
    DashboardStats,
    ModuleProgress,
    ProgressStatus,
)
from app.models.chapter import Chapter
from app.models.chapter_content import ChapterContent
from app.models.chapter_progress import ChapterProgress
from app.models.learning_module import LearningModule
from app.models.module_registration import ModuleRegistration
from app.models.user_profile import UserProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogueEntry:
    module: LearningModule
    chapter_count: int
    registration_count: int
    enrolled: bool
    accessible: bool
    progress: ModuleProgress


# ---------------------------------------------------------------------------
# Loading helpers
# ---------------------------------------------------------------------------


async def get_profile(db: AsyncSession, user_id: UUID) -> UserProfile:
    profile = await db.get(UserProfile, user_id)
    if profile is None:
        raise UserProfileNotFoundError(str(user_id))
    return profile


async def _registered_module_ids(db: AsyncSession, user_id: UUID) -> list[UUID]:
    result = await db.execute(
        select(ModuleRegistration.module_id).where(ModuleRegistration.user_id == user_id)
    )
    return list(result.scalars().all())


async def _chapter_states(
    db: AsyncSession,
    user_id: UUID,
    module_ids: list[UUID],
) -> dict[UUID, list[ChapterState]]:
    """Per-module chapter states for one learner, in rank order."""
    if not module_ids:
        return {}
    chapters = list(
        (
            await db.execute(
                select(Chapter)
                .where(Chapter.module_id.in_(module_ids))
                .order_by(Chapter.module_id, Chapter.order_index)
            )
        ).scalars().all()
    )
    chapter_ids = [c.chapter_id for c in chapters]
    if not chapter_ids:
        return {}

    contents: dict[UUID, ChapterContent] = {}
    for content in (
        await db.execute(select(ChapterContent).where(ChapterContent.chapter_id.in_(chapter_ids)))
    ).scalars():
        contents.setdefault(content.chapter_id, content)

    completed = set(
        (
            await db.execute(
                select(ChapterProgress.chapter_id).where(
                    ChapterProgress.user_id == user_id,
                    ChapterProgress.completed.is_(True),
                    ChapterProgress.chapter_id.in_(chapter_ids),
                )
            )
        ).scalars().all()
    )

    states: dict[UUID, list[ChapterState]] = defaultdict(list)
    for c in chapters:
        content = contents.get(c.chapter_id)
        states[c.module_id].append(
            ChapterState(
                chapter_id=c.chapter_id,
                name=c.name,
                rank=c.order_index,
                estimated_minutes=c.estimated_time_minutes or 0,
                completed=c.chapter_id in completed,
                content_type=content.content_type if content else None,
            )
        )
    return states


async def _first_published_module_id(db: AsyncSession) -> UUID | None:
    return await db.scalar(
        select(LearningModule.module_id)
        .where(LearningModule.is_published.is_(True))
        .order_by(LearningModule.order_index)
        .limit(1)
    )


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


async def load_dashboard(
    db: AsyncSession,
    user_id: UUID,
    *,
    today: date,
) -> tuple[UserProfile, DashboardStats]:
    """Profile plus totals across registered modules. Records ``today`` as last login."""
    profile = await get_profile(db, user_id)
    module_ids = await _registered_module_ids(db, user_id)
    states = await _chapter_states(db, user_id, module_ids)
    stats = progress.dashboard_stats(
        progress.module_progress(mid, states.get(mid, [])) for mid in module_ids
    )
    profile.last_login_date = today
    await db.flush()
    return profile, stats


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------


async def list_catalogue(
    db: AsyncSession,
    user_id: UUID,
    *,
    status: ProgressStatus | None = None,
    search: str | None = None,
    sort: CatalogueSort = CatalogueSort.ORDER,
) -> list[CatalogueEntry]:
    """Published modules with this learner's progress, filtered and sorted."""
    profile = await get_profile(db, user_id)
    chapter_counts = (
        select(Chapter.module_id, func.count().label("n"))
        .group_by(Chapter.module_id)
        .subquery()
    )
    registration_counts = (
        select(ModuleRegistration.module_id, func.count().label("n"))
        .group_by(ModuleRegistration.module_id)
        .subquery()
    )
    rows = (
        await db.execute(
            select(
                LearningModule,
                func.coalesce(chapter_counts.c.n, 0),
                func.coalesce(registration_counts.c.n, 0),
            )
            .outerjoin(chapter_counts, chapter_counts.c.module_id == LearningModule.module_id)
            .outerjoin(
                registration_counts,
                registration_counts.c.module_id == LearningModule.module_id,
            )
            .where(LearningModule.is_published.is_(True))
            .order_by(LearningModule.order_index)
        )
    ).all()

    registered = set(await _registered_module_ids(db, user_id))
    states = await _chapter_states(
        db, user_id, [m.module_id for m, _, _ in rows if m.module_id in registered],
    )
    premium = profile.subscription_type.is_premium

    entries = []
    for position, (module, chapter_count, registration_count) in enumerate(rows):
        entries.append(
            CatalogueEntry(
                module=module,
                chapter_count=int(chapter_count),
                registration_count=int(registration_count),
                enrolled=module.module_id in registered,
                accessible=premium or position == 0,
                progress=progress.module_progress(module.module_id, states.get(module.module_id, [])),
            )
        )

    if status is not None:
        entries = [e for e in entries if e.progress.status is status]
    if search:
        entries = [
            e for e in entries
            if progress.matches_search(
                search,
                e.module.title,
                e.module.description,
                e.module.category.name if e.module.category else None,
            )
        ]
    entries.sort(
        key=lambda e: progress.sort_key(
            sort,
            rank=e.module.order_index,
            title=e.module.title,
            difficulty=e.module.difficulty,
        )
    )
    return entries


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


async def register(db: AsyncSession, user_id: UUID, module_id: UUID) -> ModuleRegistration:
    profile = await get_profile(db, user_id)
    module = await db.get(LearningModule, module_id)
    if module is None:
        raise ModuleNotFoundError(str(module_id))
    if not module.is_published:
        raise ModuleNotPublishedError()
    if not profile.subscription_type.is_premium:
        if await _first_published_module_id(db) != module_id:
            raise SubscriptionRequiredError()

    existing = await db.scalar(
        select(ModuleRegistration).where(
            ModuleRegistration.user_id == user_id,
            ModuleRegistration.module_id == module_id,
        )
    )
    if existing is not None:
        raise AlreadyRegisteredError()

    registration = ModuleRegistration(user_id=user_id, module_id=module_id)
    db.add(registration)
    await db.flush()
    await db.refresh(registration)
    logger.info("User %s registered for module %s", user_id, module_id)
    return registration


async def unregister(db: AsyncSession, user_id: UUID, module_id: UUID) -> None:
    registration = await db.scalar(
        select(ModuleRegistration).where(
            ModuleRegistration.user_id == user_id,
            ModuleRegistration.module_id == module_id,
        )
    )
    if registration is None:
        raise NotRegisteredError()
    await db.delete(registration)
    await db.flush()


# ---------------------------------------------------------------------------
# Chapter progress
# ---------------------------------------------------------------------------


async def complete_chapter(
    db: AsyncSession,
    user_id: UUID,
    chapter_id: UUID,
) -> tuple[Chapter, ChapterProgress, ModuleProgress]:
    """Mark a chapter completed. Completing it again keeps the first timestamp."""
    chapter = await db.get(Chapter, chapter_id)
    if chapter is None:
        raise ChapterNotFoundError(str(chapter_id))
    if chapter.module_id not in set(await _registered_module_ids(db, user_id)):
        raise NotRegisteredError()

    record = await db.scalar(
        select(ChapterProgress).where(
            ChapterProgress.user_id == user_id,
            ChapterProgress.chapter_id == chapter_id,
        )
    )
    if record is None:
        record = ChapterProgress(user_id=user_id, chapter_id=chapter_id)
        db.add(record)
    if not record.completed:
        record.completed = True
        record.completed_at = datetime.now(timezone.utc)
    await db.flush()

    states = await _chapter_states(db, user_id, [chapter.module_id])
    return chapter, record, progress.module_progress(
        chapter.module_id, states.get(chapter.module_id, []),
    )
