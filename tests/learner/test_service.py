from dataclasses import dataclass
from datetime import date
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    AlreadyRegisteredError,
    ModuleNotPublishedError,
    NotRegisteredError,
    SubscriptionRequiredError,
)
from app.learner import service
from app.learner.progress import CatalogueSort, ProgressStatus
from app.models.chapter import Chapter
from app.models.enums import Difficulty
from app.models.learning_module import LearningModule
from app.models.user_profile import UserProfile
from shared.constants import SubscriptionTier

TODAY = date(2026, 10, 17)


@dataclass
class Catalogue:
    free_user: UUID
    premium_user: UUID
    options: LearningModule
    greeks: LearningModule
    draft: LearningModule
    chapters: list[Chapter]


@pytest_asyncio.fixture
async def catalogue(db_session: AsyncSession) -> Catalogue:
    """Two published modules and one draft; the first module has two chapters."""
    free = UserProfile(
        user_id=uuid4(), email="free@example.com", subscription_type=SubscriptionTier.FREE,
    )
    premium = UserProfile(
        user_id=uuid4(),
        email="premium@example.com",
        subscription_type=SubscriptionTier.PREMIUM_800,
    )
    options = LearningModule(title="Options basics", order_index=1, is_published=True)
    greeks = LearningModule(
        title="Greeks", order_index=2, is_published=True, difficulty=Difficulty.ADVANCED,
    )
    draft = LearningModule(title="Spreads", order_index=3, is_published=False)
    db_session.add_all([free, premium, options, greeks, draft])
    await db_session.flush()

    chapters = [
        Chapter(
            module_id=options.module_id, name="Calls", order_index=1, estimated_time_minutes=30,
        ),
        Chapter(
            module_id=options.module_id, name="Puts", order_index=2, estimated_time_minutes=90,
        ),
    ]
    db_session.add_all(chapters)
    await db_session.commit()
    return Catalogue(free.user_id, premium.user_id, options, greeks, draft, chapters)


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_free_learner_may_only_register_for_first_module(db_session, catalogue) -> None:
    registration = await service.register(
        db_session, catalogue.free_user, catalogue.options.module_id,
    )
    assert registration.module_id == catalogue.options.module_id

    with pytest.raises(SubscriptionRequiredError):
        await service.register(db_session, catalogue.free_user, catalogue.greeks.module_id)


@pytest.mark.asyncio
async def test_premium_learner_may_register_anywhere(db_session, catalogue) -> None:
    await service.register(db_session, catalogue.premium_user, catalogue.greeks.module_id)
    with pytest.raises(AlreadyRegisteredError):
        await service.register(db_session, catalogue.premium_user, catalogue.greeks.module_id)


@pytest.mark.asyncio
@pytest.mark.parametrize("who", ["free_user", "premium_user"])
async def test_unpublished_module_rejects_registration(db_session, catalogue, who) -> None:
    with pytest.raises(ModuleNotPublishedError):
        await service.register(db_session, getattr(catalogue, who), catalogue.draft.module_id)


@pytest.mark.asyncio
async def test_unregister_requires_registration(db_session, catalogue) -> None:
    with pytest.raises(NotRegisteredError):
        await service.unregister(db_session, catalogue.free_user, catalogue.options.module_id)


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------


def _titles(entries) -> list[str]:
    return [e.module.title for e in entries]


@pytest.mark.asyncio
async def test_catalogue_shows_published_modules_with_access(db_session, catalogue) -> None:
    free = await service.list_catalogue(db_session, catalogue.free_user)
    assert _titles(free) == ["Options basics", "Greeks"]
    assert [e.accessible for e in free] == [True, False]
    assert [e.chapter_count for e in free] == [2, 0]

    premium = await service.list_catalogue(db_session, catalogue.premium_user)
    assert [e.accessible for e in premium] == [True, True]


@pytest.mark.asyncio
async def test_catalogue_status_filter(db_session, catalogue) -> None:
    user = catalogue.free_user
    await service.register(db_session, user, catalogue.options.module_id)
    await service.complete_chapter(db_session, user, catalogue.chapters[0].chapter_id)

    in_progress = await service.list_catalogue(
        db_session, user, status=ProgressStatus.IN_PROGRESS,
    )
    assert _titles(in_progress) == ["Options basics"]
    assert in_progress[0].enrolled is True
    assert in_progress[0].progress.percent == 50

    not_started = await service.list_catalogue(
        db_session, user, status=ProgressStatus.NOT_STARTED,
    )
    assert _titles(not_started) == ["Greeks"]


@pytest.mark.asyncio
async def test_catalogue_sort_keeps_access_by_rank(db_session, catalogue) -> None:
    entries = await service.list_catalogue(
        db_session, catalogue.free_user, sort=CatalogueSort.NAME,
    )
    assert _titles(entries) == ["Greeks", "Options basics"]
    assert [e.accessible for e in entries] == [False, True]

    by_difficulty = await service.list_catalogue(
        db_session, catalogue.free_user, sort=CatalogueSort.DIFFICULTY,
    )
    assert _titles(by_difficulty) == ["Options basics", "Greeks"]


# ---------------------------------------------------------------------------
# Dashboard and progress
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_load_dashboard_records_login_and_totals(db_session, catalogue) -> None:
    user = catalogue.free_user
    await service.register(db_session, user, catalogue.options.module_id)
    for chapter in catalogue.chapters:
        await service.complete_chapter(db_session, user, chapter.chapter_id)

    profile, stats = await service.load_dashboard(db_session, user, today=TODAY)
    await db_session.commit()

    assert profile.last_login_date == TODAY
    stored = await db_session.scalar(
        select(UserProfile.last_login_date).where(UserProfile.user_id == user)
    )
    assert stored == TODAY
    assert (stats.courses_completed, stats.total_courses) == (1, 1)
    assert stats.hours_learned == 2
    assert stats.progress_percentage == 100


@pytest.mark.asyncio
async def test_complete_chapter_requires_registration(db_session, catalogue) -> None:
    with pytest.raises(NotRegisteredError):
        await service.complete_chapter(
            db_session, catalogue.free_user, catalogue.chapters[0].chapter_id,
        )


@pytest.mark.asyncio
async def test_completing_twice_keeps_first_timestamp(db_session, catalogue) -> None:
    user = catalogue.free_user
    chapter_id = catalogue.chapters[1].chapter_id
    await service.register(db_session, user, catalogue.options.module_id)

    _, first, module_progress = await service.complete_chapter(db_session, user, chapter_id)
    completed_at = first.completed_at
    _, again, _ = await service.complete_chapter(db_session, user, chapter_id)

    assert again.completed_at == completed_at
    assert module_progress.completed_chapters == 1
    assert module_progress.next_chapter.name == "Calls"
