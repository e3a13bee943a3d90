"""Learner controller — maps service results to HTTP responses, catches domain exceptions."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID

from fastapi import HTTPException, status
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
from app.learner import progress, service
from app.learner.progress import CatalogueSort, ProgressStatus
from app.learner.schemas import (
    CatalogueModuleResponse,
    ChapterCompletionResponse,
    DashboardResponse,
    NextChapterResponse,
    ProfileResponse,
    RegistrationResponse,
)
from app.learner.service import CatalogueEntry


def _handle_domain_error(exc: Exception) -> HTTPException:
    if isinstance(exc, (ModuleNotFoundError, ChapterNotFoundError, UserProfileNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, AlreadyRegisteredError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already registered for this module.")
    if isinstance(exc, NotRegisteredError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not registered for this module.")
    if isinstance(exc, ModuleNotPublishedError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Module is not published.")
    if isinstance(exc, SubscriptionRequiredError):
        return HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail="A premium subscription is required for this module.",
        )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error.")


def _catalogue_item(entry: CatalogueEntry) -> CatalogueModuleResponse:
    module = entry.module
    hint = entry.progress.next_chapter
    return CatalogueModuleResponse(
        module_id=module.module_id,
        title=module.title,
        description=module.description,
        category_name=module.category.name if module.category else None,
        picture_url=module.picture_url,
        difficulty=module.difficulty,
        order_index=module.order_index,
        chapter_count=entry.chapter_count,
        registration_count=entry.registration_count,
        enrolled=entry.enrolled,
        accessible=entry.accessible,
        progress=entry.progress.percent,
        status=entry.progress.status,
        # Only registered learners get a resume hint
        next_chapter=NextChapterResponse.model_validate(hint) if hint and entry.enrolled else None,
    )


async def get_dashboard(
    db: AsyncSession,
    user_id: UUID,
    *,
    utc_offset_minutes: int,
) -> DashboardResponse:
    try:
        local_now = datetime.now(timezone.utc) + timedelta(minutes=utc_offset_minutes)
        profile, stats = await service.load_dashboard(db, user_id, today=local_now.date())
        return DashboardResponse(
            profile=ProfileResponse.model_validate(profile),
            greeting=progress.greeting_for(local_now.hour),
            display_name=profile.first_name or profile.last_name,
            courses_completed=stats.courses_completed,
            total_courses=stats.total_courses,
            hours_learned=stats.hours_learned,
            progress_percentage=stats.progress_percentage,
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def list_catalogue(
    db: AsyncSession,
    user_id: UUID,
    *,
    status_filter: ProgressStatus | None,
    search: str | None,
    sort: CatalogueSort,
) -> list[CatalogueModuleResponse]:
    try:
        entries = await service.list_catalogue(
            db, user_id, status=status_filter, search=search, sort=sort,
        )
        return [_catalogue_item(e) for e in entries]
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def register(db: AsyncSession, user_id: UUID, module_id: UUID) -> RegistrationResponse:
    try:
        registration = await service.register(db, user_id, module_id)
        return RegistrationResponse.model_validate(registration)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def unregister(db: AsyncSession, user_id: UUID, module_id: UUID) -> None:
    try:
        await service.unregister(db, user_id, module_id)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def complete_chapter(
    db: AsyncSession,
    user_id: UUID,
    chapter_id: UUID,
) -> ChapterCompletionResponse:
    try:
        chapter, record, module_progress = await service.complete_chapter(db, user_id, chapter_id)
        return ChapterCompletionResponse(
            chapter_id=chapter.chapter_id,
            module_id=chapter.module_id,
            completed=record.completed,
            completed_at=record.completed_at,
            module_progress=module_progress.percent,
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
