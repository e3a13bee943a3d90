"""Learner router — HTTP layer only.

Dashboard, module catalogue, registration and chapter completion for the
authenticated learner.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.learner import controller
from app.learner.progress import CatalogueSort, ProgressStatus
from app.learner.schemas import (
    CatalogueModuleResponse,
    ChapterCompletionResponse,
    DashboardResponse,
    RegistrationResponse,
)
from shared.auth.dependencies import get_current_user_required
from shared.models.user import CurrentUser

router = APIRouter(prefix="/learner", tags=["Learner"])


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    summary="Learner dashboard",
    description="Profile, greeting and totals across registered modules. "
    "Also records today as the learner's last login date.",
)
async def get_dashboard(
    utc_offset_minutes: int = Query(0, ge=-720, le=840, description="Learner clock offset from UTC."),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user_required),
) -> DashboardResponse:
    return await controller.get_dashboard(db, user.id, utc_offset_minutes=utc_offset_minutes)


@router.get(
    "/modules",
    response_model=list[CatalogueModuleResponse],
    summary="Published modules with the learner's progress",
)
async def list_modules(
    status_filter: ProgressStatus | None = Query(None, alias="status", description="Filter by progress status."),
    search: str | None = Query(None, max_length=200, description="Matches title, description or category."),
    sort: CatalogueSort = Query(CatalogueSort.ORDER, description="order, name or difficulty."),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user_required),
) -> list[CatalogueModuleResponse]:
    return await controller.list_catalogue(
        db, user.id, status_filter=status_filter, search=search, sort=sort,
    )


@router.post(
    "/modules/{module_id}/registration",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register for a module",
    description="Free learners may only register for the first published module.",
)
async def register(
    module_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user_required),
) -> RegistrationResponse:
    return await controller.register(db, user.id, module_id)


@router.delete(
    "/modules/{module_id}/registration",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unregister from a module",
)
async def unregister(
    module_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user_required),
) -> None:
    await controller.unregister(db, user.id, module_id)


@router.post(
    "/chapters/{chapter_id}/complete",
    response_model=ChapterCompletionResponse,
    summary="Mark a chapter completed",
)
async def complete_chapter(
    chapter_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user_required),
) -> ChapterCompletionResponse:
    return await controller.complete_chapter(db, user.id, chapter_id)
