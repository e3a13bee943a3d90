"""Backoffice controller — maps service results to HTTP responses, catches domain exceptions."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.backoffice import service
from app.backoffice.schemas import (
    CategoryResponse,
    ChapterResponse,
    CreateCategoryRequest,
    CreateChapterRequest,
    CreateModuleRequest,
    ModuleDetailResponse,
    ModuleResponse,
    ModuleSummary,
    PublishResponse,
    RankedItemResponse,
    ReorderRequest,
    ReorderResponse,
    UpdateModuleRequest,
)
from app.context import ServiceContext
from app.exceptions import (
    CategoryNotFoundError,
    ChapterNotFoundError,
    ModuleNotFoundError,
    PersistenceFailureError,
    PreconditionViolationError,
    ReorderInProgressError,
    StaleOrderError,
)
from app.models.learning_module import LearningModule
from app.ordering import ReorderResult

logger = logging.getLogger(__name__)


def _handle_domain_error(exc: Exception) -> HTTPException:
    if isinstance(exc, (ModuleNotFoundError, ChapterNotFoundError, CategoryNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, PreconditionViolationError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, ReorderInProgressError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, (PersistenceFailureError, StaleOrderError)):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Ordering store unavailable, retry shortly.",
        )
    logger.exception("Unexpected backoffice error", exc_info=exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error.")


def _reorder_response(result: ReorderResult) -> ReorderResponse:
    return ReorderResponse(
        outcome=result.outcome,
        items=[RankedItemResponse.model_validate(item) for item in result.items],
    )


def _summary(
    module: LearningModule,
    chapter_count: int,
    registration_count: int,
) -> ModuleSummary:
    base = ModuleResponse.model_validate(module)
    return ModuleSummary(
        **base.model_dump(),
        category_name=module.category.name if module.category else None,
        chapter_count=chapter_count,
        registration_count=registration_count,
    )


# ---------------------------------------------------------------------------
# Category
# ---------------------------------------------------------------------------


async def list_categories(db: AsyncSession) -> list[CategoryResponse]:
    categories = await service.list_categories(db)
    return [CategoryResponse.model_validate(c) for c in categories]


async def create_category(db: AsyncSession, body: CreateCategoryRequest) -> CategoryResponse:
    category = await service.create_category(db, name=body.name)
    return CategoryResponse.model_validate(category)


# ---------------------------------------------------------------------------
# Module
# ---------------------------------------------------------------------------


async def list_modules(db: AsyncSession, *, search: str | None) -> list[ModuleSummary]:
    rows = await service.list_modules(db, search=search)
    return [_summary(m, cc, rc) for m, cc, rc in rows]


async def create_module(db: AsyncSession, body: CreateModuleRequest) -> ModuleResponse:
    try:
        module = await service.create_module(db, **body.model_dump())
        return ModuleResponse.model_validate(module)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def get_module_detail(db: AsyncSession, module_id: UUID) -> ModuleDetailResponse:
    try:
        module, registration_count, chapters = await service.get_module_detail(db, module_id)
        return ModuleDetailResponse(
            module=_summary(module, len(chapters), registration_count),
            chapters=[ChapterResponse.model_validate(c) for c in chapters],
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def update_module(
    db: AsyncSession,
    module_id: UUID,
    body: UpdateModuleRequest,
) -> ModuleResponse:
    try:
        module = await service.update_module(
            db, module_id, **body.model_dump(exclude_unset=True),
        )
        return ModuleResponse.model_validate(module)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def toggle_publish(db: AsyncSession, module_id: UUID) -> PublishResponse:
    try:
        module = await service.toggle_publish(db, module_id)
        return PublishResponse(module_id=module.module_id, is_published=module.is_published)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def delete_module(context: ServiceContext, module_id: UUID) -> ReorderResponse:
    try:
        result = await service.delete_module(context, module_id)
        return _reorder_response(result)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def reorder_modules(context: ServiceContext, body: ReorderRequest) -> ReorderResponse:
    try:
        result = await service.reorder_modules(
            context, source_id=body.source_id, target_id=body.target_id,
        )
        return _reorder_response(result)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


# ---------------------------------------------------------------------------
# Chapter
# ---------------------------------------------------------------------------


async def create_chapter(
    db: AsyncSession,
    module_id: UUID,
    body: CreateChapterRequest,
) -> ChapterResponse:
    try:
        chapter = await service.create_chapter(db, module_id, **body.model_dump())
        return ChapterResponse.model_validate(chapter)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def reorder_chapters(
    db: AsyncSession,
    context: ServiceContext,
    module_id: UUID,
    body: ReorderRequest,
) -> ReorderResponse:
    try:
        result = await service.reorder_chapters(
            db, context, module_id, source_id=body.source_id, target_id=body.target_id,
        )
        return _reorder_response(result)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def delete_chapter(
    db: AsyncSession,
    context: ServiceContext,
    chapter_id: UUID,
) -> ReorderResponse:
    try:
        result = await service.delete_chapter(db, context, chapter_id)
        return _reorder_response(result)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
