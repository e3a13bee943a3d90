"""Backoffice router — HTTP layer only.

Admin endpoints for the module catalogue and module chapters.
Delegates to controller for business logic orchestration.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.backoffice import controller
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
    ReorderRequest,
    ReorderResponse,
    UpdateModuleRequest,
)
from app.context import ServiceContext
from app.database import get_context, get_db
from shared.auth.dependencies import require_admin

router = APIRouter(
    prefix="/backoffice",
    tags=["Backoffice"],
    dependencies=[Depends(require_admin)],
)


# ======================================================================
# Category endpoints
# ======================================================================


@router.get(
    "/categories",
    response_model=list[CategoryResponse],
    summary="List categories",
)
async def list_categories(db: AsyncSession = Depends(get_db)) -> list[CategoryResponse]:
    return await controller.list_categories(db)


@router.post(
    "/categories",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a category",
)
async def create_category(
    body: CreateCategoryRequest,
    db: AsyncSession = Depends(get_db),
) -> CategoryResponse:
    return await controller.create_category(db, body)


# ======================================================================
# Module endpoints
# ======================================================================


@router.get(
    "/modules",
    response_model=list[ModuleSummary],
    summary="List all modules in catalogue order",
    description="Includes unpublished modules. `search` matches title, category or difficulty.",
)
async def list_modules(
    search: str | None = Query(None, max_length=200, description="Case-insensitive filter."),
    db: AsyncSession = Depends(get_db),
) -> list[ModuleSummary]:
    return await controller.list_modules(db, search=search)


@router.post(
    "/modules",
    response_model=ModuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a module",
    description="The new module is appended to the end of the catalogue.",
)
async def create_module(
    body: CreateModuleRequest,
    db: AsyncSession = Depends(get_db),
) -> ModuleResponse:
    return await controller.create_module(db, body)


@router.post(
    "/modules/reorder",
    response_model=ReorderResponse,
    summary="Move a module within the catalogue",
    description="Drops `source_id` onto `target_id` and re-ranks the catalogue. "
    "If a rank write fails the catalogue is reloaded and `outcome` is `rolled_back`.",
)
async def reorder_modules(
    body: ReorderRequest,
    context: ServiceContext = Depends(get_context),
) -> ReorderResponse:
    return await controller.reorder_modules(context, body)


@router.get(
    "/modules/{module_id}",
    response_model=ModuleDetailResponse,
    summary="Module detail with chapters",
)
async def get_module(
    module_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> ModuleDetailResponse:
    return await controller.get_module_detail(db, module_id)


@router.patch(
    "/modules/{module_id}",
    response_model=ModuleResponse,
    summary="Update module fields",
)
async def update_module(
    module_id: UUID,
    body: UpdateModuleRequest,
    db: AsyncSession = Depends(get_db),
) -> ModuleResponse:
    return await controller.update_module(db, module_id, body)


@router.post(
    "/modules/{module_id}/publish",
    response_model=PublishResponse,
    summary="Toggle the published flag",
)
async def toggle_publish(
    module_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> PublishResponse:
    return await controller.toggle_publish(db, module_id)


@router.delete(
    "/modules/{module_id}",
    response_model=ReorderResponse,
    summary="Delete a module and re-rank the catalogue",
)
async def delete_module(
    module_id: UUID,
    context: ServiceContext = Depends(get_context),
) -> ReorderResponse:
    return await controller.delete_module(context, module_id)


# ======================================================================
# Chapter endpoints
# ======================================================================


@router.post(
    "/modules/{module_id}/chapters",
    response_model=ChapterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a chapter to a module",
    description="The chapter is appended after the module's last chapter.",
)
async def create_chapter(
    module_id: UUID,
    body: CreateChapterRequest,
    db: AsyncSession = Depends(get_db),
) -> ChapterResponse:
    return await controller.create_chapter(db, module_id, body)


@router.post(
    "/modules/{module_id}/chapters/reorder",
    response_model=ReorderResponse,
    summary="Move a chapter within its module",
)
async def reorder_chapters(
    module_id: UUID,
    body: ReorderRequest,
    db: AsyncSession = Depends(get_db),
    context: ServiceContext = Depends(get_context),
) -> ReorderResponse:
    return await controller.reorder_chapters(db, context, module_id, body)


@router.delete(
    "/chapters/{chapter_id}",
    response_model=ReorderResponse,
    summary="Delete a chapter and re-rank its module",
)
async def delete_chapter(
    chapter_id: UUID,
    db: AsyncSession = Depends(get_db),
    context: ServiceContext = Depends(get_context),
) -> ReorderResponse:
    return await controller.delete_chapter(db, context, chapter_id)
