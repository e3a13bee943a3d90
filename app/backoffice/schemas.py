"""Backoffice Pydantic V2 schemas.

Covers categories, modules, chapters and reorder operations.
Request models are kept separate from response models.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import Difficulty
from app.ordering import ReorderOutcome


# ---------------------------------------------------------------------------
# Category
# ---------------------------------------------------------------------------


class CreateCategoryRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category_id: UUID
    name: str


# ---------------------------------------------------------------------------
# Module request schemas
# ---------------------------------------------------------------------------


class CreateModuleRequest(BaseModel):
    """Request body for creating a module. It is appended to the end of the catalogue."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=300, description="Module title.")
    description: str | None = Field(default=None, description="Landing page body.")
    category_id: UUID | None = Field(default=None, description="Catalogue category.")
    picture_url: str | None = Field(default=None, max_length=500)
    notes: str | None = Field(default=None, description="Internal notes for authors.")
    difficulty: Difficulty = Field(default=Difficulty.BEGINNER)
    is_published: bool = Field(default=False)


class UpdateModuleRequest(BaseModel):
    """PATCH body for a module. Ordering is changed through the reorder endpoint only."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = Field(default=None)
    category_id: UUID | None = Field(default=None)
    picture_url: str | None = Field(default=None, max_length=500)
    notes: str | None = Field(default=None)
    difficulty: Difficulty | None = Field(default=None)


# ---------------------------------------------------------------------------
# Chapter request schemas
# ---------------------------------------------------------------------------


class CreateChapterRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=300, description="Chapter name.")
    estimated_time_minutes: int = Field(default=0, ge=0, description="Estimated study time.")


class ReorderRequest(BaseModel):
    """Drag-and-drop move: ``source_id`` is dropped onto ``target_id``."""

    source_id: UUID
    target_id: UUID


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ModuleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    module_id: UUID
    title: str
    description: str | None
    category_id: UUID | None
    picture_url: str | None
    notes: str | None
    difficulty: Difficulty
    is_published: bool
    order_index: int
    created_at: datetime


class ModuleSummary(ModuleResponse):
    category_name: str | None = None
    chapter_count: int = 0
    registration_count: int = 0


class ChapterResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    chapter_id: UUID
    module_id: UUID
    name: str
    order_index: int
    estimated_time_minutes: int
    created_at: datetime


class ModuleDetailResponse(BaseModel):
    module: ModuleSummary
    chapters: list[ChapterResponse]


class PublishResponse(BaseModel):
    module_id: UUID
    is_published: bool


class RankedItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    rank: int
    name: str | None = None


class ReorderResponse(BaseModel):
    outcome: ReorderOutcome = Field(
        description="applied: persisted; rolled_back: a write failed and the list was reloaded; noop.",
    )
    items: list[RankedItemResponse]
