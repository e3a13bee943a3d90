"""Learner-facing Pydantic V2 schemas: dashboard, catalogue, registration, progress."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.learner.progress import ProgressStatus
from app.models.enums import ContentType, Difficulty
from shared.constants import SubscriptionTier


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    first_name: str | None
    last_name: str | None
    day_streak: int
    subscription_type: SubscriptionTier
    last_login_date: date | None


class DashboardResponse(BaseModel):
    profile: ProfileResponse
    greeting: str = Field(description="morning, afternoon or evening for the learner's clock.")
    display_name: str | None = Field(
        default=None, description="First name, else last name; null when neither is set.",
    )
    courses_completed: int
    total_courses: int
    hours_learned: int
    progress_percentage: int = Field(ge=0, le=100)


class NextChapterResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    chapter_id: UUID
    name: str
    content_type: ContentType
    estimated_minutes: int


class CatalogueModuleResponse(BaseModel):
    module_id: UUID
    title: str
    description: str | None
    category_name: str | None
    picture_url: str | None
    difficulty: Difficulty
    order_index: int
    chapter_count: int
    registration_count: int
    enrolled: bool
    accessible: bool = Field(description="Premium learners see everything; free learners the first module.")
    progress: int = Field(ge=0, le=100)
    status: ProgressStatus
    next_chapter: NextChapterResponse | None = None


class RegistrationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    registration_id: UUID
    module_id: UUID
    created_at: datetime


class ChapterCompletionResponse(BaseModel):
    chapter_id: UUID
    module_id: UUID
    completed: bool
    completed_at: datetime | None
    module_progress: int = Field(ge=0, le=100)
