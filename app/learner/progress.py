"""Pure progress aggregation — no I/O, no framework imports.

Turns per-chapter completion flags into module completion percentages,
"next chapter" hints and dashboard totals. Percentages are whole numbers
rounded half up.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from uuid import UUID

from app.models.enums import ContentType, Difficulty


class ProgressStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class CatalogueSort(str, enum.Enum):
    ORDER = "order"
    NAME = "name"
    DIFFICULTY = "difficulty"


@dataclass(frozen=True)
class ChapterState:
    chapter_id: UUID
    name: str
    rank: int
    estimated_minutes: int
    completed: bool
    content_type: ContentType | None = None


@dataclass(frozen=True)
class NextChapterHint:
    chapter_id: UUID
    name: str
    content_type: ContentType
    estimated_minutes: int


@dataclass(frozen=True)
class ModuleProgress:
    module_id: UUID
    completed_chapters: int
    total_chapters: int
    percent: int
    completed_minutes: int
    next_chapter: NextChapterHint | None

    @property
    def is_complete(self) -> bool:
        return self.total_chapters > 0 and self.completed_chapters == self.total_chapters

    @property
    def status(self) -> ProgressStatus:
        if self.is_complete:
            return ProgressStatus.COMPLETED
        if self.percent > 0:
            return ProgressStatus.IN_PROGRESS
        return ProgressStatus.NOT_STARTED


@dataclass(frozen=True)
class DashboardStats:
    courses_completed: int
    total_courses: int
    hours_learned: int
    progress_percentage: int


def round_half_up(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def percent(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return round_half_up(part / whole * 100)


def module_progress(module_id: UUID, chapters: Sequence[ChapterState]) -> ModuleProgress:
    """Completion of one module. The next chapter is the first incomplete one by rank."""
    ordered = sorted(chapters, key=lambda c: c.rank)
    done = [c for c in ordered if c.completed]
    upcoming = next((c for c in ordered if not c.completed), None)
    hint = None
    if upcoming is not None:
        hint = NextChapterHint(
            chapter_id=upcoming.chapter_id,
            name=upcoming.name,
            # Chapters without content default to a file download
            content_type=upcoming.content_type or ContentType.FILE,
            estimated_minutes=upcoming.estimated_minutes,
        )
    return ModuleProgress(
        module_id=module_id,
        completed_chapters=len(done),
        total_chapters=len(ordered),
        percent=percent(len(done), len(ordered)),
        completed_minutes=sum(c.estimated_minutes or 0 for c in done),
        next_chapter=hint,
    )


def dashboard_stats(registered: Iterable[ModuleProgress]) -> DashboardStats:
    """Totals over the modules a learner is registered in."""
    registered = list(registered)
    completed = sum(1 for p in registered if p.is_complete)
    minutes = sum(p.completed_minutes for p in registered)
    return DashboardStats(
        courses_completed=completed,
        total_courses=len(registered),
        hours_learned=round_half_up(minutes / 60),
        progress_percentage=percent(completed, len(registered)),
    )


def greeting_for(hour: int) -> str:
    if hour < 12:
        return "morning"
    if hour < 18:
        return "afternoon"
    return "evening"


def matches_search(term: str, *fields: str | None) -> bool:
    needle = term.strip().lower()
    return any(needle in f.lower() for f in fields if f)


def sort_key(sort: CatalogueSort, *, rank: int, title: str, difficulty: Difficulty):
    if sort is CatalogueSort.NAME:
        return (title.casefold(), rank)
    if sort is CatalogueSort.DIFFICULTY:
        return (difficulty.sort_key, rank)
    return (rank,)
