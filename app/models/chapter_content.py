import uuid

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database.postgres import Base

from .enums import ContentType


class ChapterContent(Base):
    __tablename__ = "chapter_contents"

    content_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    chapter_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("chapters.chapter_id", ondelete="CASCADE"),
        nullable=False,
    )
    video_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    file_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    # Soft reference, quizzes are authored elsewhere
    quiz_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)

    chapter = relationship("Chapter", back_populates="contents", lazy="select")

    __table_args__ = (
        Index("ix_chapter_contents_chapter_id", "chapter_id"),
    )

    @property
    def content_type(self) -> ContentType:
        if self.video_url:
            return ContentType.VIDEO
        if self.file_url:
            return ContentType.FILE
        return ContentType.QUIZ
