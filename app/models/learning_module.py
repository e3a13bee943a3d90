import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, ForeignKey, Index, SmallInteger, String, Text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database.postgres import Base

from .enums import Difficulty, difficulty_enum


class LearningModule(Base):
    __tablename__ = "modules"

    module_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("categories.category_id", ondelete="SET NULL"),
        nullable=True,
    )
    picture_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    difficulty: Mapped[Difficulty] = mapped_column(
        difficulty_enum, nullable=False, default=Difficulty.BEGINNER
    )
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # 1-based rank in the catalogue
    order_index: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    category = relationship("Category", back_populates="modules", lazy="selectin")
    chapters = relationship(
        "Chapter", back_populates="module", lazy="noload", passive_deletes=True
    )
    registrations = relationship(
        "ModuleRegistration", back_populates="module", lazy="noload", passive_deletes=True
    )

    __table_args__ = (
        Index("ix_modules_order_index", "order_index"),
        Index("ix_modules_is_published", "is_published"),
    )
