import uuid
from datetime import datetime, timezone

from sqlalchemy import ForeignKey, Index, Integer, SmallInteger, String
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database.postgres import Base


class Chapter(Base):
    __tablename__ = "chapters"

    chapter_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    module_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("modules.module_id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    # 1-based rank within the module
    order_index: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    estimated_time_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    module = relationship("LearningModule", back_populates="chapters", lazy="select")
    contents = relationship(
        "ChapterContent", back_populates="chapter", lazy="noload", passive_deletes=True
    )

    __table_args__ = (
        Index("ix_chapters_module_id_order", "module_id", "order_index"),
    )
