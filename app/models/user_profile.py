import uuid
from datetime import date, datetime, timezone

from sqlalchemy import Date, Integer, String
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from shared.constants import SubscriptionTier
from shared.database.postgres import Base

from .enums import subscription_tier_enum


class UserProfile(Base):
    __tablename__ = "users"

    # Same id as the auth provider's subject claim
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    day_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    subscription_type: Mapped[SubscriptionTier] = mapped_column(
        subscription_tier_enum, nullable=False, default=SubscriptionTier.FREE
    )
    last_login_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
