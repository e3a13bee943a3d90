import enum

from sqlalchemy.dialects.postgresql import ENUM as PgEnum

from shared.constants import SubscriptionTier


class Difficulty(str, enum.Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"

    @property
    def sort_key(self) -> int:
        return _DIFFICULTY_ORDER[self]


_DIFFICULTY_ORDER = {
    Difficulty.BEGINNER: 1,
    Difficulty.INTERMEDIATE: 2,
    Difficulty.ADVANCED: 3,
}


class ContentType(str, enum.Enum):
    VIDEO = "video"
    FILE = "file"
    QUIZ = "quiz"


# SQLAlchemy PgEnum instances (reuse across models to avoid duplicate type creation)
difficulty_enum = PgEnum(
    Difficulty,
    name="module_difficulty",
    create_type=True,
    values_callable=lambda e: [m.value for m in e],
)
subscription_tier_enum = PgEnum(
    SubscriptionTier,
    name="subscription_tier",
    create_type=True,
    values_callable=lambda e: [m.value for m in e],
)
