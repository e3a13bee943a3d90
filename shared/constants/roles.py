from enum import Enum


class Role(str, Enum):
    LEARNER = "learner"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


ADMIN_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})


class SubscriptionTier(str, Enum):
    FREE = "free"
    PREMIUM_800 = "premium_800"
    PREMIUM_2000 = "premium_2000"

    @property
    def is_premium(self) -> bool:
        return self is not SubscriptionTier.FREE
