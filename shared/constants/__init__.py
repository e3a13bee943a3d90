from shared.constants.roles import Role, SubscriptionTier

__all__ = ["Role", "SubscriptionTier"]
