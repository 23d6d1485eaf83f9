# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - profile.py: UserProfile and the tier/status enums
# - reset.py: Free account reset schemas (ResetInfo, BatchResetResult)
# - subscription.py: Tier limits, subscription columns and pricing tables
# =============================================================================

from .profile import (
    SubscriptionStatus,
    SubscriptionTier,
    UserProfile,
)

from .reset import (
    BatchResetResult,
    ResetInfo,
)

from .subscription import (
    EARLY_ADOPTER_PRICING,
    TIER_PRICING,
    UNLIMITED,
    TierLimits,
    UserSubscription,
)

__all__ = [
    # Profile
    "SubscriptionStatus",
    "SubscriptionTier",
    "UserProfile",
    # Reset
    "BatchResetResult",
    "ResetInfo",
    # Subscription
    "EARLY_ADOPTER_PRICING",
    "TIER_PRICING",
    "UNLIMITED",
    "TierLimits",
    "UserSubscription",
]
