# =============================================================================
# core/models/subscription.py - Subscription & Tier Limit Schemas
# =============================================================================
# - TierLimits: what a tier allows (listings, media, gallery layouts)
# - UserSubscription: billing columns of a profile
# - TIER_PRICING / EARLY_ADOPTER_PRICING: prices in ZAR cents
# =============================================================================

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from lib.utils import parse_timestamp

from .profile import SubscriptionStatus, SubscriptionTier

# -1 means "no limit" for max_listings / max_videos
UNLIMITED = -1

# Prices in cents (ZAR)
TIER_PRICING: dict[SubscriptionTier, dict[str, int]] = {
    SubscriptionTier.FREE: {"monthly": 0, "quarterly": 0, "annual": 0},
    SubscriptionTier.PREMIUM: {
        "monthly": 4900,     # R49
        "quarterly": 13300,  # R133, 10% off
        "annual": 47000,     # R470, 20% off
    },
    SubscriptionTier.BUSINESS: {
        "monthly": 17900,     # R179
        "quarterly": 48400,   # R484, 10% off
        "annual": 172200,     # R1722, 20% off
    },
}

# First 500 users
EARLY_ADOPTER_PRICING: dict[SubscriptionTier, dict[str, int]] = {
    SubscriptionTier.PREMIUM: {"monthly": 2900},   # R29
    SubscriptionTier.BUSINESS: {"monthly": 9900},  # R99
}


class TierLimits(BaseModel):
    """
    Limits that apply to one account.

    Returned by the check_user_tier_limits RPC, or built from the default
    table when the RPC is unavailable.
    """

    tier: SubscriptionTier
    max_listings: int = Field(..., ge=UNLIMITED)
    max_images: int = Field(..., ge=0)
    max_videos: int = Field(..., ge=UNLIMITED)
    listing_duration_days: int = Field(..., ge=1)
    current_listings: int = Field(default=0, ge=0)
    can_create_listing: bool = True
    verified_badge: bool = False
    watermark_removed: bool = False
    gallery_types: list[str] = Field(default_factory=list)

    @property
    def has_unlimited_listings(self) -> bool:
        return self.max_listings == UNLIMITED


class UserSubscription(BaseModel):
    """Billing columns of a profile."""

    subscription_tier: SubscriptionTier = SubscriptionTier.FREE
    subscription_status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    subscription_start_date: datetime | None = None
    subscription_end_date: datetime | None = None
    trial_end_date: datetime | None = None
    verified_seller: bool = False
    early_adopter: bool = False

    @field_validator(
        "subscription_start_date",
        "subscription_end_date",
        "trial_end_date",
        mode="before",
    )
    @classmethod
    def _as_utc(cls, value):
        return parse_timestamp(value)

    @field_validator("verified_seller", "early_adopter", mode="before")
    @classmethod
    def _null_is_false(cls, value):
        return bool(value)
