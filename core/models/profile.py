# =============================================================================
# core/models/profile.py - User Profile Schemas
# =============================================================================
# These models describe rows of the `profiles` table as the backend sees them:
# - SubscriptionTier: free / premium / business
# - SubscriptionStatus: lifecycle of a paid (or trial) subscription
# - UserProfile: the subset of profile columns the services read and write
#
# The profile row is created by the signup flow, outside this service.
# =============================================================================

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from lib.utils import parse_timestamp


class SubscriptionTier(str, Enum):
    """
    Subscription tiers offered on the marketplace.

    Only FREE accounts take part in the weekly reset.
    """
    FREE = "free"
    PREMIUM = "premium"
    BUSINESS = "business"


class SubscriptionStatus(str, Enum):
    """Billing state of a subscription."""
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    TRIAL = "trial"


class UserProfile(BaseModel):
    """
    Profile columns relevant to tier limits and the free account reset.

    Example:
        {
            "id": "550e8400-e29b-41d4-a716-446655440000",
            "subscription_tier": "free",
            "created_at": "2024-01-01T00:00:00Z",
            "last_free_reset": null,
            "current_listings": 2
        }
    """

    id: str = Field(
        ...,
        description="Owning user ID"
    )

    subscription_tier: SubscriptionTier = Field(
        default=SubscriptionTier.FREE,
        description="Current subscription tier"
    )

    # Anchors the 7-day reset grid; never changes after signup
    created_at: datetime = Field(
        ...,
        description="When the account was registered"
    )

    last_free_reset: datetime | None = Field(
        default=None,
        description="When the account was last wiped by the free reset"
    )

    current_listings: int = Field(
        default=0,
        ge=0,
        description="Number of live listings counted against the tier limit"
    )

    @field_validator("created_at", "last_free_reset", mode="before")
    @classmethod
    def _as_utc(cls, value):
        return parse_timestamp(value)

    @property
    def is_free(self) -> bool:
        return self.subscription_tier == SubscriptionTier.FREE
