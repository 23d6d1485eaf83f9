# =============================================================================
# app/routers/account.py - Account Endpoints
# =============================================================================
# Read-only views of the caller's own account: free reset countdown, tier
# limits and subscription status. All endpoints require authentication.
# =============================================================================

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.auth import AuthUser, get_current_user
from app.exceptions import ProfileNotFoundError
from core.models.reset import ResetInfo
from core.models.subscription import TierLimits, UserSubscription
from core.services.free_reset_service import FreeAccountResetService
from core.services.subscription_service import (
    SubscriptionService,
    get_tier_display_name,
    trial_days_remaining,
    trial_expired,
)
from lib.utils import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Response Models
# =============================================================================

class ResetInfoResponse(BaseModel):
    """Reset countdown; null for paid tiers."""
    reset_info: ResetInfo | None = Field(
        default=None,
        description="Cycle position, or null if the account is not on the free tier"
    )


class SubscriptionResponse(BaseModel):
    """Subscription columns plus derived trial info."""
    subscription: UserSubscription
    tier_display_name: str
    trial_days_remaining: int = Field(..., ge=0)
    trial_expired: bool


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/reset-info", response_model=ResetInfoResponse)
def get_reset_info(user: AuthUser = Depends(get_current_user)):
    """
    Where the caller's free account sits in its 7-day reset cycle.

    The dashboard shows a warning banner when `is_warning_day` is true.
    """
    return ResetInfoResponse(
        reset_info=FreeAccountResetService.get_reset_info(user.id),
    )


@router.get("/limits", response_model=TierLimits)
def get_limits(user: AuthUser = Depends(get_current_user)):
    """Listing, media and gallery limits for the caller's tier."""
    return SubscriptionService.get_user_tier_limits(user.id)


@router.get("/subscription", response_model=SubscriptionResponse)
def get_subscription(user: AuthUser = Depends(get_current_user)):
    """
    The caller's subscription.

    Raises:
        ProfileNotFoundError: No profile row for this user (404)
    """
    subscription = SubscriptionService.get_user_subscription(user.id)
    if subscription is None:
        raise ProfileNotFoundError(str(user.id))

    now = utc_now()
    return SubscriptionResponse(
        subscription=subscription,
        tier_display_name=get_tier_display_name(subscription.subscription_tier),
        trial_days_remaining=trial_days_remaining(subscription, now),
        trial_expired=trial_expired(subscription, now),
    )
