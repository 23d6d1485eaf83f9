# =============================================================================
# core/services/subscription_service.py - Subscription Tiers & Limits
# =============================================================================
# Tier limit lookups, listing/media permission checks, trial arithmetic and
# the premium upgrade write.
# =============================================================================

import logging
import math
from datetime import datetime, timedelta
from uuid import UUID

from pydantic import ValidationError

from core.models.profile import SubscriptionStatus, SubscriptionTier
from core.models.subscription import UNLIMITED, TierLimits, UserSubscription
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import ensure_utc, normalize_uuid, utc_now

logger = logging.getLogger(__name__)

PREMIUM_PERIOD_DAYS = 30

SUBSCRIPTION_COLUMNS = (
    "subscription_tier, subscription_status, subscription_start_date, "
    "subscription_end_date, trial_end_date, verified_seller, early_adopter"
)

BASE_GALLERY_TYPES = ["hover", "horizontal", "vertical", "gallery"]

TIER_DISPLAY_NAMES = {
    SubscriptionTier.FREE: "Free",
    SubscriptionTier.PREMIUM: "Premium",
    SubscriptionTier.BUSINESS: "Business",
}


def _coerce_tier(tier: str | SubscriptionTier | None) -> SubscriptionTier:
    try:
        return SubscriptionTier(tier)
    except ValueError:
        return SubscriptionTier.FREE


def get_default_tier_limits(tier: str | SubscriptionTier | None) -> TierLimits:
    """
    Default limits for a tier. Unknown tiers get the free limits.

    Example:
        get_default_tier_limits("premium").max_images  # 8
    """
    tier = _coerce_tier(tier)

    if tier == SubscriptionTier.PREMIUM:
        return TierLimits(
            tier=tier,
            max_listings=UNLIMITED,
            max_images=8,
            max_videos=1,
            listing_duration_days=35,
            verified_badge=True,
            watermark_removed=True,
            gallery_types=BASE_GALLERY_TYPES + ["before_after", "video"],
        )

    if tier == SubscriptionTier.BUSINESS:
        return TierLimits(
            tier=tier,
            max_listings=UNLIMITED,
            max_images=20,
            max_videos=5,
            listing_duration_days=60,
            verified_badge=True,
            watermark_removed=True,
            gallery_types=BASE_GALLERY_TYPES + ["before_after", "video", "premium"],
        )

    return TierLimits(
        tier=SubscriptionTier.FREE,
        max_listings=3,
        max_images=5,
        max_videos=0,
        listing_duration_days=7,
        gallery_types=list(BASE_GALLERY_TYPES),
    )


def format_price(cents: int) -> str:
    """Format a ZAR cent amount as whole rand, e.g. 4900 -> "R49"."""
    return f"R{math.floor(cents / 100 + 0.5)}"


def get_tier_display_name(tier: str | SubscriptionTier | None) -> str:
    return TIER_DISPLAY_NAMES[_coerce_tier(tier)]


def trial_expired(subscription: UserSubscription | None, now: datetime) -> bool:
    if subscription is None or subscription.trial_end_date is None:
        return False
    return subscription.trial_end_date < ensure_utc(now)


def trial_days_remaining(subscription: UserSubscription | None, now: datetime) -> int:
    if subscription is None or subscription.trial_end_date is None:
        return 0
    remaining = (subscription.trial_end_date - ensure_utc(now)) / timedelta(days=1)
    return max(0, math.ceil(remaining))


class SubscriptionService:
    """
    Per-user subscription lookups.

    Read failures fall back to the most restrictive sensible answer.
    """

    @staticmethod
    def get_user_subscription(user_id: str | UUID) -> UserSubscription | None:
        """
        Get a user's subscription columns.

        Returns:
            UserSubscription, or None if the profile is missing or could
            not be loaded
        """
        user_id_str = normalize_uuid(user_id)

        try:
            row = SupabaseClient.fetch_profile(user_id_str, columns=SUBSCRIPTION_COLUMNS)
        except SupabaseClientError as e:
            logger.error(f"Error fetching user subscription for {user_id_str}: {e}")
            return None

        if not row:
            return None

        try:
            return UserSubscription.model_validate(row)
        except ValidationError as e:
            logger.error(f"Malformed subscription row for {user_id_str}: {e}")
            return None

    @staticmethod
    def get_user_tier_limits(user_id: str | UUID) -> TierLimits:
        """
        Get tier limits for a user.

        Asks the database (check_user_tier_limits), which also knows the
        live listing count. If that fails, falls back to the defaults for
        the profile's tier, and to the free defaults if even the profile
        can't be read.
        """
        user_id_str = normalize_uuid(user_id)

        try:
            data = SupabaseClient.check_user_tier_limits(user_id_str)
            return TierLimits.model_validate(data)
        except (SupabaseClientError, ValidationError) as e:
            logger.error(f"Error fetching tier limits for {user_id_str}, using defaults: {e}")

        try:
            row = SupabaseClient.fetch_profile(user_id_str, columns="subscription_tier")
        except SupabaseClientError as e:
            logger.error(f"Error fetching tier for {user_id_str}, assuming free: {e}")
            return get_default_tier_limits(SubscriptionTier.FREE)

        tier = row.get("subscription_tier") if row else None
        return get_default_tier_limits(tier)

    @staticmethod
    def can_create_listing(user_id: str | UUID) -> bool:
        return SubscriptionService.get_user_tier_limits(user_id).can_create_listing

    @staticmethod
    def can_upload_images(user_id: str | UUID, image_count: int) -> bool:
        limits = SubscriptionService.get_user_tier_limits(user_id)
        return image_count <= limits.max_images

    @staticmethod
    def can_upload_videos(user_id: str | UUID, video_count: int) -> bool:
        limits = SubscriptionService.get_user_tier_limits(user_id)
        return limits.max_videos == UNLIMITED or video_count <= limits.max_videos

    @staticmethod
    def has_gallery_access(user_id: str | UUID, gallery_type: str) -> bool:
        limits = SubscriptionService.get_user_tier_limits(user_id)
        return gallery_type in limits.gallery_types

    @staticmethod
    def upgrade_to_premium(
        user_id: str | UUID,
        is_early_adopter: bool = False,
        now: datetime | None = None,
    ) -> bool:
        """
        Move a user onto an active 30-day premium subscription.

        Called once a payment has been confirmed.

        Returns:
            True if the profile update succeeded
        """
        now = ensure_utc(now) if now is not None else utc_now()
        user_id_str = normalize_uuid(user_id)

        try:
            SupabaseClient.update_profile(
                user_id_str,
                {
                    "subscription_tier": SubscriptionTier.PREMIUM.value,
                    "subscription_status": SubscriptionStatus.ACTIVE.value,
                    "subscription_start_date": now.isoformat(),
                    "subscription_end_date": (now + timedelta(days=PREMIUM_PERIOD_DAYS)).isoformat(),
                    "verified_seller": True,
                    "early_adopter": is_early_adopter,
                },
            )
        except SupabaseClientError as e:
            logger.error(f"Error upgrading {user_id_str} to premium: {e}")
            return False

        logger.info(f"Upgraded user {user_id_str} to premium (early adopter: {is_early_adopter})")
        return True

    @staticmethod
    def is_trial_expired(
        user_id: str | UUID,
        now: datetime | None = None,
    ) -> bool:
        now = ensure_utc(now) if now is not None else utc_now()
        return trial_expired(SubscriptionService.get_user_subscription(user_id), now)

    @staticmethod
    def get_trial_days_remaining(
        user_id: str | UUID,
        now: datetime | None = None,
    ) -> int:
        """Whole days left in the trial, rounded up. 0 without a trial."""
        now = ensure_utc(now) if now is not None else utc_now()
        return trial_days_remaining(SubscriptionService.get_user_subscription(user_id), now)
