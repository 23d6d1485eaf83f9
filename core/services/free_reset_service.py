# =============================================================================
# core/services/free_reset_service.py - Free Account Reset
# =============================================================================
# Free accounts are wiped every 7 days. The cycle grid is anchored at the
# profile's created_at: boundaries fall on created_at + 7*k days, truncated
# to midnight UTC. A reset deletes the user's listings, zeroes the listing
# counter and stamps last_free_reset.
#
# Every operation takes the current instant as `now`. Callers that omit it
# get the wall clock read once at the outermost call.
#
# Usage:
#   from core.services.free_reset_service import FreeAccountResetService
#   result = FreeAccountResetService.batch_reset_accounts()
#   print(result.success, result.failed)
# =============================================================================

import logging
import math
from datetime import datetime, timedelta
from uuid import UUID

from pydantic import ValidationError

from core.models.profile import SubscriptionTier, UserProfile
from core.models.reset import BatchResetResult, ResetInfo
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import ensure_utc, normalize_uuid, parse_timestamp, utc_now

logger = logging.getLogger(__name__)

RESET_CYCLE_DAYS = 7
ONE_DAY = timedelta(days=1)


# =============================================================================
# Cycle Arithmetic
# =============================================================================

def _cycles_passed(registered_at: datetime, now: datetime) -> int:
    # timedelta // timedelta and int // int both floor toward -inf, so a
    # `now` before registration stays on the same grid
    days_since_registration = (now - registered_at) // ONE_DAY
    return days_since_registration // RESET_CYCLE_DAYS


def _boundary(registered_at: datetime, cycle: int) -> datetime:
    boundary = registered_at + timedelta(days=cycle * RESET_CYCLE_DAYS)
    return boundary.replace(hour=0, minute=0, second=0, microsecond=0)


def compute_next_reset_date(
    registered_at: datetime,
    now: datetime | None = None,
) -> datetime:
    """
    Start (00:00:00 UTC) of the next 7-day cycle after `now`.

    Boundaries sit on registered_at + 7*k days. The cycle count uses floor
    division throughout, so clock skew (now < registered_at) still lands on
    the grid instead of raising.

    Example:
        compute_next_reset_date(
            datetime(2024, 1, 1, tzinfo=timezone.utc),
            datetime(2024, 1, 7, 12, tzinfo=timezone.utc),
        )
        # datetime(2024, 1, 8, tzinfo=timezone.utc)
    """
    registered_at = ensure_utc(registered_at)
    now = ensure_utc(now) if now is not None else utc_now()
    return _boundary(registered_at, _cycles_passed(registered_at, now) + 1)


def pending_reset_boundary(
    registered_at: datetime,
    now: datetime,
    last_reset_at: datetime | None = None,
) -> datetime | None:
    """
    The reset boundary that is due at `now` and not yet processed.

    A boundary is due when the computed next boundary is at or before `now`
    (registrations later in the day than midnight) or when `now` is exactly
    a boundary. The registration day itself (k = 0) never counts. A
    boundary is processed once last_reset_at is at or after it.

    Returns:
        The due boundary, or None if nothing is due
    """
    registered_at = ensure_utc(registered_at)
    now = ensure_utc(now)

    cycle = _cycles_passed(registered_at, now) + 1
    next_boundary = _boundary(registered_at, cycle)

    if cycle >= 1 and next_boundary <= now:
        boundary = next_boundary
    elif cycle >= 2 and _boundary(registered_at, cycle - 1) == now:
        boundary = now
    else:
        return None

    if last_reset_at is not None and ensure_utc(last_reset_at) >= boundary:
        return None
    return boundary


def build_reset_info(profile: UserProfile, now: datetime) -> ResetInfo:
    """
    Compute the reset cycle position of a free profile at `now`.

    Pure: no store access. See FreeAccountResetService.get_reset_info for
    the tier and existence checks.
    """
    now = ensure_utc(now)
    pending = pending_reset_boundary(profile.created_at, now, profile.last_free_reset)

    if pending is not None:
        next_reset_date = pending
    else:
        next_reset_date = compute_next_reset_date(profile.created_at, now)
        if next_reset_date <= now:
            # Today's boundary was already processed
            next_reset_date += timedelta(days=RESET_CYCLE_DAYS)

    days_until_reset = max(0, math.ceil((next_reset_date - now) / ONE_DAY))

    return ResetInfo(
        user_id=profile.id,
        registration_date=profile.created_at,
        next_reset_date=next_reset_date,
        days_until_reset=days_until_reset,
        is_reset_day=days_until_reset <= 0,
        is_warning_day=days_until_reset == 1,
        last_reset_at=profile.last_free_reset,
    )


# =============================================================================
# Service
# =============================================================================

class FreeAccountResetService:
    """
    Weekly wipe of free-tier accounts.

    Store failures never escape: they are logged and turned into None,
    False or an empty list depending on the operation.
    """

    @staticmethod
    def get_reset_info(
        user_id: str | UUID,
        now: datetime | None = None,
    ) -> ResetInfo | None:
        """
        Get reset information for a free user.

        Args:
            user_id: The user's UUID
            now: Current instant (default: wall clock)

        Returns:
            ResetInfo, or None if the profile is missing, not on the free
            tier, or could not be loaded
        """
        now = ensure_utc(now) if now is not None else utc_now()
        user_id_str = normalize_uuid(user_id)

        try:
            row = SupabaseClient.fetch_profile(user_id_str)
        except SupabaseClientError as e:
            logger.error(f"Error getting free account reset info for {user_id_str}: {e}")
            return None

        if not row:
            return None

        # Paid tiers are exempt, even if they started out free
        if row.get("subscription_tier") != SubscriptionTier.FREE.value:
            return None

        try:
            profile = UserProfile.model_validate({**row, "id": row.get("id") or user_id_str})
        except ValidationError as e:
            logger.error(f"Malformed profile row for {user_id_str}: {e}")
            return None

        return build_reset_info(profile, now)

    @staticmethod
    def should_reset_account(
        user_id: str | UUID,
        now: datetime | None = None,
    ) -> bool:
        """Check if a free user needs to be reset at `now`."""
        info = FreeAccountResetService.get_reset_info(user_id, now)
        return info.is_reset_day if info else False

    @staticmethod
    def reset_account(
        user_id: str | UUID,
        now: datetime | None = None,
    ) -> bool:
        """
        Reset a free user's account: delete listings, keep the profile.

        Performs two writes in order: delete every post owned by the user,
        then stamp last_free_reset and zero current_listings. The writes are
        not atomic. If the profile update fails after the delete succeeded,
        the listings are gone but the counters are stale; this is logged
        and reported as a failure, nothing is rolled back.

        Args:
            user_id: The user's UUID
            now: Current instant (default: wall clock)

        Returns:
            True only if both writes succeeded
        """
        now = ensure_utc(now) if now is not None else utc_now()
        user_id_str = normalize_uuid(user_id)

        try:
            info = FreeAccountResetService.get_reset_info(user_id_str, now)
            if info is None or not info.is_reset_day:
                logger.info(f"User {user_id_str} does not need reset today")
                return False

            try:
                deleted = SupabaseClient.delete_posts_by_owner(user_id_str)
            except SupabaseClientError as e:
                logger.error(f"Error deleting posts for {user_id_str}: {e}")
                return False

            try:
                SupabaseClient.update_profile(
                    user_id_str,
                    {
                        "last_free_reset": now.isoformat(),
                        "current_listings": 0,
                    },
                )
            except SupabaseClientError as e:
                logger.error(
                    f"Partial reset for {user_id_str}: {deleted} posts deleted "
                    f"but profile update failed, counters are stale: {e}"
                )
                return False

            logger.info(
                f"Successfully reset free account for user {user_id_str} "
                f"({deleted} posts removed)"
            )
            return True

        except Exception as e:
            logger.exception(f"Error resetting free account {user_id_str}: {e}")
            return False

    @staticmethod
    def list_free_users_due_for_reset(
        now: datetime | None = None,
        page_size: int | None = None,
    ) -> list[str]:
        """
        Get all free users whose reset boundary is due at `now`.

        Scans free profiles page by page. Users whose due boundary has
        already been processed are skipped.

        Args:
            now: Current instant (default: wall clock)
            page_size: Profiles per page (default: settings.RESET_SCAN_PAGE_SIZE)

        Returns:
            List of user IDs; empty if the scan fails
        """
        now = ensure_utc(now) if now is not None else utc_now()
        users_to_reset: list[str] = []

        try:
            pages = SupabaseClient.iter_profiles_by_tier(
                SubscriptionTier.FREE.value,
                page_size=page_size,
            )
            for page in pages:
                for row in page:
                    try:
                        registered_at = parse_timestamp(row.get("created_at"))
                        last_reset_at = parse_timestamp(row.get("last_free_reset"))
                    except ValueError as e:
                        logger.warning(f"Skipping profile {row.get('id')} with bad timestamp: {e}")
                        continue

                    if registered_at is None:
                        logger.warning(f"Skipping profile {row.get('id')} without created_at")
                        continue

                    if pending_reset_boundary(registered_at, now, last_reset_at) is not None:
                        users_to_reset.append(row["id"])

        except SupabaseClientError as e:
            logger.error(f"Error fetching free users: {e}")
            return []

        return users_to_reset

    @staticmethod
    def batch_reset_accounts(now: datetime | None = None) -> BatchResetResult:
        """
        Reset every free account that is due, one at a time.

        A failure for one user never stops the batch and nothing is rolled
        back. The same `now` is used for the scan and every reset.

        Returns:
            BatchResetResult with success/failed counts
        """
        now = ensure_utc(now) if now is not None else utc_now()
        users_to_reset = FreeAccountResetService.list_free_users_due_for_reset(now)
        result = BatchResetResult()

        logger.info(f"Starting batch reset for {len(users_to_reset)} free accounts")

        for user_id in users_to_reset:
            if FreeAccountResetService.reset_account(user_id, now):
                result.success += 1
            else:
                result.failed += 1

        logger.info(f"Batch reset completed: {result.success} successful, {result.failed} failed")
        return result
