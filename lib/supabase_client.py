# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern to reuse a single client connection
# and provides specialized methods for:
# - Profile lookups (single profile, paged scan of free-tier profiles)
# - Listing (post) bulk deletes
# - Profile updates after a free account reset
# - The check_user_tier_limits RPC
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   profile = SupabaseClient.fetch_profile(user_id)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Iterator
from uuid import UUID

from supabase import create_client, Client

from app.config import settings
from lib.utils import normalize_uuid

logger = logging.getLogger(__name__)

PROFILES_TABLE = "profiles"
POSTS_TABLE = "posts"

# PostgREST code for "no rows" on .single()
NO_ROWS_CODE = "PGRST116"


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Carries a machine-readable code plus an optional suggestion on how to
    fix the underlying problem.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    One client instance is shared across the application. All methods are
    class methods for easy access without instantiation.

    Example:
        profile = SupabaseClient.fetch_profile("550e8400-...")
        if profile and profile["subscription_tier"] == "free":
            SupabaseClient.delete_posts_by_owner(profile["id"])
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        The reset job touches every free account, so it has to.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    # -------------------------------------------------------------------------
    # Profile Reads
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_profile(
        cls,
        user_id: str | UUID,
        columns: str = "id, subscription_tier, created_at, last_free_reset",
    ) -> dict[str, Any] | None:
        """
        Fetch one profile by user ID.

        Args:
            user_id: The owning user's UUID
            columns: PostgREST select list

        Returns:
            Profile dict, or None if no profile exists

        Raises:
            SupabaseClientError: If the query fails
        """
        client = cls.get_client()
        user_id_str = normalize_uuid(user_id)

        try:
            response = (
                client.table(PROFILES_TABLE)
                .select(columns)
                .eq("id", user_id_str)
                .single()
                .execute()
            )

            return response.data

        except Exception as e:
            if NO_ROWS_CODE in str(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch profile: {e}",
                code="FETCH_PROFILE_FAILED",
                suggestion="Check that the profiles table is reachable with the service key",
                details={"user_id": user_id_str}
            )

    @classmethod
    def iter_profiles_by_tier(
        cls,
        tier: str,
        page_size: int | None = None,
        columns: str = "id, created_at, subscription_tier, last_free_reset",
    ) -> Iterator[list[dict[str, Any]]]:
        """
        Yield pages of profiles on a given subscription tier.

        Pages are ordered by id and fetched with PostgREST ranges, so only
        one page is held in memory at a time. Iteration stops at the first
        short page.

        Args:
            tier: Subscription tier to filter on (e.g. "free")
            page_size: Rows per page (default: settings.RESET_SCAN_PAGE_SIZE)
            columns: PostgREST select list

        Yields:
            Lists of profile dicts

        Raises:
            SupabaseClientError: If any page fails to load
        """
        client = cls.get_client()
        size = page_size or settings.RESET_SCAN_PAGE_SIZE
        offset = 0

        while True:
            try:
                response = (
                    client.table(PROFILES_TABLE)
                    .select(columns)
                    .eq("subscription_tier", tier)
                    .order("id")
                    .range(offset, offset + size - 1)
                    .execute()
                )
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to scan {tier} profiles: {e}",
                    code="SCAN_PROFILES_FAILED",
                    details={"tier": tier, "offset": offset, "page_size": size}
                )

            rows = response.data or []
            logger.debug(f"Fetched {len(rows)} {tier} profiles at offset {offset}")

            if rows:
                yield rows
            if len(rows) < size:
                return
            offset += size

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    @classmethod
    def delete_posts_by_owner(cls, user_id: str | UUID) -> int:
        """
        Hard-delete every listing owned by a user.

        Args:
            user_id: The owning user's UUID

        Returns:
            Number of deleted rows reported by PostgREST

        Raises:
            SupabaseClientError: If the delete fails
        """
        client = cls.get_client()
        user_id_str = normalize_uuid(user_id)

        try:
            response = (
                client.table(POSTS_TABLE)
                .delete()
                .eq("user_id", user_id_str)
                .execute()
            )
            deleted = len(response.data or [])
            logger.debug(f"Deleted {deleted} posts for user {user_id_str}")
            return deleted

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to delete posts: {e}",
                code="DELETE_POSTS_FAILED",
                details={"user_id": user_id_str}
            )

    @classmethod
    def update_profile(
        cls,
        user_id: str | UUID,
        values: dict[str, Any],
    ) -> dict[str, Any] | None:
        """
        Update columns on one profile.

        Args:
            user_id: The owning user's UUID
            values: Column -> value mapping (JSON-serializable)

        Returns:
            The updated row, or None if PostgREST returned nothing

        Raises:
            SupabaseClientError: If the update fails
        """
        client = cls.get_client()
        user_id_str = normalize_uuid(user_id)

        try:
            response = (
                client.table(PROFILES_TABLE)
                .update(values)
                .eq("id", user_id_str)
                .execute()
            )
            if response.data:
                return response.data[0]
            return None

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update profile: {e}",
                code="UPDATE_PROFILE_FAILED",
                details={"user_id": user_id_str, "columns": sorted(values)}
            )

    # -------------------------------------------------------------------------
    # RPC
    # -------------------------------------------------------------------------

    @classmethod
    def check_user_tier_limits(cls, user_id: str | UUID) -> dict[str, Any]:
        """
        Call the check_user_tier_limits database function.

        Returns:
            Tier limits dict as computed by the database (includes the live
            current_listings count)

        Raises:
            SupabaseClientError: If the RPC fails or returns nothing
        """
        client = cls.get_client()
        user_id_str = normalize_uuid(user_id)

        try:
            response = client.rpc(
                "check_user_tier_limits",
                {"user_id": user_id_str},
            ).execute()
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to check tier limits: {e}",
                code="TIER_LIMITS_RPC_FAILED",
                suggestion="Check that the check_user_tier_limits function is deployed",
                details={"user_id": user_id_str}
            )

        if not response.data:
            raise SupabaseClientError(
                message="check_user_tier_limits returned no data",
                code="TIER_LIMITS_RPC_EMPTY",
                details={"user_id": user_id_str}
            )
        return response.data
