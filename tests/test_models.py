# =============================================================================
# tests/test_models.py - Pydantic Model Tests
# =============================================================================
# Unit tests for the core models:
# - Valid rows are accepted and timestamps normalized to UTC
# - Invalid data raises ValidationError
# - Defaults work as expected
#
# Run with: pytest tests/test_models.py -v
# =============================================================================

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from core.models import (
    BatchResetResult,
    ResetInfo,
    SubscriptionTier,
    TierLimits,
    UserProfile,
)
from lib.utils import parse_timestamp


class TestUserProfile:
    """Tests for UserProfile model."""

    def test_parses_supabase_row(self):
        profile = UserProfile.model_validate({
            "id": "user-1",
            "subscription_tier": "free",
            "created_at": "2024-01-01T10:15:00.123456+00:00",
            "last_free_reset": "2024-01-08T00:00:00Z",
        })

        assert profile.is_free
        assert profile.created_at == datetime(2024, 1, 1, 10, 15, 0, 123456, tzinfo=timezone.utc)
        assert profile.last_free_reset == datetime(2024, 1, 8, tzinfo=timezone.utc)
        assert profile.current_listings == 0

    def test_offsets_are_converted_to_utc(self):
        profile = UserProfile(
            id="user-1",
            created_at="2024-01-01T01:00:00+02:00",
        )

        assert profile.created_at.utcoffset() == timedelta(0)
        assert profile.created_at.hour == 23

    def test_unknown_tier_rejected(self):
        with pytest.raises(ValidationError):
            UserProfile(id="user-1", subscription_tier="gold", created_at="2024-01-01T00:00:00Z")

    def test_created_at_required(self):
        with pytest.raises(ValidationError):
            UserProfile(id="user-1", subscription_tier="free")

    def test_negative_listing_count_rejected(self):
        with pytest.raises(ValidationError):
            UserProfile(id="user-1", created_at="2024-01-01T00:00:00Z", current_listings=-1)


class TestResetInfo:
    """Tests for ResetInfo model."""

    def test_negative_countdown_rejected(self):
        with pytest.raises(ValidationError):
            ResetInfo(
                user_id="user-1",
                registration_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
                next_reset_date=datetime(2024, 1, 8, tzinfo=timezone.utc),
                days_until_reset=-1,
                is_reset_day=True,
                is_warning_day=False,
            )

    def test_serializes_to_json(self):
        info = ResetInfo(
            user_id="user-1",
            registration_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
            next_reset_date=datetime(2024, 1, 8, tzinfo=timezone.utc),
            days_until_reset=1,
            is_reset_day=False,
            is_warning_day=True,
        )

        data = info.model_dump(mode="json")

        assert data["next_reset_date"].startswith("2024-01-08T00:00:00")
        assert data["last_reset_at"] is None


class TestBatchResetResult:
    """Tests for BatchResetResult model."""

    def test_defaults(self):
        result = BatchResetResult()
        assert result.success == 0
        assert result.failed == 0
        assert result.attempted == 0

    def test_dump(self):
        assert BatchResetResult(success=2, failed=1).model_dump() == {"success": 2, "failed": 1}


class TestTierLimits:
    """Tests for TierLimits model."""

    def test_rpc_payload(self):
        limits = TierLimits.model_validate({
            "tier": "business",
            "max_listings": -1,
            "max_images": 20,
            "max_videos": 5,
            "listing_duration_days": 60,
            "current_listings": 12,
            "can_create_listing": True,
            "verified_badge": True,
            "watermark_removed": True,
            "gallery_types": ["hover"],
        })

        assert limits.tier == SubscriptionTier.BUSINESS
        assert limits.has_unlimited_listings

    def test_below_unlimited_rejected(self):
        with pytest.raises(ValidationError):
            TierLimits(tier="free", max_listings=-2, max_images=5, max_videos=0, listing_duration_days=7)


class TestParseTimestamp:
    """Tests for the Supabase timestamp parser."""

    def test_none(self):
        assert parse_timestamp(None) is None

    def test_z_suffix(self):
        assert parse_timestamp("2024-01-01T00:00:00Z") == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_naive_string_is_utc(self):
        assert parse_timestamp("2024-01-01T06:00:00").tzinfo == timezone.utc

    def test_datetime_passthrough(self):
        value = datetime(2024, 1, 1, 6, tzinfo=timezone.utc)
        assert parse_timestamp(value) == value

    def test_garbage_raises(self):
        with pytest.raises(ValueError):
            parse_timestamp("next tuesday")
