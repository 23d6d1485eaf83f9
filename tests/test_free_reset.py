# =============================================================================
# tests/test_free_reset.py - Free Account Reset Tests
# =============================================================================
# This module contains tests for:
# - Cycle boundary arithmetic (compute_next_reset_date, pending_reset_boundary)
# - ResetInfo derivation (countdown, reset day, warning day)
# - The service operations with mocked Supabase
#
# Tests use mocked Supabase responses to avoid database calls.
# =============================================================================

from datetime import datetime, timedelta, timezone
from unittest.mock import patch
from uuid import UUID

import pytest

from core.models.profile import UserProfile
from core.models.reset import BatchResetResult
from core.services.free_reset_service import (
    FreeAccountResetService,
    build_reset_info,
    compute_next_reset_date,
    pending_reset_boundary,
)
from lib.supabase_client import SupabaseClientError


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


REGISTERED = _utc(2024, 1, 1)


def _profile(created_at=REGISTERED, last_free_reset=None, user_id="user-1") -> UserProfile:
    return UserProfile(
        id=user_id,
        subscription_tier="free",
        created_at=created_at,
        last_free_reset=last_free_reset,
    )


# =============================================================================
# compute_next_reset_date Tests
# =============================================================================

class TestComputeNextResetDate:
    """Test the 7-day boundary formula."""

    def test_first_cycle_next_boundary(self):
        """Six and a half days in, the next boundary is day 7."""
        assert compute_next_reset_date(REGISTERED, _utc(2024, 1, 7, 12)) == _utc(2024, 1, 8)

    def test_just_after_boundary_moves_to_next_cycle(self):
        """One second past day 7 the next boundary is day 14."""
        assert compute_next_reset_date(REGISTERED, _utc(2024, 1, 8, 0, 0, 1)) == _utc(2024, 1, 15)

    def test_exact_boundary_moves_to_next_cycle(self):
        """At the boundary instant the formula already points at the next one."""
        assert compute_next_reset_date(REGISTERED, _utc(2024, 1, 8)) == _utc(2024, 1, 15)

    def test_boundaries_strictly_after_now_on_grid(self):
        """For midnight registrations the boundary is always after now and on the grid."""
        now = REGISTERED
        while now < _utc(2024, 3, 1):
            boundary = compute_next_reset_date(REGISTERED, now)

            assert boundary > now
            offset = boundary - REGISTERED
            assert offset % timedelta(days=7) == timedelta(0)
            assert offset // timedelta(days=7) >= 1

            now += timedelta(hours=5, minutes=17)

    def test_truncates_to_midnight_utc(self):
        """A mid-afternoon registration resets at midnight on day 7."""
        registered = _utc(2024, 1, 1, 15, 30)
        assert compute_next_reset_date(registered, _utc(2024, 1, 5)) == _utc(2024, 1, 8)

    def test_non_utc_registration_is_converted_first(self):
        """01:00 SAST on Jan 1 is 23:00 UTC on Dec 31, so the boundary is Jan 7."""
        sast = timezone(timedelta(hours=2))
        registered = datetime(2024, 1, 1, 1, 0, tzinfo=sast)

        assert compute_next_reset_date(registered, _utc(2024, 1, 5)) == _utc(2024, 1, 7)

    def test_naive_datetimes_are_treated_as_utc(self):
        """Naive timestamps (Postgres `timestamp`) are read as UTC."""
        assert compute_next_reset_date(
            datetime(2024, 1, 1), datetime(2024, 1, 7, 12)
        ) == _utc(2024, 1, 8)

    def test_clock_skew_one_day_before_registration(self):
        """now before registration doesn't raise and lands on the registration day."""
        registered = _utc(2024, 1, 10)
        boundary = compute_next_reset_date(registered, _utc(2024, 1, 9))

        assert boundary == _utc(2024, 1, 10)
        assert boundary > _utc(2024, 1, 9)

    def test_clock_skew_uses_floor_division(self):
        """Eight days early floors to -2 cycles, not -1 (truncation would give Jan 10)."""
        registered = _utc(2024, 1, 10)
        now = _utc(2024, 1, 2)
        boundary = compute_next_reset_date(registered, now)

        assert boundary == _utc(2024, 1, 3)
        assert boundary > now

    def test_defaults_to_wall_clock(self):
        """Without `now`, the boundary is in the future relative to the wall clock."""
        boundary = compute_next_reset_date(REGISTERED)
        assert boundary > datetime.now(timezone.utc)


# =============================================================================
# pending_reset_boundary Tests
# =============================================================================

class TestPendingResetBoundary:
    """Test which boundary, if any, is due."""

    def test_exact_boundary_instant_is_due(self):
        assert pending_reset_boundary(REGISTERED, _utc(2024, 1, 8)) == _utc(2024, 1, 8)

    def test_one_second_after_boundary_is_not_due(self):
        assert pending_reset_boundary(REGISTERED, _utc(2024, 1, 8, 0, 0, 1)) is None

    def test_mid_cycle_is_not_due(self):
        assert pending_reset_boundary(REGISTERED, _utc(2024, 1, 4)) is None

    def test_later_registration_time_is_due_until_that_time(self):
        """Registered at 15:00: due from midnight until 15:00 on day 7."""
        registered = _utc(2024, 1, 1, 15)

        assert pending_reset_boundary(registered, _utc(2024, 1, 8, 6)) == _utc(2024, 1, 8)
        assert pending_reset_boundary(registered, _utc(2024, 1, 8, 14, 59)) == _utc(2024, 1, 8)
        assert pending_reset_boundary(registered, _utc(2024, 1, 8, 15)) is None

    def test_processed_boundary_is_not_due(self):
        registered = _utc(2024, 1, 1, 15)
        assert pending_reset_boundary(
            registered, _utc(2024, 1, 8, 10), last_reset_at=_utc(2024, 1, 8, 6)
        ) is None

    def test_reset_from_previous_cycle_does_not_block(self):
        registered = _utc(2024, 1, 1, 15)
        assert pending_reset_boundary(
            registered, _utc(2024, 1, 15, 10), last_reset_at=_utc(2024, 1, 8, 6)
        ) == _utc(2024, 1, 15)

    def test_registration_day_is_never_a_reset(self):
        """now earlier on the registration day (k = 0) is not due."""
        registered = _utc(2024, 1, 10, 15)
        assert pending_reset_boundary(registered, _utc(2024, 1, 10, 10)) is None
        assert pending_reset_boundary(registered, _utc(2024, 1, 10, 0)) is None


# =============================================================================
# build_reset_info Tests
# =============================================================================

class TestBuildResetInfo:
    """Test ResetInfo derivation without the store."""

    def test_warning_day_before_first_reset(self):
        """Registered Jan 1, at Jan 7 12:00 one day remains."""
        info = build_reset_info(_profile(), _utc(2024, 1, 7, 12))

        assert info.next_reset_date == _utc(2024, 1, 8)
        assert info.days_until_reset == 1
        assert info.is_warning_day is True
        assert info.is_reset_day is False

    def test_just_after_boundary(self):
        """At Jan 8 00:00:01 the next reset is Jan 15 and today isn't a reset day."""
        info = build_reset_info(_profile(), _utc(2024, 1, 8, 0, 0, 1))

        assert info.next_reset_date == _utc(2024, 1, 15)
        assert info.days_until_reset == 7
        assert info.is_reset_day is False
        assert info.is_warning_day is False

    def test_exact_boundary_is_reset_day(self):
        now = _utc(2024, 1, 8)
        info = build_reset_info(_profile(), now)

        assert info.is_reset_day is True
        assert info.is_warning_day is False
        assert info.days_until_reset == 0
        assert info.next_reset_date == now

    def test_two_days_out_is_not_warning(self):
        info = build_reset_info(_profile(), _utc(2024, 1, 6, 12))

        assert info.days_until_reset == 2
        assert info.is_warning_day is False
        assert info.is_reset_day is False

    def test_overdue_same_day_is_reset_day(self):
        profile = _profile(created_at=_utc(2024, 1, 1, 15))
        info = build_reset_info(profile, _utc(2024, 1, 8, 6))

        assert info.is_reset_day is True
        assert info.days_until_reset == 0
        assert info.next_reset_date == _utc(2024, 1, 8)

    def test_processed_same_day_counts_down_to_next_cycle(self):
        profile = _profile(
            created_at=_utc(2024, 1, 1, 15),
            last_free_reset=_utc(2024, 1, 8, 6),
        )
        info = build_reset_info(profile, _utc(2024, 1, 8, 10))

        assert info.is_reset_day is False
        assert info.next_reset_date == _utc(2024, 1, 15)
        assert info.days_until_reset == 7
        assert info.last_reset_at == _utc(2024, 1, 8, 6)

    @pytest.mark.parametrize("offset", [
        timedelta(0),
        timedelta(seconds=1),
        timedelta(hours=1),
        timedelta(days=3),
        timedelta(days=6, hours=23, minutes=59, seconds=59),
    ])
    def test_no_reset_day_until_next_boundary_after_reset(self, offset):
        """After a reset at T, nothing is due again in [T, next boundary)."""
        reset_at = _utc(2024, 1, 8)
        profile = _profile(last_free_reset=reset_at)

        info = build_reset_info(profile, reset_at + offset)

        assert info.is_reset_day is False

    def test_registration_details_are_carried(self):
        info = build_reset_info(_profile(user_id="abc"), _utc(2024, 1, 3))

        assert info.user_id == "abc"
        assert info.registration_date == REGISTERED
        assert info.last_reset_at is None


# =============================================================================
# Service Tests (Mocked Supabase)
# =============================================================================

@pytest.fixture
def mock_supabase():
    """Patch the SupabaseClient used by the reset service."""
    with patch("core.services.free_reset_service.SupabaseClient") as mock:
        mock.delete_posts_by_owner.return_value = 3
        mock.update_profile.return_value = {}
        yield mock


class TestGetResetInfo:
    """Test get_reset_info with mocked Supabase."""

    def test_free_profile(self, mock_supabase, free_profile_row):
        mock_supabase.fetch_profile.return_value = free_profile_row

        info = FreeAccountResetService.get_reset_info(free_profile_row["id"], _utc(2024, 1, 7, 12))

        mock_supabase.fetch_profile.assert_called_once_with(free_profile_row["id"])
        assert info is not None
        assert info.user_id == free_profile_row["id"]
        assert info.is_warning_day is True

    def test_accepts_uuid(self, mock_supabase, free_profile_row):
        mock_supabase.fetch_profile.return_value = free_profile_row

        FreeAccountResetService.get_reset_info(UUID(free_profile_row["id"]), _utc(2024, 1, 3))

        mock_supabase.fetch_profile.assert_called_once_with(free_profile_row["id"])

    def test_missing_profile(self, mock_supabase):
        mock_supabase.fetch_profile.return_value = None

        assert FreeAccountResetService.get_reset_info("missing", _utc(2024, 1, 8)) is None

    @pytest.mark.parametrize("tier", ["premium", "business"])
    @pytest.mark.parametrize("created_at", [
        "2024-01-01T00:00:00Z",
        "2023-06-15T13:45:00Z",
        "2030-01-01T00:00:00Z",
    ])
    def test_paid_tiers_are_exempt(self, mock_supabase, tier, created_at):
        mock_supabase.fetch_profile.return_value = {
            "id": "paid-user",
            "subscription_tier": tier,
            "created_at": created_at,
            "last_free_reset": None,
        }

        assert FreeAccountResetService.get_reset_info("paid-user", _utc(2024, 1, 8)) is None

    def test_store_error_returns_none(self, mock_supabase):
        mock_supabase.fetch_profile.side_effect = SupabaseClientError("connection refused")

        assert FreeAccountResetService.get_reset_info("user-1", _utc(2024, 1, 8)) is None

    def test_malformed_row_returns_none(self, mock_supabase):
        mock_supabase.fetch_profile.return_value = {
            "id": "user-1",
            "subscription_tier": "free",
            "created_at": None,
        }

        assert FreeAccountResetService.get_reset_info("user-1", _utc(2024, 1, 8)) is None

    def test_should_reset_account(self, mock_supabase, free_profile_row):
        mock_supabase.fetch_profile.return_value = free_profile_row

        assert FreeAccountResetService.should_reset_account("user-1", _utc(2024, 1, 8)) is True
        assert FreeAccountResetService.should_reset_account("user-1", _utc(2024, 1, 9)) is False


class TestResetAccount:
    """Test the two-write reset."""

    def test_not_due_does_nothing(self, mock_supabase, free_profile_row):
        mock_supabase.fetch_profile.return_value = free_profile_row

        assert FreeAccountResetService.reset_account("user-1", _utc(2024, 1, 5)) is False
        mock_supabase.delete_posts_by_owner.assert_not_called()
        mock_supabase.update_profile.assert_not_called()

    def test_missing_profile_does_nothing(self, mock_supabase):
        mock_supabase.fetch_profile.return_value = None

        assert FreeAccountResetService.reset_account("user-1", _utc(2024, 1, 8)) is False
        mock_supabase.delete_posts_by_owner.assert_not_called()

    def test_due_account_is_reset(self, mock_supabase, free_profile_row):
        mock_supabase.fetch_profile.return_value = free_profile_row
        now = _utc(2024, 1, 8)

        assert FreeAccountResetService.reset_account("user-1", now) is True

        mock_supabase.delete_posts_by_owner.assert_called_once_with("user-1")
        mock_supabase.update_profile.assert_called_once_with(
            "user-1",
            {"last_free_reset": now.isoformat(), "current_listings": 0},
        )

    def test_delete_failure_skips_profile_update(self, mock_supabase, free_profile_row):
        mock_supabase.fetch_profile.return_value = free_profile_row
        mock_supabase.delete_posts_by_owner.side_effect = SupabaseClientError("timeout")

        assert FreeAccountResetService.reset_account("user-1", _utc(2024, 1, 8)) is False
        mock_supabase.update_profile.assert_not_called()

    def test_profile_update_failure_is_reported(self, mock_supabase, free_profile_row, caplog):
        mock_supabase.fetch_profile.return_value = free_profile_row
        mock_supabase.update_profile.side_effect = SupabaseClientError("timeout")

        assert FreeAccountResetService.reset_account("user-1", _utc(2024, 1, 8)) is False
        mock_supabase.delete_posts_by_owner.assert_called_once()
        assert "Partial reset" in caplog.text

    def test_unexpected_error_is_swallowed(self, mock_supabase, free_profile_row):
        mock_supabase.fetch_profile.return_value = free_profile_row
        mock_supabase.delete_posts_by_owner.side_effect = RuntimeError("boom")

        assert FreeAccountResetService.reset_account("user-1", _utc(2024, 1, 8)) is False


# =============================================================================
# Scan & Batch Tests
# =============================================================================

NOW = _utc(2024, 1, 8, 6)

DUE_AND_NOT_DUE = {
    "u1": {"id": "u1", "subscription_tier": "free", "created_at": "2024-01-01T15:00:00Z", "last_free_reset": None},
    "u2": {"id": "u2", "subscription_tier": "free", "created_at": "2024-01-01T20:30:00Z", "last_free_reset": None},
    "u3": {"id": "u3", "subscription_tier": "free", "created_at": "2024-01-03T09:00:00Z", "last_free_reset": None},
}


class TestListFreeUsersDueForReset:
    """Test the paged scan."""

    def test_scans_free_tier_across_pages(self, mock_supabase):
        mock_supabase.iter_profiles_by_tier.return_value = iter([
            [DUE_AND_NOT_DUE["u1"], DUE_AND_NOT_DUE["u3"]],
            [DUE_AND_NOT_DUE["u2"]],
        ])

        due = FreeAccountResetService.list_free_users_due_for_reset(NOW, page_size=2)

        assert due == ["u1", "u2"]
        mock_supabase.iter_profiles_by_tier.assert_called_once_with("free", page_size=2)

    def test_skips_already_processed(self, mock_supabase):
        processed = {**DUE_AND_NOT_DUE["u1"], "last_free_reset": "2024-01-08T00:30:00Z"}
        mock_supabase.iter_profiles_by_tier.return_value = iter([[processed, DUE_AND_NOT_DUE["u2"]]])

        assert FreeAccountResetService.list_free_users_due_for_reset(NOW) == ["u2"]

    def test_skips_rows_without_created_at(self, mock_supabase):
        broken = {"id": "u9", "subscription_tier": "free", "created_at": None}
        mock_supabase.iter_profiles_by_tier.return_value = iter([[broken, DUE_AND_NOT_DUE["u1"]]])

        assert FreeAccountResetService.list_free_users_due_for_reset(NOW) == ["u1"]

    def test_scan_error_returns_empty(self, mock_supabase):
        def pages(*args, **kwargs):
            yield [DUE_AND_NOT_DUE["u1"]]
            raise SupabaseClientError("page 2 failed")

        mock_supabase.iter_profiles_by_tier.side_effect = pages

        assert FreeAccountResetService.list_free_users_due_for_reset(NOW) == []


class TestBatchResetAccounts:
    """Test the sequential batch runner."""

    @pytest.fixture
    def three_free_users(self, mock_supabase):
        mock_supabase.iter_profiles_by_tier.return_value = iter([list(DUE_AND_NOT_DUE.values())])
        mock_supabase.fetch_profile.side_effect = lambda user_id, *a, **k: DUE_AND_NOT_DUE.get(user_id)
        return mock_supabase

    def test_two_of_three_due(self, three_free_users):
        result = FreeAccountResetService.batch_reset_accounts(NOW)

        assert result == BatchResetResult(success=2, failed=0)
        assert three_free_users.delete_posts_by_owner.call_count == 2
        assert three_free_users.update_profile.call_count == 2

    def test_failures_do_not_stop_the_batch(self, three_free_users):
        def delete(user_id):
            if user_id == "u1":
                raise SupabaseClientError("lock timeout")
            return 1

        three_free_users.delete_posts_by_owner.side_effect = delete

        result = FreeAccountResetService.batch_reset_accounts(NOW)

        assert result.success == 1
        assert result.failed == 1
        assert result.attempted == 2

    def test_nothing_due(self, mock_supabase):
        mock_supabase.iter_profiles_by_tier.return_value = iter([])

        result = FreeAccountResetService.batch_reset_accounts(NOW)

        assert result == BatchResetResult(success=0, failed=0)
        mock_supabase.delete_posts_by_owner.assert_not_called()

    def test_same_instant_for_every_user(self, mock_supabase):
        with patch.object(
            FreeAccountResetService, "list_free_users_due_for_reset", return_value=["a", "b"]
        ), patch.object(
            FreeAccountResetService, "reset_account", return_value=True
        ) as reset:
            FreeAccountResetService.batch_reset_accounts(NOW)

        assert [c.args for c in reset.call_args_list] == [("a", NOW), ("b", NOW)]
