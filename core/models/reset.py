# =============================================================================
# core/models/reset.py - Free Account Reset Schemas
# =============================================================================
# - ResetInfo: where a free account sits in its 7-day reset cycle
# - BatchResetResult: outcome counts of one batch reset run
#
# ResetInfo drives the dashboard countdown: is_warning_day shows the
# "your listings will be removed tomorrow" banner, is_reset_day tells the
# reset job the account may be wiped.
# =============================================================================

from datetime import datetime

from pydantic import BaseModel, Field


class ResetInfo(BaseModel):
    """
    Reset cycle position of one free account at a given instant.

    Example:
        {
            "user_id": "550e8400-e29b-41d4-a716-446655440000",
            "registration_date": "2024-01-01T00:00:00Z",
            "next_reset_date": "2024-01-08T00:00:00Z",
            "days_until_reset": 1,
            "is_reset_day": false,
            "is_warning_day": true,
            "last_reset_at": null
        }
    """

    user_id: str = Field(
        ...,
        description="Owning user ID"
    )

    registration_date: datetime = Field(
        ...,
        description="Profile created_at; anchors the reset grid"
    )

    next_reset_date: datetime = Field(
        ...,
        description="Midnight (UTC) of the next reset boundary"
    )

    days_until_reset: int = Field(
        ...,
        ge=0,
        description="Whole days until next_reset_date, rounded up"
    )

    is_reset_day: bool = Field(
        ...,
        description="The account is due to be wiped now"
    )

    is_warning_day: bool = Field(
        ...,
        description="Exactly one day remains before the reset"
    )

    last_reset_at: datetime | None = Field(
        default=None,
        description="When the account was last wiped, if ever"
    )


class BatchResetResult(BaseModel):
    """Counts reported by one batch reset run."""

    success: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)

    @property
    def attempted(self) -> int:
        return self.success + self.failed
