# =============================================================================
# app/routers/cron.py - Scheduled Job Endpoints
# =============================================================================
# HTTP trigger for the daily free account reset, for schedulers that call a
# URL (Vercel Cron, GitHub Actions) instead of running the Celery beat.
#
# Expected to be called once a day at midnight UTC:
#   curl -X POST https://api.a2z.co.za/api/v1/cron/free-account-reset \
#     -H "Authorization: Bearer $CRON_SECRET"
# =============================================================================

import hmac
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header
from pydantic import BaseModel

from app.config import settings
from app.exceptions import CronNotConfiguredError, CronUnauthorizedError, NotAvailableError
from core.models.reset import BatchResetResult
from core.services.free_reset_service import FreeAccountResetService

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Response Models
# =============================================================================

class CronResetResponse(BaseModel):
    """Outcome of one reset run."""
    success: bool
    message: str
    results: BatchResetResult


# =============================================================================
# Dependencies
# =============================================================================

def verify_cron_secret(
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """
    Require `Authorization: Bearer <CRON_SECRET>`.

    Raises:
        CronNotConfiguredError: CRON_SECRET is not set (500)
        CronUnauthorizedError: Header missing or wrong (401)
    """
    if not settings.CRON_SECRET:
        logger.error("CRON_SECRET environment variable not set")
        raise CronNotConfiguredError()

    expected = f"Bearer {settings.CRON_SECRET}"
    if not hmac.compare_digest((authorization or "").encode(), expected.encode()):
        logger.error("Unauthorized cron request")
        raise CronUnauthorizedError()


# =============================================================================
# Endpoints
# =============================================================================

@router.post(
    "/free-account-reset",
    response_model=CronResetResponse,
    dependencies=[Depends(verify_cron_secret)],
)
def run_free_account_reset():
    """
    Reset every free account whose 7-day cycle boundary is due.

    Runs synchronously and returns success/failed counts. Per-user failures
    are counted, not raised.
    """
    logger.info("Starting daily free account reset job...")

    result = FreeAccountResetService.batch_reset_accounts()

    logger.info(
        f"Free account reset job completed: {result.success} successful, {result.failed} failed"
    )
    return CronResetResponse(
        success=True,
        message="Free account reset job completed",
        results=result,
    )


@router.get("/free-account-reset", response_model=CronResetResponse)
def run_free_account_reset_manually():
    """
    Manual trigger for local testing. Not available in production.
    """
    if settings.is_production:
        raise NotAvailableError("Manual free account reset")

    logger.info("Manual free account reset job triggered...")

    result = FreeAccountResetService.batch_reset_accounts()
    return CronResetResponse(
        success=True,
        message="Manual free account reset completed",
        results=result,
    )
