# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Tasks:
# - reset_free_accounts: Daily sweep that wipes free accounts whose 7-day
#   cycle boundary is due (scheduled by beat, see workers/config.py)
# =============================================================================

import logging
from typing import Any

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(bind=True, name="workers.tasks.reset_free_accounts")
def reset_free_accounts(self, now: str | None = None) -> dict[str, Any]:
    """
    Run one batch reset of due free accounts.

    Args:
        now: Optional ISO-8601 instant to evaluate the reset grid at
            (defaults to the wall clock when the task runs)

    Returns:
        Dict with:
        - success: bool (False only if the run itself blew up)
        - results: {"success": int, "failed": int}
    """
    from core.services.free_reset_service import FreeAccountResetService
    from lib.utils import parse_timestamp

    try:
        result = FreeAccountResetService.batch_reset_accounts(parse_timestamp(now))
    except Exception as e:
        logger.exception(f"Free account reset task failed: {e}")
        return {"success": False, "error": str(e)}

    return {
        "success": True,
        "results": result.model_dump(),
    }
