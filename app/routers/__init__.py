# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - cron.py: Scheduler-triggered jobs (daily free account reset)
# - account.py: The caller's reset countdown, tier limits and subscription
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import account
from . import cron
from . import health

__all__ = [
    "account",
    "cron",
    "health",
]
