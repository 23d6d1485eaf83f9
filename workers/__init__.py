# =============================================================================
# workers/ - Celery Background Task Workers
# =============================================================================
# This package contains the Celery configuration and task definitions for
# scheduled maintenance jobs.
#
# Components:
# - celery_app.py: Celery application configuration
# - tasks.py: Task definitions (daily free account reset)
# - config.py: Worker settings and the beat schedule
#
# Usage:
#   celery -A workers.celery_app worker --beat --loglevel=info -Q default,maintenance
#
#   # Trigger a reset by hand
#   from workers.tasks import reset_free_accounts
#   reset_free_accounts.delay()
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]
