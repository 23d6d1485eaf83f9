# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .free_reset_service import FreeAccountResetService, compute_next_reset_date
from .subscription_service import SubscriptionService, get_default_tier_limits

__all__ = [
    "FreeAccountResetService",
    "SubscriptionService",
    "compute_next_reset_date",
    "get_default_tier_limits",
]
