# =============================================================================
# tests/ - Test Suite
# =============================================================================
# - test_free_reset.py: Free account reset cycle math and service
# - test_subscription.py: Tier limits, pricing and subscription lookups
# - test_models.py: Pydantic model validation
# - test_supabase_client.py: Query building and error mapping
# - test_routers.py: HTTP endpoints (cron, account, health)
# - test_workers.py: Beat schedule and the reset task
#
# Run tests with: pytest
# =============================================================================
