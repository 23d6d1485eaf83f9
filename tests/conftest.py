# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - Provides profile rows for the reset and subscription tests
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

import pytest


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def free_profile_row():
    """A free profile registered at midnight on 2024-01-01."""
    return {
        "id": "11111111-1111-1111-1111-111111111111",
        "subscription_tier": "free",
        "created_at": "2024-01-01T00:00:00Z",
        "last_free_reset": None,
    }


@pytest.fixture
def premium_profile_row():
    """A premium profile that started out free on the same day."""
    return {
        "id": "22222222-2222-2222-2222-222222222222",
        "subscription_tier": "premium",
        "created_at": "2024-01-01T00:00:00Z",
        "last_free_reset": "2024-01-08T00:00:00Z",
    }


@pytest.fixture
def subscription_row():
    """Subscription columns of a profile on a premium trial."""
    return {
        "subscription_tier": "premium",
        "subscription_status": "trial",
        "subscription_start_date": "2024-01-01T00:00:00+00:00",
        "subscription_end_date": None,
        "trial_end_date": "2024-01-15T00:00:00Z",
        "verified_seller": None,
        "early_adopter": True,
    }
