# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class AuthUser(BaseModel):
    """
    Caller identity taken from a verified Supabase access token.

    Only what the token carries; profile data is loaded by the services.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: str | None = None
