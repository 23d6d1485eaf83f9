# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Resolves the calling marketplace user from a Supabase access token.
#
# Supabase projects sign tokens either with the legacy HS256 JWT secret or
# with asymmetric signing keys published at the project's JWKS endpoint.
# Both are accepted.
#
# Usage:
#   from app.auth import get_current_user, AuthUser
#
#   @router.get("/account/limits")
#   async def limits(user: AuthUser = Depends(get_current_user)):
#       ...
# =============================================================================

import logging
import time
from typing import Any
from uuid import UUID

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt

from app.auth.models import AuthUser
from app.config import settings

logger = logging.getLogger(__name__)

security = HTTPBearer()

JWKS_CACHE_TTL = 3600  # seconds
_jwks_cache: dict[str, Any] = {}
_jwks_fetched_at: float = 0.0


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _fetch_jwks() -> dict[str, Any]:
    """Fetch the project's signing keys, cached for an hour."""
    global _jwks_cache, _jwks_fetched_at

    if _jwks_cache and (time.time() - _jwks_fetched_at) < JWKS_CACHE_TTL:
        return _jwks_cache

    url = f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1/.well-known/jwks.json"
    try:
        response = httpx.get(url, timeout=10)
        response.raise_for_status()
        _jwks_cache = response.json()
        _jwks_fetched_at = time.time()
    except httpx.HTTPError as e:
        # Keep serving the last good key set
        logger.warning(f"Failed to fetch JWKS from {url}: {e}")
        if not _jwks_cache:
            return {"keys": []}
    return _jwks_cache


def _signing_key(token: str) -> tuple[Any, str]:
    """Pick (key, algorithm) for a token based on its header."""
    header = jwt.get_unverified_header(token)
    algorithm = header.get("alg", "HS256")

    if algorithm == "HS256":
        return settings.SUPABASE_JWT_SECRET, algorithm

    kid = header.get("kid")
    for key in _fetch_jwks().get("keys", []):
        if key.get("kid") == kid:
            return key, algorithm

    raise JWTError(f"No signing key found for kid={kid}")


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AuthUser:
    """
    Validate the bearer token and return the user it belongs to.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired
    """
    token = credentials.credentials

    try:
        key, algorithm = _signing_key(token)
        payload = jwt.decode(
            token,
            key,
            algorithms=[algorithm],
            audience="authenticated",
        )
    except ExpiredSignatureError:
        logger.warning("JWT token has expired")
        raise _unauthorized("Token has expired")
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise _unauthorized(f"Invalid token: {e}")

    try:
        user_id = UUID(payload["sub"])
    except (KeyError, TypeError, ValueError):
        logger.warning(f"JWT token has no usable 'sub' claim: {payload.get('sub')}")
        raise _unauthorized("Invalid token: missing user ID")

    return AuthUser(id=user_id, email=payload.get("email"))
