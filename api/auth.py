"""
Bearer API key authentication for the admin endpoints.
"""

import secrets
from typing import Optional

import structlog
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from api.config import config

logger = structlog.get_logger(__name__)

security = HTTPBearer()

# Yields None instead of raising when the header is missing.
optional_security = HTTPBearer(auto_error=False)


def _matches_any(api_key: str, candidates: list) -> bool:
    """Compare ``api_key`` against every candidate in constant time."""
    valid = False
    for candidate in candidates:
        if secrets.compare_digest(api_key.encode("utf-8"), candidate.encode("utf-8")):
            valid = True
    return valid


def is_valid_admin_key(api_key: str) -> bool:
    """
    Check ``api_key`` against the configured admin keys.

    Returns False when no admin keys are configured.
    """
    return _matches_any(api_key, config.get_admin_api_keys())


def is_valid_sync_key(api_key: Optional[str]) -> bool:
    """
    Check ``api_key`` against the sync keys, or the admin keys when no sync keys are set.

    Returns False for a missing key or when no keys are configured.
    """
    if not api_key:
        return False
    return _matches_any(api_key, config.get_sync_api_keys())


async def verify_admin_key(credentials: HTTPAuthorizationCredentials = Depends(security)) -> str:
    """
    Verify the admin API key from the Authorization header.

    Args:
        credentials: HTTP authorization credentials

    Returns:
        API key if valid

    Raises:
        HTTPException: If the API key is invalid
    """
    api_key = credentials.credentials

    if not is_valid_admin_key(api_key):
        logger.warning("Invalid admin API key attempted", api_key=api_key[:4] + "...")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return api_key
