"""
API-key guard for admin routes.
"""

from __future__ import annotations

import logging
import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException, Security, status
from fastapi.security import APIKeyHeader
from pydantic import BaseModel

from hotel_backend.config import Settings, get_settings

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(
    name="X-API-Key",
    auto_error=False,
    description="Admin API key",
)


class AdminPrincipal(BaseModel):
    user_id: str


def require_admin(
    api_key: Optional[str] = Security(api_key_header),
    admin_user: Optional[str] = Header(default=None, alias="X-Admin-User"),
    settings: Settings = Depends(get_settings),
) -> AdminPrincipal:
    """Allow the request only when X-API-Key matches ADMIN_API_KEY."""
    configured = (
        settings.admin_api_key.get_secret_value() if settings.admin_api_key else None
    )
    if not configured:
        logger.warning("Admin request refused: ADMIN_API_KEY is not configured")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access is not configured",
        )
    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Missing API Key. Include 'X-API-Key' header.",
        )
    if not secrets.compare_digest(api_key, configured):
        logger.warning("Invalid admin API key attempt: %s...", api_key[:4])
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid API Key")
    return AdminPrincipal(user_id=admin_user or "admin")
