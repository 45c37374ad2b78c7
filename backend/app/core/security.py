"""
Admin authentication for the dashboard and maintenance endpoints.
A single shared bearer token configured via ADMIN_TOKEN.
"""

import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import get_settings

security = HTTPBearer(auto_error=False)


def verify_admin_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    """Reject requests that don't carry the admin bearer token."""
    settings = get_settings()
    if credentials is None or not secrets.compare_digest(
        credentials.credentials, settings.ADMIN_TOKEN
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials
