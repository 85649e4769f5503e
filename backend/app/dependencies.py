"""FastAPI dependency injection for auth verification and the content cipher."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.routers.auth import decode_token
from app.services.encryption import ContentCipher

_bearer_scheme = HTTPBearer(auto_error=True)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
) -> str:
    """Extract and validate JWT access token from Authorization header.

    Returns the user_id (sub claim) if token is valid.
    Raises HTTPException 401 if token is missing, expired, or invalid.
    """
    payload = decode_token(credentials.credentials, "access")
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token payload")
    return user_id


def get_content_cipher(request: Request) -> ContentCipher:
    """Inject the ContentCipher built from APP_SECRET at startup."""
    cipher = getattr(request.app.state, "content_cipher", None)
    if cipher is None:
        raise HTTPException(
            status_code=503,
            detail="Journal encryption unavailable",
        )
    return cipher
