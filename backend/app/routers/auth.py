"""Auth endpoints: register, login, refresh, logout and the current user.

Password accounts (Argon2id hashes) with JWT bearer sessions. Access tokens
are short-lived; refresh tokens are rotated on use and tracked by hash.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.config import get_settings
from app.db import get_session
from app.models.user import (
    LoginRequest,
    RefreshRequest,
    RefreshToken,
    RegisterRequest,
    TokenResponse,
    User,
    UserRead,
)
from app.utils.crypto import hash_password, password_needs_rehash, sha256_hash, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

JWT_ALGORITHM = "HS256"

_bearer_scheme = HTTPBearer(auto_error=True)


# --- JWT helpers ---


def _create_access_token(user_id: str) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "type": "access",
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_access_token_expire_minutes),
    }
    return jwt.encode(payload, settings.app_secret, algorithm=JWT_ALGORITHM)


def _create_refresh_token(user_id: str, token_id: str) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "type": "refresh",
        "jti": token_id,
        "iat": now,
        "exp": now + timedelta(days=settings.jwt_refresh_token_expire_days),
    }
    return jwt.encode(payload, settings.app_secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str, expected_type: str) -> dict:
    """Decode and validate a JWT. Raises HTTPException 401 on failure."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.app_secret, algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    if payload.get("type") != expected_type:
        raise HTTPException(status_code=401, detail="Invalid token type")
    return payload


def _issue_tokens(user_id: str, db: Session) -> TokenResponse:
    """Create access + refresh tokens and persist the refresh token hash."""
    settings = get_settings()
    token_id = str(uuid4())
    access = _create_access_token(user_id)
    refresh = _create_refresh_token(user_id, token_id)

    now = datetime.now(timezone.utc)
    db.add(RefreshToken(
        id=token_id,
        token_hash=sha256_hash(refresh.encode("utf-8")),
        user_id=user_id,
        created_at=now,
        expires_at=now + timedelta(days=settings.jwt_refresh_token_expire_days),
    ))
    db.commit()

    return TokenResponse(
        access_token=access,
        refresh_token=refresh,
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )


# --- Local auth dependency for endpoints in this module ---


def _get_user_from_bearer(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
) -> str:
    """Extract user_id from Bearer token. Used by logout/me endpoints."""
    payload = decode_token(credentials.credentials, "access")
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token payload")
    return user_id


# --- Endpoints ---


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(body: RegisterRequest, db: Session = Depends(get_session)) -> TokenResponse:
    email = body.email.lower()
    existing = db.exec(select(User).where(User.email == email)).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="An account with this email already exists")

    user = User(email=email, name=body.name.strip(), password_hash=hash_password(body.password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent registration with the same email won the unique index
        db.rollback()
        raise HTTPException(status_code=409, detail="An account with this email already exists")
    db.refresh(user)
    logger.info("Registered user %s", user.id)

    return _issue_tokens(user.id, db)


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: Session = Depends(get_session)) -> TokenResponse:
    user = db.exec(select(User).where(User.email == body.email.lower())).first()
    if user is None or not verify_password(user.password_hash, body.password):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if password_needs_rehash(user.password_hash):
        user.password_hash = hash_password(body.password)
        user.updated_at = datetime.now(timezone.utc)
        db.add(user)
        db.commit()

    return _issue_tokens(user.id, db)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, db: Session = Depends(get_session)) -> TokenResponse:
    """Exchange a valid refresh token for a new token pair."""
    payload = decode_token(body.refresh_token, "refresh")
    user_id = payload.get("sub")
    token_id = payload.get("jti")
    if not user_id or not token_id:
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    provided_hash = sha256_hash(body.refresh_token.encode("utf-8"))
    db_token = db.exec(
        select(RefreshToken).where(
            RefreshToken.id == token_id,
            RefreshToken.token_hash == provided_hash,
        )
    ).first()

    if db_token is None:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    if db_token.revoked:
        raise HTTPException(status_code=401, detail="Refresh token revoked")
    if db_token.expires_at.replace(tzinfo=timezone.utc) < datetime.now(timezone.utc):
        raise HTTPException(status_code=401, detail="Refresh token expired")
    if db.get(User, user_id) is None:
        raise HTTPException(status_code=401, detail="Account no longer exists")

    # Rotation: the presented token is single-use
    db_token.revoked = True
    db.add(db_token)
    db.commit()

    return _issue_tokens(user_id, db)


@router.post("/logout", status_code=200)
async def logout(
    user_id: str = Depends(_get_user_from_bearer),
    db: Session = Depends(get_session),
) -> dict:
    """Revoke every outstanding refresh token for the user."""
    tokens = db.exec(
        select(RefreshToken).where(
            RefreshToken.user_id == user_id,
            RefreshToken.revoked == False,  # noqa: E712
        )
    ).all()
    for token in tokens:
        token.revoked = True
        db.add(token)
    db.commit()

    return {"detail": "Logged out"}


@router.get("/me", response_model=UserRead)
async def me(
    user_id: str = Depends(_get_user_from_bearer),
    db: Session = Depends(get_session),
) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Account no longer exists")
    return user
