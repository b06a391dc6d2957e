"""Authentication helpers: password hashing and self-issued JWT bearer tokens.

This module provides a FastAPI dependency ``get_current_user`` that:
1. Extracts the ``Authorization: Bearer <token>`` header.
2. Verifies the HS256 signature and expiry with the configured secret.
3. Loads the referenced ``models.User`` row and hands it to the route.

Failure modes map to HTTP errors:
    no / malformed header     -> 401 "Access token required"
    bad signature or expired  -> 403 "Invalid token"
    user no longer exists     -> 401 "User not found"
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional

import bcrypt
import structlog
from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

import crud
import models
from database import get_db
from settings import get_settings

logger = structlog.get_logger(__name__)


class TokenPayload(BaseModel):
    sub: str
    exp: int


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or a password over bcrypt's 72-byte limit
        logger.warning("Password check rejected input")
        return False


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(hours=settings.access_token_expire_hours)
    )
    claims = {"sub": user_id, "exp": int(expire.timestamp())}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> TokenPayload:
    """Verify a bearer token and return its payload.

    Raises HTTPException(403) on a bad signature, expiry or missing claims.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return TokenPayload.model_validate(payload)
    except (JWTError, ValidationError) as exc:
        logger.warning("JWT verification failed", exc=str(exc))
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")


# Helper to extract Authorization header (works with FastAPI DI)
def _get_authorization_header(request: Request) -> Optional[str]:
    return request.headers.get("Authorization")


# --- FastAPI dependency ---
async def get_current_user(
    authorization: Annotated[Optional[str], Depends(_get_authorization_header)],
    db: Session = Depends(get_db),
) -> models.User:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Access token required"
        )

    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Access token required"
        )
    payload = verify_token(token)

    user = crud.get_user(db, payload.sub)
    if not user:
        logger.warning("Token references unknown user", user_id=payload.sub)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    structlog.contextvars.bind_contextvars(user_id=user.id)
    return user
