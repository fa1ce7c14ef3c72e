"""
Authentication Utility - JWT and Password handling.

Provides:
- Password hashing with bcrypt
- Access / refresh token creation and verification
- Token extraction from the Authorization header or cookies
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Request
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from app.core.config import get_settings
from app.core.errors import Unauthenticated

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(principal_id: str, kind: str, email: str) -> str:
    """Create short-lived JWT access token."""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {"sub": str(principal_id), "kind": kind, "email": email, "exp": expire}
    return jwt.encode(payload, settings.access_token_secret, algorithm=settings.jwt_algorithm)


def create_refresh_token(principal_id: str, kind: str) -> str:
    """Create refresh token. The jti makes every rotation produce a new value."""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + timedelta(days=settings.refresh_token_expire_days)
    payload = {"sub": str(principal_id), "kind": kind, "jti": uuid.uuid4().hex, "exp": expire}
    return jwt.encode(payload, settings.refresh_token_secret, algorithm=settings.jwt_algorithm)


def _decode(token: str, secret: str, label: str) -> dict:
    settings = get_settings()
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        raise Unauthenticated("Token has expired")
    except JWTError:
        raise Unauthenticated(f"Invalid {label} token")

    if not payload.get("sub") or not payload.get("kind"):
        raise Unauthenticated("Token missing required fields")
    return payload


def decode_access_token(token: str) -> dict:
    """Decode and verify access token, raising Unauthenticated on failure."""
    return _decode(token, get_settings().access_token_secret, "access")


def decode_refresh_token(token: str) -> dict:
    """Decode and verify refresh token, raising Unauthenticated on failure."""
    return _decode(token, get_settings().refresh_token_secret, "refresh")


def extract_access_token(request: Request) -> Optional[str]:
    """Bearer header wins over the accessToken cookie."""
    header = request.headers.get("Authorization")
    if header and header.lower().startswith("bearer "):
        token = header[7:].strip()
        if token:
            return token
    return request.cookies.get(ACCESS_COOKIE) or None
