from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt
from passlib.context import CryptContext

from orderease.core.config import settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


def create_access_token(
    subject: str,
    *,
    username: str,
    role: str,
    ttl_minutes: int | None = None,
) -> tuple[str, datetime]:
    """Issue a bearer token. Returns the token and its expiry."""
    ttl = ttl_minutes or settings.JWT_ACCESS_TTL_MIN
    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(minutes=ttl)
    payload: dict[str, Any] = {
        "sub": subject,
        "username": username,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=ALGORITHM), expires_at


def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[ALGORITHM])


def token_expiry(claims: dict[str, Any]) -> datetime:
    exp = claims.get("exp")
    if exp is None:
        return datetime.now(timezone.utc)
    return datetime.fromtimestamp(int(exp), tz=timezone.utc)
