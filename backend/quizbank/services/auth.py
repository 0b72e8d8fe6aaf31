"""
Auth service: bearer token verification.
Tokens are issued by the identity provider (shared HS256 secret); "sub" is its opaque user id.
create_access_token exists for local runs and tests.
"""
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from quizbank.config import settings


def create_access_token(external_id: str, email: str | None = None, expires_hours: int = 24) -> str:
    expire = datetime.now(timezone.utc) + timedelta(hours=expires_hours)
    # JWT exp must be numeric (Unix timestamp), not datetime
    payload = {"sub": external_id, "exp": int(expire.timestamp())}
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict | None:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def identity_from_token(token: str) -> str | None:
    """Opaque identity id from a valid token, else None."""
    payload = decode_access_token(token)
    if not payload:
        return None
    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub.strip():
        return None
    return sub
