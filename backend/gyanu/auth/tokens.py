"""
JWT utilities and the identity they carry.

Identities are issued by the external identity provider; this service only
verifies the signed token and reads the subject claim.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from gyanu.config import Settings


@dataclass(frozen=True)
class Identity:
    """Authenticated caller. `id` is the provider's opaque user id."""

    id: str
    email: str | None = None


def create_access_token(settings: Settings, user_id: str, email: str | None = None) -> str:
    """
    Create a JWT access token for a user.

    Token payload contains:
    - sub: user id (standard JWT subject claim)
    - email: optional, informational only
    - exp: expiration timestamp
    """
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)
    payload = {"sub": user_id, "exp": expire}
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(settings: Settings, token: str) -> Identity | None:
    """
    Decode and validate a JWT access token.

    Returns the identity if valid, None if invalid/expired.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        return None
    return Identity(id=user_id, email=payload.get("email"))


def extract_token(authorization: str | None, access_token: str | None) -> str | None:
    """
    Pick the bearer token from a request.

    The HttpOnly `access_token` cookie wins over the Authorization header.
    """
    if access_token:
        return access_token
    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
    return None
