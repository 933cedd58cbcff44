"""Password hashing and JWT access tokens."""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from pydantic import BaseModel

from .config import settings
from .exceptions import AuthenticationError, AuthorizationError


JWT_ALGORITHM = "HS256"
JWT_ISSUER = "stocksense"
JWT_AUDIENCE = "stocksense-api"


class TokenData(BaseModel):
    """Decoded JWT token data."""

    sub: str  # user id
    email: str
    role: str = "user"
    exp: datetime
    iat: datetime
    jti: str  # unique token ID for revocation

    @property
    def user_id(self) -> int:
        return int(self.sub)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify password against bcrypt hash. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(
    user_id: int,
    email: str,
    role: str = "user",
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed JWT access token for a user."""
    now = datetime.now(timezone.utc)
    expires = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))

    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "exp": expires,
        "iat": now,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "jti": secrets.token_urlsafe(16),
    }
    return jwt.encode(payload, settings.auth_secret, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> TokenData:
    """Decode and validate a JWT access token.

    Expired tokens raise a 401 ``TOKEN_EXPIRED``; anything else that fails
    verification (signature, audience, malformed payload) raises a 403
    ``INVALID_TOKEN``.
    """
    try:
        payload = jwt.decode(
            token,
            settings.auth_secret,
            algorithms=[JWT_ALGORITHM],
            issuer=JWT_ISSUER,
            audience=JWT_AUDIENCE,
            options={"require": ["exp", "iat", "sub", "iss", "aud", "jti"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError(message="Token expired", error_code="TOKEN_EXPIRED")
    except jwt.InvalidTokenError:
        raise AuthorizationError(message="Invalid token", error_code="INVALID_TOKEN")

    sub = payload["sub"]
    if not str(sub).isdigit() or "email" not in payload:
        raise AuthorizationError(message="Invalid token", error_code="INVALID_TOKEN")

    return TokenData(
        sub=str(sub),
        email=payload["email"],
        role=payload.get("role", "user"),
        exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        jti=payload["jti"],
    )


async def validate_token_not_revoked(token_data: TokenData) -> bool:
    """Return False when the token was revoked by logout."""
    from app.cache.token_blacklist import is_token_blacklisted

    return not await is_token_blacklisted(token_data.jti)
