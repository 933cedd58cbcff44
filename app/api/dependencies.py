"""API dependencies for authentication and rate limiting."""

from __future__ import annotations

from fastapi import Depends, Header, Request

from app.cache.rate_limit import check_rate_limit, get_api_rate_limiter
from app.core.client_identity import get_client_ip
from app.core.config import settings
from app.core.exceptions import AuthenticationError, AppException, AuthorizationError
from app.core.security import TokenData, decode_access_token, validate_token_not_revoked
from app.repositories import users_orm as users_repo


__all__ = [
    "get_client_ip",
    "get_current_user",
    "get_token_data",
    "rate_limit_api",
    "rate_limit_auth",
    "require_admin",
    "require_user",
]


def _extract_token(authorization: str | None) -> str | None:
    """Extract the JWT from an ``Authorization: Bearer`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


async def get_token_data(
    authorization: str | None = Header(default=None),
) -> TokenData:
    """
    Require a valid, unrevoked bearer token.

    Does not check that the account still exists; see ``require_user``.
    """
    token = _extract_token(authorization)
    if not token:
        raise AuthenticationError(
            message="Authentication required",
            error_code="MISSING_CREDENTIALS",
        )

    token_data = decode_access_token(token)

    if not await validate_token_not_revoked(token_data):
        raise AuthenticationError(
            message="Token has been revoked",
            error_code="TOKEN_REVOKED",
        )

    return token_data


async def require_user(
    token_data: TokenData = Depends(get_token_data),
) -> TokenData:
    """
    Require an authenticated user whose account still exists.

    Raises AuthenticationError if not authenticated or token is revoked.
    """
    user = await users_repo.get_user_by_id(token_data.user_id)
    if user is None:
        raise AuthenticationError(
            message="User no longer exists",
            error_code="USER_NOT_FOUND",
        )
    return token_data


async def get_current_user(
    authorization: str | None = Header(default=None),
) -> TokenData | None:
    """
    Get current authenticated user (optional).

    Returns None if there is no usable token.
    """
    if not _extract_token(authorization):
        return None
    try:
        return await get_token_data(authorization)
    except AppException:
        return None


async def require_admin(
    user: TokenData = Depends(require_user),
) -> TokenData:
    """
    Require admin user.

    Raises AuthorizationError if not admin.
    """
    if not user.is_admin:
        raise AuthorizationError(
            message="Admin privileges required",
            error_code="ADMIN_REQUIRED",
        )
    return user


async def rate_limit_auth(request: Request) -> None:
    """Apply rate limiting for auth endpoints, per client IP."""
    if not settings.rate_limit_enabled:
        return

    await check_rate_limit(get_client_ip(request), key_prefix="auth")


async def rate_limit_api(
    request: Request,
    user: TokenData | None = Depends(get_current_user),
) -> None:
    """Apply rate limiting for API endpoints, per user when signed in, else per IP."""
    if not settings.rate_limit_enabled:
        return

    # Admins bypass rate limiting entirely
    if user and user.is_admin:
        return

    identifier = f"user:{user.sub}" if user else f"ip:{get_client_ip(request)}"
    await check_rate_limit(identifier, limiter=get_api_rate_limiter())
