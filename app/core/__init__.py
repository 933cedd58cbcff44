"""Core infrastructure: settings, security, logging, exceptions."""

from .client_identity import get_client_ip
from .config import settings
from .exceptions import (
    AppException,
    AuthenticationError,
    AuthorizationError,
    BadRequestError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from .security import (
    TokenData,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


__all__ = [
    "AppException",
    "AuthenticationError",
    "AuthorizationError",
    "BadRequestError",
    "ConflictError",
    "ExternalServiceError",
    "NotFoundError",
    "RateLimitError",
    "TokenData",
    "ValidationError",
    "create_access_token",
    "decode_access_token",
    "get_client_ip",
    "hash_password",
    "settings",
    "verify_password",
]
