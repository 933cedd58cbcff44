"""Account routes: signup, login, logout and profile."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from app.api.dependencies import get_token_data, rate_limit_auth
from app.cache.token_blacklist import blacklist_token
from app.core.exceptions import AuthenticationError, NotFoundError
from app.core.logging import get_logger
from app.core.security import (
    TokenData,
    create_access_token,
    hash_password,
    verify_password,
)
from app.repositories import users_orm as users_repo
from app.schemas.auth import (
    AuthResponse,
    LoginRequest,
    ProfileResponse,
    SignupRequest,
    UserResponse,
)

router = APIRouter()

logger = get_logger("api.auth")


def _auth_response(user: users_repo.User) -> AuthResponse:
    token = create_access_token(user_id=user.id, email=user.email, role=user.role)
    return AuthResponse(token=token, user=UserResponse(**user.public_dict()))


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
    description="Register with name, email and password to receive an access token.",
    dependencies=[Depends(rate_limit_auth)],
    responses={
        409: {"description": "Email already exists"},
        429: {"description": "Too many signup attempts"},
    },
)
async def signup(payload: SignupRequest) -> AuthResponse:
    user = await users_repo.create_user(
        name=payload.name,
        email=payload.email,
        password_hash=hash_password(payload.password),
    )
    return _auth_response(user)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Authenticate user",
    description="Login with email and password to receive an access token.",
    dependencies=[Depends(rate_limit_auth)],
    responses={
        401: {"description": "Invalid credentials"},
        429: {"description": "Too many login attempts"},
    },
)
async def login(payload: LoginRequest) -> AuthResponse:
    """
    Authenticate user and return access token.

    Unknown email and wrong password get the same answer.
    """
    user = await users_repo.get_user_by_email(payload.email)
    if user is None or not verify_password(payload.password, user.password_hash):
        raise AuthenticationError(
            message="Invalid credentials",
            error_code="INVALID_CREDENTIALS",
        )

    user = await users_repo.record_login(user.id) or user
    logger.info("User logged in", extra={"user_id": user.id})
    return _auth_response(user)


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Logout user",
    description="Revoke the presented token until it expires.",
)
async def logout(user: TokenData = Depends(get_token_data)) -> Response:
    await blacklist_token(user.jti, user.exp)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/profile",
    response_model=ProfileResponse,
    summary="Get current user",
    description="Get the account of the currently authenticated user.",
    responses={
        401: {"description": "Not authenticated"},
        404: {"description": "User not found"},
    },
)
async def profile(token: TokenData = Depends(get_token_data)) -> ProfileResponse:
    user = await users_repo.get_user_by_id(token.user_id)
    if user is None:
        raise NotFoundError(message="User not found", error_code="USER_NOT_FOUND")
    return ProfileResponse(user=UserResponse(**user.public_dict()))
