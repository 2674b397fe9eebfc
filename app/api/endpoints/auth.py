"""Authentication endpoints."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Cookie, Request, Response, status

from app.config import settings
from app.core.exceptions import InternalErrorException, NotFoundException, RateLimitException
from app.dependencies import (
    SESSION_COOKIE,
    CurrentUser,
    CurrentUserId,
    DatabaseSession,
    RateLimiterDep,
)
from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    Token,
    TokenRefresh,
    TwoFactorSetup,
    TwoFactorVerify,
)
from app.schemas.users import UserCreate, UserResponse
from app.services.auth_service import AuthService
from app.services.user_service import UserService

router = APIRouter()
logger = structlog.get_logger()


def client_ip(request: Request) -> str:
    """Best-effort caller address, honouring the proxy headers in front of the app."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


@router.get(
    "/me",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    summary="Current user",
)
async def get_me(user_id: CurrentUserId, db: DatabaseSession) -> UserResponse:
    """
    Return the user identified by the ``x-user-id`` header.

    Raises:
        UnauthorizedException: Header missing or not an integer
        NotFoundException: No such user
        InternalErrorException: Store failure
    """
    try:
        user = await UserService.get_user_by_id(db, user_id)
    except Exception as e:
        logger.error("user_lookup_failed", user_id=user_id, error=str(e), exc_info=e)
        raise InternalErrorException() from e

    if user is None:
        raise NotFoundException("User not found")

    return UserResponse.model_validate(user)


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register with email and password",
)
async def register(user_data: UserCreate, db: DatabaseSession) -> UserResponse:
    """Create an account. Duplicate emails are rejected with 409."""
    user = await AuthService.register(db, user_data)
    return UserResponse.model_validate(user)


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="Email/password login",
)
async def login(
    credentials: LoginRequest,
    request: Request,
    response: Response,
    db: DatabaseSession,
    rate_limiter: RateLimiterDep,
) -> LoginResponse:
    """
    Exchange credentials for an access token and a refresh token.

    A session cookie is set alongside the token pair. Each client address gets
    a limited number of attempts per window.
    """
    ip = client_ip(request)
    if not rate_limiter.check_rate_limit(
        f"login:{ip}", settings.login_rate_limit, settings.login_rate_window
    ):
        logger.warning("login_rate_limited", client=ip)
        raise RateLimitException()

    user, tokens, session = await AuthService.login(db, credentials)

    response.set_cookie(
        SESSION_COOKIE,
        session["id"],
        max_age=settings.session_expire_hours * 3600,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )

    return LoginResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        token_type=tokens.token_type,
        user=UserResponse.model_validate(user),
    )


@router.post(
    "/refresh",
    response_model=Token,
    status_code=status.HTTP_200_OK,
    summary="Rotate refresh token",
)
async def refresh_token(request: TokenRefresh, db: DatabaseSession) -> Token:
    """Consume a refresh token and return a new token pair."""
    return await AuthService.refresh(db, request.refresh_token)


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Logout and revoke tokens",
)
async def logout(
    request: TokenRefresh,
    db: DatabaseSession,
    session_id: Annotated[str | None, Cookie(alias=SESSION_COOKIE)] = None,
) -> Response:
    """Revoke the refresh token and close the session cookie."""
    await AuthService.logout(db, request.refresh_token, session_id)
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(SESSION_COOKIE)
    return response


@router.post(
    "/2fa/setup",
    response_model=TwoFactorSetup,
    status_code=status.HTTP_200_OK,
    summary="Issue a TOTP secret",
)
async def setup_two_factor(current_user: CurrentUser, db: DatabaseSession) -> TwoFactorSetup:
    """Issue a new secret for the signed-in user. 2FA stays off until verified."""
    return await AuthService.setup_two_factor(db, current_user)


@router.post(
    "/2fa/verify",
    status_code=status.HTTP_200_OK,
    summary="Confirm a TOTP code and enable 2FA",
)
async def verify_two_factor(
    payload: TwoFactorVerify, current_user: CurrentUser, db: DatabaseSession
) -> dict[str, str]:
    """Enable 2FA once the user proves their authenticator produces valid codes."""
    await AuthService.enable_two_factor(db, current_user, payload.token)
    return {"message": "2FA enabled successfully"}
