"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Cookie, Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import UnauthorizedException
from app.core.redis_client import CacheManager, RateLimiter, get_redis_client
from app.core.security import decode_access_token, parse_user_id
from app.database import get_db
from app.services.session_service import SessionService
from app.services.user_service import UserService

SESSION_COOKIE = "session_id"

# Missing credentials are reported through UnauthorizedException, not FastAPI's default
bearer = HTTPBearer(auto_error=False)


async def get_current_user_id(
    x_user_id: Annotated[str | None, Header(alias="x-user-id")] = None,
) -> int:
    """
    Extract the caller's user id from the ``x-user-id`` header.

    Args:
        x_user_id: Raw header value

    Returns:
        User ID

    Raises:
        UnauthorizedException: If the header is missing or not an integer
    """
    user_id = parse_user_id(x_user_id)
    if user_id is None:
        raise UnauthorizedException("Unauthorized")
    return user_id


async def get_current_user(
    db: Annotated[AsyncSession, Depends(get_db)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer)] = None,
    session_id: Annotated[str | None, Cookie(alias=SESSION_COOKIE)] = None,
) -> dict:
    """
    Resolve the signed-in user from a Bearer access token or the session cookie.

    The token wins when both are sent.

    Raises:
        UnauthorizedException: No valid credential, or the user no longer exists
    """
    user_id: int | None = None

    if credentials is not None:
        payload = decode_access_token(credentials.credentials)
        if payload is None:
            raise UnauthorizedException("Invalid token")
        user_id = parse_user_id(payload.get("sub"))
    elif session_id:
        session = await SessionService.get_session(db, session_id)
        if session is not None:
            user_id = session["user_id"]

    if user_id is None:
        raise UnauthorizedException("Unauthorized")

    user = await UserService.get_user_by_id(db, user_id)
    if user is None:
        raise UnauthorizedException("Unauthorized")
    return user


def get_cache_manager() -> CacheManager | None:
    """Cache manager for dimension listings, or None while caching is switched off."""
    if settings.dimension_cache_ttl <= 0:
        return None
    return CacheManager(get_redis_client())


def get_rate_limiter() -> RateLimiter:
    """Login throttle backed by the shared Redis client."""
    return RateLimiter(get_redis_client())


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUserId = Annotated[int, Depends(get_current_user_id)]
CurrentUser = Annotated[dict, Depends(get_current_user)]
CacheManagerDep = Annotated[CacheManager | None, Depends(get_cache_manager)]
RateLimiterDep = Annotated[RateLimiter, Depends(get_rate_limiter)]
