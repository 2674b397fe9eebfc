"""Persistence of login sessions and opaque refresh tokens."""

from datetime import UTC, datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.security import generate_opaque_token
from app.models.users import refresh_tokens, sessions


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _is_expired(expires_at: datetime, now: datetime) -> bool:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=UTC)
    return expires_at <= now


class SessionService:
    """Service for session and refresh token rows."""

    @staticmethod
    async def create_session(
        db: AsyncSession, user_id: int, expires_in_hours: int | None = None
    ) -> dict:
        """Create a session for a user."""
        hours = expires_in_hours or settings.session_expire_hours
        values = {
            "id": generate_opaque_token(),
            "user_id": user_id,
            "expires_at": _utcnow() + timedelta(hours=hours),
        }
        await db.execute(sessions.insert().values(**values))
        await db.commit()
        return values

    @staticmethod
    async def get_session(db: AsyncSession, session_id: str) -> dict | None:
        """Get a session if it exists and has not expired."""
        result = await db.execute(select(sessions).where(sessions.c.id == session_id))
        session = result.mappings().first()
        if not session or _is_expired(session["expires_at"], _utcnow()):
            return None
        return dict(session)

    @staticmethod
    async def delete_session(db: AsyncSession, session_id: str) -> None:
        """Delete a session."""
        await db.execute(delete(sessions).where(sessions.c.id == session_id))
        await db.commit()

    @staticmethod
    async def create_refresh_token(
        db: AsyncSession, user_id: int, expires_in_days: int | None = None
    ) -> dict:
        """Issue and store a new refresh token."""
        days = expires_in_days or settings.refresh_token_expire_days
        values = {
            "id": generate_opaque_token(),
            "user_id": user_id,
            "expires_at": _utcnow() + timedelta(days=days),
        }
        await db.execute(refresh_tokens.insert().values(**values))
        await db.commit()
        return values

    @staticmethod
    async def consume_refresh_token(db: AsyncSession, token_id: str) -> int | None:
        """
        Delete an unexpired refresh token and return its owner.

        The delete is the only check, so a token can be redeemed at most once
        even when two requests present it at the same time.
        """
        query = (
            delete(refresh_tokens)
            .where(refresh_tokens.c.id == token_id, refresh_tokens.c.expires_at > _utcnow())
            .returning(refresh_tokens.c.user_id)
        )
        result = await db.execute(query)
        user_id = result.scalar_one_or_none()
        await db.commit()
        return user_id

    @staticmethod
    async def delete_refresh_token(db: AsyncSession, token_id: str) -> None:
        """Delete a refresh token."""
        await db.execute(delete(refresh_tokens).where(refresh_tokens.c.id == token_id))
        await db.commit()
