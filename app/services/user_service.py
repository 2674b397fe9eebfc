"""User service for business logic."""

from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictException
from app.core.security import get_password_hash
from app.models.users import USER_ID_MAX, users
from app.schemas.users import UserCreate


class UserService:
    """
    Service for user operations.

    User records are always read from the database: the current-user lookup
    must never answer with a user that no longer exists.
    """

    @staticmethod
    async def get_user_by_id(db: AsyncSession, user_id: int) -> dict | None:
        """Get user by ID. Ids outside the column range cannot exist."""
        if not 0 < user_id <= USER_ID_MAX:
            return None
        query = select(users).where(users.c.id == user_id)
        result = await db.execute(query)
        user = result.mappings().first()
        return dict(user) if user else None

    @staticmethod
    async def get_user_by_email(db: AsyncSession, email: str) -> dict | None:
        """Get user by email."""
        query = select(users).where(users.c.email == email.lower())
        result = await db.execute(query)
        user = result.mappings().first()
        return dict(user) if user else None

    @staticmethod
    async def create_user(db: AsyncSession, user_data: UserCreate) -> dict:
        """
        Create a new user with a hashed password.

        Raises:
            ConflictException: If the email is taken, including by a concurrent insert
        """
        query = (
            users.insert()
            .values(
                email=user_data.email.lower(),
                password_hash=get_password_hash(user_data.password),
                is_verified=False,
                two_factor_enabled=False,
            )
            .returning(users)
        )

        try:
            result = await db.execute(query)
            user = result.mappings().first()
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            raise ConflictException("Email already registered") from e

        if not user:
            raise ValueError("Failed to create user")

        return dict(user)

    @staticmethod
    async def update_two_factor(
        db: AsyncSession, user_id: int, secret: str | None, enabled: bool
    ) -> dict | None:
        """Store the TOTP secret and flag for a user."""
        query = (
            update(users)
            .where(users.c.id == user_id)
            .values(
                two_factor_secret=secret,
                two_factor_enabled=enabled,
                updated_at=datetime.now(UTC),
            )
            .returning(users)
        )

        result = await db.execute(query)
        user = result.mappings().first()
        await db.commit()

        return dict(user) if user else None
