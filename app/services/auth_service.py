"""Authentication service for password login and token rotation."""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestException, ConflictException, UnauthorizedException
from app.core.security import create_access_token, verify_password
from app.core.two_factor import generate_secret, provisioning_uri, verify_code
from app.schemas.auth import LoginRequest, Token, TwoFactorSetup
from app.schemas.users import UserCreate
from app.services.session_service import SessionService
from app.services.user_service import UserService

logger = structlog.get_logger()


class AuthService:
    """Authentication service for handling credentials and token pairs."""

    @staticmethod
    async def register(db: AsyncSession, user_data: UserCreate) -> dict:
        """
        Register a new user.

        Raises:
            ConflictException: If the email is already taken
        """
        existing = await UserService.get_user_by_email(db, user_data.email)
        if existing:
            raise ConflictException("Email already registered")

        user = await UserService.create_user(db, user_data)
        logger.info("user_registered", user_id=user["id"])
        return user

    @staticmethod
    async def authenticate(db: AsyncSession, credentials: LoginRequest) -> dict:
        """
        Check email and password.

        Args:
            db: Database session
            credentials: Login payload

        Returns:
            The matching user

        Raises:
            UnauthorizedException: On unknown email, wrong password, or a missing
                or wrong 2FA code
        """
        user = await UserService.get_user_by_email(db, credentials.email)
        if not user or not verify_password(credentials.password, user["password_hash"]):
            logger.info("login_rejected", email=credentials.email)
            raise UnauthorizedException("Invalid credentials")

        if user["two_factor_enabled"]:
            if not credentials.two_factor_code:
                raise UnauthorizedException("Two-factor code required")
            if not verify_code(credentials.two_factor_code, user["two_factor_secret"]):
                logger.info("two_factor_rejected", user_id=user["id"])
                raise UnauthorizedException("Invalid 2FA code")

        return user

    @staticmethod
    async def issue_tokens(db: AsyncSession, user_id: int) -> Token:
        """Create an access token and a stored refresh token for a user."""
        refresh = await SessionService.create_refresh_token(db, user_id)
        return Token(
            access_token=create_access_token(user_id),
            refresh_token=refresh["id"],
        )

    @staticmethod
    async def login(db: AsyncSession, credentials: LoginRequest) -> tuple[dict, Token, dict]:
        """
        Authenticate and open a session.

        Returns:
            Tuple of (user, token pair, session)
        """
        user = await AuthService.authenticate(db, credentials)
        tokens = await AuthService.issue_tokens(db, user["id"])
        session = await SessionService.create_session(db, user["id"])
        logger.info("user_logged_in", user_id=user["id"])
        return user, tokens, session

    @staticmethod
    async def refresh(db: AsyncSession, refresh_token: str) -> Token:
        """
        Rotate a refresh token.

        The presented token is consumed; a fresh pair is returned.

        Raises:
            UnauthorizedException: If the token is unknown or expired
        """
        user_id = await SessionService.consume_refresh_token(db, refresh_token)
        if user_id is None:
            raise UnauthorizedException("Invalid refresh token")

        return await AuthService.issue_tokens(db, user_id)

    @staticmethod
    async def logout(db: AsyncSession, refresh_token: str, session_id: str | None = None) -> None:
        """Revoke a refresh token and close the session, if any."""
        await SessionService.delete_refresh_token(db, refresh_token)
        if session_id:
            await SessionService.delete_session(db, session_id)

    @staticmethod
    async def setup_two_factor(db: AsyncSession, user: dict) -> TwoFactorSetup:
        """
        Generate and store a new TOTP secret without enabling 2FA.

        The secret only takes effect once a code from it has been verified.
        """
        secret = generate_secret()
        await UserService.update_two_factor(
            db, user["id"], secret, enabled=user["two_factor_enabled"]
        )
        logger.info("two_factor_secret_issued", user_id=user["id"])
        return TwoFactorSetup(
            secret=secret,
            otpauth_url=provisioning_uri(secret, user["email"]),
            manual_entry_key=secret,
        )

    @staticmethod
    async def enable_two_factor(db: AsyncSession, user: dict, code: str) -> None:
        """
        Turn on 2FA after checking a code against the stored secret.

        Raises:
            BadRequestException: No secret issued yet, or the code does not match
        """
        secret = user["two_factor_secret"]
        if not secret:
            raise BadRequestException("Setup 2FA first")
        if not verify_code(code, secret):
            raise BadRequestException("Invalid 2FA code")

        await UserService.update_two_factor(db, user["id"], secret, enabled=True)
        logger.info("two_factor_enabled", user_id=user["id"])
