"""Tests for registration, login, token rotation and logout."""

from unittest.mock import MagicMock

import pyotp
import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictException
from app.core.redis_client import RateLimiter
from app.core.security import decode_access_token, verify_password
from app.dependencies import get_rate_limiter
from app.main import app
from app.models.users import refresh_tokens
from app.schemas.users import UserCreate
from app.services.session_service import SessionService
from app.services.user_service import UserService


TEST_PASSWORD = "correct-horse-battery"  # pragma: allowlist secret


async def _login(client: AsyncClient, email: str = "a@b.com", password: str = TEST_PASSWORD):
    return await client.post("/api/auth/login", json={"email": email, "password": password})


async def _refresh_token_exists(db: AsyncSession, token: str) -> bool:
    result = await db.execute(select(refresh_tokens.c.id).where(refresh_tokens.c.id == token))
    return result.first() is not None


def _wrong_code(secret: str) -> str:
    totp = pyotp.TOTP(secret)
    return next(c for c in ("000000", "111111", "222222") if not totp.verify(c, valid_window=2))


@pytest.mark.asyncio
async def test_register_user(client: AsyncClient, db_session: AsyncSession):
    """Registration stores a hashed password and returns the public projection."""
    response = await client.post(
        "/api/auth/register",
        json={"email": "New.Buyer@Traffboard.com", "password": "s3cure-enough"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "new.buyer@traffboard.com"
    assert data["isVerified"] is False
    assert data["twoFactorEnabled"] is False
    assert "password" not in response.text.lower()

    stored = await UserService.get_user_by_email(db_session, "new.buyer@traffboard.com")
    assert stored is not None
    assert stored["password_hash"] != "s3cure-enough"
    assert verify_password("s3cure-enough", stored["password_hash"])


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient, test_user: dict):
    """Registering an existing email is a conflict."""
    response = await client.post(
        "/api/auth/register",
        json={"email": "a@b.com", "password": "another-password"},
    )

    assert response.status_code == 409
    assert response.json() == {"error": "Email already registered"}


@pytest.mark.asyncio
async def test_register_short_password(client: AsyncClient):
    """Passwords under 8 characters fail validation."""
    response = await client.post(
        "/api/auth/register",
        json={"email": "short@traffboard.com", "password": "1234"},
    )

    assert response.status_code == 422
    assert response.json()["error"] == "Validation failed"


@pytest.mark.asyncio
async def test_login_success(client: AsyncClient, db_session: AsyncSession, test_user: dict):
    """Login returns a token pair, the user and a session cookie."""
    response = await _login(client)

    assert response.status_code == 200
    data = response.json()
    assert data["tokenType"] == "bearer"
    assert data["user"]["id"] == 42
    assert data["user"]["email"] == "a@b.com"

    payload = decode_access_token(data["accessToken"])
    assert payload is not None
    assert payload["sub"] == "42"

    assert await _refresh_token_exists(db_session, data["refreshToken"])

    session_id = response.cookies.get("session_id")
    assert session_id
    assert await SessionService.get_session(db_session, session_id) is not None


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, test_user: dict):
    """A bad password is rejected without saying which part was wrong."""
    response = await _login(client, password="not-the-password")

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials"}


@pytest.mark.asyncio
async def test_login_unknown_email(client: AsyncClient, test_user: dict):
    """An unknown email gets the same answer as a bad password."""
    response = await _login(client, email="nobody@traffboard.com")

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials"}


@pytest.mark.asyncio
async def test_login_requires_two_factor_code(
    client: AsyncClient, db_session: AsyncSession, test_user: dict
):
    """Users with 2FA enabled must send a code."""
    await UserService.update_two_factor(
        db_session, test_user["id"], test_user["two_factor_secret"], enabled=True
    )

    response = await _login(client)

    assert response.status_code == 401
    assert response.json() == {"error": "Two-factor code required"}


@pytest.mark.asyncio
async def test_refresh_rotates_token(client: AsyncClient, test_user: dict):
    """A refresh token can only be used once."""
    login = await _login(client)
    old_refresh = login.json()["refreshToken"]

    response = await client.post("/api/auth/refresh", json={"refreshToken": old_refresh})

    assert response.status_code == 200
    data = response.json()
    assert data["refreshToken"] != old_refresh
    assert decode_access_token(data["accessToken"])["sub"] == "42"

    reused = await client.post("/api/auth/refresh", json={"refreshToken": old_refresh})
    assert reused.status_code == 401
    assert reused.json() == {"error": "Invalid refresh token"}


@pytest.mark.asyncio
async def test_refresh_unknown_token(client: AsyncClient):
    """Unknown refresh tokens are rejected."""
    response = await client.post("/api/auth/refresh", json={"refreshToken": "deadbeef"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_logout_revokes_tokens(
    client: AsyncClient, db_session: AsyncSession, test_user: dict
):
    """Logout deletes the refresh token and the session."""
    login = await _login(client)
    refresh_token = login.json()["refreshToken"]
    session_id = login.cookies.get("session_id")
    client.cookies.set("session_id", session_id)

    response = await client.post("/api/auth/logout", json={"refreshToken": refresh_token})

    assert response.status_code == 204
    assert not await _refresh_token_exists(db_session, refresh_token)
    assert await SessionService.get_session(db_session, session_id) is None


@pytest.mark.asyncio
async def test_concurrent_registration_is_a_conflict(db_session: AsyncSession):
    """A duplicate that slips past the lookup is still rejected with 409."""
    user_data = UserCreate(email="race@traffboard.com", password="s3cure-enough")
    await UserService.create_user(db_session, user_data)

    with pytest.raises(ConflictException) as exc_info:
        await UserService.create_user(db_session, user_data)

    assert exc_info.value.status_code == 409
    assert exc_info.value.message == "Email already registered"
    assert await UserService.get_user_by_email(db_session, "race@traffboard.com") is not None


@pytest.mark.asyncio
async def test_login_with_valid_two_factor_code(
    client: AsyncClient, db_session: AsyncSession, test_user: dict
):
    """A current TOTP code completes the login."""
    secret = test_user["two_factor_secret"]
    await UserService.update_two_factor(db_session, test_user["id"], secret, enabled=True)

    response = await client.post(
        "/api/auth/login",
        json={
            "email": "a@b.com",
            "password": TEST_PASSWORD,
            "twoFactorCode": pyotp.TOTP(secret).now(),
        },
    )

    assert response.status_code == 200
    assert response.json()["user"]["twoFactorEnabled"] is True


@pytest.mark.asyncio
async def test_login_with_wrong_two_factor_code(
    client: AsyncClient, db_session: AsyncSession, test_user: dict
):
    """A well-formed but wrong code gets no tokens."""
    secret = test_user["two_factor_secret"]
    await UserService.update_two_factor(db_session, test_user["id"], secret, enabled=True)

    response = await client.post(
        "/api/auth/login",
        json={"email": "a@b.com", "password": TEST_PASSWORD, "twoFactorCode": _wrong_code(secret)},
    )

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid 2FA code"}
    assert "accessToken" not in response.text


@pytest.mark.asyncio
async def test_login_rate_limited(client: AsyncClient, test_user: dict):
    """The sixth attempt from one address inside the window is refused."""
    redis_client = MagicMock()
    redis_client.incr.return_value = 6
    app.dependency_overrides[get_rate_limiter] = lambda: RateLimiter(redis_client)

    response = await client.post(
        "/api/auth/login",
        json={"email": "a@b.com", "password": TEST_PASSWORD},
        headers={"x-forwarded-for": "203.0.113.9, 10.0.0.1"},
    )

    assert response.status_code == 429
    assert response.json() == {"error": "Too many attempts, try again later"}
    redis_client.incr.assert_called_once_with("traffboard:ratelimit:login:203.0.113.9")


@pytest.mark.asyncio
async def test_login_first_attempt_starts_window(client: AsyncClient, test_user: dict):
    """The first attempt opens a 15 minute window and goes through."""
    redis_client = MagicMock()
    redis_client.incr.return_value = 1
    app.dependency_overrides[get_rate_limiter] = lambda: RateLimiter(redis_client)

    response = await _login(client)

    assert response.status_code == 200
    redis_client.expire.assert_called_once()
    assert redis_client.expire.call_args.args[1] == 900


@pytest.mark.asyncio
async def test_refresh_token_redeemed_once(db_session: AsyncSession, test_user: dict):
    """Consuming a refresh token twice only succeeds the first time."""
    token = await SessionService.create_refresh_token(db_session, test_user["id"])

    assert await SessionService.consume_refresh_token(db_session, token["id"]) == 42
    assert await SessionService.consume_refresh_token(db_session, token["id"]) is None


@pytest.mark.asyncio
async def test_expired_refresh_token_rejected(
    client: AsyncClient, db_session: AsyncSession, test_user: dict
):
    """Expired refresh tokens cannot be rotated."""
    token = await SessionService.create_refresh_token(
        db_session, test_user["id"], expires_in_days=-1
    )

    response = await client.post("/api/auth/refresh", json={"refreshToken": token["id"]})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid refresh token"}


@pytest.mark.asyncio
async def test_two_factor_setup_requires_credentials(client: AsyncClient, test_user: dict):
    """No Bearer token and no session cookie means 401."""
    response = await client.post("/api/auth/2fa/setup")

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


@pytest.mark.asyncio
async def test_two_factor_setup_rejects_bad_token(client: AsyncClient, test_user: dict):
    """A forged or expired access token is rejected."""
    response = await client.post(
        "/api/auth/2fa/setup", headers={"Authorization": "Bearer not-a-jwt"}
    )

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid token"}


@pytest.mark.asyncio
async def test_two_factor_setup_and_verify(
    client: AsyncClient, db_session: AsyncSession, test_user: dict
):
    """Setup issues a secret and verification with a valid code enables 2FA."""
    login = await _login(client)
    headers = {"Authorization": f"Bearer {login.json()['accessToken']}"}

    setup = await client.post("/api/auth/2fa/setup", headers=headers)

    assert setup.status_code == 200
    data = setup.json()
    secret = data["secret"]
    assert data["manualEntryKey"] == secret
    assert data["otpauthUrl"].startswith("otpauth://totp/")
    assert "issuer=Traffboard" in data["otpauthUrl"]

    stored = await UserService.get_user_by_id(db_session, 42)
    assert stored["two_factor_secret"] == secret
    assert stored["two_factor_enabled"] is False

    wrong = await client.post(
        "/api/auth/2fa/verify", json={"token": _wrong_code(secret)}, headers=headers
    )
    assert wrong.status_code == 400
    assert wrong.json() == {"error": "Invalid 2FA code"}

    verified = await client.post(
        "/api/auth/2fa/verify", json={"token": pyotp.TOTP(secret).now()}, headers=headers
    )
    assert verified.status_code == 200
    assert verified.json() == {"message": "2FA enabled successfully"}

    stored = await UserService.get_user_by_id(db_session, 42)
    assert stored["two_factor_enabled"] is True


@pytest.mark.asyncio
async def test_two_factor_verify_without_secret(
    client: AsyncClient, db_session: AsyncSession, test_user: dict
):
    """Verifying before any secret was issued is a bad request."""
    await UserService.update_two_factor(db_session, test_user["id"], None, enabled=False)
    login = await _login(client)

    response = await client.post(
        "/api/auth/2fa/verify",
        json={"token": "123456"},
        headers={"Authorization": f"Bearer {login.json()['accessToken']}"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Setup 2FA first"}


@pytest.mark.asyncio
async def test_two_factor_setup_with_session_cookie(client: AsyncClient, test_user: dict):
    """A live session cookie works in place of a Bearer token."""
    login = await _login(client)
    client.cookies.set("session_id", login.cookies.get("session_id"))

    response = await client.post("/api/auth/2fa/setup")

    assert response.status_code == 200
    assert response.json()["secret"]


@pytest.mark.asyncio
async def test_closed_session_cookie_rejected(client: AsyncClient, test_user: dict):
    """After logout the session cookie no longer authenticates."""
    login = await _login(client)
    session_id = login.cookies.get("session_id")
    client.cookies.set("session_id", session_id)
    await client.post("/api/auth/logout", json={"refreshToken": login.json()["refreshToken"]})
    client.cookies.set("session_id", session_id)

    response = await client.post("/api/auth/2fa/setup")

    assert response.status_code == 401
