"""Authentication schemas."""

from pydantic import EmailStr, Field

from app.schemas.users import CamelModel, UserResponse


class LoginRequest(CamelModel):
    """Email/password login, with an optional TOTP code."""

    email: EmailStr
    password: str
    two_factor_code: str | None = Field(default=None, min_length=6, max_length=6)


class TokenRefresh(CamelModel):
    """Token refresh / logout request schema."""

    refresh_token: str


class Token(CamelModel):
    """Access and refresh token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginResponse(Token):
    """Login response with tokens and user info."""

    user: UserResponse


class TwoFactorSetup(CamelModel):
    """Freshly issued TOTP secret for an authenticator app."""

    secret: str
    otpauth_url: str
    manual_entry_key: str


class TwoFactorVerify(CamelModel):
    """Code from the authenticator app that confirms 2FA setup."""

    token: str = Field(min_length=6, max_length=6)
