"""Time-based one-time passwords for two-factor login."""

import pyotp

from app.config import settings

# Codes from two steps either side of now are accepted to absorb clock drift
VALID_WINDOW = 2


def generate_secret() -> str:
    """Create a new base32 TOTP secret."""
    return pyotp.random_base32(length=32)


def provisioning_uri(secret: str, email: str) -> str:
    """otpauth:// URI for authenticator apps."""
    return pyotp.TOTP(secret).provisioning_uri(name=email, issuer_name=settings.totp_issuer)


def verify_code(code: str | None, secret: str | None) -> bool:
    """Check a 6-digit code against a secret. Missing inputs never verify."""
    if not code or not secret:
        return False
    return pyotp.TOTP(secret).verify(code, valid_window=VALID_WINDOW)
