#!/usr/bin/env python3
"""
Create a dashboard user with a bcrypt-hashed password.

Usage:
    python scripts/create_user.py admin@traffboard.com
    python scripts/create_user.py admin@traffboard.com --role admin --verified

The password is prompted for; set TRAFFBOARD_USER_PASSWORD to run unattended.
"""

import argparse
import asyncio
import getpass
import os
import sys

import dotenv
from pydantic import ValidationError
from sqlalchemy import update

dotenv.load_dotenv()

from app.core.exceptions import ConflictException  # noqa: E402
from app.database import AsyncSessionLocal, engine  # noqa: E402
from app.models.users import USER_ROLES, users  # noqa: E402
from app.schemas.users import UserCreate  # noqa: E402
from app.services.auth_service import AuthService  # noqa: E402


async def create_user(email: str, password: str, role: str, verified: bool) -> dict:
    """Register the user, then apply role and verification flags."""
    async with AsyncSessionLocal() as db:
        user = await AuthService.register(db, UserCreate(email=email, password=password))
        await db.execute(
            update(users)
            .where(users.c.id == user["id"])
            .values(role=role, is_verified=verified)
        )
        await db.commit()
    await engine.dispose()
    return user


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Create a Traffboard dashboard user")
    parser.add_argument("email", help="Login email")
    parser.add_argument("--role", default="user", choices=USER_ROLES, help="Role (default: user)")
    parser.add_argument("--verified", action="store_true", help="Mark the email as verified")
    args = parser.parse_args()

    password = os.getenv("TRAFFBOARD_USER_PASSWORD") or getpass.getpass("Password: ")

    try:
        user = asyncio.run(create_user(args.email, password, args.role, args.verified))
    except ValidationError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        sys.exit(1)
    except ConflictException as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)

    print(f"✓ Created user {user['id']} ({user['email']}) with role {args.role}")


if __name__ == "__main__":
    main()
