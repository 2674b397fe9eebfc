"""Script to initialize the database without Alembic (local development)."""

import asyncio

from app.database import engine
from app.models.dimensions import metadata as dimensions_metadata
from app.models.users import metadata as users_metadata


async def init_db() -> None:
    """Initialize the database by creating all tables."""
    async with engine.begin() as conn:
        await conn.run_sync(users_metadata.create_all)
        await conn.run_sync(dimensions_metadata.create_all)

    await engine.dispose()
    print("✓ Database initialized successfully!")


if __name__ == "__main__":
    asyncio.run(init_db())
