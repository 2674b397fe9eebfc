"""Alembic environment."""

from logging.config import fileConfig

from sqlalchemy import MetaData

from alembic import context
from app.config import settings
from app.database import get_sync_engine
from app.models.dimensions import metadata as dimensions_metadata
from app.models.users import metadata as users_metadata

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Combine all metadata
target_metadata = MetaData()
for source in (users_metadata, dimensions_metadata):
    for table in source.tables.values():
        table.to_metadata(target_metadata)


def run_migrations_offline() -> None:
    """Emit SQL without a live connection."""
    context.configure(
        url=settings.database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations against the configured database."""
    connectable = get_sync_engine()

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
