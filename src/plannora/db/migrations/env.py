"""Alembic environment for Plannora.

Learn: migrations target whatever PLANNORA_DATABASE_URL points at (see
plannora.config), never a URL in alembic.ini, so `alembic upgrade head`
and the running app always agree on the database. Autogenerate diffs
against the ORM metadata in plannora.db.models.

SQLite cannot ALTER most constraints in place, so batch mode is switched
on for it.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from plannora.config import settings
from plannora.db.models import Base

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)

DATABASE_URL = settings.database_url


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=Base.metadata,
        compare_type=True,
        render_as_batch=DATABASE_URL.startswith("sqlite"),
        **kwargs,
    )


def migrate_offline() -> None:
    """Print the SQL instead of executing it (`alembic upgrade --sql`)."""
    _configure(url=DATABASE_URL, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def _migrate_sync(connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def migrate_online() -> None:
    engine = create_async_engine(DATABASE_URL, poolclass=NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate_sync)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    migrate_offline()
else:
    asyncio.run(migrate_online())
