"""
Alembic migration environment — reads the database URL from insurtrack settings.

Migrations run on a SYNC engine (psycopg2) although the API uses
asyncpg at runtime. Row-level security objects (roles, functions,
policies) live in hand-written revisions; autogenerate only sees tables.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from insurtrack.core.config import settings
from insurtrack.db.models import Base  # noqa: F401  registers every model on Base.metadata

config = context.config

sync_url = settings.DATABASE_URL_SYNC
config.set_main_option("sqlalchemy.url", sync_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit SQL to stdout without a database connection."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations over a NullPool sync engine."""
    connectable = create_engine(sync_url, poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )
        with context.begin_transaction():
            context.run_migrations()
    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
