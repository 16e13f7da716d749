"""
Alembic migration environment for the cinema booking schema.

Migrations run over the synchronous psycopg2 URL (DATABASE_URL_SYNC); the
application itself talks to the same database through asyncpg. Pass
`-x db_url=...` to migrate a different database, e.g. a test instance.
"""

from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context

from cinema_booking.db.base import Base
from cinema_booking.models import Movie, Theater, Showtime, Booking  # noqa: F401 - Import models for autogenerate
from cinema_booking.core.config import get_settings

config = context.config
settings = get_settings()

db_url = context.get_x_argument(as_dictionary=True).get("db_url", settings.DATABASE_URL_SYNC)
# configparser treats % as interpolation; passwords may contain it
config.set_main_option("sqlalchemy.url", db_url.replace("%", "%%"))

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# Numeric precision (price, rating) and server defaults (timestamps) matter here
COMPARE_OPTIONS = {
    "compare_type": True,
    "compare_server_default": True,
}


def run_migrations_offline() -> None:
    """Emit the DDL as a SQL script for review by a DBA."""
    context.configure(
        url=db_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **COMPARE_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            transaction_per_migration=True,
            **COMPARE_OPTIONS,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
