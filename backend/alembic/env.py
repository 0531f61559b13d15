"""
Migrations for the programming schema: programs, slots, applications and bookings.

The database URL comes from Settings.DATABASE_URL_SYNC unless one is passed
with ``alembic -x url=...``. Autogenerate compares against stagebook.models,
whose partial unique indexes guard the one-confirmed-booking-per-slot rule.
"""

from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context

from stagebook.db.base import Base
from stagebook.models import ProgramRow, SlotRow, ApplicationRow, BookingRow  # noqa: F401 - registers the tables on Base.metadata
from stagebook.core.config import get_settings

config = context.config

url = context.get_x_argument(as_dictionary=True).get("url") or get_settings().DATABASE_URL_SYNC
config.set_main_option("sqlalchemy.url", url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit the programming schema as a SQL script."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
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
        # SQLite cannot ALTER most constraints in place
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
