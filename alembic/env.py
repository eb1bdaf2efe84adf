"""Alembic migration environment for EcoConsole Core.

The database URL always comes from ``DATABASE_URL`` via the application
settings, never from ``alembic.ini``.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from ecoconsole_core.config import get_settings
from ecoconsole_core.domain.models import Base

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

DATABASE_URL = get_settings().database_url
COMPARE_OPTIONS = {"compare_type": True, "compare_server_default": True}


def run_offline() -> None:
    """Emit the migration SQL to stdout instead of executing it."""
    context.configure(
        url=DATABASE_URL,
        target_metadata=Base.metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **COMPARE_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    """Apply migrations over a short-lived, unpooled connection."""
    engine = create_engine(DATABASE_URL, poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            context.configure(
                connection=connection,
                target_metadata=Base.metadata,
                **COMPARE_OPTIONS,
            )
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
