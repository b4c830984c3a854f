"""
Alembic env.py - resolves the database URL through the application settings.

Credentials follow the same rules as the API (see app.core.config):
  1. LOCAL_DB_* variables  (when ENVIRONMENT=development)
  2. DB_HOST + DB_PASSWORD env vars
  3. AWS Secrets Manager at /backoffice/db/credentials (production)

Usage:
  # Development (local Docker Compose):
  ENVIRONMENT=development alembic upgrade head

  # Production:
  ENVIRONMENT=production alembic upgrade head
"""
import logging
import logging.config
import sys

from alembic import context
from sqlalchemy import engine_from_config, pool

from app.core.config import get_settings
from app.models.base import Base
from app.models.sequence import SequenceDefinition  # noqa: F401 - registers model
from app.models.user import User  # noqa: F401

logger = logging.getLogger("alembic.env")

config = context.config

if config.config_file_name is not None:
    logging.config.fileConfig(config.config_file_name)

try:
    config.set_main_option("sqlalchemy.url", get_settings().database_url_sync)
except RuntimeError as exc:
    logger.error("%s", exc)
    sys.exit(1)

# Migrations are hand-written SQL; metadata is only used by `alembic check`.
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit the SQL script without a DB connection."""
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
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
