"""Alembic environment configuration for the Aegis dashboard entity store."""

from __future__ import annotations

import logging
from logging.config import fileConfig

from sqlalchemy import create_engine, pool

from aegis_dashboard.models import entity_record  # noqa: F401
from aegis_dashboard.models.base import Base
from aegis_dashboard.utils.config import ensure_runtime_configuration, get_settings
from alembic import context  # type: ignore[import-untyped]

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)
logger = logging.getLogger("alembic.env")

target_metadata = Base.metadata

DEFAULT_DATABASE_URL = "sqlite:///./aegis_dashboard.db"


def get_database_url() -> str:
    """Return the database URL from runtime settings, validating required variables."""

    settings = get_settings()
    ensure_runtime_configuration(settings)
    return settings.database_url or DEFAULT_DATABASE_URL


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode configured with just a database URL."""

    context.configure(
        url=get_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        render_as_batch=True,
        transaction_per_migration=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode using an Engine connection."""

    connectable = create_engine(get_database_url(), poolclass=pool.NullPool)
    logger.info("Running entity store migrations")

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=True,
            transaction_per_migration=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
