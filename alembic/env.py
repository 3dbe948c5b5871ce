"""
Alembic environment for the scan results schema.

The results database may be shared with reporting tools that own their own
tables; autogenerate only considers tables registered on `Base.metadata`.
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from db.base import Base
from db.config import load_env_files, normalize_postgres_url, resolve_database_url
from db.models import (  # noqa: F401 imports trigger Base.metadata registration
    StudyRecord,
    StudyRunLogRecord,
    StudyRunRecord,
    StudyRunResultRecord,
    StudySourceListingRecord,
)

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _database_url() -> str:
    """
    `-x db_url=...` wins, then ALEMBIC_DATABASE_URL, then the application's own resolution.
    """

    load_env_files()

    override = context.get_x_argument(as_dictionary=True).get("db_url")
    raw_url = override or os.getenv("ALEMBIC_DATABASE_URL", "").strip()
    url = normalize_postgres_url(raw_url) if raw_url else resolve_database_url()
    if not url.startswith("postgresql"):
        raise RuntimeError("Scan result migrations target PostgreSQL only.")
    return url


def _include_object(obj, name, type_, reflected, compare_to) -> bool:  # type: ignore[no-untyped-def]
    # Reflected tables with no model belong to other consumers of the database.
    if type_ == "table" and reflected and compare_to is None:
        return name in target_metadata.tables
    return True


def run_migrations_offline() -> None:
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        include_object=_include_object,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    configuration = config.get_section(config.config_ini_section, {})
    configuration["sqlalchemy.url"] = _database_url()

    connectable = engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            include_object=_include_object,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
