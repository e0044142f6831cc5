"""Alembic environment for the reporting database.

Only the metric tables and the run summary are managed here; the source
tables belong to the upstream export and are never migrated.
"""

import os
import sys
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool, text

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.config import settings
from src.models.reporting import ReportingBase, RPT_SCHEMA

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = ReportingBase.metadata
MANAGED_TABLES = frozenset(target_metadata.tables)


def _database_url() -> str:
    """alembic.ini wins when it sets a URL; otherwise the REPORTING_DB_* settings."""
    return config.get_main_option("sqlalchemy.url") or settings.reporting_db_url_sync


def _include_object(obj, name, type_, reflected, compare_to) -> bool:
    # Autogenerate must not propose dropping tables it does not own.
    if type_ == "table":
        return name in MANAGED_TABLES
    return True


def _configure(**options) -> None:
    context.configure(
        target_metadata=target_metadata,
        include_schemas=True,
        include_object=_include_object,
        version_table_schema=RPT_SCHEMA,
        **options,
    )


def run_migrations_offline() -> None:
    _configure(url=_database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(_database_url(), poolclass=pool.NullPool)

    with engine.connect() as connection:
        # Metric tables and the version table both live in the reporting schema.
        connection.execute(text(f"CREATE SCHEMA IF NOT EXISTS {RPT_SCHEMA}"))
        connection.commit()

        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
