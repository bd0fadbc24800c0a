"""Alembic environment for persistence_demo.

Provisioning passes an already-open connection through
``config.attributes["connection"]``; the ``alembic`` command line falls back
to an engine built from :class:`persistence_demo.config.Settings`.
Every applied revision is also written to the change ledger.
"""
from __future__ import annotations

import asyncio
import logging
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection

from persistence_demo.config import Settings
from persistence_demo.database import create_engine
from persistence_demo.ledger import ChangeLedger, include_name
from persistence_demo.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

logger = logging.getLogger("persistence_demo.migrations")

target_metadata = Base.metadata


def _track_revision(ctx, step, heads, run_args) -> None:
    """``on_version_apply`` hook keeping ``schema_changelog`` in step with Alembic."""
    if not step.is_migration:
        return
    ledger = ChangeLedger(ctx.connection)
    if step.is_upgrade:
        ledger.record(step.up_revision_id, step.up_revision.path)
    else:
        ledger.forget(step.up_revision_id)


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of touching a database."""
    url = Settings().database.url.render_as_string(hide_password=False)
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        include_name=include_name,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        include_name=include_name,
        compare_type=True,
        render_as_batch=connection.dialect.name == "sqlite",
        on_version_apply=_track_revision,
    )

    with context.begin_transaction():
        ChangeLedger(connection).ensure()
        context.run_migrations()


async def run_async_migrations() -> None:
    engine = create_engine(Settings().database)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(do_run_migrations)
            await connection.commit()
    finally:
        await engine.dispose()


def run_migrations_online() -> None:
    connection = config.attributes.get("connection")
    if connection is None:
        asyncio.run(run_async_migrations())
    else:
        do_run_migrations(connection)


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
