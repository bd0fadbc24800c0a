"""Schema provisioning: derive the schema from the model, or migrate and validate.

Two strategies, chosen by :class:`~persistence_demo.config.ProvisioningSettings`:

* **derive-from-model** (``migrations_enabled=False, generation=create``):
  drop and re-create the entity tables from ``Base.metadata``.
* **apply-migrations** (``migrations_enabled=True``): verify the change
  ledger, upgrade to the Alembic head, then validate the result against the
  entity metadata.

``generation=validate`` without migrations only runs the validation step.
A provisioner moves ``UNPROVISIONED -> PROVISIONED -> READY``; any failure
leaves it ``FATAL`` for good.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from alembic import command
from alembic.autogenerate import compare_metadata
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import MetaData
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine

from persistence_demo.config import GenerationMode, ProvisioningSettings
from persistence_demo.database import translate_store_errors
from persistence_demo.errors import ProvisioningError, SchemaDriftError
from persistence_demo.ledger import ChangeLedger, include_name
from persistence_demo.models import Base

logger = logging.getLogger(__name__)

SCRIPT_LOCATION = "persistence_demo:migrations"


class ProvisioningState(str, Enum):
    UNPROVISIONED = "unprovisioned"
    PROVISIONED = "provisioned"
    READY = "ready"
    FATAL = "fatal"


@dataclass
class ProvisioningReport:
    """What a provisioning run did."""

    strategy: str
    applied_revisions: list[str] = field(default_factory=list)
    validated: bool = False


def alembic_config(connection: Connection | None = None) -> Config:
    """Build an Alembic config pointing at the packaged migration scripts.

    When ``connection`` is given, ``env.py`` runs on it instead of opening
    its own engine.
    """
    config = Config()
    config.set_main_option("script_location", SCRIPT_LOCATION)
    if connection is not None:
        config.attributes["connection"] = connection
    return config


def create_schema(connection: Connection, metadata: MetaData = Base.metadata) -> None:
    """Drop and re-create every table declared in ``metadata``."""
    metadata.drop_all(connection)
    metadata.create_all(connection)
    logger.info("Created schema from model: %s", ", ".join(sorted(metadata.tables)))


def apply_migrations(connection: Connection) -> list[str]:
    """Verify the ledger and upgrade to head.

    Returns:
        Revision ids applied by this call, in execution order.
    """
    config = alembic_config(connection)
    ledger = ChangeLedger(connection)
    ledger.ensure()
    ledger.verify(ScriptDirectory.from_config(config))

    already_applied = {entry.revision for entry in ledger.entries()}
    command.upgrade(config, "head")
    applied = [
        entry.revision for entry in ledger.entries() if entry.revision not in already_applied
    ]
    if applied:
        logger.info("Applied %d migration(s): %s", len(applied), ", ".join(applied))
    else:
        logger.info("Schema already at head; no migrations applied")
    return applied


def schema_differences(connection: Connection, metadata: MetaData = Base.metadata) -> list:
    """Alembic autogenerate diff between the live schema and ``metadata``."""
    context = MigrationContext.configure(
        connection,
        opts={"include_name": include_name, "compare_type": True},
    )
    return compare_metadata(context, metadata)


def validate_schema(connection: Connection, metadata: MetaData = Base.metadata) -> None:
    """Raise :class:`SchemaDriftError` unless the live schema matches ``metadata``."""
    differences = schema_differences(connection, metadata)
    if differences:
        for diff in differences:
            logger.warning("Schema drift: %r", diff)
        raise SchemaDriftError(differences)
    logger.info("Schema validated against model; no drift")


class SchemaProvisioner:
    """Runs the configured provisioning strategy once per process.

    Args:
        engine: Engine for the target store.
        settings: Strategy flags.
        metadata: Entity metadata to create or validate against.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        settings: ProvisioningSettings,
        metadata: MetaData = Base.metadata,
    ) -> None:
        self._engine = engine
        self._settings = settings
        self._metadata = metadata
        self._report: ProvisioningReport | None = None
        self.state = ProvisioningState.UNPROVISIONED

    @property
    def strategy(self) -> str:
        if self._settings.migrations_enabled:
            return "apply-migrations"
        if self._settings.generation is GenerationMode.CREATE:
            return "derive-from-model"
        if self._settings.generation is GenerationMode.VALIDATE:
            return "validate-only"
        return "none"

    @property
    def validation_required(self) -> bool:
        return (
            self._settings.migrations_enabled
            or self._settings.generation is GenerationMode.VALIDATE
        )

    async def provision(self) -> ProvisioningReport:
        """Bring the schema to the ready state.

        Raises:
            SchemaDriftError: the schema does not match the model.
            LedgerError: the ledger disagrees with the migration scripts.
            ProvisioningError: a previous run already failed.
        """
        if self.state is ProvisioningState.FATAL:
            raise ProvisioningError("Provisioning previously failed; restart required")
        if self.state is ProvisioningState.READY and self._report is not None:
            return self._report

        logger.info("Provisioning schema (strategy=%s)", self.strategy)
        try:
            with translate_store_errors():
                self._report = await self._run()
        except Exception:
            self.state = ProvisioningState.FATAL
            logger.error("Provisioning failed (strategy=%s)", self.strategy)
            raise
        self.state = ProvisioningState.READY
        return self._report

    async def _run(self) -> ProvisioningReport:
        report = ProvisioningReport(strategy=self.strategy)

        async with self._engine.begin() as connection:
            if self._settings.migrations_enabled:
                report.applied_revisions = await connection.run_sync(apply_migrations)
            elif self._settings.generation is GenerationMode.CREATE:
                await connection.run_sync(create_schema, self._metadata)
        self.state = ProvisioningState.PROVISIONED

        if self.validation_required:
            async with self._engine.connect() as connection:
                await connection.run_sync(validate_schema, self._metadata)
            report.validated = True
        return report
