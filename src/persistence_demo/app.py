"""Explicit application wiring.

``Application`` builds the engine, provisions the schema and only then
exposes the repository::

    async with Application(Settings()) as app:
        await app.repository.save(Record(name="chris", age=34))
"""
from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from persistence_demo.config import Settings
from persistence_demo.database import create_engine, create_session_factory
from persistence_demo.provisioning import ProvisioningReport, SchemaProvisioner
from persistence_demo.repository import RecordRepository

logger = logging.getLogger(__name__)


class Application:
    """Owns the engine, the provisioner and the repository for one process."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.engine: AsyncEngine | None = None
        self.provisioner: SchemaProvisioner | None = None
        self.report: ProvisioningReport | None = None
        self._repository: RecordRepository | None = None

    @property
    def repository(self) -> RecordRepository:
        if self._repository is None:
            raise RuntimeError("Application not started; the schema is not provisioned yet")
        return self._repository

    async def start(self) -> Application:
        """Create the engine and provision the schema, disposing the engine on failure."""
        self.engine = create_engine(self.settings.database)
        self.provisioner = SchemaProvisioner(self.engine, self.settings.provisioning)
        try:
            self.report = await self.provisioner.provision()
        except Exception:
            await self.close()
            raise
        self._repository = RecordRepository(create_session_factory(self.engine))
        logger.info(
            "Application ready (strategy=%s, applied=%s)",
            self.report.strategy,
            self.report.applied_revisions,
        )
        return self

    async def close(self) -> None:
        self._repository = None
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None

    async def __aenter__(self) -> Application:
        return await self.start()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
