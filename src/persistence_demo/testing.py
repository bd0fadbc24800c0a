"""Disposable databases for tests.

A :class:`DatabaseFixture` is started once per test class, hands its
connection parameters to :class:`~persistence_demo.config.Settings` before
the application is built, and is torn down afterwards::

    with PostgresDatabase() as database:
        settings = Settings(database=database.connection_params())
"""
from __future__ import annotations

import logging
import shutil
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import SecretStr

from persistence_demo.config import DatabaseSettings

logger = logging.getLogger(__name__)


class DatabaseFixture(ABC):
    """A database instance that exists only for the duration of a test scope."""

    @abstractmethod
    def start(self) -> None: ...

    @abstractmethod
    def connection_params(self) -> DatabaseSettings: ...

    @abstractmethod
    def stop(self) -> None: ...

    def __enter__(self) -> DatabaseFixture:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


class PostgresDatabase(DatabaseFixture):
    """PostgreSQL in a throwaway container, managed by testcontainers."""

    def __init__(
        self,
        version: str = "12.4-alpine",
        dbname: str = "testing",
        username: str = "testing",
        password: str = "testing",
    ) -> None:
        self.image = f"postgres:{version}"
        self.dbname = dbname
        self.username = username
        self.password = password
        self._container = None

    def start(self) -> None:
        from testcontainers.postgres import PostgresContainer

        container = PostgresContainer(
            self.image,
            username=self.username,
            password=self.password,
            dbname=self.dbname,
        )
        container.with_command("postgres -N 500")
        container.start()
        self._container = container
        logger.info("Started %s on port %s", self.image, container.get_exposed_port(5432))

    def connection_params(self) -> DatabaseSettings:
        if self._container is None:
            raise RuntimeError("PostgresDatabase is not started")
        return DatabaseSettings(
            driver="postgresql+asyncpg",
            host=self._container.get_container_host_ip(),
            port=int(self._container.get_exposed_port(5432)),
            name=self.dbname,
            username=self.username,
            password=SecretStr(self.password),
        )

    def stop(self) -> None:
        if self._container is not None:
            self._container.stop()
            self._container = None
            logger.info("Stopped %s", self.image)


class SqliteDatabase(DatabaseFixture):
    """SQLite file in a temporary directory; needs no container runtime."""

    def __init__(self) -> None:
        self._directory: Path | None = None

    @property
    def path(self) -> Path:
        if self._directory is None:
            raise RuntimeError("SqliteDatabase is not started")
        return self._directory / "testing.db"

    def start(self) -> None:
        self._directory = Path(tempfile.mkdtemp(prefix="persistence-demo-"))

    def connection_params(self) -> DatabaseSettings:
        return DatabaseSettings(
            driver="sqlite+aiosqlite",
            host=None,
            port=None,
            name=str(self.path),
            username=None,
            password=None,
        )

    def stop(self) -> None:
        if self._directory is not None:
            shutil.rmtree(self._directory, ignore_errors=True)
            self._directory = None
