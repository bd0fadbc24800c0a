"""Shared fixtures for persistence_demo tests."""
from __future__ import annotations

import functools
from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio

from persistence_demo.app import Application
from persistence_demo.config import GenerationMode, ProvisioningSettings, Settings
from persistence_demo.testing import DatabaseFixture

StartApp = Callable[[Settings], Awaitable[Application]]


def make_settings(
    database: DatabaseFixture,
    *,
    migrations_enabled: bool,
    generation: GenerationMode,
) -> Settings:
    """Settings wired to a disposable database, ignoring any local .env file."""
    return Settings(
        _env_file=None,
        database=database.connection_params(),
        provisioning=ProvisioningSettings(
            migrations_enabled=migrations_enabled,
            generation=generation,
        ),
    )


@pytest.fixture
def derive_settings(database: DatabaseFixture) -> Settings:
    """Derive-from-model: no migrations, schema re-created from the entity."""
    return make_settings(database, migrations_enabled=False, generation=GenerationMode.CREATE)


@pytest.fixture
def migrate_settings(database: DatabaseFixture) -> Settings:
    """Apply-migrations: Alembic upgrade to head, then validate."""
    return make_settings(database, migrations_enabled=True, generation=GenerationMode.VALIDATE)


@pytest_asyncio.fixture
async def start_app() -> AsyncGenerator[StartApp, None]:
    """Start applications on demand; every one of them is closed after the test."""
    apps: list[Application] = []

    async def _start(settings: Settings) -> Application:
        app = Application(settings)
        apps.append(app)
        return await app.start()

    yield _start

    for app in apps:
        await app.close()


@pytest_asyncio.fixture
async def derived_app(start_app: StartApp, derive_settings: Settings) -> Application:
    """Application on a schema freshly generated from the model (empty table)."""
    return await start_app(derive_settings)


@pytest.fixture
def settings_factory(database: DatabaseFixture) -> Callable[..., Settings]:
    """Build settings for the class database with arbitrary provisioning flags."""
    return functools.partial(make_settings, database)
