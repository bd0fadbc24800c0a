"""Root conftest: disposable database fixtures.

Each test class gets its own database. By default that is a SQLite file in a
temporary directory; with ``DEMO_USE_TESTCONTAINERS=true`` it is a real
PostgreSQL container started through Testcontainers.
"""
from __future__ import annotations

import os
from collections.abc import Generator

import pytest

from persistence_demo.testing import DatabaseFixture, PostgresDatabase, SqliteDatabase


def _use_testcontainers() -> bool:
    return os.getenv("DEMO_USE_TESTCONTAINERS", "false").lower() == "true"


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers to suppress PytestUnknownMarkWarning."""
    config.addinivalue_line("markers", "integration: Requires a real PostgreSQL container")
    config.addinivalue_line("markers", "provisioning: Schema provisioning strategies")
    config.addinivalue_line("markers", "repository: Repository operations against a live store")


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: list[pytest.Item],
) -> None:
    """Skip container-only tests unless Testcontainers is enabled."""
    skip_no_containers = pytest.mark.skip(
        reason="Testcontainers disabled; set DEMO_USE_TESTCONTAINERS=true"
    )
    if _use_testcontainers():
        return
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_no_containers)


# ---------------------------------------------------------------------------
# Database fixtures (class-scoped, one disposable database per test class)
# ---------------------------------------------------------------------------


@pytest.fixture(scope="class")
def database() -> Generator[DatabaseFixture, None, None]:
    """Start a disposable database for one test class.

    PostgreSQL 12.4 in a container when Testcontainers is enabled, otherwise a
    temporary SQLite file. Torn down when the class finishes.
    """
    fixture: DatabaseFixture = PostgresDatabase() if _use_testcontainers() else SqliteDatabase()
    with fixture:
        yield fixture


@pytest.fixture(scope="class")
def postgres_database() -> Generator[DatabaseFixture, None, None]:
    """Start a real PostgreSQL container for one test class.

    Only requested by tests marked ``integration``.
    """
    with PostgresDatabase() as postgres:
        yield postgres
