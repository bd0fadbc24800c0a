"""Error taxonomy and driver-error translation."""
from __future__ import annotations

import pytest
from pydantic import SecretStr
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError

from persistence_demo.app import Application
from persistence_demo.config import DatabaseSettings, GenerationMode, ProvisioningSettings, Settings
from persistence_demo.database import translate_store_errors
from persistence_demo.errors import (
    ConstraintViolation,
    PersistenceError,
    ProvisioningError,
    SchemaDriftError,
    StoreConnectionError,
)


class TestTaxonomy:
    def test_drift_error_lists_differences(self) -> None:
        error = SchemaDriftError([("add_table", "records"), ("remove_column", "nickname")])
        assert isinstance(error, ProvisioningError)
        assert len(error.differences) == 2
        assert "2 difference(s)" in str(error)
        assert "nickname" in str(error)

    def test_store_connection_error_is_a_connection_error(self) -> None:
        error = StoreConnectionError("down")
        assert isinstance(error, ConnectionError)
        assert isinstance(error, PersistenceError)


class TestTranslateStoreErrors:
    def test_integrity_error_becomes_constraint_violation(self) -> None:
        original = IntegrityError("INSERT ...", {}, Exception("duplicate key value"))
        with pytest.raises(ConstraintViolation, match="duplicate key value") as excinfo:
            with translate_store_errors():
                raise original
        assert excinfo.value.__cause__ is original

    def test_os_error_becomes_store_connection_error(self) -> None:
        with pytest.raises(StoreConnectionError):
            with translate_store_errors():
                raise ConnectionRefusedError(111, "Connection refused")

    def test_invalidated_connection_becomes_store_connection_error(self) -> None:
        original = OperationalError("SELECT 1", {}, Exception("server closed"), connection_invalidated=True)
        with pytest.raises(StoreConnectionError):
            with translate_store_errors():
                raise original

    def test_other_driver_errors_propagate_unchanged(self) -> None:
        original = ProgrammingError("SELECT nope", {}, Exception("syntax error"))
        with pytest.raises(ProgrammingError) as excinfo:
            with translate_store_errors():
                raise original
        assert excinfo.value is original


class TestUnreachableStore:
    """Startup against a store nobody listens on fails without retrying."""

    async def test_startup_raises_store_connection_error(self) -> None:
        settings = Settings(
            _env_file=None,
            database=DatabaseSettings(
                host="127.0.0.1",
                port=1,
                name="missing",
                username="nobody",
                password=SecretStr("nothing"),
            ),
            provisioning=ProvisioningSettings(
                migrations_enabled=False, generation=GenerationMode.CREATE
            ),
        )
        app = Application(settings)

        with pytest.raises(StoreConnectionError):
            await app.start()

        assert app.engine is None
        with pytest.raises(RuntimeError):
            app.repository
