"""Persistence demo: one entity, one repository, two ways to provision the schema."""
from persistence_demo.app import Application
from persistence_demo.config import GenerationMode, ProvisioningSettings, Settings
from persistence_demo.errors import (
    ConstraintViolation,
    LedgerError,
    PersistenceError,
    ProvisioningError,
    SchemaDriftError,
    StoreConnectionError,
)
from persistence_demo.models import Record
from persistence_demo.repository import RecordRepository

__all__ = [
    "Application",
    "ConstraintViolation",
    "GenerationMode",
    "LedgerError",
    "PersistenceError",
    "ProvisioningError",
    "ProvisioningSettings",
    "Record",
    "RecordRepository",
    "SchemaDriftError",
    "Settings",
    "StoreConnectionError",
]
