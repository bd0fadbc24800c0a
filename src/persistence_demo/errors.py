"""Error taxonomy for the persistence layer and schema provisioning.

Save-time failures (:class:`ConstraintViolation`, :class:`StoreConnectionError`)
reach the repository caller; provisioning failures (:class:`SchemaDriftError`,
:class:`LedgerError`) abort application startup. Nothing here is retried.
"""
from __future__ import annotations


class PersistenceError(Exception):
    """Base class for every error raised by persistence_demo."""


class ConstraintViolation(PersistenceError):
    """A write broke a storage-level constraint (duplicate id/name, NULL column).

    The originating driver error is kept as ``__cause__``.
    """


class StoreConnectionError(PersistenceError, ConnectionError):
    """The relational store could not be reached."""


class ProvisioningError(PersistenceError):
    """Schema provisioning failed; the process must be fixed and restarted."""


class SchemaDriftError(ProvisioningError):
    """The live schema does not match the declared entity metadata."""

    def __init__(self, differences: list[object]) -> None:
        self.differences = list(differences)
        lines = "\n".join(f"  - {diff!r}" for diff in self.differences)
        super().__init__(
            f"Schema drift detected ({len(self.differences)} difference(s)):\n{lines}"
        )


class LedgerError(ProvisioningError):
    """The change ledger disagrees with the migration scripts on disk."""
