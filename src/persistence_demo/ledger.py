"""Checksummed change ledger for applied migrations.

Alembic itself only remembers the current head in ``alembic_version``. The
``schema_changelog`` table keeps one row per applied revision with the MD5
checksum of its script file, so an edited or missing script is caught on
the next startup instead of silently diverging between environments.

All functions here are synchronous; they run on a plain
:class:`sqlalchemy.engine.Connection`, either from Alembic's ``env.py`` or
through ``AsyncConnection.run_sync``.
"""
from __future__ import annotations

import datetime
import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path

from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from alembic.util import CommandError
from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    delete,
    func,
    insert,
    inspect,
    select,
)
from sqlalchemy.engine import Connection

from persistence_demo.errors import LedgerError

logger = logging.getLogger(__name__)

CHANGELOG_TABLE = "schema_changelog"
VERSION_TABLE = "alembic_version"
LEDGER_TABLES = frozenset({CHANGELOG_TABLE, VERSION_TABLE})

ledger_metadata = MetaData()

changelog = Table(
    CHANGELOG_TABLE,
    ledger_metadata,
    Column("revision", String(64), primary_key=True),
    Column("filename", String(255), nullable=False),
    Column("checksum", String(32), nullable=False),
    Column("order_executed", Integer, nullable=False),
    Column("applied_at", DateTime(timezone=True), nullable=False),
)


def include_name(name: str | None, type_: str, parent_names: dict[str, str | None]) -> bool:
    """Alembic ``include_name`` hook: keep bookkeeping tables out of schema comparison."""
    if type_ == "table":
        return name not in LEDGER_TABLES
    return True


def script_checksum(path: str | Path) -> str:
    """MD5 hex digest of a migration script's bytes."""
    return hashlib.md5(Path(path).read_bytes()).hexdigest()


@dataclass(frozen=True)
class ChangeEntry:
    """One applied revision as recorded in the ledger."""

    revision: str
    filename: str
    checksum: str
    order_executed: int
    applied_at: datetime.datetime


class ChangeLedger:
    """Read and write ``schema_changelog`` on an open connection."""

    def __init__(self, connection: Connection) -> None:
        self._connection = connection

    def exists(self) -> bool:
        return inspect(self._connection).has_table(CHANGELOG_TABLE)

    def ensure(self) -> None:
        """Create the ledger table if it does not exist yet."""
        ledger_metadata.create_all(self._connection, checkfirst=True)

    def entries(self) -> list[ChangeEntry]:
        """All recorded revisions in execution order."""
        rows = self._connection.execute(
            select(changelog).order_by(changelog.c.order_executed)
        ).all()
        return [
            ChangeEntry(
                revision=row.revision,
                filename=row.filename,
                checksum=row.checksum,
                order_executed=row.order_executed,
                applied_at=row.applied_at,
            )
            for row in rows
        ]

    def record(self, revision: str, path: str | Path) -> ChangeEntry:
        """Append ``revision`` to the ledger with the checksum of ``path``."""
        last = self._connection.execute(select(func.max(changelog.c.order_executed))).scalar()
        entry = ChangeEntry(
            revision=revision,
            filename=Path(path).name,
            checksum=script_checksum(path),
            order_executed=(last or 0) + 1,
            applied_at=datetime.datetime.now(datetime.timezone.utc),
        )
        self._connection.execute(
            insert(changelog).values(
                revision=entry.revision,
                filename=entry.filename,
                checksum=entry.checksum,
                order_executed=entry.order_executed,
                applied_at=entry.applied_at,
            )
        )
        logger.info("Recorded revision %s (%s) in ledger", revision, entry.checksum)
        return entry

    def forget(self, revision: str) -> None:
        """Drop ``revision`` from the ledger after a downgrade."""
        self._connection.execute(delete(changelog).where(changelog.c.revision == revision))
        logger.info("Removed revision %s from ledger", revision)

    def verify(self, scripts: ScriptDirectory) -> None:
        """Check every recorded revision against the scripts on disk.

        The ledger must also agree with ``alembic_version``: every revision
        between base and the current head needs a ledger row, and a ledger
        with rows needs a current head.

        Raises:
            LedgerError: a recorded revision (or the current Alembic head) is
                unknown, a script changed after it was applied, or the ledger
                and ``alembic_version`` disagree.
        """
        entries = self.entries()
        for entry in entries:
            script = self._lookup(scripts, entry.revision)
            actual = script_checksum(script.path)
            if actual != entry.checksum:
                raise LedgerError(
                    f"Checksum mismatch for revision {entry.revision} ({entry.filename}): "
                    f"ledger has {entry.checksum}, script is {actual}"
                )

        heads = MigrationContext.configure(self._connection).get_current_heads()
        if entries and not heads:
            raise LedgerError(
                f"Change ledger records {len(entries)} revision(s) "
                f"but {VERSION_TABLE} has no current revision"
            )

        recorded = {entry.revision for entry in entries}
        for head in heads:
            self._lookup(scripts, head)
            for script in scripts.walk_revisions("base", head):
                if script.revision not in recorded:
                    raise LedgerError(
                        f"Applied revision {script.revision} is missing from {CHANGELOG_TABLE}"
                    )

    @staticmethod
    def _lookup(scripts: ScriptDirectory, revision: str):
        try:
            script = scripts.get_revision(revision)
        except CommandError as exc:
            raise LedgerError(f"Applied revision {revision} has no migration script") from exc
        if script is None:
            raise LedgerError(f"Applied revision {revision} has no migration script")
        return script
