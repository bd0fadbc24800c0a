"""CRUD access to the ``records`` table.

Every call opens its own session and commits before returning, so each
``save`` is one atomic write. Nothing is cached between calls.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from persistence_demo.database import translate_store_errors
from persistence_demo.models import Record

logger = logging.getLogger(__name__)


class RecordRepository:
    """Repository over :class:`~persistence_demo.models.Record`.

    Args:
        session_factory: Async sessionmaker bound to a provisioned store.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def save(self, record: Record) -> Record:
        """Insert ``record``, or update the stored row with the same id.

        Returns:
            The persisted copy.

        Raises:
            ConstraintViolation: duplicate id/name or a NULL required column.
        """
        with translate_store_errors():
            async with self._session_factory() as session:
                persisted = await session.merge(record)
                await session.commit()
        logger.debug("Saved record %s (name=%r)", persisted.id, persisted.name)
        return persisted

    async def save_all(self, records: Iterable[Record]) -> list[Record]:
        """Save several records in one transaction; all or nothing."""
        with translate_store_errors():
            async with self._session_factory() as session:
                persisted = [await session.merge(record) for record in records]
                await session.commit()
        logger.debug("Saved %d records", len(persisted))
        return persisted

    async def find_all(self) -> list[Record]:
        """Return every stored record, in whatever order the store yields them."""
        with translate_store_errors():
            async with self._session_factory() as session:
                result = await session.scalars(select(Record))
                return list(result.all())

    async def find_by_id(self, record_id: str) -> Record | None:
        with translate_store_errors():
            async with self._session_factory() as session:
                return await session.get(Record, record_id)

    async def find_by_name(self, name: str) -> Record | None:
        with translate_store_errors():
            async with self._session_factory() as session:
                result = await session.scalars(select(Record).where(Record.name == name))
                return result.one_or_none()

    async def exists_by_id(self, record_id: str) -> bool:
        return await self.find_by_id(record_id) is not None

    async def count(self) -> int:
        with translate_store_errors():
            async with self._session_factory() as session:
                total = await session.scalar(select(func.count()).select_from(Record))
        return int(total or 0)

    async def delete_by_id(self, record_id: str) -> bool:
        """Delete the record with ``record_id``.

        Returns:
            True if a row was removed, False if no record had that id.
        """
        with translate_store_errors():
            async with self._session_factory() as session:
                result = await session.execute(delete(Record).where(Record.id == record_id))
                await session.commit()
        deleted = result.rowcount == 1
        logger.debug("Delete record %s: %s", record_id, "removed" if deleted else "not found")
        return deleted

    async def delete_all(self) -> int:
        """Delete every record and return how many rows were removed."""
        with translate_store_errors():
            async with self._session_factory() as session:
                result = await session.execute(delete(Record))
                await session.commit()
        return result.rowcount
