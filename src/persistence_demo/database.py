"""Async engine and session-factory construction."""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from persistence_demo.config import DatabaseSettings
from persistence_demo.errors import ConstraintViolation, StoreConnectionError


def create_engine(settings: DatabaseSettings) -> AsyncEngine:
    """Create an async SQLAlchemy engine for the configured store."""
    if settings.is_sqlite:
        return create_async_engine(settings.url, echo=settings.echo)
    return create_async_engine(settings.url, echo=settings.echo, pool_pre_ping=True)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Return a sessionmaker whose objects stay readable after commit."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@contextmanager
def translate_store_errors() -> Iterator[None]:
    """Map driver errors onto the persistence error taxonomy.

    Integrity failures become :class:`ConstraintViolation`; an unreachable
    store becomes :class:`StoreConnectionError`. Everything else propagates
    unchanged.
    """
    try:
        yield
    except IntegrityError as exc:
        raise ConstraintViolation(str(exc.orig)) from exc
    except InterfaceError as exc:
        raise StoreConnectionError(f"Store interface failure: {exc.orig}") from exc
    except DBAPIError as exc:
        if exc.connection_invalidated:
            raise StoreConnectionError(f"Store connection lost: {exc.orig}") from exc
        raise
    except StoreConnectionError:
        raise
    except OSError as exc:
        raise StoreConnectionError(f"Store unreachable: {exc}") from exc
