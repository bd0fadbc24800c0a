"""Declarative base and the ``Record`` entity.

The metadata carries a naming convention so that constraint names produced
by ``create_all`` and by the Alembic revision scripts are identical; schema
validation compares them by name.
"""
from __future__ import annotations

import uuid

from sqlalchemy import Integer, MetaData, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, validates

NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def new_record_id() -> str:
    """Generate a globally unique, opaque record identifier."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class Record(Base):
    """The single persisted entity: an identifier, a unique name and an age."""

    __tablename__ = "records"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    age: Mapped[int] = mapped_column(Integer, nullable=False)

    def __init__(self, name: str, age: int, id: str | None = None) -> None:
        super().__init__(id=id or new_record_id(), name=name, age=age)

    @validates("id")
    def _keep_id(self, key: str, value: str) -> str:
        current = self.__dict__.get("id")
        if current is not None and value != current:
            raise ValueError(f"Record id is immutable ({current!r} -> {value!r})")
        return value

    def __repr__(self) -> str:
        return f"Record(id={self.id!r}, name={self.name!r}, age={self.age!r})"
