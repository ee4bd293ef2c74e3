"""
Module: hostel_ledger.db.base
Responsibility: Declarative base classes for all SQLAlchemy ORM models.  Provides
    the UUID primary key convention, the type annotation map, and the
    RecordBase mixin carrying the logical-deletion status and audit timestamps.
Architecture position: DB.  This is the lowest-level import target; ALL model
    files import from here.  MUST NOT import from models/, services/,
    selectors/, domain/, or outer layers.

Invariants enforced:
    - UUID primary keys on every table.
    - Integer money: type_annotation_map maps Python int to BigInteger.  There
      is no float or Numeric money column anywhere in the schema.
    - Logical deletion: every record carries ``status`` (RecordStatus).  Rows
      are never physically removed; deletion flips the status.
"""

from datetime import datetime
from enum import Enum
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class RecordStatus(str, Enum):
    """Logical lifecycle of every persisted record.

    Contract: ACTIVE -> DELETED is one-way.  DELETED rows are invisible
    to every read path.
    """

    ACTIVE = "active"
    DELETED = "deleted"


class UUIDString(TypeDecorator):
    """
    UUID type stored as String(36) for cross-database portability.

    Guarantees:
        - process_bind_param: UUID -> str on INSERT/UPDATE.
        - process_result_value: str -> UUID on SELECT.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(value)
        return None


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - id is always a uuid4-generated UUID stored as String(36).
        - int maps to BigInteger (money in the smallest currency unit).
        - datetime maps to DateTime(timezone=True).
    """

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


class RecordBase(Base):
    """
    Abstract base with logical-deletion status and audit timestamps.

    Guarantees:
        - status defaults to ACTIVE.
        - created_at is set on INSERT and never changes.
        - updated_at auto-updates on every UPDATE, including status flips.
    """

    __abstract__ = True

    status: Mapped[RecordStatus] = mapped_column(
        String(10),
        default=RecordStatus.ACTIVE.value,
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @property
    def is_deleted(self) -> bool:
        return self.status == RecordStatus.DELETED


# Re-export UUID for convenience
UUID = PyUUID
