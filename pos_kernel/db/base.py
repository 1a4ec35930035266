"""
Module: pos_kernel.db.base
Responsibility: Declarative base for all SQLAlchemy ORM models.  Provides the
    integer primary key convention, the type annotation map that fixes money
    and timestamp column types, and a UTC-normalising datetime type.
Architecture position: Kernel > DB.  Lowest-level import target within the
    kernel.  ALL model files import from here.  This module MUST NOT import
    from models/, services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - Money is Decimal: type_annotation_map maps Python Decimal to
      Numeric(18, 2).  NEVER use float for monetary amounts.
    - Timestamps are timezone-aware UTC on the way in and on the way out,
      on every backend (SQLite stores naive text, so the type re-attaches UTC).
    - Primary keys are autoincrementing integers.

Failure modes:
    - ValueError from UTCDateTime if a naive datetime is bound.

Audit relevance:
    Order and refund timestamps drive every report window; a timestamp that
    silently lost its zone would move sales between business days.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import BigInteger, DateTime, Integer, Numeric
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

MONEY = Numeric(18, 2)

# SQLite only autoincrements a column declared exactly INTEGER PRIMARY KEY.
IdType = BigInteger().with_variant(Integer(), "sqlite")


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime, stored and returned in UTC.

    Guarantees:
        - process_bind_param: aware datetime -> UTC datetime.
        - process_result_value: naive values from the driver are tagged UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError(f"Naive datetime not allowed: {value!r}")
        value = value.astimezone(UTC)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class Base(DeclarativeBase):
    """
    Declarative base for all POS models.

    Guarantees:
        - id is an autoincrementing integer.
        - Decimal maps to Numeric(18, 2).
        - datetime maps to UTCDateTime.
        - int maps to Integer (quantities).
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: MONEY,
        datetime: UTCDateTime(),
        int: Integer,
    }

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
