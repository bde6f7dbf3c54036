"""
Module: balance_kernel.db.base
Responsibility: Declarative base class for the read-only ORM mappings of the
    indexer tables.  Provides the type annotation map for consistent column
    types.
Architecture position: Kernel > DB.  This is the lowest-level import target
    within the kernel.  ALL model files import from here.  This module MUST NOT
    import from models/, services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - Decimal precision: type_annotation_map maps Python Decimal to
      Numeric(45, 0), wide enough for any 128-bit amount.  NEVER use float.
    - The tables are owned by the indexer.  Models declare their own primary
      keys as the indexer defines them; the kernel never writes rows.
"""

from decimal import Decimal
from typing import ClassVar

from sqlalchemy import BigInteger, Numeric, Text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Declarative base for all indexer table mappings.

    Contract:
        Every ORM model in the kernel inherits from Base.  Base provides a
        type_annotation_map that enforces consistent column types across
        the mapped schema.

    Guarantees:
        - Decimal maps to Numeric(45, 0) -- full 128-bit range, zero scale.
        - int maps to BigInteger.
        - str maps to Text unless a column narrows it.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(45, 0),
        int: BigInteger,
        str: Text,
    }
