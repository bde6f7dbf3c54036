"""
Module: balance_kernel.models.block
Responsibility: Read-only mapping of the explorer ``blocks`` table and the
    ``execution_outcomes`` table used to keep only successful receipts.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - block_timestamp is unique per block and strictly increases with
      block_height.  The event log is ordered by it.
"""

from decimal import Decimal

from sqlalchemy import Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from balance_kernel.db.base import Base
from balance_kernel.db.types import BlockHeight, HashColumn, TimestampNanos

# Receipt statuses whose token events actually took effect
SUCCESSFUL_STATUSES: tuple[str, ...] = ("SUCCESS_VALUE", "SUCCESS_RECEIPT_ID")


class Block(Base):
    """One produced block."""

    __tablename__ = "blocks"

    __table_args__ = (
        Index("blocks_height_idx", "block_height", unique=True),
        Index("blocks_timestamp_idx", "block_timestamp"),
    )

    block_hash: Mapped[str] = mapped_column(HashColumn, primary_key=True)
    block_height: Mapped[Decimal] = mapped_column(BlockHeight, nullable=False)
    block_timestamp: Mapped[Decimal] = mapped_column(TimestampNanos, nullable=False)


class ExecutionOutcome(Base):
    """Execution status of one receipt."""

    __tablename__ = "execution_outcomes"

    receipt_id: Mapped[str] = mapped_column(HashColumn, primary_key=True)
    status: Mapped[str] = mapped_column(Text, nullable=False)
