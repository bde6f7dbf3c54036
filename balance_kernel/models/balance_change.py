"""
Module: balance_kernel.models.balance_change
Responsibility: Read-only mapping of the balances database
    ``balance_changes`` table -- the native coin event log.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Every row carries the ABSOLUTE available (non-staked) and staked
      balances of the affected account after the change, so the native path
      needs no backward walk.
    - Rows are append-only; the kernel never writes them.
"""

from decimal import Decimal

from sqlalchemy import Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from balance_kernel.db.base import Base
from balance_kernel.db.types import (
    AccountIdColumn,
    Amount,
    BlockHeight,
    EventIndex,
    HashColumn,
    TimestampNanos,
)


class BalanceChange(Base):
    """One native balance change of one account."""

    __tablename__ = "balance_changes"

    __table_args__ = (
        Index("balance_changes_affected_timestamp_idx", "affected_account_id", "block_timestamp"),
    )

    event_index: Mapped[Decimal] = mapped_column(EventIndex, primary_key=True)
    block_timestamp: Mapped[Decimal] = mapped_column(TimestampNanos, nullable=False)
    block_height: Mapped[Decimal] = mapped_column(BlockHeight, nullable=False)
    receipt_id: Mapped[str | None] = mapped_column(HashColumn, nullable=True)
    transaction_hash: Mapped[str | None] = mapped_column(HashColumn, nullable=True)
    affected_account_id: Mapped[str] = mapped_column(AccountIdColumn, nullable=False)
    involved_account_id: Mapped[str | None] = mapped_column(AccountIdColumn, nullable=True)
    direction: Mapped[str] = mapped_column(Text, nullable=False)
    cause: Mapped[str] = mapped_column(Text, nullable=False)
    delta_nonstaked_amount: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    absolute_nonstaked_amount: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    delta_staked_amount: Mapped[Decimal] = mapped_column(Amount, nullable=False)
    absolute_staked_amount: Mapped[Decimal] = mapped_column(Amount, nullable=False)
