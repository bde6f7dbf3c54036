"""
Module: balance_kernel.models.token_event
Responsibility: Read-only mappings of the explorer token event tables
    ``assets__fungible_token_events`` and
    ``assets__non_fungible_token_events``.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Events carry no absolute balances.  amount is the unsigned magnitude
      moved from the old owner to the new owner.
    - An empty owner column marks the missing side of a mint (old owner)
      or a burn (new owner).
    - Rows are append-only; the kernel never writes them.
"""

from decimal import Decimal

from sqlalchemy import BigInteger, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from balance_kernel.db.base import Base
from balance_kernel.db.types import AccountIdColumn, HashColumn, TimestampNanos


class FungibleTokenEvent(Base):
    """One fungible token transfer, mint or burn."""

    __tablename__ = "assets__fungible_token_events"

    __table_args__ = (
        Index(
            "assets__ft_events_contract_timestamp_idx",
            "emitted_by_contract_account_id",
            "emitted_at_block_timestamp",
        ),
        Index("assets__ft_events_old_owner_idx", "token_old_owner_account_id"),
        Index("assets__ft_events_new_owner_idx", "token_new_owner_account_id"),
    )

    emitted_for_receipt_id: Mapped[str] = mapped_column(HashColumn, primary_key=True)
    emitted_index_of_event_entry_in_shard: Mapped[int] = mapped_column(
        BigInteger, primary_key=True
    )
    emitted_in_shard_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    emitted_at_block_timestamp: Mapped[Decimal] = mapped_column(TimestampNanos, nullable=False)
    emitted_by_contract_account_id: Mapped[str] = mapped_column(AccountIdColumn, nullable=False)
    amount: Mapped[str] = mapped_column(Text, nullable=False)
    event_kind: Mapped[str] = mapped_column(Text, nullable=False)
    token_old_owner_account_id: Mapped[str] = mapped_column(Text, nullable=False)
    token_new_owner_account_id: Mapped[str] = mapped_column(Text, nullable=False)
    event_memo: Mapped[str] = mapped_column(Text, nullable=False, default="")


class NonFungibleTokenEvent(Base):
    """One non-fungible token transfer, mint or burn."""

    __tablename__ = "assets__non_fungible_token_events"

    __table_args__ = (
        Index(
            "assets__nft_events_contract_token_idx",
            "emitted_by_contract_account_id",
            "token_id",
            "emitted_at_block_timestamp",
        ),
    )

    emitted_for_receipt_id: Mapped[str] = mapped_column(HashColumn, primary_key=True)
    emitted_index_of_event_entry_in_shard: Mapped[int] = mapped_column(
        BigInteger, primary_key=True
    )
    emitted_in_shard_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    emitted_at_block_timestamp: Mapped[Decimal] = mapped_column(TimestampNanos, nullable=False)
    emitted_by_contract_account_id: Mapped[str] = mapped_column(AccountIdColumn, nullable=False)
    token_id: Mapped[str] = mapped_column(Text, nullable=False)
    event_kind: Mapped[str] = mapped_column(Text, nullable=False)
    token_old_owner_account_id: Mapped[str] = mapped_column(Text, nullable=False)
    token_new_owner_account_id: Mapped[str] = mapped_column(Text, nullable=False)
    event_memo: Mapped[str] = mapped_column(Text, nullable=False, default="")
