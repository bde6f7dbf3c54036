"""
DTOs -- Pure domain data transfer objects for balance history.

Responsibility:
    Defines the immutable data structures that flow through the history
    pipeline: raw rows as the Event Log Reader returns them (database
    Decimal/str values, unconverted), and the history items, snapshots and
    pages the reconstruction engine produces.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of ORM dependencies.  Selectors build row DTOs; the engine turns
    them into items.

Invariants enforced:
    - Output items hold Python ints already range-checked by the numeric
      conversion layer.  to_dict() renders every amount, height and
      timestamp as a canonical decimal string.
    - BalanceSnapshot.delta == balance_after - balance_before.

Data flow:
    *Row (reader) -> reconstruction engine -> *HistoryItem -> HistoryPage
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Any

from balance_kernel.domain.cursor import HistoryCursor
from balance_kernel.domain.numeric import render_amount


class EventKind(str, Enum):
    """
    Kind of a balance-affecting log entry.

    Contract:
        Classification only.  The raw cause / event_kind text of a row is
        carried to the response unchanged regardless of this value.
    """

    NATIVE_BALANCE_CHANGE = "native_balance_change"
    FUNGIBLE_TRANSFER = "fungible_transfer"
    FUNGIBLE_MINT = "fungible_mint"
    FUNGIBLE_BURN = "fungible_burn"
    NFT_TRANSFER = "nft_transfer"
    NFT_MINT = "nft_mint"
    NFT_BURN = "nft_burn"


# ---------------------------------------------------------------------------
# Reader rows
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BlockInfo:
    """Height and timestamp of one block, as stored."""

    block_height: Decimal
    block_timestamp: Decimal


@dataclass(frozen=True, slots=True)
class NativeBalanceChangeRow:
    """One balance_changes row.  Absolute amounts are post-event balances."""

    involved_account_id: str | None
    delta_available: Decimal
    delta_staked: Decimal
    absolute_available: Decimal
    absolute_staked: Decimal
    cause: str
    block_height: Decimal
    block_timestamp: Decimal

    @property
    def kind(self) -> EventKind:
        return EventKind.NATIVE_BALANCE_CHANGE


@dataclass(frozen=True, slots=True)
class FungibleTokenEventRow:
    """
    One fungible token event joined to its block.

    amount is the unsigned magnitude as stored (text).  Its direction
    relative to the subject account is decided by the engine from the
    owner fields.  An empty owner marks the missing side of a mint or burn.
    """

    block_height: Decimal
    block_timestamp: Decimal
    amount: str
    event_kind: str
    old_owner_id: str
    new_owner_id: str

    @property
    def kind(self) -> EventKind:
        if not self.old_owner_id:
            return EventKind.FUNGIBLE_MINT
        if not self.new_owner_id:
            return EventKind.FUNGIBLE_BURN
        return EventKind.FUNGIBLE_TRANSFER

    def describe(self) -> dict[str, str]:
        """Loggable view of the row for invariant reports."""
        return {
            "block_height": str(self.block_height),
            "block_timestamp": str(self.block_timestamp),
            "amount": self.amount,
            "event_kind": self.event_kind,
            "old_owner_id": self.old_owner_id,
            "new_owner_id": self.new_owner_id,
        }


@dataclass(frozen=True, slots=True)
class NftEventRow:
    """One non-fungible token event for a single token."""

    action_kind: str
    old_account_id: str
    new_account_id: str
    block_height: Decimal
    block_timestamp: Decimal

    @property
    def kind(self) -> EventKind:
        if not self.old_account_id:
            return EventKind.NFT_MINT
        if not self.new_account_id:
            return EventKind.NFT_BURN
        return EventKind.NFT_TRANSFER


# ---------------------------------------------------------------------------
# Engine output
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BalanceSnapshot:
    """Balance immediately before and after one event."""

    balance_before: int
    balance_after: int

    @property
    def delta(self) -> int:
        return self.balance_after - self.balance_before


@dataclass(frozen=True, slots=True)
class CoinMetadata:
    """Per-asset display metadata.  Populated by the caller, never fetched here."""

    name: str
    symbol: str
    decimals: int
    icon: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "icon": self.icon,
        }


@dataclass(frozen=True, slots=True)
class NativeHistoryItem:
    """Native coin history item with available/staked split."""

    involved_account_id: str | None
    delta_balance: int
    delta_available_balance: int
    delta_staked_balance: int
    total_balance: int
    available_balance: int
    staked_balance: int
    cause: str
    block_height: int
    block_timestamp_nanos: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "involved_account_id": self.involved_account_id,
            "delta_balance": render_amount(self.delta_balance),
            "delta_available_balance": render_amount(self.delta_available_balance),
            "delta_staked_balance": render_amount(self.delta_staked_balance),
            "total_balance": render_amount(self.total_balance),
            "available_balance": render_amount(self.available_balance),
            "staked_balance": render_amount(self.staked_balance),
            "cause": self.cause,
            "block_height": render_amount(self.block_height),
            "block_timestamp_nanos": render_amount(self.block_timestamp_nanos),
        }


@dataclass(frozen=True, slots=True)
class CoinHistoryItem:
    """
    Fungible token history item.

    balance is the balance immediately AFTER the event; balance_before is
    the balance immediately before it.
    """

    action_kind: str
    involved_account_id: str | None
    delta_balance: int
    balance: int
    balance_before: int
    block_height: int
    block_timestamp_nanos: int
    coin_metadata: CoinMetadata | None = None

    @property
    def snapshot(self) -> BalanceSnapshot:
        return BalanceSnapshot(balance_before=self.balance_before, balance_after=self.balance)

    def with_metadata(self, metadata: CoinMetadata) -> CoinHistoryItem:
        return replace(self, coin_metadata=metadata)

    def to_dict(self) -> dict[str, Any]:
        return {
            "action_kind": self.action_kind,
            "involved_account_id": self.involved_account_id,
            "delta_balance": render_amount(self.delta_balance),
            "balance": render_amount(self.balance),
            "coin_metadata": self.coin_metadata.to_dict() if self.coin_metadata else None,
            "block_height": render_amount(self.block_height),
            "block_timestamp_nanos": render_amount(self.block_timestamp_nanos),
        }


@dataclass(frozen=True, slots=True)
class NftHistoryItem:
    """Ownership change of one non-fungible token."""

    action_kind: str
    old_account_id: str | None
    new_account_id: str | None
    block_height: int
    block_timestamp_nanos: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "action_kind": self.action_kind,
            "old_account_id": self.old_account_id,
            "new_account_id": self.new_account_id,
            "block_height": render_amount(self.block_height),
            "block_timestamp_nanos": render_amount(self.block_timestamp_nanos),
        }


@dataclass(frozen=True, slots=True)
class HistoryPage:
    """
    One page of history items, newest first.

    opening_balance is the balance before the oldest item on the page
    (fungible token pages only).  It is the anchor of the next page.
    """

    items: tuple = field(default_factory=tuple)
    next_cursor: HistoryCursor | None = None
    opening_balance: int | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"history": [item.to_dict() for item in self.items]}
        if self.next_cursor is not None:
            payload["next_cursor"] = {
                "block_height": render_amount(self.next_cursor.block_height),
                "block_timestamp_nanos": render_amount(self.next_cursor.block_timestamp_nanos),
                "limit": self.next_cursor.limit,
            }
        return payload
