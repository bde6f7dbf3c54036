"""
Reconstruction -- Balance history from an anchor balance and an event page.

Responsibility:
    Turns one page of raw log rows into history items:
    - Fungible tokens: walks the page backward from a known anchor balance,
      deriving the balance before and after every event.
    - Native coin: row-wise projection; rows already carry absolute
      post-event balances split into available and staked parts.
    - Non-fungible tokens: row-wise projection of ownership changes.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Called by HistoryService with already fetched rows and an already
    queried anchor.  Holds no state between calls; each call owns its own
    running balance.

Invariants enforced:
    NON_NEGATIVE_BALANCE -- a pre-event balance below zero aborts the walk.
    ROLE_RESOLUTION      -- the subject must be sender or receiver.
    PAGE_ORDERING        -- rows must be newest first.
    CONTINUITY           -- verify_continuity() checks a built trail.
    CHECKED_ARITHMETIC   -- every sum and difference is range-checked.

Failure modes:
    - InternalInvariantError on any invariant above.  Logged with account,
      asset and the offending row before it propagates.  No partial page is
      returned.
    - MalformedNumericError / OutOfRangeError from the conversion layer.
    - AccountAddressInvalidError for an unparseable counterparty.

Audit relevance:
    A negative reconstructed balance means the anchor, the page, or the
    database is inconsistent.  Coercing it to zero would publish a wrong
    balance, so it is always surfaced.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from balance_kernel.domain.account_id import extract_account_id
from balance_kernel.domain.dtos import (
    CoinHistoryItem,
    FungibleTokenEventRow,
    NativeBalanceChangeRow,
    NativeHistoryItem,
    NftEventRow,
    NftHistoryItem,
)
from balance_kernel.domain.numeric import (
    checked_add_i128,
    checked_add_u128,
    checked_neg_i128,
    ensure_u128,
    to_i128,
    to_u64,
    to_u128,
)
from balance_kernel.exceptions import InternalInvariantError
from balance_kernel.logging_config import get_logger

logger = get_logger("domain.reconstruction")


# ---------------------------------------------------------------------------
# Role resolution
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SenderRole:
    """Subject is the old owner; the event decreased its balance."""

    counterparty: str | None


@dataclass(frozen=True, slots=True)
class ReceiverRole:
    """Subject is the new owner; the event increased its balance."""

    counterparty: str | None


@dataclass(frozen=True, slots=True)
class InconsistentRole:
    """Subject is neither owner.  Only reachable through a bad upstream query."""

    old_owner_id: str
    new_owner_id: str


Role = SenderRole | ReceiverRole | InconsistentRole


def resolve_role(subject: str, old_owner_id: str, new_owner_id: str) -> Role:
    """Classify the subject's side of a fungible token event.

    Sender is checked first.  Counterparty ids are parsed here, so an
    unparseable owner raises AccountAddressInvalidError.
    """
    if subject == old_owner_id:
        return SenderRole(counterparty=extract_account_id(new_owner_id))
    if subject == new_owner_id:
        return ReceiverRole(counterparty=extract_account_id(old_owner_id))
    return InconsistentRole(old_owner_id=old_owner_id, new_owner_id=new_owner_id)


def signed_delta(role: SenderRole | ReceiverRole, amount: int) -> int:
    """Change of the subject's balance caused by an event of magnitude amount."""
    if isinstance(role, SenderRole):
        return checked_neg_i128(amount)
    return amount


# ---------------------------------------------------------------------------
# Ordering and continuity
# ---------------------------------------------------------------------------


def _invariant_failure(
    message: str,
    account_id: str | None,
    asset_id: str | None,
    event: dict | None,
) -> InternalInvariantError:
    error = InternalInvariantError(message, account_id=account_id, asset_id=asset_id, event=event)
    logger.error(
        "reconstruction_invariant_violated",
        extra={
            "reason": message,
            "subject_account_id": account_id,
            "subject_asset_id": asset_id,
            "offending_event": event,
        },
    )
    return error


def check_page_order(
    keys: Sequence[tuple[int, int]],
    account_id: str | None = None,
    asset_id: str | None = None,
) -> None:
    """Raise unless (timestamp, height) keys are non-increasing."""
    for index in range(1, len(keys)):
        if keys[index] > keys[index - 1]:
            raise _invariant_failure(
                "Event page is not ordered newest first",
                account_id,
                asset_id,
                {
                    "position": index,
                    "previous_timestamp": str(keys[index - 1][0]),
                    "timestamp": str(keys[index][0]),
                },
            )


def verify_continuity(
    items: Sequence[CoinHistoryItem],
    account_id: str | None = None,
    asset_id: str | None = None,
) -> None:
    """Check a newest-first trail for gaps.

    Each item's balance_before must equal the next older item's balance,
    every balance must be non-negative, and every delta must match its
    snapshot.
    """
    for index, item in enumerate(items):
        snapshot = item.snapshot
        if snapshot.balance_before < 0 or snapshot.balance_after < 0:
            raise _invariant_failure(
                "Balance could not be negative", account_id, asset_id, {"position": index}
            )
        if snapshot.delta != item.delta_balance:
            raise _invariant_failure(
                "Delta does not match snapshot", account_id, asset_id, {"position": index}
            )
        if index + 1 < len(items) and items[index + 1].balance != item.balance_before:
            raise _invariant_failure(
                "Balance trail is not continuous",
                account_id,
                asset_id,
                {
                    "position": index,
                    "balance_before": str(item.balance_before),
                    "older_balance_after": str(items[index + 1].balance),
                },
            )


# ---------------------------------------------------------------------------
# Fungible token path
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FungibleReconstruction:
    """
    Result of one backward walk.

    opening_balance is the balance before the oldest event, i.e. the
    running balance once the whole page has been undone.  For an empty page
    it equals the anchor.
    """

    items: tuple[CoinHistoryItem, ...]
    opening_balance: int


def reconstruct_fungible_history(
    account_id: str,
    asset_id: str,
    anchor_balance: int,
    rows: Sequence[FungibleTokenEventRow],
) -> FungibleReconstruction:
    """
    Walk a newest-first page backward from anchor_balance.

    Preconditions:
        - anchor_balance is the subject's balance after the newest row
          (a u128).
        - rows are the subject's events for asset_id, newest first.

    Postconditions:
        - One item per row, same order.
        - items[0].balance == anchor_balance (when rows is non-empty).
        - items[i].balance_before == items[i + 1].balance.
        - Every balance is within [0, 2**128 - 1].

    Raises:
        InternalInvariantError: page out of order, subject on neither side,
            or a negative pre-event balance.
    """
    running_balance = ensure_u128(anchor_balance)
    check_page_order(
        [(to_u64(row.block_timestamp), to_u64(row.block_height)) for row in rows],
        account_id,
        asset_id,
    )

    items: list[CoinHistoryItem] = []
    for row in rows:
        amount = to_i128(row.amount)
        role = resolve_role(account_id, row.old_owner_id, row.new_owner_id)
        match role:
            case InconsistentRole(old_owner_id=old_owner, new_owner_id=new_owner):
                raise _invariant_failure(
                    f"The account {account_id} should be sender or receiver "
                    f"({old_owner}, {new_owner})",
                    account_id,
                    asset_id,
                    row.describe(),
                )
            case SenderRole(counterparty=counterparty) | ReceiverRole(counterparty=counterparty):
                delta = signed_delta(role, amount)

        balance_after = running_balance
        balance_before = running_balance - delta
        if balance_before < 0:
            raise _invariant_failure(
                f"Balance could not be negative: account {account_id}, contract {asset_id}",
                account_id,
                asset_id,
                row.describe(),
            )
        running_balance = ensure_u128(balance_before)

        items.append(
            CoinHistoryItem(
                action_kind=row.event_kind,
                involved_account_id=counterparty,
                delta_balance=delta,
                balance=balance_after,
                balance_before=running_balance,
                block_height=to_u64(row.block_height),
                block_timestamp_nanos=to_u64(row.block_timestamp),
            )
        )

    logger.debug(
        "fungible_history_reconstructed",
        extra={
            "item_count": len(items),
            "anchor_balance": str(anchor_balance),
            "opening_balance": str(running_balance),
        },
    )
    return FungibleReconstruction(items=tuple(items), opening_balance=running_balance)


# ---------------------------------------------------------------------------
# Native coin path
# ---------------------------------------------------------------------------


def project_native_row(row: NativeBalanceChangeRow) -> NativeHistoryItem:
    """Convert one balance_changes row into a history item."""
    delta_available = to_i128(row.delta_available)
    delta_staked = to_i128(row.delta_staked)
    available = to_u128(row.absolute_available)
    staked = to_u128(row.absolute_staked)
    return NativeHistoryItem(
        involved_account_id=extract_account_id(row.involved_account_id),
        delta_balance=checked_add_i128(delta_available, delta_staked),
        delta_available_balance=delta_available,
        delta_staked_balance=delta_staked,
        total_balance=checked_add_u128(available, staked),
        available_balance=available,
        staked_balance=staked,
        cause=row.cause,
        block_height=to_u64(row.block_height),
        block_timestamp_nanos=to_u64(row.block_timestamp),
    )


def project_native_history(
    rows: Sequence[NativeBalanceChangeRow],
    account_id: str | None = None,
) -> tuple[NativeHistoryItem, ...]:
    """Row-wise projection of a native coin page.  No backward walk needed."""
    items = tuple(project_native_row(row) for row in rows)
    check_page_order(
        [(item.block_timestamp_nanos, item.block_height) for item in items],
        account_id,
        "near",
    )
    return items


# ---------------------------------------------------------------------------
# Non-fungible token path
# ---------------------------------------------------------------------------


def project_nft_history(rows: Sequence[NftEventRow]) -> tuple[NftHistoryItem, ...]:
    """Row-wise projection of one token's ownership changes."""
    return tuple(
        NftHistoryItem(
            action_kind=row.action_kind,
            old_account_id=extract_account_id(row.old_account_id),
            new_account_id=extract_account_id(row.new_account_id),
            block_height=to_u64(row.block_height),
            block_timestamp_nanos=to_u64(row.block_timestamp),
        )
        for row in rows
    )
