"""
Pure domain layer.

This module contains the numeric conversion layer, account identifier
parsing, the pagination cursor, history DTOs and the reconstruction engine,
with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Network
- Clock

All domain objects are immutable and deterministic.
"""

from balance_kernel.domain.account_id import extract_account_id, parse_account_id
from balance_kernel.domain.cursor import HistoryCursor
from balance_kernel.domain.dtos import (
    BalanceSnapshot,
    BlockInfo,
    CoinHistoryItem,
    CoinMetadata,
    EventKind,
    FungibleTokenEventRow,
    HistoryPage,
    NativeBalanceChangeRow,
    NativeHistoryItem,
    NftEventRow,
    NftHistoryItem,
)
from balance_kernel.domain.numeric import (
    render_amount,
    to_i64,
    to_i128,
    to_u64,
    to_u128,
)
from balance_kernel.domain.reconstruction import (
    FungibleReconstruction,
    InconsistentRole,
    ReceiverRole,
    SenderRole,
    project_native_history,
    project_nft_history,
    reconstruct_fungible_history,
    resolve_role,
    verify_continuity,
)

__all__ = [
    "BalanceSnapshot",
    "BlockInfo",
    "CoinHistoryItem",
    "CoinMetadata",
    "EventKind",
    "FungibleReconstruction",
    "FungibleTokenEventRow",
    "HistoryCursor",
    "HistoryPage",
    "InconsistentRole",
    "NativeBalanceChangeRow",
    "NativeHistoryItem",
    "NftEventRow",
    "NftHistoryItem",
    "ReceiverRole",
    "SenderRole",
    "extract_account_id",
    "parse_account_id",
    "project_native_history",
    "project_nft_history",
    "reconstruct_fungible_history",
    "render_amount",
    "resolve_role",
    "to_i64",
    "to_i128",
    "to_u64",
    "to_u128",
    "verify_continuity",
]
