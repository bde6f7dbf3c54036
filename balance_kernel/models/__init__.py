"""Read-only ORM mappings of the indexer tables."""

from balance_kernel.models.balance_change import BalanceChange
from balance_kernel.models.block import SUCCESSFUL_STATUSES, Block, ExecutionOutcome
from balance_kernel.models.token_event import FungibleTokenEvent, NonFungibleTokenEvent

__all__ = [
    "BalanceChange",
    "Block",
    "ExecutionOutcome",
    "FungibleTokenEvent",
    "NonFungibleTokenEvent",
    "SUCCESSFUL_STATUSES",
]
