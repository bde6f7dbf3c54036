"""Kernel services: balance oracle and history assembly."""

from balance_kernel.services.balance_oracle import (
    BalanceOracle,
    FixedBalanceOracle,
    JsonRpcBalanceOracle,
)
from balance_kernel.services.history_service import HistoryService

__all__ = [
    "BalanceOracle",
    "FixedBalanceOracle",
    "JsonRpcBalanceOracle",
    "HistoryService",
]
