"""Database layer - engine, base class, column types."""

from balance_kernel.db.base import Base
from balance_kernel.db.engine import (
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from balance_kernel.db.types import Amount, BlockHeight, TimestampNanos

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "reset_engine",
    "Base",
    "Amount",
    "BlockHeight",
    "TimestampNanos",
]
