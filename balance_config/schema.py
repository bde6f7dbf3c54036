"""
History service configuration schema.

Frozen dataclasses the loader parses YAML into.  The kernel never sees
these types; scripts translate them into constructor arguments.
"""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Data sources
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings for the explorer and balances databases."""

    explorer_url: str
    balances_url: str
    max_connections: int = 97
    max_overflow: int = 10
    pool_timeout_seconds: int = 30
    query_max_retries: int = 3
    query_backoff_seconds: float = 0.5


@dataclass(frozen=True)
class RpcConfig:
    """Node endpoint used by the balance oracle."""

    url: str
    timeout_seconds: float = 10.0


# ---------------------------------------------------------------------------
# Request handling
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PaginationConfig:
    """Page size used when a request does not name one."""

    default_limit: int = 20


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class HistoryConfig:
    """Complete configuration of one deployment."""

    database: DatabaseConfig
    rpc: RpcConfig
    pagination: PaginationConfig
    logging: LoggingConfig
    checksum: str = ""
