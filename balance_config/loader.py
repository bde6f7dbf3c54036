"""
Configuration Loader (``balance_config.loader``).

Responsibility
--------------
Loads the YAML configuration file, applies environment overrides, and
parses the result into the frozen dataclasses of ``balance_config.schema``.
The single public entry point for runtime config is
``balance_config.get_active_config()``.

Invariants enforced
-------------------
* All parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; no silent defaults for required fields.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  effective (post-override) configuration.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Non-numeric or non-positive numbers  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from balance_config.schema import (
    DatabaseConfig,
    HistoryConfig,
    LoggingConfig,
    PaginationConfig,
    RpcConfig,
)

# (environment variable, section, key, parser)
ENV_OVERRIDES: tuple[tuple[str, str, str, type], ...] = (
    ("EXPLORER_DATABASE_URL", "database", "explorer_url", str),
    ("BALANCES_DATABASE_URL", "database", "balances_url", str),
    ("DATABASE_MAX_CONNECTIONS", "database", "max_connections", int),
    ("RPC_URL", "rpc", "url", str),
    ("LOG_LEVEL", "logging", "level", str),
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def apply_env_overrides(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Return a copy of data with every set override variable applied."""
    merged = {section: dict(values or {}) for section, values in data.items()}
    for variable, section, key, parser in ENV_OVERRIDES:
        raw = environ.get(variable)
        if raw is None or raw == "":
            continue
        try:
            value = parser(raw)
        except ValueError as exc:
            raise ValueError(f"{variable}={raw!r} is not a valid {parser.__name__}") from exc
        merged.setdefault(section, {})[key] = value
    return merged


def _positive(value: Any, name: str) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ValueError(f"{name} must be a positive number, got {value!r}")
    return value


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    """Parse a DatabaseConfig; both URLs are required."""
    return DatabaseConfig(
        explorer_url=data["explorer_url"],
        balances_url=data["balances_url"],
        max_connections=_positive(data.get("max_connections", 97), "database.max_connections"),
        max_overflow=data.get("max_overflow", 10),
        pool_timeout_seconds=_positive(data.get("pool_timeout_seconds", 30), "database.pool_timeout_seconds"),
        query_max_retries=_positive(data.get("query_max_retries", 3), "database.query_max_retries"),
        query_backoff_seconds=data.get("query_backoff_seconds", 0.5),
    )


def parse_rpc(data: dict[str, Any]) -> RpcConfig:
    return RpcConfig(
        url=data["url"],
        timeout_seconds=_positive(data.get("timeout_seconds", 10.0), "rpc.timeout_seconds"),
    )


def parse_pagination(data: dict[str, Any]) -> PaginationConfig:
    limit = data.get("default_limit", 20)
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise ValueError(f"pagination.default_limit must be an integer, got {limit!r}")
    return PaginationConfig(default_limit=_positive(limit, "pagination.default_limit"))


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    level = str(data.get("level", "INFO")).upper()
    if level not in logging.getLevelNamesMapping():
        raise ValueError(f"logging.level {level!r} is not a logging level")
    return LoggingConfig(level=level)


def parse_config(data: dict[str, Any]) -> HistoryConfig:
    """
    Parse a complete HistoryConfig from a dict.

    Raises:
        KeyError: if a required section or key is missing.
        ValueError: if a value is out of range.
    """
    return HistoryConfig(
        database=parse_database(data["database"]),
        rpc=parse_rpc(data["rpc"]),
        pagination=parse_pagination(data.get("pagination") or {}),
        logging=parse_logging(data.get("logging") or {}),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
