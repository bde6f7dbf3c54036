"""
balance_config -- single public entrypoint for service configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables.  The kernel MUST NEVER import from
    ``balance_config``; scripts translate the returned dataclasses into
    kernel constructor arguments.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``KeyError`` -- a required section or key is missing.
    - ``ValueError`` -- a value or an environment override is invalid.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``BALANCE_CONFIG_TRACE`` log entry with the source path and checksum of
    the effective configuration.  Connection URLs are never logged.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from balance_config.loader import apply_env_overrides, load_yaml_file, parse_config
from balance_config.schema import (
    DatabaseConfig,
    HistoryConfig,
    LoggingConfig,
    PaginationConfig,
    RpcConfig,
)

_logger = logging.getLogger("balance_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> HistoryConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: YAML file to load.  Defaults to
            balance_config/sets/default.yaml.
        environ: Environment to read overrides from.  Defaults to
            os.environ.

    Returns:
        Frozen HistoryConfig.
    """
    path = config_path or _DEFAULT_CONFIG_PATH
    data = apply_env_overrides(load_yaml_file(path), os.environ if environ is None else environ)
    config = parse_config(data)

    _logger.info(
        "BALANCE_CONFIG_TRACE",
        extra={
            "trace_type": "BALANCE_CONFIG_TRACE",
            "config_path": str(path),
            "checksum": config.checksum,
            "default_limit": config.pagination.default_limit,
            "max_connections": config.database.max_connections,
        },
    )
    return config


__all__ = [
    "DatabaseConfig",
    "HistoryConfig",
    "LoggingConfig",
    "PaginationConfig",
    "RpcConfig",
    "get_active_config",
]
