#!/usr/bin/env python3
"""
Print one page of an account's balance history as JSON.

Usage:
    python3 scripts/balance_history.py native alice.near
    python3 scripts/balance_history.py ft alice.near --contract usn --limit 50
    python3 scripts/balance_history.py nft --contract paras.near --token-id 42

Continuation:
    Pass the next_cursor fields of the previous page as --block-height and
    --block-timestamp.  For fungible tokens also pass the previous page's
    opening balance as --anchor-balance so the next page continues the same
    trail instead of re-querying the node.

Connection settings come from balance_config (EXPLORER_DATABASE_URL,
BALANCES_DATABASE_URL, DATABASE_MAX_CONNECTIONS, RPC_URL, LOG_LEVEL).
"""

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from balance_config import HistoryConfig, get_active_config  # noqa: E402
from balance_kernel.db.engine import (  # noqa: E402
    BALANCES_DB,
    EXPLORER_DB,
    init_engine_from_url,
    session_scope,
)
from balance_kernel.domain.cursor import HistoryCursor  # noqa: E402
from balance_kernel.domain.numeric import render_amount, to_u128  # noqa: E402
from balance_kernel.exceptions import BalanceKernelError, is_retryable  # noqa: E402
from balance_kernel.logging_config import LogContext, configure_logging, get_logger  # noqa: E402
from balance_kernel.selectors.event_log_selector import EventLogSelector  # noqa: E402
from balance_kernel.services.balance_oracle import JsonRpcBalanceOracle  # noqa: E402
from balance_kernel.services.history_service import HistoryService  # noqa: E402

logger = get_logger("scripts.balance_history")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_RETRYABLE = 75


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Print one page of balance history for an account.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML configuration file (default: balance_config/sets/default.yaml).",
    )
    parser.add_argument("--limit", type=int, default=None, help="Page size (default from config).")
    parser.add_argument(
        "--block-height",
        type=int,
        default=None,
        help="Pin the page to this block (default: latest indexed block).",
    )
    parser.add_argument(
        "--block-timestamp",
        type=int,
        default=None,
        help="Exclusive timestamp bound from a previous page's next_cursor.",
    )
    parser.add_argument("--correlation-id", default=None, help="Correlation id for log lines.")

    sub = parser.add_subparsers(dest="asset_kind", required=True)

    native = sub.add_parser("native", help="Native coin history.")
    native.add_argument("account_id")

    ft = sub.add_parser("ft", help="Fungible token history.")
    ft.add_argument("account_id")
    ft.add_argument("--contract", required=True, help="Token contract account id.")
    ft.add_argument(
        "--anchor-balance",
        default=None,
        help="Opening balance of the previous page; skips the node query.",
    )

    nft = sub.add_parser("nft", help="Ownership history of one non-fungible token.")
    nft.add_argument("--contract", required=True, help="NFT contract account id.")
    nft.add_argument("--token-id", required=True)

    args = parser.parse_args(argv)
    if args.block_timestamp is not None and args.block_height is None:
        parser.error("--block-timestamp requires --block-height")
    if getattr(args, "anchor_balance", None) is not None and args.block_timestamp is None:
        parser.error("--anchor-balance is only valid with a continuation cursor")
    return args


def resolve_cursor(
    blocks: EventLogSelector,
    limit: int,
    block_height: int | None = None,
    block_timestamp: int | None = None,
) -> HistoryCursor:
    """
    Build the cursor of the requested page.

    A continuation names both fields and is used as is.  Otherwise the page
    is pinned to the given block, or to the latest indexed block, with that
    block's own events included.

    Raises:
        LookupError: the index is empty or the block does not exist.
    """
    if block_timestamp is not None:
        return HistoryCursor(block_height, block_timestamp, limit)

    if block_height is None:
        block = blocks.latest_block()
        if block is None:
            raise LookupError("the explorer database has no blocks")
    else:
        block = blocks.block_at_height(block_height)
        if block is None:
            raise LookupError(f"block {block_height} is not indexed")
    return HistoryCursor.at_block(block.block_height, block.block_timestamp, limit)


def run(args: argparse.Namespace, config: HistoryConfig) -> dict:
    """Fetch the requested page and return its JSON payload."""
    db = config.database
    for name, url in ((EXPLORER_DB, db.explorer_url), (BALANCES_DB, db.balances_url)):
        init_engine_from_url(
            url,
            name=name,
            pool_size=db.max_connections,
            max_overflow=db.max_overflow,
            pool_timeout=db.pool_timeout_seconds,
        )

    limit = args.limit or config.pagination.default_limit
    retry = {"max_retries": db.query_max_retries, "backoff_seconds": db.query_backoff_seconds}
    oracle = JsonRpcBalanceOracle(config.rpc.url, timeout_seconds=config.rpc.timeout_seconds)

    with session_scope(EXPLORER_DB) as explorer:
        explorer_log = EventLogSelector(explorer, **retry)
        cursor = resolve_cursor(explorer_log, limit, args.block_height, args.block_timestamp)

        if args.asset_kind == "native":
            with session_scope(BALANCES_DB) as balances:
                service = HistoryService(EventLogSelector(balances, **retry))
                page = service.native_history(args.account_id, cursor)
            return page.to_dict()

        service = HistoryService(explorer_log, oracle)
        if args.asset_kind == "ft":
            anchor = None if args.anchor_balance is None else to_u128(args.anchor_balance)
            page = service.fungible_history(
                args.contract, args.account_id, cursor, anchor_balance=anchor
            )
            payload = page.to_dict()
            if page.next_cursor is not None:
                payload["next_cursor"]["anchor_balance"] = render_amount(page.opening_balance)
            return payload

        page = service.nft_history(args.contract, args.token_id, cursor)
        return page.to_dict()


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        config = get_active_config(args.config)
    except (OSError, KeyError, ValueError) as exc:
        print(f"  ERROR: configuration: {exc}", file=sys.stderr)
        return EXIT_FAILED

    configure_logging(level=config.logging.level)

    with LogContext.bind(correlation_id=args.correlation_id):
        try:
            payload = run(args, config)
        except LookupError as exc:
            print(f"  ERROR: {exc}", file=sys.stderr)
            return EXIT_FAILED
        except BalanceKernelError as exc:
            logger.error(
                "balance_history_failed",
                extra={"error_code": exc.code, "retryable": is_retryable(exc)},
            )
            print(f"  ERROR [{exc.code}]: {exc}", file=sys.stderr)
            return EXIT_RETRYABLE if is_retryable(exc) else EXIT_FAILED

    print(json.dumps(payload, indent=2))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
