"""
HistoryService -- one history page per request.

Responsibility:
    Wires the Event Log Reader, the Current-Balance Oracle and the
    reconstruction engine together for each asset kind:
    fetch page -> (fungible tokens only) query anchor -> fold -> page.

Architecture position:
    Kernel > Services -- imperative shell.
    Performs its I/O only through the injected selector and oracle.  The
    reconstruction itself is pure and holds no state between requests.

Invariants enforced:
    - The anchor balance is pinned to cursor.block_height, unless the caller
      carries the opening balance of the previous page forward.
    - Pages end on block boundaries (HistoryCursor.cut_page), so a carried
      opening balance always matches the next page's newest event.
    - Any invariant failure aborts the whole page; no partial items are
      returned.

Failure modes:
    - TransientIOError / PersistentIOError from the selector.
    - InvalidCursorError when one block holds more events than the limit.
    - ChainQueryError (and subclasses) from the oracle.
    - InternalInvariantError, ConversionError, AccountAddressInvalidError
      from the engine.

Usage:
    service = HistoryService(EventLogSelector(session), oracle)
    page = service.fungible_history("usn", "alice.near", cursor)
    next_page = service.fungible_history(
        "usn", "alice.near", page.next_cursor, anchor_balance=page.opening_balance,
    )
"""

from __future__ import annotations

from balance_kernel.domain.cursor import HistoryCursor
from balance_kernel.domain.dtos import CoinMetadata, HistoryPage
from balance_kernel.domain.reconstruction import (
    project_native_history,
    project_nft_history,
    reconstruct_fungible_history,
)
from balance_kernel.logging_config import LogContext, get_logger
from balance_kernel.selectors.event_log_selector import EventLogSelector
from balance_kernel.services.balance_oracle import BalanceOracle

logger = get_logger("services.history")

NATIVE_ASSET_ID = "near"


class HistoryService:
    """
    Builds history pages for native coin, fungible and non-fungible tokens.

    Contract:
        Each public method handles exactly one page and returns a
        HistoryPage with items newest first and the cursor of the following
        page (None when the page was not full).

    Non-goals:
        - Does NOT fetch coin metadata; callers pass it in if they have it.
        - Does NOT cache anything across calls.
        - Does NOT enforce an upper bound on cursor.limit.
    """

    def __init__(self, event_log: EventLogSelector, oracle: BalanceOracle | None = None):
        self._event_log = event_log
        self._oracle = oracle

    def native_history(self, account_id: str, cursor: HistoryCursor) -> HistoryPage:
        """Native coin history; rows already carry absolute balances."""
        with LogContext.bind(account_id=account_id, asset_id=NATIVE_ASSET_ID):
            rows, has_more = cursor.cut_page(
                self._event_log.fetch_native_changes(account_id, cursor.lookahead())
            )
            items = project_native_history(rows, account_id)
            logger.info(
                "native_history_built",
                extra={"item_count": len(items), "limit": cursor.limit},
            )
            return HistoryPage(items=items, next_cursor=cursor.next_cursor(items, has_more))

    def fungible_history(
        self,
        contract_id: str,
        account_id: str,
        cursor: HistoryCursor,
        anchor_balance: int | None = None,
        metadata: CoinMetadata | None = None,
    ) -> HistoryPage:
        """
        Fungible token balance trail reconstructed backward from an anchor.

        Args:
            contract_id: Token contract account id.
            account_id: Subject account.
            cursor: Page bound.  cursor.block_height pins the anchor query.
            anchor_balance: Balance after the newest event of this page, as
                carried from the previous page's opening_balance.  When
                None the oracle is queried at cursor.block_height.
            metadata: Optional coin metadata attached to every item.

        Returns:
            HistoryPage with opening_balance set to the balance before the
            oldest item.
        """
        with LogContext.bind(account_id=account_id, asset_id=contract_id):
            rows, has_more = cursor.cut_page(
                self._event_log.fetch_fungible_events(contract_id, account_id, cursor.lookahead())
            )

            if anchor_balance is None:
                if self._oracle is None:
                    raise RuntimeError("fungible_history needs an oracle or an anchor_balance")
                anchor_balance = self._oracle.balance_at(contract_id, account_id, cursor.block_height)
                anchor_source = "oracle"
            else:
                anchor_source = "carried"

            result = reconstruct_fungible_history(account_id, contract_id, anchor_balance, rows)
            items = result.items
            if metadata is not None:
                items = tuple(item.with_metadata(metadata) for item in items)

            logger.info(
                "fungible_history_built",
                extra={
                    "item_count": len(items),
                    "limit": cursor.limit,
                    "anchor_source": anchor_source,
                    "block_height": cursor.block_height,
                },
            )
            return HistoryPage(
                items=items,
                next_cursor=cursor.next_cursor(items, has_more),
                opening_balance=result.opening_balance,
            )

    def nft_history(self, contract_id: str, token_id: str, cursor: HistoryCursor) -> HistoryPage:
        """Ownership history of one non-fungible token."""
        with LogContext.bind(asset_id=f"{contract_id}:{token_id}"):
            rows, has_more = cursor.cut_page(
                self._event_log.fetch_nft_events(contract_id, token_id, cursor.lookahead())
            )
            items = project_nft_history(rows)
            logger.info(
                "nft_history_built",
                extra={"item_count": len(items), "limit": cursor.limit},
            )
            return HistoryPage(items=items, next_cursor=cursor.next_cursor(items, has_more))
