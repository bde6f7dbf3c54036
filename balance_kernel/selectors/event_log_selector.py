"""
Module: balance_kernel.selectors.event_log_selector
Responsibility: The Event Log Reader.  Fetches one newest-first page of
    balance-affecting events for a (account, asset) pair, bounded by a
    HistoryCursor, plus the block lookups used to pin the first cursor.
Architecture position: Kernel > Selectors.  May import from models/,
    domain/ and selectors/base.py.  MUST NOT import from services/.

Invariants enforced:
    - Pages are ordered newest first by block timestamp, with the shard and
      in-shard event index (or the event index) as tie-breakers.
    - Only events strictly older than cursor.block_timestamp_nanos are
      returned, at most cursor.limit of them.
    - Fungible and non-fungible token events are returned only for receipts
      that executed successfully.

Failure modes:
    - TransientIOError after max_retries attempts failing with a
      connection-level error (OperationalError, DisconnectionError, pool
      TimeoutError).  Each failed attempt is logged and followed by a
      linear backoff.
    - PersistentIOError on any other SQLAlchemyError, without retry.
"""

import time
from decimal import Decimal
from typing import Callable, TypeVar

from sqlalchemy import or_, select
from sqlalchemy.exc import (
    DisconnectionError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.orm import Session

from balance_kernel.domain.cursor import HistoryCursor
from balance_kernel.domain.dtos import (
    BlockInfo,
    FungibleTokenEventRow,
    NativeBalanceChangeRow,
    NftEventRow,
)
from balance_kernel.exceptions import PersistentIOError, TransientIOError
from balance_kernel.logging_config import get_logger
from balance_kernel.models.balance_change import BalanceChange
from balance_kernel.models.block import SUCCESSFUL_STATUSES, Block, ExecutionOutcome
from balance_kernel.models.token_event import FungibleTokenEvent, NonFungibleTokenEvent
from balance_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.event_log")

T = TypeVar("T")

_TRANSIENT_ERRORS = (OperationalError, DisconnectionError, PoolTimeoutError)


class EventLogSelector(BaseSelector):
    """
    Selector for the raw balance event log.

    Contract:
        Every fetch_* method returns a list of frozen row DTOs holding the
        stored Decimal / text values unconverted.  Conversion and
        validation belong to the reconstruction engine.

    Guarantees:
        - Newest first, at most cursor.limit rows, strictly older than
          cursor.block_timestamp_nanos.
        - Bounded retry on transient failures; the session is rolled back
          between attempts.

    Non-goals:
        - Does NOT filter by cursor.block_height; the height only pins the
          balance oracle.
    """

    DEFAULT_MAX_RETRIES = 3
    DEFAULT_BACKOFF_SECONDS = 0.5

    def __init__(
        self,
        session: Session,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(session)
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self._max_retries = max_retries
        self._backoff_seconds = backoff_seconds
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Retry boundary
    # ------------------------------------------------------------------

    def _run(self, operation: str, query: Callable[[], T]) -> T:
        """Run query, retrying connection-level failures with linear backoff."""
        for attempt in range(1, self._max_retries + 1):
            try:
                return query()
            except _TRANSIENT_ERRORS as exc:
                self.session.rollback()
                if attempt < self._max_retries:
                    logger.warning(
                        "event_log_query_retry",
                        extra={
                            "operation": operation,
                            "attempt": attempt,
                            "max_retries": self._max_retries,
                        },
                    )
                    self._sleep(self._backoff_seconds * attempt)
                    continue
                logger.error(
                    "event_log_query_exhausted",
                    extra={"operation": operation, "attempts": attempt},
                )
                raise TransientIOError(operation, str(exc)) from exc
            except SQLAlchemyError as exc:
                self.session.rollback()
                logger.error("event_log_query_failed", extra={"operation": operation})
                raise PersistentIOError(operation, str(exc)) from exc
        raise AssertionError("unreachable")

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def latest_block(self) -> BlockInfo | None:
        """The highest indexed block, or None for an empty index."""
        stmt = (
            select(Block.block_height, Block.block_timestamp)
            .order_by(Block.block_height.desc())
            .limit(1)
        )

        def query() -> BlockInfo | None:
            row = self.session.execute(stmt).first()
            return BlockInfo(row.block_height, row.block_timestamp) if row else None

        return self._run("latest_block", query)

    def block_at_height(self, block_height: int) -> BlockInfo | None:
        """The block at exactly block_height, or None if it was skipped."""
        stmt = select(Block.block_height, Block.block_timestamp).where(
            Block.block_height == Decimal(block_height)
        )

        def query() -> BlockInfo | None:
            row = self.session.execute(stmt).first()
            return BlockInfo(row.block_height, row.block_timestamp) if row else None

        return self._run("block_at_height", query)

    # ------------------------------------------------------------------
    # Event pages
    # ------------------------------------------------------------------

    def fetch_native_changes(
        self, account_id: str, cursor: HistoryCursor
    ) -> list[NativeBalanceChangeRow]:
        """Native balance changes of account_id, newest first."""
        stmt = (
            select(BalanceChange)
            .where(BalanceChange.affected_account_id == account_id)
            .where(BalanceChange.block_timestamp < Decimal(cursor.block_timestamp_nanos))
            .order_by(BalanceChange.block_timestamp.desc(), BalanceChange.event_index.desc())
            .limit(cursor.limit)
        )

        def query() -> list[NativeBalanceChangeRow]:
            return [
                NativeBalanceChangeRow(
                    involved_account_id=change.involved_account_id,
                    delta_available=change.delta_nonstaked_amount,
                    delta_staked=change.delta_staked_amount,
                    absolute_available=change.absolute_nonstaked_amount,
                    absolute_staked=change.absolute_staked_amount,
                    cause=change.cause,
                    block_height=change.block_height,
                    block_timestamp=change.block_timestamp,
                )
                for change in self.session.scalars(stmt)
            ]

        return self._run("fetch_native_changes", query)

    def fetch_fungible_events(
        self, contract_id: str, account_id: str, cursor: HistoryCursor
    ) -> list[FungibleTokenEventRow]:
        """Successful token events of contract_id touching account_id, newest first."""
        event = FungibleTokenEvent
        stmt = (
            select(
                Block.block_height,
                Block.block_timestamp,
                event.amount,
                event.event_kind,
                event.token_old_owner_account_id,
                event.token_new_owner_account_id,
            )
            .join(Block, event.emitted_at_block_timestamp == Block.block_timestamp)
            .join(ExecutionOutcome, event.emitted_for_receipt_id == ExecutionOutcome.receipt_id)
            .where(event.emitted_by_contract_account_id == contract_id)
            .where(ExecutionOutcome.status.in_(SUCCESSFUL_STATUSES))
            .where(
                or_(
                    event.token_old_owner_account_id == account_id,
                    event.token_new_owner_account_id == account_id,
                )
            )
            .where(event.emitted_at_block_timestamp < Decimal(cursor.block_timestamp_nanos))
            .order_by(
                event.emitted_at_block_timestamp.desc(),
                event.emitted_in_shard_id.desc(),
                event.emitted_index_of_event_entry_in_shard.desc(),
            )
            .limit(cursor.limit)
        )

        def query() -> list[FungibleTokenEventRow]:
            return [
                FungibleTokenEventRow(
                    block_height=row.block_height,
                    block_timestamp=row.block_timestamp,
                    amount=row.amount,
                    event_kind=row.event_kind,
                    old_owner_id=row.token_old_owner_account_id,
                    new_owner_id=row.token_new_owner_account_id,
                )
                for row in self.session.execute(stmt)
            ]

        return self._run("fetch_fungible_events", query)

    def fetch_nft_events(
        self, contract_id: str, token_id: str, cursor: HistoryCursor
    ) -> list[NftEventRow]:
        """Successful ownership changes of one token, newest first."""
        event = NonFungibleTokenEvent
        stmt = (
            select(
                event.event_kind,
                event.token_old_owner_account_id,
                event.token_new_owner_account_id,
                Block.block_height,
                Block.block_timestamp,
            )
            .join(Block, event.emitted_at_block_timestamp == Block.block_timestamp)
            .join(ExecutionOutcome, event.emitted_for_receipt_id == ExecutionOutcome.receipt_id)
            .where(event.emitted_by_contract_account_id == contract_id)
            .where(event.token_id == token_id)
            .where(ExecutionOutcome.status.in_(SUCCESSFUL_STATUSES))
            .where(event.emitted_at_block_timestamp < Decimal(cursor.block_timestamp_nanos))
            .order_by(
                event.emitted_at_block_timestamp.desc(),
                event.emitted_in_shard_id.desc(),
                event.emitted_index_of_event_entry_in_shard.desc(),
            )
            .limit(cursor.limit)
        )

        def query() -> list[NftEventRow]:
            return [
                NftEventRow(
                    action_kind=row.event_kind,
                    old_account_id=row.token_old_owner_account_id,
                    new_account_id=row.token_new_owner_account_id,
                    block_height=row.block_height,
                    block_timestamp=row.block_timestamp,
                )
                for row in self.session.execute(stmt)
            ]

        return self._run("fetch_nft_events", query)
