"""
Pytest fixtures for the balance kernel test suite.

Provides:
- Structured logging setup and log capture
- In-memory SQLite sessions with the indexer tables
- Row builders for the explorer and balances tables

No PostgreSQL is required.  Values stored through SQLite NUMERIC columns
round-trip through floats, so fixtures keep heights and timestamps well
below 2**53.
"""

import json
import logging
from decimal import Decimal
from io import StringIO
from itertools import count

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from balance_kernel.db.base import Base
from balance_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from balance_kernel.models import (
    BalanceChange,
    Block,
    ExecutionOutcome,
    FungibleTokenEvent,
    NonFungibleTokenEvent,
)

# Block N is produced at BLOCK_TIME_ORIGIN + N * BLOCK_TIME_STEP nanoseconds
BLOCK_TIME_ORIGIN = 1_600_000_000_000
BLOCK_TIME_STEP = 1_000


def block_timestamp(height: int) -> int:
    return BLOCK_TIME_ORIGIN + height * BLOCK_TIME_STEP


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture balance_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            service.fungible_history(...)
            logs = captured_logs()
            assert any(r["message"] == "fungible_history_built" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("balance_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_session():
    """In-memory SQLite session with every indexer table created."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine)
    session = factory()
    yield session
    session.close()
    engine.dispose()


class IndexerData:
    """Writes explorer and balances rows for tests."""

    def __init__(self, session: Session):
        self.session = session
        self._ids = count(1)

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}{next(self._ids):08d}"

    def block(self, height: int) -> Block:
        existing = self.session.query(Block).filter_by(block_height=Decimal(height)).first()
        if existing is not None:
            return existing
        block = Block(
            block_hash=f"block{height:08d}",
            block_height=Decimal(height),
            block_timestamp=Decimal(block_timestamp(height)),
        )
        self.session.add(block)
        self.session.flush()
        return block

    def _receipt(self, status: str) -> str:
        receipt_id = self._next_id("receipt")
        self.session.add(ExecutionOutcome(receipt_id=receipt_id, status=status))
        return receipt_id

    def ft_event(
        self,
        height: int,
        old_owner: str,
        new_owner: str,
        amount: str,
        contract: str = "usn",
        event_kind: str = "TRANSFER",
        status: str = "SUCCESS_VALUE",
        index: int = 0,
        shard: int = 0,
    ) -> FungibleTokenEvent:
        self.block(height)
        event = FungibleTokenEvent(
            emitted_for_receipt_id=self._receipt(status),
            emitted_index_of_event_entry_in_shard=index,
            emitted_in_shard_id=shard,
            emitted_at_block_timestamp=Decimal(block_timestamp(height)),
            emitted_by_contract_account_id=contract,
            amount=amount,
            event_kind=event_kind,
            token_old_owner_account_id=old_owner,
            token_new_owner_account_id=new_owner,
        )
        self.session.add(event)
        self.session.flush()
        return event

    def nft_event(
        self,
        height: int,
        old_owner: str,
        new_owner: str,
        token_id: str = "1",
        contract: str = "paras.near",
        event_kind: str = "TRANSFER",
        status: str = "SUCCESS_VALUE",
    ) -> NonFungibleTokenEvent:
        self.block(height)
        event = NonFungibleTokenEvent(
            emitted_for_receipt_id=self._receipt(status),
            emitted_index_of_event_entry_in_shard=0,
            emitted_in_shard_id=0,
            emitted_at_block_timestamp=Decimal(block_timestamp(height)),
            emitted_by_contract_account_id=contract,
            token_id=token_id,
            event_kind=event_kind,
            token_old_owner_account_id=old_owner,
            token_new_owner_account_id=new_owner,
        )
        self.session.add(event)
        self.session.flush()
        return event

    def balance_change(
        self,
        height: int,
        account: str,
        delta_available: int,
        available: int,
        delta_staked: int = 0,
        staked: int = 0,
        involved: str | None = None,
        cause: str = "TRANSACTION",
    ) -> BalanceChange:
        change = BalanceChange(
            event_index=Decimal(next(self._ids)),
            block_timestamp=Decimal(block_timestamp(height)),
            block_height=Decimal(height),
            affected_account_id=account,
            involved_account_id=involved,
            direction="INBOUND" if delta_available + delta_staked >= 0 else "OUTBOUND",
            cause=cause,
            delta_nonstaked_amount=Decimal(delta_available),
            absolute_nonstaked_amount=Decimal(available),
            delta_staked_amount=Decimal(delta_staked),
            absolute_staked_amount=Decimal(staked),
        )
        self.session.add(change)
        self.session.flush()
        return change


@pytest.fixture
def indexer(db_session) -> IndexerData:
    return IndexerData(db_session)


@pytest.fixture
def block_time():
    """Timestamp (nanoseconds) of the fixture block at a height."""
    return block_timestamp
