"""Tests for balance_kernel.domain.dtos rendering and classification."""

from decimal import Decimal

from balance_kernel.domain.cursor import HistoryCursor
from balance_kernel.domain.dtos import (
    BalanceSnapshot,
    CoinHistoryItem,
    CoinMetadata,
    EventKind,
    FungibleTokenEventRow,
    HistoryPage,
    NativeBalanceChangeRow,
    NativeHistoryItem,
    NftEventRow,
    NftHistoryItem,
)

BIG = 2**128 - 1


def _ft_row(old: str, new: str) -> FungibleTokenEventRow:
    return FungibleTokenEventRow(
        block_height=Decimal(10),
        block_timestamp=Decimal(1_000),
        amount="5",
        event_kind="TRANSFER",
        old_owner_id=old,
        new_owner_id=new,
    )


class TestEventKinds:

    def test_fungible_classification(self):
        assert _ft_row("", "alice.near").kind is EventKind.FUNGIBLE_MINT
        assert _ft_row("alice.near", "").kind is EventKind.FUNGIBLE_BURN
        assert _ft_row("alice.near", "bob.near").kind is EventKind.FUNGIBLE_TRANSFER

    def test_nft_classification(self):
        row = NftEventRow("MINT", "", "alice.near", Decimal(1), Decimal(2))
        assert row.kind is EventKind.NFT_MINT

    def test_native_classification(self):
        row = NativeBalanceChangeRow(
            None, Decimal(1), Decimal(0), Decimal(1), Decimal(0), "REWARD", Decimal(1), Decimal(2)
        )
        assert row.kind is EventKind.NATIVE_BALANCE_CHANGE

    def test_describe_is_loggable(self):
        description = _ft_row("alice.near", "bob.near").describe()
        assert description["block_height"] == "10"
        assert description["old_owner_id"] == "alice.near"


class TestSnapshot:

    def test_delta(self):
        assert BalanceSnapshot(balance_before=10, balance_after=4).delta == -6

    def test_item_snapshot(self):
        item = CoinHistoryItem("TRANSFER", "bob.near", -6, 4, 10, 1, 2)
        assert item.snapshot == BalanceSnapshot(10, 4)


class TestRendering:

    def test_coin_item_renders_strings(self):
        item = CoinHistoryItem("TRANSFER", "bob.near", BIG, BIG, 0, 77, 123_456)
        rendered = item.to_dict()
        assert rendered == {
            "action_kind": "TRANSFER",
            "involved_account_id": "bob.near",
            "delta_balance": str(BIG),
            "balance": str(BIG),
            "coin_metadata": None,
            "block_height": "77",
            "block_timestamp_nanos": "123456",
        }

    def test_coin_item_with_metadata(self):
        metadata = CoinMetadata(name="USN", symbol="USN", decimals=18)
        item = CoinHistoryItem("MINT", None, 5, 5, 0, 1, 2).with_metadata(metadata)
        assert item.to_dict()["coin_metadata"] == {
            "name": "USN",
            "symbol": "USN",
            "decimals": 18,
            "icon": None,
        }

    def test_native_item_renders_strings(self):
        item = NativeHistoryItem(None, -3, -1, -2, 97, 90, 7, "TRANSACTION", 5, 6)
        rendered = item.to_dict()
        assert rendered["delta_balance"] == "-3"
        assert rendered["total_balance"] == "97"
        assert rendered["involved_account_id"] is None
        assert rendered["cause"] == "TRANSACTION"

    def test_nft_item_renders_strings(self):
        item = NftHistoryItem("TRANSFER", "alice.near", "bob.near", 5, 6)
        assert item.to_dict()["block_timestamp_nanos"] == "6"

    def test_page_with_cursor(self):
        item = NftHistoryItem("MINT", None, "bob.near", 5, 6)
        page = HistoryPage(items=(item,), next_cursor=HistoryCursor(5, 6, 1))
        assert page.to_dict() == {
            "history": [item.to_dict()],
            "next_cursor": {"block_height": "5", "block_timestamp_nanos": "6", "limit": 1},
        }

    def test_last_page_has_no_cursor(self):
        assert HistoryPage().to_dict() == {"history": []}
