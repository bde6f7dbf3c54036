"""
Cursor -- Timestamp-bounded pagination over the event log.

Responsibility:
    Carries the (block_height, block_timestamp_nanos, limit) triple that
    bounds one history query, and derives the cursor of the next page from
    the oldest item of the current one.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - block_timestamp_nanos is an EXCLUSIVE upper bound: the reader returns
      only events strictly older than it, newest first, at most limit rows.
    - block_height never filters events.  It pins the balance oracle to a
      consistent height for the page.
    - A page never ends inside a block.  Readers fetch one row past the
      limit and cut_page() drops a trailing partial block, which the
      strictly-older bound of the next cursor would otherwise skip.
    - limit is a positive integer.  No upper bound is enforced here; that
      policy belongs to the request validation layer.

Failure modes:
    - InvalidCursorError on a non-positive limit, a height/timestamp that
      is not a u64, or a single block with more events than the limit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, TypeVar

from balance_kernel.domain.numeric import U64_MAX, to_u64
from balance_kernel.exceptions import InvalidCursorError, MalformedNumericError, OutOfRangeError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class HistoryCursor:
    """
    Pagination boundary for one history page.

    Contract:
        Events returned for this cursor satisfy
        ``event.block_timestamp < block_timestamp_nanos``.

    Guarantees:
        - Immutable and hashable.
        - All three fields are validated on construction.
    """

    block_height: int
    block_timestamp_nanos: int
    limit: int

    def __post_init__(self) -> None:
        for name in ("block_height", "block_timestamp_nanos"):
            raw = getattr(self, name)
            try:
                object.__setattr__(self, name, to_u64(raw))
            except (MalformedNumericError, OutOfRangeError) as exc:
                raise InvalidCursorError(name, raw, str(exc)) from exc
        if isinstance(self.limit, bool) or not isinstance(self.limit, int):
            raise InvalidCursorError("limit", self.limit, "must be an integer")
        if self.limit <= 0:
            raise InvalidCursorError("limit", self.limit, "must be positive")

    @classmethod
    def at_block(cls, block_height: int, block_timestamp_nanos: int, limit: int) -> HistoryCursor:
        """Cursor for the newest page as of a block, that block included.

        The bound is one nanosecond past the block's timestamp so the pinned
        block's own events fall on this page.
        """
        timestamp = to_u64(block_timestamp_nanos)
        if timestamp == U64_MAX:
            raise InvalidCursorError(
                "block_timestamp_nanos", timestamp, "no room for an inclusive bound"
            )
        return cls(block_height, timestamp + 1, limit)

    def next_from(self, oldest_block_height: int, oldest_block_timestamp_nanos: int) -> HistoryCursor:
        """Cursor for the page strictly older than the given item."""
        return HistoryCursor(oldest_block_height, oldest_block_timestamp_nanos, self.limit)

    def lookahead(self) -> HistoryCursor:
        """Same bound with room for one row past the limit."""
        return HistoryCursor(self.block_height, self.block_timestamp_nanos, self.limit + 1)

    def cut_page(self, rows: Sequence[T]) -> tuple[list[T], bool]:
        """Cut rows read with lookahead() back to whole blocks.

        Returns this page's rows and whether older rows exist.  When the
        limit falls inside a block, that block's rows move to the next page,
        since the next cursor excludes every row at the oldest kept
        timestamp.

        Raises:
            InvalidCursorError: one block holds more rows than the limit.
        """
        if len(rows) <= self.limit:
            return list(rows), False
        split_timestamp = rows[self.limit].block_timestamp
        kept = [row for row in rows[: self.limit] if row.block_timestamp != split_timestamp]
        if not kept:
            raise InvalidCursorError(
                "limit", self.limit, f"a single block holds more than {self.limit} events"
            )
        return kept, True

    def next_cursor(self, items, has_more: bool | None = None) -> HistoryCursor | None:
        """Cursor for the following page, or None when there is none.

        items are any history items exposing block_height and
        block_timestamp_nanos, ordered newest first.  has_more comes from
        cut_page(); without it a short page is taken as the last one.
        """
        if has_more is None:
            has_more = len(items) >= self.limit
        if not has_more or not items:
            return None
        oldest = items[-1]
        return self.next_from(oldest.block_height, oldest.block_timestamp_nanos)
