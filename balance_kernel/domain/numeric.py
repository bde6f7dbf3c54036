"""
Numeric -- Lossless conversion between stored decimals and fixed-width ints.

Responsibility:
    Converts the arbitrary-precision values the indexer stores (NUMERIC
    columns read back as Decimal, amounts stored as text) into Python ints
    that are guaranteed to fit a 64-bit or 128-bit signed/unsigned range,
    and renders them back to canonical decimal strings.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    CHECKED_ARITHMETIC -- every conversion and every arithmetic helper
        range-checks its result.  Nothing wraps around and nothing is
        clamped.
    No floats: float input is rejected, never coerced.

Failure modes:
    - MalformedNumericError: not a canonical integer (float, bool, NaN,
      Infinity, non-zero fraction, whitespace, sign prefix "+", leading
      zeros, negative zero, exponent notation, unsupported type).
    - OutOfRangeError: integer outside the target range.

Audit relevance:
    Ledger amounts are financial data.  An ambiguous parse would silently
    change a balance, so the textual grammar is deliberately narrow:
    ``(0|-?[1-9][0-9]*)(\\.0+)?``.
"""

from __future__ import annotations

import re
from decimal import Decimal

from balance_kernel.exceptions import MalformedNumericError, OutOfRangeError

U64_MAX = 2**64 - 1
I64_MIN = -(2**63)
I64_MAX = 2**63 - 1
U128_MAX = 2**128 - 1
I128_MIN = -(2**127)
I128_MAX = 2**127 - 1

_CANONICAL_INTEGER = re.compile(r"(0|-?[1-9][0-9]*)(\.0+)?")

NumericInput = int | Decimal | str


def _to_int(value: NumericInput) -> int:
    """Exact integer value of value, or MalformedNumericError."""
    # bool is an int subclass; a flag is never an amount
    if isinstance(value, bool):
        raise MalformedNumericError(value, "boolean is not a number")
    if isinstance(value, int):
        return value
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise MalformedNumericError(value, "not a finite number")
        if value != value.to_integral_value():
            raise MalformedNumericError(value, "non-zero fractional part")
        return int(value)
    if isinstance(value, str):
        if _CANONICAL_INTEGER.fullmatch(value) is None:
            raise MalformedNumericError(value, "not a canonical decimal integer")
        return int(value.split(".", 1)[0])
    raise MalformedNumericError(value, f"unsupported type {type(value).__name__}")


def _check(value: int, target: str, minimum: int, maximum: int) -> int:
    if value < minimum or value > maximum:
        raise OutOfRangeError(value, target, minimum, maximum)
    return value


def to_u64(value: NumericInput) -> int:
    """Convert to an unsigned 64-bit integer (block heights, timestamps)."""
    return _check(_to_int(value), "u64", 0, U64_MAX)


def to_i64(value: NumericInput) -> int:
    """Convert to a signed 64-bit integer."""
    return _check(_to_int(value), "i64", I64_MIN, I64_MAX)


def to_u128(value: NumericInput) -> int:
    """Convert to an unsigned 128-bit integer (balances)."""
    return _check(_to_int(value), "u128", 0, U128_MAX)


def to_i128(value: NumericInput) -> int:
    """Convert to a signed 128-bit integer (deltas)."""
    return _check(_to_int(value), "i128", I128_MIN, I128_MAX)


def ensure_u128(value: int) -> int:
    """Range-check an already computed int against u128."""
    return _check(value, "u128", 0, U128_MAX)


def ensure_i128(value: int) -> int:
    """Range-check an already computed int against i128."""
    return _check(value, "i128", I128_MIN, I128_MAX)


def checked_add_u128(a: int, b: int) -> int:
    """a + b, failing instead of exceeding u128."""
    return ensure_u128(a + b)


def checked_add_i128(a: int, b: int) -> int:
    """a + b, failing instead of leaving i128."""
    return ensure_i128(a + b)


def checked_neg_i128(a: int) -> int:
    """-a, failing on the one i128 value without a negation (I128_MIN)."""
    return ensure_i128(-a)


def render_amount(value: int) -> str:
    """Canonical decimal string for an integer amount.

    to_u128(render_amount(x)) == x for every x in [0, U128_MAX].
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedNumericError(value, "only integers can be rendered")
    return str(value)
