"""
Tests for balance_kernel.domain.numeric.

Every conversion is exact and range-checked.  Floats, booleans and any
text outside the canonical integer grammar are rejected, never coerced.
"""

from decimal import Decimal

import pytest

from balance_kernel.domain.numeric import (
    I64_MAX,
    I64_MIN,
    I128_MAX,
    I128_MIN,
    U64_MAX,
    U128_MAX,
    checked_add_i128,
    checked_add_u128,
    checked_neg_i128,
    ensure_i128,
    ensure_u128,
    render_amount,
    to_i64,
    to_i128,
    to_u64,
    to_u128,
)
from balance_kernel.exceptions import (
    ConversionError,
    MalformedNumericError,
    OutOfRangeError,
)


class TestAcceptedInputs:
    """Values that convert exactly."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("0", 0),
            ("1000", 1000),
            ("1000.0", 1000),
            ("1000.000", 1000),
            (Decimal("1000"), 1000),
            (Decimal("1E+3"), 1000),
            (Decimal("1000.00"), 1000),
            (1000, 1000),
        ],
    )
    def test_u128_accepts(self, value, expected):
        assert to_u128(value) == expected

    def test_u128_bounds(self):
        assert to_u128(str(U128_MAX)) == U128_MAX
        assert to_u128(Decimal(U128_MAX)) == U128_MAX
        assert to_u128("0") == 0

    def test_i128_bounds(self):
        assert to_i128(str(I128_MIN)) == I128_MIN
        assert to_i128(str(I128_MAX)) == I128_MAX
        assert to_i128("-5") == -5

    def test_u64_and_i64_bounds(self):
        assert to_u64(str(U64_MAX)) == U64_MAX
        assert to_i64(str(I64_MIN)) == I64_MIN
        assert to_i64(str(I64_MAX)) == I64_MAX

    def test_precision_beyond_float(self):
        """Amounts above 2**53 survive unchanged."""
        value = "340282366920938463463374607431768211455"
        assert render_amount(to_u128(value)) == value


class TestRejectedInputs:
    """Malformed values raise MalformedNumericError."""

    @pytest.mark.parametrize(
        "value",
        [
            "",
            " 1",
            "1 ",
            "+1",
            "01",
            "00",
            "-0",
            "-0.0",
            "-00",
            "1.5",
            "1.",
            ".0",
            "1e3",
            "0x10",
            "1_000",
            "-",
            "NaN",
            "Infinity",
            "١٢٣",
        ],
    )
    def test_non_canonical_text(self, value):
        with pytest.raises(MalformedNumericError):
            to_i128(value)

    @pytest.mark.parametrize(
        "value",
        [Decimal("1.5"), Decimal("NaN"), Decimal("Infinity"), Decimal("-Infinity")],
    )
    def test_non_integral_decimal(self, value):
        with pytest.raises(MalformedNumericError):
            to_u128(value)

    @pytest.mark.parametrize("value", [1.0, True, False, None, b"1", [1]])
    def test_unsupported_types(self, value):
        with pytest.raises(MalformedNumericError):
            to_u128(value)

    def test_malformed_is_conversion_error(self):
        with pytest.raises(ConversionError) as exc_info:
            to_u64("abc")
        assert exc_info.value.code == "MALFORMED_NUMERIC"
        assert exc_info.value.value == "'abc'"


class TestRangeChecks:
    """Out-of-range integers raise OutOfRangeError, never wrap or clamp."""

    @pytest.mark.parametrize(
        "convert, value",
        [
            (to_u128, str(U128_MAX + 1)),
            (to_u128, "-1"),
            (to_i128, str(I128_MAX + 1)),
            (to_i128, str(I128_MIN - 1)),
            (to_u64, str(U64_MAX + 1)),
            (to_u64, "-1"),
            (to_i64, str(I64_MAX + 1)),
            (to_i64, str(I64_MIN - 1)),
        ],
    )
    def test_out_of_range(self, convert, value):
        with pytest.raises(OutOfRangeError) as exc_info:
            convert(value)
        assert exc_info.value.code == "OUT_OF_RANGE"

    def test_error_carries_target_and_bounds(self):
        with pytest.raises(OutOfRangeError) as exc_info:
            to_u128("-1")
        error = exc_info.value
        assert error.target == "u128"
        assert error.minimum == "0"
        assert error.maximum == str(U128_MAX)

    def test_ensure_helpers(self):
        assert ensure_u128(U128_MAX) == U128_MAX
        assert ensure_i128(I128_MIN) == I128_MIN
        with pytest.raises(OutOfRangeError):
            ensure_u128(-1)
        with pytest.raises(OutOfRangeError):
            ensure_i128(I128_MAX + 1)


class TestCheckedArithmetic:

    def test_add_u128(self):
        assert checked_add_u128(U128_MAX - 1, 1) == U128_MAX
        with pytest.raises(OutOfRangeError):
            checked_add_u128(U128_MAX, 1)

    def test_add_i128(self):
        assert checked_add_i128(-5, 3) == -2
        with pytest.raises(OutOfRangeError):
            checked_add_i128(I128_MAX, 1)
        with pytest.raises(OutOfRangeError):
            checked_add_i128(I128_MIN, -1)

    def test_neg_i128(self):
        assert checked_neg_i128(I128_MAX) == -I128_MAX
        assert checked_neg_i128(0) == 0
        with pytest.raises(OutOfRangeError):
            checked_neg_i128(I128_MIN)


class TestRenderAmount:

    def test_canonical_strings(self):
        assert render_amount(0) == "0"
        assert render_amount(-42) == "-42"
        assert render_amount(U128_MAX) == str(U128_MAX)

    @pytest.mark.parametrize("value", [1.0, True, Decimal("1"), "1"])
    def test_rejects_non_int(self, value):
        with pytest.raises(MalformedNumericError):
            render_amount(value)
