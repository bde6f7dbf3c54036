"""
Typed Exception Hierarchy for the Balance Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every input this kernel consumes is a trusted database row or a chain
query result.  When one of them is malformed, the returned balance trail
would be wrong, so callers must be able to tell a corrupted row from a
flaky connection without parsing message strings.

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        page = service.fungible_history(contract_id, account_id, cursor)
    except TransientIOError:
        retry_later()
    except InternalInvariantError as e:
        alert(e.code, account=e.account_id, asset=e.asset_id)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    BalanceKernelError (base)
    |
    +-- ConversionError
    |   +-- MalformedNumericError
    |   +-- OutOfRangeError
    |
    +-- AccountAddressInvalidError
    |
    +-- InternalInvariantError
    |
    +-- DataSourceError
    |   +-- TransientIOError
    |   +-- PersistentIOError
    |
    +-- ChainQueryError
    |   +-- UnknownBlockError
    |   +-- AssetNotFoundError
    |
    +-- InvalidCursorError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Conversion      | MALFORMED_NUMERIC           | Not a canonical integer
                | OUT_OF_RANGE                | Integer outside the target width
----------------|-----------------------------|-----------------------------------------
Identifier      | ACCOUNT_ADDRESS_INVALID     | Counterparty is not a valid account id
----------------|-----------------------------|-----------------------------------------
Invariant       | INTERNAL_ERROR              | Negative balance, role mismatch, page
                |                             | ordering or continuity violation
----------------|-----------------------------|-----------------------------------------
Data source     | TRANSIENT_IO_ERROR          | Retryable database failure
                | PERSISTENT_IO_ERROR         | Non-retryable database failure
----------------|-----------------------------|-----------------------------------------
Chain           | CHAIN_QUERY_ERROR           | Balance oracle could not answer
                | UNKNOWN_BLOCK               | Height unknown or garbage-collected
                | ASSET_NOT_FOUND             | Token contract does not exist
----------------|-----------------------------|-----------------------------------------
Pagination      | INVALID_CURSOR              | Cursor fields out of range

===============================================================================
HANDLING NOTES
===============================================================================

ConversionError, AccountAddressInvalidError and InternalInvariantError all
mean upstream data corruption or a bug.  They are never user input errors
and are never retried.

An account that simply has no registered balance with a token is NOT an
error: the oracle reports zero.  AssetNotFoundError is raised only when the
token contract itself is absent.
"""


class BalanceKernelError(Exception):
    """
    Base exception for all balance kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "BALANCE_KERNEL_ERROR"
    retryable: bool = False


# Conversion exceptions


class ConversionError(BalanceKernelError):
    """Base exception for numeric conversion failures."""

    code: str = "CONVERSION_ERROR"


class MalformedNumericError(ConversionError):
    """Value is not a canonical integer."""

    code: str = "MALFORMED_NUMERIC"

    def __init__(self, value: object, reason: str):
        self.value = repr(value)
        self.reason = reason
        super().__init__(f"Malformed numeric value {self.value}: {reason}")


class OutOfRangeError(ConversionError):
    """Integer does not fit the requested width."""

    code: str = "OUT_OF_RANGE"

    def __init__(self, value: int, target: str, minimum: int, maximum: int):
        self.value = str(value)
        self.target = target
        self.minimum = str(minimum)
        self.maximum = str(maximum)
        super().__init__(
            f"Value {value} out of range for {target} [{minimum}, {maximum}]"
        )


# Identifier exceptions


class AccountAddressInvalidError(BalanceKernelError):
    """Counterparty field failed account identifier parsing."""

    code: str = "ACCOUNT_ADDRESS_INVALID"

    def __init__(self, account_id: str, reason: str):
        self.account_id = account_id
        self.reason = reason
        super().__init__(f"Invalid account id {account_id!r}: {reason}")


# Invariant exceptions


class InternalInvariantError(BalanceKernelError):
    """
    A reconstruction invariant was violated.

    Always fatal for the current request.  The returned balance trail would
    be wrong, so no partial result is produced.
    """

    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        account_id: str | None = None,
        asset_id: str | None = None,
        event: dict | None = None,
    ):
        self.account_id = account_id
        self.asset_id = asset_id
        self.event = event
        super().__init__(message)


# Data source exceptions


class DataSourceError(BalanceKernelError):
    """Base exception for event log read failures."""

    code: str = "DATA_SOURCE_ERROR"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed: {detail}")


class TransientIOError(DataSourceError):
    """Database failure that may succeed on retry."""

    code: str = "TRANSIENT_IO_ERROR"
    retryable: bool = True


class PersistentIOError(DataSourceError):
    """Database failure that will not succeed on retry."""

    code: str = "PERSISTENT_IO_ERROR"


# Chain exceptions


class ChainQueryError(BalanceKernelError):
    """The balance oracle could not establish an anchor balance."""

    code: str = "CHAIN_QUERY_ERROR"

    def __init__(self, asset_id: str, account_id: str, block_height: int, detail: str):
        self.asset_id = asset_id
        self.account_id = account_id
        self.block_height = block_height
        self.detail = detail
        super().__init__(
            f"Balance query for {account_id} on {asset_id} at block "
            f"{block_height} failed: {detail}"
        )


class UnknownBlockError(ChainQueryError):
    """Requested height is unknown to the node or already pruned."""

    code: str = "UNKNOWN_BLOCK"


class AssetNotFoundError(ChainQueryError):
    """The token contract does not exist at the requested height."""

    code: str = "ASSET_NOT_FOUND"


# Pagination exceptions


class InvalidCursorError(BalanceKernelError):
    """Pagination cursor fields are out of range."""

    code: str = "INVALID_CURSOR"

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = repr(value)
        self.reason = reason
        super().__init__(f"Invalid cursor {field}={self.value}: {reason}")


def is_retryable(exc: BaseException) -> bool:
    """True if the error may succeed when the same request is repeated."""
    return isinstance(exc, BalanceKernelError) and exc.retryable
