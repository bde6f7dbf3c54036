"""
Module: balance_kernel.db.types
Responsibility: Column types for the numeric and identifier columns of the
    indexer tables.  Centralizes precision so that every model maps amounts,
    heights and timestamps identically.
Architecture position: Kernel > DB.  May be imported by models/ and
    selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    CRITICAL: No floats anywhere in the kernel.  Amounts, heights and
           timestamps are NUMERIC with zero scale and are read back as
           Decimal, then converted by balance_kernel.domain.numeric.

Audit relevance:
    numeric(45, 0) holds the full unsigned 128-bit range (39 digits) with
    headroom for signed deltas.  numeric(20, 0) holds the full unsigned
    64-bit range used for block heights and nanosecond timestamps.
"""

from sqlalchemy import Numeric, String

AMOUNT_PRECISION = 45
U64_PRECISION = 20

# Token amount in the asset's smallest unit (u128 / i128 range)
Amount = Numeric(AMOUNT_PRECISION, 0)

# Block height (u64)
BlockHeight = Numeric(U64_PRECISION, 0)

# Block timestamp in nanoseconds (u64)
TimestampNanos = Numeric(U64_PRECISION, 0)

# Event index within the balance log (u128)
EventIndex = Numeric(AMOUNT_PRECISION, 0)

# Account identifier (NEAR account ids are at most 64 characters)
AccountIdColumn = String(64)

# Receipt / transaction / block hash (base58)
HashColumn = String(64)
