"""
Account identifier parsing.

NEAR account ids are 2 to 64 characters of lowercase alphanumeric parts
separated by single ``.``, ``-`` or ``_`` characters.  Implicit accounts
(64 lowercase hex characters) satisfy the same grammar.

Mint and burn events store an empty owner on the side that has no
account; extract_account_id() maps that to None.
"""

from __future__ import annotations

import re

from balance_kernel.exceptions import AccountAddressInvalidError

MIN_ACCOUNT_ID_LEN = 2
MAX_ACCOUNT_ID_LEN = 64

_ACCOUNT_ID = re.compile(r"(([a-z\d]+[\-_])*[a-z\d]+\.)*([a-z\d]+[\-_])*[a-z\d]+")


def parse_account_id(value: str) -> str:
    """Return value unchanged if it is a well-formed account id."""
    if not isinstance(value, str):
        raise AccountAddressInvalidError(repr(value), "account id must be a string")
    if len(value) < MIN_ACCOUNT_ID_LEN:
        raise AccountAddressInvalidError(value, "too short")
    if len(value) > MAX_ACCOUNT_ID_LEN:
        raise AccountAddressInvalidError(value, "too long")
    if _ACCOUNT_ID.fullmatch(value) is None:
        raise AccountAddressInvalidError(value, "invalid characters or separators")
    return value


def extract_account_id(value: str | None) -> str | None:
    """Parse an optional owner field; empty or missing means no account."""
    if value is None or value == "":
        return None
    return parse_account_id(value)
