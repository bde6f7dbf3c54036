"""
BalanceOracle -- point-in-time fungible token balances.

Responsibility:
    Answers "what was the balance of this account with this token at this
    block height", the anchor from which the fungible token history is
    walked backward.

Architecture position:
    Kernel > Services -- imperative shell.  JsonRpcBalanceOracle is the one
    network boundary of the kernel.  FixedBalanceOracle is the
    deterministic double used by tests and replays.

Failure modes:
    - UnknownBlockError: the node does not know the height or has already
      garbage-collected it.
    - AssetNotFoundError: the token contract does not exist.
    - ChainQueryError: transport failure, malformed response, or any other
      RPC error.
    An account that was never registered with the token is NOT an error;
    the contract answers null and the oracle reports 0.

Audit relevance:
    The anchor balance is the only absolute value the fungible token path
    sees.  The returned value passes through to_u128 so a malformed answer
    is rejected instead of propagated.
"""

from __future__ import annotations

import base64
import json
from abc import ABC, abstractmethod
from typing import Any

import requests

from balance_kernel.domain.numeric import to_u128
from balance_kernel.exceptions import (
    AssetNotFoundError,
    ChainQueryError,
    ConversionError,
    UnknownBlockError,
)
from balance_kernel.logging_config import get_logger

logger = get_logger("services.balance_oracle")


class BalanceOracle(ABC):
    """
    Abstract point-in-time balance source.

    Contract:
        balance_at() returns a u128 balance as of the END of block_height.
    """

    @abstractmethod
    def balance_at(self, asset_id: str, account_id: str, block_height: int) -> int:
        """Balance of account_id with asset_id after block_height."""
        ...


class FixedBalanceOracle(BalanceOracle):
    """
    In-memory oracle with preset answers.

    Lookups fall back from (asset, account, height) to (asset, account) so a
    test can fix one balance for every height.  Unknown pairs answer 0, the
    same as an unregistered account on chain.
    """

    def __init__(self, balances: dict[tuple, int] | None = None):
        self._balances = dict(balances or {})
        self.calls: list[tuple[str, str, int]] = []

    def set_balance(self, asset_id: str, account_id: str, balance: int, block_height: int | None = None) -> None:
        key = (asset_id, account_id) if block_height is None else (asset_id, account_id, block_height)
        self._balances[key] = balance

    def balance_at(self, asset_id: str, account_id: str, block_height: int) -> int:
        self.calls.append((asset_id, account_id, block_height))
        if (asset_id, account_id, block_height) in self._balances:
            return to_u128(self._balances[(asset_id, account_id, block_height)])
        return to_u128(self._balances.get((asset_id, account_id), 0))


# Handler error causes reported by the node
_UNKNOWN_BLOCK_CAUSES = frozenset({"UNKNOWN_BLOCK", "GARBAGE_COLLECTED_BLOCK"})
_MISSING_CONTRACT_CAUSES = frozenset({"NO_CONTRACT_CODE", "UNKNOWN_ACCOUNT"})


class JsonRpcBalanceOracle(BalanceOracle):
    """
    Oracle backed by a node's JSON-RPC ``query`` / ``call_function`` of the
    token contract's ``ft_balance_of`` view method.

    Guarantees:
        - One HTTP POST per call, pinned to block_id=block_height.
        - The answer is parsed with to_u128.

    Non-goals:
        - No retry.  A failed anchor query is surfaced to the caller as a
          degraded response signal.
    """

    METHOD_NAME = "ft_balance_of"

    def __init__(
        self,
        rpc_url: str,
        session: requests.Session | None = None,
        timeout_seconds: float = 10.0,
    ):
        self.rpc_url = rpc_url
        self.session = session or requests.Session()
        self.timeout_seconds = timeout_seconds

    def _payload(self, asset_id: str, account_id: str, block_height: int) -> dict[str, Any]:
        args = json.dumps({"account_id": account_id}).encode()
        return {
            "jsonrpc": "2.0",
            "id": "balance_kernel",
            "method": "query",
            "params": {
                "request_type": "call_function",
                "block_id": block_height,
                "account_id": asset_id,
                "method_name": self.METHOD_NAME,
                "args_base64": base64.b64encode(args).decode(),
            },
        }

    def balance_at(self, asset_id: str, account_id: str, block_height: int) -> int:
        def fail(cls: type[ChainQueryError], detail: str) -> ChainQueryError:
            logger.warning(
                "balance_query_failed",
                extra={
                    "asset": asset_id,
                    "account": account_id,
                    "block_height": block_height,
                    "error_code": cls.code,
                    "detail": detail,
                },
            )
            return cls(asset_id, account_id, block_height, detail)

        try:
            response = self.session.post(
                self.rpc_url,
                json=self._payload(asset_id, account_id, block_height),
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise fail(ChainQueryError, f"transport error: {exc}") from exc
        try:
            body = response.json()
        except ValueError as exc:
            raise fail(ChainQueryError, "response is not JSON") from exc
        if not isinstance(body, dict):
            raise fail(ChainQueryError, "response is not a JSON-RPC object")

        error = body.get("error")
        if error is not None:
            if not isinstance(error, dict):
                raise fail(ChainQueryError, str(error))
            cause = error.get("cause")
            cause = cause.get("name", "") if isinstance(cause, dict) else ""
            message = str(error.get("data") or error.get("message") or error)
            if cause in _UNKNOWN_BLOCK_CAUSES:
                raise fail(UnknownBlockError, message)
            if cause in _MISSING_CONTRACT_CAUSES:
                raise fail(AssetNotFoundError, message)
            raise fail(ChainQueryError, message)

        result = body.get("result") or {}
        # Older nodes report contract failures inside a successful response
        if "error" in result:
            message = str(result["error"])
            if "CodeDoesNotExist" in message:
                raise fail(AssetNotFoundError, message)
            raise fail(ChainQueryError, message)

        try:
            decoded = json.loads(bytes(result["result"]).decode())
        except (KeyError, TypeError, ValueError) as exc:
            raise fail(ChainQueryError, "malformed call_function result") from exc

        if decoded is None:
            return 0
        try:
            return to_u128(decoded)
        except ConversionError as exc:
            raise fail(ChainQueryError, f"malformed balance {decoded!r}") from exc
