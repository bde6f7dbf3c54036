"""
Tests for balance_kernel.services.balance_oracle.

The JSON-RPC oracle is exercised against a mocked requests session; no
network access is needed.
"""

import base64
import json
from unittest.mock import MagicMock

import pytest
import requests

from balance_kernel.domain.numeric import U128_MAX
from balance_kernel.exceptions import (
    AssetNotFoundError,
    ChainQueryError,
    UnknownBlockError,
)
from balance_kernel.services.balance_oracle import FixedBalanceOracle, JsonRpcBalanceOracle

RPC_URL = "https://rpc.example.org"


def _call_result(value) -> dict:
    raw = json.dumps(value).encode()
    return {"jsonrpc": "2.0", "id": "balance_kernel", "result": {"result": list(raw), "logs": []}}


def _rpc_error(cause: str) -> dict:
    return {
        "jsonrpc": "2.0",
        "id": "balance_kernel",
        "error": {"name": "HANDLER_ERROR", "cause": {"name": cause}, "message": "Server error"},
    }


def _oracle(body=None, exc=None) -> tuple[JsonRpcBalanceOracle, MagicMock]:
    session = MagicMock()
    if exc is not None:
        session.post.side_effect = exc
    else:
        response = MagicMock()
        response.json.return_value = body
        session.post.return_value = response
    return JsonRpcBalanceOracle(RPC_URL, session=session, timeout_seconds=3.0), session


class TestFixedBalanceOracle:

    def test_default_is_zero(self):
        assert FixedBalanceOracle().balance_at("usn", "alice.near", 10) == 0

    def test_pair_and_height_lookup(self):
        oracle = FixedBalanceOracle({("usn", "alice.near"): 5})
        oracle.set_balance("usn", "alice.near", 7, block_height=20)

        assert oracle.balance_at("usn", "alice.near", 10) == 5
        assert oracle.balance_at("usn", "alice.near", 20) == 7
        assert oracle.calls == [("usn", "alice.near", 10), ("usn", "alice.near", 20)]


class TestJsonRpcRequest:

    def test_payload_pins_block(self):
        oracle, session = _oracle(_call_result("42"))
        oracle.balance_at("usn", "alice.near", 1234)

        args, kwargs = session.post.call_args
        assert args == (RPC_URL,)
        assert kwargs["timeout"] == 3.0
        params = kwargs["json"]["params"]
        assert kwargs["json"]["method"] == "query"
        assert params["request_type"] == "call_function"
        assert params["block_id"] == 1234
        assert params["account_id"] == "usn"
        assert params["method_name"] == "ft_balance_of"
        assert json.loads(base64.b64decode(params["args_base64"])) == {"account_id": "alice.near"}


class TestJsonRpcAnswers:

    def test_balance_parsed(self):
        oracle, _ = _oracle(_call_result(str(U128_MAX)))
        assert oracle.balance_at("usn", "alice.near", 1) == U128_MAX

    def test_unregistered_account_is_zero(self):
        oracle, _ = _oracle(_call_result(None))
        assert oracle.balance_at("usn", "alice.near", 1) == 0

    @pytest.mark.parametrize("cause", ["UNKNOWN_BLOCK", "GARBAGE_COLLECTED_BLOCK"])
    def test_unknown_block(self, cause):
        oracle, _ = _oracle(_rpc_error(cause))
        with pytest.raises(UnknownBlockError) as exc_info:
            oracle.balance_at("usn", "alice.near", 1)
        assert exc_info.value.code == "UNKNOWN_BLOCK"
        assert exc_info.value.block_height == 1

    @pytest.mark.parametrize("cause", ["NO_CONTRACT_CODE", "UNKNOWN_ACCOUNT"])
    def test_missing_contract(self, cause):
        oracle, _ = _oracle(_rpc_error(cause))
        with pytest.raises(AssetNotFoundError):
            oracle.balance_at("nope.near", "alice.near", 1)

    def test_legacy_code_does_not_exist(self):
        body = {"result": {"error": "wasm execution failed with error: CodeDoesNotExist"}}
        oracle, _ = _oracle(body)
        with pytest.raises(AssetNotFoundError):
            oracle.balance_at("nope.near", "alice.near", 1)

    def test_other_rpc_error(self):
        oracle, _ = _oracle(_rpc_error("INTERNAL_ERROR"))
        with pytest.raises(ChainQueryError) as exc_info:
            oracle.balance_at("usn", "alice.near", 1)
        assert type(exc_info.value) is ChainQueryError

    @pytest.mark.parametrize(
        "error",
        ["Server error", {"name": "HANDLER_ERROR", "cause": "UNKNOWN_BLOCK"}],
    )
    def test_error_not_an_object(self, error):
        oracle, _ = _oracle({"jsonrpc": "2.0", "id": "balance_kernel", "error": error})
        with pytest.raises(ChainQueryError) as exc_info:
            oracle.balance_at("usn", "alice.near", 1)
        assert type(exc_info.value) is ChainQueryError

    def test_malformed_balance(self, captured_logs):
        oracle, _ = _oracle(_call_result("12.5"))
        with pytest.raises(ChainQueryError, match="malformed balance"):
            oracle.balance_at("usn", "alice.near", 1)

        failures = [r for r in captured_logs() if r["message"] == "balance_query_failed"]
        assert failures[0]["error_code"] == "CHAIN_QUERY_ERROR"
        assert failures[0]["asset"] == "usn"

    def test_malformed_result(self):
        oracle, _ = _oracle({"result": {"logs": []}})
        with pytest.raises(ChainQueryError, match="malformed"):
            oracle.balance_at("usn", "alice.near", 1)

    def test_transport_error(self):
        oracle, _ = _oracle(exc=requests.ConnectionError("refused"))
        with pytest.raises(ChainQueryError, match="transport error"):
            oracle.balance_at("usn", "alice.near", 1)

    def test_non_json_response(self):
        session = MagicMock()
        session.post.return_value.json.side_effect = ValueError("no json")
        oracle = JsonRpcBalanceOracle(RPC_URL, session=session)
        with pytest.raises(ChainQueryError, match="not JSON"):
            oracle.balance_at("usn", "alice.near", 1)
