"""
Tests for ABI encoding, revert decoding and event decoding.
"""

import pytest
from eth_abi import encode as abi_encode
from eth_utils import keccak

from stylus1155.core.erc1155.errors import FunctionNotSupported, ValidationFailure
from stylus1155.core.erc1155.networks import DEFAULT_NETWORKS, resolve_network

from conftest import CODEC, CONTRACT, USER, ZERO, encode_result, revert_data


class TestEncoding:
    """Calldata construction."""

    def test_balance_of_selector(self):
        assert CODEC.selector("balanceOf") == "0x00fdd58e"

    def test_encode_call_prefixes_selector(self):
        data = CODEC.encode_call("balanceOf", [USER, 1])
        assert data.startswith("0x00fdd58e")
        assert len(data) == 2 + 8 + 64 * 2
        assert data.endswith(f"{1:064x}")

    def test_wrong_argument_count(self):
        with pytest.raises(ValidationFailure):
            CODEC.encode_call("balanceOf", [USER])

    def test_unknown_function(self):
        with pytest.raises(ValidationFailure):
            CODEC.selector("approve")


class TestDecoding:
    """Results and revert payloads."""

    def test_decode_single_output(self):
        assert CODEC.decode_output("balanceOf", encode_result(["uint256"], [100])) == 100

    def test_decode_array_output(self):
        data = encode_result(["uint256[]"], [[5, 0, 7]])
        assert list(CODEC.decode_output("balanceOfBatch", data)) == [5, 0, 7]

    def test_empty_result_is_not_supported(self):
        with pytest.raises(FunctionNotSupported) as exc_info:
            CODEC.decode_output("totalSupply", "0x")
        assert exc_info.value.function == "totalSupply"

    def test_revert_string(self):
        assert CODEC.decode_revert(revert_data("Paused")) == "Paused"

    def test_custom_error(self):
        selector = "0x" + keccak(text="ERC1155InsufficientBalance(address,uint256,uint256,uint256)")[:4].hex()
        data = selector + abi_encode(["address", "uint256", "uint256", "uint256"], [USER, 1, 5, 2]).hex()
        reason = CODEC.decode_revert(data)
        assert reason.startswith("ERC1155InsufficientBalance(")
        assert "balance=1" in reason
        assert "needed=5" in reason
        assert "id=2" in reason

    def test_unknown_error_selector(self):
        assert CODEC.decode_revert("0xdeadbeef") == "unknown error 0xdeadbeef"

    def test_no_revert_data(self):
        assert CODEC.decode_revert(None) is None
        assert CODEC.decode_revert("0x") is None


class TestEvents:
    """TransferSingle log decoding."""

    def test_transfer_single(self):
        log = {
            "address": CONTRACT,
            "topics": [
                CODEC.event_topic("TransferSingle"),
                "0x" + "00" * 12 + USER[2:],
                "0x" + "00" * 32,
                "0x" + "00" * 12 + USER[2:],
            ],
            "data": encode_result(["uint256", "uint256"], [7, 10]),
        }
        events = CODEC.decode_events("TransferSingle", [log, {"topics": ["0x" + "ab" * 32], "data": "0x"}])
        assert len(events) == 1
        assert events[0]["id"] == 7
        assert events[0]["value"] == 10
        assert events[0]["from"] == ZERO


class TestNetworks:
    def test_resolve_is_case_insensitive(self):
        assert resolve_network("Arbitrum-Sepolia").chain_id == 421614

    def test_unknown_network(self):
        with pytest.raises(ValidationFailure) as exc_info:
            resolve_network("goerli")
        assert "arbitrum" in str(exc_info.value)

    def test_explicit_map(self):
        only = {"arbitrum": DEFAULT_NETWORKS["arbitrum"]}
        assert resolve_network("arbitrum", only).name == "arbitrum"
        with pytest.raises(ValidationFailure):
            resolve_network("arbitrum-sepolia", only)

    def test_explorer_urls(self):
        network = DEFAULT_NETWORKS["arbitrum-sepolia"]
        assert network.tx_url("0xabc") == "https://sepolia.arbiscan.io/tx/0xabc"
        assert network.address_url(CONTRACT) == f"https://sepolia.arbiscan.io/address/{CONTRACT}"
