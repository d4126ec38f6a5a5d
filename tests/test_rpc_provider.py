"""
Tests for the JSON-RPC provider and transaction signers.
"""

import json

import httpx
import pytest

from stylus1155.core.erc1155.errors import PreconditionFailure
from stylus1155.core.erc1155.signer import LocalAccountSigner
from stylus1155.providers.rpc import JsonRpcProvider, RpcError, RpcTimeout, RpcTransportError

from conftest import CONTRACT, FakeNode, rpc_for

PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"


def provider_with(handler) -> JsonRpcProvider:
    return JsonRpcProvider("http://node.test", client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_error_object_raises_rpc_error():
    def handler(request):
        body = json.loads(request.content)
        return httpx.Response(200, json={
            "jsonrpc": "2.0",
            "id": body["id"],
            "error": {"code": 3, "message": "execution reverted", "data": "0x08c379a0"},
        })

    provider = provider_with(handler)

    with pytest.raises(RpcError) as exc_info:
        await provider.call(CONTRACT, "0x00fdd58e")

    assert not isinstance(exc_info.value, RpcTransportError)
    assert exc_info.value.code == 3
    assert exc_info.value.data == "0x08c379a0"


@pytest.mark.asyncio
async def test_http_error_is_transport_error():
    provider = provider_with(lambda request: httpx.Response(500, text="upstream down"))

    with pytest.raises(RpcTransportError) as exc_info:
        await provider.chain_id()

    assert "HTTP 500" in str(exc_info.value)


@pytest.mark.asyncio
async def test_connection_error_is_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    with pytest.raises(RpcTransportError):
        await provider_with(handler).get_code(CONTRACT)


@pytest.mark.asyncio
async def test_request_ids_increase(node: FakeNode):
    provider = rpc_for(node)

    await provider.chain_id()
    await provider.chain_id()

    assert [request["id"] for request in node.requests] == [1, 2]


@pytest.mark.asyncio
async def test_wait_for_receipt_times_out(node: FakeNode):
    node.auto_receipt = False
    slept = []

    async def fake_sleep(seconds):
        slept.append(seconds)

    with pytest.raises(RpcTimeout):
        await rpc_for(node).wait_for_receipt("0xabc", timeout_s=6, poll_interval_s=2, sleep=fake_sleep)

    assert node.methods().count("eth_getTransactionReceipt") == 3
    assert slept == [2, 2]


@pytest.mark.asyncio
async def test_wait_for_receipt_returns_first_receipt(node: FakeNode):
    receipt = await rpc_for(node).wait_for_receipt("0xabc", timeout_s=6, poll_interval_s=2)

    assert receipt["status"] == "0x1"
    assert node.methods() == ["eth_getTransactionReceipt"]


@pytest.mark.asyncio
async def test_health_check_reports_chain_id(node: FakeNode):
    status = await rpc_for(node).health_check()

    assert status == {"status": "healthy", "chainId": 421614}


# =============================================================================
# Signers
# =============================================================================

class TestLocalAccountSigner:
    """Local signing with eth-account."""

    def test_missing_key(self):
        with pytest.raises(PreconditionFailure):
            LocalAccountSigner("")

    def test_malformed_key(self):
        with pytest.raises(PreconditionFailure):
            LocalAccountSigner("0x1234")

    @pytest.mark.asyncio
    async def test_signs_and_broadcasts_raw_transaction(self):
        seen = []

        def handler(request):
            body = json.loads(request.content)
            seen.append(body["method"])
            results = {
                "eth_estimateGas": "0x5208",
                "eth_getTransactionCount": "0x3",
                "eth_chainId": hex(421614),
                "eth_getBlockByNumber": {"baseFeePerGas": "0x5f5e100"},
                "eth_maxPriorityFeePerGas": "0x0",
                "eth_sendRawTransaction": "0x" + "ab" * 32,
            }
            if body["method"] == "eth_sendRawTransaction":
                assert body["params"][0].startswith("0x02")
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": results[body["method"]]})

        signer = LocalAccountSigner(PRIVATE_KEY)
        tx_hash = await signer.send_transaction(provider_with(handler), {"to": CONTRACT, "data": "0x8456cb59"})

        assert tx_hash == "0x" + "ab" * 32
        assert seen[0] == "eth_estimateGas"
        assert seen[-1] == "eth_sendRawTransaction"
