"""
Shared fixtures: an in-memory JSON-RPC node served through httpx.MockTransport.
"""

import asyncio
import json
from typing import Any, Callable, Dict, List, Optional, Sequence

import httpx
import pytest
from eth_abi import encode as abi_encode

from stylus1155.core.erc1155.abi import ERC1155_ABI, TOKEN_FACTORY_ABI
from stylus1155.core.erc1155.codec import ContractCodec
from stylus1155.core.erc1155.signer import NodeAccountSigner
from stylus1155.providers.rpc import JsonRpcProvider


CONTRACT = "0x1111111111111111111111111111111111111111"
USER = "0x2222222222222222222222222222222222222222"
OTHER = "0x3333333333333333333333333333333333333333"
FACTORY = "0x4444444444444444444444444444444444444444"
ZERO = "0x0000000000000000000000000000000000000000"

CODEC = ContractCodec(ERC1155_ABI)
FACTORY_CODEC = ContractCodec(TOKEN_FACTORY_ABI)


def encode_result(types: Sequence[str], values: Sequence[Any]) -> str:
    return "0x" + abi_encode(list(types), list(values)).hex()


def revert_data(message: str) -> str:
    """Solidity-style Error(string) revert payload."""
    return "0x08c379a0" + abi_encode(["string"], [message]).hex()


def word(value: int) -> str:
    return "0x" + f"{value:064x}"


class NodeError(Exception):
    def __init__(self, error: Dict[str, Any]):
        super().__init__(error.get("message"))
        self.error = error


class FakeNode:
    """Minimal EVM node: eth_call is routed by 4-byte selector."""

    def __init__(self, chain_id: int = 421614):
        self.chain_id = chain_id
        self.requests: List[Dict[str, Any]] = []
        self.call_handlers: Dict[str, Callable[[str], str]] = {}
        self.call_errors: Dict[str, Dict[str, Any]] = {}
        self.code: Dict[str, str] = {}
        self.sent: List[Dict[str, Any]] = []
        self.send_error: Optional[Dict[str, Any]] = None
        self.auto_receipt = True
        self.receipt_overrides: Dict[str, Any] = {}
        self.receipt_error: Optional[Dict[str, Any]] = None

    def on_call(self, selector: str, result: Any) -> None:
        """Answer eth_call for `selector` with a fixed hex result or a callable(data)."""
        self.call_handlers[selector] = result if callable(result) else (lambda data: result)

    def methods(self) -> List[str]:
        return [request["method"] for request in self.requests]

    def handle(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        try:
            result = self._dispatch(body["method"], body["params"])
        except NodeError as exc:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": exc.error})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    def _dispatch(self, method: str, params: List[Any]) -> Any:
        if method == "eth_chainId":
            return hex(self.chain_id)
        if method == "eth_getCode":
            return self.code.get(params[0].lower(), "0x")
        if method == "eth_call":
            data = params[0]["data"]
            selector = data[:10]
            if selector in self.call_errors:
                raise NodeError(self.call_errors[selector])
            handler = self.call_handlers.get(selector)
            if handler is None:
                raise NodeError({"code": -32000, "message": "execution reverted"})
            return handler(data)
        if method == "eth_sendTransaction":
            if self.send_error:
                raise NodeError(self.send_error)
            self.sent.append(params[0])
            return word(len(self.sent))
        if method == "eth_getTransactionReceipt":
            if self.receipt_error:
                raise NodeError(self.receipt_error)
            if not self.auto_receipt:
                return None
            receipt = {"transactionHash": params[0], "status": "0x1", "blockNumber": "0x10", "logs": []}
            receipt.update(self.receipt_overrides)
            return receipt
        raise NodeError({"code": -32601, "message": f"method {method} not found"})


def rpc_for(node: FakeNode) -> JsonRpcProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(node.handle))
    return JsonRpcProvider("http://node.test", client=client)


class FakeClock:
    """Deterministic stand-in for asyncio.sleep."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: List[float] = []
        self._waiters: List[tuple] = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        future = asyncio.get_running_loop().create_future()
        self._waiters.append((self.now + seconds, future))
        await future

    async def advance(self, seconds: float) -> None:
        # Let freshly scheduled tasks reach their sleep first
        await asyncio.sleep(0)
        self.now += seconds
        for deadline, future in self._waiters:
            if deadline <= self.now and not future.done():
                future.set_result(None)
        self._waiters = [(deadline, future) for deadline, future in self._waiters if not future.done()]
        await asyncio.sleep(0)
        await asyncio.sleep(0)


async def no_sleep(seconds: float) -> None:
    return None


@pytest.fixture
def node() -> FakeNode:
    fake = FakeNode()
    fake.code[CONTRACT] = "0x6080604052"
    return fake


@pytest.fixture
def rpc(node: FakeNode) -> JsonRpcProvider:
    return rpc_for(node)


@pytest.fixture
def signer() -> NodeAccountSigner:
    return NodeAccountSigner(USER)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
