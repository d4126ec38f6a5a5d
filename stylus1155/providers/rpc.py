"""
Async JSON-RPC provider for EVM chains.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import math
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from .base import Provider
from ..config import settings


logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class RpcError(Exception):
    """JSON-RPC error object returned by the node."""

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.code = code
        self.data = data


class RpcTransportError(RpcError):
    """The endpoint could not be reached or answered with a non-2xx status."""
    pass


class RpcTimeout(RpcError):
    """Polling gave up before the node produced a result."""
    pass


class JsonRpcProvider(Provider):
    """
    Thin wrapper around the standard eth_* JSON-RPC methods.

    A single httpx.AsyncClient is reused across calls; pass `client` to share
    one (or to inject a mock transport in tests).
    """

    name = "jsonrpc"

    def __init__(
        self,
        rpc_url: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout_s: Optional[float] = None,
    ) -> None:
        if not rpc_url:
            raise ValueError("RPC URL is required")
        self.rpc_url = rpc_url
        self.timeout_s = timeout_s or settings.request_timeout_seconds
        self._client = client
        self._owns_client = client is None
        self._ids = itertools.count(1)

    async def ready(self) -> bool:
        return bool(self.rpc_url)

    async def health_check(self) -> Dict[str, Any]:
        try:
            chain_id = await self.chain_id()
            return {"status": "healthy", "chainId": chain_id}
        except RpcError as exc:
            return {"status": "error", "reason": str(exc)}

    def _http(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout_s)
            self._owns_client = True
        return self._client

    async def _rpc_call(self, method: str, params: List[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }

        try:
            response = await self._http().post(self.rpc_url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            raise RpcTransportError(
                f"RPC endpoint returned HTTP {exc.response.status_code} for {method}"
            ) from exc
        except httpx.HTTPError as exc:
            raise RpcTransportError(f"RPC endpoint unreachable ({type(exc).__name__}): {exc}") from exc
        except ValueError as exc:
            raise RpcTransportError(f"RPC endpoint returned invalid JSON for {method}") from exc

        error = body.get("error") if isinstance(body, dict) else None
        if error:
            if isinstance(error, dict):
                raise RpcError(
                    error.get("message") or f"RPC error for {method}",
                    code=error.get("code"),
                    data=error.get("data"),
                )
            raise RpcError(str(error))

        return body.get("result") if isinstance(body, dict) else None

    async def chain_id(self) -> int:
        return int(await self._rpc_call("eth_chainId", []), 16)

    async def call(self, to: str, data: str, *, from_address: Optional[str] = None, block: str = "latest") -> str:
        call_obj: Dict[str, Any] = {"to": to, "data": data}
        if from_address:
            call_obj["from"] = from_address
        return await self._rpc_call("eth_call", [call_obj, block])

    async def get_code(self, address: str, block: str = "latest") -> str:
        return await self._rpc_call("eth_getCode", [address, block])

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return int(await self._rpc_call("eth_getTransactionCount", [address, block]), 16)

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        return int(await self._rpc_call("eth_estimateGas", [tx]), 16)

    async def gas_price(self) -> int:
        return int(await self._rpc_call("eth_gasPrice", []), 16)

    async def max_priority_fee(self) -> int:
        return int(await self._rpc_call("eth_maxPriorityFeePerGas", []), 16)

    async def get_block(self, block: str = "latest") -> Dict[str, Any]:
        return await self._rpc_call("eth_getBlockByNumber", [block, False])

    async def send_raw_transaction(self, raw_tx: str) -> str:
        tx_hash = await self._rpc_call("eth_sendRawTransaction", [raw_tx])
        logger.info(f"Transaction submitted: {tx_hash}")
        return tx_hash

    async def send_transaction(self, tx: Dict[str, Any]) -> str:
        tx_hash = await self._rpc_call("eth_sendTransaction", [tx])
        logger.info(f"Transaction submitted via node account: {tx_hash}")
        return tx_hash

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return await self._rpc_call("eth_getTransactionReceipt", [tx_hash])

    async def wait_for_receipt(
        self,
        tx_hash: str,
        *,
        timeout_s: Optional[float] = None,
        poll_interval_s: Optional[float] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> Dict[str, Any]:
        """Poll for a receipt until it appears or the attempt budget is spent."""
        timeout_s = settings.receipt_timeout_seconds if timeout_s is None else timeout_s
        poll_interval_s = settings.receipt_poll_interval_seconds if poll_interval_s is None else poll_interval_s
        attempts = max(1, math.ceil(timeout_s / poll_interval_s)) if poll_interval_s > 0 else 1

        for attempt in range(attempts):
            try:
                receipt = await self.get_transaction_receipt(tx_hash)
            except RpcTransportError as exc:
                logger.warning(f"Error checking transaction status for {tx_hash}: {exc}")
                receipt = None
            if receipt:
                return receipt
            if attempt < attempts - 1:
                await sleep(poll_interval_s)

        raise RpcTimeout(f"No receipt for {tx_hash} after {timeout_s:g}s")

    async def aclose(self) -> None:
        """Close HTTP client."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
