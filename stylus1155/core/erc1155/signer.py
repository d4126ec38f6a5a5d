"""
Transaction signers.

The SDK never implements signing itself: either eth-account signs with a
local key, or the node (wallet-managed account) signs via eth_sendTransaction.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address

from ...config import settings
from ...providers.rpc import JsonRpcProvider
from .errors import PreconditionFailure


logger = logging.getLogger(__name__)


class Signer(ABC):
    """Something that can turn an unsigned call into a broadcast transaction."""

    address: str

    @abstractmethod
    async def send_transaction(self, rpc: JsonRpcProvider, tx: Dict[str, Any]) -> str:
        """Sign and broadcast `tx` ({"to", "data", "value"?}); return the hash."""
        pass


class LocalAccountSigner(Signer):
    """Signs locally with a private key and broadcasts the raw transaction."""

    def __init__(self, private_key: str, *, gas_multiplier: Optional[float] = None):
        if not private_key:
            raise PreconditionFailure("Private key is required for local signing")
        try:
            self._account: LocalAccount = Account.from_key(private_key)
        except (ValueError, TypeError) as exc:
            raise PreconditionFailure("Private key is malformed") from exc
        self.address = self._account.address
        self.gas_multiplier = gas_multiplier or settings.gas_multiplier

    def __repr__(self) -> str:
        return f"LocalAccountSigner(address={self.address})"

    async def _fees(self, rpc: JsonRpcProvider) -> Dict[str, int]:
        block = await rpc.get_block("latest")
        base_fee_hex = (block or {}).get("baseFeePerGas")
        if base_fee_hex is None:
            return {"gasPrice": await rpc.gas_price()}

        base_fee = int(base_fee_hex, 16)
        priority_fee = await rpc.max_priority_fee()
        return {
            "maxFeePerGas": base_fee * 2 + priority_fee,
            "maxPriorityFeePerGas": priority_fee,
        }

    async def send_transaction(self, rpc: JsonRpcProvider, tx: Dict[str, Any]) -> str:
        call_obj = {"from": self.address, "to": tx["to"], "data": tx["data"]}
        value = int(tx.get("value", 0))
        if value:
            call_obj["value"] = hex(value)

        # Estimation doubles as simulation: a reverting call fails here, before signing.
        gas_limit = int(await rpc.estimate_gas(call_obj) * self.gas_multiplier)
        nonce = await rpc.get_transaction_count(self.address, "pending")
        chain_id = await rpc.chain_id()

        unsigned = {
            "to": to_checksum_address(tx["to"]),
            "data": tx["data"],
            "value": value,
            "nonce": nonce,
            "chainId": chain_id,
            "gas": gas_limit,
            **(await self._fees(rpc)),
        }
        signed = self._account.sign_transaction(unsigned)
        logger.debug(f"Signed transaction nonce={nonce} gas={gas_limit} chain={chain_id}")
        return await rpc.send_raw_transaction("0x" + signed.raw_transaction.hex().removeprefix("0x"))


class NodeAccountSigner(Signer):
    """Delegates signing to an account managed by the node or wallet behind the RPC endpoint."""

    def __init__(self, address: str):
        self.address = to_checksum_address(address)

    def __repr__(self) -> str:
        return f"NodeAccountSigner(address={self.address})"

    async def send_transaction(self, rpc: JsonRpcProvider, tx: Dict[str, Any]) -> str:
        payload: Dict[str, Any] = {"from": self.address, "to": tx["to"], "data": tx["data"]}
        value = int(tx.get("value", 0))
        if value:
            payload["value"] = hex(value)
        return await rpc.send_transaction(payload)


def signer_from_settings() -> Optional[Signer]:
    """Build a local signer from PRIVATE_KEY, if configured."""
    if not settings.has_private_key:
        return None
    return LocalAccountSigner(settings.private_key)
