"""
Typed bindings for a deployed Stylus ERC-1155 contract.

Reads go straight to eth_call. Writes are encoded locally, handed to a
signer, and followed until the receipt shows up:

- Validate and encode the call (no network traffic on bad input)
- Submit through the signer
- Report the hash via `on_submitted`
- Poll for the receipt and surface reverts with a decoded reason
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from eth_utils import is_address, to_checksum_address

from ...config import settings
from ...providers.rpc import JsonRpcProvider, RpcError, RpcTimeout, RpcTransportError, Sleep
from .abi import ERC1155_ABI
from .codec import ContractCodec
from .errors import (
    ExecutionFailure,
    FunctionNotSupported,
    PreconditionFailure,
    ReadFailure,
    ReceiptTimeout,
    SubmissionFailure,
    ValidationFailure,
)
from .models import (
    Capability,
    MultiTokenInfo,
    Supported,
    TokenBalance,
    TokenTypeInfo,
    TransactionRequest,
    Unsupported,
)
from .signer import Signer


logger = logging.getLogger(__name__)

MAX_UINT256 = 2**256 - 1
USER_REJECTED_CODE = 4001
EXECUTION_REVERTED_CODE = 3

OnSubmitted = Callable[[str], None]


def validate_address(value: Any, label: str = "address") -> str:
    """Return the checksummed form of `value` or raise ValidationFailure."""
    if not isinstance(value, str) or not is_address(value):
        raise ValidationFailure(f"Invalid {label}: {value!r}")
    return to_checksum_address(value)


def validate_uint256(value: Any, label: str = "value") -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationFailure(f"{label} must be an integer, got {value!r}")
    if value < 0 or value > MAX_UINT256:
        raise ValidationFailure(f"{label} out of uint256 range: {value}")
    return value


def validate_batch(ids: Sequence[Any], amounts: Sequence[Any], *, amounts_label: str = "amounts") -> Tuple[List[int], List[int]]:
    """Parallel id/amount arrays must be non-empty and of equal length."""
    if len(ids) == 0:
        raise ValidationFailure("Batch must contain at least one token id")
    if len(ids) != len(amounts):
        raise ValidationFailure(
            f"ids and {amounts_label} length mismatch ({len(ids)} != {len(amounts)})"
        )
    return (
        [validate_uint256(token_id, "token id") for token_id in ids],
        [validate_uint256(amount, "amount") for amount in amounts],
    )


def _as_bytes(data: Any) -> bytes:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    if isinstance(data, str):
        text = data[2:] if data.startswith(("0x", "0X")) else data
        try:
            return bytes.fromhex(text)
        except ValueError:
            raise ValidationFailure(f"data must be hex encoded, got {data!r}") from None
    raise ValidationFailure(f"data must be bytes or a hex string, got {type(data).__name__}")


def _is_execution_revert(exc: RpcError) -> bool:
    """True when the node ran the call and it reverted, as opposed to refusing it."""
    return exc.code == EXECUTION_REVERTED_CODE or "revert" in str(exc).lower()


def _to_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    return int(str(value), 16)


def base_uri_from_token_uri(token_uri: str) -> str:
    """`uri(0)` on the Stylus build is `<base>0.json`; the base is what precedes it."""
    if token_uri.endswith("0.json"):
        return token_uri[: -len("0.json")]
    return token_uri


class BoundContract:
    """A contract address plus the codec, provider and signer used to reach it."""

    DEFAULT_ABI: Sequence[Dict[str, Any]] = ()

    def __init__(
        self,
        address: str,
        rpc: JsonRpcProvider,
        *,
        signer: Optional[Signer] = None,
        codec: Optional[ContractCodec] = None,
        receipt_timeout_s: Optional[float] = None,
        poll_interval_s: Optional[float] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.address = validate_address(address, "contract address")
        self.rpc = rpc
        self.signer = signer
        self.codec = codec or ContractCodec(self.DEFAULT_ABI)
        self.receipt_timeout_s = (
            settings.receipt_timeout_seconds if receipt_timeout_s is None else receipt_timeout_s
        )
        self.poll_interval_s = (
            settings.receipt_poll_interval_seconds if poll_interval_s is None else poll_interval_s
        )
        self._sleep = sleep
        self._owns_rpc = False

    @classmethod
    def at(cls, address: str, rpc_endpoint: str, **kwargs: Any):
        """Bind to `address` through a fresh provider for `rpc_endpoint`."""
        contract = cls(address, JsonRpcProvider(rpc_endpoint), **kwargs)
        contract._owns_rpc = True
        return contract

    def __repr__(self) -> str:
        return f"{type(self).__name__}(address={self.address}, rpc={self.rpc.rpc_url})"

    async def aclose(self) -> None:
        if self._owns_rpc:
            await self.rpc.aclose()

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    async def _call(self, name: str, *args: Any) -> Any:
        data = self.codec.encode_call(name, args)
        try:
            result = await self.rpc.call(self.address, data)
        except RpcTransportError as exc:
            raise ReadFailure(f"Could not read {name}: {exc}") from exc
        except RpcError as exc:
            if not _is_execution_revert(exc):
                raise ReadFailure(f"Could not read {name}: {exc}") from exc
            reason = self.codec.decode_revert(exc.data if isinstance(exc.data, str) else None)
            if reason is None:
                # Reverting without data is what a missing selector looks like on Stylus.
                raise FunctionNotSupported(name, str(exc)) from exc
            raise ReadFailure(f"{name} reverted: {reason}") from exc
        return self.codec.decode_output(name, result)

    async def _probe(self, name: str, *args: Any) -> Capability:
        try:
            return Supported(await self._call(name, *args))
        except FunctionNotSupported as exc:
            logger.debug(f"Capability probe {name} on {self.address}: {exc}")
            return Unsupported(name)

    async def has_code(self) -> bool:
        try:
            code = await self.rpc.get_code(self.address)
        except RpcError as exc:
            raise ReadFailure(f"Could not fetch code at {self.address}: {exc}") from exc
        return bool(code) and code not in ("0x", "0x0")

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def _require_signer(self, name: str) -> Signer:
        if self.signer is None:
            raise PreconditionFailure(f"Wallet not connected: a signer is required to call {name}")
        return self.signer

    def _submission_message(self, name: str, exc: RpcError) -> str:
        if exc.code == USER_REJECTED_CODE:
            return "User rejected the request"
        reason = self.codec.decode_revert(exc.data if isinstance(exc.data, str) else None)
        if reason:
            return f"{name} would revert: {reason}"
        return f"{name} was rejected: {exc}"

    async def _replay_revert_reason(self, data: str, block: Any) -> Optional[str]:
        """Re-run a failed call at its block to recover the revert data."""
        signer = self.signer
        try:
            await self.rpc.call(
                self.address,
                data,
                from_address=signer.address if signer else None,
                block=block if isinstance(block, str) else "latest",
            )
        except RpcTransportError as exc:
            logger.warning(f"Could not replay reverted call to {self.address}: {exc}")
            return None
        except RpcError as exc:
            return self.codec.decode_revert(exc.data if isinstance(exc.data, str) else None) or str(exc)
        return None

    async def _transact(
        self,
        name: str,
        args: Sequence[Any],
        on_submitted: Optional[OnSubmitted] = None,
    ) -> Tuple[str, Dict[str, Any]]:
        signer = self._require_signer(name)
        request = TransactionRequest(function=name, args=tuple(args))
        data = self.codec.encode_call(request.function, request.args)

        logger.info(f"Submitting {request.describe()} to {self.address} from {signer.address}")
        try:
            tx_hash = await signer.send_transaction(self.rpc, {"to": self.address, "data": data})
        except RpcTransportError as exc:
            raise SubmissionFailure(f"Could not submit {name}: {exc}") from exc
        except RpcError as exc:
            message = self._submission_message(name, exc)
            logger.warning(f"Submission of {name} failed: {message}")
            raise SubmissionFailure(message) from exc

        if on_submitted is not None:
            on_submitted(tx_hash)

        try:
            receipt = await self.rpc.wait_for_receipt(
                tx_hash,
                timeout_s=self.receipt_timeout_s,
                poll_interval_s=self.poll_interval_s,
                sleep=self._sleep,
            )
        except RpcTimeout as exc:
            raise ReceiptTimeout(
                f"Transaction {tx_hash} was not confirmed within {self.receipt_timeout_s:g}s",
                tx_hash=tx_hash,
            ) from exc
        except RpcError as exc:
            logger.warning(f"Receipt lookup for {name} {tx_hash} failed: {exc}")
            raise SubmissionFailure(
                f"Could not confirm {name} transaction {tx_hash}: {exc}",
                tx_hash=tx_hash,
            ) from exc

        if _to_int(receipt.get("status", 1)) == 0:
            reason = await self._replay_revert_reason(data, receipt.get("blockNumber"))
            message = f"Transaction reverted: {reason}" if reason else "Transaction reverted"
            logger.warning(f"{name} reverted in {tx_hash}: {reason or 'no reason'}")
            raise ExecutionFailure(message, tx_hash=tx_hash, revert_reason=reason)

        logger.info(f"{name} confirmed in {tx_hash}")
        return tx_hash, receipt


class ERC1155Contract(BoundContract):
    """One deployed multi-token contract, reachable through one RPC endpoint."""

    DEFAULT_ABI = ERC1155_ABI

    async def get_contract_info(self) -> MultiTokenInfo:
        owner, paused, token_uri = await asyncio.gather(
            self._probe("owner"),
            self._probe("isPaused"),
            self._probe("uri", 0),
        )
        if isinstance(owner, Supported):
            owner = Supported(to_checksum_address(owner.value))
        if isinstance(token_uri, Supported):
            base_uri: Capability = Supported(base_uri_from_token_uri(token_uri.value))
        else:
            base_uri = token_uri
        return MultiTokenInfo(address=self.address, base_uri=base_uri, owner=owner, paused=paused)

    async def get_token_info(self, token_id: int) -> TokenTypeInfo:
        token_id = validate_uint256(token_id, "token id")
        total_supply, exists, token_uri = await asyncio.gather(
            self._probe("totalSupply", token_id),
            self._probe("exists", token_id),
            self._probe("uri", token_id),
        )
        return TokenTypeInfo(id=token_id, total_supply=total_supply, exists=exists, uri=token_uri)

    async def balance_of(self, account: str, token_id: int) -> int:
        account = validate_address(account, "account")
        token_id = validate_uint256(token_id, "token id")
        return await self._call("balanceOf", account, token_id)

    async def get_balance(self, account: str, token_id: int) -> TokenBalance:
        return TokenBalance(id=token_id, balance=await self.balance_of(account, token_id))

    async def balance_of_batch(self, accounts: Sequence[str], ids: Sequence[int]) -> List[int]:
        if len(accounts) == 0:
            raise ValidationFailure("Batch must contain at least one account")
        if len(accounts) != len(ids):
            raise ValidationFailure(
                f"accounts and ids length mismatch ({len(accounts)} != {len(ids)})"
            )
        checked_accounts = [validate_address(account, "account") for account in accounts]
        checked_ids = [validate_uint256(token_id, "token id") for token_id in ids]

        balances = list(await self._call("balanceOfBatch", checked_accounts, checked_ids))
        if len(balances) != len(checked_ids):
            raise ReadFailure(
                f"balanceOfBatch returned {len(balances)} values for {len(checked_ids)} ids"
            )
        return balances

    async def get_balance_batch(self, account: str, ids: Sequence[int]) -> List[TokenBalance]:
        balances = await self.balance_of_batch([account] * len(ids), ids)
        return [TokenBalance(id=token_id, balance=balance) for token_id, balance in zip(ids, balances)]

    async def is_approved_for_all(self, account: str, operator: str) -> bool:
        account = validate_address(account, "account")
        operator = validate_address(operator, "operator")
        return bool(await self._call("isApprovedForAll", account, operator))

    async def set_approval_for_all(
        self, operator: str, approved: bool, *, on_submitted: Optional[OnSubmitted] = None
    ) -> str:
        self._require_signer("setApprovalForAll")
        operator = validate_address(operator, "operator")
        if not isinstance(approved, bool):
            raise ValidationFailure(f"approved must be a boolean, got {approved!r}")
        tx_hash, _ = await self._transact("setApprovalForAll", [operator, approved], on_submitted)
        return tx_hash

    async def safe_transfer_from(
        self,
        from_address: str,
        to: str,
        token_id: int,
        amount: int,
        data: Any = b"",
        *,
        on_submitted: Optional[OnSubmitted] = None,
    ) -> str:
        self._require_signer("safeTransferFrom")
        args = [
            validate_address(from_address, "sender"),
            validate_address(to, "recipient"),
            validate_uint256(token_id, "token id"),
            validate_uint256(amount, "amount"),
            list(_as_bytes(data)),
        ]
        tx_hash, _ = await self._transact("safeTransferFrom", args, on_submitted)
        return tx_hash

    async def safe_batch_transfer_from(
        self,
        from_address: str,
        to: str,
        ids: Sequence[int],
        amounts: Sequence[int],
        data: Any = b"",
        *,
        on_submitted: Optional[OnSubmitted] = None,
    ) -> str:
        self._require_signer("safeBatchTransferFrom")
        checked_ids, checked_amounts = validate_batch(ids, amounts)
        args = [
            validate_address(from_address, "sender"),
            validate_address(to, "recipient"),
            checked_ids,
            checked_amounts,
            list(_as_bytes(data)),
        ]
        tx_hash, _ = await self._transact("safeBatchTransferFrom", args, on_submitted)
        return tx_hash

    async def mint(
        self,
        to: str,
        token_id: int,
        amount: int,
        data: Any = b"",
        *,
        on_submitted: Optional[OnSubmitted] = None,
    ) -> str:
        self._require_signer("mint")
        args = [
            validate_address(to, "recipient"),
            validate_uint256(token_id, "token id"),
            validate_uint256(amount, "amount"),
            _as_bytes(data),
        ]
        tx_hash, _ = await self._transact("mint", args, on_submitted)
        return tx_hash

    async def mint_new(
        self, to: str, amount: int, *, on_submitted: Optional[OnSubmitted] = None
    ) -> Tuple[str, Optional[int]]:
        """Mint a freshly allocated token id; returns (hash, id from the TransferSingle log)."""
        self._require_signer("mintNew")
        args = [validate_address(to, "recipient"), validate_uint256(amount, "amount")]
        tx_hash, receipt = await self._transact("mintNew", args, on_submitted)

        own_logs = [
            log for log in receipt.get("logs") or []
            if str(log.get("address", "")).lower() == self.address.lower()
        ]
        events = self.codec.decode_events("TransferSingle", own_logs)
        if not events:
            logger.warning(f"mintNew {tx_hash} emitted no TransferSingle event; token id unknown")
            return tx_hash, None
        return tx_hash, int(events[0]["id"])

    async def mint_batch(
        self,
        to: str,
        ids: Sequence[int],
        amounts: Sequence[int],
        data: Any = b"",
        *,
        on_submitted: Optional[OnSubmitted] = None,
    ) -> str:
        self._require_signer("mintBatch")
        checked_ids, checked_amounts = validate_batch(ids, amounts)
        args = [validate_address(to, "recipient"), checked_ids, checked_amounts, _as_bytes(data)]
        tx_hash, _ = await self._transact("mintBatch", args, on_submitted)
        return tx_hash

    async def burn(self, token_id: int, amount: int, *, on_submitted: Optional[OnSubmitted] = None) -> str:
        self._require_signer("burn")
        args = [validate_uint256(token_id, "token id"), validate_uint256(amount, "amount")]
        tx_hash, _ = await self._transact("burn", args, on_submitted)
        return tx_hash

    async def burn_batch(
        self, ids: Sequence[int], amounts: Sequence[int], *, on_submitted: Optional[OnSubmitted] = None
    ) -> str:
        self._require_signer("burnBatch")
        checked_ids, checked_amounts = validate_batch(ids, amounts)
        tx_hash, _ = await self._transact("burnBatch", [checked_ids, checked_amounts], on_submitted)
        return tx_hash

    async def set_uri(self, new_uri: str, *, on_submitted: Optional[OnSubmitted] = None) -> str:
        self._require_signer("setUri")
        if not isinstance(new_uri, str):
            raise ValidationFailure(f"URI must be a string, got {new_uri!r}")
        tx_hash, _ = await self._transact("setUri", [new_uri], on_submitted)
        return tx_hash

    async def pause(self, *, on_submitted: Optional[OnSubmitted] = None) -> str:
        tx_hash, _ = await self._transact("pause", [], on_submitted)
        return tx_hash

    async def unpause(self, *, on_submitted: Optional[OnSubmitted] = None) -> str:
        tx_hash, _ = await self._transact("unpause", [], on_submitted)
        return tx_hash

    async def transfer_ownership(self, new_owner: str, *, on_submitted: Optional[OnSubmitted] = None) -> str:
        self._require_signer("transferOwnership")
        args = [validate_address(new_owner, "new owner")]
        tx_hash, _ = await self._transact("transferOwnership", args, on_submitted)
        return tx_hash

    async def initialize(self, base_uri: str, owner: str, *, on_submitted: Optional[OnSubmitted] = None) -> str:
        self._require_signer("initialize")
        if not isinstance(base_uri, str) or not base_uri:
            raise ValidationFailure("Base URI is required")
        args = [base_uri, validate_address(owner, "owner")]
        tx_hash, _ = await self._transact("initialize", args, on_submitted)
        return tx_hash
