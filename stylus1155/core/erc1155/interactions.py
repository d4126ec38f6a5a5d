"""
Stateful facade over ERC1155Contract.

Holds one AsyncState per read query and one RequestStateMachine shared by
every write. Writes check their context up front, drive the machine through
pending -> confirming -> success|error, and refresh the reads they affect.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Sequence, Tuple

from ...config import settings
from ...providers.rpc import JsonRpcProvider, Sleep
from .contract import ERC1155Contract, validate_address
from .errors import ERC1155Error, PreconditionFailure
from .models import MultiTokenInfo, TokenBalance, TokenTypeInfo
from .networks import NetworkConfig, resolve_network
from .signer import Signer
from .state import (
    AsyncError,
    AsyncIdle,
    AsyncLoading,
    AsyncState,
    AsyncSuccess,
    RequestConfirming,
    RequestState,
    RequestStateMachine,
    RequestStatus,
    RequestSuccess,
)


logger = logging.getLogger(__name__)

# Which cached reads a write invalidates
BALANCES = "balances"
APPROVAL = "approval"
CONTRACT_INFO = "contract_info"


class ERC1155Interactions:
    """Read state, write actions and transaction status for one contract."""

    def __init__(
        self,
        contract_address: str,
        network: Optional[str] = None,
        *,
        networks: Optional[Mapping[str, NetworkConfig]] = None,
        rpc: Optional[JsonRpcProvider] = None,
        rpc_endpoint: Optional[str] = None,
        signer: Optional[Signer] = None,
        user_address: Optional[str] = None,
        display_timeout: Optional[float] = None,
        sleep: Sleep = asyncio.sleep,
        receipt_timeout_s: Optional[float] = None,
        poll_interval_s: Optional[float] = None,
    ):
        self.network = resolve_network(network or settings.default_network, networks)
        self.rpc = rpc or JsonRpcProvider(settings.resolve_rpc_endpoint(self.network.rpc_url, rpc_endpoint))
        self.signer = signer
        self.contract = ERC1155Contract(
            contract_address,
            self.rpc,
            signer=signer,
            receipt_timeout_s=receipt_timeout_s,
            poll_interval_s=poll_interval_s,
            sleep=sleep,
        )
        if user_address:
            self.user_address: Optional[str] = validate_address(user_address, "user address")
        else:
            self.user_address = signer.address if signer is not None else None

        self.tx = RequestStateMachine(display_timeout=display_timeout, sleep=sleep)

        self.contract_info: AsyncState[MultiTokenInfo] = AsyncIdle()
        self.balances: AsyncState[List[TokenBalance]] = AsyncIdle()
        self.approval: AsyncState[bool] = AsyncIdle()
        self._balance_ids: List[int] = []
        self._approval_operator: Optional[str] = None

    @property
    def contract_address(self) -> str:
        return self.contract.address

    # ------------------------------------------------------------------
    # Transaction status
    # ------------------------------------------------------------------

    @property
    def tx_state(self) -> RequestState:
        return self.tx.state

    @property
    def is_loading(self) -> bool:
        return self.tx.state.status in (RequestStatus.PENDING, RequestStatus.CONFIRMING)

    @property
    def error(self) -> Optional[str]:
        return getattr(self.tx.state, "error", None)

    def subscribe(self, listener: Callable[[RequestState], None]) -> Callable[[], None]:
        return self.tx.subscribe(listener)

    def reset(self) -> None:
        self.tx.reset()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _require_user(self) -> str:
        if not self.user_address:
            raise PreconditionFailure("User address is required")
        return self.user_address

    async def _load(self, attr: str, fetch: Callable[[], Awaitable[Any]]) -> Any:
        setattr(self, attr, AsyncLoading())
        try:
            data = await fetch()
        except ERC1155Error as exc:
            setattr(self, attr, AsyncError(error=str(exc)))
            raise
        setattr(self, attr, AsyncSuccess(data=data))
        return data

    async def refetch_contract_info(self) -> MultiTokenInfo:
        return await self._load(CONTRACT_INFO, self.contract.get_contract_info)

    async def refetch_balances(self, ids: Optional[Sequence[int]] = None) -> List[TokenBalance]:
        account = self._require_user()
        if ids is not None:
            self._balance_ids = list(ids)
        token_ids = list(self._balance_ids)
        if not token_ids:
            self.balances = AsyncSuccess(data=[])
            return []
        return await self._load(BALANCES, lambda: self.contract.get_balance_batch(account, token_ids))

    async def refetch_approval(self, operator: Optional[str] = None) -> bool:
        account = self._require_user()
        if operator is not None:
            self._approval_operator = validate_address(operator, "operator")
        if self._approval_operator is None:
            raise PreconditionFailure("Operator address is required")
        target = self._approval_operator
        return await self._load(APPROVAL, lambda: self.contract.is_approved_for_all(account, target))

    async def get_token_info(self, token_id: int) -> TokenTypeInfo:
        return await self.contract.get_token_info(token_id)

    async def get_balance(self, token_id: int) -> TokenBalance:
        return await self.contract.get_balance(self._require_user(), token_id)

    async def get_balance_batch(self, ids: Sequence[int]) -> List[TokenBalance]:
        return await self.contract.get_balance_batch(self._require_user(), ids)

    async def is_approved_for_all(self, operator: str) -> bool:
        return await self.contract.is_approved_for_all(self._require_user(), operator)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _require_signer(self, action: str) -> None:
        if self.signer is None:
            raise PreconditionFailure(f"Wallet not connected: cannot {action}")

    async def _refresh(self, targets: Sequence[str]) -> None:
        """Reload reads affected by a confirmed write; failures stay in the read's own state."""
        for target in targets:
            try:
                if target == CONTRACT_INFO:
                    await self.refetch_contract_info()
                elif target == BALANCES and self.user_address and self._balance_ids:
                    await self.refetch_balances()
                elif target == APPROVAL and self.user_address and self._approval_operator:
                    await self.refetch_approval()
            except ERC1155Error as exc:
                logger.warning(f"Refreshing {target} after write failed: {exc}")

    async def _execute(
        self,
        action: str,
        send: Callable[[Callable[[str], None]], Awaitable[Any]],
        refresh: Sequence[str],
    ) -> Any:
        self._require_signer(action)
        op = self.tx.begin()

        def on_submitted(tx_hash: str) -> None:
            op.to(RequestConfirming(hash=tx_hash))

        try:
            outcome = await send(on_submitted)
            tx_hash = outcome[0] if isinstance(outcome, tuple) else outcome
            op.to(RequestSuccess(hash=tx_hash))
        except Exception as exc:
            op.fail(exc)
            raise

        await self._refresh(refresh)
        return outcome

    async def set_approval_for_all(self, operator: str, approved: bool) -> str:
        async def send(on_submitted):
            return await self.contract.set_approval_for_all(operator, approved, on_submitted=on_submitted)

        tx_hash = await self._execute("set approval", send, [])
        if self.user_address:
            self._approval_operator = validate_address(operator, "operator")
            await self._refresh([APPROVAL])
        return tx_hash

    async def safe_transfer_from(self, from_address: str, to: str, token_id: int, amount: int) -> str:
        async def send(on_submitted):
            return await self.contract.safe_transfer_from(
                from_address, to, token_id, amount, on_submitted=on_submitted
            )

        return await self._execute("transfer", send, [BALANCES])

    async def safe_batch_transfer_from(
        self, from_address: str, to: str, ids: Sequence[int], amounts: Sequence[int]
    ) -> str:
        async def send(on_submitted):
            return await self.contract.safe_batch_transfer_from(
                from_address, to, ids, amounts, on_submitted=on_submitted
            )

        return await self._execute("batch transfer", send, [BALANCES])

    async def mint(self, to: str, token_id: int, amount: int) -> str:
        async def send(on_submitted):
            return await self.contract.mint(to, token_id, amount, on_submitted=on_submitted)

        return await self._execute("mint", send, [BALANCES])

    async def mint_new(self, to: str, amount: int) -> Tuple[str, Optional[int]]:
        async def send(on_submitted):
            return await self.contract.mint_new(to, amount, on_submitted=on_submitted)

        return await self._execute("mint", send, [BALANCES])

    async def mint_batch(self, to: str, ids: Sequence[int], amounts: Sequence[int]) -> str:
        async def send(on_submitted):
            return await self.contract.mint_batch(to, ids, amounts, on_submitted=on_submitted)

        return await self._execute("mint batch", send, [BALANCES])

    async def burn(self, token_id: int, amount: int) -> str:
        async def send(on_submitted):
            return await self.contract.burn(token_id, amount, on_submitted=on_submitted)

        return await self._execute("burn", send, [BALANCES])

    async def burn_batch(self, ids: Sequence[int], amounts: Sequence[int]) -> str:
        async def send(on_submitted):
            return await self.contract.burn_batch(ids, amounts, on_submitted=on_submitted)

        return await self._execute("burn batch", send, [BALANCES])

    async def set_uri(self, new_uri: str) -> str:
        async def send(on_submitted):
            return await self.contract.set_uri(new_uri, on_submitted=on_submitted)

        return await self._execute("set URI", send, [CONTRACT_INFO])

    async def pause(self) -> str:
        async def send(on_submitted):
            return await self.contract.pause(on_submitted=on_submitted)

        return await self._execute("pause", send, [CONTRACT_INFO])

    async def unpause(self) -> str:
        async def send(on_submitted):
            return await self.contract.unpause(on_submitted=on_submitted)

        return await self._execute("unpause", send, [CONTRACT_INFO])

    async def transfer_ownership(self, new_owner: str) -> str:
        async def send(on_submitted):
            return await self.contract.transfer_ownership(new_owner, on_submitted=on_submitted)

        return await self._execute("transfer ownership", send, [CONTRACT_INFO])
