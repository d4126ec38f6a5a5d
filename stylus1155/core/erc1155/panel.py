"""
Interaction panel: network and contract selection, balance scan, transfers,
approvals and a renderable transaction status.

The panel owns no presentation. The HTTP router serialises it to JSON and the
CLI prints it as text.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Sequence

from eth_utils import is_address

from ...config import settings
from ...providers.rpc import JsonRpcProvider, RpcTransportError, Sleep
from .contract import ERC1155Contract, validate_address
from .errors import (
    ERC1155Error,
    ExecutionFailure,
    FunctionNotSupported,
    PreconditionFailure,
    ReadFailure,
    TransportFailure,
)
from .interactions import ERC1155Interactions
from .networks import DEFAULT_NETWORKS, NetworkConfig, resolve_network
from .signer import Signer
from .state import RequestStatus, state_to_dict


logger = logging.getLogger(__name__)

INVALID_ADDRESS = "Invalid address format"
NOT_A_CONTRACT = "Address is not a contract"

_STATUS_MESSAGES = {
    RequestStatus.IDLE: "",
    RequestStatus.PENDING: "Confirming...",
    RequestStatus.CONFIRMING: "Waiting for confirmation...",
}


class InteractionPanel:
    """One user's view of one contract on one network at a time."""

    def __init__(
        self,
        network: Optional[str] = None,
        *,
        networks: Optional[Mapping[str, NetworkConfig]] = None,
        contract_address: Optional[str] = None,
        rpc: Optional[JsonRpcProvider] = None,
        signer: Optional[Signer] = None,
        user_address: Optional[str] = None,
        display_timeout: Optional[float] = None,
        sleep: Sleep = asyncio.sleep,
        poll_interval_s: Optional[float] = None,
    ):
        self.networks: Mapping[str, NetworkConfig] = DEFAULT_NETWORKS if networks is None else networks
        self.network = resolve_network(network or settings.default_network, self.networks)
        self.signer = signer
        self.user_address = validate_address(user_address, "user address") if user_address else (
            signer.address if signer is not None else None
        )
        self._rpc_override = rpc
        self._providers: Dict[str, JsonRpcProvider] = {}
        self._display_timeout = display_timeout
        self._sleep = sleep
        self._poll_interval_s = poll_interval_s

        self.is_custom = bool(contract_address)
        self.contract_address: Optional[str] = (
            validate_address(contract_address, "contract address")
            if contract_address
            else self._default_address()
        )
        self.custom_address_error: Optional[str] = None
        self.contract_error: Optional[str] = None
        self.user_balances: Dict[int, int] = {}
        self.interactions: Optional[ERC1155Interactions] = None
        self._success_message = ""
        self._rebind()

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    @property
    def rpc(self) -> JsonRpcProvider:
        if self._rpc_override is not None:
            return self._rpc_override
        provider = self._providers.get(self.network.name)
        if provider is None:
            provider = JsonRpcProvider(settings.resolve_rpc_endpoint(self.network.rpc_url))
            self._providers[self.network.name] = provider
        return provider

    def _rebind(self) -> None:
        self.contract_error = None
        self.user_balances = {}
        if not self.contract_address:
            self.interactions = None
            return
        self.interactions = ERC1155Interactions(
            self.contract_address,
            self.network.name,
            networks=self.networks,
            rpc=self.rpc,
            signer=self.signer,
            user_address=self.user_address,
            display_timeout=self._display_timeout,
            sleep=self._sleep,
            poll_interval_s=self._poll_interval_s,
        )

    def _require_interactions(self) -> ERC1155Interactions:
        if self.interactions is None:
            raise PreconditionFailure("No contract address specified")
        return self.interactions

    async def aclose(self) -> None:
        for provider in self._providers.values():
            await provider.aclose()

    def _default_address(self) -> Optional[str]:
        default = self.network.default_contract
        return validate_address(default, "default contract address") if default else None

    @property
    def is_using_default_contract(self) -> bool:
        default = self._default_address()
        return default is not None and self.contract_address == default

    # ------------------------------------------------------------------
    # Network and contract selection
    # ------------------------------------------------------------------

    def select_network(self, name: str) -> NetworkConfig:
        """Switch networks; a custom address survives, a default one follows the network."""
        self.network = resolve_network(name, self.networks)
        if not self.is_custom:
            self.contract_address = self._default_address()
        logger.info(f"Panel switched to {self.network.name} (contract {self.contract_address or 'none'})")
        self._rebind()
        return self.network

    async def use_custom_contract(self, address: str) -> bool:
        if not address or not is_address(address):
            self.custom_address_error = INVALID_ADDRESS
            return False

        self.custom_address_error = None
        candidate = ERC1155Contract(address, self.rpc)
        try:
            is_contract = await candidate.has_code()
        except ReadFailure as exc:
            logger.warning(f"Could not validate {address} on {self.network.name}: {exc}")
            is_contract = False
        if not is_contract:
            self.custom_address_error = NOT_A_CONTRACT
            return False

        self.contract_address = candidate.address
        self.is_custom = True
        self._rebind()
        return True

    def use_default_contract(self) -> Optional[str]:
        self.contract_address = self._default_address()
        self.is_custom = False
        self.custom_address_error = None
        self._rebind()
        return self.contract_address

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def scan_balances(self, max_token_id: Optional[int] = None) -> Dict[int, int]:
        """
        Read the user's balance of token ids 0..max_token_id, keeping non-zero ones.

        A contract that cannot answer balanceOf at all aborts the scan and sets
        `contract_error`; a single id failing otherwise is skipped.
        """
        interactions = self._require_interactions()
        if not self.user_address:
            raise PreconditionFailure("User address is required")
        upper = settings.balance_scan_max_token_id if max_token_id is None else max_token_id

        self.contract_error = None
        found: Dict[int, int] = {}
        for token_id in range(upper + 1):
            try:
                balance = await interactions.contract.balance_of(self.user_address, token_id)
            except FunctionNotSupported as exc:
                self.contract_error = self.describe_error(exc)
                logger.warning(f"Balance scan stopped at id {token_id}: {exc}")
                return self.user_balances
            except ReadFailure as exc:
                logger.debug(f"Skipping token id {token_id}: {exc}")
                continue
            if balance > 0:
                found[token_id] = balance

        self.user_balances = found
        return found

    async def check_balance(self, account: str, token_id: int) -> int:
        return await self._require_interactions().contract.balance_of(account, token_id)

    async def check_approval(self, owner: str, operator: str) -> bool:
        return await self._require_interactions().contract.is_approved_for_all(owner, operator)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def _run(self, action, success_message: str) -> str:
        interactions = self._require_interactions()
        if interactions.tx_state.status in (RequestStatus.PENDING, RequestStatus.CONFIRMING):
            raise PreconditionFailure("A transaction is already pending")
        self._success_message = success_message
        tx_hash = await action(interactions)
        if self.user_address:
            await self.scan_balances()
        return tx_hash

    async def transfer(self, from_address: str, to: str, token_id: int, amount: int) -> str:
        return await self._run(
            lambda it: it.safe_transfer_from(from_address, to, token_id, amount),
            f"Transferred {amount} of ID #{token_id}!",
        )

    async def batch_transfer(
        self, from_address: str, to: str, ids: Sequence[int], amounts: Sequence[int]
    ) -> str:
        return await self._run(
            lambda it: it.safe_batch_transfer_from(from_address, to, ids, amounts),
            "Batch transfer completed!",
        )

    async def set_approval(self, operator: str, approved: bool) -> str:
        return await self._run(
            lambda it: it.set_approval_for_all(operator, approved),
            f"Operator {'approved' if approved else 'revoked'}!",
        )

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def describe_error(self, exc: BaseException) -> str:
        """Turn a failure into the sentence shown to the user."""
        network = self.network.display_name
        if isinstance(exc, FunctionNotSupported):
            if "revert" in str(exc).lower():
                return (
                    "Contract call failed. The contract may not support this function "
                    f"or is not properly deployed on {network}."
                )
            return (
                f"Contract not found or not deployed on {network}. "
                "The contract may only exist on a different network."
            )
        if isinstance(exc, TransportFailure) or isinstance(exc.__cause__, RpcTransportError):
            return "Network connection error. Please check your connection and try again."
        if isinstance(exc, ExecutionFailure):
            return f"Transaction reverted: {exc.revert_reason or 'Unknown reason'}"
        if isinstance(exc, ERC1155Error):
            return str(exc)
        return f"Error: {str(exc)[:100]}"

    def explorer_tx_url(self, tx_hash: str) -> str:
        return self.network.tx_url(tx_hash)

    def explorer_address_url(self) -> Optional[str]:
        if not self.contract_address:
            return None
        return self.network.address_url(self.contract_address)

    def tx_status(self) -> Dict[str, Any]:
        if self.interactions is None:
            return {"status": RequestStatus.IDLE.value, "message": "", "hash": None, "explorerUrl": None}

        state = self.interactions.tx_state
        tx_hash = getattr(state, "hash", None)
        if state.status == RequestStatus.SUCCESS:
            message = self._success_message or "Transaction confirmed"
        elif state.status == RequestStatus.ERROR:
            message = state.error
        else:
            message = _STATUS_MESSAGES[state.status]
        return {
            "status": state.status.value,
            "message": message,
            "hash": tx_hash,
            "explorerUrl": self.explorer_tx_url(tx_hash) if tx_hash else None,
        }

    def snapshot(self) -> Dict[str, Any]:
        """Everything the panel currently shows."""
        contract_info = None
        if self.interactions is not None:
            contract_info = state_to_dict(self.interactions.contract_info)
        return {
            "network": {
                "name": self.network.name,
                "displayName": self.network.display_name,
                "chainId": self.network.chain_id,
                "nativeSymbol": self.network.native_symbol,
            },
            "contractAddress": self.contract_address,
            "isCustomContract": self.is_custom,
            "isUsingDefaultContract": self.is_using_default_contract,
            "hasDefaultContract": bool(self.network.default_contract),
            "explorerUrl": self.explorer_address_url(),
            "customAddressError": self.custom_address_error,
            "contractError": self.contract_error,
            "contractInfo": contract_info,
            "userAddress": self.user_address,
            "userBalances": {str(token_id): str(balance) for token_id, balance in self.user_balances.items()},
            "txStatus": self.tx_status(),
        }
