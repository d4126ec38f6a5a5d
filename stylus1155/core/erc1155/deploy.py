"""
Deployment facade: drives a contract from nothing to a registered instance.

Phases run strictly in sequence since each needs the previous one's output:

1. deploying    - POST to the deployment service
2. activating   - confirm code exists at the returned address
3. initializing - call initialize() when the service did not
4. registering  - record the address in the factory when it is missing
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Callable, Mapping, Optional

from ...config import settings
from ...providers.deployment_api import DeploymentApiProvider
from ...providers.rpc import JsonRpcProvider, Sleep
from .contract import ERC1155Contract
from .deployment import (
    TokenFactoryContract,
    initialize_multi_token,
    is_multi_token_registered,
    register_multi_token_in_factory,
)
from .errors import DeploymentFailure, PreconditionFailure, ValidationFailure
from .models import DeployMultiTokenParams, DeployMultiTokenResult, Supported
from .networks import NetworkConfig, resolve_network
from .signer import LocalAccountSigner, Signer
from .state import (
    Activating,
    DeploymentError,
    DeploymentState,
    DeploymentStateMachine,
    DeploymentSuccess,
    Initializing,
    Operation,
    Registering,
)


logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class ERC1155Deployer:
    """Deploys multi-token contracts through the deployment service."""

    def __init__(
        self,
        network: Optional[str] = None,
        *,
        private_key: Optional[str] = None,
        rpc_endpoint: Optional[str] = None,
        deployment_api_url: Optional[str] = None,
        networks: Optional[Mapping[str, NetworkConfig]] = None,
        api: Optional[DeploymentApiProvider] = None,
        rpc: Optional[JsonRpcProvider] = None,
        signer: Optional[Signer] = None,
        display_timeout: Optional[float] = None,
        sleep: Sleep = asyncio.sleep,
        receipt_timeout_s: Optional[float] = None,
        poll_interval_s: Optional[float] = None,
    ):
        self.network = resolve_network(network or settings.default_network, networks)
        self.private_key = settings.private_key if private_key is None else private_key
        self.rpc_endpoint = settings.resolve_rpc_endpoint(self.network.rpc_url, rpc_endpoint)
        self.factory_address = self.network.factory_address

        self.api = api or DeploymentApiProvider(base_url=deployment_api_url)
        self.rpc = rpc or JsonRpcProvider(self.rpc_endpoint)
        self._signer = signer
        self._sleep = sleep
        self._receipt_timeout_s = receipt_timeout_s
        self._poll_interval_s = poll_interval_s

        self.machine = DeploymentStateMachine(display_timeout=display_timeout, sleep=sleep)

    @property
    def deployment_state(self) -> DeploymentState:
        return self.machine.state

    @property
    def is_deploying(self) -> bool:
        return self.machine.is_deploying

    @property
    def error(self) -> Optional[str]:
        return getattr(self.machine.state, "error", None)

    def subscribe(self, listener: Callable[[DeploymentState], None]) -> Callable[[], None]:
        return self.machine.subscribe(listener)

    def reset(self) -> None:
        self.machine.reset()

    def _follow_up_signer(self) -> Signer:
        if self._signer is None:
            self._signer = LocalAccountSigner(self.private_key)
        return self._signer

    def _bind(self, cls, address: str):
        return cls(
            address,
            self.rpc,
            signer=self._follow_up_signer(),
            receipt_timeout_s=self._receipt_timeout_s,
            poll_interval_s=self._poll_interval_s,
            sleep=self._sleep,
        )

    async def deploy_multi_token(self, params: DeployMultiTokenParams) -> DeployMultiTokenResult:
        if not self.private_key:
            raise PreconditionFailure("Private key is required for deployment")
        if not params.base_uri:
            raise ValidationFailure("Base URI is required")

        factory_address = params.factory_address or self.factory_address
        op = self.machine.begin()
        try:
            result = await self.api.deploy_erc1155(
                params.base_uri,
                self.private_key,
                self.rpc_endpoint,
                factory_address=factory_address,
            )
        except Exception as exc:
            logger.warning(f"Deployment service call failed: {exc}")
            op.fail(exc)
            raise

        try:
            result = await self._follow_up(op, result, params.base_uri, factory_address)
        except Exception as exc:
            phase = op.state.status.value
            message = f"{phase} failed for {result.contract_address} (deploy tx {result.tx_hash}): {exc}"
            logger.warning(f"Deployment {message}")
            op.to(DeploymentError(error=message, result=result))
            raise DeploymentFailure(message, result=result) from exc

        op.to(DeploymentSuccess(result=result))
        logger.info(f"Deployed ERC-1155 at {result.contract_address} on {self.network.name}")
        return result

    async def _follow_up(
        self,
        op: Operation[DeploymentState],
        result: DeployMultiTokenResult,
        base_uri: str,
        factory_address: Optional[str],
    ) -> DeployMultiTokenResult:
        op.to(Activating())
        contract: ERC1155Contract = self._bind(ERC1155Contract, result.contract_address)
        if not await contract.has_code():
            raise DeploymentFailure(
                f"No contract code at {contract.address} on {self.network.display_name}"
            )

        op.to(Initializing())
        if not result.init_output:
            info = await contract.get_contract_info()
            owner = info.owner
            if isinstance(owner, Supported) and owner.value != ZERO_ADDRESS:
                logger.info(f"{contract.address} already initialized (owner {owner.value})")
            else:
                deployer = self._follow_up_signer().address
                init_tx_hash = await initialize_multi_token(contract, base_uri, deployer)
                result = replace(result, init_tx_hash=init_tx_hash)

        op.to(Registering())
        if factory_address and not result.register_output:
            factory: TokenFactoryContract = self._bind(TokenFactoryContract, factory_address)
            if not await is_multi_token_registered(factory, contract.address):
                register_tx_hash = await register_multi_token_in_factory(factory, contract.address, base_uri)
                result = replace(result, register_tx_hash=register_tx_hash)
        return result
