"""
On-chain follow-up steps for a freshly deployed multi-token contract.

The deployment service may leave a contract uninitialized or unregistered
(older service builds, or a factory added after the fact). These helpers
finish the job from the caller's own signer.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .abi import TOKEN_FACTORY_ABI
from .contract import BoundContract, ERC1155Contract, OnSubmitted, validate_address
from .errors import FunctionNotSupported, ValidationFailure


logger = logging.getLogger(__name__)


class TokenFactoryContract(BoundContract):
    """Registry that records every deployed multi-token instance."""

    DEFAULT_ABI = TOKEN_FACTORY_ABI

    async def get_all_deployed_contracts(self) -> List[str]:
        return [validate_address(address) for address in await self._call("getAllDeployedContracts")]

    async def get_total_contracts_deployed(self) -> int:
        return await self._call("getTotalContractsDeployed")

    async def register_multi_token(
        self, contract_address: str, base_uri: str, *, on_submitted: Optional[OnSubmitted] = None
    ) -> str:
        self._require_signer("registerMultiToken")
        if not base_uri:
            raise ValidationFailure("Base URI is required")
        args = [validate_address(contract_address, "contract address"), base_uri]
        tx_hash, _ = await self._transact("registerMultiToken", args, on_submitted)
        return tx_hash


async def initialize_multi_token(
    contract: ERC1155Contract,
    base_uri: str,
    owner: str,
    *,
    on_submitted: Optional[OnSubmitted] = None,
) -> str:
    """Call `initialize(base_uri, owner)` on an uninitialized deployment."""
    logger.info(f"Initializing {contract.address} with base URI {base_uri}")
    return await contract.initialize(base_uri, owner, on_submitted=on_submitted)


async def register_multi_token_in_factory(
    factory: TokenFactoryContract,
    contract_address: str,
    base_uri: str,
    *,
    on_submitted: Optional[OnSubmitted] = None,
) -> str:
    logger.info(f"Registering {contract_address} in factory {factory.address}")
    return await factory.register_multi_token(contract_address, base_uri, on_submitted=on_submitted)


async def is_multi_token_registered(factory: TokenFactoryContract, contract_address: str) -> bool:
    """
    Whether the factory already lists `contract_address`.

    Factories without `getAllDeployedContracts` cannot answer, which is
    reported as not registered.
    """
    target = validate_address(contract_address, "contract address")
    try:
        deployed = await factory.get_all_deployed_contracts()
    except FunctionNotSupported as exc:
        logger.warning(f"Factory {factory.address} cannot list deployments: {exc}")
        return False
    return target in deployed
