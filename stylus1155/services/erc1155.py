"""
Process-wide registry of RPC providers, interaction hooks and deployers.

The HTTP layer is stateless per request, but transaction status has to
outlive the request that started it, so hooks are cached per
(network, contract) and deployers per network.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from ..config import settings
from ..core.erc1155.contract import ERC1155Contract, validate_address
from ..core.erc1155.deploy import ERC1155Deployer
from ..core.erc1155.interactions import ERC1155Interactions
from ..core.erc1155.networks import DEFAULT_NETWORKS, NetworkConfig, resolve_network
from ..core.erc1155.panel import InteractionPanel
from ..core.erc1155.signer import Signer, signer_from_settings
from ..providers.deployment_api import DeploymentApiProvider
from ..providers.rpc import JsonRpcProvider


logger = logging.getLogger(__name__)

RpcFactory = Callable[[NetworkConfig], JsonRpcProvider]


def _default_rpc_factory(network: NetworkConfig) -> JsonRpcProvider:
    return JsonRpcProvider(settings.resolve_rpc_endpoint(network.rpc_url))


class ERC1155Service:
    """Shared wiring for everything that talks to multi-token contracts."""

    def __init__(
        self,
        *,
        networks: Optional[Mapping[str, NetworkConfig]] = None,
        rpc_factory: Optional[RpcFactory] = None,
        signer: Optional[Signer] = None,
        deployment_api: Optional[DeploymentApiProvider] = None,
        display_timeout: Optional[float] = None,
    ):
        self.networks: Mapping[str, NetworkConfig] = DEFAULT_NETWORKS if networks is None else networks
        self._rpc_factory = rpc_factory or _default_rpc_factory
        self.signer = signer
        self.deployment_api = deployment_api
        self.display_timeout = display_timeout

        self._providers: Dict[str, JsonRpcProvider] = {}
        self._interactions: Dict[Tuple[str, str], ERC1155Interactions] = {}
        self._deployers: Dict[str, ERC1155Deployer] = {}

    def network(self, name: Optional[str] = None) -> NetworkConfig:
        return resolve_network(name or settings.default_network, self.networks)

    def list_networks(self) -> List[NetworkConfig]:
        return list(self.networks.values())

    def rpc(self, network: NetworkConfig) -> JsonRpcProvider:
        provider = self._providers.get(network.name)
        if provider is None:
            provider = self._rpc_factory(network)
            self._providers[network.name] = provider
        return provider

    def contract(self, address: str, network_name: Optional[str] = None) -> ERC1155Contract:
        network = self.network(network_name)
        return ERC1155Contract(address, self.rpc(network), signer=self.signer)

    def interactions(self, address: str, network_name: Optional[str] = None) -> ERC1155Interactions:
        network = self.network(network_name)
        key = (network.name, validate_address(address, "contract address"))
        hook = self._interactions.get(key)
        if hook is None:
            hook = ERC1155Interactions(
                key[1],
                network.name,
                networks=self.networks,
                rpc=self.rpc(network),
                signer=self.signer,
                display_timeout=self.display_timeout,
            )
            self._interactions[key] = hook
        return hook

    def panel(
        self,
        address: str,
        network_name: Optional[str] = None,
        *,
        user_address: Optional[str] = None,
    ) -> InteractionPanel:
        network = self.network(network_name)
        return InteractionPanel(
            network.name,
            networks=self.networks,
            contract_address=address,
            rpc=self.rpc(network),
            signer=self.signer,
            user_address=user_address,
            display_timeout=self.display_timeout,
        )

    def deployer(self, network_name: Optional[str] = None) -> ERC1155Deployer:
        network = self.network(network_name)
        deployer = self._deployers.get(network.name)
        if deployer is None:
            deployer = ERC1155Deployer(
                network.name,
                networks=self.networks,
                api=self.deployment_api,
                rpc=self.rpc(network),
                display_timeout=self.display_timeout,
            )
            self._deployers[network.name] = deployer
        return deployer

    async def health_check(self, network_name: Optional[str] = None) -> Dict[str, object]:
        network = self.network(network_name)
        status = await self.rpc(network).health_check()
        if status.get("status") == "healthy" and status.get("chainId") != network.chain_id:
            status = {**status, "status": "error", "reason": f"expected chain {network.chain_id}"}
        return status

    async def aclose(self) -> None:
        for provider in self._providers.values():
            await provider.aclose()
        self._providers.clear()


# Singleton instance
_erc1155_service: Optional[ERC1155Service] = None


def get_erc1155_service() -> ERC1155Service:
    """Get the singleton ERC1155Service instance."""
    global _erc1155_service
    if _erc1155_service is None:
        _erc1155_service = ERC1155Service(signer=signer_from_settings())
        logger.info(
            f"ERC-1155 service ready (signer: {_erc1155_service.signer.address if _erc1155_service.signer else 'none'})"
        )
    return _erc1155_service
