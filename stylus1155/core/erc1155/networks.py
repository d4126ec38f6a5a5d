"""Network configuration for the chains the multi-token contract is deployed on."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from .errors import ValidationFailure


@dataclass(frozen=True)
class NetworkConfig:
    """Everything needed to talk to one chain."""
    name: str
    display_name: str
    chain_id: int
    rpc_url: str
    explorer_url: str
    native_symbol: str = "ETH"
    default_contract: Optional[str] = None      # Pre-deployed demo contract, if any
    factory_address: Optional[str] = None       # Registry for deployed instances
    is_testnet: bool = False

    def tx_url(self, tx_hash: str) -> str:
        return f"{self.explorer_url}/tx/{tx_hash}"

    def address_url(self, address: str) -> str:
        return f"{self.explorer_url}/address/{address}"


_FACTORY = "0xed088fd93517b0d0c3a3e4d2e2c419fb58570556"

DEFAULT_NETWORKS: Dict[str, NetworkConfig] = {
    "arbitrum-sepolia": NetworkConfig(
        name="arbitrum-sepolia",
        display_name="Arbitrum Sepolia",
        chain_id=421614,
        rpc_url="https://sepolia-rollup.arbitrum.io/rpc",
        explorer_url="https://sepolia.arbiscan.io",
        default_contract="0xf5dfa3cc48b885fe7154e9877e6f2a805f723f29",
        factory_address=_FACTORY,
        is_testnet=True,
    ),
    "arbitrum": NetworkConfig(
        name="arbitrum",
        display_name="Arbitrum One",
        chain_id=42161,
        rpc_url="https://arb1.arbitrum.io/rpc",
        explorer_url="https://arbiscan.io",
        factory_address=_FACTORY,
    ),
    "superposition": NetworkConfig(
        name="superposition",
        display_name="Superposition",
        chain_id=55244,
        rpc_url="https://rpc.superposition.so",
        explorer_url="https://explorer.superposition.so",
    ),
    "superposition-testnet": NetworkConfig(
        name="superposition-testnet",
        display_name="Superposition Testnet",
        chain_id=98985,
        rpc_url="https://testnet-rpc.superposition.so",
        explorer_url="https://testnet-explorer.superposition.so",
        native_symbol="SPN",
        default_contract="0x7906e652e3f28aaf97e6a95e73016c38a3f7dd64",
        is_testnet=True,
    ),
}


def resolve_network(
    name: str,
    networks: Optional[Mapping[str, NetworkConfig]] = None,
) -> NetworkConfig:
    """Look up a network by name in the given map (default: built-in networks)."""

    table = DEFAULT_NETWORKS if networks is None else networks
    key = (name or "").strip().lower()
    config = table.get(key)
    if config is None:
        known = ", ".join(sorted(table))
        raise ValidationFailure(f"Unknown network '{name}' (known: {known})")
    return config


def get_rpc_endpoint(name: str, networks: Optional[Mapping[str, NetworkConfig]] = None) -> str:
    return resolve_network(name, networks).rpc_url


def get_factory_address(name: str, networks: Optional[Mapping[str, NetworkConfig]] = None) -> Optional[str]:
    return resolve_network(name, networks).factory_address


__all__ = [
    "NetworkConfig",
    "DEFAULT_NETWORKS",
    "resolve_network",
    "get_rpc_endpoint",
    "get_factory_address",
]
