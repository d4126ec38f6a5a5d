"""
Multi-token value types.
"""

from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, Tuple, TypeVar, Union


T = TypeVar("T")


@dataclass(frozen=True)
class Supported(Generic[T]):
    """The contract implements the probed function; `value` is its result."""
    value: T

    @property
    def is_supported(self) -> bool:
        return True

    def value_or(self, default: Any) -> T:
        return self.value


@dataclass(frozen=True)
class Unsupported:
    """The deployed build has no such function."""
    function: str

    @property
    def is_supported(self) -> bool:
        return False

    def value_or(self, default: Any) -> Any:
        return default


Capability = Union[Supported[T], Unsupported]


def capability_to_dict(capability: Capability) -> Dict[str, Any]:
    if isinstance(capability, Supported):
        value = capability.value
        return {"supported": True, "value": str(value) if isinstance(value, int) and not isinstance(value, bool) else value}
    return {"supported": False, "function": capability.function}


@dataclass(frozen=True)
class TokenBalance:
    """Balance of one token id for one account."""
    id: int
    balance: int

    def to_dict(self) -> Dict[str, Any]:
        # Stringified so large uint256 values survive JSON consumers
        return {"id": str(self.id), "balance": str(self.balance)}


@dataclass(frozen=True)
class MultiTokenInfo:
    """Contract-level metadata; every field but the address is optional per build."""
    address: str
    base_uri: Capability
    owner: Capability
    paused: Capability

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "baseUri": capability_to_dict(self.base_uri),
            "owner": capability_to_dict(self.owner),
            "paused": capability_to_dict(self.paused),
        }


@dataclass(frozen=True)
class TokenTypeInfo:
    """Per-token-id metadata."""
    id: int
    total_supply: Capability
    exists: Capability
    uri: Capability

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "totalSupply": capability_to_dict(self.total_supply),
            "exists": capability_to_dict(self.exists),
            "uri": capability_to_dict(self.uri),
        }


@dataclass(frozen=True)
class TransactionRequest:
    """A contract call about to be handed to the signer."""
    function: str
    args: Tuple[Any, ...] = ()

    def describe(self) -> str:
        rendered = ", ".join(repr(arg) for arg in self.args)
        return f"{self.function}({rendered})"


@dataclass(frozen=True)
class DeployMultiTokenParams:
    base_uri: str
    factory_address: Optional[str] = None


@dataclass(frozen=True)
class DeployMultiTokenResult:
    """Outcome of a deployment, as reported by the deployment service."""
    contract_address: str
    tx_hash: str
    success: bool
    deploy_output: Optional[str] = None
    init_output: Optional[str] = None
    register_output: Optional[str] = None

    # Follow-up transactions sent by the deployment hook itself
    init_tx_hash: Optional[str] = None
    register_tx_hash: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contractAddress": self.contract_address,
            "txHash": self.tx_hash,
            "success": self.success,
            "deployOutput": self.deploy_output,
            "initOutput": self.init_output,
            "registerOutput": self.register_output,
            "initTxHash": self.init_tx_hash,
            "registerTxHash": self.register_tx_hash,
        }
