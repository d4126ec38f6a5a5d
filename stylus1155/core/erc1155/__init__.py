"""
Stylus ERC-1155 multi-token SDK.

Only leaf modules are re-exported here; import the bindings, hooks and panel
from their own modules (`contract`, `interactions`, `deploy`, `panel`).
"""

from .errors import (
    DeploymentFailure,
    ERC1155Error,
    ExecutionFailure,
    FunctionNotSupported,
    InvalidTransition,
    PreconditionFailure,
    ReadFailure,
    ReceiptTimeout,
    SubmissionFailure,
    TransportFailure,
    ValidationFailure,
)
from .models import (
    Capability,
    DeployMultiTokenParams,
    DeployMultiTokenResult,
    MultiTokenInfo,
    Supported,
    TokenBalance,
    TokenTypeInfo,
    TransactionRequest,
    Unsupported,
)
from .networks import DEFAULT_NETWORKS, NetworkConfig, resolve_network

__all__ = [
    "ERC1155Error",
    "ValidationFailure",
    "PreconditionFailure",
    "ReadFailure",
    "FunctionNotSupported",
    "SubmissionFailure",
    "ReceiptTimeout",
    "ExecutionFailure",
    "TransportFailure",
    "DeploymentFailure",
    "InvalidTransition",
    "Capability",
    "Supported",
    "Unsupported",
    "TokenBalance",
    "MultiTokenInfo",
    "TokenTypeInfo",
    "TransactionRequest",
    "DeployMultiTokenParams",
    "DeployMultiTokenResult",
    "NetworkConfig",
    "DEFAULT_NETWORKS",
    "resolve_network",
]
