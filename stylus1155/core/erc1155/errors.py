"""
Failure taxonomy for ERC-1155 reads, writes and deployments.
"""

from typing import Optional

from .models import DeployMultiTokenResult


class ERC1155Error(Exception):
    """Base exception for all multi-token SDK errors."""
    pass


class ValidationFailure(ERC1155Error):
    """Malformed or mismatched local arguments, raised before any network call."""
    pass


class PreconditionFailure(ERC1155Error):
    """Required context (signer, user address, private key) is missing."""
    pass


class ReadFailure(ERC1155Error):
    """RPC read failed or returned data that cannot be used."""
    pass


class FunctionNotSupported(ReadFailure):
    """The deployed contract build does not implement the queried function."""

    def __init__(self, function: str, detail: str = ""):
        message = f"Function '{function}' is not supported by this contract"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.function = function


class SubmissionFailure(ERC1155Error):
    """The signer or node rejected the transaction, or its receipt could not be fetched."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash


class ReceiptTimeout(SubmissionFailure):
    """No receipt was observed within the confirmation timeout."""
    pass


class ExecutionFailure(ERC1155Error):
    """Transaction was included but reverted on-chain."""

    def __init__(
        self,
        message: str,
        tx_hash: Optional[str] = None,
        revert_reason: Optional[str] = None,
    ):
        super().__init__(message)
        self.tx_hash = tx_hash
        self.revert_reason = revert_reason


class TransportFailure(ERC1155Error):
    """Network-level failure reaching the deployment service."""
    pass


class DeploymentFailure(ERC1155Error):
    """The deployment service (or a follow-up phase) reported failure.

    `result` is set once the service has deployed, so a contract that is live
    on chain but failed activation, initialization or registration is not lost.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        result: Optional[DeployMultiTokenResult] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.result = result


class InvalidTransition(ERC1155Error):
    """A lifecycle state machine was asked to move backwards or sideways."""
    pass
