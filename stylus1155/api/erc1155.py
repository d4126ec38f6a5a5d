from typing import Any, Dict, List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from ..core.erc1155.errors import (
    DeploymentFailure,
    ERC1155Error,
    ExecutionFailure,
    PreconditionFailure,
    ReadFailure,
    SubmissionFailure,
    TransportFailure,
    ValidationFailure,
)
from ..core.erc1155.models import DeployMultiTokenParams
from ..core.erc1155.state import state_to_dict
from ..services.erc1155 import ERC1155Service, get_erc1155_service


router = APIRouter(prefix="/erc1155")

# Checked in order; subclasses must precede their bases.
_STATUS_BY_ERROR = (
    (ValidationFailure, 422),
    (PreconditionFailure, 400),
    (ReadFailure, 502),
    (SubmissionFailure, 502),
    (ExecutionFailure, 409),
    (TransportFailure, 503),
    (DeploymentFailure, 502),
)


def _raise_http(exc: ERC1155Error) -> NoReturn:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            raise HTTPException(status_code=status_code, detail=str(exc)) from exc
    raise HTTPException(status_code=500, detail=str(exc)) from exc


def _parse_ids(raw: str) -> List[int]:
    try:
        return [int(part.strip()) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise HTTPException(status_code=422, detail=f"ids must be a comma-separated list of integers: {raw!r}")


class TransferRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_address: str = Field(..., alias="from", description="Current holder of the tokens")
    to: str = Field(..., description="Recipient address")
    tokenId: int = Field(..., ge=0, description="Token id to move")
    amount: int = Field(..., ge=0, description="Amount in base units")


class BatchTransferRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_address: str = Field(..., alias="from", description="Current holder of the tokens")
    to: str = Field(..., description="Recipient address")
    ids: List[int] = Field(..., description="Token ids, parallel to amounts")
    amounts: List[int] = Field(..., description="Amounts, parallel to ids")


class ApprovalRequest(BaseModel):
    operator: str = Field(..., description="Operator to approve or revoke")
    approved: bool = Field(True, description="Grant (true) or revoke (false)")


class DeployRequest(BaseModel):
    baseUri: str = Field(..., min_length=1, description="Metadata base URI, e.g. ipfs://<cid>/")
    factoryAddress: Optional[str] = Field(default=None, description="Factory override; defaults to the network's")
    network: Optional[str] = Field(default=None, description="Target network name")


@router.get("/networks")
async def list_networks(service: ERC1155Service = Depends(get_erc1155_service)) -> Dict[str, Any]:
    return {
        "networks": [
            {
                "name": network.name,
                "displayName": network.display_name,
                "chainId": network.chain_id,
                "rpcUrl": network.rpc_url,
                "explorerUrl": network.explorer_url,
                "nativeSymbol": network.native_symbol,
                "defaultContract": network.default_contract,
                "factoryAddress": network.factory_address,
                "isTestnet": network.is_testnet,
            }
            for network in service.list_networks()
        ]
    }


@router.get("/contracts/{address}/info")
async def contract_info(
    address: str,
    network: Optional[str] = None,
    service: ERC1155Service = Depends(get_erc1155_service),
) -> Dict[str, Any]:
    try:
        info = await service.interactions(address, network).refetch_contract_info()
    except ERC1155Error as exc:
        _raise_http(exc)
    return info.to_dict()


@router.get("/contracts/{address}/tokens/{token_id}")
async def token_info(
    address: str,
    token_id: int,
    network: Optional[str] = None,
    service: ERC1155Service = Depends(get_erc1155_service),
) -> Dict[str, Any]:
    try:
        info = await service.contract(address, network).get_token_info(token_id)
    except ERC1155Error as exc:
        _raise_http(exc)
    return info.to_dict()


@router.get("/contracts/{address}/balances")
async def balances(
    address: str,
    account: str = Query(..., description="Holder address"),
    ids: str = Query(..., description="Comma-separated token ids"),
    network: Optional[str] = None,
    service: ERC1155Service = Depends(get_erc1155_service),
) -> Dict[str, Any]:
    token_ids = _parse_ids(ids)
    try:
        result = await service.contract(address, network).get_balance_batch(account, token_ids)
    except ERC1155Error as exc:
        _raise_http(exc)
    return {"account": account, "balances": [balance.to_dict() for balance in result]}


@router.get("/contracts/{address}/scan")
async def scan(
    address: str,
    account: str = Query(..., description="Holder address"),
    max_token_id: Optional[int] = Query(default=None, ge=0, le=1000),
    network: Optional[str] = None,
    service: ERC1155Service = Depends(get_erc1155_service),
) -> Dict[str, Any]:
    try:
        panel = service.panel(address, network, user_address=account)
        await panel.scan_balances(max_token_id)
    except ERC1155Error as exc:
        _raise_http(exc)
    snapshot = panel.snapshot()
    return {
        "account": snapshot["userAddress"],
        "balances": snapshot["userBalances"],
        "contractError": snapshot["contractError"],
    }


@router.get("/contracts/{address}/approvals")
async def approvals(
    address: str,
    account: str = Query(..., description="Token holder"),
    operator: str = Query(..., description="Operator to check"),
    network: Optional[str] = None,
    service: ERC1155Service = Depends(get_erc1155_service),
) -> Dict[str, Any]:
    try:
        approved = await service.contract(address, network).is_approved_for_all(account, operator)
    except ERC1155Error as exc:
        _raise_http(exc)
    return {"account": account, "operator": operator, "approved": approved}


@router.post("/contracts/{address}/transfer")
async def transfer(
    address: str,
    request: TransferRequest,
    network: Optional[str] = None,
    service: ERC1155Service = Depends(get_erc1155_service),
) -> Dict[str, Any]:
    try:
        hook = service.interactions(address, network)
        tx_hash = await hook.safe_transfer_from(request.from_address, request.to, request.tokenId, request.amount)
    except ERC1155Error as exc:
        _raise_http(exc)
    return {"txHash": tx_hash, "state": state_to_dict(hook.tx_state)}


@router.post("/contracts/{address}/batch-transfer")
async def batch_transfer(
    address: str,
    request: BatchTransferRequest,
    network: Optional[str] = None,
    service: ERC1155Service = Depends(get_erc1155_service),
) -> Dict[str, Any]:
    try:
        hook = service.interactions(address, network)
        tx_hash = await hook.safe_batch_transfer_from(
            request.from_address, request.to, request.ids, request.amounts
        )
    except ERC1155Error as exc:
        _raise_http(exc)
    return {"txHash": tx_hash, "state": state_to_dict(hook.tx_state)}


@router.post("/contracts/{address}/approval")
async def set_approval(
    address: str,
    request: ApprovalRequest,
    network: Optional[str] = None,
    service: ERC1155Service = Depends(get_erc1155_service),
) -> Dict[str, Any]:
    try:
        hook = service.interactions(address, network)
        tx_hash = await hook.set_approval_for_all(request.operator, request.approved)
    except ERC1155Error as exc:
        _raise_http(exc)
    return {"txHash": tx_hash, "state": state_to_dict(hook.tx_state)}


@router.get("/contracts/{address}/tx-state")
async def tx_state(
    address: str,
    network: Optional[str] = None,
    service: ERC1155Service = Depends(get_erc1155_service),
) -> Dict[str, Any]:
    try:
        hook = service.interactions(address, network)
    except ERC1155Error as exc:
        _raise_http(exc)
    return state_to_dict(hook.tx_state)


@router.post("/deploy")
async def deploy(
    request: DeployRequest,
    service: ERC1155Service = Depends(get_erc1155_service),
) -> Dict[str, Any]:
    try:
        deployer = service.deployer(request.network)
        result = await deployer.deploy_multi_token(
            DeployMultiTokenParams(base_uri=request.baseUri, factory_address=request.factoryAddress)
        )
    except ERC1155Error as exc:
        _raise_http(exc)
    return result.to_dict()


@router.get("/deploy/state")
async def deploy_state(
    network: Optional[str] = None,
    service: ERC1155Service = Depends(get_erc1155_service),
) -> Dict[str, Any]:
    try:
        deployer = service.deployer(network)
    except ERC1155Error as exc:
        _raise_http(exc)
    return state_to_dict(deployer.deployment_state)
