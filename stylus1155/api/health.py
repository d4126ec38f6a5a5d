from fastapi import APIRouter, Depends
from typing import Dict, Any

from ..services.erc1155 import ERC1155Service, get_erc1155_service

router = APIRouter()


@router.get("/healthz")
async def health_check(service: ERC1155Service = Depends(get_erc1155_service)) -> Dict[str, Any]:
    """Health check endpoint that verifies RPC reachability"""

    network = service.network()
    rpc_status = await service.health_check(network.name)
    deployment_status = (
        await service.deployment_api.health_check() if service.deployment_api else {"status": "default"}
    )

    return {
        "status": "healthy" if rpc_status["status"] == "healthy" else "degraded",
        "network": network.name,
        "providers": {
            "rpc": rpc_status,
            "deployment_api": deployment_status,
        },
        "signer": service.signer.address if service.signer else None,
    }
