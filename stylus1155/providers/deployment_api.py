"""Async client for the ERC-1155 deployment service."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .base import Provider
from ..config import settings
from ..core.erc1155.errors import DeploymentFailure, TransportFailure, ValidationFailure
from ..core.erc1155.models import DeployMultiTokenResult


logger = logging.getLogger(__name__)


class DeploymentApiProvider(Provider):
    """
    Thin wrapper around `POST {base_url}/deploy-erc1155`.

    The service compiles, deploys, activates and (optionally) initializes and
    registers a Stylus multi-token contract. One request per call, no retries.
    """

    name = "deployment_api"

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = (base_url or settings.deployment_api_url).rstrip("/")
        self.timeout_s = timeout_s or settings.deployment_timeout_seconds
        self._client = client

    async def ready(self) -> bool:
        return bool(self.base_url)

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "configured" if self.base_url else "disabled", "baseUrl": self.base_url}

    async def _post(self, path: str, payload: Dict[str, Any]) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(f"{self.base_url}{path}", json=payload, timeout=self.timeout_s)
        async with httpx.AsyncClient(timeout=self.timeout_s) as client:
            return await client.post(f"{self.base_url}{path}", json=payload)

    async def deploy_erc1155(
        self,
        base_uri: str,
        private_key: str,
        rpc_endpoint: str,
        factory_address: Optional[str] = None,
    ) -> DeployMultiTokenResult:
        if not base_uri:
            raise ValidationFailure("Base URI is required")
        if not rpc_endpoint:
            raise ValidationFailure("RPC endpoint is required")

        payload: Dict[str, Any] = {
            "baseUri": base_uri,
            "privateKey": private_key,
            "rpcEndpoint": rpc_endpoint,
        }
        if factory_address:
            payload["factoryAddress"] = factory_address

        # Never log the payload itself: it carries the private key.
        logger.info(f"Requesting ERC-1155 deployment via {self.base_url} (baseUri={base_uri})")
        try:
            response = await self._post("/deploy-erc1155", payload)
        except httpx.HTTPError as exc:
            raise TransportFailure(
                f"Deployment service unreachable at {self.base_url} ({type(exc).__name__}): {exc}"
            ) from exc

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = None

        if response.is_error:
            message = (body or {}).get("error") or f"Deployment failed with status {response.status_code}"
            logger.warning(f"Deployment service returned HTTP {response.status_code}: {message}")
            raise DeploymentFailure(message, status_code=response.status_code)

        if body is None:
            raise DeploymentFailure(
                "Deployment service returned an unreadable response", status_code=response.status_code
            )

        if not body.get("success"):
            message = body.get("error") or "Deployment failed"
            logger.warning(f"Deployment service reported failure: {message}")
            raise DeploymentFailure(message, status_code=response.status_code)

        contract_address = body.get("contractAddress")
        if not contract_address:
            raise DeploymentFailure(
                "Deployment service reported success without a contract address",
                status_code=response.status_code,
            )

        tx_hash = body.get("txHash")
        if not tx_hash:
            raise DeploymentFailure(
                "Deployment service reported success without a transaction hash",
                status_code=response.status_code,
            )

        result = DeployMultiTokenResult(
            contract_address=contract_address,
            tx_hash=tx_hash,
            success=True,
            deploy_output=body.get("deployOutput"),
            init_output=body.get("initOutput"),
            register_output=body.get("registerOutput"),
        )
        logger.info(f"Deployment service deployed {contract_address} in {tx_hash}")
        return result
