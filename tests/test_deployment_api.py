"""
Tests for the deployment service client.
"""

import json
import logging

import httpx
import pytest

from stylus1155.core.erc1155.errors import DeploymentFailure, TransportFailure, ValidationFailure
from stylus1155.providers.deployment_api import DeploymentApiProvider

from conftest import CONTRACT, FACTORY

PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
TX_HASH = "0x" + "cd" * 32


def provider_with(handler) -> DeploymentApiProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return DeploymentApiProvider(base_url="http://deployer.test/", client=client)


@pytest.mark.asyncio
async def test_successful_deployment_round_trip():
    captured = {}

    def handler(request):
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={
            "success": True,
            "contractAddress": CONTRACT,
            "txHash": TX_HASH,
            "deployOutput": "deployed",
            "initOutput": "initialized",
        })

    result = await provider_with(handler).deploy_erc1155(
        "ipfs://cid/", PRIVATE_KEY, "http://rpc.test", factory_address=FACTORY
    )

    assert captured["url"] == "http://deployer.test/deploy-erc1155"
    assert captured["body"] == {
        "baseUri": "ipfs://cid/",
        "privateKey": PRIVATE_KEY,
        "rpcEndpoint": "http://rpc.test",
        "factoryAddress": FACTORY,
    }
    assert result.contract_address == CONTRACT
    assert result.tx_hash == TX_HASH
    assert result.success is True
    assert result.init_output == "initialized"
    assert result.register_output is None


@pytest.mark.asyncio
async def test_factory_omitted_when_not_given():
    captured = {}

    def handler(request):
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "contractAddress": CONTRACT, "txHash": TX_HASH})

    await provider_with(handler).deploy_erc1155("ipfs://cid/", PRIVATE_KEY, "http://rpc.test")

    assert "factoryAddress" not in captured["body"]


@pytest.mark.asyncio
async def test_http_error_uses_body_message():
    provider = provider_with(lambda request: httpx.Response(500, json={"error": "insufficient funds"}))

    with pytest.raises(DeploymentFailure) as exc_info:
        await provider.deploy_erc1155("ipfs://cid/", PRIVATE_KEY, "http://rpc.test")

    assert str(exc_info.value) == "insufficient funds"
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_http_error_without_body():
    provider = provider_with(lambda request: httpx.Response(502, text="Bad Gateway"))

    with pytest.raises(DeploymentFailure) as exc_info:
        await provider.deploy_erc1155("ipfs://cid/", PRIVATE_KEY, "http://rpc.test")

    assert str(exc_info.value) == "Deployment failed with status 502"


@pytest.mark.asyncio
async def test_success_false_is_failure():
    provider = provider_with(lambda request: httpx.Response(200, json={"success": False, "error": "cargo stylus check failed"}))

    with pytest.raises(DeploymentFailure) as exc_info:
        await provider.deploy_erc1155("ipfs://cid/", PRIVATE_KEY, "http://rpc.test")

    assert str(exc_info.value) == "cargo stylus check failed"


@pytest.mark.asyncio
async def test_success_without_tx_hash_is_failure():
    provider = provider_with(lambda request: httpx.Response(200, json={"success": True, "contractAddress": CONTRACT}))

    with pytest.raises(DeploymentFailure):
        await provider.deploy_erc1155("ipfs://cid/", PRIVATE_KEY, "http://rpc.test")


@pytest.mark.asyncio
async def test_connection_refused_is_transport_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    with pytest.raises(TransportFailure):
        await provider_with(handler).deploy_erc1155("ipfs://cid/", PRIVATE_KEY, "http://rpc.test")


@pytest.mark.asyncio
async def test_missing_base_uri_sends_nothing():
    calls = []
    provider = provider_with(lambda request: calls.append(request) or httpx.Response(200, json={}))

    with pytest.raises(ValidationFailure):
        await provider.deploy_erc1155("", PRIVATE_KEY, "http://rpc.test")

    assert calls == []


@pytest.mark.asyncio
async def test_private_key_never_logged(caplog):
    caplog.set_level(logging.DEBUG)
    provider = provider_with(lambda request: httpx.Response(500, json={"error": "boom"}))

    with pytest.raises(DeploymentFailure):
        await provider.deploy_erc1155("ipfs://cid/", PRIVATE_KEY, "http://rpc.test")

    assert PRIVATE_KEY not in caplog.text
    assert PRIVATE_KEY[2:] not in caplog.text


@pytest.mark.asyncio
async def test_health_check_reports_base_url():
    provider = DeploymentApiProvider(base_url="http://deployer.test/")

    assert await provider.health_check() == {"status": "configured", "baseUrl": "http://deployer.test"}
