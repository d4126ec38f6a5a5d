from stylus1155.config import Settings


def test_private_key_from_env(monkeypatch):
    """PRIVATE_KEY is read verbatim."""

    monkeypatch.setenv("PRIVATE_KEY", "0xabc")

    settings = Settings()

    assert settings.private_key == "0xabc"
    assert settings.has_private_key


def test_deployment_api_url_alias_strips_trailing_slash(monkeypatch):
    """ERC1155_DEPLOYMENT_API_URL is accepted and normalised for path joins."""

    monkeypatch.delenv("DEPLOYMENT_API_URL", raising=False)
    monkeypatch.setenv("ERC1155_DEPLOYMENT_API_URL", "http://deployer.test:4002/")

    settings = Settings()

    assert settings.deployment_api_url == "http://deployer.test:4002"


def test_deployment_api_url_default(monkeypatch):
    monkeypatch.delenv("ERC1155_DEPLOYMENT_API_URL", raising=False)
    monkeypatch.delenv("DEPLOYMENT_API_URL", raising=False)
    monkeypatch.delenv("deployment_api_url", raising=False)

    settings = Settings()

    assert settings.deployment_api_url == "http://localhost:4002"


def test_contract_address_public_alias(monkeypatch):
    """The frontend-style NEXT_PUBLIC_ERC1155_ADDRESS name also works."""

    monkeypatch.delenv("CONTRACT_ADDRESS", raising=False)
    monkeypatch.delenv("ERC1155_ADDRESS", raising=False)
    monkeypatch.setenv("NEXT_PUBLIC_ERC1155_ADDRESS", "0x1111111111111111111111111111111111111111")

    settings = Settings()

    assert settings.contract_address == "0x1111111111111111111111111111111111111111"


def test_rpc_endpoint_precedence(monkeypatch):
    """Explicit override beats RPC_ENDPOINT, which beats the network default."""

    monkeypatch.setenv("RPC_ENDPOINT", "http://env-rpc.test")

    settings = Settings()

    assert settings.resolve_rpc_endpoint("http://network.test") == "http://env-rpc.test"
    assert settings.resolve_rpc_endpoint("http://network.test", "http://cli.test") == "http://cli.test"

    monkeypatch.delenv("RPC_ENDPOINT")
    monkeypatch.delenv("ERC1155_RPC_ENDPOINT", raising=False)
    monkeypatch.delenv("rpc_endpoint", raising=False)

    assert Settings().resolve_rpc_endpoint("http://network.test") == "http://network.test"
