import pytest

import cli
from stylus1155.config import settings
from stylus1155.core.erc1155.state import RequestConfirming, RequestIdle, RequestSuccess


@pytest.mark.asyncio
async def test_networks_lists_known_chains(capsys):
    assert await cli.main(["networks"]) == 0

    out = capsys.readouterr().out
    assert "arbitrum-sepolia" in out
    assert "421614" in out


@pytest.mark.asyncio
async def test_no_command_prints_help(capsys):
    assert await cli.main([]) == 0
    assert "usage" in capsys.readouterr().out.lower()


@pytest.mark.asyncio
async def test_write_without_private_key(monkeypatch, capsys):
    monkeypatch.setattr(settings, "private_key", "")

    code = await cli.main(["transfer", "0x3333333333333333333333333333333333333333", "1", "1"])

    assert code == 1
    assert "PRIVATE_KEY" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_deploy_without_private_key(monkeypatch, capsys):
    monkeypatch.setattr(settings, "private_key", "")

    assert await cli.main(["deploy"]) == 1
    assert "PRIVATE_KEY" in capsys.readouterr().out


def test_int_list():
    assert cli._int_list("1, 2,0x10") == [1, 2, 16]


def test_print_state(capsys):
    cli.print_state(RequestIdle())
    cli.print_state(RequestConfirming(hash="0xabc"))
    cli.print_state(RequestSuccess(hash="0xabc"))

    lines = capsys.readouterr().out.splitlines()
    assert lines == ["🔄 confirming 0xabc", "✅ success 0xabc"]
