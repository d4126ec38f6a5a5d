#!/usr/bin/env python3
"""Command-line front-end for Stylus ERC-1155 contracts"""

import argparse
import asyncio
import sys
from typing import List, Optional

from stylus1155.config import settings
from stylus1155.core.erc1155.contract import ERC1155Contract
from stylus1155.core.erc1155.deploy import ERC1155Deployer
from stylus1155.core.erc1155.errors import ERC1155Error, PreconditionFailure
from stylus1155.core.erc1155.interactions import ERC1155Interactions
from stylus1155.core.erc1155.models import Capability, DeployMultiTokenParams, Supported
from stylus1155.core.erc1155.networks import DEFAULT_NETWORKS, NetworkConfig, resolve_network
from stylus1155.core.erc1155.panel import InteractionPanel
from stylus1155.core.erc1155.signer import signer_from_settings
from stylus1155.core.erc1155.state import state_to_dict
from stylus1155.logging_config import setup_logging
from stylus1155.providers.rpc import JsonRpcProvider


DEFAULT_BASE_URI = "https://api.example.com/metadata/"

STATUS_ICONS = {
    "pending": "⏳",
    "confirming": "🔄",
    "success": "✅",
    "error": "❌",
    "deploying": "🚀",
    "activating": "⚡",
    "initializing": "🛠️",
    "registering": "📝",
}


def _int_list(raw: str) -> List[int]:
    try:
        return [int(part.strip(), 0) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected comma-separated integers, got {raw!r}")


def _render(capability: Capability) -> str:
    if isinstance(capability, Supported):
        return str(capability.value)
    return f"(not supported: {capability.function})"


def print_state(state) -> None:
    """Listener that prints each lifecycle transition"""
    payload = state_to_dict(state)
    status = payload["status"]
    if status == "idle":
        return
    detail = payload.get("hash") or payload.get("error") or ""
    print(f"{STATUS_ICONS.get(status, '•')} {status} {detail}".rstrip())


class Context:
    """Network, RPC and contract resolved from CLI flags and settings"""

    def __init__(self, args: argparse.Namespace):
        self.network: NetworkConfig = resolve_network(args.network or settings.default_network)
        self.rpc_endpoint = settings.resolve_rpc_endpoint(self.network.rpc_url, args.rpc)
        self.contract_address: Optional[str] = (
            getattr(args, "contract", None) or settings.contract_address or self.network.default_contract
        )
        self.rpc = JsonRpcProvider(self.rpc_endpoint)

    def require_contract(self) -> str:
        if not self.contract_address:
            raise PreconditionFailure(
                f"No contract address: pass --contract or set ERC1155_ADDRESS ({self.network.name} has no default)"
            )
        return self.contract_address

    def reader(self) -> ERC1155Contract:
        return ERC1155Contract(self.require_contract(), self.rpc)

    def writer(self) -> ERC1155Interactions:
        signer = signer_from_settings()
        if signer is None:
            raise PreconditionFailure("PRIVATE_KEY environment variable is required")
        hook = ERC1155Interactions(
            self.require_contract(),
            self.network.name,
            rpc=self.rpc,
            signer=signer,
            display_timeout=0,
        )
        hook.subscribe(print_state)
        return hook

    def explorer(self, tx_hash: str) -> str:
        return self.network.tx_url(tx_hash)


async def cli_deploy(args: argparse.Namespace) -> None:
    """Deploy a new multi-token contract through the deployment service"""
    if not settings.has_private_key:
        raise PreconditionFailure("PRIVATE_KEY environment variable is required")

    network = resolve_network(args.network or settings.default_network)
    print("Deploying ERC-1155 multi-token...")
    print(f"Base URI: {args.base_uri}")
    print(f"Network: {network.name}")
    print(f"Deployment API: {settings.deployment_api_url}")

    deployer = ERC1155Deployer(network.name, rpc_endpoint=args.rpc, display_timeout=0)
    deployer.subscribe(print_state)
    try:
        result = await deployer.deploy_multi_token(
            DeployMultiTokenParams(base_uri=args.base_uri, factory_address=args.factory)
        )
    finally:
        await deployer.rpc.aclose()

    print("\n✅ Multi-token deployed successfully!")
    print(f"Contract Address: {result.contract_address}")
    print(f"Transaction Hash: {result.tx_hash}")
    if result.init_tx_hash:
        print(f"Initialize Tx: {result.init_tx_hash}")
    if result.register_tx_hash:
        print(f"Factory Registration Tx: {result.register_tx_hash}")
    print("\nAdd this to your .env file:")
    print(f"NEXT_PUBLIC_ERC1155_ADDRESS={result.contract_address}")


def cli_networks() -> None:
    print("🌐 Networks")
    print("=" * 50)
    for network in DEFAULT_NETWORKS.values():
        tag = " (testnet)" if network.is_testnet else ""
        print(f"{network.name:<24} chain {network.chain_id:<8} {network.display_name}{tag}")
        if network.default_contract:
            print(f"    default contract: {network.default_contract}")
        if network.factory_address:
            print(f"    factory:          {network.factory_address}")


async def cli_info(ctx: Context) -> None:
    info = await ctx.reader().get_contract_info()
    print(f"\n📦 ERC-1155 contract on {ctx.network.display_name}")
    print("=" * 50)
    print(f"Address:  {info.address}")
    print(f"Owner:    {_render(info.owner)}")
    print(f"Paused:   {_render(info.paused)}")
    print(f"Base URI: {_render(info.base_uri)}")
    print(f"Explorer: {ctx.network.address_url(info.address)}")


async def cli_token(ctx: Context, token_id: int) -> None:
    info = await ctx.reader().get_token_info(token_id)
    print(f"\n🎟️  Token #{info.id}")
    print(f"Exists:       {_render(info.exists)}")
    print(f"Total supply: {_render(info.total_supply)}")
    print(f"URI:          {_render(info.uri)}")


async def cli_balance(ctx: Context, account: str, ids: List[int]) -> None:
    balances = await ctx.reader().get_balance_batch(account, ids)
    print(f"\n💰 Balances of {account}")
    for entry in balances:
        print(f"  #{entry.id:<6} {entry.balance}")


async def cli_scan(ctx: Context, account: str, max_token_id: Optional[int]) -> None:
    panel = InteractionPanel(
        ctx.network.name,
        contract_address=ctx.require_contract(),
        rpc=ctx.rpc,
        user_address=account,
    )
    balances = await panel.scan_balances(max_token_id)
    if panel.contract_error:
        print(f"⚠️  {panel.contract_error}")
        return
    if not balances:
        print(f"No balances found for {account}")
        return
    print(f"\n💰 Non-zero balances of {account}")
    for token_id, balance in balances.items():
        print(f"  #{token_id:<6} {balance}")


async def cli_approved(ctx: Context, account: str, operator: str) -> None:
    approved = await ctx.reader().is_approved_for_all(account, operator)
    print(f"{'✅' if approved else '🚫'} {operator} {'is' if approved else 'is not'} approved for {account}")


async def cli_write(ctx: Context, args: argparse.Namespace) -> None:
    hook = ctx.writer()
    command = args.command
    sender = hook.user_address

    if command == "transfer":
        tx_hash = await hook.safe_transfer_from(args.sender or sender, args.to, args.token_id, args.amount)
    elif command == "batch-transfer":
        tx_hash = await hook.safe_batch_transfer_from(args.sender or sender, args.to, args.ids, args.amounts)
    elif command == "set-approval":
        tx_hash = await hook.set_approval_for_all(args.operator, not args.revoke)
    elif command == "mint":
        tx_hash = await hook.mint(args.to or sender, args.token_id, args.amount)
    elif command == "mint-new":
        tx_hash, token_id = await hook.mint_new(args.to or sender, args.amount)
        if token_id is not None:
            print(f"🎟️  New token id: {token_id}")
    elif command == "mint-batch":
        tx_hash = await hook.mint_batch(args.to or sender, args.ids, args.amounts)
    elif command == "burn":
        tx_hash = await hook.burn(args.token_id, args.amount)
    elif command == "burn-batch":
        tx_hash = await hook.burn_batch(args.ids, args.amounts)
    elif command == "set-uri":
        tx_hash = await hook.set_uri(args.uri)
    elif command == "pause":
        tx_hash = await hook.pause()
    elif command == "unpause":
        tx_hash = await hook.unpause()
    elif command == "transfer-ownership":
        tx_hash = await hook.transfer_ownership(args.new_owner)
    else:
        raise ValueError(f"Unknown write command: {command}")

    print(f"🔗 {ctx.explorer(tx_hash)}")


WRITE_COMMANDS = {
    "transfer",
    "batch-transfer",
    "set-approval",
    "mint",
    "mint-new",
    "mint-batch",
    "burn",
    "burn-batch",
    "set-uri",
    "pause",
    "unpause",
    "transfer-ownership",
}


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--network", help=f"Network name (default: {settings.default_network})")
    common.add_argument("--rpc", help="RPC endpoint override")

    with_contract = argparse.ArgumentParser(add_help=False, parents=[common])
    with_contract.add_argument("--contract", help="Contract address (default: ERC1155_ADDRESS or network default)")

    parser = argparse.ArgumentParser(description="Stylus ERC-1155 CLI")
    parser.add_argument("--log-level", help="Log level (default: from settings)")
    subparsers = parser.add_subparsers(dest="command")

    deploy_parser = subparsers.add_parser("deploy", parents=[common], help="Deploy a new multi-token contract")
    deploy_parser.add_argument("--base-uri", default=DEFAULT_BASE_URI, help="Metadata base URI")
    deploy_parser.add_argument("--factory", help="Factory address override")

    subparsers.add_parser("networks", help="List known networks")
    subparsers.add_parser("info", parents=[with_contract], help="Show contract owner, pause flag and base URI")

    token_parser = subparsers.add_parser("token", parents=[with_contract], help="Show token supply, existence and URI")
    token_parser.add_argument("token_id", type=int)

    balance_parser = subparsers.add_parser("balance", parents=[with_contract], help="Balances of an account")
    balance_parser.add_argument("account")
    balance_parser.add_argument("ids", type=_int_list, help="Comma-separated token ids")

    scan_parser = subparsers.add_parser("scan", parents=[with_contract], help="Find non-zero balances of an account")
    scan_parser.add_argument("account")
    scan_parser.add_argument("--max-token-id", type=int, help="Highest id to probe")

    approved_parser = subparsers.add_parser("approved", parents=[with_contract], help="Check approval-for-all")
    approved_parser.add_argument("account")
    approved_parser.add_argument("operator")

    transfer_parser = subparsers.add_parser("transfer", parents=[with_contract], help="Transfer one token id")
    transfer_parser.add_argument("to")
    transfer_parser.add_argument("token_id", type=int)
    transfer_parser.add_argument("amount", type=int)
    transfer_parser.add_argument("--from", dest="sender", help="Holder (default: signer)")

    batch_parser = subparsers.add_parser("batch-transfer", parents=[with_contract], help="Transfer several token ids")
    batch_parser.add_argument("to")
    batch_parser.add_argument("ids", type=_int_list)
    batch_parser.add_argument("amounts", type=_int_list)
    batch_parser.add_argument("--from", dest="sender", help="Holder (default: signer)")

    approval_parser = subparsers.add_parser("set-approval", parents=[with_contract], help="Approve or revoke an operator")
    approval_parser.add_argument("operator")
    approval_parser.add_argument("--revoke", action="store_true", help="Revoke instead of approve")

    mint_parser = subparsers.add_parser("mint", parents=[with_contract], help="Mint an existing token id")
    mint_parser.add_argument("token_id", type=int)
    mint_parser.add_argument("amount", type=int)
    mint_parser.add_argument("--to", help="Recipient (default: signer)")

    mint_new_parser = subparsers.add_parser("mint-new", parents=[with_contract], help="Mint a new token id")
    mint_new_parser.add_argument("amount", type=int)
    mint_new_parser.add_argument("--to", help="Recipient (default: signer)")

    mint_batch_parser = subparsers.add_parser("mint-batch", parents=[with_contract], help="Mint several token ids")
    mint_batch_parser.add_argument("ids", type=_int_list)
    mint_batch_parser.add_argument("amounts", type=_int_list)
    mint_batch_parser.add_argument("--to", help="Recipient (default: signer)")

    burn_parser = subparsers.add_parser("burn", parents=[with_contract], help="Burn tokens held by the signer")
    burn_parser.add_argument("token_id", type=int)
    burn_parser.add_argument("amount", type=int)

    burn_batch_parser = subparsers.add_parser("burn-batch", parents=[with_contract], help="Burn several token ids")
    burn_batch_parser.add_argument("ids", type=_int_list)
    burn_batch_parser.add_argument("amounts", type=_int_list)

    uri_parser = subparsers.add_parser("set-uri", parents=[with_contract], help="Change the metadata base URI")
    uri_parser.add_argument("uri")

    subparsers.add_parser("pause", parents=[with_contract], help="Pause transfers")
    subparsers.add_parser("unpause", parents=[with_contract], help="Resume transfers")

    ownership_parser = subparsers.add_parser("transfer-ownership", parents=[with_contract], help="Hand over ownership")
    ownership_parser.add_argument("new_owner")

    return parser


async def run(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    command = args.command

    if command == "networks":
        cli_networks()
        return 0
    if command == "deploy":
        await cli_deploy(args)
        return 0

    ctx = Context(args)
    try:
        if command == "info":
            await cli_info(ctx)
        elif command == "token":
            await cli_token(ctx, args.token_id)
        elif command == "balance":
            await cli_balance(ctx, args.account, args.ids)
        elif command == "scan":
            await cli_scan(ctx, args.account, args.max_token_id)
        elif command == "approved":
            await cli_approved(ctx, args.account, args.operator)
        elif command in WRITE_COMMANDS:
            await cli_write(ctx, args)
        else:
            print(f"❌ Unknown command: {command}")
            parser.print_help()
            return 2
    finally:
        await ctx.rpc.aclose()
    return 0


async def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(args.log_level or "WARNING", json_logs=False)
    try:
        return await run(args, parser)
    except ERC1155Error as e:
        print(f"❌ Error: {e}")
        return 1


def entrypoint() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    entrypoint()
