"""
Theurgy Invoke - Read from and send transactions to contracts.

``call`` runs an eth_call and prints the decoded outputs; ``invoke`` signs
and sends a transaction from the configured EOA and waits for it.
"""

from __future__ import annotations

import sys
from typing import Optional

import click

from ..errors import ConduitError
from ..pneuma.contract import Contract
from ..pneuma.rpc import DEFAULT_RPC_URL, RpcClient
from ..sigil.eth import get_account
from . import parse_args_json, resolve_abi


def _block_ref(block: str):
    return int(block) if block.isdigit() else block


@click.command()
@click.option("--contract", required=True, help="Target contract address")
@click.option("--function", "func_name", required=True, help="Function name or signature")
@click.option("--args", "args_json", default="[]", help="Function args as JSON array")
@click.option("--abi", "abi_path", default=None, help="Path to ABI or artifact JSON")
@click.option("--abi-name", default=None, help="Contract name for ABI loading")
@click.option("--block", default="latest", help="Block number or tag")
@click.option("--rpc-url", envvar="CONDUIT_RPC_URL", default=DEFAULT_RPC_URL, help="Node RPC URL")
def call(
    contract: str,
    func_name: str,
    args_json: str,
    abi_path: Optional[str],
    abi_name: Optional[str],
    block: str,
    rpc_url: str,
) -> None:
    """Read-only contract call."""
    args = parse_args_json(args_json)
    try:
        abi = resolve_abi(abi_path, abi_name)
        result = Contract(contract, abi, RpcClient(rpc_url)).call(
            func_name, *args, block=_block_ref(block)
        )
    except (ConduitError, ValueError, FileNotFoundError) as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(1)

    for name, value in result.items():
        click.echo(f"  {name}: {value}")


@click.command()
@click.option("--contract", required=True, help="Target contract address")
@click.option("--function", "func_name", required=True, help="Function name or signature")
@click.option("--args", "args_json", default="[]", help="Function args as JSON array")
@click.option("--abi", "abi_path", default=None, help="Path to ABI or artifact JSON")
@click.option("--abi-name", default=None, help="Contract name for ABI loading")
@click.option("--value", default=None, type=int, help="ETH value in wei")
@click.option("--gas-limit", default=None, type=int, help="Gas limit (default: estimate)")
@click.option("--gas-price", default=None, type=int, help="Gas price in wei (default: node)")
@click.option("--chain-id", envvar="CHAIN_ID", default=1, type=int, help="Chain ID")
@click.option("--timeout", default=120.0, type=float, help="Receipt wait timeout in seconds")
@click.option("--rpc-url", envvar="CONDUIT_RPC_URL", default=DEFAULT_RPC_URL, help="Node RPC URL")
def invoke(
    contract: str,
    func_name: str,
    args_json: str,
    abi_path: Optional[str],
    abi_name: Optional[str],
    value: Optional[int],
    gas_limit: Optional[int],
    gas_price: Optional[int],
    chain_id: int,
    timeout: float,
    rpc_url: str,
) -> None:
    """
    Send a contract transaction and wait for the receipt.

    Sends from your EOA (PRIVATE_KEY). Client pays gas.
    """
    args = parse_args_json(args_json)

    try:
        account = get_account()
    except (ConduitError, ValueError) as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(1)

    click.echo(f"  Sender: {account.address}")
    click.echo(f"  Target: {contract}")
    click.echo(f"  Function: {func_name}")
    click.echo(f"  Args: {args}")

    try:
        abi = resolve_abi(abi_path, abi_name)
        c = Contract(contract, abi, RpcClient(rpc_url))
        c.set_from(account.address)
        txn = c.txn(func_name, *args)
        txn.value = value
        txn.gas_limit = gas_limit
        txn.gas_price = gas_price

        tx_hash = txn.sign_and_send(account, chain_id)
        click.echo(f"  TX: {tx_hash}")
        receipt = txn.wait(timeout=timeout)
    except (ConduitError, ValueError, FileNotFoundError) as exc:
        click.secho(f"Transaction failed: {exc}", fg="red")
        sys.exit(1)

    if int(receipt.get("status", "0x0"), 16) == 1:
        click.secho("SUCCESS: Transaction confirmed!", fg="green")
    else:
        click.secho("FAILED: Transaction reverted", fg="red")
        sys.exit(1)
