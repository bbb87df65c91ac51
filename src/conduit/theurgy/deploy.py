"""
Theurgy Deploy - Deploy contracts and wait for receipts.
"""

from __future__ import annotations

import json
import sys

import click

from ..errors import ConduitError
from ..pneuma.abi import load_artifact
from ..pneuma.contract import deploy_contract
from ..pneuma.rpc import DEFAULT_RPC_URL, RpcClient
from ..pneuma.tx import Txn
from ..sigil.eth import get_account
from . import parse_args_json


@click.command()
@click.option("--artifact", required=True, type=click.Path(exists=True), help="Build artifact JSON")
@click.option("--args", "args_json", default="[]", help="Constructor args as JSON array")
@click.option("--gas-limit", default=None, type=int, help="Gas limit (default: estimate)")
@click.option("--chain-id", envvar="CHAIN_ID", default=1, type=int, help="Chain ID")
@click.option("--timeout", default=180.0, type=float, help="Receipt wait timeout in seconds")
@click.option("--rpc-url", envvar="CONDUIT_RPC_URL", default=DEFAULT_RPC_URL, help="Node RPC URL")
def deploy(
    artifact: str,
    args_json: str,
    gas_limit: int,
    chain_id: int,
    timeout: float,
    rpc_url: str,
) -> None:
    """Deploy a contract from a Foundry/Hardhat artifact."""
    args = parse_args_json(args_json)

    try:
        abi, bytecode = load_artifact(artifact)
        if bytecode is None:
            raise ValueError(f"No bytecode in {artifact}")
        account = get_account()
        txn = deploy_contract(RpcClient(rpc_url), account.address, abi, bytecode, *args)
        txn.gas_limit = gas_limit

        tx_hash = txn.sign_and_send(account, chain_id)
        click.echo(f"  TX: {tx_hash}")
        receipt = txn.wait(timeout=timeout)
    except (ConduitError, ValueError) as exc:
        click.secho(f"Deployment failed: {exc}", fg="red")
        sys.exit(1)

    address = receipt.get("contractAddress")
    if address:
        click.secho(f"SUCCESS: Deployed at {address}", fg="green")
    else:
        click.secho("FAILED: No contract address in receipt", fg="red")
        sys.exit(1)


@click.command()
@click.argument("tx_hash")
@click.option("--timeout", default=120.0, type=float, help="Wait timeout in seconds")
@click.option("--rpc-url", envvar="CONDUIT_RPC_URL", default=DEFAULT_RPC_URL, help="Node RPC URL")
def receipt(tx_hash: str, timeout: float, rpc_url: str) -> None:
    """Wait for a transaction receipt and print it as JSON."""
    txn = Txn.from_hash(RpcClient(rpc_url), tx_hash)
    try:
        result = txn.wait(timeout=timeout)
    except ConduitError as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(1)
    click.echo(json.dumps(result, indent=2, sort_keys=True))
