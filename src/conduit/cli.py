"""
conduit CLI

Command-line front-end over the conduit library.

Commands:
  checksum  - Convert an address to its EIP-55 checksum form
  whoami    - Show current wallet address
  call      - Read-only contract call
  invoke    - Send a contract transaction
  deploy    - Deploy a contract from a build artifact
  receipt   - Wait for a transaction receipt
"""

from __future__ import annotations

import sys

import click

from .errors import InvalidAddressError, SigningError
from .sigil.checksum import is_checksum_address, to_checksum_address
from .sigil.eth import get_address, load_private_key


VERSION = "0.1.0"


@click.group()
@click.version_option(version=VERSION, prog_name="conduit")
def cli() -> None:
    """conduit - Ethereum contract calls and transactions."""


from .theurgy.invoke import call, invoke
from .theurgy.deploy import deploy, receipt

cli.add_command(call)
cli.add_command(invoke)
cli.add_command(deploy)
cli.add_command(receipt)


@cli.command()
@click.argument("address")
def checksum(address: str) -> None:
    """Print the EIP-55 checksum form of ADDRESS."""
    try:
        result = to_checksum_address(address)
    except InvalidAddressError as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(1)

    click.echo(result)
    if is_checksum_address(address):
        click.secho("  input is checksummed", fg="green")
    elif address[-40:] not in (address[-40:].lower(), address[-40:].upper()):
        click.secho("  input has an invalid checksum", fg="yellow")


@cli.command()
def whoami() -> None:
    """Show current wallet identity."""
    try:
        pk = load_private_key()
        address = get_address(pk)
        click.echo(f"Address: {address}")
    except (ValueError, SigningError):
        click.echo("No wallet found.")
        click.echo("Set PRIVATE_KEY or add it to ~/.conduit/.env")
        sys.exit(1)
