"""
Theurgy - Command implementations for the conduit CLI.

Each module corresponds to top-level CLI commands:
- invoke: read-only calls and state-changing contract transactions
- deploy: contract deployment and receipt waiting
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import click

from ..pneuma.abi import ContractABI, load_abi, load_artifact


def parse_args_json(args_json: str) -> list[Any]:
    """Parse a JSON array of call arguments (raises click.BadParameter)."""
    try:
        args = json.loads(args_json)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"Invalid JSON: {exc}", param_hint="--args")
    if not isinstance(args, list):
        raise click.BadParameter("Args must be a JSON array", param_hint="--args")
    return args


def resolve_abi(abi_path: Optional[str], abi_name: Optional[str]) -> ContractABI:
    """
    ABI from a file (bare ABI array or build artifact) or a contract name
    looked up in the build output.
    """
    if abi_path:
        raw = json.loads(Path(abi_path).read_text(encoding="utf-8"))
        if isinstance(raw, dict):
            return load_artifact(abi_path)[0]
        return ContractABI.from_json(raw)
    if abi_name:
        return load_abi(abi_name)
    raise click.UsageError("Either --abi or --abi-name must be provided")
