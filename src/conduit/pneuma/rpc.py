"""
JSON-RPC Client for Ethereum-compatible nodes.

Lightweight alternative to web3.py: httpx for HTTP, plain dicts for
messages and receipts. Exposes exactly the node endpoints the transaction
pipeline needs, plus a few read helpers.
"""

from __future__ import annotations

import itertools
import logging
import os
from typing import Any, Optional, Union

import httpx

from ..errors import NetworkError, ReceiptNotFoundError, RpcError
from ..utils import HexLike, bytes_to_hex, from_quantity, hex_to_bytes, to_quantity

logger = logging.getLogger("conduit.pneuma.rpc")

# Defaults (local dev node)
DEFAULT_RPC_URL = "http://127.0.0.1:8545"
DEFAULT_CHAIN_ID = 1
DEFAULT_TIMEOUT = 30.0

BlockRef = Union[str, int]
BLOCK_TAGS = ("latest", "earliest", "pending", "safe", "finalized")


def get_rpc_url() -> str:
    """Get the RPC URL from environment or default."""
    return os.environ.get("CONDUIT_RPC_URL", DEFAULT_RPC_URL)


def get_chain_id() -> int:
    """Get the chain ID from environment or default."""
    return int(os.environ.get("CHAIN_ID", str(DEFAULT_CHAIN_ID)))


def get_rpc_timeout() -> float:
    return float(os.environ.get("CONDUIT_RPC_TIMEOUT", str(DEFAULT_TIMEOUT)))


def encode_block(block: BlockRef) -> str:
    if isinstance(block, int):
        return to_quantity(block)
    if block in BLOCK_TAGS or block.startswith("0x"):
        return block
    raise ValueError(f"Invalid block reference: {block!r}")


def encode_message(msg: dict[str, Any]) -> dict[str, Any]:
    """
    Render a call message for eth_call / eth_estimateGas.

    Accepts ``from``, ``to``, ``data`` (bytes or hex), ``value``, ``gas``
    and ``gasPrice`` (ints). Keys set to None are dropped.
    """
    out: dict[str, Any] = {}
    for key in ("from", "to"):
        if msg.get(key) is not None:
            out[key] = msg[key]
    if msg.get("data") is not None:
        data = msg["data"]
        out["data"] = bytes_to_hex(data) if isinstance(data, (bytes, bytearray)) else data
    for key in ("value", "gas", "gasPrice"):
        if msg.get(key) is not None:
            out[key] = to_quantity(msg[key])
    return out


class RpcClient:
    """
    Minimal Ethereum JSON-RPC client.

    A fresh ``httpx.Client`` is opened per request, so one RpcClient can be
    shared freely between independent transactions.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.url = url or get_rpc_url()
        self.timeout = timeout if timeout is not None else get_rpc_timeout()
        self._transport = transport
        self._ids = itertools.count(1)

    def request(self, method: str, params: list) -> Any:
        """
        Make a JSON-RPC call.

        Returns:
            ``result`` field of the response (may be None)

        Raises:
            RpcError: If the node returned an error object
            NetworkError: On transport failure or a malformed response
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._ids),
        }
        logger.debug("-> %s %s", method, params)

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.url, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as exc:
            raise NetworkError(f"{method} failed: {exc}") from exc
        except ValueError as exc:
            raise NetworkError(f"{method} returned invalid JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise NetworkError(f"{method} returned unexpected payload: {data!r}")

        if data.get("error") is not None:
            err = data["error"]
            if isinstance(err, dict):
                raise RpcError(err.get("code", -1), err.get("message", ""), err.get("data"))
            raise RpcError(-1, str(err))

        return data.get("result")

    # ------------------------------------------------------------------
    # Endpoints used by the transaction pipeline
    # ------------------------------------------------------------------

    def eth_call(self, msg: dict[str, Any], block: BlockRef = "latest") -> str:
        """Read-only call; returns the raw 0x-prefixed return data."""
        result = self.request("eth_call", [encode_message(msg), encode_block(block)])
        return result or "0x"

    def estimate_gas(self, msg: dict[str, Any]) -> int:
        return from_quantity(self.request("eth_estimateGas", [encode_message(msg)]))

    def estimate_gas_for_deployment(
        self, data: HexLike, from_address: Optional[str] = None
    ) -> int:
        """Estimate gas for a contract creation (no ``to``)."""
        msg = {"from": from_address, "data": hex_to_bytes(data)}
        return from_quantity(self.request("eth_estimateGas", [encode_message(msg)]))

    def gas_price(self) -> int:
        return from_quantity(self.request("eth_gasPrice", []))

    def get_nonce(self, address: str, block: BlockRef = "latest") -> int:
        result = self.request("eth_getTransactionCount", [address, encode_block(block)])
        return from_quantity(result)

    def send_raw_transaction(self, raw: HexLike) -> str:
        """Broadcast a signed transaction; returns its hash."""
        raw_hex = bytes_to_hex(hex_to_bytes(raw))
        tx_hash = self.request("eth_sendRawTransaction", [raw_hex])
        logger.info("Broadcast transaction %s", tx_hash)
        return tx_hash

    def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any]:
        """
        Fetch a receipt.

        Raises:
            ReceiptNotFoundError: If the transaction is not mined yet
        """
        receipt = self.request("eth_getTransactionReceipt", [tx_hash])
        if receipt is None:
            raise ReceiptNotFoundError(f"Receipt not found: {tx_hash}")
        return receipt

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    def chain_id(self) -> int:
        return from_quantity(self.request("eth_chainId", []))

    def get_balance(self, address: str, block: BlockRef = "latest") -> int:
        """Balance in wei."""
        return from_quantity(self.request("eth_getBalance", [address, encode_block(block)]))

    def get_code(self, address: str, block: BlockRef = "latest") -> bytes:
        return hex_to_bytes(self.request("eth_getCode", [address, encode_block(block)]) or "0x")
