"""Shared fixtures: an ERC-20 ABI, a test key and an in-memory node."""

from __future__ import annotations

from typing import Any, Optional

import pytest

from conduit.errors import ReceiptNotFoundError
from conduit.utils import bytes_to_hex, hex_to_bytes, keccak256

# Well-known development key (Hardhat / Anvil account #0)
TEST_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

TOKEN_ADDRESS = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
RECIPIENT = "0x70997970c51812dc3a010c7d01b50e0d17dc79c8"

ERC20_ABI: list[dict[str, Any]] = [
    {
        "type": "constructor",
        "inputs": [
            {"name": "name", "type": "string"},
            {"name": "supply", "type": "uint256"},
        ],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "balanceOf",
        "inputs": [{"name": "owner", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "transfer",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "success", "type": "bool"}],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "metadata",
        "inputs": [],
        "outputs": [
            {"name": "name", "type": "string"},
            {"name": "decimals", "type": "uint8"},
        ],
        "stateMutability": "view",
    },
    {
        "type": "event",
        "name": "Transfer",
        "anonymous": False,
        "inputs": [
            {"name": "from", "type": "address", "indexed": True},
            {"name": "to", "type": "address", "indexed": True},
            {"name": "value", "type": "uint256", "indexed": False},
        ],
    },
]


class FakeClient:
    """
    In-memory stand-in for RpcClient.

    Records every endpoint hit in ``calls`` (in order). ``receipts`` is a
    queue of receipt dicts or exceptions; once empty, lookups report
    "not found".
    """

    def __init__(
        self,
        gas_price: int = 1_000_000_000,
        gas: int = 50_000,
        nonce: int = 7,
        call_result: str = "0x",
        receipts: Optional[list] = None,
    ) -> None:
        self._gas_price = gas_price
        self._gas = gas
        self._nonce = nonce
        self.call_result = call_result
        self.receipts = list(receipts or [])
        self.calls: list[str] = []
        self.messages: list[Any] = []
        self.raw: Optional[bytes] = None

    def eth_call(self, msg: dict, block: Any = "latest") -> str:
        self.calls.append("eth_call")
        self.messages.append((msg, block))
        return self.call_result

    def estimate_gas(self, msg: dict) -> int:
        self.calls.append("estimate_gas")
        self.messages.append(msg)
        return self._gas

    def estimate_gas_for_deployment(self, data: bytes, from_address: Optional[str] = None) -> int:
        self.calls.append("estimate_gas_for_deployment")
        self.messages.append(data)
        return self._gas * 10

    def gas_price(self) -> int:
        self.calls.append("gas_price")
        return self._gas_price

    def get_nonce(self, address: str, block: Any = "latest") -> int:
        self.calls.append("get_nonce")
        self.messages.append((address, block))
        return self._nonce

    def send_raw_transaction(self, raw: Any) -> str:
        self.calls.append("send_raw_transaction")
        self.raw = hex_to_bytes(raw)
        return bytes_to_hex(keccak256(self.raw))

    def get_transaction_receipt(self, tx_hash: str) -> dict:
        self.calls.append("get_transaction_receipt")
        if not self.receipts:
            raise ReceiptNotFoundError(f"Receipt not found: {tx_hash}")
        item = self.receipts.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture()
def client() -> FakeClient:
    return FakeClient()
