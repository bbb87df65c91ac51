from __future__ import annotations

from typing import Union

from eth_hash.auto import keccak

HexLike = Union[str, bytes, bytearray]


def keccak256(data: bytes) -> bytes:
    """Keccak-256 digest (the pre-standard variant, not hashlib.sha3_256)."""
    return keccak(data)


def strip_0x(value: str) -> str:
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def hex_to_bytes(value: HexLike) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    body = strip_0x(value)
    if len(body) % 2:
        body = "0" + body
    return bytes.fromhex(body)


def bytes_to_hex(data: bytes) -> str:
    return "0x" + bytes(data).hex()


def to_quantity(value: int) -> str:
    """Encode an integer as a JSON-RPC quantity (no leading zeros)."""
    if value < 0:
        raise ValueError(f"Quantity must be non-negative: {value}")
    return hex(value)


def from_quantity(value: Union[str, int]) -> int:
    if isinstance(value, int):
        return value
    return int(value, 16)
