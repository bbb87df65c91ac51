"""
EIP-55 checksum addresses.

The checksum is carried in the letter case of the hex digits: a letter is
upper-cased when the matching nibble of keccak256(lowercase address) is
greater than 7. Pure functions, no I/O.
"""

from __future__ import annotations

import re

from ..errors import InvalidAddressError
from ..utils import keccak256

# Prefix optional, any letter case.
ADDRESS_RE = re.compile(r"(0x)?[0-9a-fA-F]{40}")


def is_address(value: str) -> bool:
    """Return True if ``value`` looks like a 20-byte hex address."""
    return isinstance(value, str) and ADDRESS_RE.fullmatch(value) is not None


def to_checksum_address(address: str) -> str:
    """
    Convert a hex address to its EIP-55 checksum form.

    Args:
        address: 40 hex characters, with or without ``0x``, any case

    Returns:
        ``0x``-prefixed mixed-case checksum address

    Raises:
        InvalidAddressError: If the input is not a 40-hex-character address
    """
    if not is_address(address):
        raise InvalidAddressError(f"Not a valid Ethereum address: {address!r}")

    addr = address[-40:].lower()
    digest = keccak256(addr.encode("ascii")).hex()

    chars = []
    for i, c in enumerate(addr):
        chars.append(c.upper() if int(digest[i], 16) > 7 else c)
    return "0x" + "".join(chars)


def is_checksum_address(address: str) -> bool:
    """Return True if ``address`` is exactly its own checksum form."""
    try:
        return to_checksum_address(address) == address
    except InvalidAddressError:
        return False
