"""
Conduit error hierarchy.

Every error raised by the library derives from ``ConduitError`` so callers
can catch the whole family at once, while the more specific classes also
inherit from the matching builtin (``ValueError``, ``LookupError``, ...).
"""

from __future__ import annotations

from typing import Any, Optional


class ConduitError(Exception):
    pass


class MethodNotFoundError(ConduitError, LookupError):
    pass


class EncodingError(ConduitError, ValueError):
    pass


class DecodingError(ConduitError, ValueError):
    pass


class EmptyResponseError(DecodingError):
    pass


class NetworkError(ConduitError):
    pass


class RpcError(NetworkError):
    """JSON-RPC error object returned by the node."""

    def __init__(self, code: int, message: str, data: Optional[Any] = None) -> None:
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message
        self.data = data


class ReceiptNotFoundError(NetworkError):
    """The node has no receipt for the hash (yet)."""


class SigningError(ConduitError):
    pass


class NotYetSentError(ConduitError, RuntimeError):
    pass


class ReceiptTimeoutError(ConduitError, TimeoutError):
    pass


class WaitCancelledError(ConduitError):
    pass


class InvalidAddressError(ConduitError, ValueError):
    pass
