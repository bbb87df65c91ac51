"""
Contract - Bind an ABI to an address and a node.

Read-only calls go through eth_call and are decoded against the method
outputs; state-changing calls produce a ``Txn`` draft.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence, Union

from ..errors import DecodingError, EmptyResponseError
from ..utils import hex_to_bytes
from .abi import ContractABI, Event
from .rpc import BlockRef, RpcClient
from .tx import Txn, build_deployment

logger = logging.getLogger("conduit.pneuma.contract")

AbiLike = Union[ContractABI, list, str]


def _as_abi(abi: AbiLike) -> ContractABI:
    return abi if isinstance(abi, ContractABI) else ContractABI.from_json(abi)


class Contract:
    """An Ethereum contract at a known address."""

    def __init__(
        self,
        address: str,
        abi: AbiLike,
        client: Optional[RpcClient] = None,
    ) -> None:
        self._address = address
        self._abi = _as_abi(abi)
        self._client = client or RpcClient()
        self._from: Optional[str] = None

    @property
    def abi(self) -> ContractABI:
        return self._abi

    @property
    def address(self) -> str:
        return self._address

    def set_from(self, address: str) -> None:
        """Set the sender used for calls and new transactions."""
        self._from = address

    def txn(self, method: str, *args: Any) -> Txn:
        """
        Draft a transaction calling ``method``.

        Raises:
            MethodNotFoundError: Before any network I/O, if unknown
        """
        m = self._abi.method(method)
        return Txn(
            client=self._client,
            from_address=self._from,
            to=self._address,
            method=m,
            args=args,
        )

    def estimate_gas(self, method: str, *args: Any) -> int:
        return self.txn(method, *args).estimate_gas()

    def call(self, method: str, *args: Any, block: BlockRef = "latest") -> dict[str, Any]:
        """
        Read-only call of ``method`` at ``block``.

        Returns:
            Outputs keyed by name (position for unnamed outputs)

        Raises:
            MethodNotFoundError: Unknown method
            EncodingError: Arguments do not match the inputs
            EmptyResponseError: The call returned no data (revert or no code)
            DecodingError: The return data does not match the outputs
        """
        m = self._abi.method(method)
        msg = {"from": self._from, "to": self._address, "data": m.encode_call(args)}

        raw_str = self._client.eth_call(msg, block)
        try:
            raw = hex_to_bytes(raw_str)
        except (TypeError, ValueError) as exc:
            raise DecodingError(f"Malformed response for {m.signature}: {raw_str!r}") from exc
        if len(raw) == 0:
            raise EmptyResponseError(f"Empty response calling {m.signature} on {self._address}")

        logger.debug("%s returned %d bytes", m.signature, len(raw))
        return m.decode_output(raw)

    def event(self, name: str) -> Optional[Event]:
        """Event descriptor by signature or unique name, or None if the ABI has no such event."""
        return self._abi.event(name)

    def __repr__(self) -> str:
        return f"<Contract {self._address}>"


def build_call(
    contract_address: str,
    method_signature: str,
    args: Sequence[Any],
    abi: AbiLike,
    client: Optional[RpcClient] = None,
    from_address: Optional[str] = None,
) -> Txn:
    """Draft a call of ``method_signature`` on ``contract_address``."""
    contract = Contract(contract_address, abi, client)
    if from_address is not None:
        contract.set_from(from_address)
    return contract.txn(method_signature, *args)


def deploy_contract(
    client: Optional[RpcClient],
    from_address: Optional[str],
    abi: AbiLike,
    bytecode: Union[str, bytes],
    *args: Any,
) -> Txn:
    """Draft a deployment of ``bytecode`` with constructor ``args``."""
    return build_deployment(
        bytecode,
        args,
        constructor=_as_abi(abi).constructor,
        client=client,
        from_address=from_address,
    )
