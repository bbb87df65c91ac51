"""
Transaction Builder - Build, sign, send and confirm transactions.

A ``Txn`` is a mutable draft owned by its caller. It moves through
DRAFT -> FINALIZED -> SENT -> CONFIRMED:

- ``finalize`` encodes the call data, exactly once
- ``sign_and_send`` fills in gas price, gas limit and nonce from the node,
  signs with EIP-155 replay protection and broadcasts
- ``wait`` polls for the receipt

Uses eth-account for signing and the httpx-based RpcClient for the node.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from typing import Any, Optional, Sequence, Union

from ..errors import (
    NotYetSentError,
    ReceiptNotFoundError,
    ReceiptTimeoutError,
    SigningError,
    WaitCancelledError,
)
from ..sigil.checksum import to_checksum_address
from ..sigil.eth import KeyLike, get_account
from ..utils import bytes_to_hex, hex_to_bytes
from .abi import Constructor, Method
from .rpc import RpcClient, get_chain_id

logger = logging.getLogger("conduit.pneuma.tx")

DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_BACKOFF = 2.0
DEFAULT_MAX_INTERVAL = 15.0


class TxnState(enum.Enum):
    DRAFT = "draft"
    FINALIZED = "finalized"
    SENT = "sent"
    CONFIRMED = "confirmed"


class Txn:
    """
    A pending contract call or deployment.

    ``value``, ``gas_price`` and ``gas_limit`` use None for "unset"; an
    explicit 0 is kept as is. ``to`` is None for a deployment, in which
    case ``bin`` holds the creation bytecode.
    """

    def __init__(
        self,
        client: RpcClient,
        from_address: Optional[str] = None,
        to: Optional[str] = None,
        method: Optional[Union[Method, Constructor]] = None,
        args: Sequence[Any] = (),
        bin: Optional[bytes] = None,
        value: Optional[int] = None,
        gas_price: Optional[int] = None,
        gas_limit: Optional[int] = None,
    ) -> None:
        self.client = client
        self.from_address = from_address
        self.to = to
        self.method = method
        self.args = list(args)
        self.bin = bin
        self.value = value
        self.gas_price = gas_price
        self.gas_limit = gas_limit
        self.data: Optional[bytes] = None
        self.nonce: Optional[int] = None
        self.hash: Optional[str] = None
        self.receipt: Optional[dict[str, Any]] = None
        self.state = TxnState.DRAFT

    @classmethod
    def from_hash(cls, client: RpcClient, tx_hash: str) -> "Txn":
        """Track an already-broadcast transaction so it can be waited on."""
        txn = cls(client)
        txn.hash = tx_hash
        txn.state = TxnState.SENT
        return txn

    @property
    def is_contract_deployment(self) -> bool:
        return self.bin is not None

    # ------------------------------------------------------------------
    # Fluent setters
    # ------------------------------------------------------------------

    def add_args(self, *args: Any) -> "Txn":
        """Replace the call arguments. No effect once finalized."""
        self.args = list(args)
        return self

    def set_value(self, value: int) -> "Txn":
        self.value = int(value)
        return self

    def set_gas_price(self, gas_price: int) -> "Txn":
        self.gas_price = int(gas_price)
        return self

    def set_gas_limit(self, gas_limit: int) -> "Txn":
        self.gas_limit = int(gas_limit)
        return self

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def finalize(self) -> bytes:
        """
        Encode the transaction data.

        Idempotent: once ``data`` is set it is returned unchanged.

        Raises:
            EncodingError: If the arguments do not match the method inputs
        """
        if self.data is not None:
            return self.data

        data = b""
        if self.is_contract_deployment:
            data += self.bin
        if self.method is not None:
            if self.is_contract_deployment:
                data += self.method.encode_input(self.args)
            else:
                data = self.method.encode_call(self.args)

        self.data = data
        self.state = TxnState.FINALIZED
        return data

    def estimate_gas(self) -> int:
        """Estimate gas for this transaction (finalizes first)."""
        self.finalize()
        return self._estimate_gas()

    def _estimate_gas(self) -> int:
        if self.is_contract_deployment:
            return self.client.estimate_gas_for_deployment(self.data, self.from_address)

        msg = {
            "from": self.from_address,
            "to": self.to,
            "data": self.data,
            "value": self.value,
        }
        return self.client.estimate_gas(msg)

    def to_transaction(self, chain_id: Optional[int] = None) -> dict[str, Any]:
        """
        Build the unsigned transaction record.

        Fetches gas price and gas limit if unset, then the sender's nonce at
        ``latest``. The result is ready for ``Account.sign_transaction``.
        """
        self.finalize()
        if self.from_address is None:
            raise ValueError("Transaction has no sender; set from_address")

        if self.gas_price is None:
            self.gas_price = self.client.gas_price()
            logger.debug("Fetched gas price %d", self.gas_price)

        if self.gas_limit is None:
            self.gas_limit = self._estimate_gas()
            logger.debug("Estimated gas limit %d", self.gas_limit)

        self.nonce = self.client.get_nonce(self.from_address, "latest")
        logger.debug("Nonce for %s is %d", self.from_address, self.nonce)

        tx: dict[str, Any] = {
            "from": to_checksum_address(self.from_address),
            "data": bytes_to_hex(self.data),
            "gasPrice": self.gas_price,
            "gas": self.gas_limit,
            "value": self.value if self.value is not None else 0,
            "nonce": self.nonce,
            "chainId": chain_id if chain_id is not None else get_chain_id(),
        }
        if self.to is not None:
            tx["to"] = to_checksum_address(self.to)
        return tx

    def sign_and_send(
        self, key: Optional[KeyLike] = None, chain_id: Optional[int] = None
    ) -> str:
        """
        Sign the transaction and broadcast it.

        Any failure aborts the whole sequence. Because ``finalize`` is
        idempotent, a failed draft should be discarded and rebuilt rather
        than sent again.

        Args:
            key: Private key (hex/bytes) or LocalAccount; loads from .env if None
            chain_id: Chain bound into the EIP-155 signature (default: CHAIN_ID)

        Returns:
            Transaction hash (0x-prefixed hex)
        """
        self.finalize()

        account = get_account(key)
        if self.from_address is None:
            self.from_address = account.address

        tx = self.to_transaction(chain_id)

        try:
            signed = account.sign_transaction(tx)
        except (TypeError, ValueError) as exc:
            raise SigningError(f"Failed to sign transaction: {exc}") from exc

        self.hash = self.client.send_raw_transaction(bytes(signed.raw_transaction))
        self.state = TxnState.SENT
        return self.hash

    def wait(
        self,
        timeout: Optional[float] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        backoff: float = DEFAULT_BACKOFF,
        max_interval: float = DEFAULT_MAX_INTERVAL,
        cancel: Optional[threading.Event] = None,
    ) -> dict[str, Any]:
        """
        Block until the transaction is mined.

        "Not found" responses are treated as pending; any other error is
        raised immediately. The delay between polls starts at
        ``poll_interval`` and grows by ``backoff`` up to ``max_interval``.

        Args:
            timeout: Maximum wait in seconds (None waits forever)
            cancel: Event that aborts the wait when set

        Raises:
            NotYetSentError: If the transaction was never sent
            ReceiptTimeoutError: If ``timeout`` elapsed
            WaitCancelledError: If ``cancel`` was set
        """
        if self.hash is None:
            raise NotYetSentError("transaction not executed")

        deadline = None if timeout is None else time.monotonic() + timeout
        interval = poll_interval

        while True:
            if cancel is not None and cancel.is_set():
                raise WaitCancelledError(f"Stopped waiting for {self.hash}")

            try:
                receipt = self.client.get_transaction_receipt(self.hash)
            except ReceiptNotFoundError:
                pass
            else:
                self.receipt = receipt
                self.state = TxnState.CONFIRMED
                logger.info("Transaction %s confirmed", self.hash)
                return receipt

            delay = interval
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise ReceiptTimeoutError(
                        f"Transaction {self.hash} not confirmed within {timeout}s"
                    )
                delay = min(delay, remaining)

            if cancel is not None:
                if cancel.wait(delay):
                    raise WaitCancelledError(f"Stopped waiting for {self.hash}")
            else:
                time.sleep(delay)
            interval = min(interval * backoff, max_interval)

    def sign_send_and_wait(
        self,
        key: Optional[KeyLike] = None,
        chain_id: Optional[int] = None,
        **wait_kwargs: Any,
    ) -> dict[str, Any]:
        """Blocking combination of ``sign_and_send`` and ``wait``."""
        self.sign_and_send(key, chain_id)
        return self.wait(**wait_kwargs)

    def get_receipt(self) -> Optional[dict[str, Any]]:
        return self.receipt

    def __repr__(self) -> str:
        target = self.to or "<deploy>"
        return f"<Txn {self.state.value} to={target} hash={self.hash}>"


def build_deployment(
    bytecode: Union[str, bytes],
    constructor_args: Sequence[Any] = (),
    constructor: Optional[Constructor] = None,
    client: Optional[RpcClient] = None,
    from_address: Optional[str] = None,
) -> Txn:
    """
    Draft a contract creation: bytecode followed by encoded constructor args.

    ``constructor`` may be omitted when there are no constructor arguments.
    """
    return Txn(
        client=client or RpcClient(),
        from_address=from_address,
        method=constructor or Constructor(),
        args=constructor_args,
        bin=hex_to_bytes(bytecode),
    )
