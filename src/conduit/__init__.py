__all__ = [
    # Errors
    "ConduitError",
    "MethodNotFoundError",
    "EncodingError",
    "DecodingError",
    "EmptyResponseError",
    "NetworkError",
    "RpcError",
    "ReceiptNotFoundError",
    "SigningError",
    "NotYetSentError",
    "ReceiptTimeoutError",
    "WaitCancelledError",
    "InvalidAddressError",
    # Checksum addresses
    "is_address",
    "is_checksum_address",
    "to_checksum_address",
    # Node
    "RpcClient",
    # ABI
    "ContractABI",
    "Event",
    "Method",
    "load_artifact",
    # Contracts and transactions
    "Contract",
    "Txn",
    "TxnState",
    "build_call",
    "build_deployment",
    "deploy_contract",
]

from .errors import (
    ConduitError,
    DecodingError,
    EmptyResponseError,
    EncodingError,
    InvalidAddressError,
    MethodNotFoundError,
    NetworkError,
    NotYetSentError,
    ReceiptNotFoundError,
    ReceiptTimeoutError,
    RpcError,
    SigningError,
    WaitCancelledError,
)
from .sigil.checksum import is_address, is_checksum_address, to_checksum_address
from .pneuma.rpc import RpcClient
from .pneuma.abi import ContractABI, Event, Method, load_artifact
from .pneuma.contract import Contract, build_call, deploy_contract
from .pneuma.tx import Txn, TxnState, build_deployment
