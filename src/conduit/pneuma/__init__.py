"""
Pneuma - On-chain interaction layer.

Provides a JSON-RPC client, ABI descriptors, contract bindings and the
transaction pipeline (finalize, sign, send, wait).

Uses httpx + eth-account + eth-abi instead of the heavyweight web3.py.
"""
