"""
Sigil - Addresses and keys.

EIP-55 checksum codec plus private key loading for transaction signing.
"""
