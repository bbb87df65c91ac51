"""
ECDSA / secp256k1 key handling.

Keys are stored in ~/.conduit/.env as PRIVATE_KEY (hex format), or taken
from the PRIVATE_KEY environment variable.

Dependencies: eth-account (signing), python-dotenv (.env loading)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv
from eth_account import Account
from eth_account.signers.local import LocalAccount

from ..errors import SigningError


# Default config directory
CONDUIT_DIR = Path.home() / ".conduit"
CONDUIT_ENV = CONDUIT_DIR / ".env"

KeyLike = Union[str, bytes, LocalAccount]


def save_private_key(private_key: str, env_path: Optional[Path] = None) -> Path:
    """
    Save private key to a .env file, keeping any other entries.

    Args:
        private_key: 0x-prefixed hex private key
        env_path: Path to .env file (default: ~/.conduit/.env)

    Returns:
        Path to the saved .env file
    """
    env_path = env_path or CONDUIT_ENV
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing = {}
    if env_path.exists():
        for line in env_path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                k, v = line.split("=", 1)
                existing[k.strip()] = v.strip()

    existing["PRIVATE_KEY"] = private_key

    lines = [f"{k}={v}" for k, v in existing.items()]
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    if os.name != "nt":
        env_path.chmod(0o600)

    return env_path


def load_private_key(env_path: Optional[Path] = None) -> str:
    """
    Load private key from .env file or environment.

    Args:
        env_path: Path to .env file (default: ~/.conduit/.env)

    Returns:
        0x-prefixed hex private key

    Raises:
        ValueError: If PRIVATE_KEY is not set anywhere
    """
    env_path = env_path or CONDUIT_ENV

    if env_path.exists():
        load_dotenv(env_path, override=True)

    private_key = os.environ.get("PRIVATE_KEY")
    if not private_key:
        raise ValueError(
            f"PRIVATE_KEY not found. Set PRIVATE_KEY in the environment or in {env_path}"
        )

    if not private_key.startswith("0x"):
        private_key = "0x" + private_key

    return private_key


def get_account(private_key: Optional[KeyLike] = None) -> LocalAccount:
    """
    Get an eth-account LocalAccount.

    Args:
        private_key: hex string, raw 32 bytes, or an existing LocalAccount.
                     If None, loads from .env.

    Raises:
        SigningError: If the key cannot be parsed
    """
    if isinstance(private_key, LocalAccount):
        return private_key
    if private_key is None:
        private_key = load_private_key()
    try:
        return Account.from_key(private_key)
    except (ValueError, TypeError) as exc:
        raise SigningError(f"Invalid private key: {exc}") from exc


def get_address(private_key: Optional[KeyLike] = None) -> str:
    """Checksummed address for a private key (loads from .env if None)."""
    return get_account(private_key).address
