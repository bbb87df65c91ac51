"""
ABI descriptors and artifact loading.

Wraps a JSON ABI into method, constructor and event descriptors. Actual
encoding and decoding is delegated to eth-abi; selectors and topics are
Keccak-256 over the canonical signature.

Artifacts are Foundry (``contracts/out/<Name>.sol/<Name>.json``) or
Hardhat build outputs.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from eth_abi import decode, encode
from eth_abi import exceptions as abi_exceptions

from ..errors import DecodingError, EncodingError, MethodNotFoundError
from ..utils import bytes_to_hex, hex_to_bytes, keccak256

ENCODE_ERRORS = (
    abi_exceptions.EncodingError,
    abi_exceptions.ParseError,
    TypeError,
    ValueError,
    OverflowError,
)
DECODE_ERRORS = (
    abi_exceptions.DecodingError,
    abi_exceptions.ParseError,
    TypeError,
    ValueError,
)

# Indexed values of these kinds are stored as their keccak hash in the topic.
_DYNAMIC_BASES = ("string", "bytes")


def canonical_type(param: dict[str, Any]) -> str:
    """Canonical type string of an ABI parameter, expanding tuples."""
    typ = param["type"]
    if typ.startswith("tuple"):
        inner = ",".join(canonical_type(c) for c in param.get("components", []))
        return f"({inner}){typ[len('tuple'):]}"
    return typ


def _types(params: Sequence[dict[str, Any]]) -> list[str]:
    return [canonical_type(p) for p in params]


def _encode_args(types: list[str], args: Sequence[Any], what: str) -> bytes:
    if len(args) != len(types):
        raise EncodingError(
            f"{what} expects {len(types)} argument(s), got {len(args)}"
        )
    if not types:
        return b""
    try:
        return encode(types, list(args))
    except ENCODE_ERRORS as exc:
        raise EncodingError(f"Failed to encode arguments for {what}: {exc}") from exc


def _is_indexed_hashed(typ: str) -> bool:
    return typ in _DYNAMIC_BASES or typ.endswith("]") or typ.startswith("(")


class Method:
    """A contract function."""

    def __init__(self, entry: dict[str, Any]) -> None:
        self.name: str = entry["name"]
        self.inputs: list[dict[str, Any]] = list(entry.get("inputs", []))
        self.outputs: list[dict[str, Any]] = list(entry.get("outputs", []))
        self.state_mutability: str = entry.get("stateMutability", "nonpayable")

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(_types(self.inputs))})"

    @property
    def selector(self) -> bytes:
        """First 4 bytes of keccak256(signature)."""
        return keccak256(self.signature.encode("utf-8"))[:4]

    def encode_input(self, args: Sequence[Any]) -> bytes:
        """ABI-encoded arguments, without the selector."""
        return _encode_args(_types(self.inputs), args, self.signature)

    def encode_call(self, args: Sequence[Any]) -> bytes:
        return self.selector + self.encode_input(args)

    def decode_output(self, raw: bytes) -> dict[str, Any]:
        """
        Decode return data into a dict keyed by output name.

        Unnamed outputs are keyed by position ("0", "1", ...).
        """
        types = _types(self.outputs)
        if not types:
            return {}
        try:
            values = decode(types, raw)
        except DECODE_ERRORS as exc:
            raise DecodingError(f"Failed to decode {self.signature} output: {exc}") from exc
        return {
            (out.get("name") or str(i)): value
            for i, (out, value) in enumerate(zip(self.outputs, values))
        }

    def __repr__(self) -> str:
        return f"<Method {self.signature}>"


class Constructor:
    """A contract constructor (may have no inputs)."""

    def __init__(self, entry: Optional[dict[str, Any]] = None) -> None:
        entry = entry or {}
        self.inputs: list[dict[str, Any]] = list(entry.get("inputs", []))

    def encode_input(self, args: Sequence[Any]) -> bytes:
        return _encode_args(_types(self.inputs), args, "constructor")


class Event:
    """A contract event."""

    def __init__(self, entry: dict[str, Any]) -> None:
        self.name: str = entry["name"]
        self.inputs: list[dict[str, Any]] = list(entry.get("inputs", []))
        self.anonymous: bool = bool(entry.get("anonymous", False))

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(_types(self.inputs))})"

    def id(self) -> str:
        """Topic 0 used to filter logs for this event."""
        return bytes_to_hex(keccak256(self.signature.encode("utf-8")))

    def parse_log(self, log: dict[str, Any]) -> dict[str, Any]:
        """
        Decode a raw log (``topics`` + ``data``) into named fields.

        Indexed dynamic values (string, bytes, arrays, tuples) cannot be
        recovered from a topic and are returned as the 32-byte hash.

        Raises:
            DecodingError: If the log does not have this event's shape
        """
        try:
            topics = [hex_to_bytes(t) for t in log.get("topics", [])]
            data = hex_to_bytes(log.get("data") or "0x")
        except (TypeError, ValueError) as exc:
            raise DecodingError(f"Malformed {self.signature} log: {exc}") from exc

        if not self.anonymous:
            if not topics or topics[0] != keccak256(self.signature.encode("utf-8")):
                raise DecodingError(f"Log is not a {self.signature} event")
            topics = topics[1:]

        indexed = [p for p in self.inputs if p.get("indexed")]
        plain = [p for p in self.inputs if not p.get("indexed")]
        if len(topics) != len(indexed):
            raise DecodingError(
                f"{self.signature} expects {len(indexed)} indexed topic(s), got {len(topics)}"
            )

        try:
            plain_values = decode(_types(plain), data) if plain else ()
        except DECODE_ERRORS as exc:
            raise DecodingError(f"Failed to decode {self.signature} data: {exc}") from exc

        indexed_values = []
        for param, topic in zip(indexed, topics):
            typ = canonical_type(param)
            if _is_indexed_hashed(typ):
                indexed_values.append(topic)
                continue
            try:
                indexed_values.append(decode([typ], topic)[0])
            except DECODE_ERRORS as exc:
                raise DecodingError(
                    f"Failed to decode indexed {param.get('name')!r}: {exc}"
                ) from exc

        result: dict[str, Any] = {}
        it_indexed = iter(indexed_values)
        it_plain = iter(plain_values)
        for i, param in enumerate(self.inputs):
            value = next(it_indexed) if param.get("indexed") else next(it_plain)
            result[param.get("name") or str(i)] = value
        return result

    def __repr__(self) -> str:
        return f"<Event {self.signature}>"


class ContractABI:
    """Parsed contract ABI."""

    def __init__(self, entries: list[dict[str, Any]]) -> None:
        self.entries = entries
        self.methods: dict[str, Method] = {}
        self.events: dict[str, Event] = {}
        self.constructor = Constructor()

        for entry in entries:
            kind = entry.get("type", "function")
            if kind == "function":
                method = Method(entry)
                self.methods[method.signature] = method
            elif kind == "event":
                event = Event(entry)
                self.events[event.signature] = event
            elif kind == "constructor":
                self.constructor = Constructor(entry)

    @classmethod
    def from_json(cls, source: Union[str, list[dict[str, Any]]]) -> "ContractABI":
        """Build from a JSON string or an already-parsed list."""
        entries = json.loads(source) if isinstance(source, str) else source
        if not isinstance(entries, list):
            raise ValueError("ABI must be a JSON array")
        return cls(entries)

    def method(self, name: str) -> Method:
        """
        Look up a function by full signature or bare name.

        A bare name only resolves if it is not overloaded.

        Raises:
            MethodNotFoundError: Unknown or ambiguous name
        """
        if name in self.methods:
            return self.methods[name]
        matches = [m for m in self.methods.values() if m.name == name]
        if len(matches) == 1:
            return matches[0]
        if matches:
            sigs = ", ".join(sorted(m.signature for m in matches))
            raise MethodNotFoundError(f"Method {name} is overloaded, use one of: {sigs}")
        raise MethodNotFoundError(f"Method {name} not found")

    def event(self, name: str) -> Optional[Event]:
        """
        Look up an event by full signature or bare name; None if unknown.

        Raises:
            MethodNotFoundError: Bare name shared by overloaded events
        """
        if name in self.events:
            return self.events[name]
        matches = [e for e in self.events.values() if e.name == name]
        if len(matches) > 1:
            sigs = ", ".join(sorted(e.signature for e in matches))
            raise MethodNotFoundError(f"Event {name} is overloaded, use one of: {sigs}")
        return matches[0] if matches else None


# ---------------------------------------------------------------------------
# Build artifacts
# ---------------------------------------------------------------------------


def load_artifact(path: Union[str, Path]) -> tuple[ContractABI, Optional[bytes]]:
    """
    Load ABI and creation bytecode from a build artifact.

    Bytecode may be a plain hex string (Hardhat) or ``{"object": ...}``
    (Foundry). Returns None for bytecode when the artifact has none.
    """
    with Path(path).open("r", encoding="utf-8") as f:
        artifact = json.load(f)

    abi = ContractABI.from_json(artifact["abi"])
    bytecode = artifact.get("bytecode")
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")
    if not bytecode or bytecode == "0x":
        return abi, None
    return abi, hex_to_bytes(bytecode)


def _find_contracts_out() -> Path:
    """
    Locate the contracts/out/ directory.

    CONDUIT_CONTRACTS_OUT wins; otherwise search upward from the working
    directory.
    """
    override = os.environ.get("CONDUIT_CONTRACTS_OUT")
    if override:
        return Path(override)
    current = Path.cwd().resolve()
    for parent in [current, *current.parents]:
        candidate = parent / "contracts" / "out"
        if candidate.is_dir():
            return candidate
    raise FileNotFoundError(
        "Cannot find contracts/out/. Run 'forge build' or set CONDUIT_CONTRACTS_OUT."
    )


def artifact_path(contract_name: str) -> Path:
    path = _find_contracts_out() / f"{contract_name}.sol" / f"{contract_name}.json"
    if not path.exists():
        raise FileNotFoundError(f"Artifact not found: {path}")
    return path


@lru_cache(maxsize=16)
def load_abi(contract_name: str) -> ContractABI:
    """Load the ABI for a contract (e.g. "Token") from the build output."""
    return load_artifact(artifact_path(contract_name))[0]


@lru_cache(maxsize=16)
def load_bytecode(contract_name: str) -> bytes:
    """Load deployment bytecode for a contract from the build output."""
    bytecode = load_artifact(artifact_path(contract_name))[1]
    if bytecode is None:
        raise ValueError(f"No bytecode in artifact for {contract_name}")
    return bytecode
