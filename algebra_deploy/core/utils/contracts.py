"""Hardhat artifact loading and transaction encoding for contract deployment.

Artifacts are the JSON files Hardhat writes under ``artifacts/`` (one per
contract, ``<Name>.json`` with ``abi`` and ``bytecode``).  Encoding is done
offline; sending goes through ``transaction.send_transaction``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from web3 import Web3

_UNLINKED_LIBRARY_MARKER = "__$"


@dataclass(frozen=True)
class ContractArtifact:
    name: str
    abi: list[dict[str, Any]]
    bytecode: str
    path: Path | None = None

    def constructor_inputs(self) -> list[dict[str, Any]]:
        for entry in self.abi:
            if entry.get("type") == "constructor":
                return list(entry.get("inputs") or [])
        return []

    def has_function(self, fn_name: str) -> bool:
        return any(
            entry.get("type") == "function" and entry.get("name") == fn_name
            for entry in self.abi
        )


def parse_artifact(data: dict[str, Any], *, name: str, path: Path | None = None) -> ContractArtifact:
    abi = data.get("abi")
    if not isinstance(abi, list):
        raise ValueError(f"Artifact '{name}' has no ABI")

    bytecode = str(data.get("bytecode") or "")
    if isinstance(data.get("bytecode"), dict):
        # solc standard-json shape: {"object": "..."}
        bytecode = str(data["bytecode"].get("object") or "")
    if bytecode and not bytecode.startswith("0x"):
        bytecode = "0x" + bytecode
    if not bytecode or bytecode == "0x":
        raise ValueError(f"Artifact '{name}' has empty bytecode (abstract contract?)")
    if _UNLINKED_LIBRARY_MARKER in bytecode:
        raise ValueError(f"Artifact '{name}' has unlinked library references")

    return ContractArtifact(name=name, abi=abi, bytecode=bytecode, path=path)


class ArtifactStore:
    """Looks up compiled contracts by name in a Hardhat artifacts directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root)
        self._cache: dict[str, ContractArtifact] = {}

    def find(self, name: str) -> Path:
        if not self.root.is_dir():
            raise FileNotFoundError(f"Artifacts directory not found: {self.root}")
        matches = sorted(
            p for p in self.root.rglob(f"{name}.json") if "build-info" not in p.parts
        )
        if not matches:
            raise FileNotFoundError(f"No artifact named '{name}' under {self.root}")
        if len(matches) > 1:
            raise ValueError(
                f"Ambiguous artifact name '{name}': {[str(m) for m in matches]}"
            )
        return matches[0]

    def load(self, name: str) -> ContractArtifact:
        if name in self._cache:
            return self._cache[name]
        path = self.find(name)
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError as exc:
            raise ValueError(f"Artifact {path} is not valid JSON: {exc}") from exc
        artifact = parse_artifact(data, name=name, path=path)
        self._cache[name] = artifact
        return artifact


def _cast_args(args: list[Any], inputs: list[dict[str, Any]]) -> list[Any]:
    if len(args) != len(inputs):
        raise ValueError(f"Expected {len(inputs)} arguments, got {len(args)}")
    out: list[Any] = []
    for arg, inp in zip(args, inputs, strict=True):
        if inp.get("type") == "address":
            out.append(Web3.to_checksum_address(str(arg)))
        else:
            out.append(arg)
    return out


def build_deploy_transaction(
    artifact: ContractArtifact,
    constructor_args: list[Any] | None,
    *,
    from_address: str,
    chain_id: int,
) -> dict[str, Any]:
    """Build an unsigned contract-creation transaction (no gas, no nonce)."""
    args = _cast_args(list(constructor_args or []), artifact.constructor_inputs())
    contract = Web3().eth.contract(abi=artifact.abi, bytecode=artifact.bytecode)
    try:
        data = contract.constructor(*args).data_in_transaction
    except (ValueError, TypeError) as exc:
        raise ValueError(f"Failed to encode {artifact.name} constructor: {exc}") from exc

    return {
        "chainId": int(chain_id),
        "from": Web3.to_checksum_address(from_address),
        "data": data,
        "value": 0,
    }


def encode_call(
    *,
    target: str,
    abi: list[dict[str, Any]],
    fn_name: str,
    args: list[Any],
    from_address: str,
    chain_id: int,
    value: int = 0,
) -> dict[str, Any]:
    fn_abis = [e for e in abi if e.get("type") == "function" and e.get("name") == fn_name]
    if not fn_abis:
        raise ValueError(f"Function '{fn_name}' not found in ABI")
    if len(fn_abis) == 1:
        args = _cast_args(list(args), list(fn_abis[0].get("inputs") or []))

    contract = Web3().eth.contract(address=Web3.to_checksum_address(target), abi=abi)
    try:
        data = contract.encode_abi(fn_name, args)
    except (ValueError, TypeError) as exc:
        raise ValueError(f"Failed to encode {fn_name}: {exc}") from exc

    return {
        "chainId": int(chain_id),
        "from": Web3.to_checksum_address(from_address),
        "to": Web3.to_checksum_address(target),
        "data": data,
        "value": int(value),
    }
