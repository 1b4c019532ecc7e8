from __future__ import annotations

import rlp
from eth_utils import keccak, to_canonical_address, to_checksum_address


def compute_create_address(deployer: str, nonce: int) -> str:
    """Address of the contract created by ``deployer`` with transaction ``nonce``.

    Equivalent to ``keccak256(rlp([sender, nonce]))[12:]`` (CREATE opcode).
    """
    if isinstance(nonce, bool) or not isinstance(nonce, int):
        raise TypeError("nonce must be an int")
    if nonce < 0:
        raise ValueError("nonce must be non-negative")
    encoded = rlp.encode([to_canonical_address(deployer), nonce])
    return to_checksum_address(keccak(encoded)[12:])


def same_address(a: str | None, b: str | None) -> bool:
    if not a or not b:
        return False
    return to_checksum_address(a) == to_checksum_address(b)
