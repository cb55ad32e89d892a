"""
Sparse Merkle map over field-element keys.

The registry only consumes the witness interface (``compute_root_and_key``);
this module is the in-memory collaborator that produces those witnesses.
Keys index a fixed-height binary tree (one level per key bit, least
significant bit at the leaf level). Unset keys hold the value 0, so the
empty map already has a well-defined root.

Hashing:
- Leaves: SHA256(DOMAIN_LEAF || value as 32-byte field element)
- Nodes:  SHA256(DOMAIN_NODE || left || right)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Protocol, Tuple

from secretmessages.crypto.core import (
    DOMAIN_LEAF,
    DOMAIN_NODE,
    FIELD_BITS,
    encode_field,
    sha256_bytes,
)

HEIGHT = FIELD_BITS


def hash_leaf(value: int) -> bytes:
    return sha256_bytes(encode_field(value), domain=DOMAIN_LEAF)


def hash_node(left: bytes, right: bytes) -> bytes:
    return sha256_bytes(left + right, domain=DOMAIN_NODE)


def _empty_subtree_hashes() -> List[bytes]:
    hashes = [hash_leaf(0)]
    for _ in range(HEIGHT):
        hashes.append(hash_node(hashes[-1], hashes[-1]))
    return hashes


_EMPTY_HASHES = _empty_subtree_hashes()

EMPTY_ROOT = _EMPTY_HASHES[HEIGHT].hex()


class AuthenticatedMapWitness(Protocol):
    """Interface the registry consumes from the authenticated-map collaborator."""

    def compute_root_and_key(self, value: int) -> Tuple[str, int]:
        ...


def _check_key(key: int) -> None:
    if key < 0 or key.bit_length() > HEIGHT:
        raise ValueError(f"Map key out of range for height {HEIGHT}: {key}")


@dataclass(frozen=True)
class MerkleMapWitness:
    """
    Inclusion path for a single key.

    ``siblings[i]`` is the hex hash of the sibling at level ``i`` (leaf level
    first) and ``is_left[i]`` is True when the path node at that level is a
    left child. The key is recovered from the ``is_left`` bits.
    """

    siblings: Tuple[str, ...]
    is_left: Tuple[bool, ...]

    def __post_init__(self) -> None:
        if len(self.siblings) != HEIGHT or len(self.is_left) != HEIGHT:
            raise ValueError(
                f"Witness must have {HEIGHT} levels, got "
                f"{len(self.siblings)} siblings and {len(self.is_left)} directions"
            )

    def compute_root_and_key(self, value: int) -> Tuple[str, int]:
        """Return the root implied by ``value`` sitting at this path, and the path's key."""
        current = hash_leaf(value)
        key = 0
        for level, (sibling_hex, is_left) in enumerate(zip(self.siblings, self.is_left)):
            sibling = bytes.fromhex(sibling_hex)
            if is_left:
                current = hash_node(current, sibling)
            else:
                current = hash_node(sibling, current)
                key |= 1 << level
        return current.hex(), key


class SparseMerkleMap:
    """In-memory sparse Merkle map with precomputed empty subtrees."""

    def __init__(self) -> None:
        self._values: Dict[int, int] = {}
        self._nodes: Dict[Tuple[int, int], bytes] = {}

    def _node(self, level: int, index: int) -> bytes:
        return self._nodes.get((level, index), _EMPTY_HASHES[level])

    @property
    def root(self) -> str:
        return self._node(HEIGHT, 0).hex()

    def get(self, key: int) -> int:
        _check_key(key)
        return self._values.get(key, 0)

    def set(self, key: int, value: int) -> str:
        """Set ``key`` to ``value`` and return the new root."""
        _check_key(key)
        if value == 0:
            self._values.pop(key, None)
        else:
            self._values[key] = value

        current = hash_leaf(value)
        index = key
        for level in range(HEIGHT):
            self._store(level, index, current)
            sibling = self._node(level, index ^ 1)
            if index & 1 == 0:
                current = hash_node(current, sibling)
            else:
                current = hash_node(sibling, current)
            index >>= 1
        self._store(HEIGHT, 0, current)
        return current.hex()

    def _store(self, level: int, index: int, digest: bytes) -> None:
        if digest == _EMPTY_HASHES[level]:
            self._nodes.pop((level, index), None)
        else:
            self._nodes[(level, index)] = digest

    def get_witness(self, key: int) -> MerkleMapWitness:
        _check_key(key)
        siblings = []
        is_left = []
        index = key
        for level in range(HEIGHT):
            siblings.append(self._node(level, index ^ 1).hex())
            is_left.append(index & 1 == 0)
            index >>= 1
        return MerkleMapWitness(siblings=tuple(siblings), is_left=tuple(is_left))

    def __len__(self) -> int:
        return len(self._values)
