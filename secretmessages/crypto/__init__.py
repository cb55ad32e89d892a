"""
Cryptographic Primitives Module

Domain-separated hashing, identity derivation, and the sparse Merkle map
that produces registry witnesses.
"""

from secretmessages.crypto.core import (
    sha256_hex,
    sha256_bytes,
    hash_to_field,
    derive_address,
    hash_admin_identity,
    ed25519_generate_keypair,
)

from secretmessages.crypto.merkle_map import (
    EMPTY_ROOT,
    MerkleMapWitness,
    SparseMerkleMap,
)

__all__ = [
    "sha256_hex",
    "sha256_bytes",
    "hash_to_field",
    "derive_address",
    "hash_admin_identity",
    "ed25519_generate_keypair",
    "EMPTY_ROOT",
    "MerkleMapWitness",
    "SparseMerkleMap",
]
