"""
Centralized cryptographic core operations for the secret messages ledger.

This module provides canonical implementations of:
- Domain-separated SHA-256 hashing
- Field element encoding (fixed-width big-endian integers)
- Address and admin identity derivation
- Ed25519 key generation for caller credentials

All operations are deterministic; identical inputs always yield identical outputs.
"""

import hashlib
from typing import Tuple, Union

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519


# Domain separation tags (prevent cross-protocol collisions)
DOMAIN_LEAF = b'\x00'
DOMAIN_NODE = b'\x01'
DOMAIN_ADDRESS = b'\x02'
DOMAIN_ADMIN = b'\x03'
DOMAIN_ACTION = b'\x04'
DOMAIN_ACTION_STATE = b'\x05'

FIELD_BYTES = 32
FIELD_BITS = FIELD_BYTES * 8


def sha256_hex(data: Union[str, bytes], domain: bytes = b'') -> str:
    """
    Compute SHA-256 hash and return as hex string.

    Args:
        data: Input data (string will be UTF-8 encoded)
        domain: Optional domain separation prefix

    Returns:
        64-character hex string
    """
    if isinstance(data, str):
        data = data.encode('utf-8')
    return hashlib.sha256(domain + data).hexdigest()


def sha256_bytes(data: Union[str, bytes], domain: bytes = b'') -> bytes:
    """
    Compute SHA-256 hash and return as bytes.

    Args:
        data: Input data (string will be UTF-8 encoded)
        domain: Optional domain separation prefix

    Returns:
        32-byte digest
    """
    if isinstance(data, str):
        data = data.encode('utf-8')
    return hashlib.sha256(domain + data).digest()


def encode_field(value: int) -> bytes:
    """
    Encode a non-negative integer as a fixed-width field element.

    Raises:
        ValueError: if the value is negative or does not fit FIELD_BITS
    """
    if value < 0 or value.bit_length() > FIELD_BITS:
        raise ValueError(f"Value does not fit a {FIELD_BITS}-bit field element: {value}")
    return value.to_bytes(FIELD_BYTES, 'big')


def hash_to_field(data: Union[str, bytes], domain: bytes = b'') -> int:
    """Hash arbitrary data to a field element."""
    return int.from_bytes(sha256_bytes(data, domain=domain), 'big')


def derive_address(public_key: bytes) -> int:
    """
    Derive the map key (address) for a public identity.

    Args:
        public_key: Raw 32-byte Ed25519 public key

    Returns:
        Field element usable as an authenticated map key
    """
    return hash_to_field(public_key, domain=DOMAIN_ADDRESS)


def hash_admin_identity(public_key: bytes) -> int:
    """
    Hash a public identity for admin comparison.

    The result is never 0, which is reserved as the "unset" sentinel.
    """
    digest = hash_to_field(public_key, domain=DOMAIN_ADMIN)
    return digest or 1


def ed25519_generate_keypair() -> Tuple[bytes, bytes]:
    """
    Generate Ed25519 keypair.

    Returns:
        Tuple of (private_key_bytes, public_key_bytes)
    """
    private_key = ed25519.Ed25519PrivateKey.generate()
    private_bytes = private_key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption()
    )
    return private_bytes, ed25519_public_key(private_bytes)


def ed25519_public_key(private_key: bytes) -> bytes:
    """Return the raw public key for a raw 32-byte Ed25519 private key."""
    private_key_obj = ed25519.Ed25519PrivateKey.from_private_bytes(private_key)
    return private_key_obj.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw
    )


def validate_public_key(public_key: bytes) -> bytes:
    """
    Check that bytes form a valid Ed25519 public key.

    Raises:
        ValueError: if the bytes are not a valid raw public key
    """
    ed25519.Ed25519PublicKey.from_public_bytes(public_key)
    return bytes(public_key)
