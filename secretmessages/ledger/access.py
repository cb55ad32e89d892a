"""
One-time admin bootstrap and caller authorization.

The admin identity is stored only as a domain-separated hash of the admin's
public key. The first ``set_admin`` call wins; every mutating operation on the
registry, message store, and batch reducer calls ``authorize`` first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import Lock

from secretmessages.crypto.core import (
    derive_address,
    ed25519_generate_keypair,
    ed25519_public_key,
    hash_admin_identity,
    validate_public_key,
)
from secretmessages.errors import AdminAlreadySet, AdminNotSet, Unauthorized

logger = logging.getLogger(__name__)

UNSET_ADMIN = 0


@dataclass(frozen=True)
class Credential:
    """Public identity presented by a caller."""

    public_key: bytes

    @classmethod
    def from_public_bytes(cls, public_key: bytes) -> "Credential":
        return cls(public_key=validate_public_key(public_key))

    @classmethod
    def from_private_bytes(cls, private_key: bytes) -> "Credential":
        return cls(public_key=ed25519_public_key(private_key))

    @classmethod
    def generate(cls) -> "Credential":
        _, public_key = ed25519_generate_keypair()
        return cls(public_key=public_key)

    @property
    def address(self) -> int:
        """Map key for this identity."""
        return derive_address(self.public_key)

    @property
    def identity_hash(self) -> int:
        return hash_admin_identity(self.public_key)


class AccessGate:
    """First-write-wins admin identity with hash-only comparison."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._admin_hash = UNSET_ADMIN

    @property
    def admin_hash(self) -> int:
        return self._admin_hash

    @property
    def is_admin_set(self) -> bool:
        return self._admin_hash != UNSET_ADMIN

    def set_admin(self, credential: Credential) -> None:
        with self._lock:
            if self._admin_hash != UNSET_ADMIN:
                logger.warning("Rejected set_admin: admin already set")
                raise AdminAlreadySet("Admin identity has already been set")
            self._admin_hash = credential.identity_hash
        logger.info("Admin identity set")

    def authorize(self, credential: Credential) -> None:
        admin_hash = self._admin_hash
        if admin_hash == UNSET_ADMIN:
            raise AdminNotSet("Admin identity has not been set")
        if credential.identity_hash != admin_hash:
            logger.warning("Rejected caller: credential does not match admin identity")
            raise Unauthorized("Caller is not the admin")
