"""
Capacity-bounded address registry backed by an authenticated map.

Every write follows the same shape:

1. Read a snapshot of the registry state.
2. Check the caller, capacity, and witness against that snapshot.
3. Compute the new state (new root from the witness and the new value).
4. Commit with a compare-and-swap on the snapshot.

Nothing is written before step 4, so a failing check leaves no trace. A
concurrent writer that commits first makes step 4 fail with
StaleOrInvalidWitness; the caller must fetch a fresh witness and retry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from threading import Lock
from typing import Optional, Tuple

from secretmessages.config import LedgerConfig
from secretmessages.crypto.merkle_map import EMPTY_ROOT, AuthenticatedMapWitness
from secretmessages.errors import CapacityExceeded, StaleOrInvalidWitness
from secretmessages.ledger.access import AccessGate, Credential

logger = logging.getLogger(__name__)

# Map values with special meaning
UNSET = 0
REGISTERED = 1


@dataclass(frozen=True)
class RegistryState:
    """Committed registry/message-store state; ``root`` is the single source of truth."""

    count: int = 0
    root: str = EMPTY_ROOT
    messages_received: int = 0


def compute_root_and_key(
    witness: AuthenticatedMapWitness, value: int
) -> Tuple[str, int]:
    """Run the collaborator's witness, reporting malformed witnesses as invalid."""
    try:
        return witness.compute_root_and_key(value)
    except ValueError as exc:
        raise StaleOrInvalidWitness(f"Malformed witness: {exc}") from exc


def verify_witness(
    witness: AuthenticatedMapWitness,
    address: int,
    claimed_value: int,
    root: str,
) -> None:
    """
    Require that ``witness`` proves ``address -> claimed_value`` under ``root``.

    Raises:
        StaleOrInvalidWitness: on a root or key mismatch
    """
    computed_root, key = compute_root_and_key(witness, claimed_value)
    if computed_root != root:
        raise StaleOrInvalidWitness(
            f"Witness root {computed_root[:16]}... does not match stored root {root[:16]}..."
        )
    if key != address:
        raise StaleOrInvalidWitness(f"Witness key {key} does not match address {address}")


class AuthenticatedRegistry:
    """Address whitelist whose membership lives in the authenticated map."""

    def __init__(
        self,
        gate: AccessGate,
        config: Optional[LedgerConfig] = None,
        initial_root: str = EMPTY_ROOT,
    ) -> None:
        self.gate = gate
        self.config = config or LedgerConfig()
        self._lock = Lock()
        self._state = RegistryState(root=initial_root)

    @property
    def state(self) -> RegistryState:
        return self._state

    @property
    def root(self) -> str:
        return self._state.root

    @property
    def count(self) -> int:
        return self._state.count

    @property
    def capacity(self) -> int:
        return self.config.max_addresses

    def commit(self, expected: RegistryState, new_state: RegistryState) -> RegistryState:
        """
        Replace ``expected`` with ``new_state`` atomically.

        Raises:
            StaleOrInvalidWitness: if another write committed since ``expected`` was read
        """
        with self._lock:
            if self._state != expected:
                raise StaleOrInvalidWitness(
                    "Registry state changed since the witness was checked"
                )
            self._state = new_state
        return new_state

    def register(
        self,
        caller: Credential,
        address: int,
        witness: AuthenticatedMapWitness,
    ) -> RegistryState:
        """
        Register ``address``; ``witness`` must show it is currently unset.

        Returns the committed state.
        """
        self.gate.authorize(caller)
        state = self._state

        if state.count >= self.config.max_addresses:
            logger.warning(
                f"Rejected register: capacity {self.config.max_addresses} reached"
            )
            raise CapacityExceeded(
                f"Registry is full ({state.count}/{self.config.max_addresses})"
            )

        try:
            verify_witness(witness, address, UNSET, state.root)
        except StaleOrInvalidWitness as exc:
            logger.warning(f"Rejected register for address {address}: {exc}")
            raise

        new_root, _ = compute_root_and_key(witness, REGISTERED)
        committed = self.commit(
            state, replace(state, root=new_root, count=state.count + 1)
        )
        logger.debug(f"Registered address {address} ({committed.count} total)")
        return committed
