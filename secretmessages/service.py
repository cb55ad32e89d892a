"""
Caller-facing surface of the secret messages ledger.

Wires the access gate, registry, message store, action log, and batch
reducer around one configuration. The authenticated-map witnesses are
supplied by the caller; the service never holds the map itself.
"""

from __future__ import annotations

from typing import Optional

from secretmessages.batch.action_log import ActionLog, LogCursor, LogEntry
from secretmessages.batch.message import MessageValidator, SecretMessage
from secretmessages.batch.reducer import BatchReducer, ReductionResult
from secretmessages.config import LedgerConfig
from secretmessages.crypto.merkle_map import AuthenticatedMapWitness
from secretmessages.ledger.access import AccessGate, Credential
from secretmessages.ledger.events import EventStore, MessageReceivedEvent
from secretmessages.ledger.registry import AuthenticatedRegistry, RegistryState
from secretmessages.ledger.store import MessageStore


class SecretMessagesService:
    """Deterministic orchestrator for both the direct-write and log paths."""

    def __init__(self, config: Optional[LedgerConfig] = None) -> None:
        self.config = config or LedgerConfig()
        self.gate = AccessGate()
        self.events = EventStore()
        self.registry = AuthenticatedRegistry(self.gate, self.config)
        self.store = MessageStore(self.registry, self.events)
        self.validator = MessageValidator(self.config)
        self.log = ActionLog(self.gate, self.validator)
        self.reducer = BatchReducer(self.log, self.config)

    def set_admin(self, credential: Credential) -> None:
        self.gate.set_admin(credential)

    def register(
        self,
        caller: Credential,
        address: int,
        witness: AuthenticatedMapWitness,
    ) -> RegistryState:
        return self.registry.register(caller, address, witness)

    def store_message(
        self,
        caller: Credential,
        witness: AuthenticatedMapWitness,
        address: int,
        prior_value: int,
        new_encoded_message: int,
    ) -> MessageReceivedEvent:
        return self.store.store_message(
            caller, witness, address, prior_value, new_encoded_message
        )

    def dispatch(
        self,
        caller: Credential,
        message: SecretMessage,
        prev_message_number: int,
    ) -> LogEntry:
        return self.log.dispatch(caller, message, prev_message_number)

    def run_reduce(
        self,
        caller: Credential,
        continue_from_previous: bool,
        expected_cursor: Optional[LogCursor] = None,
    ) -> ReductionResult:
        return self.reducer.run_reduce(caller, continue_from_previous, expected_cursor)
