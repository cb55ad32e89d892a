"""
Per-address message storage in the registry's authenticated map.

A registered address holds the sentinel value 1 until its first message is
stored. Storing over the sentinel counts as a new message; storing over an
existing message is an update and leaves the counter unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from secretmessages.crypto.merkle_map import AuthenticatedMapWitness
from secretmessages.errors import InvalidFlags, ReservedPayload, StaleOrInvalidWitness
from secretmessages.ledger.access import Credential
from secretmessages.ledger.events import EventStore, MessageReceivedEvent
from secretmessages.ledger.flags import decode
from secretmessages.ledger.registry import (
    REGISTERED,
    UNSET,
    AuthenticatedRegistry,
    compute_root_and_key,
    verify_witness,
)

logger = logging.getLogger(__name__)


class MessageStore:
    """Stores flag-validated messages for registered addresses."""

    def __init__(
        self,
        registry: AuthenticatedRegistry,
        events: Optional[EventStore] = None,
    ) -> None:
        self.registry = registry
        self.events = events or EventStore()

    @property
    def messages_received(self) -> int:
        return self.registry.state.messages_received

    def store_message(
        self,
        caller: Credential,
        witness: AuthenticatedMapWitness,
        address: int,
        prior_value: int,
        new_encoded_message: int,
    ) -> MessageReceivedEvent:
        """
        Replace the value at ``address`` with the payload of ``new_encoded_message``.

        ``witness`` must prove ``address -> prior_value`` under the current root.
        Returns the emitted notification.
        """
        self.registry.gate.authorize(caller)

        payload, flags = decode(new_encoded_message)
        if not flags.is_valid():
            logger.warning(f"Rejected message for address {address}: invalid flags {flags}")
            raise InvalidFlags(f"Flag constraints violated: {flags}")
        if payload in (UNSET, REGISTERED):
            logger.warning(f"Rejected message for address {address}: reserved payload {payload}")
            raise ReservedPayload(f"Payload {payload} is reserved for registry markers")

        state = self.registry.state
        try:
            if prior_value == UNSET:
                raise StaleOrInvalidWitness(f"Address {address} is not registered")
            verify_witness(witness, address, prior_value, state.root)
        except StaleOrInvalidWitness as exc:
            logger.warning(f"Rejected message for address {address}: {exc}")
            raise

        new_root, _ = compute_root_and_key(witness, payload)
        messages_received = state.messages_received
        if prior_value == REGISTERED:
            messages_received += 1

        committed = self.registry.commit(
            state, replace(state, root=new_root, messages_received=messages_received)
        )
        event = MessageReceivedEvent(
            messages_received=committed.messages_received, root=committed.root
        )
        self.events.emit(event)
        logger.debug(
            f"Stored message for address {address} "
            f"({committed.messages_received} messages received)"
        )
        return event
