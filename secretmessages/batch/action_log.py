"""
Append-only log of per-message validation outcomes.

Each appended entry extends a hash chain:

    state_0 = SHA256(DOMAIN_ACTION_STATE || "")
    state_n = SHA256(DOMAIN_ACTION_STATE || state_{n-1} || entry_hash_n)

A cursor names a position by both its sequence number and the chained state
at that position, so a cursor from another log (or a forged one) is rejected
instead of silently selecting the wrong slice.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import Lock
from typing import List, Optional, Tuple

from secretmessages.batch.message import MessageValidator, SecretMessage
from secretmessages.crypto.core import DOMAIN_ACTION, DOMAIN_ACTION_STATE, sha256_bytes, sha256_hex
from secretmessages.errors import StaleCursor
from secretmessages.ledger.access import AccessGate, Credential

logger = logging.getLogger(__name__)

EMPTY_ACTION_STATE = sha256_hex(b'', domain=DOMAIN_ACTION_STATE)


def hash_entry(is_valid: bool, message_number: int) -> bytes:
    payload = (b'\x01' if is_valid else b'\x00') + message_number.to_bytes(8, 'big')
    return sha256_bytes(payload, domain=DOMAIN_ACTION)


def next_action_state(action_state: str, entry_hash: bytes) -> str:
    return sha256_hex(bytes.fromhex(action_state) + entry_hash, domain=DOMAIN_ACTION_STATE)


@dataclass(frozen=True)
class LogEntry:
    is_valid: bool
    message_number: int
    sequence: int
    action_state: str


@dataclass(frozen=True)
class LogCursor:
    """Position in the log; every entry with sequence <= ``sequence`` is consumed."""

    sequence: int = 0
    action_state: str = EMPTY_ACTION_STATE


class ActionLog:
    """Thread-safe append-only action log."""

    def __init__(
        self,
        gate: AccessGate,
        validator: Optional[MessageValidator] = None,
    ) -> None:
        self.gate = gate
        self.validator = validator or MessageValidator()
        self._lock = Lock()
        self._entries: List[LogEntry] = []
        self._states: List[str] = [EMPTY_ACTION_STATE]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def head(self) -> LogCursor:
        with self._lock:
            return LogCursor(sequence=len(self._entries), action_state=self._states[-1])

    def append(self, is_valid: bool, message_number: int) -> LogEntry:
        entry_hash = hash_entry(is_valid, message_number)
        with self._lock:
            action_state = next_action_state(self._states[-1], entry_hash)
            entry = LogEntry(
                is_valid=is_valid,
                message_number=message_number,
                sequence=len(self._entries) + 1,
                action_state=action_state,
            )
            self._entries.append(entry)
            self._states.append(action_state)
        return entry

    def dispatch(
        self,
        caller: Credential,
        message: SecretMessage,
        prev_message_number: int,
    ) -> LogEntry:
        """
        Record a message's validity without enforcing it.

        Semantically invalid messages are appended with ``is_valid=False``;
        only authorization failures abort.
        """
        self.gate.authorize(caller)
        valid = self.validator.is_valid(message, prev_message_number)
        entry = self.append(valid, message.message_number)
        logger.debug(
            f"Dispatched message {message.message_number} "
            f"(valid={valid}, sequence={entry.sequence})"
        )
        return entry

    def entries_since(
        self,
        cursor: LogCursor,
        limit: Optional[int] = None,
    ) -> Tuple[List[LogEntry], LogCursor]:
        """
        Return entries appended after ``cursor`` and the cursor past them.

        Raises:
            StaleCursor: if ``cursor`` does not identify a position in this log
        """
        with self._lock:
            if not 0 <= cursor.sequence <= len(self._entries):
                raise StaleCursor(f"Cursor sequence {cursor.sequence} is outside the log")
            if self._states[cursor.sequence] != cursor.action_state:
                raise StaleCursor(
                    f"Cursor action state does not match log at sequence {cursor.sequence}"
                )
            end = len(self._entries)
            if limit is not None:
                end = min(end, cursor.sequence + limit)
            entries = self._entries[cursor.sequence:end]
            new_cursor = LogCursor(sequence=end, action_state=self._states[end])
        return entries, new_cursor
