"""
Resumable fold of the action log into a running aggregate.

The aggregate is the highest valid message number seen in the current
logical batch. Each ``run_reduce`` folds the entries appended since the
stored cursor and then advances the cursor past them, so no entry is ever
folded twice.

Modes:
- ``continue_from_previous=False`` starts a fresh batch: the accumulator
  starts at 0 and the stored aggregate is replaced, even by a lower value.
- ``continue_from_previous=True`` continues the current batch: the
  accumulator starts from the stored aggregate.

A batch that exceeds the per-call budget (``max_actions_per_reduce``) is
split across calls; every call after the first uses
``continue_from_previous=True``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Dict, Iterable, Optional

from secretmessages.batch.action_log import ActionLog, LogCursor, LogEntry
from secretmessages.config import LedgerConfig
from secretmessages.errors import StaleCursor
from secretmessages.ledger.access import Credential

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReducerState:
    message_number: int = 0
    cursor: LogCursor = field(default_factory=LogCursor)


@dataclass(frozen=True)
class ReductionResult:
    """Outcome of one run_reduce call."""

    message_number: int
    folded: int
    invalid: int
    previous_cursor: LogCursor
    cursor: LogCursor
    continued: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message_number": self.message_number,
            "folded": self.folded,
            "invalid": self.invalid,
            "previous_sequence": self.previous_cursor.sequence,
            "sequence": self.cursor.sequence,
            "action_state": self.cursor.action_state,
            "continued": self.continued,
        }


def fold_entries(entries: Iterable[LogEntry], initial: int) -> int:
    """Running maximum over valid entries."""
    acc = initial
    for entry in entries:
        if entry.is_valid:
            acc = max(acc, entry.message_number)
    return acc


class BatchReducer:
    """Owns the aggregate and the cursor into an ActionLog."""

    def __init__(self, log: ActionLog, config: Optional[LedgerConfig] = None) -> None:
        self.log = log
        self.gate = log.gate
        self.config = config or LedgerConfig()
        self._lock = Lock()
        self._state = ReducerState()

    @property
    def state(self) -> ReducerState:
        return self._state

    @property
    def message_number(self) -> int:
        return self._state.message_number

    @property
    def cursor(self) -> LogCursor:
        return self._state.cursor

    @property
    def pending_count(self) -> int:
        return len(self.log) - self._state.cursor.sequence

    def run_reduce(
        self,
        caller: Credential,
        continue_from_previous: bool,
        expected_cursor: Optional[LogCursor] = None,
    ) -> ReductionResult:
        """
        Fold pending log entries into the aggregate.

        Args:
            caller: Admin credential
            continue_from_previous: Start from the stored aggregate instead of 0
            expected_cursor: Cursor the caller observed; a mismatch means another
                reduction already ran and raises StaleCursor

        Returns:
            ReductionResult describing the committed state
        """
        self.gate.authorize(caller)

        with self._lock:
            state = self._state
            if expected_cursor is not None and expected_cursor != state.cursor:
                logger.warning(
                    f"Rejected reduction: expected cursor at sequence "
                    f"{expected_cursor.sequence}, stored cursor at {state.cursor.sequence}"
                )
                raise StaleCursor("Cursor advanced since it was observed")

            entries, new_cursor = self.log.entries_since(
                state.cursor, limit=self.config.max_actions_per_reduce
            )
            initial = state.message_number if continue_from_previous else 0
            acc = fold_entries(entries, initial)
            self._state = ReducerState(message_number=acc, cursor=new_cursor)

        result = ReductionResult(
            message_number=acc,
            folded=len(entries),
            invalid=sum(1 for entry in entries if not entry.is_valid),
            previous_cursor=state.cursor,
            cursor=new_cursor,
            continued=continue_from_previous,
        )
        logger.debug(
            f"Reduced {result.folded} entries "
            f"(sequence {state.cursor.sequence} -> {new_cursor.sequence}), "
            f"aggregate={acc}"
        )
        return result
