"""
Secret message structure and semantic validation.

A message is accepted when any of the following holds, in this precedence:

1. Its message number does not exceed the previous message number
   (a duplicate; accepted without further checks).
2. Its agent id is zero (accepted without further checks).
3. Its fields pass both the range check and the checksum check.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from secretmessages.config import LedgerConfig
from secretmessages.errors import PayloadOverflow
from secretmessages.ledger.flags import MAX_PAYLOAD


@dataclass(frozen=True)
class SecretMessage:
    message_number: int
    agent_id: int
    agent_x_location: int
    agent_y_location: int
    check_sum: int

    def __post_init__(self) -> None:
        if self.message_number < 0 or self.message_number > MAX_PAYLOAD:
            raise PayloadOverflow(
                f"Message number does not fit 64 bits: {self.message_number}"
            )


class MessageValidator:
    """Stateless checks over message fields, parameterised by range bounds."""

    def __init__(self, config: Optional[LedgerConfig] = None) -> None:
        self.config = config or LedgerConfig()

    def range_check(self, agent_id: int, agent_x_location: int, agent_y_location: int) -> bool:
        """
        Agent ID between 0 and 3000, XLocation between 0 and 15000,
        YLocation between 5000 and 20000, and YLocation greater than XLocation.
        """
        cfg = self.config
        cond1 = 0 <= agent_id <= cfg.max_agent_id
        cond2 = 0 <= agent_x_location <= cfg.max_x
        cond3 = cfg.min_y <= agent_y_location <= cfg.max_y
        cond4 = agent_y_location > agent_x_location
        return cond1 and cond2 and cond3 and cond4

    def checksum_check(
        self,
        agent_id: int,
        agent_x_location: int,
        agent_y_location: int,
        check_sum: int,
    ) -> bool:
        return check_sum == agent_id + agent_x_location + agent_y_location

    def is_valid(self, message: SecretMessage, prev_message_number: int) -> bool:
        return self.explain(message, prev_message_number) != "invalid"

    def explain(self, message: SecretMessage, prev_message_number: int) -> str:
        """
        Return the rule that decided the message's validity.

        One of ``"duplicate"``, ``"agent_zero"``, ``"structural"`` or ``"invalid"``.
        """
        if message.message_number <= prev_message_number:
            return "duplicate"
        if message.agent_id == 0:
            return "agent_zero"
        structurally_ok = self.range_check(
            message.agent_id, message.agent_x_location, message.agent_y_location
        ) and self.checksum_check(
            message.agent_id,
            message.agent_x_location,
            message.agent_y_location,
            message.check_sum,
        )
        return "structural" if structurally_ok else "invalid"
