"""
Notifications emitted by the message store.

Delivery is left to the caller: events are buffered in a thread-safe store
and optionally fanned out to subscribers at emit time.
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Callable, List

MESSAGE_RECEIVED = "message-received"


@dataclass(frozen=True)
class MessageReceivedEvent:
    """Emitted once per successful store_message."""

    messages_received: int
    root: str
    name: str = MESSAGE_RECEIVED


Subscriber = Callable[[MessageReceivedEvent], None]


class EventStore:
    """Thread-safe in-memory buffer of emitted events."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._events: List[MessageReceivedEvent] = []
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> None:
        with self._lock:
            self._subscribers.append(callback)

    def emit(self, event: MessageReceivedEvent) -> None:
        with self._lock:
            self._events.append(event)
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback(event)

    def snapshot(self) -> List[MessageReceivedEvent]:
        with self._lock:
            return list(self._events)

    def drain(self) -> List[MessageReceivedEvent]:
        """Return buffered events and clear the store."""
        with self._lock:
            events = list(self._events)
            self._events.clear()
        return events
