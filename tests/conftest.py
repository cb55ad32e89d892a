# tests/conftest.py
import pytest

from secretmessages.batch.action_log import ActionLog
from secretmessages.batch.message import MessageValidator, SecretMessage
from secretmessages.batch.reducer import BatchReducer
from secretmessages.config import LedgerConfig
from secretmessages.crypto.merkle_map import SparseMerkleMap
from secretmessages.ledger.access import AccessGate, Credential
from secretmessages.ledger.events import EventStore
from secretmessages.ledger.registry import AuthenticatedRegistry
from secretmessages.ledger.store import MessageStore


@pytest.fixture
def admin() -> Credential:
    return Credential.generate()


@pytest.fixture
def outsider() -> Credential:
    return Credential.generate()


@pytest.fixture
def gate(admin) -> AccessGate:
    """Access gate with the admin identity already bootstrapped."""
    g = AccessGate()
    g.set_admin(admin)
    return g


@pytest.fixture
def config() -> LedgerConfig:
    return LedgerConfig()


@pytest.fixture
def registry(gate, config) -> AuthenticatedRegistry:
    return AuthenticatedRegistry(gate, config)


@pytest.fixture
def events() -> EventStore:
    return EventStore()


@pytest.fixture
def store(registry, events) -> MessageStore:
    return MessageStore(registry, events)


@pytest.fixture
def merkle_map() -> SparseMerkleMap:
    """Caller-side copy of the authenticated map, used to produce witnesses."""
    return SparseMerkleMap()


@pytest.fixture
def action_log(gate, config) -> ActionLog:
    return ActionLog(gate, MessageValidator(config))


@pytest.fixture
def reducer(action_log, config) -> BatchReducer:
    return BatchReducer(action_log, config)


def _message(number: int, check_sum: int) -> SecretMessage:
    return SecretMessage(
        message_number=number,
        agent_id=100,
        agent_x_location=123,
        agent_y_location=5345,
        check_sum=check_sum,
    )


@pytest.fixture
def valid_message():
    """Factory for structurally valid messages: 100 + 123 + 5345 = 5568."""
    return lambda number: _message(number, 5568)


@pytest.fixture
def invalid_message():
    """Factory for messages failing the checksum with no escape hatch."""
    return lambda number: _message(number, 5500)
