"""
Tests for the message store: flag gating, first-message counting, and
notification emission.
"""

import pytest

from secretmessages.crypto.merkle_map import SparseMerkleMap
from secretmessages.errors import (
    InvalidFlags,
    PayloadOverflow,
    ReservedPayload,
    StaleOrInvalidWitness,
    Unauthorized,
)
from secretmessages.ledger.events import MESSAGE_RECEIVED
from secretmessages.ledger.flags import FlagSet, encode
from secretmessages.ledger.registry import REGISTERED

VALID_FLAGS = FlagSet(flag2=True, flag3=True)
INVALID_FLAGS = FlagSet(flag2=True)


@pytest.fixture
def registered(registry, merkle_map, admin):
    """Register the admin's own address and return it."""
    address = admin.address
    registry.register(admin, address, merkle_map.get_witness(address))
    merkle_map.set(address, REGISTERED)
    return address


def put(store_, merkle_map, caller, address, prior, payload, flags=VALID_FLAGS):
    event = store_.store_message(
        caller, merkle_map.get_witness(address), address, prior, encode(payload, flags)
    )
    merkle_map.set(address, payload)
    return event


class TestStoreMessage:

    def test_first_message_counts(self, store, merkle_map, admin, registered):
        event = put(store, merkle_map, admin, registered, REGISTERED, 4242)
        assert event.messages_received == 1
        assert store.messages_received == 1
        assert store.registry.root == merkle_map.root

    def test_update_does_not_count(self, store, merkle_map, admin, registered):
        put(store, merkle_map, admin, registered, REGISTERED, 4242)
        event = put(store, merkle_map, admin, registered, 4242, 777)
        assert event.messages_received == 1
        assert merkle_map.get(registered) == 777

    def test_root_matches_reference_history(self, store, merkle_map, admin):
        reference = SparseMerkleMap()
        addresses = [11, 22, 33]
        for address in addresses:
            store.registry.register(admin, address, merkle_map.get_witness(address))
            merkle_map.set(address, REGISTERED)
            reference.set(address, REGISTERED)

        history = [(11, 500), (22, 600), (11, 501), (33, 700), (22, 601)]
        current = {address: REGISTERED for address in addresses}
        for address, payload in history:
            put(store, merkle_map, admin, address, current[address], payload)
            reference.set(address, payload)
            current[address] = payload

        assert store.registry.root == reference.root
        assert store.messages_received == 3
        assert store.registry.count == 3

    def test_invalid_flags_rejected(self, store, merkle_map, admin, registered):
        before = store.registry.state
        with pytest.raises(InvalidFlags):
            store.store_message(
                admin,
                merkle_map.get_witness(registered),
                registered,
                REGISTERED,
                encode(4242, INVALID_FLAGS),
            )
        assert store.registry.state == before
        assert store.events.snapshot() == []

    def test_oversized_message_rejected(self, store, merkle_map, admin, registered):
        with pytest.raises(PayloadOverflow):
            store.store_message(
                admin, merkle_map.get_witness(registered), registered, REGISTERED, 1 << 70
            )

    @pytest.mark.parametrize("payload", [0, 1])
    def test_marker_payload_rejected(self, store, merkle_map, admin, registered, payload):
        before = store.registry.state
        with pytest.raises(ReservedPayload):
            store.store_message(
                admin,
                merkle_map.get_witness(registered),
                registered,
                REGISTERED,
                encode(payload, 0),
            )
        assert store.registry.state == before
        assert store.events.snapshot() == []

        # Address stays registered, so it cannot be registered a second time
        with pytest.raises(StaleOrInvalidWitness):
            store.registry.register(admin, registered, merkle_map.get_witness(registered))
        assert store.registry.count == 1

    def test_unregistered_address(self, store, merkle_map, admin, registered):
        with pytest.raises(StaleOrInvalidWitness):
            store.store_message(
                admin, merkle_map.get_witness(99), 99, REGISTERED, encode(4242, VALID_FLAGS)
            )

    def test_unset_prior_value_rejected(self, store, merkle_map, admin, registered):
        # The witness for an unregistered key does verify against value 0
        with pytest.raises(StaleOrInvalidWitness):
            store.store_message(
                admin, merkle_map.get_witness(99), 99, 0, encode(4242, VALID_FLAGS)
            )
        assert store.registry.root == merkle_map.root

    def test_wrong_prior_value(self, store, merkle_map, admin, registered):
        with pytest.raises(StaleOrInvalidWitness):
            store.store_message(
                admin,
                merkle_map.get_witness(registered),
                registered,
                12345,
                encode(4242, VALID_FLAGS),
            )
        assert store.messages_received == 0

    def test_stale_witness_after_concurrent_write(self, store, merkle_map, admin, registered):
        stale = merkle_map.get_witness(registered)
        put(store, merkle_map, admin, registered, REGISTERED, 4242)
        with pytest.raises(StaleOrInvalidWitness):
            store.store_message(admin, stale, registered, REGISTERED, encode(5, VALID_FLAGS))
        assert store.messages_received == 1

    def test_outsider_rejected(self, store, merkle_map, outsider, registered):
        with pytest.raises(Unauthorized):
            store.store_message(
                outsider,
                merkle_map.get_witness(registered),
                registered,
                REGISTERED,
                encode(4242, VALID_FLAGS),
            )


class TestNotifications:

    def test_event_per_store(self, store, merkle_map, admin, registered):
        received = []
        store.events.subscribe(received.append)

        put(store, merkle_map, admin, registered, REGISTERED, 4242)
        put(store, merkle_map, admin, registered, 4242, 4343)

        events = store.events.snapshot()
        assert [e.messages_received for e in events] == [1, 1]
        assert all(e.name == MESSAGE_RECEIVED for e in events)
        assert received == events
        assert events[-1].root == store.registry.root

    def test_drain_clears(self, store, merkle_map, admin, registered):
        put(store, merkle_map, admin, registered, REGISTERED, 4242)
        assert len(store.events.drain()) == 1
        assert store.events.snapshot() == []
