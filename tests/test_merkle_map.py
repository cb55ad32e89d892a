"""
Tests for the sparse Merkle map collaborator and its witnesses.
"""

import pytest

from secretmessages.crypto.merkle_map import (
    EMPTY_ROOT,
    HEIGHT,
    MerkleMapWitness,
    SparseMerkleMap,
)


class TestSparseMerkleMap:

    def test_empty_root(self):
        root = SparseMerkleMap().root
        assert root == EMPTY_ROOT
        assert len(root) == 64
        int(root, 16)

    def test_set_changes_root(self, merkle_map):
        new_root = merkle_map.set(7, 1)
        assert new_root == merkle_map.root
        assert new_root != EMPTY_ROOT
        assert merkle_map.get(7) == 1
        assert merkle_map.get(8) == 0

    def test_root_independent_of_insertion_order(self):
        a, b = SparseMerkleMap(), SparseMerkleMap()
        a.set(3, 10)
        a.set(2**200, 20)
        b.set(2**200, 20)
        b.set(3, 10)
        assert a.root == b.root

    def test_reset_to_zero_restores_empty_root(self, merkle_map):
        merkle_map.set(42, 99)
        merkle_map.set(42, 0)
        assert merkle_map.root == EMPTY_ROOT
        assert len(merkle_map) == 0

    def test_key_out_of_range(self, merkle_map):
        with pytest.raises(ValueError):
            merkle_map.set(2**HEIGHT, 1)
        with pytest.raises(ValueError):
            merkle_map.get(-1)


class TestMerkleMapWitness:

    def test_witness_proves_current_value(self, merkle_map):
        merkle_map.set(5, 123)
        root, key = merkle_map.get_witness(5).compute_root_and_key(123)
        assert (root, key) == (merkle_map.root, 5)

    def test_witness_for_unset_key(self, merkle_map):
        merkle_map.set(5, 123)
        key = 2**255 + 17
        root, recovered = merkle_map.get_witness(key).compute_root_and_key(0)
        assert (root, recovered) == (merkle_map.root, key)

    def test_witness_predicts_new_root(self, merkle_map):
        witness = merkle_map.get_witness(9)
        predicted, _ = witness.compute_root_and_key(1)
        assert merkle_map.set(9, 1) == predicted

    def test_wrong_value_gives_different_root(self, merkle_map):
        merkle_map.set(5, 123)
        root, _ = merkle_map.get_witness(5).compute_root_and_key(124)
        assert root != merkle_map.root

    def test_wrong_length_rejected(self):
        with pytest.raises(ValueError):
            MerkleMapWitness(siblings=("00" * 32,), is_left=(True,))
