"""
Zero Hash Table Tests

Checks the precomputed empty-subtree roots against direct SHA256 evaluation
and against well-known values of the deposit contract tree.
"""

import unittest
import sys
import os
from hashlib import sha256

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from deposit_tree.ssz import (
    DEPOSIT_CONTRACT_TREE_DEPTH,
    ZERO_CHUNK,
    ZeroHashTable,
    hash_concat,
)


class TestZeroHashTable(unittest.TestCase):
    """Test the zero hash table."""

    def setUp(self):
        self.table = ZeroHashTable.initialize()

    def test_depth(self):
        self.assertEqual(len(self.table), DEPOSIT_CONTRACT_TREE_DEPTH)

    def test_level_zero_is_zero_chunk(self):
        self.assertEqual(self.table[0], b"\x00" * 32)
        self.assertEqual(self.table[0], ZERO_CHUNK)

    def test_each_level_hashes_previous(self):
        """zero[h] == SHA256(zero[h-1] || zero[h-1]) for every level"""
        for height in range(1, DEPOSIT_CONTRACT_TREE_DEPTH):
            expected = sha256(self.table[height - 1] + self.table[height - 1]).digest()
            self.assertEqual(self.table[height], expected, f"level {height}")

    def test_known_values(self):
        """Spot-check against the published deposit contract zero hashes"""
        self.assertEqual(
            self.table[1].hex(),
            "f5a5fd42d16a20302798ef6ed309979b43003d2320d9f0e8ea9831a92759fb4b",
        )
        self.assertEqual(
            self.table[2].hex(),
            "db56114e00fdd4c1f85c892bf35ac9a89289aaecb1ebd0a96cde606a748b5d71",
        )

    def test_recomputation_is_identical(self):
        self.assertEqual(ZeroHashTable.initialize(), self.table)
        self.assertEqual(hash(ZeroHashTable.initialize()), hash(self.table))

    def test_smaller_table_is_prefix(self):
        small = ZeroHashTable.initialize(4)
        self.assertEqual(len(small), 4)
        self.assertEqual(small.as_tuple(), self.table.as_tuple()[:4])

    def test_iteration_and_tuple(self):
        self.assertEqual(list(self.table), list(self.table.as_tuple()))
        self.assertIsInstance(self.table.as_tuple(), tuple)

    def test_immutable(self):
        with self.assertRaises(TypeError):
            self.table[0] = b"\x01" * 32
        with self.assertRaises(AttributeError):
            self.table.extra = 1

    def test_hash_concat_is_plain_sha256(self):
        left, right = b"\x01" * 32, b"\x02" * 32
        self.assertEqual(hash_concat(left, right), sha256(left + right).digest())
        self.assertNotEqual(hash_concat(left, right), hash_concat(right, left))


if __name__ == '__main__':
    unittest.main()
