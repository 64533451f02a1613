"""
Deposit Proof and Indexer Tests

Rebuilds the deposit tree from logged events, generates inclusion proofs
and verifies them against the roots the accumulator reported, including
the three-deposit end-to-end scenario.
"""

import json
import os
import sys
import tempfile
import unittest
from unittest.mock import patch

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from deposit_tree import DepositIndexer
from deposit_tree.api import DepositService
from deposit_tree.main import generate_deposit_proof, replay_event_log
from deposit_tree.ssz import (
    DEPOSIT_CONTRACT_TREE_DEPTH,
    DepositData,
    DepositEvent,
    IncrementalMerkleAccumulator,
    ZeroHashTable,
    compute_root_from_proof,
    encode_deposit_leaf,
    get_fixed_capacity_proof,
    get_proof_indices,
    hash_concat,
    merkle_root_list,
    mix_in_length,
    verify_deposit_proof,
    verify_merkle_proof,
)


def make_deposit(seed: int) -> DepositData:
    return DepositData(
        pubkey=bytes([seed]) * 48,
        withdrawal_credentials=b"\x00" + bytes([seed]) * 31,
        amount=32000000000 + seed,
        signature=bytes([seed ^ 0xff]) * 96,
    )


def make_events(count: int):
    return [DepositEvent.from_deposit(make_deposit(i + 1), i) for i in range(count)]


class TestFixedCapacityProof(unittest.TestCase):
    """Proofs in small trees"""

    def test_small_tree_matches_full_merkleization(self):
        leaves = [bytes([i]) * 32 for i in range(5)]
        root = merkle_root_list(leaves + [b"\x00" * 32] * 3)
        for index in range(5):
            proof = get_fixed_capacity_proof(leaves, index, 8)
            self.assertEqual(len(proof), 3)
            self.assertTrue(verify_merkle_proof(leaves[index], proof, index, root))
            self.assertFalse(verify_merkle_proof(leaves[index], proof, index ^ 1, root))

    def test_invalid_arguments(self):
        leaves = [b"\x01" * 32]
        with self.assertRaises(ValueError):
            get_fixed_capacity_proof(leaves, 0, 6)
        with self.assertRaises(ValueError):
            get_fixed_capacity_proof(leaves, 1, 8)

    def test_proof_indices(self):
        self.assertEqual(get_proof_indices(5, 3), [4, 3, 0])


class TestDepositIndexer(unittest.TestCase):
    """Replay and proofs from logged events"""

    def setUp(self):
        self.events = make_events(6)
        self.indexer = DepositIndexer.from_events(self.events)

    def test_replay_matches_accumulator(self):
        accumulator = IncrementalMerkleAccumulator()
        for event in self.events:
            accumulator.append(event.leaf())
        self.assertEqual(self.indexer.root(), accumulator.root())
        self.assertEqual(self.indexer.deposit_count, 6)

    def test_root_at_every_prefix(self):
        accumulator = IncrementalMerkleAccumulator()
        self.assertEqual(self.indexer.root_at(0), accumulator.root())
        for count, event in enumerate(self.events, 1):
            accumulator.append(event.leaf())
            self.assertEqual(self.indexer.root_at(count), accumulator.root())

    def test_every_proof_verifies(self):
        root = self.indexer.root()
        for index in range(6):
            proof = self.indexer.get_proof(index)
            self.assertEqual(len(proof), DEPOSIT_CONTRACT_TREE_DEPTH + 1)
            self.assertTrue(self.indexer.verify_proof(index, proof, root))
            self.assertTrue(verify_deposit_proof(self.indexer.leaves[index], index, proof, root))

    def test_proof_against_earlier_count(self):
        proof = self.indexer.get_proof(1, deposit_count=3)
        self.assertTrue(verify_deposit_proof(self.indexer.leaves[1], 1, proof, self.indexer.root_at(3)))
        self.assertFalse(verify_deposit_proof(self.indexer.leaves[1], 1, proof, self.indexer.root()))

    def test_tampered_proof_fails(self):
        root = self.indexer.root()
        proof = self.indexer.get_proof(2)
        proof[0] = b"\xff" * 32
        self.assertFalse(self.indexer.verify_proof(2, proof, root))
        self.assertFalse(verify_deposit_proof(self.indexer.leaves[2], 2, proof[:-1], root))

    def test_out_of_range(self):
        with self.assertRaises(ValueError):
            self.indexer.get_proof(6)
        with self.assertRaises(ValueError):
            self.indexer.get_proof(2, deposit_count=2)
        with self.assertRaises(ValueError):
            self.indexer.root_at(7)
        self.assertFalse(self.indexer.verify_proof(9, [], self.indexer.root()))

    def test_rejects_gap_in_events(self):
        indexer = DepositIndexer()
        indexer.add_event(self.events[0])
        with self.assertRaises(ValueError):
            indexer.add_event(self.events[2])
        self.assertEqual(indexer.deposit_count, 1)


class TestEventLogFiles(unittest.TestCase):
    """JSON Lines event logs"""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.log_path = os.path.join(self.tmpdir.name, "events.jsonl")
        self.events = make_events(4)
        with open(self.log_path, "w") as f:
            for event in self.events:
                f.write(json.dumps(event.to_dict()) + "\n")

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_replay_event_log(self):
        result = replay_event_log(self.log_path)
        self.assertEqual(result.deposit_count, 4)
        self.assertEqual(result.root, DepositIndexer.from_events(self.events).root())
        self.assertEqual(result.accumulator.root(), result.root)

    def test_generate_deposit_proof(self):
        result = generate_deposit_proof(self.log_path, 3)
        self.assertEqual(result.metadata["deposit_index"], 3)
        self.assertEqual(result.metadata["deposit_count"], 4)
        self.assertEqual(result.metadata["proof_length"], DEPOSIT_CONTRACT_TREE_DEPTH + 1)
        self.assertEqual(result.metadata["amount"], 32000000004)
        self.assertTrue(verify_deposit_proof(result.leaf, 3, result.proof, result.root))

    def test_invalid_json_line(self):
        with open(self.log_path, "a") as f:
            f.write("not json\n")
        with self.assertRaises(ValueError) as ctx:
            replay_event_log(self.log_path)
        self.assertIn(":5:", str(ctx.exception))

    def test_missing_log(self):
        with self.assertRaises(FileNotFoundError):
            replay_event_log(os.path.join(self.tmpdir.name, "missing.jsonl"))


class TestThreeDepositScenario(unittest.TestCase):
    """
    Three deposits A, B, C submitted in order: hand-computed roots after each
    step and a proof for A rebuilt from the logged events.
    """

    def setUp(self):
        self.zero = ZeroHashTable.initialize()
        env = patch.dict(os.environ, {"DEPOSIT_TREE_STATE_FILE": "", "DEPOSIT_TREE_EVENT_LOG": ""})
        env.start()
        self.addCleanup(env.stop)
        self.service = DepositService()
        self.records = [make_deposit(0xa1), make_deposit(0xb2), make_deposit(0xc3)]

    def expected_root(self, leaves):
        level = list(leaves)
        for height in range(DEPOSIT_CONTRACT_TREE_DEPTH):
            if len(level) % 2 == 1:
                level.append(self.zero[height])
            level = [hash_concat(level[i], level[i + 1]) for i in range(0, len(level), 2)]
        return mix_in_length(level[0], len(leaves))

    def test_scenario(self):
        leaves = []
        receipts = []
        for record in self.records:
            receipt = self.service.submit_deposit(
                record.pubkey, record.withdrawal_credentials, record.amount, record.signature
            )
            receipts.append(receipt)
            leaves.append(
                encode_deposit_leaf(
                    record.pubkey, record.withdrawal_credentials, record.amount, record.signature
                )
            )
            self.assertEqual(receipt.leaf, leaves[-1])
            self.assertEqual(receipt.deposit_root, self.expected_root(leaves))

        self.assertEqual([r.index for r in receipts], [0, 1, 2])
        self.assertEqual([r.deposit_count for r in receipts], [1, 2, 3])
        self.assertEqual(self.service.get_deposit_count(), 3)

        # A client that only saw the events rebuilds the tree and proves A
        logged = [DepositEvent.from_dict(r.event.to_dict()) for r in receipts]
        indexer = DepositIndexer.from_events(logged)
        final_root = self.service.get_deposit_root()
        self.assertEqual(indexer.root(), final_root)

        proof = indexer.get_proof(0)
        self.assertEqual(proof[0], leaves[1])
        self.assertEqual(proof[1], hash_concat(leaves[2], self.zero[0]))
        self.assertEqual(proof[2:DEPOSIT_CONTRACT_TREE_DEPTH], list(self.zero.as_tuple()[2:]))
        self.assertTrue(verify_deposit_proof(leaves[0], 0, proof, final_root))
        self.assertEqual(compute_root_from_proof(leaves[0], 0, proof), final_root)

        # A proof against the two-deposit root still verifies for A
        earlier = indexer.get_proof(0, deposit_count=2)
        self.assertTrue(verify_deposit_proof(leaves[0], 0, earlier, receipts[1].deposit_root))


if __name__ == '__main__':
    unittest.main()
