"""
Deposit Service Tests

Exercises deposit submission, event emission, persistence of the state file
and event log, and recovery from disk.
"""

import json
import os
import sys
import tempfile
import threading
import unittest
from unittest.mock import patch

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from deposit_tree.api import DepositService, DepositServiceError
from deposit_tree.main import load_state_file, replay_event_log, save_state_file
from deposit_tree.ssz import (
    DEPOSIT_CONTRACT_TREE_DEPTH,
    MAX_DEPOSIT_COUNT,
    CapacityExceededError,
    IncrementalMerkleAccumulator,
    MalformedRecordError,
    bytes_to_hex,
    verify_deposit_proof,
)


def deposit_args(seed: int):
    return (
        bytes([seed]) * 48,
        b"\x01" + bytes([seed]) * 31,
        32000000000,
        bytes([seed]) * 96,
    )


class ServiceTestCase(unittest.TestCase):
    """Base class isolating the service from DEPOSIT_TREE_* settings"""

    def setUp(self):
        env = patch.dict(os.environ, {"DEPOSIT_TREE_STATE_FILE": "", "DEPOSIT_TREE_EVENT_LOG": ""})
        env.start()
        self.addCleanup(env.stop)
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.state_file = os.path.join(self.tmpdir.name, "state.json")
        self.event_log = os.path.join(self.tmpdir.name, "events.jsonl")


class TestInMemoryService(ServiceTestCase):

    def test_submit_returns_receipt(self):
        service = DepositService()
        receipt = service.submit_deposit(*deposit_args(1))
        self.assertEqual(receipt.index, 0)
        self.assertEqual(receipt.deposit_count, 1)
        self.assertEqual(receipt.deposit_root, service.get_deposit_root())
        self.assertEqual(receipt.event.deposit_index, 0)
        self.assertEqual(receipt.event.amount_gwei, 32000000000)
        self.assertEqual(receipt.to_dict()["deposit_root"], bytes_to_hex(receipt.deposit_root))

    def test_malformed_deposit_leaves_state_untouched(self):
        service = DepositService()
        service.submit_deposit(*deposit_args(1))
        root = service.get_deposit_root()
        pubkey, withdrawal_credentials, amount, signature = deposit_args(2)
        with self.assertRaises(MalformedRecordError):
            service.submit_deposit(pubkey[:47], withdrawal_credentials, amount, signature)
        self.assertEqual(service.get_deposit_count(), 1)
        self.assertEqual(service.get_deposit_root(), root)
        self.assertEqual(len(service.get_events()), 1)

    def test_capacity_exceeded_propagates(self):
        service = DepositService()
        service._accumulator = IncrementalMerkleAccumulator.from_snapshot(
            [b"\x00" * 32] * DEPOSIT_CONTRACT_TREE_DEPTH, MAX_DEPOSIT_COUNT
        )
        with self.assertRaises(CapacityExceededError):
            service.submit_deposit(*deposit_args(1))
        self.assertEqual(service.get_deposit_count(), MAX_DEPOSIT_COUNT)
        self.assertEqual(service.get_events(), [])

    def test_submit_deposit_data(self):
        service = DepositService()
        pubkey, withdrawal_credentials, amount, signature = deposit_args(3)
        receipt = service.submit_deposit_data({
            "pubkey": bytes_to_hex(pubkey),
            "withdrawal_credentials": bytes_to_hex(withdrawal_credentials),
            "amount": str(amount),
            "signature": bytes_to_hex(signature),
        })
        self.assertEqual(receipt.index, 0)
        with self.assertRaises(MalformedRecordError):
            service.submit_deposit_data({"pubkey": bytes_to_hex(pubkey)})

    def test_state_and_branch(self):
        service = DepositService()
        for seed in range(3):
            service.submit_deposit(*deposit_args(seed))
        state = service.get_state()
        self.assertEqual(state["deposit_count"], 3)
        self.assertEqual(state["deposit_count_bytes"], "0x0300000000000000")
        self.assertEqual(state["deposit_root"], bytes_to_hex(service.get_deposit_root()))
        self.assertEqual(len(service.get_branch()), DEPOSIT_CONTRACT_TREE_DEPTH)
        self.assertEqual([bytes_to_hex(node) for node in service.get_branch()], state["branch"])

    def test_proofs_from_service(self):
        service = DepositService()
        for seed in range(5):
            service.submit_deposit(*deposit_args(seed))
        result = service.get_deposit_proof(2)
        self.assertEqual(result.root, service.get_deposit_root())
        self.assertTrue(verify_deposit_proof(result.leaf, 2, result.proof, result.root))
        with self.assertRaises(ValueError):
            service.get_deposit_proof(5)

    def test_events_slice(self):
        service = DepositService()
        for seed in range(4):
            service.submit_deposit(*deposit_args(seed))
        events = service.get_events(1, 3)
        self.assertEqual([e.deposit_index for e in events], [1, 2])

    def test_concurrent_submissions_are_serialized(self):
        service = DepositService()

        def submit(offset):
            for i in range(5):
                service.submit_deposit(*deposit_args(offset * 5 + i))

        threads = [threading.Thread(target=submit, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(service.get_deposit_count(), 20)
        indices = [e.deposit_index for e in service.get_events()]
        self.assertEqual(indices, list(range(20)))
        result = service.get_deposit_proof(19)
        self.assertEqual(result.root, service.get_deposit_root())


class TestPersistentService(ServiceTestCase):

    def test_persists_state_and_log(self):
        service = DepositService(state_file=self.state_file, event_log=self.event_log)
        for seed in range(3):
            service.submit_deposit(*deposit_args(seed))

        with open(self.event_log) as f:
            lines = [json.loads(line) for line in f if line.strip()]
        self.assertEqual(len(lines), 3)
        self.assertEqual(lines[2]["index"], "0x0200000000000000")

        accumulator = load_state_file(self.state_file)
        self.assertEqual(accumulator.deposit_count, 3)
        self.assertEqual(accumulator.root(), service.get_deposit_root())
        self.assertEqual(replay_event_log(self.event_log).root, service.get_deposit_root())

    def test_reload_continues_tree(self):
        first = DepositService(state_file=self.state_file, event_log=self.event_log)
        for seed in range(3):
            first.submit_deposit(*deposit_args(seed))
        first.submit_deposit(*deposit_args(3))
        expected_root = first.get_deposit_root()

        second = DepositService(state_file=self.state_file, event_log=self.event_log)
        self.assertEqual(second.get_deposit_count(), 4)
        self.assertEqual(second.get_deposit_root(), expected_root)
        receipt = second.submit_deposit(*deposit_args(4))
        self.assertEqual(receipt.index, 4)

        first.submit_deposit(*deposit_args(4))
        self.assertEqual(receipt.deposit_root, first.get_deposit_root())

    def test_env_configuration(self):
        with patch.dict(os.environ, {"DEPOSIT_TREE_STATE_FILE": self.state_file}):
            service = DepositService()
        self.assertEqual(service.state_file, self.state_file)
        self.assertIsNone(service.event_log)
        service.submit_deposit(*deposit_args(1))
        self.assertTrue(os.path.exists(self.state_file))

    def test_state_only_service_has_no_events(self):
        service = DepositService(state_file=self.state_file)
        service.submit_deposit(*deposit_args(1))
        self.assertFalse(service.has_event_log)
        with self.assertRaises(DepositServiceError):
            service.get_events()
        with self.assertRaises(DepositServiceError):
            service.get_deposit_proof(0)

    def test_mismatched_state_and_log(self):
        service = DepositService(state_file=self.state_file, event_log=self.event_log)
        for seed in range(2):
            service.submit_deposit(*deposit_args(seed))
        # drop the last logged event
        with open(self.event_log) as f:
            first_line = f.readline()
        with open(self.event_log, "w") as f:
            f.write(first_line)

        with self.assertRaises(DepositServiceError):
            DepositService(state_file=self.state_file, event_log=self.event_log)

    def test_corrupt_state_file(self):
        with open(self.state_file, "w") as f:
            f.write("{not json")
        with self.assertRaises(DepositServiceError):
            DepositService(state_file=self.state_file)

    def test_failed_log_write_keeps_service_consistent(self):
        service = DepositService(state_file=self.state_file, event_log=self.event_log)
        service.submit_deposit(*deposit_args(0))
        root = service.get_deposit_root()

        with patch("deposit_tree.api.deposit_service.open", create=True, side_effect=OSError("disk full")):
            with self.assertRaises(OSError):
                service.submit_deposit(*deposit_args(1))
        self.assertEqual(service.get_deposit_count(), 1)
        self.assertEqual(service.get_deposit_root(), root)
        self.assertEqual(len(service.get_events()), 1)

        receipt = service.submit_deposit(*deposit_args(1))
        self.assertEqual(receipt.index, 1)

        restarted = DepositService(state_file=self.state_file, event_log=self.event_log)
        self.assertEqual(restarted.get_deposit_count(), 2)
        self.assertEqual(restarted.get_deposit_root(), service.get_deposit_root())
        self.assertEqual([e.deposit_index for e in restarted.get_events()], [0, 1])

    def test_failed_state_write_rolls_back_log(self):
        service = DepositService(state_file=self.state_file, event_log=self.event_log)
        service.submit_deposit(*deposit_args(0))
        root = service.get_deposit_root()

        with patch("deposit_tree.api.deposit_service.save_state_file", side_effect=OSError("disk full")):
            with self.assertRaises(OSError):
                service.submit_deposit(*deposit_args(1))
        self.assertEqual(service.get_deposit_count(), 1)
        self.assertEqual(service.get_deposit_root(), root)

        with open(self.event_log) as f:
            lines = [line for line in f if line.strip()]
        self.assertEqual(len(lines), 1)

        restarted = DepositService(state_file=self.state_file, event_log=self.event_log)
        self.assertEqual(restarted.get_deposit_count(), 1)
        self.assertEqual(restarted.submit_deposit(*deposit_args(1)).index, 1)


class TestStateFile(ServiceTestCase):

    def test_failed_write_keeps_previous_state(self):
        accumulator = IncrementalMerkleAccumulator()
        accumulator.append(b"\x01" * 32)
        save_state_file(accumulator, self.state_file)
        root = accumulator.root()

        accumulator.append(b"\x02" * 32)
        with patch("deposit_tree.main.json.dump", side_effect=OSError("disk full")):
            with self.assertRaises(OSError):
                save_state_file(accumulator, self.state_file)

        restored = load_state_file(self.state_file)
        self.assertEqual(restored.deposit_count, 1)
        self.assertEqual(restored.root(), root)
        self.assertEqual(os.listdir(self.tmpdir.name), ["state.json"])

    def test_overwrites_existing_state(self):
        accumulator = IncrementalMerkleAccumulator()
        save_state_file(accumulator, self.state_file)
        accumulator.append(b"\x01" * 32)
        save_state_file(accumulator, self.state_file)
        self.assertEqual(load_state_file(self.state_file).deposit_count, 1)


if __name__ == '__main__':
    unittest.main()
