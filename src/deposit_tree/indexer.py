"""
Deposit Log Indexer

Rebuilds the deposit tree from the deposit event log and answers the
questions the accumulator deliberately cannot: the root of any earlier
prefix of the log and inclusion proofs for individual deposits. It keeps
every leaf in memory, so it lives outside the accumulator's hot path.
"""

import json
import logging
from typing import Iterable, List, Optional

from .ssz import (
    DEPOSIT_CONTRACT_TREE_DEPTH,
    DepositEvent,
    IncrementalMerkleAccumulator,
    ZeroHashTable,
    get_deposit_proof,
    merkle_root_list_fixed,
    mix_in_length,
    verify_deposit_proof,
)

logger = logging.getLogger(__name__)


class DepositIndexer:
    """
    Replays deposit events into a leaf list and a shadow accumulator.

    Events must arrive in index order with no gaps; the accumulator root
    after each event is the deposit root observed at that point.
    """

    def __init__(self):
        self._zero_hashes = ZeroHashTable.initialize(DEPOSIT_CONTRACT_TREE_DEPTH)
        self._accumulator = IncrementalMerkleAccumulator()
        self._leaves: List[bytes] = []
        self._events: List[DepositEvent] = []

    @classmethod
    def from_events(cls, events: Iterable[DepositEvent]) -> "DepositIndexer":
        indexer = cls()
        for event in events:
            indexer.add_event(event)
        return indexer

    @classmethod
    def from_log_file(cls, path: str) -> "DepositIndexer":
        """
        Replay a JSON Lines event log (one DepositEvent.to_dict() per line).

        Raises:
            FileNotFoundError: If the log does not exist
            ValueError: If a line is not a valid, contiguous event
        """
        indexer = cls()
        with open(path, "r") as f:
            for line_number, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    event = DepositEvent.from_dict(json.loads(line))
                except json.JSONDecodeError as e:
                    raise ValueError(f"{path}:{line_number}: invalid JSON: {e}") from e
                indexer.add_event(event)
        logger.info(f"Replayed {indexer.deposit_count} deposits from {path}")
        return indexer

    @property
    def deposit_count(self) -> int:
        return self._accumulator.deposit_count

    @property
    def leaves(self) -> List[bytes]:
        return list(self._leaves)

    @property
    def events(self) -> List[DepositEvent]:
        return list(self._events)

    @property
    def accumulator(self) -> IncrementalMerkleAccumulator:
        return self._accumulator

    def add_event(self, event: DepositEvent) -> bytes:
        """
        Add the next deposit event.

        Returns:
            The deposit root after this deposit

        Raises:
            ValueError: If the event index is not the next expected index
        """
        expected = self.deposit_count
        if event.deposit_index != expected:
            raise ValueError(
                f"Out-of-order deposit event: expected index {expected}, got {event.deposit_index}"
            )
        leaf = event.leaf()
        _, root = self._accumulator.append(leaf)
        self._leaves.append(leaf)
        self._events.append(event)
        return root

    def root(self) -> bytes:
        """Current deposit root."""
        return self._accumulator.root()

    def root_at(self, deposit_count: int) -> bytes:
        """
        Deposit root of the first `deposit_count` deposits.

        Computed from the leaves directly rather than from the branch, so it
        also serves as an independent check of the accumulator.
        """
        self._check_count(deposit_count)
        node = merkle_root_list_fixed(
            self._leaves[:deposit_count],
            2**DEPOSIT_CONTRACT_TREE_DEPTH,
            self._zero_hashes,
        )
        return mix_in_length(node, deposit_count)

    def get_proof(self, index: int, deposit_count: Optional[int] = None) -> List[bytes]:
        """
        Inclusion proof for deposit `index`.

        Args:
            index: Deposit index to prove
            deposit_count: Size of the tree to prove against (defaults to all
                replayed deposits); must be greater than index

        Returns:
            DEPOSIT_CONTRACT_TREE_DEPTH siblings followed by the length chunk
        """
        if deposit_count is None:
            deposit_count = self.deposit_count
        self._check_count(deposit_count)
        if not 0 <= index < deposit_count:
            raise ValueError(
                f"Deposit index {index} out of range for deposit count {deposit_count}"
            )
        return get_deposit_proof(self._leaves[:deposit_count], index, self._zero_hashes)

    def verify_proof(self, index: int, proof: List[bytes], root: bytes) -> bool:
        """Check a proof for deposit `index` against `root`."""
        if not 0 <= index < self.deposit_count:
            return False
        return verify_deposit_proof(self._leaves[index], index, proof, root)

    def _check_count(self, deposit_count: int):
        if not 0 <= deposit_count <= self.deposit_count:
            raise ValueError(
                f"Deposit count {deposit_count} out of range (0-{self.deposit_count})"
            )
