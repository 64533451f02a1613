"""
Incremental Merkle Accumulator

This module implements the append-only deposit tree. Instead of storing
every node it keeps one "branch" node per height: after N appends,
branch[h] holds the root of the closed, fully populated subtree of height h
that corresponds to bit h of N. Appending touches a single branch slot and
at most DEPOSIT_CONTRACT_TREE_DEPTH hashes; the root is recomputed from the
branch and the zero hashes, then mixed with the deposit count.
"""

import logging
from typing import Any, Dict, List, Sequence, Tuple

from ..constants import (
    DEPOSIT_CONTRACT_TREE_DEPTH,
    MAX_DEPOSIT_COUNT,
    HASH_SIZE,
    ZERO_CHUNK,
)
from ..errors import CapacityExceededError, MalformedRecordError
from ..serialization import to_little_endian_64
from ..utils import bytes_to_hex, hex_to_bytes
from .core import hash_concat, mix_in_length
from .zero_hashes import ZeroHashTable

logger = logging.getLogger(__name__)


class IncrementalMerkleAccumulator:
    """
    Fixed-depth append-only Merkle tree holding only its frontier.

    The accumulator exclusively owns its branch, its zero hash table and its
    deposit count. It is not thread-safe: callers sharing one instance must
    serialize `append` (and keep `root` out of a running append).
    """

    def __init__(self):
        self._zero_hashes = ZeroHashTable.initialize(DEPOSIT_CONTRACT_TREE_DEPTH)
        self._branch: List[bytes] = [ZERO_CHUNK] * DEPOSIT_CONTRACT_TREE_DEPTH
        self._deposit_count = 0

    @property
    def deposit_count(self) -> int:
        """Number of leaves appended so far."""
        return self._deposit_count

    @property
    def zero_hashes(self) -> ZeroHashTable:
        return self._zero_hashes

    @property
    def branch(self) -> Tuple[bytes, ...]:
        """Snapshot of the branch, lowest height first."""
        return tuple(self._branch)

    def deposit_count_bytes(self) -> bytes:
        """Deposit count as 8 little-endian bytes."""
        return to_little_endian_64(self._deposit_count)

    def append(self, leaf: bytes) -> Tuple[int, bytes]:
        """
        Add a leaf to the tree.

        The branch slot to overwrite is the lowest height whose bit is set in
        the count *after* this append; every height below it holds a closed
        subtree that is folded into the new node on the way up.

        Args:
            leaf: 32-byte leaf value (a DepositData root)

        Returns:
            Tuple of (new deposit count, new deposit root)

        Raises:
            MalformedRecordError: If leaf is not 32 bytes
            CapacityExceededError: If the tree already holds MAX_DEPOSIT_COUNT leaves
        """
        if not isinstance(leaf, (bytes, bytearray)) or len(leaf) != HASH_SIZE:
            raise MalformedRecordError(f"Leaf must be {HASH_SIZE} bytes")
        if self._deposit_count >= MAX_DEPOSIT_COUNT:
            raise CapacityExceededError(
                f"Deposit tree is full ({MAX_DEPOSIT_COUNT} deposits)"
            )

        node = bytes(leaf)
        new_count = self._deposit_count + 1
        size = new_count
        for height in range(DEPOSIT_CONTRACT_TREE_DEPTH):
            if size & 1 == 1:
                self._branch[height] = node
                logger.debug(f"Deposit {new_count - 1} stored at branch height {height}")
                break
            node = hash_concat(self._branch[height], node)
            size >>= 1

        self._deposit_count = new_count
        return new_count, self.root()

    def root(self) -> bytes:
        """
        Compute the deposit root.

        Walks the heights from the leaves up: where bit h of the count is set
        the closed subtree in branch[h] sits on the left, otherwise the node
        is paired with the empty subtree of that height. The count is then
        mixed in.

        Returns:
            32-byte deposit root
        """
        node = ZERO_CHUNK
        size = self._deposit_count
        for height in range(DEPOSIT_CONTRACT_TREE_DEPTH):
            if size & 1 == 1:
                node = hash_concat(self._branch[height], node)
            else:
                node = hash_concat(node, self._zero_hashes[height])
            size >>= 1
        return mix_in_length(node, self._deposit_count)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize the persisted state layout: zero hashes, branch, count.

        Returns:
            Dictionary with hex-encoded hashes
        """
        return {
            "zero_hashes": [bytes_to_hex(h) for h in self._zero_hashes],
            "branch": [bytes_to_hex(h) for h in self._branch],
            "deposit_count": self._deposit_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IncrementalMerkleAccumulator":
        """
        Restore an accumulator from the layout written by to_dict.

        Raises:
            ValueError: If the layout is malformed or the stored zero hashes
                differ from the computed table
        """
        branch = [hex_to_bytes(h) for h in data["branch"]]
        accumulator = cls.from_snapshot(branch, int(data["deposit_count"]))

        stored_zero_hashes = data.get("zero_hashes")
        if stored_zero_hashes is not None:
            stored = tuple(hex_to_bytes(h) for h in stored_zero_hashes)
            if stored != accumulator.zero_hashes.as_tuple():
                raise ValueError("Stored zero hashes do not match the computed table")
        return accumulator

    @classmethod
    def from_snapshot(
        cls, branch: Sequence[bytes], deposit_count: int
    ) -> "IncrementalMerkleAccumulator":
        """
        Build an accumulator from a branch and deposit count.

        Args:
            branch: DEPOSIT_CONTRACT_TREE_DEPTH 32-byte nodes
            deposit_count: Number of deposits the branch covers

        Raises:
            ValueError: If the branch or count is out of range
        """
        if len(branch) != DEPOSIT_CONTRACT_TREE_DEPTH:
            raise ValueError(
                f"Branch must have {DEPOSIT_CONTRACT_TREE_DEPTH} nodes, got {len(branch)}"
            )
        for node in branch:
            if len(node) != HASH_SIZE:
                raise ValueError(f"Branch nodes must be {HASH_SIZE} bytes")
        if not 0 <= deposit_count <= MAX_DEPOSIT_COUNT:
            raise ValueError(f"Deposit count {deposit_count} out of range")

        accumulator = cls()
        accumulator._branch = [bytes(node) for node in branch]
        accumulator._deposit_count = deposit_count
        return accumulator

