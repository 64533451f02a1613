"""
Zero Hash Table

Precomputed roots of perfectly empty subtrees, one per tree height. The
accumulator uses them in place of the (mostly empty) right-hand side of the
deposit tree, and proof helpers use them as siblings beyond the last leaf.
"""

from typing import Iterator, Tuple

from ..constants import DEPOSIT_CONTRACT_TREE_DEPTH, ZERO_CHUNK
from .core import hash_concat


class ZeroHashTable:
    """
    Immutable table of zero hashes.

    Each level h contains: SHA256(zero[h-1] || zero[h-1]), with zero[0]
    being 32 zero bytes. Recomputing the table anywhere yields identical
    values, which is what lets clients check proofs offline.
    """

    __slots__ = ("_hashes",)

    def __init__(self, hashes: Tuple[bytes, ...]):
        self._hashes = tuple(hashes)

    @classmethod
    def initialize(cls, depth: int = DEPOSIT_CONTRACT_TREE_DEPTH) -> "ZeroHashTable":
        """
        Compute the zero hashes for every height below the root.

        Args:
            depth: Number of levels (defaults to the deposit tree depth)

        Returns:
            A new ZeroHashTable with `depth` entries
        """
        hashes = [ZERO_CHUNK]
        for _ in range(depth - 1):
            hashes.append(hash_concat(hashes[-1], hashes[-1]))
        return cls(tuple(hashes))

    def __getitem__(self, height: int) -> bytes:
        return self._hashes[height]

    def __len__(self) -> int:
        return len(self._hashes)

    def __iter__(self) -> Iterator[bytes]:
        return iter(self._hashes)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ZeroHashTable):
            return NotImplemented
        return self._hashes == other._hashes

    def __hash__(self) -> int:
        return hash(self._hashes)

    def __repr__(self) -> str:
        return f"ZeroHashTable(depth={len(self._hashes)})"

    def as_tuple(self) -> Tuple[bytes, ...]:
        """Return the zero hashes as a tuple, lowest height first."""
        return self._hashes
