"""
Merkle Tree Building Utilities

This module provides utilities for computing fixed-capacity merkle roots
directly from a list of leaves. The deposit indexer uses them to compute
the root of any prefix of the deposit log without the incremental branch.
"""

from typing import List, Optional

from .core import hash_concat
from .zero_hashes import ZeroHashTable


def merkle_root_list_fixed(
    chunks: List[bytes], limit: int, zero_hashes: Optional[ZeroHashTable] = None
) -> bytes:
    """
    Merkle-root a list of 32-byte chunks, exactly out to 'limit' leaves.

    This function efficiently handles large fixed-capacity lists by using
    precomputed zero hashes for padding beyond the actual data.

    Args:
        chunks: List of 32-byte chunks (actual data)
        limit: Fixed capacity (must be power of two)
        zero_hashes: Zero hash table covering log2(limit) levels

    Returns:
        32-byte merkle root

    Examples:
        >>> merkle_root_list_fixed([b'\\x01'*32, b'\\x02'*32], 1024)
    """
    n = len(chunks)

    # Validate inputs
    if not (limit & (limit - 1) == 0):
        raise ValueError("limit must be a power of two")
    if n > limit:
        raise ValueError(f"Too many leaves: {n} > {limit}")

    depth = get_tree_depth(limit)
    if zero_hashes is None:
        zero_hashes = ZeroHashTable.initialize(max(depth, 1))

    # Step A: pad the first n chunks up to m = next_pow2(n)
    m = 1 if n == 0 else 1 << (n - 1).bit_length()
    node_list = list(chunks) + [zero_hashes[0]] * (m - n)

    # Step B: climb up from m leaves to the root of that subtree
    lvl = 0
    while len(node_list) > 1:
        node_list = [
            hash_concat(node_list[i], node_list[i + 1])
            for i in range(0, len(node_list), 2)
        ]
        lvl += 1

    subtree_root = node_list[0]

    # Step C: keep doubling, hashing (subtree_root || zero[lvl]) until we reach 'limit'
    current_size = m
    while current_size < limit:
        subtree_root = hash_concat(subtree_root, zero_hashes[lvl])
        current_size *= 2
        lvl += 1

    return subtree_root


def get_tree_depth(capacity: int) -> int:
    """
    Calculate the depth of a merkle tree for given capacity.

    Args:
        capacity: Number of leaves (must be power of two)

    Returns:
        Tree depth (number of levels from leaves to root)

    Examples:
        >>> get_tree_depth(1024)  # Returns 10
        >>> get_tree_depth(8)     # Returns 3
    """
    if capacity <= 0 or not (capacity & (capacity - 1) == 0):
        raise ValueError("Capacity must be a power of two")

    return capacity.bit_length() - 1
