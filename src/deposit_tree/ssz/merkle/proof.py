"""
Merkle Proof Generation and Verification

This module provides functions for generating and verifying merkle proofs
against the deposit tree. A deposit proof holds one sibling per tree level
followed by the length chunk, so it can be checked against the
length-mixed deposit root with the same fold used for the siblings.
"""

from typing import List, Optional

from ..constants import DEPOSIT_CONTRACT_TREE_DEPTH
from ..serialization import serialize_uint64, pad_to_chunk
from .core import hash_concat
from .zero_hashes import ZeroHashTable


def get_fixed_capacity_proof(
    leaves: List[bytes],
    index: int,
    capacity: int,
    zero_hashes: Optional[ZeroHashTable] = None,
) -> List[bytes]:
    """
    Build a Merkle proof for `index` in a tree of exactly `capacity` leaves,
    where:
      • The first len(leaves) are "real" leaf hashes (32 bytes each).
      • The remaining (capacity - len(leaves)) leaf positions are implicitly zero-leaves.
    capacity must be a power of two (2^32 for deposits).
    Returns a list of log2(capacity) sibling hashes.
    """
    if capacity <= 0 or capacity & (capacity - 1) != 0:
        raise ValueError("capacity must be a power of two")
    n_real = len(leaves)
    if not 0 <= index < n_real:
        raise ValueError(f"Index {index} must lie within the real leaves (0-{n_real - 1})")

    depth = capacity.bit_length() - 1
    if zero_hashes is None:
        zero_hashes = ZeroHashTable.initialize(max(depth, 1))

    proof: List[bytes] = []
    # nodes = the "real" nodes at the current level; everything past them is zero[level]
    nodes = list(leaves)
    current_index = index

    for level in range(depth):
        sibling_index = current_index ^ 1
        if sibling_index < len(nodes):
            proof.append(nodes[sibling_index])
        else:
            proof.append(zero_hashes[level])

        # Build the next level from the real nodes only
        parents = []
        for i in range(0, len(nodes), 2):
            left = nodes[i]
            right = nodes[i + 1] if (i + 1) < len(nodes) else zero_hashes[level]
            parents.append(hash_concat(left, right))
        nodes = parents

        current_index //= 2

    return proof


def get_deposit_proof(
    leaves: List[bytes], index: int, zero_hashes: Optional[ZeroHashTable] = None
) -> List[bytes]:
    """
    Build the proof for deposit `index` against the root of `leaves`.

    Args:
        leaves: Deposit leaves in append order (the tree being proven against)
        index: Position of the deposit to prove
        zero_hashes: Optional precomputed zero hash table

    Returns:
        DEPOSIT_CONTRACT_TREE_DEPTH sibling hashes followed by the length chunk
    """
    proof = get_fixed_capacity_proof(
        leaves, index, 2**DEPOSIT_CONTRACT_TREE_DEPTH, zero_hashes
    )
    # Add length mixing
    proof.append(pad_to_chunk(serialize_uint64(len(leaves))))
    return proof


def compute_root_from_proof(leaf: bytes, index: int, proof: List[bytes]) -> bytes:
    """
    Rebuild the merkle root from a 32-byte leaf and its fixed-capacity proof.

    Args:
        leaf: 32-byte hash of the target element
        index: 0-based position of that leaf in the capacity-sized tree
        proof: List of sibling hashes, one per level

    Returns:
        The reconstructed 32-byte merkle root

    Examples:
        >>> root = compute_root_from_proof(leaf_hash, 5, proof_siblings)
    """
    current = leaf
    for level, sibling in enumerate(proof):
        # Check the bit at position `level` in `index`:
        if ((index >> level) & 1) == 0:
            # Our node was on the left, sibling is on the right
            current = hash_concat(current, sibling)
        else:
            # Our node was on the right, sibling is on the left
            current = hash_concat(sibling, current)
    return current


def verify_merkle_proof(
    leaf: bytes, proof: List[bytes], index: int, root: bytes
) -> bool:
    """
    Verify a merkle proof against a known root.

    Args:
        leaf: The leaf value being proven
        proof: List of sibling hashes
        index: Index of the leaf in the tree
        root: Expected merkle root

    Returns:
        True if the proof is valid

    Examples:
        >>> is_valid = verify_merkle_proof(leaf, proof, 5, expected_root)
    """
    return compute_root_from_proof(leaf, index, proof) == root


def verify_deposit_proof(
    leaf: bytes, index: int, proof: List[bytes], root: bytes
) -> bool:
    """
    Verify a deposit proof (siblings plus length chunk) against a deposit root.

    Returns:
        True if the proof has the expected length and reproduces the root
    """
    if len(proof) != DEPOSIT_CONTRACT_TREE_DEPTH + 1:
        return False
    if index >= 2**DEPOSIT_CONTRACT_TREE_DEPTH:
        return False
    return verify_merkle_proof(leaf, proof, index, root)


def get_proof_indices(index: int, tree_depth: int) -> List[int]:
    """
    Calculate the sibling indices for a merkle proof path.

    Args:
        index: Index of the target leaf
        tree_depth: Depth of the merkle tree

    Returns:
        List of sibling indices at each level

    Examples:
        >>> indices = get_proof_indices(5, 10)  # Proof path for index 5 in depth-10 tree
    """
    indices = []
    current_index = index

    for _ in range(tree_depth):
        sibling_index = current_index ^ 1
        indices.append(sibling_index)
        current_index //= 2

    return indices
