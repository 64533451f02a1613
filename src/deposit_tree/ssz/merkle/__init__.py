"""
SSZ Merkle Tree Operations

This package provides the Merkle functionality behind the deposit tree.

The module is organized into the following components:
- core: hashing, length mixing and basic/container merkleization
- zero_hashes: precomputed roots of empty subtrees
- accumulator: the append-only incremental deposit tree
- tree: fixed-capacity roots computed directly from leaves
- proof: proof generation and verification functions
"""

# Core merkleization functions
from .core import (
    hash_concat,
    mix_in_length,
    merkle_root_basic,
    merkle_root_container,
    merkle_root_list,
    build_merkle_tree,
)

from .zero_hashes import ZeroHashTable
from .accumulator import IncrementalMerkleAccumulator

# Tree building utilities
from .tree import (
    merkle_root_list_fixed,
    get_tree_depth,
)

# Proof generation and verification
from .proof import (
    get_fixed_capacity_proof,
    get_deposit_proof,
    compute_root_from_proof,
    verify_merkle_proof,
    verify_deposit_proof,
    get_proof_indices,
)

__all__ = [
    # Core functions
    "hash_concat",
    "mix_in_length",
    "merkle_root_basic",
    "merkle_root_container",
    "merkle_root_list",
    "build_merkle_tree",
    # Accumulator
    "ZeroHashTable",
    "IncrementalMerkleAccumulator",
    # Tree utilities
    "merkle_root_list_fixed",
    "get_tree_depth",
    # Proof functions
    "get_fixed_capacity_proof",
    "get_deposit_proof",
    "compute_root_from_proof",
    "verify_merkle_proof",
    "verify_deposit_proof",
    "get_proof_indices",
]
