"""
Deposit Tree

Append-only SSZ deposit tree for proof-of-stake validator deposits: leaf
encoding, the fixed-depth incremental Merkle accumulator, event-log replay
and deposit inclusion proofs.
"""

from .ssz import (
    DEPOSIT_CONTRACT_TREE_DEPTH,
    MAX_DEPOSIT_COUNT,
    CapacityExceededError,
    DepositData,
    DepositEvent,
    DepositTreeError,
    IncrementalMerkleAccumulator,
    MalformedRecordError,
    ZeroHashTable,
    encode_deposit_leaf,
    verify_deposit_proof,
)
from .indexer import DepositIndexer

__version__ = "0.1.0"

__all__ = [
    'DEPOSIT_CONTRACT_TREE_DEPTH',
    'MAX_DEPOSIT_COUNT',
    'CapacityExceededError',
    'DepositData',
    'DepositEvent',
    'DepositIndexer',
    'DepositTreeError',
    'IncrementalMerkleAccumulator',
    'MalformedRecordError',
    'ZeroHashTable',
    'encode_deposit_leaf',
    'verify_deposit_proof',
]
