"""
SSZ Deposit Tree Library

An implementation of the SSZ merkleization used by the beacon chain deposit
contract: DepositData leaf encoding, the fixed-depth incremental deposit
tree with length mixing, and deposit inclusion proofs.

Modules:
- constants: tree depth and DepositData field sizes
- errors: deposit tree exceptions
- serialization: little-endian integers and chunk padding
- merkle: hashing, zero hashes, the accumulator and proofs
- containers: DepositData and DepositEvent
- utils: hex string helpers
"""

# Core functionality
from .constants import *
from .errors import *
from .serialization import *

# Merkle operations
from .merkle import *

# Container definitions
from .containers import *

# Utilities
from .utils import *

__all__ = [
    # Constants
    'DEPOSIT_CONTRACT_TREE_DEPTH',
    'MAX_DEPOSIT_COUNT',
    'PUBKEY_LENGTH',
    'WITHDRAWAL_CREDENTIALS_LENGTH',
    'SIGNATURE_LENGTH',
    'AMOUNT_LENGTH',
    'BYTES_PER_CHUNK',
    'ZERO_CHUNK',

    # Errors
    'DepositTreeError',
    'CapacityExceededError',
    'MalformedRecordError',

    # Serialization
    'serialize_uint64',
    'deserialize_uint64',
    'to_little_endian_64',
    'serialize_bytes',
    'pad_to_chunk',
    'split_into_chunks',

    # Merkle functions
    'hash_concat',
    'mix_in_length',
    'merkle_root_basic',
    'merkle_root_container',
    'merkle_root_list',
    'build_merkle_tree',
    'merkle_root_list_fixed',
    'get_tree_depth',

    # Accumulator
    'ZeroHashTable',
    'IncrementalMerkleAccumulator',

    # Proof functions
    'get_fixed_capacity_proof',
    'get_deposit_proof',
    'compute_root_from_proof',
    'verify_merkle_proof',
    'verify_deposit_proof',
    'get_proof_indices',

    # Container classes
    'SSZContainer',
    'DepositData',
    'DepositEvent',
    'encode_deposit_leaf',

    # Utility functions
    'bytes_to_hex',
    'hex_to_bytes',
    'normalize_hex',
    'validate_hex_length',
]
