"""
Deposit Tree Constants

This module contains the protocol constants used by the deposit accumulator
and the DepositData merkleization. They mirror the values hard-coded in the
beacon chain deposit contract and must not be changed: independently
verifying clients depend on them bit for bit.

References:
- Deposit contract: https://github.com/ethereum/consensus-specs/tree/dev/solidity_deposit_contract
- SSZ Specification: https://github.com/ethereum/consensus-specs/blob/dev/ssz/simple-serialize.md
"""

# ====================
# Tree Shape
# ====================

# Depth of the deposit Merkle tree (number of levels below the length mix-in)
DEPOSIT_CONTRACT_TREE_DEPTH = 32

# Largest number of deposits the tree accepts: 2^DEPTH - 1
# (the last leaf slot is never filled so the branch update always terminates)
MAX_DEPOSIT_COUNT = 2**DEPOSIT_CONTRACT_TREE_DEPTH - 1

# ====================
# DepositData Field Sizes
# ====================

# BLS public key size
PUBKEY_LENGTH = 48

# Withdrawal credentials (prefix byte + 31 byte commitment)
WITHDRAWAL_CREDENTIALS_LENGTH = 32

# BLS signature size
SIGNATURE_LENGTH = 96

# Deposit amount, little-endian uint64 in Gwei
AMOUNT_LENGTH = 8

# ====================
# SSZ Type Constants
# ====================

# Size of one merkleization chunk (and of a SHA256 digest)
BYTES_PER_CHUNK = 32

# Standard hash output size
HASH_SIZE = 32

# Standard sizes for fixed-width types
UINT64_SIZE = 8
MAX_UINT64 = 2**64 - 1

# Empty 32-byte chunk
ZERO_CHUNK = b"\x00" * BYTES_PER_CHUNK
