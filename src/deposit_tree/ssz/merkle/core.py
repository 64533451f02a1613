"""
Core Merkle Functions for SSZ

This module implements the merkleization primitives shared by the deposit
leaf encoder, the incremental accumulator and the proof helpers.

SSZ Merkleization Rules used here:
- Basic types are padded to 32 bytes (or chunked and merkleized if >32 bytes)
- Lists are merkleized with length mixing
- Containers have their field roots merkleized

References:
- SSZ Specification: https://github.com/ethereum/consensus-specs/blob/dev/ssz/simple-serialize.md
"""

from hashlib import sha256
from typing import Any, List

from ..constants import BYTES_PER_CHUNK, ZERO_CHUNK
from ..errors import MalformedRecordError
from ..serialization import (
    serialize_uint64,
    serialize_bytes,
    pad_to_chunk,
    split_into_chunks,
)


def hash_concat(left: bytes, right: bytes) -> bytes:
    """
    Hash the concatenation of two 32-byte nodes.

    This is the only hash invocation used by the tree: SHA256 over the exact
    64-byte concatenation, no domain separation.
    """
    return sha256(left + right).digest()


def mix_in_length(root: bytes, length: int) -> bytes:
    """
    Mix a list length into a merkle root.

    The length is serialized as a little-endian uint64 and right-padded to
    a full chunk, so lists sharing a prefix but differing in length never
    produce the same root.

    Args:
        root: 32-byte root of the list contents
        length: Number of elements in the list

    Returns:
        32-byte root with the length mixed in
    """
    return hash_concat(root, pad_to_chunk(serialize_uint64(length)))


def merkle_root_basic(value: Any, type_str: str) -> bytes:
    """
    Calculate the merkle root for the basic SSZ types found in DepositData.

    Args:
        value: The value to merkleize
        type_str: SSZ type string ('uint64', 'bytes32', 'bytes48', 'bytes96')

    Returns:
        32-byte merkle root (padded value or hash)

    Raises:
        MalformedRecordError: If a byte vector has the wrong length
        ValueError: If the type is not supported

    Examples:
        >>> merkle_root_basic(123, 'uint64')  # Returns padded uint64
        >>> merkle_root_basic(b'\\x01' * 32, 'bytes32')  # Returns as-is
        >>> merkle_root_basic(b'\\x01' * 48, 'bytes48')  # Returns hash
    """
    if type_str == "uint64":
        if not isinstance(value, int) or isinstance(value, bool):
            raise MalformedRecordError(f"uint64 value must be an int, got {type(value).__name__}")
        try:
            serialized = serialize_uint64(value)
        except (ValueError, OverflowError) as e:
            raise MalformedRecordError(str(e)) from e
        return pad_to_chunk(serialized)  # Return padded value, no hash
    elif type_str.startswith("bytes"):
        length = int(type_str[len("bytes"):])
        serialized = serialize_bytes(value, length)
        if length <= BYTES_PER_CHUNK:
            return pad_to_chunk(serialized)
        # >32 bytes: split into chunks and merkleize (BLS pubkey / signature)
        return merkle_root_list(split_into_chunks(serialized))
    else:
        raise ValueError(f"Unsupported basic type: {type_str}")


def merkle_root_list(roots: List[bytes]) -> bytes:
    """
    Calculate merkle root of a list of 32-byte roots.

    This is the fundamental building block for merkleization.
    The list is padded to the next power of two and then
    a binary merkle tree is constructed.

    Args:
        roots: List of 32-byte hash values

    Returns:
        32-byte merkle root

    Examples:
        >>> merkle_root_list([b'\\x01' * 32, b'\\x02' * 32])
        >>> merkle_root_list([])  # Returns zero hash
    """
    if not roots:
        return ZERO_CHUNK

    # Pad to next power of two
    n = len(roots)
    num_leaves = 1 << (n - 1).bit_length()
    padded = list(roots) + [ZERO_CHUNK] * (num_leaves - n)

    return build_merkle_tree(padded)[-1][0]


def merkle_root_container(obj: Any, fields: List[tuple]) -> bytes:
    """
    Calculate merkle root for an SSZ container.

    Containers are merkleized by calculating the merkle root of each field
    and then merkleizing the list of field roots.

    Args:
        obj: The container object
        fields: List of (field_name, field_type) tuples describing the container

    Returns:
        32-byte merkle root of the container
    """
    field_roots = [
        merkle_root_basic(getattr(obj, field_name), field_type)
        for field_name, field_type in fields
    ]
    return merkle_root_list(field_roots)


def build_merkle_tree(leaves: List[bytes]) -> List[List[bytes]]:
    """
    Build a complete binary merkle tree from leaf nodes.

    Returns the full tree structure, with leaves at index 0
    and root at the last index.

    Args:
        leaves: List of 32-byte leaf hashes (should be power-of-two length)

    Returns:
        List of tree levels, from leaves to root

    Examples:
        >>> tree = build_merkle_tree([b'\\x01'*32, b'\\x02'*32])
        >>> root = tree[-1][0]  # Root is at top level
    """
    if not leaves:
        return [[ZERO_CHUNK]]

    tree = [leaves]
    current = leaves

    while len(current) > 1:
        next_level = []
        for i in range(0, len(current), 2):
            left = current[i]
            right = current[i + 1] if i + 1 < len(current) else ZERO_CHUNK
            next_level.append(hash_concat(left, right))
        tree.append(next_level)
        current = next_level

    return tree
