"""
SSZ Basic Serialization Functions

This module implements the SSZ serialization helpers needed by the deposit
tree: little-endian unsigned integers, fixed-length byte vectors and chunk
padding.

SSZ is a serialization format used throughout the Ethereum beacon chain for
encoding data structures in a deterministic, merkle-tree-friendly manner.

References:
- SSZ Specification: https://github.com/ethereum/consensus-specs/blob/dev/ssz/simple-serialize.md
"""

from .constants import BYTES_PER_CHUNK, UINT64_SIZE
from .errors import MalformedRecordError


def serialize_uint64(value: int) -> bytes:
    """
    Serialize a 64-bit unsigned integer to SSZ format.

    SSZ Rule: Integers are serialized as little-endian byte arrays
    of their respective byte length.

    Args:
        value: Integer value (0 <= value < 2^64)

    Returns:
        8-byte little-endian representation

    Raises:
        ValueError: If value is negative
        OverflowError: If value is too large for uint64

    Examples:
        >>> serialize_uint64(0)
        b'\\x00\\x00\\x00\\x00\\x00\\x00\\x00\\x00'
        >>> serialize_uint64(1)
        b'\\x01\\x00\\x00\\x00\\x00\\x00\\x00\\x00'
        >>> serialize_uint64(1234567890)
        b'\\xd2\\x02\\x96\\x49\\x00\\x00\\x00\\x00'
    """
    if value < 0:
        raise ValueError("uint64 values must be non-negative")
    if value >= 2**64:
        raise OverflowError("Value too large for uint64")

    return value.to_bytes(UINT64_SIZE, "little")


def deserialize_uint64(data: bytes) -> int:
    """
    Deserialize an 8-byte little-endian SSZ uint64.

    Raises:
        MalformedRecordError: If data is not exactly 8 bytes
    """
    if len(data) != UINT64_SIZE:
        raise MalformedRecordError(f"uint64 requires {UINT64_SIZE} bytes, got {len(data)}")
    return int.from_bytes(data, "little")


def to_little_endian_64(value: int) -> bytes:
    """Deposit-contract spelling of serialize_uint64, used for event fields."""
    return serialize_uint64(value)


def serialize_bytes(value: bytes, length: int) -> bytes:
    """
    Serialize a fixed-length byte vector.

    The value is returned unchanged once its length is checked; SSZ byte
    vectors have no length prefix.

    Args:
        value: Bytes to serialize
        length: Required length

    Returns:
        The value itself

    Raises:
        MalformedRecordError: If the length does not match
    """
    if not isinstance(value, (bytes, bytearray)):
        raise MalformedRecordError(f"Expected bytes, got {type(value).__name__}")
    if len(value) != length:
        raise MalformedRecordError(f"Expected {length} bytes, got {len(value)}")
    return bytes(value)


def pad_to_chunk(data: bytes) -> bytes:
    """
    Right-pad data with zero bytes up to one 32-byte chunk.

    Raises:
        ValueError: If data is already longer than a chunk
    """
    if len(data) > BYTES_PER_CHUNK:
        raise ValueError(f"Cannot pad {len(data)} bytes into a {BYTES_PER_CHUNK}-byte chunk")
    return data + b"\x00" * (BYTES_PER_CHUNK - len(data))


def split_into_chunks(data: bytes) -> list:
    """
    Split data into 32-byte chunks, zero-padding the last one.

    Examples:
        >>> len(split_into_chunks(b'\\x01' * 96))
        3
    """
    chunks = [data[i : i + BYTES_PER_CHUNK] for i in range(0, len(data), BYTES_PER_CHUNK)]
    if chunks and len(chunks[-1]) < BYTES_PER_CHUNK:
        chunks[-1] = pad_to_chunk(chunks[-1])
    return chunks
