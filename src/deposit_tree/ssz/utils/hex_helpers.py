"""
Hex String Utilities

This module provides utilities for converting between the raw bytes used by
the deposit tree and the 0x-prefixed hex strings used in JSON state files,
event logs and API payloads.
"""

from typing import Optional


def normalize_hex(hex_str: str, expected_bytes: Optional[int] = None) -> str:
    """
    Normalize a hex string to ensure proper formatting.

    Args:
        hex_str: The hex string to normalize (should start with '0x')
        expected_bytes: Optional expected byte length for validation

    Returns:
        Normalized lowercase hex string with proper padding

    Raises:
        ValueError: If the hex string contains invalid characters or has
            the wrong length

    Examples:
        >>> normalize_hex("0x123")
        "0x0123"
        >>> normalize_hex("0xABCD")
        "0xabcd"
    """
    if not isinstance(hex_str, str) or not hex_str.startswith("0x"):
        return hex_str

    hex_part = hex_str[2:]

    # Validate hex characters
    if not all(c in "0123456789abcdefABCDEF" for c in hex_part):
        raise ValueError(f"Invalid hex string: {hex_str}")

    # Pad to even length
    if len(hex_part) % 2 == 1:
        hex_part = "0" + hex_part

    normalized = "0x" + hex_part.lower()

    # Validate expected byte length if provided
    if expected_bytes is not None:
        actual_bytes = len(hex_part) // 2
        if actual_bytes != expected_bytes:
            raise ValueError(f"Expected {expected_bytes} bytes, got {actual_bytes} bytes")

    return normalized


def hex_to_bytes(hex_str: str) -> bytes:
    """
    Convert a hex string to bytes.

    Args:
        hex_str: Hex string (with or without '0x' prefix)

    Returns:
        Bytes representation of the hex string

    Raises:
        ValueError: If the string is not valid hex

    Examples:
        >>> hex_to_bytes("0x1234")
        b'\\x12\\x34'
        >>> hex_to_bytes("1234")
        b'\\x12\\x34'
    """
    if hex_str.startswith("0x"):
        hex_str = hex_str[2:]

    # Pad to even length
    if len(hex_str) % 2 == 1:
        hex_str = "0" + hex_str

    return bytes.fromhex(hex_str)


def bytes_to_hex(data: bytes, prefix: bool = True) -> str:
    """
    Convert bytes to a hex string.

    Args:
        data: Bytes to convert
        prefix: Whether to include '0x' prefix

    Returns:
        Hex string representation

    Examples:
        >>> bytes_to_hex(b'\\x12\\x34')
        "0x1234"
        >>> bytes_to_hex(b'\\x12\\x34', prefix=False)
        "1234"
    """
    hex_str = bytes(data).hex()
    return f"0x{hex_str}" if prefix else hex_str


def validate_hex_length(hex_str: str, expected_bytes: int) -> bool:
    """
    Validate that a hex string represents the expected number of bytes.

    Args:
        hex_str: The hex string to validate
        expected_bytes: Expected number of bytes

    Returns:
        True if the hex string has the correct length
    """
    if not isinstance(hex_str, str) or not hex_str.startswith("0x"):
        return False

    hex_part = hex_str[2:]
    if len(hex_part) % 2 == 1:
        return False

    return len(hex_part) // 2 == expected_bytes
