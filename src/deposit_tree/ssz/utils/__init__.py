"""
SSZ Utility Functions

This package provides hex string helpers used throughout the deposit tree
for JSON state files, event logs and API payloads.
"""

from .hex_helpers import (
    normalize_hex,
    hex_to_bytes,
    bytes_to_hex,
    validate_hex_length,
)

__all__ = [
    'normalize_hex',
    'hex_to_bytes',
    'bytes_to_hex',
    'validate_hex_length',
]
