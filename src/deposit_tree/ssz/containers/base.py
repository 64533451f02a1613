"""
Base SSZ Container Classes

This module provides the base class for SSZ containers.
All SSZ containers implement merkleization according to the SSZ specification.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Tuple

from ..merkle.core import merkle_root_container
from ..utils import bytes_to_hex


class SSZContainer(ABC):
    """
    Abstract base class for SSZ containers.

    Subclasses are dataclasses describing their fields with get_fields();
    the default merkle_root() merkleizes the field roots in that order.
    """

    @classmethod
    @abstractmethod
    def get_fields(cls) -> List[Tuple[str, str]]:
        """
        Get the field definitions for this container.

        Returns:
            List of (field_name, field_type) tuples
        """
        pass

    def merkle_root(self) -> bytes:
        """
        Calculate the SSZ merkle root for this container.

        Returns:
            32-byte merkle root
        """
        return merkle_root_container(self, self.get_fields())

    def __post_init__(self):
        """Called after dataclass initialization to perform validation."""
        self._validate_fields()

    def _validate_fields(self):
        """Validate that all required fields are present."""
        for field_name, _ in self.get_fields():
            if not hasattr(self, field_name):
                raise ValueError(f"Missing required field: {field_name}")

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert container to dictionary representation.

        Byte fields are rendered as 0x-prefixed hex strings.

        Returns:
            Dictionary with field names as keys
        """
        result = {}
        for field_name, _ in self.get_fields():
            value = getattr(self, field_name)
            if isinstance(value, SSZContainer):
                result[field_name] = value.to_dict()
            elif isinstance(value, (bytes, bytearray)):
                result[field_name] = bytes_to_hex(value)
            else:
                result[field_name] = value
        return result
