"""
Deposit Containers

This module defines the DepositData container, whose hash tree root is the
leaf value appended to the deposit tree, and the DepositEvent record emitted
for every accepted deposit.

DepositData merkleizes as a 4-field container:

    leaf = H( H(pubkey_root || withdrawal_credentials)
            || H(amount_chunk || signature_root) )

where pubkey_root hashes the pubkey right-padded to 64 bytes, amount_chunk is
the little-endian uint64 padded to 32 bytes, and signature_root merkleizes
the three signature chunks plus one zero chunk. Field order and padding are
part of the wire contract.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from ..constants import (
    PUBKEY_LENGTH,
    WITHDRAWAL_CREDENTIALS_LENGTH,
    SIGNATURE_LENGTH,
    AMOUNT_LENGTH,
    MAX_UINT64,
)
from ..errors import MalformedRecordError
from ..serialization import deserialize_uint64, to_little_endian_64
from ..utils import bytes_to_hex, hex_to_bytes
from .base import SSZContainer


def _parse_bytes(value: Any, length: int, field_name: str) -> bytes:
    """Accept raw bytes or a hex string and check the length."""
    if isinstance(value, str):
        try:
            value = hex_to_bytes(value)
        except ValueError as e:
            raise MalformedRecordError(f"{field_name} is not valid hex: {e}") from e
    if not isinstance(value, (bytes, bytearray)):
        raise MalformedRecordError(
            f"{field_name} must be bytes or hex string, got {type(value).__name__}"
        )
    if len(value) != length:
        raise MalformedRecordError(
            f"{field_name} must be {length} bytes, got {len(value)}"
        )
    return bytes(value)


@dataclass
class DepositData(SSZContainer):
    """
    Validator deposit record.

    Attributes:
        pubkey: 48-byte BLS public key
        withdrawal_credentials: 32-byte withdrawal credentials
        amount: Deposit amount in Gwei (uint64)
        signature: 96-byte BLS signature
    """

    pubkey: bytes
    withdrawal_credentials: bytes
    amount: int
    signature: bytes

    @classmethod
    def get_fields(cls) -> List[Tuple[str, str]]:
        return [
            ("pubkey", f"bytes{PUBKEY_LENGTH}"),
            ("withdrawal_credentials", f"bytes{WITHDRAWAL_CREDENTIALS_LENGTH}"),
            ("amount", "uint64"),
            ("signature", f"bytes{SIGNATURE_LENGTH}"),
        ]

    def _validate_fields(self):
        """Reject any record whose fields do not have their fixed sizes."""
        super()._validate_fields()
        self.pubkey = _parse_bytes(self.pubkey, PUBKEY_LENGTH, "pubkey")
        self.withdrawal_credentials = _parse_bytes(
            self.withdrawal_credentials,
            WITHDRAWAL_CREDENTIALS_LENGTH,
            "withdrawal_credentials",
        )
        self.signature = _parse_bytes(self.signature, SIGNATURE_LENGTH, "signature")
        if not isinstance(self.amount, int) or isinstance(self.amount, bool):
            raise MalformedRecordError(
                f"amount must be an int, got {type(self.amount).__name__}"
            )
        if not 0 <= self.amount <= MAX_UINT64:
            raise MalformedRecordError(f"amount {self.amount} does not fit in uint64")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DepositData":
        """
        Build a DepositData from a JSON-style dictionary.

        Byte fields are 0x-prefixed hex strings; amount may be an int or a
        string of decimal digits. Fractional amounts are rejected rather than
        truncated.
        """
        try:
            amount = data["amount"]
            if isinstance(amount, str):
                if not (amount.isascii() and amount.isdigit()):
                    raise MalformedRecordError(f"Amount must be a decimal integer, got {amount!r}")
                amount = int(amount)
            return cls(
                pubkey=data["pubkey"],
                withdrawal_credentials=data["withdrawal_credentials"],
                amount=amount,
                signature=data["signature"],
            )
        except KeyError as e:
            raise MalformedRecordError(f"Missing required field: {e.args[0]}") from e
        except MalformedRecordError:
            raise
        except (TypeError, ValueError) as e:
            raise MalformedRecordError(f"Invalid deposit record: {e}") from e


def encode_deposit_leaf(
    pubkey: bytes, withdrawal_credentials: bytes, amount: int, signature: bytes
) -> bytes:
    """
    Merkleize one deposit record into its 32-byte tree leaf.

    Args:
        pubkey: 48-byte BLS public key
        withdrawal_credentials: 32-byte withdrawal credentials
        amount: Deposit amount in Gwei
        signature: 96-byte BLS signature

    Returns:
        32-byte DepositData hash tree root

    Raises:
        MalformedRecordError: If any field has the wrong size

    Examples:
        >>> leaf = encode_deposit_leaf(b'\\x01' * 48, b'\\x02' * 32, 32000000000, b'\\x03' * 96)
        >>> len(leaf)
        32
    """
    return DepositData(pubkey, withdrawal_credentials, amount, signature).merkle_root()


@dataclass(frozen=True)
class DepositEvent:
    """
    Log record emitted for every accepted deposit.

    The fields and their order are the canonical deposit log layout consumed
    by off-chain indexers: integers are carried as 8 little-endian bytes.

    Attributes:
        pubkey: 48-byte BLS public key
        withdrawal_credentials: 32-byte withdrawal credentials
        amount: Deposit amount, 8 little-endian bytes
        signature: 96-byte BLS signature
        index: Zero-based deposit position, 8 little-endian bytes
    """

    pubkey: bytes
    withdrawal_credentials: bytes
    amount: bytes
    signature: bytes
    index: bytes

    FIELDS = (
        ("pubkey", PUBKEY_LENGTH),
        ("withdrawal_credentials", WITHDRAWAL_CREDENTIALS_LENGTH),
        ("amount", AMOUNT_LENGTH),
        ("signature", SIGNATURE_LENGTH),
        ("index", AMOUNT_LENGTH),
    )

    def __post_init__(self):
        for field_name, length in self.FIELDS:
            object.__setattr__(
                self, field_name, _parse_bytes(getattr(self, field_name), length, field_name)
            )

    @classmethod
    def from_deposit(cls, data: DepositData, index: int) -> "DepositEvent":
        """Build the event for `data` stored at position `index`."""
        return cls(
            pubkey=data.pubkey,
            withdrawal_credentials=data.withdrawal_credentials,
            amount=to_little_endian_64(data.amount),
            signature=data.signature,
            index=to_little_endian_64(index),
        )

    @property
    def deposit_index(self) -> int:
        return deserialize_uint64(self.index)

    @property
    def deposit_count(self) -> int:
        """Deposit count right after this deposit was appended."""
        return self.deposit_index + 1

    @property
    def amount_gwei(self) -> int:
        return deserialize_uint64(self.amount)

    def to_deposit_data(self) -> DepositData:
        return DepositData(
            pubkey=self.pubkey,
            withdrawal_credentials=self.withdrawal_credentials,
            amount=self.amount_gwei,
            signature=self.signature,
        )

    def leaf(self) -> bytes:
        """Recompute the tree leaf this event was appended as."""
        return self.to_deposit_data().merkle_root()

    def to_dict(self) -> Dict[str, str]:
        """Hex-encode the event fields in canonical order."""
        return {field_name: bytes_to_hex(getattr(self, field_name)) for field_name, _ in self.FIELDS}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DepositEvent":
        try:
            return cls(**{field_name: data[field_name] for field_name, _ in cls.FIELDS})
        except KeyError as e:
            raise MalformedRecordError(f"Missing required event field: {e.args[0]}") from e
