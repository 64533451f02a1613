"""
API Models

This module defines Pydantic models for API request and response validation.
These models ensure proper data structure and type validation for the
deposit tree API.
"""

from typing import List, Optional
from pydantic import BaseModel, Field, validator
from datetime import datetime, timezone

from ..ssz.utils import normalize_hex, validate_hex_length


def _check_hex(v: str, expected_bytes: int, name: str) -> str:
    if not validate_hex_length(v, expected_bytes):
        raise ValueError(f"{name} must be {expected_bytes} bytes ({expected_bytes * 2} hex chars) with 0x prefix")
    try:
        return normalize_hex(v, expected_bytes)
    except ValueError:
        raise ValueError(f"{name} contains invalid hex characters")


class ErrorResponse(BaseModel):
    """
    Response model for API errors.

    Attributes:
        error: Error message
        code: Error code (string identifier)
        details: Additional error details
    """
    error: str = Field(..., description="Error message")
    code: str = Field(..., description="Error code")
    details: Optional[dict] = Field(default=None, description="Additional error details")


class HealthResponse(BaseModel):
    """
    Response model for health check endpoint.

    Attributes:
        status: Service status
        deposit_count: Number of deposits in the tree
        version: Service version
        timestamp: Response timestamp
    """
    status: str = Field(..., description="Service status")
    deposit_count: int = Field(..., description="Number of deposits in the tree")
    version: str = Field(default="0.1.0", description="Service version")
    timestamp: Optional[str] = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat(), description="Response timestamp")


class DepositRequest(BaseModel):
    """
    Request model for submitting a deposit.

    Attributes:
        pubkey: 48-byte BLS public key as hex string
        withdrawal_credentials: 32-byte withdrawal credentials as hex string
        amount: Deposit amount in Gwei
        signature: 96-byte BLS signature as hex string
    """
    pubkey: str = Field(..., description="BLS public key (48 bytes, hex with 0x prefix)")
    withdrawal_credentials: str = Field(..., description="Withdrawal credentials (32 bytes, hex with 0x prefix)")
    amount: int = Field(..., ge=0, lt=2**64, description="Deposit amount in Gwei")
    signature: str = Field(..., description="BLS signature (96 bytes, hex with 0x prefix)")

    @validator('pubkey')
    def validate_pubkey(cls, v):
        """Validate pubkey is a 48-byte hex string."""
        return _check_hex(v, 48, "pubkey")

    @validator('withdrawal_credentials')
    def validate_withdrawal_credentials(cls, v):
        """Validate withdrawal credentials are a 32-byte hex string."""
        return _check_hex(v, 32, "withdrawal_credentials")

    @validator('signature')
    def validate_signature(cls, v):
        """Validate signature is a 96-byte hex string."""
        return _check_hex(v, 96, "signature")

    class Config:
        json_schema_extra = {
            "example": {
                "pubkey": "0x" + "a1" * 48,
                "withdrawal_credentials": "0x" + "00" * 12 + "8c0e122960dc2e97dc0059c07d6901dce72818e1",
                "amount": 32000000000,
                "signature": "0x" + "b2" * 96,
            }
        }


class DepositEventModel(BaseModel):
    """
    Deposit log record with every field hex encoded in canonical order.
    """
    pubkey: str = Field(..., description="BLS public key")
    withdrawal_credentials: str = Field(..., description="Withdrawal credentials")
    amount: str = Field(..., description="Deposit amount, 8 little-endian bytes")
    signature: str = Field(..., description="BLS signature")
    index: str = Field(..., description="Deposit index, 8 little-endian bytes")


class DepositResponse(BaseModel):
    """
    Response model for an accepted deposit.

    Attributes:
        index: Position of the deposit in the tree
        deposit_count: Deposit count after this deposit
        deposit_root: Deposit root after this deposit
        leaf: DepositData hash tree root appended to the tree
        event: Emitted deposit event
    """
    index: int = Field(..., description="Deposit index")
    deposit_count: int = Field(..., description="Deposit count after this deposit")
    deposit_root: str = Field(..., description="Deposit root as hex string")
    leaf: str = Field(..., description="Deposit leaf as hex string")
    event: DepositEventModel = Field(..., description="Emitted deposit event")


class DepositRootResponse(BaseModel):
    """
    Response model for the current deposit root.
    """
    deposit_root: str = Field(..., description="Deposit root as hex string")
    deposit_count: int = Field(..., description="Number of deposits")
    deposit_count_bytes: str = Field(..., description="Deposit count, 8 little-endian bytes")


class BranchResponse(BaseModel):
    """
    Response model for the persisted accumulator layout.
    """
    zero_hashes: List[str] = Field(..., description="Zero hashes, lowest height first")
    branch: List[str] = Field(..., description="Branch nodes, lowest height first")
    deposit_count: int = Field(..., description="Number of deposits")
    deposit_root: str = Field(..., description="Deposit root as hex string")


class DepositProofResponse(BaseModel):
    """
    Response model for a deposit inclusion proof.

    Attributes:
        proof: Sibling hashes followed by the length chunk, as hex strings
        deposit_root: Root the proof verifies against
        leaf: Deposit leaf being proven
        deposit_index: Index of the deposit
        deposit_count: Tree size the proof was built for
        metadata: Additional proof metadata
    """
    proof: List[str] = Field(..., description="List of proof steps as hex strings")
    deposit_root: str = Field(..., description="Deposit root as hex string")
    leaf: str = Field(..., description="Deposit leaf as hex string")
    deposit_index: int = Field(..., description="Deposit index")
    deposit_count: int = Field(..., description="Deposit count the proof is against")
    metadata: dict = Field(default_factory=dict, description="Additional proof metadata")

    @validator('proof')
    def validate_proof_format(cls, v):
        """Validate proof steps are proper hex strings."""
        for step in v:
            if not isinstance(step, str) or not step.startswith('0x'):
                raise ValueError("All proof steps must be hex strings starting with '0x'")
        return v
