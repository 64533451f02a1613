"""
API Models Package

This package contains request and response models for the deposit tree API.
It includes Pydantic models for validation and serialization of:

- Deposit submissions and receipts
- Deposit roots, branch snapshots and inclusion proofs
- Error responses and status models

Usage:
    from deposit_tree.models import DepositRequest

    request = DepositRequest(pubkey="0x...", withdrawal_credentials="0x...",
                             amount=32000000000, signature="0x...")
"""

from .api_models import (
    BranchResponse,
    DepositEventModel,
    DepositProofResponse,
    DepositRequest,
    DepositResponse,
    DepositRootResponse,
    ErrorResponse,
    HealthResponse
)

__all__ = [
    'BranchResponse',
    'DepositEventModel',
    'DepositProofResponse',
    'DepositRequest',
    'DepositResponse',
    'DepositRootResponse',
    'ErrorResponse',
    'HealthResponse'
]
