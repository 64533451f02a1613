"""
Deposit Service Package

This package exposes the deposit tree to callers. It includes:

- DepositService: accepts deposits, emits events, persists state and answers
  root and proof queries
- rest_api: FastAPI application serving the deposit service

Usage:
    from deposit_tree.api import DepositService

    service = DepositService()
    receipt = service.submit_deposit(pubkey, withdrawal_credentials, amount, signature)
"""

from .deposit_service import DepositService, DepositServiceError, DepositReceipt

__all__ = [
    'DepositService',
    'DepositServiceError',
    'DepositReceipt'
]
