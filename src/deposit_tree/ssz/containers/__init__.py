"""
SSZ Containers Package

This package provides the deposit containers:

- Base container class with common SSZ functionality
- DepositData, the record merkleized into a deposit tree leaf
- DepositEvent, the log record emitted for each accepted deposit
"""

from .base import SSZContainer
from .deposit import DepositData, DepositEvent, encode_deposit_leaf

__all__ = [
    # Base classes
    'SSZContainer',

    # Deposit containers
    'DepositData',
    'DepositEvent',
    'encode_deposit_leaf',
]
