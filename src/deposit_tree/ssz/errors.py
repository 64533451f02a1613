"""
Deposit Tree Exceptions

Errors raised by the accumulator and the DepositData encoder. None of them
leave partially updated state behind: every check runs before any mutation.
"""


class DepositTreeError(Exception):
    """Base class for deposit tree errors."""
    pass


class CapacityExceededError(DepositTreeError):
    """Raised when appending to a tree that already holds MAX_DEPOSIT_COUNT leaves."""
    pass


class MalformedRecordError(DepositTreeError, ValueError):
    """Raised when a deposit field or leaf does not have its required byte length."""
    pass
