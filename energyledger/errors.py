"""
EnergyLedger error taxonomy

Every ledger operation either applies fully or raises one of these
before touching the chain or the pool.
"""

from typing import Optional


class LedgerError(Exception):
    """Base class for all ledger errors."""


class ValidationError(LedgerError):
    """Malformed or out-of-bound input."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class IntegrityError(LedgerError):
    """A record failed signature verification or is internally inconsistent."""


class InsufficientBalanceError(LedgerError):
    """A spend would drive the sender's derived balance negative."""

    def __init__(self, required: float, available: float):
        super().__init__(
            f"Insufficient balance: required {required}, available {available}"
        )
        self.required = required
        self.available = available


class CapacityError(LedgerError):
    """The pending pool is full."""

    def __init__(self, max_pending: int):
        super().__init__(f"Transaction pool is full ({max_pending} pending)")
        self.max_pending = max_pending


class MiningCancelled(LedgerError):
    """The proof-of-work search was cancelled before a valid nonce was found."""
