"""
Credit Ledger Module.
"""
from .service import CreditLedger, get_credit_ledger, reset_credit_ledger
from .exceptions import CreditError, InsufficientCreditsError, ReservationNotFoundError

__all__ = [
    "CreditLedger",
    "get_credit_ledger",
    "reset_credit_ledger",
    "CreditError",
    "InsufficientCreditsError",
    "ReservationNotFoundError",
]
