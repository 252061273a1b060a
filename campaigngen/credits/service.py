"""
Credit Ledger Service.
Reserve / commit / release metering around a pipeline run.

A reservation holds credits out of the spendable balance before any
provider is called. It becomes a charge on commit, or is returned on
release. Commit and release are idempotent so cleanup paths can call
them more than once.
"""
import logging
from typing import List, Optional

from campaigngen.persistence import (
    BaseLedgerRepository,
    CreditTransaction,
    TransactionPhase,
    get_ledger_repository,
)

from .exceptions import InsufficientCreditsError, ReservationNotFoundError

logger = logging.getLogger(__name__)


class CreditLedger:
    """
    Service for metering campaign runs against account balances.
    All balance mutation goes through reserve/commit/release.
    """

    def __init__(self, repository: Optional[BaseLedgerRepository] = None):
        self._repo = repository or get_ledger_repository()
        logger.info(f"CreditLedger initialized (repository={type(self._repo).__name__})")

    def reserve(self, account_id: str, amount: int) -> str:
        """
        Hold credits for a run.
        Returns the reservation id.
        Raises InsufficientCreditsError if the balance can't cover amount.
        """
        txn = self._repo.try_reserve(account_id, amount)
        if txn is None:
            available = self._repo.get_balance(account_id)
            logger.warning(
                f"[LEDGER] Insufficient credits for account {account_id}: "
                f"required={amount}, available={available}"
            )
            raise InsufficientCreditsError(
                account_id=account_id,
                required=amount,
                available=available,
            )

        logger.info(
            f"[LEDGER] Reserved {amount} credit(s) for account {account_id} "
            f"({txn.reservation_id})"
        )
        return txn.reservation_id

    def commit(self, reservation_id: str) -> CreditTransaction:
        """Convert a reservation into a charge. No-op if already finalized."""
        return self._finalize(reservation_id, TransactionPhase.COMMITTED)

    def release(self, reservation_id: str) -> CreditTransaction:
        """Return reserved credits to the account. No-op if already finalized."""
        return self._finalize(reservation_id, TransactionPhase.RELEASED)

    def _finalize(self, reservation_id: str, phase: TransactionPhase) -> CreditTransaction:
        txn = self._repo.finalize(reservation_id, phase)
        if txn is None:
            raise ReservationNotFoundError(reservation_id)

        if txn.phase is phase:
            logger.info(
                f"[LEDGER] Reservation {reservation_id} {phase.value}: "
                f"account={txn.account_id}, cost={txn.cost}"
            )
        else:
            logger.debug(
                f"[LEDGER] Reservation {reservation_id} already {txn.phase.value}, "
                f"ignoring {phase.value}"
            )
        return txn

    def add_credits(self, account_id: str, amount: int) -> int:
        """Top up an account. Returns the new balance."""
        return self._repo.add_credits(account_id, amount)

    def get_balance(self, account_id: str) -> int:
        """Spendable balance for account."""
        return self._repo.get_balance(account_id)

    def get_transaction(self, reservation_id: str) -> Optional[CreditTransaction]:
        return self._repo.get_transaction(reservation_id)

    def get_history(self, account_id: str, limit: int = 100) -> List[CreditTransaction]:
        """Get reservation history for account, newest first."""
        return self._repo.list_transactions(account_id, limit=limit)


_ledger: Optional[CreditLedger] = None


def get_credit_ledger() -> CreditLedger:
    """Get or create credit ledger singleton."""
    global _ledger
    if _ledger is None:
        _ledger = CreditLedger()
    return _ledger


def reset_credit_ledger() -> None:
    """Reset credit ledger singleton (for testing)."""
    global _ledger
    _ledger = None
